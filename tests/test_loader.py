from __future__ import annotations

from pathlib import Path

import pytest

from contract.diagnostics import PACKAGE_NAME_CONFLICT, SYNTAX_ERROR
from contract.errors import (
    AmbiguousMatchError,
    PackageNotFoundError,
    ProgramLoadError,
)
from program.loader import load_program

FIXTURE = Path(__file__).parent / "fixtures" / "gomod"


def _write_module(root: Path, files: dict[str, str]) -> None:
    go_mod = "module example.com/tmp\n\ngo 1.22\n"
    (root / "go.mod").write_text(go_mod, encoding="utf-8")
    for rel_path, source in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")


def test_load_fixture_packages() -> None:
    program = load_program(FIXTURE)

    assert program.module_path == "example.com/demo"
    assert program.go_version == "1.22"
    assert program.package_paths() == [
        "example.com/demo",
        "example.com/demo/internal/store",
        "example.com/demo/server",
    ]
    assert program.diagnostics == ()


def test_package_identifiers() -> None:
    program = load_program(FIXTURE)

    root = program.package("example.com/demo")
    store = program.package("example.com/demo/internal/store")
    assert root is not None
    assert store is not None

    assert root.name == "main"
    assert root.identifier.short_path == "example.com/demo"
    assert root.identifier.relative_path == "."
    assert not root.identifier.internal

    assert store.name == "store"
    assert store.identifier.short_path == "internal/store"
    assert store.identifier.internal
    assert store.imports() == ["context", "errors"]


def test_test_files_and_external_test_packages() -> None:
    program = load_program(FIXTURE)

    store = program.find_package("internal/store")
    server = program.find_package("server")
    assert [f.relative_path for f in store.files] == [
        "internal/store/store.go",
        "internal/store/store_test.go",
    ]
    assert store.files[1].is_test
    # package server_test files are not part of package server.
    assert [f.relative_path for f in server.files] == ["server/server.go"]


def test_load_without_tests() -> None:
    program = load_program(FIXTURE, include_tests=False)

    store = program.find_package("internal/store")
    assert [f.relative_path for f in store.files] == ["internal/store/store.go"]


def test_testdata_is_skipped() -> None:
    program = load_program(FIXTURE)

    assert all("testdata" not in p.path for p in program.packages)


def test_find_package_forms() -> None:
    program = load_program(FIXTURE)

    assert program.find_package(".").path == "example.com/demo"
    assert program.find_package("./server").path == "example.com/demo/server"
    assert program.find_package("example.com/demo/server").name == "server"
    assert program.find_package("store").path == "example.com/demo/internal/store"
    assert program.find_package("main").path == "example.com/demo"


def test_find_package_miss_suggests() -> None:
    program = load_program(FIXTURE)

    with pytest.raises(PackageNotFoundError) as excinfo:
        program.find_package("servr")
    assert "server" in excinfo.value.suggestions


def test_find_package_ambiguous_name(tmp_path: Path) -> None:
    _write_module(
        tmp_path,
        {
            "a/util/util.go": "package util\n\nfunc A() {}\n",
            "b/util/util.go": "package util\n\nfunc B() {}\n",
        },
    )
    program = load_program(tmp_path)

    with pytest.raises(AmbiguousMatchError) as excinfo:
        program.find_package("util")
    assert excinfo.value.candidates == ["a/util", "b/util"]


def test_syntax_errors_become_diagnostics(tmp_path: Path) -> None:
    _write_module(
        tmp_path,
        {
            "good/good.go": "package good\n\nfunc Fine() {}\n",
            "bad/bad.go": "package bad\n\nfunc Broken( {\n",
        },
    )
    program = load_program(tmp_path)

    codes = [d.code for d in program.diagnostics]
    assert codes == [SYNTAX_ERROR]
    assert program.diagnostics[0].package == "example.com/tmp/bad"
    assert program.find_package("bad").files[0].has_error


def test_package_name_conflict(tmp_path: Path) -> None:
    _write_module(
        tmp_path,
        {
            "mixed/a.go": "package alpha\n\nfunc A() {}\n",
            "mixed/b.go": "package alpha\n\nfunc B() {}\n",
            "mixed/c.go": "package beta\n\nfunc C() {}\n",
        },
    )
    program = load_program(tmp_path)

    mixed = program.find_package("mixed")
    assert mixed.name == "alpha"
    assert [f.relative_path for f in mixed.files] == ["mixed/a.go", "mixed/b.go"]
    assert [d.code for d in program.diagnostics] == [PACKAGE_NAME_CONFLICT]


def test_gitignored_and_nested_modules_are_skipped(tmp_path: Path) -> None:
    _write_module(
        tmp_path,
        {
            ".gitignore": "generated/\n",
            "generated/gen.go": "package generated\n",
            "nested/go.mod": "module example.com/nested\n",
            "nested/n.go": "package nested\n",
            "kept/k.go": "package kept\n",
        },
    )
    program = load_program(tmp_path)

    assert program.package_paths() == ["example.com/tmp/kept"]


def test_missing_go_mod(tmp_path: Path) -> None:
    with pytest.raises(ProgramLoadError, match="go.mod"):
        load_program(tmp_path)
