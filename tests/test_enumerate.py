from __future__ import annotations

from pathlib import Path

from index.symbols import SymbolIndex
from program.loader import load_program
from spath.enumerate import enumerate_all, enumerate_package
from spath.parse import parse
from spath.resolve import resolve

FIXTURE = Path(__file__).parent / "fixtures" / "gomod"


def _universe():  # noqa: ANN202
    program = load_program(FIXTURE)
    index = SymbolIndex.build(program)
    return program, index, enumerate_all(program, index)


def test_every_enumerated_address_resolves_to_itself() -> None:
    program, index, universe = _universe()

    for entry in universe:
        if entry.kind == "package":
            continue
        resolution = resolve(parse(entry.path), program, index)
        assert resolution.canonical() == entry.path


def test_enumeration_is_deterministic() -> None:
    _, _, first = _universe()
    _, _, second = _universe()

    assert [e.path for e in first] == [e.path for e in second]
    assert len({e.path for e in first}) == len(first)


def test_package_entries_lead_each_package() -> None:
    _, _, universe = _universe()

    packages = [e for e in universe if e.kind == "package"]
    assert [e.path for e in packages] == [
        "example.com/demo",
        "internal/store",
        "server",
    ]
    assert universe[0].kind == "package"
    assert packages[1].type == "store"
    assert packages[1].package == "example.com/demo/internal/store"


def test_expected_entries_are_present() -> None:
    _, _, universe = _universe()
    by_path = {e.path: e for e in universe}

    assert by_path["server.Options"].type == "struct"
    assert by_path["server.Store"].type == "interface"
    assert by_path["server.Options/fields[6]"].type == "string"
    assert by_path["server.Options/fields[a]"].kind == "field"
    assert by_path["server.Options/embeds[Logger]"].kind == "embed"
    assert by_path["server.Options/embeds[Handler]/type"].type == "http.Handler"
    assert by_path["server.Options/fields[Addr]/tag[json]"].type == "addr"
    assert by_path["server.Options/fields[Addr]/doc"].type == "1 line"
    assert by_path["server.Store/methods[Get]/params[ctx]"].kind == "param"
    assert by_path["server.Store/embeds[Closer]"].kind == "embed"
    assert by_path["server.Server.Addr"].type == "func (s *Server) Addr() string"
    assert by_path["server.Server.Addr/receiver/type"].type == "*Server"
    assert by_path["server.Server.Addr/body"].type == "3 loc"
    assert by_path["server.Map/typeparams[U]/constraint"].type == "comparable"
    assert by_path["server.verbose/value"].type == "true"
    assert by_path["server.DefaultTimeout"].type == "untyped"
    assert by_path["internal/store.Pair/typeparams[K]/name"].type == "K"
    assert by_path["internal/store.TestGet/body"].kind == "body"
    assert by_path["example.com/demo.main/body"].package == "example.com/demo"


def test_unaddressable_entries_are_absent() -> None:
    _, _, universe = _universe()
    paths = {e.path for e in universe}

    # Blank fields are addressed by position only.
    assert "server.Options/fields[_]" not in paths
    # Untagged fields have no tag entries.
    assert "server.Options/fields[Timeout]/tag" in paths
    assert "server.Options/fields[b]/tag" not in paths
    assert not any(p.startswith("server_test") for p in paths)
    assert not any("broken" in p for p in paths)


def test_enumerate_single_package() -> None:
    program, index, universe = _universe()
    server = program.find_package("server")

    entries = enumerate_package(server, index)

    assert entries[0].path == "server"
    assert all(e.package_short == "server" for e in entries)
    assert [e.path for e in entries] == [
        e.path for e in universe if e.package_short == "server"
    ]


def test_dotted_root_module_addresses_resolve(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("module example.com\n", encoding="utf-8")
    (tmp_path / "main.go").write_text(
        "package main\n\n"
        "type Config struct {\n\tName string\n}\n\n"
        "func (c Config) Label() string { return c.Name }\n\n"
        "func main() {}\n",
        encoding="utf-8",
    )
    program = load_program(tmp_path)
    index = SymbolIndex.build(program)
    universe = enumerate_all(program, index)
    paths = [e.path for e in universe if e.kind != "package"]

    assert "example.com.main" in paths
    assert "example.com.Config/fields[Name]" in paths
    assert "example.com.Config.Label" in paths
    for address in paths:
        resolution = resolve(parse(address), program, index)
        assert resolution.canonical() == address
        assert resolution.package.path == "example.com"
