from __future__ import annotations

import shutil
from pathlib import Path

import orjson
import pytest

from cli import main

FIXTURE = Path(__file__).parent / "fixtures" / "gomod"


def _copy_fixture(root: Path) -> None:
    shutil.copytree(FIXTURE, root)


def _run(argv: list[str], capsys: pytest.CaptureFixture[str]) -> tuple[int, str]:
    exit_code = main([*argv, "--root", str(FIXTURE)])
    return exit_code, capsys.readouterr().out


def _run_json(
    argv: list[str], capsys: pytest.CaptureFixture[str]
) -> tuple[int, dict]:
    exit_code, out = _run([*argv, "--json"], capsys)
    return exit_code, orjson.loads(out)


def test_cli_read_address(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["read", "server.Options/fields[Addr]/tag[json]"], capsys)

    assert exit_code == 0
    lines = out.splitlines()
    assert lines[0].startswith(
        "// example.com/demo/server.Options/fields[Addr]/tag[json] (tag) "
        "server/server.go:"
    )
    assert lines[1] == "addr"


def test_cli_read_json(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["read", "Get/params[key]/type"], capsys)

    assert exit_code == 0
    assert payload["command"] == "read"
    [result] = payload["results"]
    assert result["path"] == "internal/store.Store.Get/params[key]/type"
    assert result["source"] == "string"
    assert payload["diagnostics"] == []


def test_cli_read_package_and_pattern(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["read", "./server", "server.Server.*"], capsys)

    assert exit_code == 0
    results = payload["results"]
    assert results[0]["kind"] == "package"
    assert results[0]["files"] == ["server/server.go"]
    assert [r["path"] for r in results[1:]] == [
        "server.Server.Addr",
        "server.Server.ServeHTTP",
        "server.Server.unusedHelper",
    ]


def test_cli_read_partial_miss_still_succeeds(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code, payload = _run_json(
        ["read", "server.NewServer", "server.Options/fields[Nope]"], capsys
    )

    assert exit_code == 0
    miss = payload["results"][1]
    assert miss["resolved_prefix"] == "server.Options"
    assert "no field 'Nope'" in miss["error"]


def test_cli_read_ambiguous_name_exits_one(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code, payload = _run_json(["read", "Store"], capsys)

    assert exit_code == 1
    [diagnostic] = payload["diagnostics"]
    assert diagnostic["code"] == "AMBIGUOUS_MATCH"
    assert diagnostic["candidates"] == ["internal/store.Store", "server.Store"]
    assert payload["results"][0]["suggestions"] == diagnostic["candidates"]


def test_cli_read_miss_suggests(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["read", "server.Optoins"], capsys)

    assert exit_code == 1
    assert "symbol not found: Optoins" in out
    assert "    Options" in out


def test_cli_read_parse_error_exits_two(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = main(["read", "server.Options/bogus", "--root", str(FIXTURE)])

    assert exit_code == 2
    assert "unknown category 'bogus'" in capsys.readouterr().err


def test_cli_ls_symbol(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["ls", "server.Options"], capsys)

    assert exit_code == 0
    lines = out.splitlines()
    assert lines[0] == "server.Options:"
    assert "  server.Options/fields[Addr]  field  string" in lines
    assert "  server.Options/embeds[Logger]  embed  Logger" in lines
    assert not any("/type" in line for line in lines)


def test_cli_ls_module_root_lists_subpackages(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code, payload = _run_json(["ls", "--depth", "0"], capsys)

    assert exit_code == 0
    [result] = payload["results"]
    assert result["path"] == "example.com/demo"
    assert result["subpackages"] == ["internal/store", "server"]
    paths = [e["path"] for e in result["entries"]]
    assert "example.com/demo.main/body" in paths
    assert "server.Options" not in paths


def test_cli_glob(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["glob", "store.*", "**.Options/fields[*]"], capsys)

    assert exit_code == 0
    store, fields = payload["results"]
    assert store["pattern"] == "internal/store.*"
    assert "internal/store.New" in [m["path"] for m in store["matches"]]
    assert fields["total"] == 5


def test_cli_glob_limit_and_scope(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(
        ["glob", "**.*", "--limit", "2", "--scope", "server"], capsys
    )

    assert exit_code == 0
    [result] = payload["results"]
    assert result["truncated"]
    assert len(result["matches"]) == 2
    assert all(m["package_short"] == "server" for m in result["matches"])


def test_cli_glob_without_matches_exits_one(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code, out = _run(["glob", "nowhere.*"], capsys)

    assert exit_code == 1
    assert "nowhere.*: 0 matches" in out


def test_cli_glob_invalid_pattern_exits_two(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = main(["glob", "pkg.***", "--root", str(FIXTURE)])

    assert exit_code == 2
    assert "invalid pattern" in capsys.readouterr().err


def test_cli_search(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["search", "NewServr"], capsys)

    assert exit_code == 0
    assert payload["hits"][0]["address"] == "server.NewServer"

    exit_code, payload = _run_json(["search", "S", "--kind", "interface"], capsys)
    assert [h["address"] for h in payload["hits"]] == ["server.Store"]
    assert payload["kind"] == "interface"


def test_cli_search_no_hits_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["search", "qqqqqqqqqqqq"], capsys)

    assert exit_code == 1
    assert "no symbols match" in out


def test_cli_package(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["package", "store"], capsys)

    assert exit_code == 0
    assert out.startswith("package store (example.com/demo/internal/store)")
    assert "  internal" in out
    assert "    func New() *Store" in out
    get = "func (s *Store) Get(ctx context.Context, key string) (string, error)"
    assert f"      {get}" in out


def test_cli_package_summarizes_scope(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["package", "--scope", "project,-server"], capsys)

    assert exit_code == 0
    assert [p["pkg_path"] for p in payload["packages"]] == [
        "example.com/demo",
        "example.com/demo/internal/store",
    ]
    root = payload["packages"][0]
    assert [c["name"] for c in root["symbols"]["constants"]] == ["Version"]
    assert [f["name"] for f in root["symbols"]["functions"]] == [
        "helper",
        "main",
        "orphan",
    ]


def test_cli_package_miss_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["package", "servr"], capsys)

    assert exit_code == 1
    assert "package not found: servr" in out


def test_cli_deadcode(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["deadcode"], capsys)

    assert exit_code == 0
    addresses = sorted(s["address"] for s in payload["symbols"])
    assert addresses == [
        "example.com/demo.orphan",
        "internal/store.Store.compact",
        "internal/store.cycleA",
        "internal/store.cycleB",
        "internal/store.minItems",
        "internal/store.stale",
        "server.Server.unusedHelper",
        "server.debug",
        "server.verbose",
    ]
    assert payload["roots"] == ["example.com/demo.main", "internal/store.TestGet"]


def test_cli_deadcode_flags(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["deadcode", "--include-exported"], capsys)
    assert exit_code == 0
    assert out.splitlines()[-1] == "14 unreachable symbols"
    assert ": func server.Map" in out

    exit_code, payload = _run_json(["deadcode", "--no-tests"], capsys)
    assert exit_code == 0
    assert payload["include_tests"] is False
    assert payload["roots"] == ["example.com/demo.main"]


def test_cli_unused(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["unused"], capsys)

    assert exit_code == 0
    assert out.splitlines()[-1] == "7 unused symbols"
    assert "cycleA" not in out


def test_cli_show_scope(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(
        ["deadcode", "--scope", "all,-internal/...", "--show-scope"], capsys
    )

    assert exit_code == 0
    lines = out.splitlines()
    assert lines[0] == "scope include: -"
    assert lines[1] == "scope exclude: example.com/demo/internal/store"
    assert lines[2] == "scope flags: all=True project=False"
    assert "store." not in out


def test_cli_unknown_scope_token_exits_one(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = main(["unused", "--scope", "servr", "--root", str(FIXTURE)])

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "scope error: package not found: servr" in err
    assert "    server" in err


def test_cli_missing_go_mod_exits_two(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["ls", "--root", str(tmp_path)])

    assert exit_code == 2
    assert "load error" in capsys.readouterr().err


def test_cli_invalid_config_exits_two(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    _copy_fixture(repo_root)
    (repo_root / "symaddr.toml").write_text("bogus_key = true\n", encoding="utf-8")

    exit_code = main(["glob", "server.*", "--root", str(repo_root)])

    assert exit_code == 2
    assert "config error" in capsys.readouterr().err


def test_cli_config_default_scope(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    _copy_fixture(repo_root)
    (repo_root / "symaddr.toml").write_text(
        'default_scope = "server"\nglob_limit = 1\n', encoding="utf-8"
    )

    exit_code = main(["glob", "**.*", "--json", "--root", str(repo_root / "server")])

    assert exit_code == 0
    payload = orjson.loads(capsys.readouterr().out)
    assert payload["limit"] == 1
    [result] = payload["results"]
    assert result["matches"][0]["package_short"] == "server"


def test_cli_package_scope_keyword_selects_module_root(
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code, payload = _run_json(["glob", "**.*", "--scope", "package"], capsys)

    assert exit_code == 0
    [result] = payload["results"]
    assert result["total"] > 0
    assert {m["package_short"] for m in result["matches"]} == {"example.com/demo"}


def _write_doc_module(root: Path) -> None:
    (root / "go.mod").write_text("module example.com/docs\n", encoding="utf-8")
    package_dir = root / "internal" / "doc"
    package_dir.mkdir(parents=True)
    (package_dir / "doc.go").write_text(
        "package doc\n\nfunc Render() string { return \"\" }\n", encoding="utf-8"
    )


def test_cli_ls_package_named_like_a_category(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_doc_module(tmp_path)

    exit_code = main(["ls", "internal/doc", "--json", "--root", str(tmp_path)])

    assert exit_code == 0
    [result] = orjson.loads(capsys.readouterr().out)["results"]
    assert result["path"] == "internal/doc"
    assert "internal/doc.Render" in [e["path"] for e in result["entries"]]

    exit_code = main(["read", "internal/doc", "--json", "--root", str(tmp_path)])

    assert exit_code == 0
    [result] = orjson.loads(capsys.readouterr().out)["results"]
    assert result["kind"] == "package"
    assert result["files"] == ["internal/doc/doc.go"]


def test_cli_symbol_type(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["symbol", "store.Store"], capsys)

    assert exit_code == 0
    assert payload["symbol"]["address"] == "internal/store.Store"
    assert payload["fan_in"] == 6
    assert [m["address"] for m in payload["methods"]] == [
        "internal/store.Store.Get",
        "internal/store.Store.Put",
        "internal/store.Store.String",
        "internal/store.Store.Close",
        "internal/store.Store.compact",
    ]
    assert [c["address"] for c in payload["constructors"]] == ["internal/store.New"]
    assert [r["address"] for r in payload["references"]] == ["internal/store.New"]
    assert [s["address"] for s in payload["satisfies"]] == ["server.Store"]
    assert payload["imported_by"] == ["example.com/demo"]


def test_cli_symbol_interface(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["symbol", "server.Store"], capsys)

    assert exit_code == 0
    lines = out.splitlines()
    assert lines[0] == "interface server.Store  server/server.go:28"
    assert "  implementations (1):" in lines
    assert "    internal/store/store.go:19: type internal/store.Store" in lines
    assert "  references (2):" in lines


def test_cli_symbol_callers(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["symbol", "store.New"], capsys)
    assert exit_code == 0
    assert [c["address"] for c in payload["callers"]] == [
        "example.com/demo.main",
        "internal/store.TestGet",
    ]

    exit_code, payload = _run_json(
        ["symbol", "store.New", "--scope", "package"], capsys
    )
    assert exit_code == 0
    assert [c["address"] for c in payload["callers"]] == ["internal/store.TestGet"]
    assert payload["scope"]["include"] == ["example.com/demo/internal/store"]


def test_cli_symbol_method_callers(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, payload = _run_json(["symbol", "server.Server.Addr"], capsys)

    assert exit_code == 0
    assert payload["symbol"]["kind"] == "method"
    assert [c["address"] for c in payload["callers"]] == ["example.com/demo.main"]
    assert payload["references"] == []

    exit_code, payload = _run_json(["symbol", "store.Store.Get"], capsys)
    assert [c["address"] for c in payload["callers"]] == [
        "internal/store.TestGet",
        "server.Server.ServeHTTP",
    ]


def test_cli_symbol_miss_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, out = _run(["symbol", "server.Optoins"], capsys)

    assert exit_code == 1
    assert "symbol not found: Optoins" in out
