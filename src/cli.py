"""Command-line interface for symaddr."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from commands.channels import run_channels
from commands.deadcode import run_deadcode, run_unused
from commands.glob import run_glob
from commands.ls import run_ls
from commands.package import run_package
from commands.read import run_read
from commands.search import run_search
from commands.session import MISS_ERRORS, open_session
from commands.symbol import run_symbol
from contract.errors import (
    InvalidPatternError,
    ParseError,
    ProgramLoadError,
)
from index.symbols import parse_kind
from rules.config import ConfigError

if TYPE_CHECKING:
    from commands.report import Report
    from commands.session import Session
    from scope.filter import ScopeFilter


def _add_common_options(parser: argparse.ArgumentParser, *, scoped: bool) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Go module root or any directory inside it (default: .)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON instead of text",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    if scoped:
        parser.add_argument(
            "--scope",
            default=None,
            help=(
                "Comma-separated package selection: all, project, package, "
                "paths, path/... subtrees, globs; prefix with - to exclude "
                "(default: config default_scope)"
            ),
        )
        parser.add_argument(
            "--show-scope",
            action="store_true",
            help="Report the resolved include and exclude package lists",
        )


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        msg = f"must be >= 0, got {number}"
        raise argparse.ArgumentTypeError(msg)
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="symaddr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    read_parser = subparsers.add_parser(
        "read", help="Print the source behind addresses or packages"
    )
    _add_common_options(read_parser, scoped=False)
    read_parser.add_argument("targets", nargs="+", help="Addresses or patterns")

    ls_parser = subparsers.add_parser(
        "ls", help="List the addresses below a package or symbol"
    )
    _add_common_options(ls_parser, scoped=False)
    ls_parser.add_argument("targets", nargs="*", help="Packages or addresses")
    ls_parser.add_argument(
        "--depth",
        type=_non_negative,
        default=1,
        help="Levels to list (default: 1, 0 = unlimited)",
    )

    glob_parser = subparsers.add_parser(
        "glob", help="Match wildcard patterns against every address"
    )
    _add_common_options(glob_parser, scoped=True)
    glob_parser.add_argument("patterns", nargs="+", help="Wildcard patterns")
    glob_parser.add_argument(
        "--limit",
        type=_non_negative,
        default=None,
        help="Maximum matches per pattern (default: config glob_limit)",
    )

    search_parser = subparsers.add_parser("search", help="Fuzzy symbol search")
    _add_common_options(search_parser, scoped=True)
    search_parser.add_argument("query", help="Name or Type.Method to look for")
    search_parser.add_argument(
        "--kind",
        type=parse_kind,
        default=None,
        help="Restrict to one kind: func, method, type, interface, const, var",
    )
    search_parser.add_argument(
        "--limit",
        type=_non_negative,
        default=None,
        help="Maximum hits (default: config search_limit)",
    )

    package_parser = subparsers.add_parser("package", help="Summarize packages")
    _add_common_options(package_parser, scoped=True)
    package_parser.add_argument(
        "targets",
        nargs="*",
        help="Packages to summarize (default: every package in scope)",
    )

    deadcode_parser = subparsers.add_parser(
        "deadcode", help="List symbols no entry point reaches"
    )
    _add_common_options(deadcode_parser, scoped=True)
    deadcode_parser.add_argument(
        "--include-exported",
        action="store_true",
        help="Also report exported symbols",
    )
    deadcode_parser.add_argument(
        "--no-tests",
        action="store_true",
        help="Ignore _test.go files and test entry points",
    )

    unused_parser = subparsers.add_parser(
        "unused", help="List unexported symbols nothing refers to"
    )
    _add_common_options(unused_parser, scoped=True)

    symbol_parser = subparsers.add_parser(
        "symbol", help="Show a symbol with its callers, references and methods"
    )
    _add_common_options(symbol_parser, scoped=True)
    symbol_parser.add_argument("target", help="Address or bare symbol name")

    channels_parser = subparsers.add_parser(
        "channels", help="List channel operations by package and channel"
    )
    _add_common_options(channels_parser, scoped=True)
    channels_parser.add_argument(
        "targets",
        nargs="*",
        help="Packages to inspect (default: every package in scope)",
    )
    channels_parser.add_argument(
        "--no-tests",
        action="store_true",
        help="Ignore _test.go files",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _emit(report: Report, *, as_json: bool) -> int:
    output = report.render_json() if as_json else report.render_text()
    if output:
        sys.stdout.write(output.rstrip("\n") + "\n")
    return report.exit_code


def _show_scope(report: Report, scope: ScopeFilter) -> None:
    report.data["scope"] = scope.to_dict()
    report.lines[:0] = [
        f"scope include: {', '.join(scope.resolved_includes()) or '-'}",
        f"scope exclude: {', '.join(scope.resolved_excludes()) or '-'}",
        f"scope flags: all={scope.all} project={scope.project}",
        "",
    ]


def _run(session: Session, args: argparse.Namespace) -> Report:
    if args.command == "read":
        return run_read(session, args.targets)

    if args.command == "ls":
        return run_ls(session, args.targets, depth=args.depth)

    if args.command == "symbol":
        report = run_symbol(session, args.target, scope_expr=args.scope)
        if args.show_scope and report.scope is not None:
            _show_scope(report, report.scope)
        return report

    scope = session.scope(args.scope)

    if args.command == "glob":
        report = run_glob(session, args.patterns, scope=scope, limit=args.limit)
    elif args.command == "search":
        report = run_search(
            session, args.query, scope=scope, kind=args.kind, limit=args.limit
        )
    elif args.command == "package":
        report = run_package(session, args.targets, scope=scope)
    elif args.command == "deadcode":
        report = run_deadcode(
            session, scope=scope, include_exported=args.include_exported
        )
    elif args.command == "unused":
        report = run_unused(session, scope=scope)
    elif args.command == "channels":
        report = run_channels(session, args.targets, scope=scope)
    else:
        raise AssertionError(args.command)

    if args.show_scope:
        _show_scope(report, scope)
    return report


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()
    include_tests = False if getattr(args, "no_tests", False) else None

    try:
        session = open_session(root, include_tests=include_tests)
        report = _run(session, args)
    except ConfigError as exc:
        sys.stderr.write(f"config error: {exc}\n")
        return 2
    except ProgramLoadError as exc:
        sys.stderr.write(f"load error: {exc}\n")
        return 2
    except (ParseError, InvalidPatternError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2
    except MISS_ERRORS as exc:
        # A --scope token that names no package.
        sys.stderr.write(f"scope error: {exc}\n")
        suggestions = getattr(exc, "suggestions", None) or getattr(
            exc, "candidates", []
        )
        for suggestion in suggestions:
            sys.stderr.write(f"    {suggestion}\n")
        return 1

    return _emit(report, as_json=args.json)


if __name__ == "__main__":
    raise SystemExit(main())
