"""Resolver: turn a parsed semantic path into a concrete syntax node."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from contract.diagnostics import AMBIGUOUS_MATCH
from contract.errors import (
    AmbiguousMatchError,
    PackageNotFoundError,
    ParseError,
    ResolutionError,
    SymbolNotFoundError,
)
from contract.suggest import drop_covered_methods, suggest_similar
from index.symbols import SymbolKind
from parse.go_syntax import (
    doc_comments,
    interface_embeds,
    interface_methods,
    is_interface_spec,
    is_struct_spec,
    parameter_members,
    parse_struct_tag,
    receiver_member,
    result_members,
    select_member,
    struct_embeds,
    struct_members,
    typeparam_members,
    underlying_type,
    value_at,
)
from spath.parse import parse
from spath.path import SELECTOR_OPTIONAL, SELECTOR_REQUIRED, Path

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Node

    from contract.diagnostics import Diagnostics
    from index.symbols import Symbol, SymbolIndex
    from parse.go_syntax import Member
    from program.models import Package, Program, SourceFile
    from spath.path import Segment

# Kinds whose node owns a parameter list.
_CALLABLE_KINDS = frozenset({"func", "method", "interface_method"})
_MEMBER_KINDS = frozenset(
    {"field", "embed", "param", "return", "receiver", "typeparam"}
)
_TYPED_MEMBER_KINDS = frozenset({"field", "embed", "param", "return", "receiver"})
_NAMED_MEMBER_KINDS = frozenset({"field", "param", "return", "receiver", "typeparam"})
_DOC_KINDS = frozenset(
    {
        "func",
        "method",
        "type",
        "interface",
        "const",
        "var",
        "interface_method",
        *_MEMBER_KINDS,
    }
)


@dataclass(frozen=True)
class Target:
    """The node a path currently points at.

    ``kind`` is one of the symbol kinds, a member kind (field, embed,
    param, return, receiver, typeparam), ``interface_method``, or a leaf
    category (body, doc, tag, type, name, constraint, value).
    """

    kind: str
    node: Node
    file: SourceFile
    symbol: Symbol | None = None
    member: Member | None = None
    name_node: Node | None = None
    comments: tuple[Node, ...] = ()
    tag_value: str | None = None

    @property
    def start_byte(self) -> int:
        if self.comments:
            return self.comments[0].start_byte
        return self.node.start_byte

    @property
    def end_byte(self) -> int:
        if self.comments:
            return self.comments[-1].end_byte
        return self.node.end_byte

    @property
    def line(self) -> int:
        node = self.comments[0] if self.comments else self.node
        return node.start_point[0] + 1

    def source(self) -> str:
        return self.file.slice(self.start_byte, self.end_byte)


@dataclass(frozen=True)
class Resolution:
    path: Path
    package: Package
    symbol: Symbol
    target: Target

    @property
    def kind(self) -> str:
        return self.target.kind

    @property
    def location(self) -> str:
        return f"{self.target.file.relative_path}:{self.target.line}"

    def canonical(self) -> str:
        return str(self.path)

    def full_address(self) -> str:
        return str(self.path.full(self.package.path))

    def source(self) -> str:
        """Exact source text of the resolved node."""
        if self.target.tag_value is not None:
            return self.target.tag_value
        return self.target.source()

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.canonical(),
            "full_path": self.full_address(),
            "kind": self.kind,
            "package": self.package.path,
            "location": self.location,
            "source": self.source(),
        }


def symbol_target(symbol: Symbol) -> Target:
    return Target(
        kind=symbol.kind.value,
        node=symbol.node,
        file=symbol.file,
        symbol=symbol,
        name_node=symbol.name_node,
    )


def member_target(member: Member, file: SourceFile) -> Target:
    return Target(
        kind="interface_method" if member.kind == "method" else member.kind,
        node=member.decl,
        file=file,
        member=member,
        name_node=member.name,
    )


def _fail(
    target: Target, segment: Segment, partial: Path, reason: str
) -> ResolutionError:
    msg = f"{partial}: cannot resolve {segment} on {target.kind}: {reason}"
    return ResolutionError(msg, partial)


def _pick(
    members: list[Member],
    target: Target,
    segment: Segment,
    partial: Path,
    noun: str,
) -> Member:
    selector = segment.selector or ""
    member = select_member(members, selector, is_index=segment.is_index)
    if member is not None:
        return member
    if segment.is_index:
        reason = f"{noun} index {selector} out of range ({len(members)} {noun}s)"
    else:
        names = sorted({m.label or m.type_label for m in members})
        have = ", ".join(names) if names else "none"
        reason = f"no {noun} {selector!r} (have: {have})"
    raise _fail(target, segment, partial, reason)


def _underlying(target: Target) -> Node | None:
    if target.kind not in ("type", "interface"):
        return None
    return underlying_type(target.node)


def _fields(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind != "type" or not is_struct_spec(target.node):
        raise _fail(target, segment, partial, "fields apply to struct types only")
    struct_type = underlying_type(target.node)
    assert struct_type is not None
    member = _pick(struct_members(struct_type), target, segment, partial, "field")
    return member_target(member, target.file)


def _embeds(target: Target, segment: Segment, partial: Path) -> Target:
    underlying = _underlying(target)
    if underlying is not None and underlying.type == "struct_type":
        members = struct_embeds(underlying)
    elif underlying is not None and underlying.type == "interface_type":
        members = interface_embeds(underlying)
    else:
        reason = "embeds apply to struct and interface types"
        raise _fail(target, segment, partial, reason)
    member = _pick(members, target, segment, partial, "embed")
    return member_target(member, target.file)


def _methods(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind == "interface" and is_interface_spec(target.node):
        underlying = underlying_type(target.node)
        assert underlying is not None
        members = interface_methods(underlying)
        member = _pick(members, target, segment, partial, "method")
        return member_target(member, target.file)

    if target.kind == "type" and target.symbol is not None:
        methods = list(target.symbol.methods)
        selector = segment.selector or ""
        if segment.is_index:
            if segment.index < len(methods):
                return symbol_target(methods[segment.index])
            reason = f"method index {selector} out of range ({len(methods)} methods)"
        else:
            for method in methods:
                if method.name == selector:
                    return symbol_target(method)
            have = ", ".join(sorted(m.name for m in methods)) or "none"
            reason = f"no method {selector!r} (have: {have})"
        raise _fail(target, segment, partial, reason)

    raise _fail(target, segment, partial, "methods apply to named types only")


def _parameter_list(target: Target) -> Node | None:
    if target.kind not in _CALLABLE_KINDS:
        return None
    return target.node.child_by_field_name("parameters")


def _params(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind not in _CALLABLE_KINDS:
        raise _fail(target, segment, partial, "params apply to functions and methods")
    members = parameter_members(_parameter_list(target), "param")
    member = _pick(members, target, segment, partial, "param")
    return member_target(member, target.file)


def _returns(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind not in _CALLABLE_KINDS:
        raise _fail(target, segment, partial, "returns apply to functions and methods")
    member = _pick(result_members(target.node), target, segment, partial, "return")
    return member_target(member, target.file)


def _receiver(target: Target, segment: Segment, partial: Path) -> Target:
    member = receiver_member(target.node) if target.kind == "method" else None
    if member is None:
        raise _fail(target, segment, partial, "receiver applies to methods only")
    return member_target(member, target.file)


def _typeparams(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind not in ("func", "type", "interface"):
        raise _fail(target, segment, partial, "typeparams apply to functions and types")
    members = typeparam_members(target.node)
    member = _pick(members, target, segment, partial, "type parameter")
    return member_target(member, target.file)


def _body(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind not in ("func", "method"):
        raise _fail(target, segment, partial, "body applies to functions and methods")
    body = target.node.child_by_field_name("body")
    if body is None:
        raise _fail(target, segment, partial, "declaration has no body")
    return Target(kind="body", node=body, file=target.file, symbol=target.symbol)


def _doc(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind not in _DOC_KINDS:
        raise _fail(target, segment, partial, "doc applies to declarations and fields")
    comments = doc_comments(target.node)
    if not comments:
        raise _fail(target, segment, partial, "no doc comment")
    return Target(
        kind="doc",
        node=comments[0],
        file=target.file,
        symbol=target.symbol,
        comments=tuple(comments),
    )


def _tag(target: Target, segment: Segment, partial: Path) -> Target:
    tag = target.member.tag if target.member is not None else None
    if target.kind not in ("field", "embed") or tag is None:
        raise _fail(target, segment, partial, "tag applies to tagged struct fields")

    value: str | None = None
    if segment.selector is not None:
        pairs = dict(parse_struct_tag(tag.text.decode("utf8") if tag.text else ""))
        if segment.selector not in pairs:
            have = ", ".join(sorted(pairs)) or "none"
            reason = f"no tag key {segment.selector!r} (have: {have})"
            raise _fail(target, segment, partial, reason)
        value = pairs[segment.selector]
    return Target(kind="tag", node=tag, file=target.file, tag_value=value)


def _type(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind in _TYPED_MEMBER_KINDS and target.member is not None:
        type_node = target.member.type
    elif target.kind in ("const", "var"):
        type_node = target.node.child_by_field_name("type")
    else:
        reason = "type applies to fields, params and values"
        raise _fail(target, segment, partial, reason)
    if type_node is None:
        raise _fail(target, segment, partial, "no explicit type")
    return Target(kind="type", node=type_node, file=target.file)


def _name(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind not in _NAMED_MEMBER_KINDS or target.member is None:
        reason = "name applies to fields, params and type parameters"
        raise _fail(target, segment, partial, reason)
    if target.member.name is None:
        raise _fail(target, segment, partial, "entry is unnamed")
    return Target(kind="name", node=target.member.name, file=target.file)


def _constraint(target: Target, segment: Segment, partial: Path) -> Target:
    member = target.member
    if target.kind != "typeparam" or member is None or member.type is None:
        reason = "constraint applies to type parameters"
        raise _fail(target, segment, partial, reason)
    return Target(kind="constraint", node=member.type, file=target.file)


def _value(target: Target, segment: Segment, partial: Path) -> Target:
    if target.kind not in ("const", "var") or target.name_node is None:
        reason = "value applies to constants and variables"
        raise _fail(target, segment, partial, reason)
    value = value_at(target.node, target.name_node)
    if value is None:
        raise _fail(target, segment, partial, "no initializer")
    return Target(kind="value", node=value, file=target.file)


_HANDLERS: dict[str, Callable[[Target, Segment, Path], Target]] = {
    "fields": _fields,
    "methods": _methods,
    "embeds": _embeds,
    "params": _params,
    "returns": _returns,
    "receiver": _receiver,
    "typeparams": _typeparams,
    "body": _body,
    "doc": _doc,
    "tag": _tag,
    "type": _type,
    "name": _name,
    "constraint": _constraint,
    "value": _value,
}


def descend(target: Target, segment: Segment, partial: Path) -> Target:
    """Apply one segment to ``target``; ``partial`` is the path resolved so far."""
    if segment.category in SELECTOR_REQUIRED and segment.selector is None:
        raise _fail(target, segment, partial, f"{segment.category} requires a selector")
    if (
        segment.selector is not None
        and segment.category not in SELECTOR_REQUIRED
        and segment.category not in SELECTOR_OPTIONAL
    ):
        raise _fail(target, segment, partial, f"{segment.category} takes no selector")
    return _HANDLERS[segment.category](target, segment, partial)


def report_ambiguity(
    query: str,
    candidates: list[str],
    diagnostics: Diagnostics | None,
    package: str | None = None,
) -> AmbiguousMatchError:
    if diagnostics is not None:
        diagnostics.warning(
            AMBIGUOUS_MATCH,
            f"{query!r} is ambiguous; retry with one of the listed candidates",
            package=package,
            candidates=candidates,
        )
    return AmbiguousMatchError(query, candidates)


def _resolve_package(
    path: Path, program: Program, diagnostics: Diagnostics | None
) -> tuple[Package, Path]:
    """Find the package of ``path``, returning the path it was found under.

    A package whose last component holds one dot (the root package of
    ``module example.com``) parses as package and symbol. On a miss the
    symbol is folded back into the package and the method becomes the symbol.
    """
    try:
        return program.find_package(path.package), path
    except AmbiguousMatchError as exc:
        raise report_ambiguity(exc.query, exc.candidates, diagnostics) from exc
    except PackageNotFoundError:
        if path.method is None:
            raise
        folded = Path(
            package=f"{path.package}.{path.symbol}",
            symbol=path.method,
            segments=path.segments,
        )
        package = program.package(folded.package) or program.package(
            f"{program.module_path}/{folded.package}"
        )
        if package is None:
            raise
        return package, folded


def _resolve_method(
    symbol: Symbol,
    path: Path,
    index: SymbolIndex,
    diagnostics: Diagnostics | None,
) -> Target:
    method_name = path.method or ""
    partial = Path(package=path.package, symbol=path.symbol)
    if not symbol.kind.is_type:
        msg = f"{partial}: {symbol.kind.value} {symbol.name} has no methods"
        raise ResolutionError(msg, partial)

    matches = [m for m in symbol.methods if m.name == method_name]
    if len(matches) > 1:
        raise report_ambiguity(
            f"{symbol.name}.{method_name}",
            [f"{m.display_name} ({m.location})" for m in matches],
            diagnostics,
            symbol.package.pkg_path,
        )
    if matches:
        return symbol_target(matches[0])

    if is_interface_spec(symbol.node):
        underlying = underlying_type(symbol.node)
        assert underlying is not None
        members = interface_methods(underlying)
        member = select_member(members, method_name, is_index=False)
        if member is not None:
            return member_target(member, symbol.file)
        known = [m.label for m in members]
    else:
        known = [m.name for m in index.methods_of(symbol.package.pkg_path, symbol.name)]

    raise SymbolNotFoundError(
        f"{symbol.name}.{method_name}",
        symbol.package.pkg_path,
        suggest_similar(method_name, known),
    )


def resolve(
    path: Path,
    program: Program,
    index: SymbolIndex,
    diagnostics: Diagnostics | None = None,
) -> Resolution:
    """Resolve ``path`` against ``program``.

    Raises:
        PackageNotFoundError: no loaded package answers to ``path.package``
        SymbolNotFoundError: the symbol (or method) is not declared
        AmbiguousMatchError: several declarations answer; also reported
            to ``diagnostics``
        ResolutionError: a subpath segment does not apply
    """
    if path.symbol is None:
        msg = f"{path}: a package-only address does not name a declaration"
        raise ResolutionError(msg, path)

    package, path = _resolve_package(path, program, diagnostics)

    candidates = index.find(package, path.symbol)
    if not candidates:
        names = [s.name for s in index.symbols_in(package)]
        raise SymbolNotFoundError(
            path.symbol, package.path, suggest_similar(path.symbol, names)
        )
    if len(candidates) > 1:
        raise report_ambiguity(
            path.symbol,
            [f"{s.display_name} ({s.location})" for s in candidates],
            diagnostics,
            package.path,
        )

    symbol = candidates[0]
    partial = Path(package=path.package, symbol=path.symbol)
    target = symbol_target(symbol)

    if path.method is not None:
        target = _resolve_method(symbol, path, index, diagnostics)
        partial = partial.with_method(path.method)
        if target.symbol is not None:
            symbol = target.symbol

    for segment in path.segments:
        target = descend(target, segment, partial)
        partial = partial.with_segment(segment)

    return Resolution(path=path, package=package, symbol=symbol, target=target)


def _bare_head(text: str) -> tuple[str, str] | None:
    """Split ``Name[.Method][/subpath]`` into head and the rest."""
    head, slash, rest = text.partition("/")
    parts = head.split(".")
    if len(parts) > 2 or not all(p.isidentifier() for p in parts):
        return None
    return head, f"{slash}{rest}"


def resolve_query(
    text: str,
    program: Program,
    index: SymbolIndex,
    diagnostics: Diagnostics | None = None,
) -> Resolution:
    """Resolve a caller-supplied address, accepting bare names.

    ``Name`` and ``Type.Method`` (optionally followed by a subpath) are
    looked up across every package. A single candidate is resolved; more
    than one is reported as ambiguous rather than guessed.
    """
    text = text.removeprefix("./")
    try:
        return resolve(parse(text), program, index, diagnostics)
    except (ParseError, PackageNotFoundError) as exc:
        bare = _bare_head(text)
        if bare is None:
            raise
        head, rest = bare
        if isinstance(exc, ParseError) and "." in head:
            raise
        candidates = index.lookup(head)
        if not candidates:
            names = [s.qualified_name for s in index.symbols()]
            raise SymbolNotFoundError(
                head,
                suggestions=drop_covered_methods(suggest_similar(head, names)),
            ) from exc
        if len(candidates) > 1:
            raise report_ambiguity(
                head,
                sorted(s.address for s in candidates),
                diagnostics,
            ) from exc

    symbol = candidates[0]
    qualified = parse(f"{symbol.package.short_path}.{symbol.qualified_name}{rest}")
    return resolve(qualified, program, index, diagnostics)


__all__ = [
    "Resolution",
    "Target",
    "descend",
    "member_target",
    "report_ambiguity",
    "resolve",
    "resolve_query",
    "symbol_target",
]
