"""Navigation helpers over tree-sitter-go syntax trees.

Declarations, field lists and comment groups are shaped differently across
grammar releases (``method_spec``/``method_elem``, ``alias_declaration``/
``type_alias``, bare ``var_spec``/``var_spec_list``). The helpers here hide
those differences from the index, the resolver and the enumerator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tree_sitter import Node

FUNC_DECLS = frozenset({"function_declaration", "method_declaration"})
TYPE_SPECS = frozenset({"type_spec", "type_alias", "alias_declaration"})
VALUE_SPECS = frozenset({"const_spec", "var_spec"})
METHOD_ELEMS = frozenset({"method_elem", "method_spec"})
PARAM_DECLS = frozenset({"parameter_declaration", "variadic_parameter_declaration"})

_GROUPED_PARENTS = frozenset({"var_spec_list", "type_spec_list", "const_spec_list"})
_TAG_RE = re.compile(r'(?P<key>[^\s:"`]+):"(?P<value>(?:[^"\\]|\\.)*)"')


def text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8")


def line_count(node: Node) -> int:
    return node.end_point[0] - node.start_point[0] + 1


def is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def type_name(node: Node | None) -> str:
    """Return the bare type name of a type expression.

    ``*pkg.Reader[T]`` becomes ``Reader``. Composite literal types
    fall back to their source text.
    """
    if node is None:
        return ""
    if node.type in ("pointer_type", "parenthesized_type"):
        inner = node.named_children
        return type_name(inner[0]) if inner else text(node)
    if node.type == "generic_type":
        return type_name(node.child_by_field_name("type"))
    if node.type == "qualified_type":
        return text(node.child_by_field_name("name"))
    if node.type in ("type_elem", "constraint_elem", "interface_type_name"):
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) == 1:
            return type_name(inner[0])
        return text(node)
    return text(node)


def underlying_type(spec: Node) -> Node | None:
    return spec.child_by_field_name("type")


def is_interface_spec(spec: Node) -> bool:
    underlying = underlying_type(spec)
    return underlying is not None and underlying.type == "interface_type"


def is_struct_spec(spec: Node) -> bool:
    underlying = underlying_type(spec)
    return underlying is not None and underlying.type == "struct_type"


def iter_type_specs(declaration: Node) -> list[Node]:
    specs: list[Node] = []
    for child in declaration.named_children:
        if child.type in TYPE_SPECS:
            specs.append(child)
        elif child.type in _GROUPED_PARENTS:
            specs.extend(c for c in child.named_children if c.type in TYPE_SPECS)
    return specs


def iter_value_specs(declaration: Node) -> list[Node]:
    specs: list[Node] = []
    for child in declaration.named_children:
        if child.type in VALUE_SPECS:
            specs.append(child)
        elif child.type in _GROUPED_PARENTS:
            specs.extend(c for c in child.named_children if c.type in VALUE_SPECS)
    return specs


def value_names(spec: Node) -> list[Node]:
    return [n for n in spec.children_by_field_name("name") if n.type == "identifier"]


def value_at(spec: Node, name_node: Node) -> Node | None:
    """Return the initializer expression paired with ``name_node``."""
    values = spec.child_by_field_name("value")
    if values is None:
        return None
    expressions = [c for c in values.named_children if c.type != "comment"]
    if not expressions:
        return None

    names = value_names(spec)
    position = next(
        (i for i, n in enumerate(names) if n.start_byte == name_node.start_byte), 0
    )
    if position < len(expressions):
        return expressions[position]
    if len(expressions) == 1:
        return expressions[0]
    return None


def receiver_type_name(method: Node) -> str | None:
    receiver = method.child_by_field_name("receiver")
    if receiver is None:
        return None
    for param in receiver.named_children:
        if param.type in PARAM_DECLS:
            return type_name(param.child_by_field_name("type")) or None
    return None


def signature_text(func: Node) -> str:
    """Return the declaration source up to (not including) its body."""
    body = func.child_by_field_name("body")
    raw = func.text or b""
    if body is not None:
        raw = raw[: body.start_byte - func.start_byte]
    return " ".join(raw.decode("utf8").split())


def _declaration_parent(spec: Node) -> Node | None:
    """Return the enclosing declaration when ``spec`` is its only spec."""
    parent = spec.parent
    if parent is None or parent.type in _GROUPED_PARENTS:
        return None
    if any(child.type == "(" for child in parent.children):
        return None
    return parent


def doc_comments(node: Node) -> list[Node]:
    """Return the comment group written directly above ``node``.

    A group ends at a blank line. A comment that trails the previous
    declaration on the same line is not part of the group.
    """
    comments: list[Node] = []
    expected_row = node.start_point[0]
    sibling = node.prev_sibling
    while sibling is not None and sibling.type == "comment":
        if sibling.end_point[0] + 1 < expected_row:
            break
        before = sibling.prev_sibling
        if (
            before is not None
            and before.type != "comment"
            and before.end_point[0] == sibling.start_point[0]
        ):
            break
        comments.insert(0, sibling)
        expected_row = sibling.start_point[0]
        sibling = before

    if not comments and node.type in TYPE_SPECS | VALUE_SPECS:
        parent = _declaration_parent(node)
        if parent is not None:
            return doc_comments(parent)
    return comments


@dataclass(frozen=True)
class Member:
    """One addressable entry of a Go field list.

    A declaration such as ``a, b int`` yields one Member per name, all
    sharing ``decl``. ``position`` is the flattened index of the entry in
    the list it was taken from.
    """

    kind: str
    decl: Node
    name: Node | None
    type: Node | None
    position: int

    @property
    def label(self) -> str:
        return text(self.name)

    @property
    def type_label(self) -> str:
        return type_name(self.type)

    @property
    def tag(self) -> Node | None:
        if self.kind not in ("field", "embed"):
            return None
        return self.decl.child_by_field_name("tag")


def _reindex(members: list[Member]) -> list[Member]:
    return [
        Member(kind=m.kind, decl=m.decl, name=m.name, type=m.type, position=i)
        for i, m in enumerate(members)
    ]


def struct_members(struct_type: Node) -> list[Member]:
    """Return every field of a struct, embedded fields included."""
    members: list[Member] = []
    for field_list in struct_type.named_children:
        if field_list.type != "field_declaration_list":
            continue
        for decl in field_list.named_children:
            if decl.type != "field_declaration":
                continue
            field_type = decl.child_by_field_name("type")
            names = decl.children_by_field_name("name")
            if names:
                for name in names:
                    members.append(
                        Member("field", decl, name, field_type, len(members))
                    )
            else:
                members.append(Member("embed", decl, None, field_type, len(members)))
    return members


def struct_embeds(struct_type: Node) -> list[Member]:
    return _reindex([m for m in struct_members(struct_type) if m.kind == "embed"])


def interface_methods(interface_type: Node) -> list[Member]:
    members: list[Member] = []
    for child in interface_type.named_children:
        if child.type in METHOD_ELEMS:
            members.append(
                Member("method", child, child.child_by_field_name("name"), None, 0)
            )
    return _reindex(members)


def interface_embeds(interface_type: Node) -> list[Member]:
    members: list[Member] = []
    for child in interface_type.named_children:
        if child.type in METHOD_ELEMS or child.type == "comment":
            continue
        members.append(Member("embed", child, None, child, 0))
    return _reindex(members)


def parameter_members(parameter_list: Node | None, kind: str) -> list[Member]:
    if parameter_list is None:
        return []
    members: list[Member] = []
    for decl in parameter_list.named_children:
        if decl.type not in PARAM_DECLS:
            continue
        param_type = decl.child_by_field_name("type")
        names = decl.children_by_field_name("name")
        if names:
            for name in names:
                members.append(Member(kind, decl, name, param_type, len(members)))
        else:
            members.append(Member(kind, decl, None, param_type, len(members)))
    return members


def result_members(owner: Node) -> list[Member]:
    """Return the results of a function, method or interface method."""
    result = owner.child_by_field_name("result")
    if result is None:
        return []
    if result.type == "parameter_list":
        return parameter_members(result, "return")
    return [Member("return", result, None, result, 0)]


def typeparam_members(owner: Node) -> list[Member]:
    type_params = owner.child_by_field_name("type_parameters")
    if type_params is None:
        return []
    members: list[Member] = []
    for decl in type_params.named_children:
        if decl.type != "type_parameter_declaration":
            continue
        constraint = decl.child_by_field_name("type")
        for name in decl.children_by_field_name("name"):
            members.append(Member("typeparam", decl, name, constraint, len(members)))
    return members


def receiver_member(method: Node) -> Member | None:
    members = parameter_members(method.child_by_field_name("receiver"), "receiver")
    return members[0] if members else None


def select_member(
    members: list[Member], selector: str, *, is_index: bool
) -> Member | None:
    """Pick a member by declared name, unnamed entries by type name, or by index."""
    if is_index:
        position = int(selector)
        if 0 <= position < len(members):
            return members[position]
        return None

    for member in members:
        if member.name is not None and member.label == selector:
            return member
    for member in members:
        if member.name is None and member.type_label == selector:
            return member
    return None


def selector_for(member: Member, members: list[Member]) -> str:
    """Return the selector that addresses ``member`` unambiguously in ``members``."""
    if member.name is not None:
        label = member.label
        if label != "_" and sum(1 for m in members if m.label == label) == 1:
            return label
        return str(member.position)

    if member.kind == "embed":
        label = member.type_label
        unique = sum(1 for m in members if (m.label or m.type_label) == label) == 1
        if label.isidentifier() and unique:
            return label
    return str(member.position)


def parse_struct_tag(tag: str) -> list[tuple[str, str]]:
    """Split a Go struct tag into ``(key, value)`` pairs in source order."""
    raw = tag.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "`\"":
        raw = raw[1:-1]
    if raw and tag.strip().startswith('"'):
        raw = raw.replace('\\"', '"')
    return [(m.group("key"), m.group("value")) for m in _TAG_RE.finditer(raw)]


__all__ = [
    "FUNC_DECLS",
    "METHOD_ELEMS",
    "PARAM_DECLS",
    "TYPE_SPECS",
    "VALUE_SPECS",
    "Member",
    "doc_comments",
    "interface_embeds",
    "interface_methods",
    "is_exported",
    "is_interface_spec",
    "is_struct_spec",
    "iter_type_specs",
    "iter_value_specs",
    "line_count",
    "parameter_members",
    "parse_struct_tag",
    "receiver_member",
    "receiver_type_name",
    "result_members",
    "select_member",
    "selector_for",
    "signature_text",
    "struct_embeds",
    "struct_members",
    "text",
    "type_name",
    "typeparam_members",
    "underlying_type",
    "value_at",
    "value_names",
]
