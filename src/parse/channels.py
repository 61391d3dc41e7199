"""Syntactic extraction of Go channel operations.

Without type information a channel is recognised by how it is used:
``make(chan T)``, ``ch <- v``, ``<-ch``, ``close(ch)`` and select cases
always involve a channel. ``for range x`` counts only when ``x`` was declared
or made as a channel somewhere in the same files.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from parse.go_syntax import receiver_type_name, text, value_names

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tree_sitter import Node

    from program.models import SourceFile

OP_KINDS = (
    "make",
    "send",
    "receive",
    "range",
    "close",
    "select_send",
    "select_receive",
)

_BINDINGS = frozenset({"short_var_declaration", "assignment_statement"})
_DECLARED_NAMES = frozenset({"identifier", "field_identifier"})


@dataclass(frozen=True)
class ChannelOp:
    """One channel operation.

    ``channel`` is the channel expression as written (``s.events``);
    ``owner`` is the enclosing function or ``Type.Method``, if any.
    """

    kind: str
    channel: str
    operation: str
    file: SourceFile
    line: int
    owner: str | None = None

    @property
    def location(self) -> str:
        return f"{self.file.relative_path}:{self.line}"

    @property
    def base_name(self) -> str:
        return channel_base_name(self.channel)


def channel_base_name(channel: str) -> str:
    """``s.events`` and ``events`` both name the channel ``events``."""
    return channel.rsplit(".", 1)[-1]


def _strip_parens(node: Node) -> Node:
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def _one_line(node: Node) -> str:
    return " ".join(text(node).split())


def _is_receive(node: Node) -> bool:
    if node.type != "unary_expression":
        return False
    operator = node.child_by_field_name("operator")
    if operator is not None:
        return text(operator) == "<-"
    return text(node).lstrip().startswith("<-")


def _receive_operand(node: Node) -> Node | None:
    operand = node.child_by_field_name("operand")
    if operand is None and node.named_children:
        operand = node.named_children[-1]
    return operand


def _call_name(call: Node) -> str:
    function = call.child_by_field_name("function")
    if function is None or function.type != "identifier":
        return ""
    return text(function)


def _call_arguments(call: Node) -> list[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [a for a in arguments.named_children if a.type != "comment"]


def _element_type(channel_type: Node) -> str:
    inner = [c for c in channel_type.named_children if c.type != "comment"]
    return text(inner[-1]) if inner else ""


def _make_channel_type(call: Node) -> Node | None:
    if _call_name(call) != "make":
        return None
    arguments = _call_arguments(call)
    if arguments and arguments[0].type == "channel_type":
        return arguments[0]
    return None


def _bound_name(expr: Node) -> str | None:
    """Return the name an expression is assigned to, if it is assigned."""
    parent = expr.parent
    if parent is None:
        return None
    if parent.type == "literal_element" and parent.parent is not None:
        expr, parent = parent, parent.parent
    if parent.type == "keyed_element":
        key = parent.named_children[0] if parent.named_children else None
        if key is None or key.id == expr.id:
            return None
        return _one_line(key)
    if parent.type != "expression_list" or parent.parent is None:
        return None

    position = [c.id for c in parent.named_children].index(expr.id)
    holder = parent.parent
    if holder.type in _BINDINGS:
        left = holder.child_by_field_name("left")
        targets = left.named_children if left is not None else []
    elif holder.type == "var_spec":
        targets = value_names(holder)
    else:
        return None
    if position < len(targets):
        return _one_line(targets[position])
    return None


def _declared_names(channel_type: Node) -> list[str]:
    parent = channel_type.parent
    if parent is None:
        return []
    if parent.type == "var_spec":
        return [text(n) for n in value_names(parent)]
    if parent.type in (
        "parameter_declaration",
        "variadic_parameter_declaration",
        "field_declaration",
    ):
        return [text(c) for c in parent.named_children if c.type in _DECLARED_NAMES]
    return []


def _collect_element_types(node: Node, out: dict[str, str]) -> None:
    if node.type == "channel_type":
        element = _element_type(node)
        for name in _declared_names(node):
            out.setdefault(channel_base_name(name), element)
    elif node.type == "call_expression":
        channel_type = _make_channel_type(node)
        bound = _bound_name(node) if channel_type is not None else None
        if channel_type is not None and bound is not None:
            out.setdefault(channel_base_name(bound), _element_type(channel_type))
    for child in node.children:
        _collect_element_types(child, out)


def channel_element_types(files: Iterable[SourceFile]) -> dict[str, str]:
    """Map channel base names to element types declared in ``files``."""
    element_types: dict[str, str] = {}
    for source_file in files:
        _collect_element_types(source_file.root, element_types)
    return element_types


def _owner(node: Node) -> str | None:
    name = text(node.child_by_field_name("name")) or None
    if node.type == "method_declaration" and name is not None:
        receiver = receiver_type_name(node)
        return f"{receiver}.{name}" if receiver else name
    return name


def _select_cases(select: Node) -> list[tuple[str, Node, Node]]:
    """Return ``(kind, op node, channel node)`` for each select communication."""
    cases: list[tuple[str, Node, Node]] = []
    for case in select.named_children:
        if case.type != "communication_case":
            continue
        for comm in case.named_children:
            if comm.type == "send_statement":
                channel = comm.child_by_field_name("channel")
                if channel is not None:
                    cases.append(("select_send", comm, channel))
                break
            if comm.type in ("receive_statement", "expression_statement"):
                right = comm.child_by_field_name("right")
                if right is None and comm.named_children:
                    right = comm.named_children[-1]
                receive = _strip_parens(right) if right is not None else None
                if receive is not None and _is_receive(receive):
                    operand = _receive_operand(receive)
                    if operand is not None:
                        cases.append(("select_receive", receive, operand))
                break
    return cases


class _Collector:
    def __init__(self, source_file: SourceFile, channels: frozenset[str]) -> None:
        self.source_file = source_file
        self.channels = channels
        self.ops: list[ChannelOp] = []
        self.owners: list[str | None] = [None]
        self.handled: set[int] = set()

    def add(self, kind: str, node: Node, channel: str) -> None:
        self.ops.append(
            ChannelOp(
                kind=kind,
                channel=channel,
                operation=_one_line(node),
                file=self.source_file,
                line=node.start_point[0] + 1,
                owner=self.owners[-1],
            )
        )

    def visit(self, node: Node) -> None:
        pushed = False
        if node.type in ("function_declaration", "method_declaration"):
            self.owners.append(_owner(node))
            pushed = True

        if node.type == "select_statement":
            for kind, op, channel in _select_cases(node):
                self.handled.add(op.id)
                self.add(kind, op, _one_line(_strip_parens(channel)))
        elif node.id not in self.handled:
            self._visit_op(node)

        for child in node.children:
            self.visit(child)

        if pushed:
            self.owners.pop()

    def _visit_op(self, node: Node) -> None:
        if node.type == "send_statement":
            channel = node.child_by_field_name("channel")
            if channel is not None:
                self.add("send", node, _one_line(_strip_parens(channel)))
        elif _is_receive(node):
            operand = _receive_operand(node)
            if operand is not None:
                self.add("receive", node, _one_line(_strip_parens(operand)))
        elif node.type == "call_expression":
            self._visit_call(node)
        elif node.type == "range_clause":
            ranged = node.child_by_field_name("right")
            if ranged is not None:
                channel = _one_line(_strip_parens(ranged))
                if channel_base_name(channel) in self.channels:
                    self.add("range", node, channel)

    def _visit_call(self, call: Node) -> None:
        name = _call_name(call)
        if name == "close":
            arguments = _call_arguments(call)
            if arguments:
                self.add("close", call, _one_line(_strip_parens(arguments[0])))
        elif name == "make" and _make_channel_type(call) is not None:
            self.add("make", call, _bound_name(call) or _one_line(call))


def channel_operations(
    files: Iterable[SourceFile], element_types: dict[str, str] | None = None
) -> list[ChannelOp]:
    """Collect every channel operation in ``files``, in source order.

    ``element_types`` (from :func:`channel_element_types`) decides which
    ``range`` loops iterate over a channel.
    """
    files = list(files)
    if element_types is None:
        element_types = channel_element_types(files)
    channels = frozenset(element_types)

    ops: list[ChannelOp] = []
    for source_file in files:
        collector = _Collector(source_file, channels)
        collector.visit(source_file.root)
        ops.extend(collector.ops)
    return ops


__all__ = [
    "OP_KINDS",
    "ChannelOp",
    "channel_base_name",
    "channel_element_types",
    "channel_operations",
]
