"""PHP syntax trees and the small pattern layer the extractors are built on.

The tree-sitter tree is converted into plain :class:`PhpNode` models so the
rest of the engine only deals with node types, text and children.
"""

from collections.abc import Iterable, Iterator

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from ferry.models import PhpNode, Position

_PHP_LANGUAGE = "php"

# Nested callables are not part of the expression they appear in.
_CALLABLE_TYPES = frozenset({"anonymous_function", "anonymous_function_creation_expression", "arrow_function"})
_MEMBER_TYPES = frozenset(
    {
        "member_access_expression",
        "nullsafe_member_access_expression",
        "member_call_expression",
        "nullsafe_member_call_expression",
    }
)
_CALL_TYPES = frozenset({"member_call_expression", "nullsafe_member_call_expression"})
_STRING_TYPES = frozenset({"string", "encapsed_string"})
_DOUBLE_QUOTE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "v": "\v", "f": "\f", "$": "$", '"': '"', "\\": "\\"}


def parse_php(source: str | bytes) -> PhpNode:
    source_bytes = source.encode("utf-8") if isinstance(source, str) else source
    parser = get_parser(_PHP_LANGUAGE)
    tree = parser.parse(source_bytes)

    def node_to_model(node: Node) -> PhpNode:
        return PhpNode(
            type=node.type,
            named=node.is_named,
            text=source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace"),
            start_point=Position(row=node.start_point[0], column=node.start_point[1]),
            end_point=Position(row=node.end_point[0], column=node.end_point[1]),
            has_error=node.has_error,
            children=[node_to_model(child) for child in node.children],
        )

    return node_to_model(tree.root_node)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def walk(node: PhpNode, skip: Iterable[str] = ()) -> Iterator[PhpNode]:
    """Pre-order traversal; subtrees rooted at a type in ``skip`` are not entered."""
    skipped = frozenset(skip)
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in skipped:
            continue
        yield current
        stack.extend(reversed(current.children))


def find_first(node: PhpNode, *types: str, skip: Iterable[str] = ()) -> PhpNode | None:
    for candidate in walk(node, skip):
        if candidate.type in types:
            return candidate
    return None


def named_children(node: PhpNode) -> list[PhpNode]:
    return [child for child in node.children if child.named and child.type != "comment"]


def child_of_type(node: PhpNode, *types: str) -> PhpNode | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


def child_after_token(node: PhpNode, *tokens: str) -> PhpNode | None:
    """Return the first named child that follows one of the anonymous ``tokens``."""
    seen = False
    for child in node.children:
        if seen and child.named and child.type != "comment":
            return child
        if not child.named and child.type in tokens:
            seen = True
    return None


def unwrap_parens(node: PhpNode) -> PhpNode:
    while node.type == "parenthesized_expression":
        inner = named_children(node)
        if not inner:
            break
        node = inner[0]
    return node


def line_of(node: PhpNode) -> int:
    return node.start_point.row + 1


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------


def string_value(node: PhpNode | None) -> str | None:
    """Decode a quoted string literal; interpolation is kept verbatim."""
    if node is None or node.type not in _STRING_TYPES:
        return None
    text = node.text
    if len(text) < 2 or text[0] not in "'\"":
        return None
    inner = text[1:-1]
    if text[0] == "'":
        return inner.replace("\\\\", "\0").replace("\\'", "'").replace("\0", "\\")

    decoded: list[str] = []
    i = 0
    while i < len(inner):
        ch = inner[i]
        if ch == "\\" and i + 1 < len(inner) and inner[i + 1] in _DOUBLE_QUOTE_ESCAPES:
            decoded.append(_DOUBLE_QUOTE_ESCAPES[inner[i + 1]])
            i += 2
            continue
        decoded.append(ch)
        i += 1
    return "".join(decoded)


def integer_value(node: PhpNode | None) -> int | None:
    if node is None:
        return None
    if node.type == "unary_op_expression" and node.text.lstrip().startswith("-"):
        operands = named_children(node)
        inner = integer_value(operands[0]) if operands else None
        return -inner if inner is not None else None
    if node.type != "integer":
        return None
    cleaned = node.text.replace("_", "")
    try:
        return int(cleaned, 0)
    except ValueError:
        try:
            return int(cleaned, 8)
        except ValueError:
            return None


def scalar_kind(node: PhpNode) -> str | None:
    """Classify a scalar literal as ``string``, ``number``, ``boolean`` or ``null``."""
    if node.type in _STRING_TYPES or node.type in ("heredoc", "nowdoc"):
        return "string"
    if node.type in ("integer", "float") or integer_value(node) is not None:
        return "number"
    if node.type == "boolean":
        return "boolean"
    if node.type == "null":
        return "null"
    return None


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


def declared_name(node: PhpNode) -> str | None:
    name = child_of_type(node, "name")
    return name.text if name is not None else None


def find_method(body: PhpNode, *names: str) -> PhpNode | None:
    for child in body.children:
        if child.type == "method_declaration" and declared_name(child) in names:
            return child
    return None


def returned_expression(method: PhpNode) -> PhpNode | None:
    """The expression of the first ``return`` in a method body, ignoring nested closures."""
    body = child_of_type(method, "compound_statement")
    if body is None:
        return None
    statement = find_first(body, "return_statement", skip=_CALLABLE_TYPES)
    if statement is None:
        return None
    values = named_children(statement)
    return unwrap_parens(values[0]) if values else None


def short_class_name(name: str) -> str:
    return name.strip().lstrip("\\").rsplit("\\", 1)[-1]


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def is_this(node: PhpNode) -> bool:
    return node.type == "variable_name" and node.text == "$this"


def is_member_call(node: PhpNode) -> bool:
    return node.type in _CALL_TYPES


def member_parts(node: PhpNode) -> tuple[PhpNode, str, PhpNode | None] | None:
    """Split ``$obj->name`` / ``$obj->name(...)`` into (object, name, arguments)."""
    if node.type not in _MEMBER_TYPES:
        return None
    parts = named_children(node)
    name = child_after_token(node, "->", "?->")
    if not parts or name is None:
        return None
    arguments = child_of_type(node, "arguments")
    return unwrap_parens(parts[0]), name.text, arguments


def scoped_call_parts(node: PhpNode) -> tuple[str, str, PhpNode | None] | None:
    """Split ``Scope::method(...)`` into (scope, method, arguments)."""
    if node.type != "scoped_call_expression":
        return None
    parts = named_children(node)
    method = child_after_token(node, "::")
    if not parts or method is None:
        return None
    return parts[0].text, method.text, child_of_type(node, "arguments")


def creation_parts(node: PhpNode) -> tuple[str, PhpNode | None] | None:
    """Split ``new Name(...)`` into (class name, arguments)."""
    if node.type != "object_creation_expression":
        return None
    class_node = child_of_type(node, "name", "qualified_name")
    if class_node is None:
        return None
    return class_node.text, child_of_type(node, "arguments")


def argument_values(arguments: PhpNode | None) -> list[PhpNode]:
    if arguments is None:
        return []
    values: list[PhpNode] = []
    for child in named_children(arguments):
        if child.type == "argument":
            inner = named_children(child)
            if inner:
                values.append(unwrap_parens(inner[-1]))
        else:
            values.append(unwrap_parens(child))
    return values


def array_entries(node: PhpNode) -> list[tuple[PhpNode | None, PhpNode]]:
    """(key, value) pairs of an array literal; key is None for list-style entries."""
    entries: list[tuple[PhpNode | None, PhpNode]] = []
    for element in node.children:
        if element.type != "array_element_initializer":
            continue
        before: list[PhpNode] = []
        after: list[PhpNode] = []
        arrow_seen = False
        for child in element.children:
            if not child.named and child.type == "=>":
                arrow_seen = True
            elif child.named and child.type != "comment":
                (after if arrow_seen else before).append(child)
        if arrow_seen and before and after:
            entries.append((unwrap_parens(before[0]), unwrap_parens(after[-1])))
        elif before:
            entries.append((None, unwrap_parens(before[-1])))
    return entries


def contains_call(node: PhpNode, names: Iterable[str]) -> bool:
    """Whether ``$this->name(...)`` for one of ``names`` appears anywhere inside ``node``."""
    wanted = frozenset(names)
    for candidate in walk(node):
        if not is_member_call(candidate):
            continue
        parts = member_parts(candidate)
        if parts is not None and is_this(parts[0]) and parts[1] in wanted:
            return True
    return False
