"""Extract enum and resource declarations from PHP source text.

Every entry point returns ``None`` for input it cannot use; nothing here raises
on malformed PHP.
"""

import logging
import re

from ferry.core.ast import (
    array_entries,
    child_after_token,
    child_of_type,
    declared_name,
    find_first,
    find_method,
    integer_value,
    is_this,
    line_of,
    named_children,
    parse_php,
    returned_expression,
    short_class_name,
    string_value,
    unwrap_parens,
)
from ferry.core.types import parse_shape_pairs
from ferry.models import EnumCase, EnumDefinition, PhpNode, ResourceDeclaration, ResourceEntry, SourceLocation

logger = logging.getLogger(__name__)

LABEL_METHODS = ("label", "getLabel")
RESPONSE_METHOD = "toArray"

_RETURN_SHAPE = re.compile(r"@return\s+array\s*\{")
_NESTED_CALLABLES = ("anonymous_function", "anonymous_function_creation_expression", "arrow_function")


def _origin(source_path: str | None, node: PhpNode) -> SourceLocation | None:
    if source_path is None:
        return None
    return SourceLocation(file=source_path, line=line_of(node), column=node.start_point.column)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


def extract_enum(source: str, source_path: str | None = None) -> EnumDefinition | None:
    """Parse an enum artifact into an :class:`EnumDefinition`."""
    tree = parse_php(source)
    enum_node = find_first(tree, "enum_declaration")
    if enum_node is None:
        return None
    if enum_node.has_error:
        logger.warning("Skipping malformed enum %s", source_path or "<source>")
        return None

    name = declared_name(enum_node)
    body = child_of_type(enum_node, "enum_declaration_list")
    if not name or body is None:
        return None

    backing_node = child_after_token(enum_node, ":")
    backing = backing_node.text.lower() if backing_node is not None else None
    if backing not in ("string", "int"):
        backing = None

    cases: list[EnumCase] = []
    seen: set[str] = set()
    for case_node in body.children:
        if case_node.type != "enum_case":
            continue
        key = declared_name(case_node)
        if not key or key in seen:
            continue
        seen.add(key)
        cases.append(EnumCase(key=key, value=_case_value(case_node, key), origin=_origin(source_path, case_node)))

    labels = _case_labels(body, name)
    if labels:
        cases = [case.model_copy(update={"label": labels.get(case.key)}) for case in cases]

    return EnumDefinition(name=name, backing=backing, cases=cases, origin=_origin(source_path, enum_node))


def _case_value(case_node: PhpNode, key: str) -> str | int:
    value_node = child_after_token(case_node, "=")
    if value_node is None:
        return key
    value_node = unwrap_parens(value_node)
    text = string_value(value_node)
    if text is not None:
        return text
    number = integer_value(value_node)
    if number is not None:
        return number
    return value_node.text


def _case_labels(body: PhpNode, enum_name: str) -> dict[str, str]:
    """Map case keys to the labels returned by a ``match ($this)`` in the label method."""
    method = find_method(body, *LABEL_METHODS)
    if method is None:
        return {}
    match = find_first(method, "match_expression", skip=_NESTED_CALLABLES)
    if match is None:
        return {}
    subject = child_of_type(match, "parenthesized_expression")
    if subject is None or not is_this(unwrap_parens(subject)):
        return {}
    block = child_of_type(match, "match_block")
    if block is None:
        return {}

    scopes = {"self", "static", enum_name}
    labels: dict[str, str] = {}
    for arm in block.children:
        if arm.type != "match_conditional_expression":
            continue
        result = child_after_token(arm, "=>")
        label = _label_text(result)
        conditions = child_of_type(arm, "match_condition_list")
        if label is None or conditions is None:
            continue
        for condition in named_children(conditions):
            if condition.type != "class_constant_access_expression":
                continue
            parts = named_children(condition)
            if len(parts) == 2 and short_class_name(parts[0].text) in scopes:
                labels.setdefault(parts[1].text, label)
    return labels


def _label_text(node: PhpNode | None) -> str | None:
    if node is None:
        return None
    node = unwrap_parens(node)
    text = string_value(node)
    if text is not None:
        return text
    number = integer_value(node)
    return str(number) if number is not None else None


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


def extract_resource(source: str, source_path: str | None = None) -> ResourceDeclaration | None:
    """Parse a resource class into its ``toArray`` field map.

    Returns ``None`` when the class, the method or an array-literal return is missing.
    """
    tree = parse_php(source)
    class_node = find_first(tree, "class_declaration")
    if class_node is None:
        return None
    if class_node.has_error:
        logger.warning("Resource %s contains syntax errors", source_path or "<source>")
        return None

    class_name = declared_name(class_node)
    body = child_of_type(class_node, "declaration_list")
    if not class_name or body is None:
        return None
    method = find_method(body, RESPONSE_METHOD)
    if method is None:
        return None
    returned = returned_expression(method)
    if returned is None or returned.type != "array_creation_expression":
        return None

    entries: list[ResourceEntry] = []
    for key_node, value_node in array_entries(returned):
        key = string_value(key_node)
        if key is None:
            continue
        entries.append(ResourceEntry(key=key, value=value_node, origin=_origin(source_path, key_node)))

    doc_comment = _preceding_comment(body, method)
    return ResourceDeclaration(
        class_name=class_name,
        entries=entries,
        doc_shape=extract_docblock_shape(doc_comment.text) if doc_comment is not None else None,
        origin=_origin(source_path, class_node),
    )


def _preceding_comment(body: PhpNode, target: PhpNode) -> PhpNode | None:
    comment: PhpNode | None = None
    for child in body.children:
        if child is target:
            return comment
        if child.type == "comment":
            comment = child
        elif child.named:
            comment = None
    return None


# ---------------------------------------------------------------------------
# Docblocks
# ---------------------------------------------------------------------------


def _strip_comment_markers(text: str) -> str:
    lines = []
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("/*"):
            line = line[2:].lstrip("*")
        elif line.startswith("*") and not line.startswith("*/"):
            line = line[1:]
        if line.endswith("*/"):
            line = line[:-2]
        lines.append(line.strip())
    return "\n".join(lines)


def extract_docblock_shape(text: str) -> dict[str, str] | None:
    """Read an ``@return array { key: type, ... }`` annotation into raw ``key -> type`` text.

    >>> extract_docblock_shape("/** @return array { id: string, tags: string[] } */")
    {'id': 'string', 'tags': 'string[]'}
    """
    cleaned = _strip_comment_markers(text)
    match = _RETURN_SHAPE.search(cleaned)
    if match is None:
        return None

    start = match.end() - 1
    depth = 0
    for position in range(start, len(cleaned)):
        ch = cleaned[position]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return parse_shape_pairs(cleaned[start + 1 : position])
    return None
