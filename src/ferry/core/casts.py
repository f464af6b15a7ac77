"""Model cast tables and their TypeScript counterparts."""

from ferry.core.ast import (
    array_entries,
    child_of_type,
    find_first,
    find_method,
    named_children,
    parse_php,
    returned_expression,
    short_class_name,
    string_value,
)
from ferry.core.types import ANY, BOOLEAN, NUMBER, STRING, TsType, array_of
from ferry.models import PhpNode

RESOURCE_SUFFIX = "Resource"

_CAST_TYPES: dict[str, TsType] = {
    "int": NUMBER,
    "integer": NUMBER,
    "real": NUMBER,
    "float": NUMBER,
    "double": NUMBER,
    "decimal": NUMBER,
    "string": STRING,
    "bool": BOOLEAN,
    "boolean": BOOLEAN,
    "array": array_of(ANY),
    "json": array_of(ANY),
    "date": STRING,
    "datetime": STRING,
    "immutable_date": STRING,
    "immutable_datetime": STRING,
}


def extract_casts(source: str) -> dict[str, str]:
    """Read a model's ``$casts`` property, or the array returned by its ``casts()`` method."""
    tree = parse_php(source)
    class_node = find_first(tree, "class_declaration")
    if class_node is None or class_node.has_error:
        return {}
    body = child_of_type(class_node, "declaration_list")
    if body is None:
        return {}

    table = _casts_property(body)
    if table is None:
        method = find_method(body, "casts")
        returned = returned_expression(method) if method is not None else None
        table = returned if returned is not None and returned.type == "array_creation_expression" else None
    if table is None:
        return {}

    casts: dict[str, str] = {}
    for key_node, value_node in array_entries(table):
        key = string_value(key_node)
        value = _cast_name(value_node)
        if key is not None and value is not None:
            casts[key] = value
    return casts


def _casts_property(body: PhpNode) -> PhpNode | None:
    for declaration in body.children:
        if declaration.type != "property_declaration":
            continue
        for element in declaration.children:
            if element.type != "property_element":
                continue
            variable = child_of_type(element, "variable_name")
            if variable is None or variable.text != "$casts":
                continue
            return find_first(element, "array_creation_expression")
    return None


def _cast_name(node: PhpNode) -> str | None:
    text = string_value(node)
    if text is not None:
        return text
    if node.type == "class_constant_access_expression":
        parts = named_children(node)
        if len(parts) == 2 and parts[1].text == "class":
            return short_class_name(parts[0].text)
    return None


def companion_model_name(resource_class: str) -> str:
    """``UserResource`` -> ``User``."""
    if resource_class.endswith(RESOURCE_SUFFIX) and resource_class != RESOURCE_SUFFIX:
        return resource_class[: -len(RESOURCE_SUFFIX)]
    return resource_class


def cast_to_type(cast: str) -> TsType:
    """Map a primitive cast name to a type; parameters after ``:`` are ignored."""
    base = cast.split(":", 1)[0].strip().lower()
    return _CAST_TYPES.get(base, ANY)
