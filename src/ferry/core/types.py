"""Structural TypeScript type model.

Inference builds these nodes; :func:`render_type` is the only place that turns
them into declaration text, so output is stable for identical input.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

_INDENT = "    "
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class _TypeNode(BaseModel):
    model_config = ConfigDict(frozen=True)


class TsPrimitive(_TypeNode):
    kind: Literal["primitive"] = "primitive"
    name: Literal["string", "number", "boolean", "any", "null", "undefined", "unknown"]


class TsLiteral(_TypeNode):
    kind: Literal["literal"] = "literal"
    value: str | int | float


class TsReference(_TypeNode):
    kind: Literal["reference"] = "reference"
    name: str


class TsArray(_TypeNode):
    kind: Literal["array"] = "array"
    element: TsType


class TsMember(_TypeNode):
    name: str
    type: TsType
    optional: bool = False


class TsObject(_TypeNode):
    kind: Literal["object"] = "object"
    members: tuple[TsMember, ...] = ()


class TsUnion(_TypeNode):
    kind: Literal["union"] = "union"
    members: tuple[TsType, ...]


class TsRecord(_TypeNode):
    kind: Literal["record"] = "record"
    key: TsType
    value: TsType


TsType = Annotated[
    Union[TsPrimitive, TsLiteral, TsReference, TsArray, TsObject, TsUnion, TsRecord],
    Field(discriminator="kind"),
]

for _model in (TsArray, TsMember, TsObject, TsUnion, TsRecord):
    _model.model_rebuild()  # necessary for recursive types

STRING = TsPrimitive(name="string")
NUMBER = TsPrimitive(name="number")
BOOLEAN = TsPrimitive(name="boolean")
ANY = TsPrimitive(name="any")
NULL = TsPrimitive(name="null")
UNDEFINED = TsPrimitive(name="undefined")
OPEN_RECORD = TsRecord(key=STRING, value=ANY)

_PRIMITIVES = {p.name: p for p in (STRING, NUMBER, BOOLEAN, ANY, NULL, UNDEFINED, TsPrimitive(name="unknown"))}


def reference(name: str) -> TsReference:
    return TsReference(name=name)


def array_of(element: TsType) -> TsArray:
    return TsArray(element=element)


def union_of(members: list[TsType]) -> TsType:
    """Build a union, dropping duplicate members and collapsing single-member unions."""
    unique: dict[str, TsType] = {}
    for member in members:
        unique.setdefault(render_type(member), member)
    if len(unique) == 1:
        return next(iter(unique.values()))
    return TsUnion(members=tuple(unique.values()))


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def render_literal(value: str | int | float) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    return str(value)


def render_property_name(name: str) -> str:
    return name if _IDENTIFIER.match(name) else json.dumps(name)


def render_type(node: TsType, depth: int = 0) -> str:
    """Render a type; ``depth`` is the indentation level of the line the type starts on."""
    if isinstance(node, TsPrimitive):
        return node.name
    if isinstance(node, TsLiteral):
        return render_literal(node.value)
    if isinstance(node, TsReference):
        return node.name
    if isinstance(node, TsArray):
        inner = render_type(node.element, depth)
        if isinstance(node.element, TsUnion):
            inner = f"({inner})"
        return f"{inner}[]"
    if isinstance(node, TsUnion):
        return " | ".join(render_type(member, depth) for member in node.members)
    if isinstance(node, TsRecord):
        return f"Record<{render_type(node.key, depth)}, {render_type(node.value, depth)}>"
    if isinstance(node, TsObject):
        if not node.members:
            return "{}"
        pad = _INDENT * (depth + 1)
        lines = ["{"]
        for member in node.members:
            marker = "?" if member.optional else ""
            rendered = render_type(member.type, depth + 1)
            lines.append(f"{pad}{render_property_name(member.name)}{marker}: {rendered};")
        lines.append(f"{_INDENT * depth}}}")
        return "\n".join(lines)
    raise TypeError(f"Unsupported type node: {node!r}")


def referenced_names(node: TsType) -> Iterator[str]:
    """Yield every named type reference inside ``node``."""
    if isinstance(node, TsReference):
        yield node.name
    elif isinstance(node, TsArray):
        yield from referenced_names(node.element)
    elif isinstance(node, TsUnion):
        for member in node.members:
            yield from referenced_names(member)
    elif isinstance(node, TsRecord):
        yield from referenced_names(node.key)
        yield from referenced_names(node.value)
    elif isinstance(node, TsObject):
        for member in node.members:
            yield from referenced_names(member.type)


# ---------------------------------------------------------------------------
# Parsing type text
# ---------------------------------------------------------------------------

_OPENERS = "{<("
_CLOSERS = "}>)"


def split_top_level(text: str, separators: str) -> list[str]:
    """Split ``text`` on any of ``separators`` that sit outside brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and depth > 0:
            depth -= 1
        if ch in separators and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def parse_shape_pairs(inside: str) -> dict[str, str]:
    """Parse ``key: type, key: type`` pairs from the inside of a docblock array shape.

    Nested shapes and generics are kept as raw text; whitespace inside a type is collapsed.
    """
    pairs: dict[str, str] = {}
    for chunk in split_top_level(inside, ","):
        chunk = chunk.strip()
        if not chunk:
            continue
        match = re.match(r"^([A-Za-z0-9_]+)\??\s*:\s*(.*)$", chunk, re.S)
        if not match:
            break
        type_text = " ".join(match.group(2).split())
        if type_text:
            pairs[match.group(1)] = type_text
    return pairs


def parse_type(text: str) -> TsType:
    """Parse TypeScript type text (as produced by :func:`render_type`) back into the model."""
    text = text.strip()
    if not text:
        return ANY

    alternatives = [part.strip() for part in split_top_level(text, "|")]
    if len(alternatives) > 1:
        return union_of([parse_type(part) for part in alternatives if part])

    if text in _PRIMITIVES:
        return _PRIMITIVES[text]

    if text.endswith("[]"):
        inner = text[:-2].strip()
        if inner.startswith("(") and inner.endswith(")"):
            inner = inner[1:-1]
        return array_of(parse_type(inner))

    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return TsLiteral(value=text[1:-1])
    if re.fullmatch(r"-?\d+", text):
        return TsLiteral(value=int(text))

    record = re.fullmatch(r"Record\s*<(.*)>", text, re.S)
    if record:
        key_value = split_top_level(record.group(1), ",")
        if len(key_value) == 2:
            return TsRecord(key=parse_type(key_value[0]), value=parse_type(key_value[1]))

    if text.startswith("{") and text.endswith("}"):
        members: list[TsMember] = []
        for chunk in split_top_level(text[1:-1], ";,"):
            chunk = chunk.strip()
            match = re.match(r"^([A-Za-z0-9_$]+|\"[^\"]*\")(\?)?\s*:\s*(.+)$", chunk, re.S)
            if not match:
                continue
            name = match.group(1).strip('"')
            members.append(TsMember(name=name, type=parse_type(match.group(3)), optional=bool(match.group(2))))
        return TsObject(members=tuple(members))

    return reference(text)


# ---------------------------------------------------------------------------
# PHPDoc types
# ---------------------------------------------------------------------------

_NUMBER_DOC_TYPES = frozenset({"int", "integer", "float", "double", "number", "decimal"})
_ARRAY_SHAPE = re.compile(r"^array\s*\{(.*)\}$", re.S)
_LIST_NOTATION = re.compile(r"^([A-Za-z0-9_\\]+)\[\]$")
_GENERIC_ARRAY = re.compile(r"^(?:array|list|iterable)\s*<\s*(?:[^,>]+,\s*)?([^,>\s]+)\s*>$", re.I)


def map_doc_type(doc_type: str) -> TsType:
    """Map a PHPDoc type (as written in an ``@return array {...}`` shape) to a TypeScript type."""
    text = doc_type.strip()
    nullable = text.startswith("?")
    if nullable:
        text = text[1:].strip()

    shape = _ARRAY_SHAPE.match(text)
    if shape:
        members = tuple(
            TsMember(name=key, type=map_doc_type(value)) for key, value in parse_shape_pairs(shape.group(1)).items()
        )
        obj = TsObject(members=members)
        return union_of([obj, NULL]) if nullable else obj

    mapped = [_map_doc_atom(part.strip()) for part in split_top_level(text, "|") if part.strip()]
    if nullable:
        mapped.append(NULL)
    if not mapped:
        return ANY
    return union_of(mapped)


def _map_doc_atom(atom: str) -> TsType:
    low = atom.lower()
    if low == "null":
        return NULL
    if low == "mixed":
        return ANY
    if low == "array":
        return array_of(ANY)
    if low in _NUMBER_DOC_TYPES:
        return NUMBER
    if low in ("bool", "boolean", "true", "false"):
        return BOOLEAN
    if low in ("object", "stdclass"):
        return OPEN_RECORD
    if _ARRAY_SHAPE.match(atom):
        return map_doc_type(atom)

    listed = _LIST_NOTATION.match(atom)
    if listed:
        return array_of(_map_doc_atom(listed.group(1)))

    generic = _GENERIC_ARRAY.match(atom)
    if generic:
        return array_of(_map_doc_atom(generic.group(1)))

    if low.startswith("string"):
        return STRING

    if atom.startswith("Record"):
        return parse_type(atom.replace("mixed", "any"))

    name = atom.rsplit("\\", 1)[-1]
    name = re.sub(r"[^A-Za-z0-9_]", "", name)
    return reference(name) if name else ANY
