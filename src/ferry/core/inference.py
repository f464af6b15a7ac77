"""Infer TypeScript field types from the expressions a resource's ``toArray`` returns.

``infer_field`` tries a fixed cascade of rules and the first one that matches wins:

1. a ``@return array {...}`` docblock entry for the key
2. ``is_*`` / ``has_*`` / ``isFoo`` / ``hasFoo`` keys are booleans
3. ``FooResource::collection(...)``, ``FooResource::make(...)`` and ``new FooResource(...)``
4. a bare ``$this->whenLoaded('relation')``
5. a property read on the model (``$this->resource->prop`` or ``$this->prop``)
6. nested array literals, then scalar literals
7. anything else is ``any``

Unrecognized expressions never fail; they end up as ``any``.
"""

import re
from dataclasses import dataclass, field

from ferry.core.ast import (
    argument_values,
    array_entries,
    contains_call,
    creation_parts,
    is_member_call,
    is_this,
    member_parts,
    named_children,
    scalar_kind,
    scoped_call_parts,
    short_class_name,
    string_value,
    unwrap_parens,
    walk,
)
from ferry.core.casts import cast_to_type
from ferry.core.registry import EnumRegistry
from ferry.core.types import (
    ANY,
    BOOLEAN,
    NULL,
    NUMBER,
    OPEN_RECORD,
    STRING,
    TsMember,
    TsObject,
    TsType,
    array_of,
    reference,
    referenced_names,
)
from ferry.models import FieldDescriptor, PhpNode, ResourceDeclaration, ResourceSchema

CONDITIONAL_RELATION = "whenLoaded"
ANONYMOUS_COLLECTION = "Collection"

_BOOLEAN_KEY = re.compile(r"^(is|has)[A-Z]")
_PREDICATE_CALL = re.compile(r"^(is|has)([A-Z_]|$)")
_BOOLEAN_OPERATORS = frozenset(
    {"==", "===", "!=", "!==", "<>", "<", ">", "<=", ">=", "&&", "||", "and", "or", "xor", "instanceof"}
)
_SCALAR_TYPES: dict[str, TsType] = {"string": STRING, "number": NUMBER, "boolean": BOOLEAN, "null": NULL}


@dataclass(frozen=True)
class InferenceContext:
    registry: EnumRegistry
    resource_class: str
    # None means no resource directory is configured and wrapped resource names are trusted.
    known_resources: frozenset[str] | None = None
    model_casts: dict[str, str] = field(default_factory=dict)
    doc_shape: dict[str, TsType] | None = None


def is_boolean_name(name: str) -> bool:
    lowered = name.lower()
    return lowered.startswith(("is_", "has_")) or bool(_BOOLEAN_KEY.match(name))


def relation_resource_name(relation: str) -> str:
    """``top_voted_comment`` / ``topVotedComment`` -> ``TopVotedCommentResource``."""
    return "".join(part[:1].upper() + part[1:] for part in relation.split("_") if part) + "Resource"


def infer_field(expr: PhpNode, key: str, context: InferenceContext) -> FieldDescriptor:
    expr = unwrap_parens(expr)

    if context.doc_shape is not None and key in context.doc_shape:
        doc_type = context.doc_shape[key]
        for name in referenced_names(doc_type):
            context.registry.reference(name)
        return FieldDescriptor(type=doc_type)

    if is_boolean_name(key):
        return FieldDescriptor(type=BOOLEAN)

    wrapped = _infer_resource_wrapper(expr, context)
    if wrapped is not None:
        return wrapped

    relation = _conditional_relation(expr)
    if relation is not None:
        candidate = relation_resource_name(relation)
        if context.known_resources is not None and candidate in context.known_resources:
            return FieldDescriptor(type=reference(candidate), optional=True)
        return FieldDescriptor(type=OPEN_RECORD, optional=True)

    model_property = _model_property(expr)
    if model_property is not None:
        name, is_call = model_property
        return FieldDescriptor(type=_infer_model_property(expr, name, is_call, context))

    if expr.type == "array_creation_expression":
        return FieldDescriptor(type=_infer_nested(expr, context))

    kind = scalar_kind(expr)
    if kind is not None:
        return FieldDescriptor(type=_SCALAR_TYPES[kind])

    return FieldDescriptor(type=ANY)


def infer_resource(declaration: ResourceDeclaration, context: InferenceContext) -> ResourceSchema:
    fields: dict[str, FieldDescriptor] = {}
    for entry in declaration.entries:
        descriptor = infer_field(entry.value, entry.key, context)
        fields[entry.key] = descriptor.model_copy(update={"origin": entry.origin})
    return ResourceSchema(class_name=declaration.class_name, fields=fields, origin=declaration.origin)


# ---------------------------------------------------------------------------
# Resource wrappers and relations
# ---------------------------------------------------------------------------


def _infer_resource_wrapper(expr: PhpNode, context: InferenceContext) -> FieldDescriptor | None:
    scoped = scoped_call_parts(expr)
    created = creation_parts(expr)
    if scoped is not None and scoped[1] in ("collection", "make"):
        name, arguments = short_class_name(scoped[0]), scoped[2]
        plural = scoped[1] == "collection"
    elif created is not None:
        name, arguments = short_class_name(created[0]), created[1]
        plural = False
    else:
        return None

    optional = any(contains_call(argument, [CONDITIONAL_RELATION]) for argument in argument_values(arguments))
    if scoped is not None and name == ANONYMOUS_COLLECTION:
        return FieldDescriptor(type=array_of(ANY), optional=optional)

    resolved = context.known_resources is None or name in context.known_resources
    target = reference(name) if resolved else ANY
    return FieldDescriptor(type=array_of(target) if plural else target, optional=optional)


def _conditional_relation(expr: PhpNode) -> str | None:
    """The relation name of a bare ``$this->whenLoaded('relation')``."""
    if not is_member_call(expr):
        return None
    parts = member_parts(expr)
    if parts is None or not is_this(parts[0]) or parts[1] != CONDITIONAL_RELATION:
        return None
    arguments = argument_values(parts[2])
    relation = string_value(arguments[0]) if arguments else None
    return relation or None


# ---------------------------------------------------------------------------
# Model properties
# ---------------------------------------------------------------------------


def _is_model_root(node: PhpNode) -> bool:
    """``$this->resource``"""
    parts = member_parts(node)
    return parts is not None and not is_member_call(node) and is_this(parts[0]) and parts[1] == "resource"


def _model_property(expr: PhpNode) -> tuple[str, bool] | None:
    """Find the first model member read inside ``expr``, outside array literals; returns (name, is_call)."""
    for node in walk(expr, skip=["array_creation_expression"]):
        parts = member_parts(node)
        if parts is None:
            continue
        target, name, _ = parts
        is_call = is_member_call(node)
        if _is_model_root(target):
            return name, is_call
        if is_this(target) and name != "resource":
            if not is_call:
                return name, False
            if _PREDICATE_CALL.match(name):
                return name, True
    return None


def _is_boolean_form(expr: PhpNode) -> bool:
    if expr.type == "unary_op_expression":
        return expr.text.lstrip().startswith("!")
    if expr.type == "binary_expression":
        return any(not child.named and child.type in _BOOLEAN_OPERATORS for child in expr.children)
    if expr.type == "conditional_expression":
        branches = named_children(expr)
        return len(branches) == 3 and all(unwrap_parens(branch).type == "boolean" for branch in branches[1:])
    return False


def _infer_model_property(expr: PhpNode, name: str, is_call: bool, context: InferenceContext) -> TsType:
    if is_boolean_name(name) or (is_call and _PREDICATE_CALL.match(name)) or _is_boolean_form(expr):
        return BOOLEAN

    if name == "id" or name.endswith("_id") or (name.endswith("Id") and len(name) > 2) or name.lower() == "uuid":
        return STRING

    cast = context.model_casts.get(name)
    if cast is not None:
        if ":" not in cast:
            enum = context.registry.reference(short_class_name(cast))
            if enum is not None:
                return reference(enum.name)
        return cast_to_type(cast)

    # Timestamps (*_at, *At) serialize as strings, as does every other plain column.
    return STRING


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------


def _infer_nested(expr: PhpNode, context: InferenceContext) -> TsType:
    members: dict[str, TsMember] = {}
    for key_node, value_node in array_entries(expr):
        key = string_value(key_node)
        if key is None:
            continue
        descriptor = infer_field(value_node, key, context)
        members[key] = TsMember(name=key, type=descriptor.type, optional=descriptor.optional)
    if all(member.type == ANY for member in members.values()):
        return array_of(ANY)
    return TsObject(members=tuple(members.values()))
