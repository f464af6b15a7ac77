"""Tests for the PHP tree conversion and pattern helpers."""

from ferry.core.ast import (
    argument_values,
    array_entries,
    contains_call,
    creation_parts,
    find_first,
    find_method,
    integer_value,
    member_parts,
    parse_php,
    returned_expression,
    scalar_kind,
    scoped_call_parts,
    short_class_name,
    string_value,
    walk,
)
from ferry.models import PhpNode


def _expression(code: str) -> PhpNode:
    """Parse ``$x = <code>;`` and return the right-hand side."""
    tree = parse_php(f"<?php\n$x = {code};\n")
    assignment = find_first(tree, "assignment_expression")
    assert assignment is not None
    return assignment.children[-1]


class TestParsePhp:
    def test_root_is_program(self) -> None:
        tree = parse_php("<?php\necho 1;\n")
        assert tree.type == "program"
        assert tree.has_error is False

    def test_positions_are_zero_based(self) -> None:
        tree = parse_php("<?php\n\nenum Role {}\n")
        enum = find_first(tree, "enum_declaration")
        assert enum is not None
        assert enum.start_point.row == 2
        assert enum.start_point.column == 0

    def test_syntax_errors_are_flagged(self) -> None:
        tree = parse_php("<?php\nclass Broken {\n    public function toArray( {\n")
        assert tree.has_error is True

    def test_walk_skips_subtrees(self) -> None:
        tree = parse_php("<?php\n$f = function () { return 1; };\n")
        types = {node.type for node in walk(tree, skip=["anonymous_function", "anonymous_function_creation_expression"])}
        assert "return_statement" not in types


class TestLiterals:
    def test_single_quoted_string(self) -> None:
        assert string_value(_expression("'it\\'s'")) == "it's"

    def test_double_quoted_string_escapes(self) -> None:
        assert string_value(_expression('"a\\tb"')) == "a\tb"

    def test_non_string_is_none(self) -> None:
        assert string_value(_expression("42")) is None

    def test_integer(self) -> None:
        assert integer_value(_expression("42")) == 42

    def test_negative_integer(self) -> None:
        assert integer_value(_expression("-7")) == -7

    def test_hex_integer(self) -> None:
        assert integer_value(_expression("0x1F")) == 31

    def test_scalar_kinds(self) -> None:
        assert scalar_kind(_expression("'a'")) == "string"
        assert scalar_kind(_expression("1.5")) == "number"
        assert scalar_kind(_expression("true")) == "boolean"
        assert scalar_kind(_expression("null")) == "null"
        assert scalar_kind(_expression("$y")) is None

    def test_short_class_name(self) -> None:
        assert short_class_name("\\App\\Enums\\Role") == "Role"
        assert short_class_name("Role") == "Role"


class TestExpressions:
    def test_member_access(self) -> None:
        parts = member_parts(_expression("$this->resource->email"))
        assert parts is not None
        target, name, arguments = parts
        assert target.text == "$this->resource"
        assert name == "email"
        assert arguments is None

    def test_nullsafe_member_call(self) -> None:
        parts = member_parts(_expression("$this->resource?->isActive()"))
        assert parts is not None
        assert parts[1] == "isActive"
        assert parts[2] is not None

    def test_scoped_call(self) -> None:
        parts = scoped_call_parts(_expression("UserResource::collection($this->whenLoaded('users'))"))
        assert parts is not None
        scope, method, arguments = parts
        assert (scope, method) == ("UserResource", "collection")
        assert [value.type for value in argument_values(arguments)] == ["member_call_expression"]

    def test_object_creation(self) -> None:
        parts = creation_parts(_expression("new CommentResource($this->comment)"))
        assert parts is not None
        assert parts[0] == "CommentResource"
        assert len(argument_values(parts[1])) == 1

    def test_array_entries_keep_order(self) -> None:
        entries = array_entries(_expression("['b' => 1, 'a' => 2, 3]"))
        assert [string_value(key) if key else None for key, _ in entries] == ["b", "a", None]
        assert [integer_value(value) for _, value in entries] == [1, 2, 3]

    def test_contains_call_finds_nested_when_loaded(self) -> None:
        expr = _expression("UserResource::make($this->whenLoaded('author'))")
        assert contains_call(expr, ["whenLoaded"]) is True
        assert contains_call(_expression("$this->resource->author"), ["whenLoaded"]) is False


class TestMethods:
    def test_returned_expression_ignores_closures(self) -> None:
        tree = parse_php(
            "<?php\nclass A {\n"
            "    public function toArray() {\n"
            "        $map = fn ($x) => ['inner' => $x];\n"
            "        $f = function () { return 'closure'; };\n"
            "        return ['outer' => 1];\n"
            "    }\n"
            "}\n"
        )
        body = find_first(tree, "declaration_list")
        assert body is not None
        method = find_method(body, "toArray")
        assert method is not None
        returned = returned_expression(method)
        assert returned is not None
        assert returned.type == "array_creation_expression"
        assert "outer" in returned.text

    def test_find_method_misses(self) -> None:
        tree = parse_php("<?php\nclass A {\n    public function other() {}\n}\n")
        body = find_first(tree, "declaration_list")
        assert body is not None
        assert find_method(body, "toArray") is None
