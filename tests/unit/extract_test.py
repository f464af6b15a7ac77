"""Tests for enum, resource and docblock extraction."""

from collections.abc import Callable
from pathlib import Path

from ferry.core.extract import extract_docblock_shape, extract_enum, extract_resource


class TestExtractEnum:
    def test_string_backed_enum_with_labels(self, fixtures_dir: Path) -> None:
        enum = extract_enum((fixtures_dir / "Enums" / "OrderStatus.php").read_text())

        assert enum is not None
        assert enum.name == "OrderStatus"
        assert enum.backing == "string"
        assert [(case.key, case.value, case.label) for case in enum.cases] == [
            ("PENDING", "pending", "Pending Order"),
            ("APPROVED", "approved", "Approved"),
            ("REJECTED", "rejected", "Rejected"),
            ("SHIPPED", "shipped", "Shipped"),
        ]
        assert enum.has_labels is True

    def test_int_backed_enum_with_partial_labels(self, fixtures_dir: Path) -> None:
        enum = extract_enum((fixtures_dir / "Enums" / "Priority.php").read_text())

        assert enum is not None
        assert enum.backing == "int"
        assert [(case.key, case.value, case.label) for case in enum.cases] == [
            ("LOW", 1, "Low"),
            ("MEDIUM", 2, None),
            ("HIGH", 3, "High"),
        ]

    def test_unbacked_enum_values_equal_keys(self, fixtures_dir: Path) -> None:
        enum = extract_enum((fixtures_dir / "Enums" / "Color.php").read_text())

        assert enum is not None
        assert enum.backing is None
        assert [(case.key, case.value) for case in enum.cases] == [("RED", "RED"), ("GREEN", "GREEN"), ("BLUE", "BLUE")]
        assert enum.has_labels is False

    def test_origins_recorded_with_path(self, fixtures_dir: Path) -> None:
        source = (fixtures_dir / "Enums" / "Role.php").read_text()

        enum = extract_enum(source, "app/Enums/Role.php")

        assert enum is not None
        assert enum.origin is not None
        assert (enum.origin.file, enum.origin.line) == ("app/Enums/Role.php", 5)
        assert [case.origin.line for case in enum.cases if case.origin] == [7, 8, 9]

    def test_no_origins_without_path(self, fixtures_dir: Path) -> None:
        enum = extract_enum((fixtures_dir / "Enums" / "Role.php").read_text())

        assert enum is not None
        assert enum.origin is None
        assert all(case.origin is None for case in enum.cases)

    def test_label_match_must_be_on_this(self) -> None:
        source = """<?php
enum Size: string
{
    case S = 's';

    public function label(): string
    {
        return match ($other) {
            self::S => 'Small',
        };
    }
}
"""
        enum = extract_enum(source)

        assert enum is not None
        assert enum.cases[0].label is None

    def test_shared_arm_labels_every_case(self) -> None:
        source = """<?php
enum Size: string
{
    case S = 's';
    case M = 'm';
    case L = 'l';

    public function label(): string
    {
        return match ($this) {
            self::S, self::M => 'Compact',
            default => 'Other',
        };
    }
}
"""
        enum = extract_enum(source)

        assert enum is not None
        assert [case.label for case in enum.cases] == ["Compact", "Compact", None]

    def test_not_an_enum(self) -> None:
        assert extract_enum("<?php\nclass Foo {}\n") is None

    def test_malformed_enum(self) -> None:
        assert extract_enum("<?php\nenum Broken: string {\n    case A = ;\n") is None

    def test_empty_text(self) -> None:
        assert extract_enum("") is None


class TestExtractResource:
    def test_entries_in_source_order(self, fixtures_dir: Path) -> None:
        declaration = extract_resource((fixtures_dir / "Resources" / "PostResource.php").read_text())

        assert declaration is not None
        assert declaration.class_name == "PostResource"
        assert [entry.key for entry in declaration.entries] == [
            "id",
            "title",
            "slug",
            "is_published",
            "has_comments",
            "author",
            "comments",
            "top_voted_comment",
            "created_at",
        ]
        assert declaration.doc_shape is None

    def test_docblock_before_to_array(self, fixtures_dir: Path) -> None:
        declaration = extract_resource((fixtures_dir / "Resources" / "OrderResource.php").read_text())

        assert declaration is not None
        assert declaration.doc_shape == {
            "id": "string",
            "total": "number",
            "status": "string",
            "items": "array",
            "created_at": "string",
        }

    def test_entry_origins(self, fixtures_dir: Path) -> None:
        source = (fixtures_dir / "Resources" / "PostResource.php").read_text()

        declaration = extract_resource(source, "app/Http/Resources/PostResource.php")

        assert declaration is not None
        assert declaration.origin is not None
        assert declaration.origin.line == 8
        assert declaration.entries[0].origin is not None
        assert declaration.entries[0].origin.line == 13
        assert declaration.entries[0].origin.column == 12

    def test_non_string_keys_skipped(self, make_resource: Callable[..., str]) -> None:
        declaration = extract_resource(make_resource("            'a' => 1,\n            2 => 'b',\n            $c,"))

        assert declaration is not None
        assert [entry.key for entry in declaration.entries] == ["a"]

    def test_missing_to_array(self) -> None:
        assert extract_resource("<?php\nclass UserResource {\n    public function other() { return []; }\n}\n") is None

    def test_non_array_return(self) -> None:
        source = "<?php\nclass UserResource {\n    public function toArray($r) { return parent::toArray($r); }\n}\n"
        assert extract_resource(source) is None

    def test_malformed_class(self) -> None:
        assert extract_resource("<?php\nclass UserResource {\n    public function toArray( {\n") is None


class TestExtractDocblockShape:
    def test_multiline_docblock(self) -> None:
        text = """/**
     * @return array {
     *     id: string,
     *     tags: array<string>,
     *     meta: array { views: int, score: ?float },
     * }
     */"""
        assert extract_docblock_shape(text) == {
            "id": "string",
            "tags": "array<string>",
            "meta": "array { views: int, score: ?float }",
        }

    def test_single_line(self) -> None:
        assert extract_docblock_shape("/** @return array{id: int} */") == {"id": "int"}

    def test_optional_keys(self) -> None:
        assert extract_docblock_shape("/** @return array { id: int, name?: string } */") == {"id": "int", "name": "string"}

    def test_no_annotation(self) -> None:
        assert extract_docblock_shape("/** @return array */") is None

    def test_unbalanced_braces(self) -> None:
        assert extract_docblock_shape("/** @return array { id: int ") is None
