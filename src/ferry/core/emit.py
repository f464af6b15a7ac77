"""Render enums and resource schemas as declaration text, runtime text and barrels.

All output uses 4-space indentation and double-quoted strings and ends with a newline,
so identical input always produces byte-identical files.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass, field

from ferry.core.sourcemap import source_map_comment
from ferry.core.types import OPEN_RECORD, render_literal, render_property_name, render_type
from ferry.models import EnumCase, EnumDefinition, PositionMapping, ResourceSchema, SourceLocation

INDENT = "    "
DECLARATION_SUFFIX = ".d.ts"
RUNTIME_SUFFIX = ".js"
MAP_SUFFIX = ".d.ts.map"


@dataclass(frozen=True)
class RenderedDeclaration:
    text: str
    mappings: list[PositionMapping] = field(default_factory=list)


class _Lines:
    """Accumulates output lines and the source positions they came from."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.mappings: list[PositionMapping] = []

    def add(self, text: str, origin: SourceLocation | None = None) -> None:
        for line in text.split("\n"):
            self.lines.append(line)
        if origin is not None:
            first_line = len(self.lines) - text.count("\n")
            self.mappings.append(
                PositionMapping(
                    generated_line=first_line,
                    generated_column=len(text) - len(text.lstrip(" ")),
                    source_line=origin.line,
                    source_column=origin.column,
                )
            )

    def render(self) -> RenderedDeclaration:
        return RenderedDeclaration(text="\n".join(self.lines) + "\n", mappings=self.mappings)


def _see_header(source_path: str) -> str:
    return f"/** @see {source_path} */"


def _case_label(case: EnumCase) -> str:
    return case.label if case.label is not None else str(case.value)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


def render_enum_declaration(enum: EnumDefinition, source_path: str | None = None) -> RenderedDeclaration:
    """``export enum`` for plain enums, a typed ``export declare const`` once any case has a label."""
    out = _Lines()
    if source_path is not None:
        out.add(_see_header(source_path))

    if not enum.cases:
        out.add(f"export enum {enum.name} {{}}", enum.origin)
    elif enum.has_labels:
        out.add(f"export declare const {enum.name}: {{", enum.origin)
        for case in enum.cases:
            out.add(f"{INDENT}{render_property_name(case.key)}: {{", case.origin)
            out.add(f"{INDENT * 2}value: {render_literal(case.value)};")
            out.add(f"{INDENT * 2}label: {render_literal(_case_label(case))};")
            out.add(f"{INDENT}}};")
        out.add("};")
    else:
        out.add(f"export enum {enum.name} {{", enum.origin)
        for index, case in enumerate(enum.cases):
            separator = "," if index < len(enum.cases) - 1 else ""
            out.add(f"{INDENT}{case.key} = {render_literal(case.value)}{separator}", case.origin)
        out.add("}")

    if source_path is not None:
        out.add(source_map_comment(f"{enum.name}{MAP_SUFFIX}"))
    return out.render()


def render_enum_runtime(enum: EnumDefinition, pretty_print: bool = True) -> str:
    if not enum.cases:
        return f"export const {enum.name} = {{}};\n"

    properties: list[str] = []
    for case in enum.cases:
        key = render_property_name(case.key)
        value = render_literal(case.value)
        if not enum.has_labels:
            properties.append(f"{INDENT}{key}: {value}")
        elif pretty_print:
            label = render_literal(_case_label(case))
            properties.append(
                f"{INDENT}{key}: {{\n{INDENT * 2}value: {value},\n{INDENT * 2}label: {label}\n{INDENT}}}"
            )
        else:
            properties.append(f"{INDENT}{key}: {{ value: {value}, label: {render_literal(_case_label(case))} }}")
    body = ",\n".join(properties)
    return f"export const {enum.name} = {{\n{body}\n}};\n"


def render_enum_barrel(names: Iterable[str]) -> str:
    """Value re-exports; used for both ``index.d.ts`` and ``index.js`` of the enums package."""
    return "".join(f"export {{ {name} }} from './{name}{RUNTIME_SUFFIX}';\n" for name in names)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


def render_resource_declaration(
    schema: ResourceSchema,
    enum_imports: Iterable[str] = (),
    resource_imports: Iterable[str] = (),
    enums_package: str = "@ferry/enums",
    source_path: str | None = None,
) -> RenderedDeclaration:
    out = _Lines()
    if source_path is not None:
        out.add(_see_header(source_path))

    if not schema.is_fallback:
        enum_names = sorted(set(enum_imports))
        resource_names = sorted(set(resource_imports) - {schema.class_name})
        if enum_names:
            out.add(f'import type {{ {", ".join(enum_names)} }} from "{enums_package}";')
        for name in resource_names:
            out.add(f'import type {{ {name} }} from "./{name}{RUNTIME_SUFFIX}";')
        if enum_names or resource_names:
            out.add("")

    if schema.is_fallback:
        out.add(f"export type {schema.class_name} = {render_type(OPEN_RECORD)};", schema.origin)
    elif not schema.fields:
        out.add(f"export type {schema.class_name} = {{}};", schema.origin)
    else:
        out.add(f"export type {schema.class_name} = {{", schema.origin)
        for key, descriptor in schema.fields.items():
            marker = "?" if descriptor.optional else ""
            rendered = render_type(descriptor.type, depth=1)
            out.add(f"{INDENT}{render_property_name(key)}{marker}: {rendered};", descriptor.origin)
        out.add("};")

    if source_path is not None:
        out.add(source_map_comment(f"{schema.class_name}{MAP_SUFFIX}"))
    return out.render()


def render_resource_runtime() -> str:
    return "export default {};\n"


def render_resource_barrel(names: Iterable[str]) -> str:
    return "".join(f"export type {{ {name} }} from './{name}{RUNTIME_SUFFIX}';\n" for name in names)


def render_resource_runtime_barrel() -> str:
    return "export {};\n"


def render_manifest(package_name: str) -> str:
    manifest = {"name": package_name, "version": "0.0.0", "main": "index.js", "types": "index.d.ts"}
    return json.dumps(manifest, indent=2) + "\n"
