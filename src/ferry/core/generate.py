"""The two package pipelines: enums and resources.

Each run builds every output file in memory, starting from a fresh
:class:`EnumRegistry`, and only then hands the set to the directory writer.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ferry.config import ENUMS_PACKAGE, RESOURCES_PACKAGE, FerryConfig
from ferry.core.casts import companion_model_name, extract_casts
from ferry.core.emit import (
    DECLARATION_SUFFIX,
    MAP_SUFFIX,
    RUNTIME_SUFFIX,
    RenderedDeclaration,
    render_enum_barrel,
    render_enum_declaration,
    render_enum_runtime,
    render_manifest,
    render_resource_barrel,
    render_resource_declaration,
    render_resource_runtime,
    render_resource_runtime_barrel,
)
from ferry.core.extract import extract_resource
from ferry.core.files import list_php_files, logical_path, read_file_safe, write_output_directory
from ferry.core.inference import InferenceContext, infer_resource
from ferry.core.registry import EnumRegistry
from ferry.core.sourcemap import generate_source_map, relative_path
from ferry.core.types import map_doc_type, referenced_names
from ferry.models import EnumDefinition, GeneratedFile, ResourceSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    package: str
    output_dir: Path
    names: list[str] = field(default_factory=list)
    files: list[GeneratedFile] = field(default_factory=list)


def _declaration_files(
    name: str,
    rendered: RenderedDeclaration,
    runtime: str,
    source_path: str | None,
    output_path: str,
) -> list[GeneratedFile]:
    declaration_name = f"{name}{DECLARATION_SUFFIX}"
    files = [
        GeneratedFile(name=declaration_name, content=rendered.text),
        GeneratedFile(name=f"{name}{RUNTIME_SUFFIX}", content=runtime),
    ]
    if source_path is not None:
        source_map = generate_source_map(
            file=declaration_name,
            sources=[relative_path(f"{output_path}/{declaration_name}", source_path)],
            mappings=rendered.mappings,
        )
        files.append(GeneratedFile(name=f"{name}{MAP_SUFFIX}", content=source_map + "\n"))
    return files


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


def collect_enums(registry: EnumRegistry) -> list[EnumDefinition]:
    enums: dict[str, EnumDefinition] = {}
    for enum in registry.collect():
        if enum.name in enums:
            logger.warning("Duplicate enum %s, keeping the first definition", enum.name)
            continue
        enums[enum.name] = enum
    return list(enums.values())


def build_enum_files(config: FerryConfig, registry: EnumRegistry | None = None) -> GenerationResult:
    registry = registry or EnumRegistry(config.enums_dir, config.cwd)
    output_path = logical_path(config.enums_output_dir, config.cwd)

    enums = collect_enums(registry)
    files: list[GeneratedFile] = []
    for enum in enums:
        source_path = enum.origin.file if enum.origin is not None else None
        rendered = render_enum_declaration(enum, source_path=source_path)
        runtime = render_enum_runtime(enum, pretty_print=config.pretty_print)
        files.extend(_declaration_files(enum.name, rendered, runtime, source_path, output_path))

    names = [enum.name for enum in enums]
    barrel = render_enum_barrel(names)
    files.append(GeneratedFile(name="index.d.ts", content=barrel))
    files.append(GeneratedFile(name="index.js", content=barrel))
    files.append(GeneratedFile(name="package.json", content=render_manifest(config.enums_package)))
    return GenerationResult(package=ENUMS_PACKAGE, output_dir=config.enums_output_dir, names=names, files=files)


def generate_enums(config: FerryConfig, registry: EnumRegistry | None = None) -> GenerationResult:
    result = build_enum_files(config, registry)
    write_output_directory(result.output_dir, result.files)
    logger.info("Generated %d enums into %s", len(result.names), result.output_dir)
    return result


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class ModelCastCache:
    """Companion model cast tables, read once per run."""

    def __init__(self, models_dir: Path) -> None:
        self.models_dir = models_dir
        self._tables: dict[str, dict[str, str]] = {}

    def for_resource(self, resource_class: str) -> dict[str, str]:
        model = companion_model_name(resource_class)
        if model not in self._tables:
            source = read_file_safe(self.models_dir / f"{model}.php")
            self._tables[model] = extract_casts(source) if source is not None else {}
        return self._tables[model]


def build_resource_schema(
    path: Path,
    config: FerryConfig,
    registry: EnumRegistry,
    known_resources: frozenset[str] | None,
    model_casts: ModelCastCache,
) -> tuple[ResourceSchema, str]:
    """Infer one resource file; unusable files become fallback schemas named after the file."""
    source_path = logical_path(path, config.cwd)
    source = read_file_safe(path)
    declaration = extract_resource(source, source_path) if source is not None else None
    if declaration is None:
        logger.warning("Could not read a toArray() array from %s, using Record<string, any>", source_path)
        return ResourceSchema(class_name=path.stem, is_fallback=True), source_path

    doc_shape = None
    if declaration.doc_shape is not None:
        doc_shape = {key: map_doc_type(doc_type) for key, doc_type in declaration.doc_shape.items()}
    context = InferenceContext(
        registry=registry,
        resource_class=declaration.class_name,
        known_resources=known_resources,
        model_casts=model_casts.for_resource(declaration.class_name),
        doc_shape=doc_shape,
    )
    return infer_resource(declaration, context), source_path


def build_resource_files(config: FerryConfig, registry: EnumRegistry | None = None) -> GenerationResult:
    registry = registry or EnumRegistry(config.enums_dir, config.cwd)
    output_path = logical_path(config.resources_output_dir, config.cwd)

    if not config.resources_dir.is_dir():
        logger.warning("Resources directory not found: %s", config.resources_dir)
    paths = list_php_files(config.resources_dir)
    known_resources = frozenset(path.stem for path in paths)
    model_casts = ModelCastCache(config.models_dir)

    schemas: dict[str, tuple[ResourceSchema, str]] = {}
    for path in paths:
        schema, source_path = build_resource_schema(path, config, registry, known_resources, model_casts)
        if schema.class_name in schemas:
            logger.warning("Duplicate resource %s in %s, keeping the first definition", schema.class_name, source_path)
            continue
        schemas[schema.class_name] = (schema, source_path)

    files: list[GeneratedFile] = []
    for name, (schema, source_path) in schemas.items():
        used = {used_name for descriptor in schema.fields.values() for used_name in referenced_names(descriptor.type)}
        rendered = render_resource_declaration(
            schema,
            enum_imports=used & registry.referenced,
            resource_imports=used & set(schemas),
            enums_package=config.enums_package,
            source_path=source_path,
        )
        files.extend(_declaration_files(name, rendered, render_resource_runtime(), source_path, output_path))

    names = list(schemas)
    files.append(GeneratedFile(name="index.d.ts", content=render_resource_barrel(names)))
    files.append(GeneratedFile(name="index.js", content=render_resource_runtime_barrel()))
    files.append(GeneratedFile(name="package.json", content=render_manifest(config.resources_package)))
    return GenerationResult(package=RESOURCES_PACKAGE, output_dir=config.resources_output_dir, names=names, files=files)


def generate_resources(config: FerryConfig, registry: EnumRegistry | None = None) -> GenerationResult:
    result = build_resource_files(config, registry)
    write_output_directory(result.output_dir, result.files)
    logger.info("Generated %d resources into %s", len(result.names), result.output_dir)
    return result
