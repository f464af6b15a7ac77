"""Shared fixtures and helpers for tests."""

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from ferry.config import FerryConfig
from ferry.core.registry import EnumRegistry

_REPO_ROOT = Path(__file__).parent.parent
FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# PHP sources
# ---------------------------------------------------------------------------


def resource_source(entries: str, class_name: str = "PostResource", docblock: str = "") -> str:
    """Wrap ``toArray`` array entries in a minimal resource class."""
    return f"""<?php

namespace App\\Http\\Resources;

use Illuminate\\Http\\Resources\\Json\\JsonResource;

class {class_name} extends JsonResource
{{
{docblock}
    public function toArray($request): array
    {{
        return [
{entries}
        ];
    }}
}}
"""


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_resource() -> Callable[..., str]:
    """Return the resource source builder."""
    return resource_source


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory holding the PHP fixture files."""
    return FIXTURES_DIR


@pytest.fixture
def fixture_registry() -> EnumRegistry:
    """Enum registry backed by the fixture enums."""
    return EnumRegistry(FIXTURES_DIR / "Enums")


@pytest.fixture
def laravel_project(tmp_path: Path) -> Path:
    """Copy the fixtures into a Laravel-shaped project tree and return its root."""
    shutil.copytree(FIXTURES_DIR / "Enums", tmp_path / "app" / "Enums")
    shutil.copytree(FIXTURES_DIR / "Resources", tmp_path / "app" / "Http" / "Resources")
    shutil.copytree(FIXTURES_DIR / "Models", tmp_path / "app" / "Models")
    return tmp_path


@pytest.fixture
def project_config(laravel_project: Path) -> FerryConfig:
    return FerryConfig(cwd=laravel_project)
