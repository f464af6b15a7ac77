"""Tests for configuration loading."""

from pathlib import Path

import pytest

from ferry.config import FerryConfig, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("FERRY_CWD", "FERRY_NAMESPACE", "FERRY_PRETTY_PRINT"):
        monkeypatch.delenv(name, raising=False)


class TestFerryConfig:
    def test_derived_paths(self, tmp_path: Path) -> None:
        config = FerryConfig(cwd=tmp_path)

        assert config.enums_dir == tmp_path / "app" / "Enums"
        assert config.resources_dir == tmp_path / "app" / "Http" / "Resources"
        assert config.models_dir == tmp_path / "app" / "Models"
        assert config.enums_output_dir == tmp_path / "node_modules" / "@ferry" / "enums"
        assert config.resources_output_dir == tmp_path / "node_modules" / "@ferry" / "resources"

    def test_package_names_follow_namespace(self, tmp_path: Path) -> None:
        config = FerryConfig(cwd=tmp_path, namespace="@acme")

        assert config.enums_package == "@acme/enums"
        assert config.resources_package == "@acme/resources"
        assert config.output_root == tmp_path / "node_modules" / "@acme"


class TestLoadConfig:
    def test_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.cwd == tmp_path
        assert config.namespace == "@ferry"
        assert config.pretty_print is True

    def test_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FERRY_CWD", str(tmp_path))
        monkeypatch.setenv("FERRY_NAMESPACE", "@acme")
        monkeypatch.setenv("FERRY_PRETTY_PRINT", "false")

        config = load_config()

        assert config.cwd == tmp_path
        assert config.namespace == "@acme"
        assert config.pretty_print is False

    @pytest.mark.parametrize(("value", "expected"), [("1", True), ("YES", True), ("on", True), ("0", False), ("", False)])
    def test_pretty_print_values(self, value: str, expected: bool, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FERRY_PRETTY_PRINT", value)

        assert load_config(cwd=".").pretty_print is expected

    def test_arguments_win_over_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FERRY_CWD", "/nowhere")
        monkeypatch.setenv("FERRY_NAMESPACE", "@acme")
        monkeypatch.setenv("FERRY_PRETTY_PRINT", "true")

        config = load_config(cwd=tmp_path, namespace="@other", pretty_print=False)

        assert config.cwd == tmp_path
        assert config.namespace == "@other"
        assert config.pretty_print is False

    def test_config_is_frozen(self, tmp_path: Path) -> None:
        config = FerryConfig(cwd=tmp_path)

        with pytest.raises(ValueError):
            config.namespace = "@other"  # type: ignore[misc]
