import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict

DEFAULT_NAMESPACE = "@ferry"

ENUMS_PACKAGE = "enums"
RESOURCES_PACKAGE = "resources"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class FerryConfig(BaseModel):
    """Where sources are read from and where the generated packages go."""

    model_config = ConfigDict(frozen=True)

    cwd: Path
    namespace: str = DEFAULT_NAMESPACE
    pretty_print: bool = True

    @property
    def enums_dir(self) -> Path:
        return self.cwd / "app" / "Enums"

    @property
    def resources_dir(self) -> Path:
        return self.cwd / "app" / "Http" / "Resources"

    @property
    def models_dir(self) -> Path:
        return self.cwd / "app" / "Models"

    @property
    def output_root(self) -> Path:
        return self.cwd / "node_modules" / self.namespace

    @property
    def enums_output_dir(self) -> Path:
        return self.output_root / ENUMS_PACKAGE

    @property
    def resources_output_dir(self) -> Path:
        return self.output_root / RESOURCES_PACKAGE

    @property
    def enums_package(self) -> str:
        return f"{self.namespace}/{ENUMS_PACKAGE}"

    @property
    def resources_package(self) -> str:
        return f"{self.namespace}/{RESOURCES_PACKAGE}"


def load_config(
    cwd: str | Path | None = None,
    namespace: str | None = None,
    pretty_print: bool | None = None,
) -> FerryConfig:
    """Build the configuration; explicit arguments win over ``FERRY_*`` environment variables."""
    if cwd is None:
        cwd = os.getenv("FERRY_CWD") or Path.cwd()
    if namespace is None:
        namespace = os.getenv("FERRY_NAMESPACE", DEFAULT_NAMESPACE)
    if pretty_print is None:
        pretty_print = os.getenv("FERRY_PRETTY_PRINT", "true").strip().lower() in _TRUE_VALUES
    return FerryConfig(cwd=Path(cwd), namespace=namespace, pretty_print=pretty_print)
