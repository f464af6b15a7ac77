import logging
from pathlib import Path

from ferry.core.extract import extract_enum
from ferry.core.files import list_php_files, logical_path, read_file_safe
from ferry.models import EnumDefinition

logger = logging.getLogger(__name__)


class EnumRegistry:
    """Known enums for one generation run.

    Enums are extracted lazily from ``<enums_dir>/<Name>.php`` the first time a name is
    resolved and cached, including misses, so a name is parsed at most once per run.
    ``referenced`` collects the enums some resource field actually used.
    """

    def __init__(self, enums_dir: Path | None, cwd: Path | None = None) -> None:
        self.enums_dir = enums_dir
        self.cwd = cwd
        self._cache: dict[str, EnumDefinition | None] = {}
        self.referenced: set[str] = set()

    def register(self, enum: EnumDefinition) -> None:
        self._cache[enum.name] = enum

    def resolve(self, name: str) -> EnumDefinition | None:
        if name in self._cache:
            return self._cache[name]
        enum = self._load(name)
        self._cache[name] = enum
        return enum

    def reference(self, name: str) -> EnumDefinition | None:
        """Resolve ``name`` and, when it is a known enum, mark it as used."""
        enum = self.resolve(name)
        if enum is not None:
            self.referenced.add(enum.name)
        return enum

    def collect(self) -> list[EnumDefinition]:
        """Extract every enum in the directory, in file-name order."""
        if self.enums_dir is None:
            return []
        enums: list[EnumDefinition] = []
        for path in list_php_files(self.enums_dir):
            enum = self.resolve(path.stem)
            if enum is None:
                continue
            if enum.name != path.stem:
                logger.warning("Enum %s is declared in %s, not %s.php", enum.name, path, enum.name)
                if self._cache.get(enum.name) is None:
                    self._cache[enum.name] = enum
            enums.append(enum)
        return enums

    def _load(self, name: str) -> EnumDefinition | None:
        if self.enums_dir is None or not name.isidentifier():
            return None
        path = self.enums_dir / f"{name}.php"
        source = read_file_safe(path)
        if source is None:
            return None
        enum = extract_enum(source, logical_path(path, self.cwd))
        if enum is None:
            logger.warning("Could not parse enum file %s", path)
        return enum
