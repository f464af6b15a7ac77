from pathlib import Path
from typing import Protocol

from ferry.errors import FerryError


class RegenerationReporter(Protocol):
    def changed(self, package: str, paths: set[Path]) -> None: ...

    def regenerated(self, package: str, count: int, output_dir: Path) -> None: ...

    def failed(self, package: str, error: FerryError) -> None: ...
