from pathlib import Path
from typing import Protocol


class SourceWatcherPort(Protocol):
    """Watches the PHP source directories and reports changed files."""

    @property
    def directories(self) -> tuple[Path, ...]: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
