from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from watchfiles import awatch

from ferry.core.files import PHP_SUFFIX

logger = logging.getLogger(__name__)


def _is_source_file(path: Path) -> bool:
    return path.suffix == PHP_SUFFIX


class WatchfilesWatcher:
    """Watch the source directories for PHP changes and hand them to a callback.

    Implements the ``SourceWatcherPort`` protocol. Directories that do not exist
    when the watcher starts are skipped.
    """

    def __init__(
        self,
        directories: Iterable[str | Path],
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
    ) -> None:
        self._directories = tuple(Path(directory) for directory in directories)
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    @property
    def directories(self) -> tuple[Path, ...]:
        return self._directories

    async def start(self) -> None:
        if self._task is not None:
            return
        existing = [directory for directory in self._directories if directory.is_dir()]
        if not existing:
            logger.warning("None of the watched directories exist: %s", ", ".join(map(str, self._directories)))
            return
        self._task = asyncio.create_task(self._watch(existing))
        logger.info("Watching %s", ", ".join(map(str, existing)))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching source directories")

    async def _watch(self, directories: list[Path]) -> None:
        async for changes in awatch(*directories):
            paths = {Path(p) for _, p in changes if _is_source_file(Path(p))}
            if paths:
                logger.debug("Detected changes in %d PHP file(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error while handling source changes")
