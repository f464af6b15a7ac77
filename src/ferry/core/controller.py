"""Keeps the generated packages in sync with their PHP sources.

Each package has at most one regeneration in flight. A change that arrives while one
is running marks the package dirty, and any number of such changes collapse into a
single rerun once the current run finishes.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from ferry.config import ENUMS_PACKAGE, RESOURCES_PACKAGE, FerryConfig
from ferry.core.files import PHP_SUFFIX
from ferry.core.generate import GenerationResult, generate_enums, generate_resources
from ferry.core.ports.reporter import RegenerationReporter
from ferry.core.registry import EnumRegistry
from ferry.errors import FerryError

logger = logging.getLogger(__name__)

PackageRunner = Callable[[FerryConfig, EnumRegistry | None], GenerationResult]

DEFAULT_RUNNERS: dict[str, PackageRunner] = {
    ENUMS_PACKAGE: generate_enums,
    RESOURCES_PACKAGE: generate_resources,
}


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.resolve().relative_to(directory.resolve())
    except ValueError:
        return False
    return True


class RegenerationController:
    def __init__(
        self,
        config: FerryConfig,
        reporter: RegenerationReporter | None = None,
        runners: dict[str, PackageRunner] | None = None,
    ) -> None:
        self.config = config
        self.reporter = reporter
        self.runners = runners or DEFAULT_RUNNERS
        self.last_output: dict[str, Path] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._dirty: set[str] = set()

    @property
    def watched_directories(self) -> tuple[Path, ...]:
        return (self.config.enums_dir, self.config.resources_dir, self.config.models_dir)

    def packages_for(self, path: Path) -> set[str]:
        """Packages whose output depends on ``path``.

        Enum changes affect both packages, since resource types import enums.
        """
        if path.suffix != PHP_SUFFIX:
            return set()
        if _is_within(path, self.config.enums_dir):
            return {ENUMS_PACKAGE, RESOURCES_PACKAGE}
        if _is_within(path, self.config.resources_dir) or _is_within(path, self.config.models_dir):
            return {RESOURCES_PACKAGE}
        return set()

    def run_once(self) -> list[GenerationResult]:
        """Regenerate every package synchronously with one shared enum registry."""
        registry = EnumRegistry(self.config.enums_dir, self.config.cwd)
        results: list[GenerationResult] = []
        for package, runner in self.runners.items():
            result = runner(self.config, registry)
            self.last_output[package] = result.output_dir
            results.append(result)
        return results

    def trigger(self, package: str) -> None:
        """Schedule a regeneration of ``package``; must be called from a running event loop."""
        task = self._tasks.get(package)
        if task is not None and not task.done():
            self._dirty.add(package)
            return
        self._tasks[package] = asyncio.create_task(self._drain(package))

    async def handle_changes(self, paths: Iterable[Path]) -> None:
        affected: dict[str, set[Path]] = {}
        for path in paths:
            for package in self.packages_for(path):
                affected.setdefault(package, set()).add(path)
        for package in sorted(affected):
            if self.reporter is not None:
                self.reporter.changed(package, affected[package])
            self.trigger(package)

    async def wait_idle(self) -> None:
        while True:
            pending = [task for task in self._tasks.values() if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def _drain(self, package: str) -> None:
        while True:
            self._dirty.discard(package)
            self._regenerate(package)
            await asyncio.sleep(0)
            if package not in self._dirty:
                return

    def _regenerate(self, package: str) -> None:
        runner = self.runners[package]
        try:
            result = runner(self.config, None)
        except FerryError as exc:
            logger.error("Regenerating %s failed: %s", package, exc)
            if self.reporter is not None:
                self.reporter.failed(package, exc)
            return
        self.last_output[package] = result.output_dir
        if self.reporter is not None:
            self.reporter.regenerated(package, len(result.names), result.output_dir)
