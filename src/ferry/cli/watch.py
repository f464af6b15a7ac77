import asyncio
import logging
from typing import Annotated

import typer

from ferry.cli.console import ConsoleReporter, console
from ferry.cli.generate import CompactOption, CwdOption, NamespaceOption, run_and_report
from ferry.config import load_config
from ferry.core.controller import RegenerationController
from ferry.watcher.watchfiles_adapter import WatchfilesWatcher

logger = logging.getLogger(__name__)


async def _watch(controller: RegenerationController) -> None:
    watcher = WatchfilesWatcher(controller.watched_directories, controller.handle_changes)
    await watcher.start()
    try:
        await asyncio.Event().wait()
    finally:
        await watcher.stop()
        await controller.wait_idle()


def watch(
    cwd: CwdOption = None,
    namespace: NamespaceOption = None,
    compact: CompactOption = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
) -> None:
    """Generate both packages, then regenerate them whenever their PHP sources change."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = load_config(cwd, namespace, False if compact else None)
    controller = RegenerationController(config, reporter=ConsoleReporter(config.cwd))
    run_and_report(controller)

    console.print(f"[green]Watching[/green] {config.cwd} (Ctrl+C to stop)")
    try:
        asyncio.run(_watch(controller))
    except KeyboardInterrupt:
        logger.debug("Interrupted")
    console.print("[green]Stopped[/green]")
