from pathlib import Path

from rich.console import Console

from ferry.errors import FerryError

console = Console()


class ConsoleReporter:
    """Prints the watch banner: file changes, regenerations and failures per package."""

    def __init__(self, cwd: Path, output: Console | None = None) -> None:
        self._cwd = cwd
        self._console = output or console

    def _display(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self._cwd.resolve()).as_posix()
        except ValueError:
            return path.name

    def changed(self, package: str, paths: set[Path]) -> None:
        for path in sorted(paths):
            self._console.print(f"[cyan]\\[{package}][/cyan] File changed: [dim]{self._display(path)}[/dim]")

    def regenerated(self, package: str, count: int, output_dir: Path) -> None:
        self._console.print(
            f"[cyan]\\[{package}][/cyan] [green]✓[/green] Regenerated {count} types in {self._display(output_dir)}"
        )

    def failed(self, package: str, error: FerryError) -> None:
        self._console.print(f"[red]\\[{package}] ✗ Error regenerating types:[/red] {error}")
