from typing import Annotated

import typer

from ferry.cli.console import console
from ferry.config import load_config
from ferry.core.controller import RegenerationController
from ferry.errors import FerryError

CwdOption = Annotated[str | None, typer.Option(help="Project root containing app/ (default: $FERRY_CWD or .).")]
NamespaceOption = Annotated[
    str | None, typer.Option(help="npm scope of the generated packages (default: $FERRY_NAMESPACE or @ferry).")
]
CompactOption = Annotated[bool, typer.Option("--compact", help="Render labeled enum runtime objects on one line.")]


def run_and_report(controller: RegenerationController) -> None:
    try:
        results = controller.run_once()
    except FerryError as exc:
        console.print(f"[red]Generation failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    for result in results:
        console.print(f"[green]Generated[/green] {len(result.names)} {result.package} into {result.output_dir}")


def generate(
    cwd: CwdOption = None,
    namespace: NamespaceOption = None,
    compact: CompactOption = False,
) -> None:
    """Generate the enums and resources packages once."""
    config = load_config(cwd, namespace, False if compact else None)
    run_and_report(RegenerationController(config))
