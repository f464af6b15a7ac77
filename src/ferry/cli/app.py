import typer

from ferry.cli.generate import generate
from ferry.cli.watch import watch

app = typer.Typer(
    name="ferry",
    help="Ferry: generate TypeScript packages from Laravel enums and API resources.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("generate")(generate)
app.command("watch")(watch)


def main() -> None:
    app()
