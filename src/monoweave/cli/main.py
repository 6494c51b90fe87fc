import typer

from monoweave.common import L, bus, catalog as nexus
from .rendering import CliRenderer

# Import commands
from .commands.apply import apply_command

app = typer.Typer(
    name="monoweave",
    help=nexus(L.cli.app.description),
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help=nexus(L.cli.option.verbose.help)
    ),
):
    # The CLI is the composition root. It decides *which* renderer to use.
    # We configure it here to capture the global verbose flag.
    cli_renderer = CliRenderer(verbose=verbose)
    bus.set_renderer(cli_renderer)


# Register commands
app.command(name="apply", help=nexus(L.cli.command.apply.help))(apply_command)


if __name__ == "__main__":
    app()
