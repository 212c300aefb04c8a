# membertracker_client/cli/main_cli.py
import typer
from . import api_cli, session_cli

# Main CLI application with help enabled when no arguments are provided
app = typer.Typer(
    name="mtclient",
    help="Member Tracker client command line interface.",
    no_args_is_help=True
)

app.add_typer(session_cli.app, name="session")
app.add_typer(api_cli.app, name="api")


@app.callback()
def main_callback():
    """
    Member Tracker client CLI.
    Use 'mtclient session --help' or 'mtclient api --help' for commands.
    """
    pass


def cli_entry_point():
    """Entry point function for console script registration in pyproject.toml"""
    app()


if __name__ == "__main__":
    cli_entry_point()
