# membertracker_client/cli/session_cli.py
import typer
from typing import Optional
from typing_extensions import Annotated

from .utils_cli import echo_json, login_with_credentials, run_with_client

app = typer.Typer(
    name="session",
    help="Sign in, inspect the session and try guarded navigation.",
    no_args_is_help=True
)


@app.command("login")
def login(
    email: Annotated[Optional[str], typer.Option(help="Account email. Defaults to MT_CLI_EMAIL.")] = None,
    password: Annotated[Optional[str], typer.Option(help="Account password. Defaults to MT_CLI_PASSWORD.")] = None
):
    """Sign in and print the authenticated identity."""
    async def _login(client):
        await login_with_credentials(client, email, password)
        echo_json(client.session.identity.model_dump(by_alias=True))

    run_with_client(_login)


@app.command("whoami")
def whoami():
    """Ask the backend whether a session already exists."""
    async def _whoami(client):
        identity = client.session.identity
        if identity is None:
            typer.secho("CLI: Not authenticated.", fg=typer.colors.YELLOW)
            return
        typer.secho(f"CLI: Authenticated as {identity.display_name}", fg=typer.colors.GREEN)
        echo_json(identity.model_dump(by_alias=True))

    run_with_client(_whoami)


@app.command("navigate")
def navigate(
    path: Annotated[str, typer.Argument(help="In-app path, e.g. /members or /login?redirect=/payments.")],
    login_first: Annotated[
        bool,
        typer.Option("--login/--no-login", help="Sign in with the configured credentials before navigating.")
    ] = False
):
    """Run the navigation guard for PATH and print where it lands."""
    async def _navigate(client):
        if login_first:
            await login_with_credentials(client)
        location = await client.router.navigate(path)
        color = typer.colors.GREEN if location.full_path == path else typer.colors.YELLOW
        typer.secho(f"CLI: Requested {path} -> landed on {location.full_path}", fg=color)

    run_with_client(_navigate)
