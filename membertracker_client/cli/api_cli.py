# membertracker_client/cli/api_cli.py
import typer
from typing_extensions import Annotated

from .utils_cli import echo_json, login_with_credentials, run_with_client

app = typer.Typer(
    name="api",
    help="Call backend endpoints through the session-aware transport.",
    no_args_is_help=True
)


@app.command("get")
def get_endpoint(
    endpoint: Annotated[str, typer.Argument(help="Endpoint path relative to API_BASE_URL, e.g. /v1/members.")],
    login_first: Annotated[
        bool,
        typer.Option("--login/--no-login", help="Sign in with the configured credentials first.")
    ] = True
):
    """GET an endpoint with retry and session renewal applied."""
    async def _get(client):
        if login_first:
            await login_with_credentials(client)
        typer.echo(f"CLI: GET {endpoint}")
        data = await client.transport.get(endpoint)
        echo_json(data)

    run_with_client(_get)
