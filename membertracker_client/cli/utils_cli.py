# membertracker_client/cli/utils_cli.py
import asyncio
import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from ..main import MemberTrackerClient
from ..navigation.errors import NavigationError
from ..security.errors import ValidationFailure
from ..session.messages import describe_failure
from ..settings import Settings
from ..transport.errors import ApiError
from . import config

T = TypeVar("T")


def build_client() -> MemberTrackerClient:
    """Create the client used by one CLI invocation."""
    if config.MT_CLI_API_BASE_URL:
        return MemberTrackerClient(settings=Settings(api_base_url=config.MT_CLI_API_BASE_URL))
    return MemberTrackerClient()


def run_with_client(operation: Callable[[MemberTrackerClient], Awaitable[T]]) -> T:
    """
    Start a client, run `operation` against it and close it again.

    Failures are reported in red with their user-facing message and turned
    into exit code 1.
    """
    async def _runner() -> T:
        async with build_client() as client:
            return await operation(client)

    try:
        return asyncio.run(_runner())
    except ValidationFailure as e:
        typer.secho(f"CLI: Invalid {e.field} - {e.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except ApiError as e:
        typer.secho(f"CLI: API Error - {describe_failure(e)}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except NavigationError as e:
        typer.secho(f"CLI: Navigation Error - {e.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


async def login_with_credentials(
    client: MemberTrackerClient,
    email: Optional[str] = None,
    password: Optional[str] = None
) -> None:
    email = email or config.MT_CLI_EMAIL
    password = password or config.MT_CLI_PASSWORD
    if not email or not password:
        typer.secho(
            "CLI: Error - No credentials. Pass --email/--password or set MT_CLI_EMAIL and MT_CLI_PASSWORD in .env.",
            fg=typer.colors.RED
        )
        raise typer.Exit(code=1)
    typer.echo(f"CLI: Signing in as {email}")
    identity = await client.session.login({"email": email, "password": password})
    typer.secho(f"CLI: Signed in as {identity.display_name} (role: {identity.role})", fg=typer.colors.GREEN)


def echo_json(data: Any) -> None:
    typer.echo(typer.style("CLI: Response JSON:", fg=typer.colors.CYAN))
    typer.echo(json.dumps(data, indent=2, default=str))
