import getpass
import typer
import httpx

from cli.core.session import clear_session, is_logged_in
from cli.core.api import api_login, api_logout, api_me, api_protected, api_refresh, api_burst
from cli.core.utils import error_message, validate_username


app = typer.Typer(help="Authentication commands (login, logout, refresh)")


def _print_user(user: dict) -> None:
    typer.echo("\n👤 User Information:")
    typer.echo(f"   ID:       {user.get('id', '-')}")
    typer.echo(f"   Username: {user.get('username', '-')}")
    typer.echo(f"   Name:     {user.get('name', '-')}")


@app.command("login")
def login(
    username: str = typer.Option(None, "--username", "-u", help="Username"),
):
    """
    Login to the backend. Only allowed if no session is active.
    """
    if is_logged_in():
        typer.echo("Session already active. Logout first to remove current session.")
        raise typer.Exit(code=1)

    if username is None:
        username = typer.prompt("Username")

    if not validate_username(username):
        raise typer.Exit(code=1)

    password = getpass.getpass("Password: ")
    if not password:
        typer.echo("Password cannot be empty.")
        raise typer.Exit(code=1)

    try:
        result = api_login(username, password)
    except httpx.HTTPError as e:
        typer.echo(f"Login failed: {error_message(e)}")
        raise typer.Exit(code=1)

    typer.echo(f"Login successful as '{username}'.")
    typer.echo(f"Access token valid for {result.get('accessTokenMaxAge')} minute(s).")


@app.command("me")
def me():
    """
    Show the authenticated user (refreshes the session if needed).
    """
    try:
        result = api_me()
    except httpx.HTTPError as e:
        typer.echo(f"Failed to get user information: {error_message(e)}")
        raise typer.Exit(code=1)

    _print_user(result.get("user", {}))


@app.command("protected")
def protected():
    """
    Call the protected example route.
    """
    try:
        result = api_protected()
    except httpx.HTTPError as e:
        typer.echo(f"Protected call failed: {error_message(e)}")
        raise typer.Exit(code=1)

    typer.echo(result.get("message", ""))


@app.command("refresh")
def refresh():
    """
    Rotate the refresh token now.
    """
    try:
        result = api_refresh()
    except httpx.HTTPError as e:
        typer.echo(f"Refresh failed: {error_message(e)}")
        raise typer.Exit(code=1)

    typer.echo(result.get("message", "Token refreshed."))


@app.command("burst")
def burst(
    count: int = typer.Option(5, "--count", "-n", min=1, help="Number of concurrent calls"),
):
    """
    Fire concurrent protected calls and report how many refreshes they caused.
    """
    results, stats = api_burst(count)
    failures = [r for r in results if isinstance(r, Exception)]

    typer.echo(f"Calls:     {count} ({count - len(failures)} succeeded, {len(failures)} failed)")
    typer.echo(f"Requests:  {sum(stats.values())}")
    typer.echo(f"Refreshes: {stats.get('/refresh-token', 0)}")
    for failure in failures[:1]:
        typer.echo(f"First failure: {error_message(failure)}")

    if failures:
        raise typer.Exit(code=1)


@app.command("logout")
def logout():
    """
    Revoke the refresh token on the backend and delete the local session.
    """
    try:
        result = api_logout()
        typer.echo(result.get("message", "Logged out from backend."))
    except httpx.HTTPError as e:
        typer.echo(f"Warning: Failed to logout from backend: {error_message(e)}")

    clear_session()
    typer.echo("Session ended.")
