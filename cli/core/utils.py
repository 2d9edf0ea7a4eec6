import re

import httpx
import typer

USERNAME_REGEX = re.compile(r"^[a-zA-Z0-9_.-]{1,64}$")


def validate_username(username: str) -> bool:
    """
    Validates username format: letters, numbers, '.', '_' or '-', up to 64 characters.
    """
    if not USERNAME_REGEX.match(username):
        typer.echo("Invalid username.\nUse only letters, numbers, '.', '_' or '-', with 1 to 64 characters.")
        return False
    return True


def error_message(exc: Exception) -> str:
    """
    Human readable reason for a failed API call.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None
        return f"{exc.response.status_code} {message or exc.response.reason_phrase}"
    if isinstance(exc, httpx.HTTPError):
        return f"API unreachable ({exc})"
    return str(exc)
