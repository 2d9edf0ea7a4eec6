# cli/main.py


import typer
from cli.auth.commands import app as auth_app

app = typer.Typer(help="Client for the token rotation demo backend")
app.add_typer(auth_app, name="auth")

if __name__ == "__main__":
    app()
