import asyncio
import json
from pathlib import Path
import subprocess
from typing import Annotated

from rich import print
import typer

from app.core.config import settings

app = typer.Typer()


@app.command()
def makemigrations(comment: Annotated[str, typer.Argument()] = "auto"):
    """
    Creates a new Alembic migration revision with an autogenerated migration script.

    Args:
        comment (str, optional): The message to use for the migration revision. Defaults to "auto".

    Raises:
        subprocess.CalledProcessError: If the Alembic command fails.
    """
    try:
        revision_command = f'alembic revision --autogenerate -m "{comment}"'
        print(f"Running Alembic migrations: {revision_command}")
        subprocess.run(revision_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise
    print("[green]Make migrations complete[/green]")


@app.command()
def showmigrations():
    """
    Shows the Alembic migration history.

    Raises:
        subprocess.CalledProcessError: If the Alembic command fails.
    """
    try:
        history_command = "alembic history"
        print(f"Running Alembic history: {history_command}")
        subprocess.run(history_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise
    print("[green]Show migrations complete[/green]")


@app.command()
def migrate():
    """
    Runs the Alembic database migration to upgrade the schema to the latest version.

    This function executes the "alembic upgrade head" command using a subprocess.
    If the migration fails, it prints an error message; otherwise, it confirms successful migration.
    """
    try:
        upgrade_command = "alembic upgrade head"
        print(f"Running Alembic upgrade: {upgrade_command}")
        subprocess.run(upgrade_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise
    print("[green]Migration complete[/green]")


@app.command()
def runserver():
    try:
        server_command = (
            "uvicorn app.main:app --host 127.0.0.1 --port 8000 --reload"
            if settings.DEBUG
            else "uvicorn app.main:app --host 0.0.0.0 --port 8000"
        )
        print(f"Running FastAPI server: {server_command}")
        subprocess.run(server_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise


@app.command()
def runscheduler():
    """
    Run the standalone scheduler that periodically removes expired OTP records.
    """
    from app.infrastructure.scheduler.main import main as scheduler_main

    print("[cyan]Starting standalone scheduler[/cyan]")
    asyncio.run(scheduler_main())


@app.command()
def runbroker():
    """
    Run a local RabbitMQ broker for OTP delivery events
    """
    try:
        broker_command = "docker run -it --rm --name rabbitmq -p 5672:5672 -p 15672:15672 rabbitmq:4-management"
        print(f"Running RabbitMQ broker: {broker_command}")
        subprocess.run(broker_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise


@app.command()
def cleanupotps(
    grace_minutes: Annotated[
        int,
        typer.Option(
            "--grace-minutes",
            "-g",
            help="Keep records that expired less than this many minutes ago",
        ),
    ] = settings.OTP_CLEANUP_GRACE_MINUTES,
):
    """
    Permanently delete expired OTP records once, outside the scheduler.

    Examples:
        python manage.py cleanupotps
        python manage.py cleanupotps --grace-minutes 1440
    """
    from app.core.db import dispose_db
    from app.infrastructure.scheduler.jobs import cleanup_expired_otps

    async def _run() -> int:
        try:
            return await cleanup_expired_otps(grace_minutes=grace_minutes)
        finally:
            await dispose_db()

    deleted = asyncio.run(_run())
    print(f"[green]Deleted {deleted} expired OTP record(s)[/green]")


@app.command()
def generateopenapi():
    """
    Generates the OpenAPI schema for the FastAPI application and saves it to openapi.json.
    """
    from app.main import app

    openapi_path = Path("openapi.json")
    with openapi_path.open("w", encoding="utf-8") as f:
        json.dump(app.openapi(), f, ensure_ascii=False, indent=2)
    print(f"[green]OpenAPI schema generated at {openapi_path.name}[/green]")


@app.callback()
def main(ctx: typer.Context):
    print(f"Executing the command: {ctx.invoked_subcommand}")


if __name__ == "__main__":
    app()
