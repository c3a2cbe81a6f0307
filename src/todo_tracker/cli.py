"""CLI for the todo tracker.

Each invocation resolves configuration, opens the store (applying any
pending migrations), runs exactly one operation, and exits.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import NoReturn, TypeVar

import click
from click.shell_completion import get_completion_class

from . import __version__
from .config import DB_ENV_VAR, TodoConfig, resolve_config
from .database import TodoDB
from .errors import TodoError
from .formatting import format_task_line
from .models import TaskStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROG_NAME = "todo"
COMPLETION_SHELLS = ("bash", "zsh", "fish")

# Largest value SQLite can store in an INTEGER column
MAX_TASK_ID = 2**63 - 1


def _fail(exc: Exception) -> NoReturn:
    """Report a fatal error and exit non-zero."""
    logger.debug("Command failed", exc_info=exc)
    click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


def _with_store(ctx: click.Context, operation: Callable[[TodoDB], Awaitable[T]]) -> T:
    """Resolve config, open the store, run one operation, and close it."""
    try:
        config: TodoConfig = resolve_config(ctx.obj.get("db"))
    except TodoError as exc:
        _fail(exc)

    async def _run() -> T:
        async with TodoDB(config.db_path) as db:
            return await operation(db)

    try:
        return asyncio.run(_run())
    except TodoError as exc:
        _fail(exc)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--db",
    type=click.Path(dir_okay=False),
    envvar=DB_ENV_VAR,
    help=f"Database path (default: ~/.todo/todo.db, env: {DB_ENV_VAR})",
)
@click.version_option(__version__, prog_name=PROG_NAME)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, db: str | None) -> None:
    """Todo - a personal command-line task tracker."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.ensure_object(dict)
    ctx.obj["db"] = db


@cli.command()
@click.argument("message")
@click.pass_context
def add(ctx: click.Context, message: str) -> None:
    """Add a new task."""
    _with_store(ctx, lambda db: db.insert_task(message))


@cli.command(name="list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List tasks that are not done."""
    tasks = _with_store(ctx, lambda db: db.list_open_tasks())
    for task in tasks:
        click.echo(format_task_line(task))


cli.add_command(list_command, name="ls")


@cli.command(name="set")
@click.argument("task_id", metavar="ID", type=click.IntRange(min=0, max=MAX_TASK_ID))
@click.argument(
    "status",
    type=click.Choice(TaskStatus.choices(), case_sensitive=False),
)
@click.pass_context
def set_command(ctx: click.Context, task_id: int, status: str) -> None:
    """Set the status of task ID."""
    new_status = TaskStatus.parse(status)
    _with_store(ctx, lambda db: db.set_status(task_id, new_status))


@cli.command()
@click.pass_context
def prune(ctx: click.Context) -> None:
    """Delete done tasks and compact task ids."""
    _with_store(ctx, lambda db: db.prune_done())


@cli.command()
@click.argument("shell", type=click.Choice(COMPLETION_SHELLS))
def completions(shell: str) -> None:
    """Print a shell completion script for SHELL."""
    complete_var = f"_{PROG_NAME.upper()}_COMPLETE"
    comp_cls = get_completion_class(shell)
    if comp_cls is None:
        raise click.BadParameter(f"unsupported shell: {shell}", param_hint="SHELL")
    comp = comp_cls(cli, {}, PROG_NAME, complete_var)
    click.echo(comp.source())


def main() -> None:
    """Entry point for CLI."""
    cli(prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
