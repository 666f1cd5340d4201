"""
Course Board CLI - Command-line interface.

Manage users, outcomes, courses and sessions in a store from the terminal.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from course_board.config import BoardSettings
from course_board.core.exceptions import CourseBoardError, format_exception
from course_board.core.models import RegistryResult
from course_board.service import CourseBoard

app = typer.Typer(
    name="course-board",
    help="Course Board - persisted users, outcomes, courses and sessions",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

ENTITY_COLUMNS: dict[str, tuple[str, ...]] = {
    "users": ("id", "name", "pseudo", "avatarURL", "createdAt"),
    "outcomes": ("id", "title", "type", "createdAt"),
    "courses": ("id", "title", "creatorId", "outcomes", "createdAt"),
    "sessions": ("id", "course", "owner", "place", "date", "time", "learnerCapacity"),
}


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Optional[Path] = typer.Option(
        None, "--store", "-s", help="Store file (overrides CB_DATA_DIR/CB_STORE_FILE)"
    ),
):
    """Load settings and configure logging."""
    try:
        settings = BoardSettings.from_env()
    except CourseBoardError as e:
        err_console.print(f"Configuration error: {e}", style="red", markup=False)
        raise typer.Exit(2)

    logging.basicConfig(
        level=settings.log_level_value,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    ctx.obj = {"settings": settings, "store": store}


def _open_board(ctx: typer.Context) -> CourseBoard:
    obj = ctx.obj or {}
    try:
        return CourseBoard.open(obj.get("settings"), store_path=obj.get("store"))
    except CourseBoardError as e:
        console.print(f"Cannot open store: {format_exception(e)}", style="red", markup=False)
        raise typer.Exit(1)


def _parse_payload(data: str) -> dict[str, Any]:
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        console.print(f"Invalid JSON payload: {e}", style="red", markup=False)
        raise typer.Exit(2)
    if not isinstance(payload, dict):
        console.print("Invalid JSON payload: expected an object", style="red", markup=False)
        raise typer.Exit(2)
    return payload


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, list):
        return "\n".join(str(v) for v in value) or "-"
    return escape(str(value))


def _print_result(result: RegistryResult[Any]) -> None:
    """Print the record on success; print the failure and exit 1 otherwise."""
    if not result.is_success():
        failure = result.failure
        console.print(
            f"Error [{failure.kind.value}]: {failure.message}", style="red", markup=False
        )
        raise typer.Exit(1)
    console.print_json(data=result.record.model_dump(mode="json", by_alias=True))


def _entity_app(attr: str, singular: str) -> typer.Typer:
    """Build the list/show/add/update/remove command group for one registry."""
    group = typer.Typer(help=f"Manage {attr}.", no_args_is_help=True)
    columns = ENTITY_COLUMNS[attr]

    @group.command("list")
    def list_cmd(ctx: typer.Context):
        """List all records."""
        with _open_board(ctx) as board:
            registry = getattr(board, attr)
            records = registry.list()
            total = registry.count()

        table = Table(title=f"{attr.title()} ({total})")
        for column in columns:
            table.add_column(column, style="cyan" if column == "id" else None)
        for record in records:
            data = record.model_dump(mode="json", by_alias=True)
            table.add_row(*[_cell(data.get(column)) for column in columns])
        console.print(table)

    @group.command("show")
    def show_cmd(
        ctx: typer.Context,
        entity_id: str = typer.Argument(..., help=f"{singular.title()} id"),
    ):
        """Show one record."""
        with _open_board(ctx) as board:
            record = getattr(board, attr).get(entity_id)
        if record is None:
            console.print(f"No {singular} found with id={entity_id}", style="yellow", markup=False)
            raise typer.Exit(1)
        console.print_json(data=record.model_dump(mode="json", by_alias=True))

    @group.command("add")
    def add_cmd(
        ctx: typer.Context,
        data: str = typer.Option(..., "--data", "-d", help="JSON payload"),
    ):
        """Create a record from a JSON payload."""
        payload = _parse_payload(data)
        with _open_board(ctx) as board:
            result = getattr(board, attr).add(payload)
        _print_result(result)

    @group.command("update")
    def update_cmd(
        ctx: typer.Context,
        entity_id: str = typer.Argument(..., help=f"{singular.title()} id"),
        data: str = typer.Option(..., "--data", "-d", help="JSON payload (partial)"),
    ):
        """Merge a JSON payload onto a record."""
        payload = _parse_payload(data)
        with _open_board(ctx) as board:
            result = getattr(board, attr).update(entity_id, payload)
        _print_result(result)

    @group.command("remove")
    def remove_cmd(
        ctx: typer.Context,
        entity_id: str = typer.Argument(..., help=f"{singular.title()} id"),
    ):
        """Delete a record."""
        with _open_board(ctx) as board:
            result = getattr(board, attr).remove(entity_id)
        _print_result(result)

    return group


user_app = _entity_app("users", "user")


@user_app.command("find-pseudo")
def find_pseudo(
    ctx: typer.Context,
    pseudo: str = typer.Argument(..., help="Pseudo to look up"),
):
    """Print the id of the user holding a pseudo."""
    with _open_board(ctx) as board:
        user_id = board.get_id_from_pseudo(pseudo)
    if user_id is None:
        console.print(f"No user with pseudo '{pseudo}'", style="yellow", markup=False)
        raise typer.Exit(1)
    console.print(user_id, markup=False)


app.add_typer(user_app, name="user")
app.add_typer(_entity_app("outcomes", "outcome"), name="outcome")
app.add_typer(_entity_app("courses", "course"), name="course")
app.add_typer(_entity_app("sessions", "session"), name="session")


@app.command()
def version():
    """Show Course Board version."""
    from course_board import __version__

    console.print(f"Course Board v{__version__}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
