from functools import wraps
from pathlib import Path
from typing import Optional

import click

from logger import logger
from todo_core.errors import TodoAppError
from .app import TodoApp, print_error


def handle_errors(f):
    """Turn domain errors into a message and the error's exit code."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except TodoAppError as e:
            logger.debug(f"{type(e).__name__}: {e}")
            print_error(e)
            click.get_current_context().exit(e.exit_code)
    return wrapper


@click.group(invoke_without_command=True)
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Directory for users, todos and session files (default: $TODO_DATA_DIR or ~/.todo_cli)")
@click.pass_context
@handle_errors
def cli(ctx: click.Context, data_dir: Optional[Path]):
    """A CLI todo application with user authentication"""
    ctx.obj = TodoApp(data_dir)
    if ctx.invoked_subcommand is None:
        ctx.obj.interactive()


@cli.command()
@click.option("--username", "-u", help="Username")
@click.option("--email", "-e", help="Email address (optional)")
@click.option("--password", "-p", help="Password (prompted if omitted)")
@click.pass_obj
@handle_errors
def register(app: TodoApp, username, email, password):
    """Register a new user"""
    app.register(username, email, password)


@cli.command()
@click.option("--username", "-u", help="Username")
@click.option("--password", "-p", help="Password (prompted if omitted)")
@click.pass_obj
@handle_errors
def login(app: TodoApp, username, password):
    """Login to your account"""
    app.login(username, password)


@cli.command()
@click.pass_obj
@handle_errors
def logout(app: TodoApp):
    """Logout from current session"""
    app.logout()


@cli.command()
@click.pass_obj
@handle_errors
def status(app: TodoApp):
    """Show user status"""
    app.status()


@cli.command()
@click.option("--title", "-t", help="Todo title")
@click.option("--description", "-d", help="Longer description")
@click.option("--priority", "-p", help="low, medium or high")
@click.option("--due-date", "-D", help="Due date as YYYY-MM-DD")
@click.pass_obj
@handle_errors
def add(app: TodoApp, title, description, priority, due_date):
    """Add a new todo item"""
    app.add(title, description, priority, due_date)


@cli.command(name="list")
@click.option("--status", "-s", help="pending or completed")
@click.option("--priority", "-p", help="low, medium or high")
@click.pass_obj
@handle_errors
def list_todos(app: TodoApp, status, priority):
    """List all todos"""
    app.list_todos(status, priority)


@cli.command()
@click.argument("todo_id", required=False)
@click.pass_obj
@handle_errors
def complete(app: TodoApp, todo_id):
    """Complete a todo"""
    app.complete(todo_id)


@cli.command()
@click.argument("todo_id", required=False)
@click.option("--title", "-t", help="New title")
@click.option("--description", "-d", help="New description (empty string clears it)")
@click.option("--priority", "-p", help="low, medium or high")
@click.option("--due-date", "-D", help="New due date as YYYY-MM-DD")
@click.option("--clear-due-date", is_flag=True, help="Remove the due date")
@click.option("--status", "-s", help="pending or completed")
@click.pass_obj
@handle_errors
def edit(app: TodoApp, todo_id, title, description, priority, due_date, clear_due_date, status):
    """Edit a todo"""
    app.edit(
        todo_id,
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        clear_due_date=clear_due_date,
        status=status,
    )


@cli.command()
@click.argument("todo_id", required=False)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
@handle_errors
def delete(app: TodoApp, todo_id, yes):
    """Delete a todo"""
    app.delete(todo_id, yes=yes)


@cli.command()
@click.pass_obj
@handle_errors
def overdue(app: TodoApp):
    """Show overdue todos"""
    app.overdue()


@cli.command()
@click.pass_obj
@handle_errors
def today(app: TodoApp):
    """Show today's todos"""
    app.today()


@cli.command()
@click.pass_obj
@handle_errors
def reminders(app: TodoApp):
    """Check for reminders"""
    app.reminders()


if __name__ == "__main__":
    cli()
