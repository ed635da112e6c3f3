from datetime import date, datetime
from pathlib import Path
from typing import Callable, List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from todo_core.database import init_db
from todo_core.errors import InvalidInputError, TodoAppError
from todo_core.models import Priority, Session, Status, Todo, utcnow
from todo_core.reminders import (
    TIER_LABELS, Severity, Tier, build_reminders, classify, daily_summary, in_tier,
)
from todo_core.repository import TodoRepository, UserRepository
from todo_core.schemas import TodoCreate, TodoUpdate, parse_input
from todo_core.security import SessionManager

console = Console()

PRIORITY_STYLES = {Priority.LOW: "green", Priority.MEDIUM: "yellow", Priority.HIGH: "red"}
SEVERITY_STYLES = {Severity.CRITICAL: "bold red", Severity.WARNING: "yellow", Severity.INFO: "cyan"}
PRIORITY_CHOICES = [p.value for p in Priority]


def parse_due_date(value: Optional[str]) -> Optional[date]:
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidInputError(f"Invalid due date: {value}. Use YYYY-MM-DD")


def print_error(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(error))}")


class TodoApp:
    """One CLI invocation: the stores, the session gate, prompting and rendering."""

    def __init__(self, data_dir: Optional[Path] = None, clock: Callable[[], datetime] = utcnow):
        self.db = init_db(data_dir)
        self.clock = clock
        self.users = UserRepository(self.db, clock)
        self.todos = TodoRepository(self.db, clock=clock)
        self.sessions = SessionManager(self.db, self.users, clock)

    def now(self) -> datetime:
        """Local wall-clock time, so reminder days follow the user's calendar."""
        return self.clock().astimezone()

    # --- Rendering ---
    def print_todos(self, todos: List[Todo], title: str) -> None:
        now = self.now()
        table = Table(title=title, show_lines=False)
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("Priority", no_wrap=True)
        table.add_column("Title")
        table.add_column("Due", no_wrap=True)
        table.add_column("Reminder")

        for todo in todos:
            tier = classify(todo, now)
            status = "[green]done[/green]" if todo.status == Status.COMPLETED else "pending"
            priority = f"[{PRIORITY_STYLES[todo.priority]}]{todo.priority.value}[/]"
            title_cell = escape(todo.title)
            if todo.description:
                title_cell += f"\n[dim]{escape(todo.description)}[/dim]"
            due = todo.due_date.isoformat() if todo.due_date else ""
            reminder = TIER_LABELS[tier]
            if tier == Tier.OVERDUE:
                reminder = f"[bold red]{reminder}[/bold red]"
            table.add_row(todo.short_id, status, priority, title_cell, due, reminder)

        console.print(table)

    def print_todo(self, todo: Todo) -> None:
        self.print_todos([todo], title="")

    def print_reminders(self, todos: List[Todo]) -> int:
        reminders = build_reminders(todos, self.now())
        if reminders:
            console.print(f"\nYou have {len(reminders)} reminder(s):")
            for reminder in reminders:
                style = SEVERITY_STYLES[reminder.severity]
                console.print(f"  [{style}]{escape(reminder.message)}[/]")
            console.print()
        return len(reminders)

    def report_export(self) -> None:
        if self.todos.last_export_error is not None:
            console.print(f"[yellow]Warning: {escape(str(self.todos.last_export_error))}[/yellow]")

    def pick_todo(self, session: Session, prompt: str, pending_only: bool = False) -> Optional[str]:
        """Offer a numbered list when no id was given on the command line."""
        todos = self.todos.get_by_owner(session, status=Status.PENDING if pending_only else None)
        if not todos:
            console.print("No pending todos found!" if pending_only else "No todos found!")
            return None
        for index, todo in enumerate(todos, start=1):
            console.print(f"{index:>3}. {todo.short_id} - {escape(todo.title)}")
        choice = click.prompt(prompt, type=click.IntRange(1, len(todos)))
        return todos[choice - 1].id

    # --- Account commands ---
    def register(self, username: Optional[str], email: Optional[str], password: Optional[str]) -> None:
        if username is None:
            console.print("[bold cyan]Welcome to Todo CLI - Registration[/bold cyan]")
            username = click.prompt("Username")
            if email is None:
                email = click.prompt("Email (optional)", default="", show_default=False)
        if password is None:
            password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

        user = self.users.create(username, password, email or None)
        console.print(f"[green]Registration successful![/green] You can now login as {escape(user.username)}.")

    def login(self, username: Optional[str], password: Optional[str]) -> None:
        if username is None:
            console.print("[bold blue]Login to Todo CLI[/bold blue]")
            username = click.prompt("Username")
        if password is None:
            password = click.prompt("Password", hide_input=True)

        session = self.sessions.login(username, password)
        console.print(f"[green]Welcome back, {escape(session.username)}![/green]")
        self.print_reminders(self.todos.get_by_owner(session))

    def logout(self) -> None:
        self.sessions.end_session()
        console.print("[green]Logged out successfully![/green]")

    def status(self) -> bool:
        session = self.sessions.current_session()
        if session is None:
            console.print("[red]Not logged in[/red]")
            return False

        user = self.users.get_by_username(session.username)
        todos = self.todos.get_by_owner(session)
        summary = daily_summary(todos, self.now())
        completed = sum(1 for t in todos if t.status == Status.COMPLETED)

        lines = [f"Username: [green]{escape(user.username)}[/green]"]
        if user.email:
            lines.append(f"Email: [blue]{escape(user.email)}[/blue]")
        lines.append(f"Session expires: {session.expires_at.astimezone():%Y-%m-%d %H:%M}")
        lines.append("")
        lines.append(f"Pending: [yellow]{summary.pending}[/yellow]")
        lines.append(f"Completed: [green]{completed}[/green]")
        lines.append(f"Overdue: [red]{summary.overdue}[/red]")
        lines.append(f"Total: {len(todos)}")
        lines.append("")
        lines.append(str(summary))
        console.print(Panel("\n".join(lines), title="User Status", expand=False))
        return True

    # --- Todo commands ---
    def add(
            self,
            title: Optional[str],
            description: Optional[str],
            priority: Optional[str],
            due_date: Optional[str],
    ) -> Todo:
        session = self.sessions.require_session()

        # A title on the command line means the remaining fields take their defaults
        if title is None:
            title = click.prompt("Todo title")
            if description is None:
                description = click.prompt("Description (optional)", default="", show_default=False)
            if priority is None:
                priority = click.prompt("Priority", type=click.Choice(PRIORITY_CHOICES), default="medium")
            if due_date is None:
                due_date = click.prompt("Due date (YYYY-MM-DD, optional)", default="", show_default=False)

        todo_create = parse_input(
            TodoCreate,
            title=title,
            description=description,
            priority=Priority.parse(priority) if priority else Priority.MEDIUM,
            due_date=parse_due_date(due_date),
        )
        todo = self.todos.create(session, todo_create)
        console.print("[green]Todo added successfully![/green]")
        self.print_todo(todo)
        self.report_export()
        return todo

    def list_todos(self, status: Optional[str], priority: Optional[str]) -> List[Todo]:
        session = self.sessions.require_session()
        todos = self.todos.get_by_owner(
            session,
            status=Status.parse(status) if status else None,
            priority=Priority.parse(priority) if priority else None,
        )
        if not todos:
            console.print("No todos found!")
        else:
            self.print_todos(todos, title="Your Todos")
        return todos

    def complete(self, todo_id: Optional[str]) -> Optional[Todo]:
        session = self.sessions.require_session()
        if todo_id is None:
            todo_id = self.pick_todo(session, "Select todo to complete", pending_only=True)
            if todo_id is None:
                return None

        before = self.todos.get_user_todo(session, todo_id)
        todo = self.todos.complete(session, todo_id)
        if before.status == Status.COMPLETED:
            console.print(f"Todo {todo.short_id} was already completed.")
        else:
            console.print(f"[green]Todo completed![/green] {escape(todo.title)}")
            self.report_export()
        return todo

    def delete(self, todo_id: Optional[str], yes: bool = False) -> Optional[Todo]:
        session = self.sessions.require_session()
        if todo_id is None:
            todo_id = self.pick_todo(session, "Select todo to delete")
            if todo_id is None:
                return None

        todo = self.todos.get_user_todo(session, todo_id)
        if not yes and not click.confirm(f"Delete '{todo.title}'?", default=False):
            console.print("Nothing deleted.")
            return None

        removed = self.todos.delete_user_todo(session, todo.id)
        console.print(f"[green]Todo deleted![/green] {escape(removed.title)}")
        self.report_export()
        return removed

    def edit(self, todo_id: Optional[str], **changes) -> Optional[Todo]:
        session = self.sessions.require_session()
        if todo_id is None:
            todo_id = self.pick_todo(session, "Select todo to edit")
            if todo_id is None:
                return None
        todo = self.todos.get_user_todo(session, todo_id)

        clear_due_date = changes.pop("clear_due_date", False)
        update = {key: value for key, value in changes.items() if value is not None}
        if not update and not clear_due_date:
            console.print(f"Editing todo: [yellow]{escape(todo.title)}[/yellow]")
            update = {
                "title": click.prompt("Title", default=todo.title),
                "description": click.prompt("Description", default=todo.description or "", show_default=False),
                "priority": click.prompt(
                    "Priority", type=click.Choice(PRIORITY_CHOICES), default=todo.priority.value
                ),
                "due_date": click.prompt(
                    "Due date (YYYY-MM-DD, empty for none)",
                    default=todo.due_date.isoformat() if todo.due_date else "",
                    show_default=False,
                ),
            }
            # An empty answer clears the date
            clear_due_date = not update["due_date"].strip()

        fields = {}
        if "title" in update:
            fields["title"] = update["title"]
        if "description" in update:
            fields["description"] = update["description"]
        if "priority" in update:
            fields["priority"] = Priority.parse(update["priority"])
        if "status" in update:
            fields["status"] = Status.parse(update["status"])
        if clear_due_date:
            fields["due_date"] = None
        elif "due_date" in update:
            fields["due_date"] = parse_due_date(update["due_date"])

        updated = self.todos.update(session, todo.id, parse_input(TodoUpdate, **fields))
        console.print("[green]Todo updated successfully![/green]")
        self.print_todo(updated)
        self.report_export()
        return updated

    def overdue(self) -> List[Todo]:
        session = self.sessions.require_session()
        todos = in_tier(self.todos.get_by_owner(session), Tier.OVERDUE, self.now())
        if not todos:
            console.print("[green]No overdue todos![/green]")
        else:
            self.print_todos(todos, title=f"{len(todos)} Overdue Todos")
        return todos

    def today(self) -> List[Todo]:
        session = self.sessions.require_session()
        todos = in_tier(self.todos.get_by_owner(session), Tier.DUE_TODAY, self.now())
        if not todos:
            console.print("No todos due today!")
        else:
            self.print_todos(todos, title=f"{len(todos)} Todos Due Today")
        return todos

    def reminders(self) -> int:
        session = self.sessions.require_session()
        count = self.print_reminders(self.todos.get_by_owner(session))
        if count == 0:
            console.print("No reminders.")
        return count

    # --- Interactive mode ---
    def _menu(self, options: List[str]) -> str:
        for index, option in enumerate(options, start=1):
            console.print(f"{index:>3}. {option}")
        choice = click.prompt("What would you like to do?", type=click.IntRange(1, len(options)))
        return options[choice - 1]

    def interactive(self) -> None:
        console.print("[bold cyan]Welcome to Todo CLI[/bold cyan]")

        while self.sessions.current_session() is None:
            choice = self._menu(["Login", "Register", "Exit"])
            if choice == "Exit":
                return
            try:
                if choice == "Login":
                    self.login(None, None)
                else:
                    self.register(None, None, None)
            except TodoAppError as e:
                print_error(e)

        actions = {
            "Add Todo": lambda: self.add(None, None, None, None),
            "List Todos": lambda: self.list_todos(None, None),
            "Complete Todo": lambda: self.complete(None),
            "Edit Todo": lambda: self.edit(None),
            "Delete Todo": lambda: self.delete(None),
            "Show Overdue": self.overdue,
            "Show Today": self.today,
            "Reminders": self.reminders,
            "Status": self.status,
        }
        while True:
            choice = self._menu(list(actions) + ["Logout", "Exit"])
            if choice == "Exit":
                return
            if choice == "Logout":
                self.logout()
                return
            try:
                actions[choice]()
            except TodoAppError as e:
                print_error(e)
