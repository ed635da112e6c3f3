from datetime import datetime
from itertools import groupby
from pathlib import Path
from typing import Iterable

from .database import atomic_write
from .errors import ExportError
from .models import Status, Todo


def render_markdown(todos: Iterable[Todo], generated_at: datetime) -> str:
    """Render todos grouped by owner, then by status."""
    lines = ["# Todos", "", f"_Generated {generated_at.strftime('%Y-%m-%d %H:%M')}_", ""]

    todos = sorted(todos, key=lambda t: t.owner_username)
    if not todos:
        lines.extend(["Nothing to do.", ""])

    for owner, group in groupby(todos, key=lambda t: t.owner_username):
        owned = list(group)
        lines.extend([f"## {owner}", ""])

        for status in (Status.PENDING, Status.COMPLETED):
            items = [t for t in owned if t.status == status]
            if not items:
                continue
            lines.extend([f"### {status.value.capitalize()}", ""])
            for todo in items:
                checkbox = "[x]" if status == Status.COMPLETED else "[ ]"
                details = [todo.priority.value.capitalize()]
                if todo.due_date:
                    details.append(f"due {todo.due_date.isoformat()}")
                lines.append(f"- {checkbox} **{todo.title}** ({', '.join(details)}) `{todo.short_id}`")
                if todo.description:
                    lines.append(f"  {todo.description}")
            lines.append("")

    return "\n".join(lines)


class MarkdownExporter:
    """Writes the markdown rendering of the whole todo collection. The file is never read back."""

    def __init__(self, path: Path):
        self.path = path

    def export(self, todos: Iterable[Todo], generated_at: datetime) -> None:
        try:
            atomic_write(self.path, render_markdown(todos, generated_at))
        except OSError as e:
            raise ExportError(f"Could not write {self.path}: {e}") from e
