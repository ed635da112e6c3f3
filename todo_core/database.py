import json
import os
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Any, Callable, Generator, Optional

from logger import logger
from .config import get_data_dir
from .errors import StorageError


def atomic_write(path: Path, content: str) -> None:
    """Write to a temp file next to path, then swap it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        with suppress(OSError):
            os.unlink(tmp_name)
        raise


class JsonFile:
    """A single JSON document, rewritten in full on every save."""

    def __init__(self, path: Path, default: Callable[[], Any]):
        self.path = path
        self.default = default

    def load(self) -> Any:
        if not self.path.exists():
            return self.default()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e

    def save(self, data: Any) -> None:
        try:
            atomic_write(self.path, json.dumps(data, indent=2))
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e
        logger.debug(f"Wrote {self.path}")

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove {self.path}: {e}") from e

    @contextmanager
    def transaction(self) -> Generator[Any, None, None]:
        """Load, let the caller mutate in place, save only if no exception escaped."""
        data = self.load()
        yield data
        self.save(data)


class Database:
    """The data directory and the files the stores own inside it."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else get_data_dir()
        self.users = JsonFile(self.data_dir / "users.json", list)
        self.todos = JsonFile(self.data_dir / "todos.json", list)
        self.session = JsonFile(self.data_dir / "session.json", lambda: None)
        self.export_path = self.data_dir / "todos.md"
        self.secret_key_path = self.data_dir / ".secret_key"


def init_db(data_dir: Optional[Path] = None) -> Database:
    """Open the data directory, creating it if needed."""
    db = Database(data_dir)
    try:
        db.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"Could not create data directory {db.data_dir}: {e}") from e
    return db
