class TodoAppError(Exception):
    """Base class for every error surfaced to the command line."""
    exit_code = 1


class DuplicateUserError(TodoAppError):
    exit_code = 2


class WeakPasswordError(TodoAppError):
    exit_code = 2


class InvalidInputError(TodoAppError):
    exit_code = 2


class InvalidCredentialsError(TodoAppError):
    """Raised for both unknown users and wrong passwords."""
    exit_code = 3

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class NotAuthenticatedError(TodoAppError):
    exit_code = 3

    def __init__(self, message: str = "Please login first using: todo login"):
        super().__init__(message)


class TodoNotFoundError(TodoAppError):
    exit_code = 4

    def __init__(self, todo_id: str):
        super().__init__(f"Todo {todo_id} not found")
        self.todo_id = todo_id


class StorageError(TodoAppError):
    exit_code = 5


class ExportError(TodoAppError):
    """Markdown export failed. Reported, never fatal."""
