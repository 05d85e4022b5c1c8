"""Exceptions raised by the vault core.

Every failure a caller can cause (bad input, a path outside the vault, a
missing note or task) derives from VaultError. The MCP tools catch VaultError
and turn it into an error message; anything else is a bug and propagates.
"""

from typing import Sequence


class VaultError(Exception):
    """Base class for recoverable vault operation failures."""


class InvalidInputError(VaultError):
    """A required argument was blank, out of range, or unrecognized."""


class EmptyQueryError(InvalidInputError):
    def __init__(self) -> None:
        super().__init__("Query cannot be empty")


class InvalidDateError(InvalidInputError):
    def __init__(self, token: str):
        self.token = token
        super().__init__(
            f"Invalid date '{token}'. Use 'today', 'yesterday', or 'YYYY-MM-DD'"
        )


class InvalidStatusError(InvalidInputError):
    def __init__(self, status: str, valid: Sequence[str]):
        self.status = status
        self.valid = list(valid)
        super().__init__(
            f"Invalid status '{status}'. Must be one of: {', '.join(self.valid)}"
        )


class PathOutsideVaultError(VaultError):
    """Raised when a resolved path escapes the vault root."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path is outside the vault directory: {path}")


class NotFoundError(VaultError):
    """A note, daily note, task, or section does not exist."""


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_text: str):
        self.task_text = task_text
        super().__init__(f"Task '{task_text}' not found in file")


class SectionNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("'Short List' section not found in daily note")


class NoTasksInSectionError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("No tasks found in Short List section")


class NoteAlreadyExistsError(VaultError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Note '{name}' already exists")


class MalformedSectionError(VaultError):
    def __init__(self, line: int):
        self.line = line
        super().__init__(
            f"Task list section is malformed or missing blank line separator (line {line})"
        )


class IOFailureError(VaultError):
    """Underlying read, write, or directory creation failed."""


class FolderCreateError(IOFailureError):
    pass
