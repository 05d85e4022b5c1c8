"""Vault access: path containment, note lookup, and whole-file read/write.

All paths a caller hands in go through resolve_in_vault() before anything is
read or written. Files are read and written with newline="" so the bytes on
disk round-trip exactly; content is split on "\\n" only.
"""

import logging
import re
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from errors import (
    EmptyQueryError,
    FolderCreateError,
    InvalidDateError,
    InvalidInputError,
    IOFailureError,
    NotFoundError,
    NoteAlreadyExistsError,
    PathOutsideVaultError,
)
from tasks import TaskStatus, add_open_task, mark_task

logger = logging.getLogger(__name__)

DAILY_FOLDER = "dailies"
DAILY_NOTE_FORMAT = "%Y-%m-%d"
DATE_TOKEN_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DAILY_NOTE_TEMPLATE = "# {title}\n\n#### Short List\n- [ ] \n"

PathLike = Union[str, Path]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class VaultConfig(BaseModel):
    """The vault root. Built once at startup and never changed."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    root: Path

    @classmethod
    def from_path(cls, raw: Optional[str]) -> "VaultConfig":
        if not raw or not raw.strip():
            raise InvalidInputError(
                "Vault path is not set. Pass it as the first argument "
                "or set OBSIDIAN_VAULT_PATH."
            )
        root = Path(raw).expanduser().resolve()
        if not root.is_dir():
            raise InvalidInputError(f"Vault directory not found at {root}")
        return cls(root=root)


# ---------------------------------------------------------------------------
# Path guard
# ---------------------------------------------------------------------------


def is_inside(root: Path, path: Path) -> bool:
    """Component-wise, case-insensitive prefix check of two resolved paths."""
    root_parts = [p.casefold() for p in root.parts]
    parts = [p.casefold() for p in path.parts]
    return parts[: len(root_parts)] == root_parts


def resolve_in_vault(root: Path, candidate: PathLike) -> Path:
    """Resolve ``candidate`` against ``root`` and require it to stay inside.

    Relative paths are joined to the root; absolute ones are taken as-is.
    Symlinks and ``..`` are resolved before the check, so a link inside the
    vault pointing elsewhere is rejected.
    """
    resolved = (root / candidate).resolve()
    if not is_inside(root, resolved):
        raise PathOutsideVaultError(str(candidate))
    return resolved


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def parse_date_token(token: str, today: Optional[date] = None) -> date:
    """Turn 'today', 'yesterday' or 'YYYY-MM-DD' into a date."""
    token = (token or "").strip()
    if not token:
        raise InvalidDateError(token)
    today = today or date.today()
    word = token.lower()
    if word == "today":
        return today
    if word == "yesterday":
        return today - timedelta(days=1)
    if not DATE_TOKEN_PATTERN.match(token):
        raise InvalidDateError(token)
    try:
        return datetime.strptime(token, DAILY_NOTE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(token) from None


# ---------------------------------------------------------------------------
# Note store
# ---------------------------------------------------------------------------


def _read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def _write_text(path: Path, content: str, mode: str = "w") -> None:
    with open(path, mode, encoding="utf-8", newline="") as f:
        f.write(content)


class NoteStore:
    """Reads, creates and rewrites notes under a single vault root."""

    def __init__(self, config: VaultConfig):
        self.config = config

    @property
    def root(self) -> Path:
        return self.config.root

    def resolve(self, candidate: PathLike) -> Path:
        return resolve_in_vault(self.root, candidate)

    def relative(self, path: Path) -> str:
        # the guard compares case-insensitively, so relative_to() may refuse
        return str(Path(*path.parts[len(self.root.parts):]))

    def _notes(self) -> List[Path]:
        return sorted(p for p in self.root.rglob("*.md") if p.is_file())

    def read(self, path: Path) -> str:
        """Read an already-resolved note, mapping failures to vault errors."""
        if not path.is_file():
            raise NotFoundError(f"Note not found at '{self.relative(path)}'")
        try:
            return _read_text(path)
        except (UnicodeDecodeError, OSError) as e:
            raise IOFailureError(f"Could not read note: {e}") from e

    def write(self, path: Path, content: str) -> None:
        """Replace the whole content of ``path``."""
        try:
            _write_text(path, content)
        except OSError as e:
            raise IOFailureError(f"Could not write note: {e}") from e

    # -- lookup ------------------------------------------------------------

    def search(self, query: str) -> List[Path]:
        """Paths of every note whose content contains ``query``, ignoring case."""
        if not query or not query.strip():
            raise EmptyQueryError()
        needle = query.lower()
        results = []
        for note in self._notes():
            try:
                content = _read_text(note)
            except (UnicodeDecodeError, OSError) as e:
                logger.warning("Skipping %s during search: %s", note, e)
                continue
            if needle in content.lower():
                results.append(note)
        return results

    def list_recent(self, count: int) -> List[Tuple[Path, datetime]]:
        """The ``count`` most recently modified notes, newest first."""
        if count <= 0:
            raise InvalidInputError("Count must be greater than 0")
        stamped = []
        for note in self._notes():
            try:
                mtime = note.stat().st_mtime
            except OSError as e:
                logger.warning("Skipping %s while listing recent notes: %s", note, e)
                continue
            stamped.append((note, datetime.fromtimestamp(mtime)))
        stamped.sort(key=lambda item: item[1], reverse=True)
        return stamped[:count]

    def note_path(self, candidate: PathLike) -> Path:
        """Resolve a note path, adding ".md" when it has no suffix."""
        if not str(candidate).strip():
            raise InvalidInputError("Path cannot be empty")
        candidate = Path(candidate)
        if not candidate.suffix:
            candidate = candidate.with_suffix(".md")
        return self.resolve(candidate)

    def read_note(self, candidate: PathLike) -> str:
        return self.read(self.note_path(candidate))

    # -- daily notes -------------------------------------------------------

    def daily_note_path(self, date_token: str, today: Optional[date] = None) -> Path:
        day = parse_date_token(date_token, today)
        return self.resolve(Path(DAILY_FOLDER) / f"{day.strftime(DAILY_NOTE_FORMAT)}.md")

    def read_daily_note(self, date_token: str, today: Optional[date] = None) -> str:
        path = self.daily_note_path(date_token, today)
        if not path.is_file():
            raise NotFoundError(f"Daily note not found for {path.stem}")
        return self.read(path)

    def create_daily_note(self, date_token: str, today: Optional[date] = None) -> str:
        """Create ``dailies/<date>.md`` with an empty Short List section."""
        path = self.daily_note_path(date_token, today)
        if path.exists():
            raise NoteAlreadyExistsError(self.relative(path))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FolderCreateError(f"Cannot create folder - {e}") from e
        day = datetime.strptime(path.stem, DAILY_NOTE_FORMAT)
        self.write(path, DAILY_NOTE_TEMPLATE.format(title=day.strftime("%Y-%m-%d %A")))
        logger.info("Created daily note %s", self.relative(path))
        return self.relative(path)

    def add_task_to_daily(
        self, task_text: str, date_token: str, today: Optional[date] = None
    ) -> str:
        """Add an open task to a daily note's Short List. Returns the note's date."""
        if not task_text or not task_text.strip():
            raise InvalidInputError("Task text cannot be empty")
        path = self.daily_note_path(date_token, today)
        if not path.is_file():
            raise NotFoundError(f"Daily note not found for {path.stem}")
        updated = add_open_task(self.read(path), task_text)
        self.write(path, updated)
        logger.info("Added task '%s' to %s", task_text, self.relative(path))
        return path.stem

    # -- creation and mutation ---------------------------------------------

    def create_note(
        self,
        title: str,
        content: str,
        tags: Optional[Sequence[str]] = None,
        folder: Optional[str] = None,
    ) -> str:
        """Create ``<folder>/<title>.md`` and return its vault-relative path.

        Tags are written as ``#a #b`` followed by a blank line above the
        content. Existing notes are never overwritten.
        """
        if not title or not title.strip():
            raise InvalidInputError("Title cannot be empty")
        if not content or not content.strip():
            raise InvalidInputError("Content cannot be empty")
        if folder and folder.strip().strip("/\\").lower() == DAILY_FOLDER:
            raise InvalidInputError(
                f"Cannot create notes in '{DAILY_FOLDER}' folder. "
                "Use the daily note tools for daily notes."
            )

        target = self.resolve(folder) if folder else self.root
        if str(target).casefold() == str(self.root / DAILY_FOLDER).casefold():
            raise InvalidInputError(f"Cannot create notes in '{DAILY_FOLDER}' folder.")
        note_path = self.resolve(target / f"{title}.md")

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FolderCreateError(f"Cannot create folder - {e}") from e

        if note_path.exists():
            raise NoteAlreadyExistsError(title)

        body = content
        if tags:
            tag_line = " ".join(t if t.startswith("#") else f"#{t}" for t in tags)
            body = f"{tag_line}\n\n{content}"
        try:
            _write_text(note_path, body, mode="x")
        except FileExistsError:
            raise NoteAlreadyExistsError(title) from None
        except OSError as e:
            raise IOFailureError(f"Could not write note: {e}") from e
        logger.info("Created note %s", self.relative(note_path))
        return self.relative(note_path)

    def mark_task(self, candidate: PathLike, task_text: str, status: str) -> int:
        """Set every matching task in a note to ``status``; returns the count."""
        if not task_text or not task_text.strip():
            raise InvalidInputError("Task text cannot be empty")
        if not str(candidate).strip():
            raise InvalidInputError("File path cannot be empty")
        parsed = TaskStatus.parse(status)
        path = self.resolve(candidate)
        updated, count = mark_task(self.read(path), task_text, parsed)
        self.write(path, updated)
        logger.info(
            "Marked %d task(s) '%s' as %s in %s",
            count, task_text, parsed.value, self.relative(path),
        )
        return count
