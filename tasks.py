"""Checkbox task editing on in-memory note content.

Content is always treated as a flat list of lines split on "\\n". Nothing here
touches the filesystem; NoteStore reads the file, calls these functions, and
writes the result back in one go.
"""

import re
from enum import Enum
from typing import List, Optional, Tuple

from errors import (
    InvalidStatusError,
    MalformedSectionError,
    NoTasksInSectionError,
    SectionNotFoundError,
    TaskNotFoundError,
)

SECTION_TITLE = "short list"
EMPTY_TASK_PATTERN = re.compile(r"^-\s+\[\s*\]\s*$")
OPEN_TASK_PREFIX = "- [ ] "


class TaskStatus(str, Enum):
    """Task states and the checkbox character each one is written as."""
    COMPLETED = "Completed"
    IN_PROGRESS = "InProgress"
    FORWARDED = "Forwarded"
    SCHEDULED = "Scheduled"
    OPEN = "Open"

    @property
    def marker(self) -> str:
        return _MARKERS[self]

    @classmethod
    def parse(cls, name: str) -> "TaskStatus":
        """Look up a status by its exact, case-sensitive name."""
        for status in cls:
            if status.value == name:
                return status
        raise InvalidStatusError(name, [s.value for s in cls])


_MARKERS = {
    TaskStatus.COMPLETED: "x",
    TaskStatus.IN_PROGRESS: "/",
    TaskStatus.FORWARDED: ">",
    TaskStatus.SCHEDULED: "<",
    TaskStatus.OPEN: " ",
}


def _task_pattern(task_text: str) -> "re.Pattern[str]":
    # group 1 is everything after the checkbox, kept verbatim on rewrite
    return re.compile(r"\[[^\]]\](\s+" + re.escape(task_text) + r"(?:\s|$))")


def mark_task(content: str, task_text: str, status: TaskStatus) -> Tuple[str, int]:
    """Set the checkbox of every line holding ``task_text`` to ``status``.

    The task text must follow the checkbox as a whole token: "Call Met" does
    not match "- [ ] Call MetEd". Returns the new content and the number of
    lines changed. Raises TaskNotFoundError when nothing matched.
    """
    pattern = _task_pattern(task_text)
    replacement = f"[{status.marker}]"
    lines = content.split("\n")
    count = 0
    for i, line in enumerate(lines):
        if pattern.search(line):
            lines[i] = pattern.sub(lambda m: replacement + m.group(1), line)
            count += 1
    if count == 0:
        raise TaskNotFoundError(task_text)
    return "\n".join(lines), count


# ---------------------------------------------------------------------------
# Short List section
# ---------------------------------------------------------------------------


class _ScanState(Enum):
    BEFORE_TASKS = "before_tasks"
    IN_LIST = "in_list"
    CLOSED = "closed"


class _LineKind(Enum):
    HEADER = "header"
    TASK = "task"
    BLANK = "blank"
    OTHER = "other"


def _classify(line: str) -> _LineKind:
    stripped = line.strip()
    if stripped.startswith("####"):
        return _LineKind.HEADER
    if stripped.startswith("- ["):
        return _LineKind.TASK
    if not stripped:
        return _LineKind.BLANK
    return _LineKind.OTHER


def find_section_header(lines: List[str]) -> int:
    """Index of the first line mentioning "Short List", any case."""
    for i, line in enumerate(lines):
        if SECTION_TITLE in line.lower():
            return i
    raise SectionNotFoundError()


def scan_task_list(lines: List[str], header: int) -> Tuple[int, Optional[int]]:
    """Walk the task list under ``header``.

    Returns ``(last_task, first_empty)``: the index of the last task line in
    the list and the index of the first empty ``- [ ]`` placeholder, or None.
    Intro text between the header and the first task is skipped. Once the list
    has started, a blank line or any other text closes it.
    """
    state = _ScanState.BEFORE_TASKS
    last_task: Optional[int] = None
    first_empty: Optional[int] = None

    for i in range(header + 1, len(lines)):
        kind = _classify(lines[i])
        if kind is _LineKind.HEADER:
            raise MalformedSectionError(i + 1)
        if kind is _LineKind.TASK:
            if first_empty is None and EMPTY_TASK_PATTERN.match(lines[i].strip()):
                first_empty = i
            last_task = i
            state = _ScanState.IN_LIST
        elif state is _ScanState.IN_LIST:
            state = _ScanState.CLOSED
        if state is _ScanState.CLOSED:
            break

    if last_task is None:
        raise NoTasksInSectionError()
    return last_task, first_empty


def add_open_task(content: str, task_text: str) -> str:
    """Add ``- [ ] task_text`` to the Short List section of a daily note.

    The first empty placeholder in the list is reused; otherwise the task goes
    right after the last task line. No other line is touched.
    """
    lines = content.split("\n")
    header = find_section_header(lines)
    last_task, first_empty = scan_task_list(lines, header)
    new_line = OPEN_TASK_PREFIX + task_text
    if first_empty is not None:
        lines[first_empty] = new_line
    else:
        lines.insert(last_task + 1, new_line)
    return "\n".join(lines)
