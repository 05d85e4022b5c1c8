#!/usr/bin/env python3
"""
Obsidian Vault MCP Server

Works directly on the vault's markdown files: content search, recent notes,
daily notes, note creation, and checkbox task editing.

The vault directory is given as the first command-line argument, or through
the environment:
    OBSIDIAN_VAULT_PATH - Absolute path to your Obsidian vault directory

Daily notes live in `dailies/YYYY-MM-DD.md`. New tasks are added to the
"Short List" section of a daily note.
"""

import os
import sys
import json
import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional, List, Dict, Any

import frontmatter
from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, Field, ConfigDict

from errors import IOFailureError, VaultError
from notes import NoteStore, VaultConfig
from tasks import TaskStatus

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VAULT_ENV = "OBSIDIAN_VAULT_PATH"
DEFAULT_RECENT_COUNT = 10
MAX_SEARCH_RESULTS = 100
DEFAULT_SEARCH_LIMIT = 20

# ---------------------------------------------------------------------------
# Logging (stderr only for stdio transport)
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger("obsidian_vault_mcp")

# ---------------------------------------------------------------------------
# Server Initialization
# ---------------------------------------------------------------------------

mcp = FastMCP("obsidian_vault_mcp")


class ResponseFormat(str, Enum):
    """Output format for tool responses."""
    MARKDOWN = "markdown"
    JSON = "json"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def _store() -> NoteStore:
    """Return the note store for the configured vault. Cached after first call."""
    return NoteStore(VaultConfig.from_path(os.environ.get(VAULT_ENV, "")))


def _error_response(e: VaultError) -> str:
    """Format a vault error into an actionable message."""
    logger.info("Refused: %s", e)
    return f"Error: {e}"


def _frontmatter(content: str, rel: str) -> Dict[str, Any]:
    try:
        return frontmatter.loads(content).metadata
    except Exception as e:
        logger.warning("Could not parse frontmatter in %s: %s", rel, e)
        return {}


def _note_metadata(store: NoteStore, note_path: Path) -> Dict[str, Any]:
    """Build metadata dict for a note."""
    stat = note_path.stat()
    return {
        "path": store.relative(note_path),
        "name": note_path.stem,
        "size_bytes": stat.st_size,
        "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Input Models
# ---------------------------------------------------------------------------


class SearchNotesInput(BaseModel):
    """Input for searching note content."""
    model_config = ConfigDict(extra="forbid")

    query: str = Field(..., description="Text to look for in note content (case-insensitive)")
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, description="Max results to return", ge=1, le=MAX_SEARCH_RESULTS)
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN, description="Output format")


class ReadNoteInput(BaseModel):
    """Input for reading a note."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    path: str = Field(..., description="Path to the note, relative to the vault root or absolute")
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="'markdown' returns the raw note, 'json' adds metadata and frontmatter",
    )


class ListRecentInput(BaseModel):
    """Input for listing recently modified notes."""
    model_config = ConfigDict(extra="forbid")

    count: int = Field(default=DEFAULT_RECENT_COUNT, description="Number of notes to list")


class DailyNoteInput(BaseModel):
    """Input for reading or creating a daily note."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    date: str = Field(default="today", description="'today', 'yesterday', or 'YYYY-MM-DD'")


class CreateNoteInput(BaseModel):
    """Input for creating a new note."""
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., description="Title for the new note; becomes '<title>.md'")
    content: str = Field(..., description="Content for the note")
    tags: Optional[List[str]] = Field(default=None, description="Optional tags, e.g. ['snippet', 'sql']")
    folder: Optional[str] = Field(
        default=None,
        description="Optional folder (e.g. 'projects/work'). Defaults to the vault root. 'dailies' is not allowed.",
    )


class MarkTaskInput(BaseModel):
    """Input for setting the status of a task."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    task_text: str = Field(..., description="The exact task text to find (e.g. 'Call MetEd')")
    status: str = Field(
        ...,
        description="Task status: " + ", ".join(f"'{s.value}'" for s in TaskStatus),
    )
    path: str = Field(..., description="Note path, e.g. 'dailies/2025-12-04.md'")


class DailyAddTaskInput(BaseModel):
    """Input for adding a task to a daily note's Short List."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    task_text: str = Field(..., description="The task text to add (e.g. 'Call MetEd')")
    date: str = Field(default="today", description="'today', 'yesterday', or 'YYYY-MM-DD'")


# ---------------------------------------------------------------------------
# Tools: Notes
# ---------------------------------------------------------------------------


@mcp.tool(name="obsidian_search_notes")
async def obsidian_search_notes(params: SearchNotesInput) -> str:
    """Search markdown notes in the vault by content.

    Args:
        params (SearchNotesInput): Query, result limit, and format.

    Returns:
        str: Matching notes in the requested format.
    """
    try:
        store = _store()
        paths = await asyncio.to_thread(store.search, params.query)
    except VaultError as e:
        return _error_response(e)
    total = len(paths)
    paths = paths[: params.limit]

    if params.response_format == ResponseFormat.JSON:
        results = []
        for p in paths:
            try:
                results.append(_note_metadata(store, p))
            except OSError as e:
                logger.warning("Skipping %s in search results: %s", p, e)
        return json.dumps({"total": total, "query": params.query, "results": results}, indent=2)
    if not paths:
        return f"No notes found containing '{params.query}'"
    lines = [f"# Search Results for '{params.query}' ({total} found)\n"]
    lines.extend(f"- **{p.stem}** (`{store.relative(p)}`)" for p in paths)
    return "\n".join(lines)


@mcp.tool(name="obsidian_read_note")
async def obsidian_read_note(params: ReadNoteInput) -> str:
    """Read the full content of a note.

    Args:
        params (ReadNoteInput): Path to the note and output format.

    Returns:
        str: Raw note text, or JSON with metadata and frontmatter.
    """
    try:
        store = _store()
        note_path = store.note_path(params.path)
        content = await asyncio.to_thread(store.read, note_path)
    except VaultError as e:
        return _error_response(e)
    if params.response_format == ResponseFormat.MARKDOWN:
        return content
    try:
        meta = _note_metadata(store, note_path)
    except OSError as e:
        return _error_response(IOFailureError(f"Could not read note metadata: {e}"))
    meta["frontmatter"] = _frontmatter(content, meta["path"])
    meta["content"] = content
    return json.dumps(meta, indent=2, ensure_ascii=False, default=str)


@mcp.tool(name="obsidian_list_recent")
async def obsidian_list_recent(params: ListRecentInput) -> str:
    """List the most recently modified notes in the vault.

    Args:
        params (ListRecentInput): Number of notes to list.

    Returns:
        str: One line per note with its modification time.
    """
    try:
        store = _store()
        recent = await asyncio.to_thread(store.list_recent, params.count)
    except VaultError as e:
        return _error_response(e)
    if not recent:
        return "No markdown files found in vault"
    lines = [f"Recent {len(recent)} notes:"]
    for path, modified in recent:
        lines.append(f"- {store.relative(path)} (Modified: {modified:%Y-%m-%d %H:%M:%S})")
    return "\n".join(lines)


@mcp.tool(name="obsidian_create_note")
async def obsidian_create_note(params: CreateNoteInput) -> str:
    """Create a new markdown note with optional tags and folder.

    Never overwrites an existing note. Daily notes cannot be created here.
    """
    try:
        store = _store()
        rel = await asyncio.to_thread(
            store.create_note, params.title, params.content, params.tags, params.folder
        )
    except VaultError as e:
        return _error_response(e)
    return f"Created: {rel}"


# ---------------------------------------------------------------------------
# Tools: Daily Notes
# ---------------------------------------------------------------------------


@mcp.tool(name="obsidian_daily_read")
async def obsidian_daily_read(params: DailyNoteInput) -> str:
    """Read the daily note for a date ('today', 'yesterday', or 'YYYY-MM-DD')."""
    try:
        return await asyncio.to_thread(_store().read_daily_note, params.date)
    except VaultError as e:
        return _error_response(e)


@mcp.tool(name="obsidian_daily_create")
async def obsidian_daily_create(params: DailyNoteInput) -> str:
    """Create the daily note for a date with an empty Short List section."""
    try:
        rel = await asyncio.to_thread(_store().create_daily_note, params.date)
    except VaultError as e:
        return _error_response(e)
    return f"Created: {rel}"


@mcp.tool(name="obsidian_daily_add_task")
async def obsidian_daily_add_task(params: DailyAddTaskInput) -> str:
    """Add an open task to the Short List section of a daily note.

    Reuses the first empty '- [ ]' placeholder if there is one, otherwise
    appends after the last task in the list.
    """
    try:
        day = await asyncio.to_thread(_store().add_task_to_daily, params.task_text, params.date)
    except VaultError as e:
        return _error_response(e)
    return f"Added: {params.task_text} to {day}"


# ---------------------------------------------------------------------------
# Tools: Tasks
# ---------------------------------------------------------------------------


@mcp.tool(name="obsidian_mark_task")
async def obsidian_mark_task(params: MarkTaskInput) -> str:
    """Mark every task with the given text in a note with a new status.

    Statuses map to checkboxes: Completed [x], InProgress [/], Forwarded [>],
    Scheduled [<], Open [ ].
    """
    try:
        count = await asyncio.to_thread(
            _store().mark_task, params.path, params.task_text, params.status
        )
    except VaultError as e:
        return _error_response(e)
    return f"Marked {count} task(s) '{params.task_text}' as {params.status}"


# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the vault MCP server."""
    args = sys.argv[1:] if argv is None else argv
    if args:
        os.environ[VAULT_ENV] = args[0]
        _store.cache_clear()
    try:
        store = _store()
    except VaultError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Usage: server.py /path/to/vault", file=sys.stderr)
        sys.exit(1)
    logger.info("Serving vault at %s", store.root)
    mcp.run()


if __name__ == "__main__":
    main()
