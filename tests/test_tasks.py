"""Unit tests for tasks.py — checkbox rewriting and the Short List section."""

import pytest

from errors import (
    InvalidStatusError,
    MalformedSectionError,
    NoTasksInSectionError,
    SectionNotFoundError,
    TaskNotFoundError,
)
from tasks import TaskStatus, add_open_task, mark_task


DAILY = (
    "# 2025-01-01 Wednesday\n"
    "\n"
    "#### Short List\n"
    "- [ ] \n"
    "\n"
    "#### Notes\n"
    "Something happened.\n"
)


# ---------------------------------------------------------------------------
# TaskStatus
# ---------------------------------------------------------------------------


class TestTaskStatus:
    """Tests for status names and markers."""

    @pytest.mark.parametrize(
        "name, marker",
        [
            ("Completed", "x"),
            ("InProgress", "/"),
            ("Forwarded", ">"),
            ("Scheduled", "<"),
            ("Open", " "),
        ],
    )
    def test_markers(self, name: str, marker: str) -> None:
        assert TaskStatus.parse(name).marker == marker

    def test_names_are_case_sensitive(self) -> None:
        with pytest.raises(InvalidStatusError) as exc_info:
            TaskStatus.parse("completed")
        assert "Completed, InProgress, Forwarded, Scheduled, Open" in str(exc_info.value)

    def test_unknown_status(self) -> None:
        with pytest.raises(InvalidStatusError):
            TaskStatus.parse("Done")


# ---------------------------------------------------------------------------
# mark_task
# ---------------------------------------------------------------------------


class TestMarkTask:
    """Tests for mark_task()."""

    def test_complete_task(self) -> None:
        content, count = mark_task("- [ ] Call MetEd", "Call MetEd", TaskStatus.COMPLETED)
        assert content == "- [x] Call MetEd"
        assert count == 1

    def test_prefix_does_not_match(self) -> None:
        with pytest.raises(TaskNotFoundError):
            mark_task("- [ ] Call MetEd", "Call Met", TaskStatus.COMPLETED)

    def test_trailing_text_after_whitespace_matches(self) -> None:
        content, _ = mark_task("- [ ] Call Mom tonight", "Call Mom", TaskStatus.IN_PROGRESS)
        assert content == "- [/] Call Mom tonight"

    def test_any_existing_marker_is_replaced(self) -> None:
        content, _ = mark_task("- [?] Water plants", "Water plants", TaskStatus.OPEN)
        assert content == "- [ ] Water plants"

    def test_all_matching_lines_counted(self) -> None:
        original = "- [ ] Review PR\nnotes\n  - [>] Review PR\n- [ ] Review PRs\n"
        content, count = mark_task(original, "Review PR", TaskStatus.SCHEDULED)
        assert count == 2
        assert content == "- [<] Review PR\nnotes\n  - [<] Review PR\n- [ ] Review PRs\n"

    def test_task_text_is_literal(self) -> None:
        original = "- [ ] Fix (a+b)*c\n- [ ] Fix aab*c\n"
        content, count = mark_task(original, "Fix (a+b)*c", TaskStatus.COMPLETED)
        assert count == 1
        assert content == "- [x] Fix (a+b)*c\n- [ ] Fix aab*c\n"

    def test_rest_of_line_untouched(self) -> None:
        original = "   * [ ] Ship it  #work ^abc"
        content, _ = mark_task(original, "Ship it", TaskStatus.FORWARDED)
        assert content == "   * [>] Ship it  #work ^abc"

    def test_idempotent(self) -> None:
        original = "# Day\n- [ ] Call Mom\n- [/] Call Mom\n"
        once, _ = mark_task(original, "Call Mom", TaskStatus.COMPLETED)
        twice, _ = mark_task(once, "Call Mom", TaskStatus.COMPLETED)
        assert once == twice

    def test_crlf_endings_kept_verbatim(self) -> None:
        content, _ = mark_task("- [ ] One\r\n- [ ] Two\r\n", "One", TaskStatus.COMPLETED)
        assert content == "- [x] One\r\n- [ ] Two\r\n"


# ---------------------------------------------------------------------------
# add_open_task
# ---------------------------------------------------------------------------


class TestAddOpenTask:
    """Tests for add_open_task()."""

    def test_reuses_empty_slot(self) -> None:
        result = add_open_task(DAILY, "Call Mom")
        assert result == DAILY.replace("- [ ] \n", "- [ ] Call Mom\n")
        assert len(result.split("\n")) == len(DAILY.split("\n"))

    def test_appends_after_last_task(self) -> None:
        filled = add_open_task(DAILY, "Call Mom")
        result = add_open_task(filled, "Buy milk")
        lines = result.split("\n")
        assert lines[3] == "- [ ] Call Mom"
        assert lines[4] == "- [ ] Buy milk"
        assert lines[5] == ""
        assert lines[6] == "#### Notes"

    def test_first_empty_slot_only(self) -> None:
        content = "Short List\n- [x] Done\n- [ ]\n- [ ] \n"
        result = add_open_task(content, "New")
        assert result == "Short List\n- [x] Done\n- [ ] New\n- [ ] \n"

    def test_header_match_is_case_insensitive_substring(self) -> None:
        content = "## My SHORT LIST for today\n- [x] Done\n"
        assert add_open_task(content, "Next") == "## My SHORT LIST for today\n- [x] Done\n- [ ] Next\n"

    def test_intro_text_before_tasks_is_skipped(self) -> None:
        content = "#### Short List\n\nKeep it short.\n- [x] A\nafter\n"
        result = add_open_task(content, "B")
        assert result == "#### Short List\n\nKeep it short.\n- [x] A\n- [ ] B\nafter\n"

    def test_other_text_closes_list(self) -> None:
        content = "Short List\n- [x] A\nParagraph\n- [ ] Elsewhere\n"
        result = add_open_task(content, "B")
        assert result == "Short List\n- [x] A\n- [ ] B\nParagraph\n- [ ] Elsewhere\n"

    def test_existing_tasks_keep_order(self) -> None:
        content = "Short List\n- [x] A\n- [/] B\n- [>] C\n"
        result = add_open_task(content, "D")
        assert result.split("\n")[1:4] == ["- [x] A", "- [/] B", "- [>] C"]

    def test_missing_section(self) -> None:
        with pytest.raises(SectionNotFoundError):
            add_open_task("# Day\n- [ ] A\n", "B")

    def test_header_directly_after_section_is_malformed(self) -> None:
        with pytest.raises(MalformedSectionError):
            add_open_task("#### Short List\n#### Notes\n- [ ] A\n", "B")

    def test_header_inside_list_is_malformed(self) -> None:
        with pytest.raises(MalformedSectionError) as exc_info:
            add_open_task("#### Short List\n- [ ] A\n#### Notes\n", "B")
        assert exc_info.value.line == 3

    def test_section_without_tasks(self) -> None:
        with pytest.raises(NoTasksInSectionError):
            add_open_task("#### Short List\n\nNothing yet\n", "B")
