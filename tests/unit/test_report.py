"""
Unit tests for console and JSON output.
"""

import json
from datetime import UTC, datetime
from io import StringIO

import pytest
from rich.console import Console

from timecapsule.errors import NotFoundError
from timecapsule.report import (
    capsule_to_json,
    capsules_to_json,
    error_to_json,
    print_capsule,
    print_capsule_table,
    print_summary,
    summary_to_json,
    view_to_dict,
)
from timecapsule.schema import UNREADABLE_CONTENT, CapsuleSummary, CapsuleView, MediaRef

T = datetime(2030, 1, 1, 9, 30, tzinfo=UTC)


def make_view(**kwargs) -> CapsuleView:
    """Helper to build a view with sensible defaults."""
    values = {
        "id": "abc123",
        "owner_id": "u1",
        "title": "For later",
        "content": "hello [bold]world[/bold]",
        "unlock_at": T,
        "unlocked": True,
        "created_at": T,
        "updated_at": T,
    }
    values.update(kwargs)
    return CapsuleView(**values)


@pytest.fixture
def output() -> StringIO:
    return StringIO()


@pytest.fixture
def console(output: StringIO) -> Console:
    return Console(file=output, width=200, color_system=None)


# =============================================================================
# Console Tests
# =============================================================================


class TestConsoleOutput:
    """Tests for Rich rendering."""

    def test_table(self, console: Console, output: StringIO) -> None:
        print_capsule_table(
            console,
            [make_view(), make_view(id="def456", unlocked=False, content="🔒 Locked until 2030-01-01 09:30 UTC")],
        )
        text = output.getvalue()
        assert "abc123" in text
        assert "def456" in text
        assert "unlocked" in text
        assert "locked" in text
        assert "2030-01-01 09:30 UTC" in text

    def test_table_cells_are_not_markup(self, console: Console, output: StringIO) -> None:
        """Bracketed titles and content render literally."""
        print_capsule_table(console, [make_view(title="notes [/]", content="see [red]this[/]")])
        text = output.getvalue()
        assert "notes [/]" in text
        assert "see [red]this[/]" in text

    def test_capsule_media_url_is_not_markup(self, console: Console, output: StringIO) -> None:
        print_capsule(console, make_view(media=MediaRef(url="https://cdn.example.com/[/]a.png", type="image")))
        assert "https://cdn.example.com/[/]a.png" in output.getvalue()

    def test_empty_table(self, console: Console, output: StringIO) -> None:
        print_capsule_table(console, [])
        assert "No capsules yet." in output.getvalue()

    def test_unreadable_status(self, console: Console, output: StringIO) -> None:
        print_capsule_table(console, [make_view(content=UNREADABLE_CONTENT, decrypt_failed=True)])
        assert "unreadable" in output.getvalue()

    def test_long_content_is_truncated(self, console: Console, output: StringIO) -> None:
        print_capsule_table(console, [make_view(content="word " * 50)])
        assert "..." in output.getvalue()

    def test_capsule_content_is_not_markup(self, console: Console, output: StringIO) -> None:
        """Stored text is printed literally."""
        print_capsule(console, make_view())
        text = output.getvalue()
        assert "hello [bold]world[/bold]" in text
        assert "For later" in text

    def test_capsule_with_media(self, console: Console, output: StringIO) -> None:
        print_capsule(console, make_view(media=MediaRef(url="https://cdn.example.com/a.png", type="image")))
        assert "https://cdn.example.com/a.png" in output.getvalue()

    def test_summary(self, console: Console, output: StringIO) -> None:
        print_summary(console, CapsuleSummary(owner_id="u1", total=3, locked=2, unlocked=1, next_unlock_at=T))
        text = output.getvalue()
        assert "3" in text
        assert "2 locked" in text
        assert "Next unlock: 2030-01-01 09:30 UTC" in text


# =============================================================================
# JSON Tests
# =============================================================================


class TestJsonOutput:
    """Tests for JSON serialisation."""

    def test_view_to_dict(self) -> None:
        data = view_to_dict(make_view())
        assert data["state"] == "unlocked"
        assert data["unlock_at"].startswith("2030-01-01T09:30:00")
        assert data["decrypt_failed"] is False

    def test_capsule_to_json(self) -> None:
        data = json.loads(capsule_to_json(make_view(unlocked=False)))
        assert data["id"] == "abc123"
        assert data["state"] == "locked"

    def test_capsules_to_json(self) -> None:
        data = json.loads(capsules_to_json([make_view(), make_view(id="x")]))
        assert [d["id"] for d in data] == ["abc123", "x"]

    def test_summary_to_json(self) -> None:
        data = json.loads(summary_to_json(CapsuleSummary(owner_id="u1", total=0, locked=0, unlocked=0)))
        assert data["total"] == 0
        assert data["next_unlock_at"] is None

    def test_error_to_json(self) -> None:
        data = json.loads(error_to_json(NotFoundError(capsule_id="abc")))
        assert data["error"] is True
        assert data["error_type"] == "NotFoundError"
        assert data["code"] == 2001

    def test_foreign_error_to_json(self) -> None:
        data = json.loads(error_to_json(OSError("disk gone")))
        assert data["error_type"] == "OSError"
        assert data["message"] == "disk gone"
