"""Tests for the brain dump notes widget."""

import asyncio

import pytest
from conftest import FakeRemote, server_record

from polaris.protocols import ValidationError
from polaris.storage.snapshot import read_snapshot
from polaris.types import SyncMode
from polaris.widgets.notes import (
    MOCKUP_CONTENT,
    NOTES,
    NotesWidget,
    html_to_text,
    validate_note,
)


@pytest.fixture
async def notes(cache, anonymous):
    widget = NotesWidget(cache, anonymous, debounce_seconds=0.01)
    await widget.load()
    return widget


class TestNoteValidation:
    def test_defaults(self):
        assert validate_note({}) == {"content": "", "content_html": None, "version": 1}

    def test_version_must_be_positive(self):
        with pytest.raises(ValidationError, match="at least 1"):
            validate_note({"content": "x", "version": 0})

    def test_html_to_text(self):
        text = html_to_text(MOCKUP_CONTENT)
        assert text.startswith("Job Search Notes")
        assert "<li>" not in text


class TestNotesWidget:
    """Tests for NotesWidget."""

    @pytest.mark.asyncio
    async def test_seed_note(self, notes):
        note = notes.current_note()
        assert note.get("content_html") == MOCKUP_CONTENT
        assert note.get("version") == 1
        assert notes.has_unsaved_changes is False

    @pytest.mark.asyncio
    async def test_flush_bumps_version(self, notes):
        notes.edit("Call recruiter", "<p>Call recruiter</p>")
        assert notes.has_unsaved_changes is True

        saved = notes.flush()

        assert saved.get("content") == "Call recruiter"
        assert saved.get("content_html") == "<p>Call recruiter</p>"
        assert saved.get("version") == 2
        assert notes.has_unsaved_changes is False
        assert len(notes.items) == 1

    @pytest.mark.asyncio
    async def test_flush_without_edit(self, notes):
        assert notes.flush() is None

    @pytest.mark.asyncio
    async def test_unchanged_content_is_not_saved(self, notes):
        note = notes.current_note()
        notes.edit(note.get("content"), note.get("content_html"))

        assert notes.has_unsaved_changes is False
        assert notes.flush() is None
        assert notes.current_note().get("version") == 1

    @pytest.mark.asyncio
    async def test_edits_are_debounced(self, notes):
        """Rapid edits produce a single save of the last content."""
        notes.edit("a")
        notes.edit("ab")
        notes.edit("abc")

        await notes.wait_idle()

        note = notes.current_note()
        assert note.get("content") == "abc"
        assert note.get("version") == 2

    @pytest.mark.asyncio
    async def test_close_saves_buffered_edit(self, notes, cache):
        """Closing before the autosave fires still keeps the edit."""
        notes.edit("written just before closing")
        notes.close()
        await asyncio.sleep(0.05)

        note = notes.current_note()
        assert note.get("content") == "written just before closing"
        assert note.get("version") == 2
        assert notes.has_unsaved_changes is False
        cached = read_snapshot(cache, NOTES.cache_key)
        assert cached[0].get("content") == "written just before closing"

    def test_edit_without_loop_waits_for_flush(self, cache, anonymous):
        widget = NotesWidget(cache, anonymous)
        asyncio.run(widget.load())

        widget.edit("offline thoughts")
        assert widget.current_note().get("version") == 1

        assert widget.flush().get("content") == "offline thoughts"

    @pytest.mark.asyncio
    async def test_first_remote_save_creates_note(self, cache, signed_in):
        """With no note on the server the first save creates version 1."""
        remote = FakeRemote()
        widget = NotesWidget(cache, signed_in, remote)
        await widget.load()
        assert widget.current_note() is None

        widget.edit("hello", "<p>hello</p>")
        widget.flush()
        await widget.wait_idle()

        assert widget.state.mode is SyncMode.REMOTE
        assert widget.current_note().id == "srv-1"
        assert remote.calls[-1] == (
            "create",
            "user-1",
            {"content": "hello", "content_html": "<p>hello</p>", "version": 1},
        )

    @pytest.mark.asyncio
    async def test_remote_save_updates_existing_note(self, cache, signed_in):
        existing = server_record("note-1", {"content": "old", "content_html": None, "version": 3})
        remote = FakeRemote([existing])
        widget = NotesWidget(cache, signed_in, remote)
        await widget.load()

        widget.edit("new")
        widget.flush()
        await widget.wait_idle()

        assert ("update", "note-1", {"content": "new", "content_html": None, "version": 4}) in (
            remote.calls
        )
        assert remote.rows[0].get("version") == 4
