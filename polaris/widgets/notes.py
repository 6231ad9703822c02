"""Brain dump widget: one free-form note per user, autosaved.

Edits are buffered and saved after a quiet period. Each save bumps the
note's ``version``; the first save creates the note at version 1.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from polaris.protocols import IdentityResolver, LocalCache, RemoteCollectionService
from polaris.sync import CollectionEngine
from polaris.types import EntityKind, Record, seed_record
from polaris.validation import reject_unknown, require_int, sanitize_string

from .base import Widget

logger = logging.getLogger(__name__)

NOTE_FIELDS = ("content", "content_html", "version")
MAX_CONTENT_LENGTH = 100_000
DEFAULT_DEBOUNCE_SECONDS = 1.0

MOCKUP_CONTENT = """<h1>Job Search Notes</h1>

<h2>Companies to Apply</h2>
<ul>
<li>Google - Software Engineer</li>
<li>Microsoft - Frontend Developer</li>
<li>Meta - React Developer ✓</li>
<li>Netflix - Full Stack Engineer</li>
</ul>

<h2>Interview Prep</h2>
<ul>
<li>Review system design patterns</li>
<li>Practice coding challenges on LeetCode</li>
<li>Prepare behavioral questions (STAR method)</li>
<li>Research company culture and values</li>
</ul>

<h2>Follow-up Actions</h2>
<ol>
<li>Send thank you emails after interviews</li>
<li>Update portfolio with recent projects</li>
</ol>"""

_TAG = re.compile(r"<[^>]+>")
_BLANK_LINES = re.compile(r"\n{2,}")


def html_to_text(html: str) -> str:
    """Plain-text rendition of editor HTML."""
    text = _TAG.sub("", html)
    return _BLANK_LINES.sub("\n", text).strip()


def _content(value: Any) -> str:
    return sanitize_string(
        "" if value is None else value,
        "Content",
        MAX_CONTENT_LENGTH,
        required=False,
        strip=False,
    )


def _content_html(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _content(value)


def validate_note(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, NOTE_FIELDS)
    return {
        "content": _content(data.get("content")),
        "content_html": _content_html(data.get("content_html")),
        "version": require_int(data.get("version", 1), "version", min_val=1),
    }


def validate_note_update(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, NOTE_FIELDS)
    cleaned: Dict[str, Any] = {}
    if "content" in data:
        cleaned["content"] = _content(data["content"])
    if "content_html" in data:
        cleaned["content_html"] = _content_html(data["content_html"])
    if "version" in data:
        cleaned["version"] = require_int(data["version"], "version", min_val=1)
    return cleaned


def default_notes() -> List[Record]:
    return [
        seed_record(
            "note",
            1,
            {
                "content": html_to_text(MOCKUP_CONTENT),
                "content_html": MOCKUP_CONTENT,
                "version": 1,
            },
        )
    ]


NOTES = EntityKind(
    name="note",
    plural="notes",
    cache_key="polaris-brain-dump-local",
    table="brain_dump_notes",
    field_names=NOTE_FIELDS,
    seed=default_notes,
    validate_create=validate_note,
    validate_update=validate_note_update,
    order_by="updated_at",
    ascending=False,
)


class NotesWidget(Widget):
    """Single note buffer with debounced saving.

    Args:
        cache: Durable local cache.
        identity: Owner resolver.
        remote: Remote notes service, or None for local-only.
        engine: Pre-built engine (tests).
        debounce_seconds: Quiet period before an edit is saved.
    """

    KIND = NOTES

    def __init__(
        self,
        cache: LocalCache,
        identity: IdentityResolver,
        remote: Optional[RemoteCollectionService] = None,
        engine: Optional[CollectionEngine] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        super().__init__(cache, identity, remote, engine)
        self.debounce_seconds = debounce_seconds
        self._pending: Optional[Tuple[str, Optional[str]]] = None
        self._timer: Optional[asyncio.Task] = None

    def current_note(self) -> Optional[Record]:
        """The most recently updated note, if any."""
        if not self.items:
            return None
        return max(
            self.items,
            key=lambda n: n.updated_at.timestamp() if n.updated_at else 0.0,
        )

    @property
    def has_unsaved_changes(self) -> bool:
        return self._pending is not None and not self._matches_saved(*self._pending)

    def _matches_saved(self, content: str, content_html: Optional[str]) -> bool:
        note = self.current_note()
        if note is None:
            return False
        return note.get("content") == content and note.get("content_html") == content_html

    def edit(self, content: str, content_html: Optional[str] = None) -> None:
        """Buffer an edit and (re)start the autosave timer.

        Without a running event loop the edit stays buffered until
        :meth:`flush` is called.
        """
        self._pending = (content, content_html)
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, note edit buffered until flush()")
            return
        self._timer = loop.create_task(self._autosave())

    async def _autosave(self) -> None:
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            return
        self._timer = None
        self.flush()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def flush(self) -> Optional[Record]:
        """Save the buffered edit now.

        Returns:
            The saved note, or None when there was nothing to save or the
            save was rejected.
        """
        self._cancel_timer()
        if self._pending is None:
            return None

        content, content_html = self._pending
        self._pending = None
        if self._matches_saved(content, content_html):
            logger.debug("Note unchanged, skipping save")
            return None

        note = self.current_note()
        if note is None:
            return self.engine.create(
                {"content": content, "content_html": content_html, "version": 1}
            )
        return self.engine.update(
            note.id,
            {
                "content": content,
                "content_html": content_html,
                "version": int(note.get("version") or 0) + 1,
            },
        )

    async def wait_idle(self) -> None:
        """Wait for a pending autosave and every remote write it started."""
        if self._timer is not None:
            await asyncio.gather(self._timer, return_exceptions=True)
        await super().wait_idle()

    def close(self) -> None:
        """Save any buffered edit, then detach.

        The save itself is optimistic, so the edit reaches the cache even
        though the autosave timer never fires.
        """
        if self.has_unsaved_changes:
            logger.info("Saving buffered note edit on close")
        self.flush()
        super().close()
