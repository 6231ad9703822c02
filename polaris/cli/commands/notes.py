"""Brain dump note commands for Polaris CLI."""

import sys
from typing import TYPE_CHECKING

from polaris.cli.commands.helpers import print_json, report
from polaris.storage.snapshot import record_to_dict
from polaris.widgets.notes import html_to_text

if TYPE_CHECKING:
    from polaris.dashboard import Dashboard


def cmd_notes(args, d: "Dashboard") -> int:
    """Handle note subcommands."""
    widget = d.notes

    if args.notes_action == "show":
        note = widget.current_note()
        if args.json:
            print_json(record_to_dict(note) if note else None)
            return 0
        if note is None:
            print("No note yet.")
            return 0
        if args.html and note.get("content_html"):
            print(note.get("content_html"))
        else:
            print(note.get("content") or html_to_text(note.get("content_html") or ""))
        return 0

    if args.notes_action == "write":
        content = args.content if args.content is not None else sys.stdin.read()
        widget.edit(content)
        note = widget.flush()
        if note is None:
            if widget.state.error:
                return report(widget)
            print("Note unchanged")
            return 0
        print(f"Saved note (version {note.get('version')})")
        return 0
    return 0
