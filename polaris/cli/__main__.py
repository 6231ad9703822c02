"""
Polaris CLI - dashboard widgets from the terminal.

Usage:
    polaris status [--json]
    polaris tasks list|add LABEL [--due DATE]|done REF|rm REF
    polaris habits list|add NAME|tick REF [--day DAY]|reset|rm REF
    polaris links list|add URL [--title T]|rm REF
    polaris notes show [--html]|write [CONTENT]

REF is the number shown by ``list``, a record id, or a unique id prefix.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from polaris.cli.commands import cmd_habits, cmd_links, cmd_notes, cmd_status, cmd_tasks
from polaris.config import get_settings
from polaris.dashboard import Dashboard
from polaris.logging_config import setup_polaris_logging
from polaris.protocols import PolarisError

logger = logging.getLogger(__name__)

COMMANDS = {
    "status": cmd_status,
    "tasks": cmd_tasks,
    "habits": cmd_habits,
    "links": cmd_links,
    "notes": cmd_notes,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polaris",
        description="Local-first dashboard widgets",
    )
    parser.add_argument("--log-level", default=None, help="Override POLARIS_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # status
    p_status = subparsers.add_parser("status", help="Show sync mode per widget")
    p_status.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # tasks
    p_tasks = subparsers.add_parser("tasks", help="Manage tasks")
    tasks_sub = p_tasks.add_subparsers(dest="tasks_action", required=True)
    tasks_list = tasks_sub.add_parser("list", help="List tasks")
    tasks_list.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    tasks_add = tasks_sub.add_parser("add", help="Add a task")
    tasks_add.add_argument("label", help="Task label")
    tasks_add.add_argument("--due", help="Due date (YYYY-MM-DD)")
    tasks_done = tasks_sub.add_parser("done", help="Toggle a task's completion")
    tasks_done.add_argument("ref", help="Task number or id")
    tasks_rm = tasks_sub.add_parser("rm", help="Remove a task")
    tasks_rm.add_argument("ref", help="Task number or id")

    # habits
    p_habits = subparsers.add_parser("habits", help="Manage habits")
    habits_sub = p_habits.add_subparsers(dest="habits_action", required=True)
    habits_list = habits_sub.add_parser("list", help="Show the habit grid")
    habits_list.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    habits_add = habits_sub.add_parser("add", help="Add a habit")
    habits_add.add_argument("name", help="Habit name")
    habits_tick = habits_sub.add_parser("tick", help="Toggle a day for a habit")
    habits_tick.add_argument("ref", help="Habit number or id")
    habits_tick.add_argument("--day", "-d", help="Day (0-6 or sun..sat, default today)")
    habits_sub.add_parser("reset", help="Clear the week for every habit")
    habits_rm = habits_sub.add_parser("rm", help="Remove a habit")
    habits_rm.add_argument("ref", help="Habit number or id")

    # links
    p_links = subparsers.add_parser("links", help="Manage quick links")
    links_sub = p_links.add_subparsers(dest="links_action", required=True)
    links_list = links_sub.add_parser("list", help="List quick links")
    links_list.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    links_add = links_sub.add_parser("add", help="Add a quick link")
    links_add.add_argument("url", help="URL (https:// is added when missing)")
    links_add.add_argument("--title", "-t", help="Title (derived from the domain by default)")
    links_rm = links_sub.add_parser("rm", help="Remove a quick link")
    links_rm.add_argument("ref", help="Link number or id")

    # notes
    p_notes = subparsers.add_parser("notes", help="Brain dump note")
    notes_sub = p_notes.add_subparsers(dest="notes_action", required=True)
    notes_show = notes_sub.add_parser("show", help="Print the note")
    notes_show.add_argument("--html", action="store_true", help="Print the HTML version")
    notes_show.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    notes_write = notes_sub.add_parser("write", help="Replace the note (stdin if no content)")
    notes_write.add_argument("content", nargs="?", default=None, help="New note content")

    return parser


async def run(args, d: Dashboard) -> int:
    """Load the dashboard, run one command and wait for its remote writes."""
    await d.load()
    code = COMMANDS[args.command](args, d)
    await d.wait_idle()

    # A write that failed remotely still landed in the local cache
    for widget in d.widgets:
        if widget.state.error and code == 0:
            print(f"Warning: {widget.state.error}")
    return code


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_polaris_logging(args.log_level or settings.log_level)

    try:
        dashboard = Dashboard.from_settings(settings)
    except (PolarisError, ValueError, TypeError) as e:
        logger.error(f"Failed to initialize Polaris: {e}")
        print(f"Error: {e}")
        sys.exit(1)

    try:
        code = asyncio.run(run(args, dashboard))
    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        dashboard.close()

    sys.exit(code)


if __name__ == "__main__":
    main()
