"""Habit commands for Polaris CLI."""

from typing import TYPE_CHECKING

from polaris.cli.commands.helpers import not_found, records_json, report, resolve_ref
from polaris.widgets.habits import DAY_LABELS, completion_rate, today_index

if TYPE_CHECKING:
    from polaris.dashboard import Dashboard


def _parse_day(value) -> int:
    """Day as an index (0-6) or a label like ``mon``. Defaults to today."""
    if value is None:
        return today_index()
    labels = [label.lower() for label in DAY_LABELS]
    if value.lower()[:3] in labels:
        return labels.index(value.lower()[:3])
    try:
        return int(value)
    except ValueError:
        return -1


def cmd_habits(args, d: "Dashboard") -> int:
    """Handle habit subcommands."""
    widget = d.habits
    habits = widget.habits()

    if args.habits_action == "list":
        if args.json:
            records_json(habits)
            return 0
        if not habits:
            print("No habits yet.")
            return 0
        print("     " + " ".join(f"{label[:2]}" for label in DAY_LABELS))
        for i, habit in enumerate(habits, start=1):
            grid = " ".join(" x" if done else " ." for done in habit.get("days") or [])
            print(f"{i:>3}. {grid}  {habit.get('name')} ({completion_rate(habit)}%)")
        print(f"\nWeek: {widget.weekly_completion()}%")
        return 0

    if args.habits_action == "add":
        habit = widget.add(args.name)
        if habit is None:
            return report(widget)
        print(f"Added habit: {habit.get('name')}")
        return 0

    if args.habits_action == "reset":
        changed = widget.reset_week()
        print(f"Cleared {changed} habit(s)")
        return report(widget)

    habit = resolve_ref(habits, args.ref)
    if habit is None:
        return not_found("habit", args.ref)

    if args.habits_action == "tick":
        day = _parse_day(args.day)
        updated = widget.toggle_day(habit.id, day)
        if updated is None:
            return report(widget)
        state = "done" if updated.get("days")[day] else "not done"
        print(f"{updated.get('name')}: {DAY_LABELS[day]} {state}")
    elif args.habits_action == "rm":
        widget.remove(habit.id)
        print(f"Removed habit: {habit.get('name')}")
    return 0
