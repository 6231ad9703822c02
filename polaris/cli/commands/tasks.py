"""Task commands for Polaris CLI."""

from typing import TYPE_CHECKING

from polaris.cli.commands.helpers import not_found, records_json, report, resolve_ref

if TYPE_CHECKING:
    from polaris.dashboard import Dashboard


def cmd_tasks(args, d: "Dashboard") -> int:
    """Handle task subcommands."""
    widget = d.tasks
    tasks = list(widget.items)

    if args.tasks_action == "list":
        if args.json:
            records_json(tasks)
            return 0
        if not tasks:
            print("No tasks yet.")
            return 0
        for i, task in enumerate(tasks, start=1):
            mark = "x" if task.get("completed") else " "
            due = f"  (due {task.get('due_date')})" if task.get("due_date") else ""
            print(f"{i:>3}. [{mark}] {task.get('label')}{due}")
        stats = widget.stats()
        print(f"\n{stats.completed}/{stats.total} done ({stats.percent}%)")
        return 0

    if args.tasks_action == "add":
        task = widget.add(args.label, due_date=args.due)
        if task is None:
            return report(widget)
        print(f"Added task: {task.get('label')}")
        return 0

    task = resolve_ref(tasks, args.ref)
    if task is None:
        return not_found("task", args.ref)

    if args.tasks_action == "done":
        updated = widget.toggle(task.id)
        if updated is None:
            return report(widget)
        state = "done" if updated.get("completed") else "not done"
        print(f"Marked '{updated.get('label')}' as {state}")
    elif args.tasks_action == "rm":
        widget.remove(task.id)
        print(f"Removed task: {task.get('label')}")
    return 0
