"""Dashboard status command."""

from typing import TYPE_CHECKING

from polaris.cli.commands.helpers import print_json
from polaris.config import get_settings

if TYPE_CHECKING:
    from polaris.dashboard import Dashboard


def cmd_status(args, d: "Dashboard") -> int:
    """Show sync mode and counts for every widget."""
    rows = []
    for widget in d.widgets:
        state = widget.state
        rows.append(
            {
                "kind": widget.KIND.plural,
                "mode": state.mode.value,
                "count": len(state.items),
                "error": state.error,
            }
        )

    if args.json:
        print_json({"owner_id": d.tasks.engine.owner_id, "widgets": rows})
        return 0

    owner = d.tasks.engine.owner_id or "anonymous"
    print(f"Polaris Status ({owner})")
    print("=" * 40)
    for row in rows:
        line = f"{row['kind'].capitalize():<12} {row['mode']:<7} {row['count']:>4}"
        if row["error"]:
            line += f"  ! {row['error']}"
        print(line)
    print()
    print(f"Data dir:   {get_settings().resolved_data_dir()}")
    return 0
