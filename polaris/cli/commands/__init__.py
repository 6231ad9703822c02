"""CLI command modules for Polaris.

Each handler takes the parsed args and a loaded dashboard and returns a
process exit code.
"""

from polaris.cli.commands.habits import cmd_habits
from polaris.cli.commands.links import cmd_links
from polaris.cli.commands.notes import cmd_notes
from polaris.cli.commands.status import cmd_status
from polaris.cli.commands.tasks import cmd_tasks

__all__ = ["cmd_status", "cmd_tasks", "cmd_habits", "cmd_links", "cmd_notes"]
