"""Widget adapters: entity semantics on top of the collection engine."""

from .base import Widget
from .habits import HABITS, HabitsWidget
from .links import LINKS, LinksWidget
from .notes import NOTES, NotesWidget
from .tasks import TASKS, TaskStats, TasksWidget

__all__ = [
    "Widget",
    # Kinds
    "TASKS",
    "HABITS",
    "LINKS",
    "NOTES",
    # Adapters
    "TasksWidget",
    "TaskStats",
    "HabitsWidget",
    "LinksWidget",
    "NotesWidget",
]
