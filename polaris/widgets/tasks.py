"""Task list widget."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from polaris.types import EntityKind, Record, seed_record
from polaris.validation import (
    optional_iso_date,
    reject_unknown,
    require_bool,
    sanitize_string,
)

from .base import Widget

TASK_FIELDS = ("label", "completed", "due_date")
MAX_LABEL_LENGTH = 500


def validate_task(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, TASK_FIELDS)
    return {
        "label": sanitize_string(data.get("label"), "Task label", MAX_LABEL_LENGTH),
        "completed": require_bool(data.get("completed", False), "completed"),
        "due_date": optional_iso_date(data.get("due_date"), "Due date"),
    }


def validate_task_update(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, TASK_FIELDS)
    cleaned: Dict[str, Any] = {}
    if "label" in data:
        cleaned["label"] = sanitize_string(data["label"], "Task label", MAX_LABEL_LENGTH)
    if "completed" in data:
        cleaned["completed"] = require_bool(data["completed"], "completed")
    if "due_date" in data:
        cleaned["due_date"] = optional_iso_date(data["due_date"], "Due date")
    return cleaned


def default_tasks() -> List[Record]:
    demo = [
        ("Review job applications", False),
        ("Update LinkedIn profile", True),
        ("Prepare for technical interview", False),
        ("Send follow-up emails", False),
        ("Research company culture", True),
    ]
    return [
        seed_record("task", i, {"label": label, "completed": done, "due_date": None})
        for i, (label, done) in enumerate(demo, start=1)
    ]


TASKS = EntityKind(
    name="task",
    plural="tasks",
    cache_key="polaris-local-tasks",
    table="tasks",
    field_names=TASK_FIELDS,
    seed=default_tasks,
    validate_create=validate_task,
    validate_update=validate_task_update,
    order_by="created_at",
    ascending=False,
)


@dataclass(frozen=True)
class TaskStats:
    total: int
    completed: int

    @property
    def pending(self) -> int:
        return self.total - self.completed

    @property
    def percent(self) -> int:
        if not self.total:
            return 0
        return round(self.completed / self.total * 100)


class TasksWidget(Widget):
    """Tasks with a label, a done flag and an optional due date. Newest first."""

    KIND = TASKS

    def add(self, label: str, due_date: Optional[str] = None) -> Optional[Record]:
        return self.engine.create({"label": label, "completed": False, "due_date": due_date})

    def toggle(self, task_id: str) -> Optional[Record]:
        return self.engine.toggle(task_id, "completed")

    def rename(self, task_id: str, label: str) -> Optional[Record]:
        return self.engine.update(task_id, {"label": label})

    def set_due_date(self, task_id: str, due_date: Optional[str]) -> Optional[Record]:
        return self.engine.update(task_id, {"due_date": due_date})

    def remove(self, task_id: str) -> bool:
        return self.engine.delete(task_id)

    def stats(self) -> TaskStats:
        completed = sum(1 for t in self.items if t.get("completed"))
        return TaskStats(total=len(self.items), completed=completed)
