"""Weekly habit grid widget.

Each habit carries seven day slots, Sunday first, matching the grid's
column order.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from polaris.protocols import ValidationError
from polaris.types import EntityKind, Record, seed_record
from polaris.validation import bool_week, reject_unknown, sanitize_string

from .base import Widget

logger = logging.getLogger(__name__)

HABIT_FIELDS = ("name", "days")
MAX_NAME_LENGTH = 100
DAYS_IN_WEEK = 7
DAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def empty_week() -> List[bool]:
    return [False] * DAYS_IN_WEEK


def validate_habit(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, HABIT_FIELDS)
    return {
        "name": sanitize_string(data.get("name"), "Habit name", MAX_NAME_LENGTH),
        "days": bool_week(data.get("days", empty_week())),
    }


def validate_habit_update(data: Dict[str, Any]) -> Dict[str, Any]:
    reject_unknown(data, HABIT_FIELDS)
    cleaned: Dict[str, Any] = {}
    if "name" in data:
        cleaned["name"] = sanitize_string(data["name"], "Habit name", MAX_NAME_LENGTH)
    if "days" in data:
        cleaned["days"] = bool_week(data["days"])
    return cleaned


def default_habits() -> List[Record]:
    return [
        seed_record("habit", i, {"name": name, "days": empty_week()})
        for i, name in enumerate(("Exercise", "Read", "Meditate"), start=1)
    ]


HABITS = EntityKind(
    name="habit",
    plural="habits",
    cache_key="polaris-local-habits",
    table="habits",
    field_names=HABIT_FIELDS,
    seed=default_habits,
    validate_create=validate_habit,
    validate_update=validate_habit_update,
    order_by="created_at",
    ascending=True,
)


def completion_rate(habit: Record) -> int:
    """Percentage of this week's days ticked off."""
    days = habit.get("days") or []
    return round(sum(1 for d in days if d) / DAYS_IN_WEEK * 100)


def today_index(today: Optional[date] = None) -> int:
    """Index of today in a Sunday-first week."""
    today = today or date.today()
    return (today.weekday() + 1) % DAYS_IN_WEEK


class HabitsWidget(Widget):
    KIND = HABITS

    def add(self, name: str) -> Optional[Record]:
        return self.engine.create({"name": name, "days": empty_week()})

    def toggle_day(self, habit_id: str, day_index: int) -> Optional[Record]:
        """Flip one day slot.

        An out-of-range index is a validation error; an unknown habit is
        ignored like any other unknown id.
        """
        if isinstance(day_index, bool) or not isinstance(day_index, int) or not (
            0 <= day_index < DAYS_IN_WEEK
        ):
            self.engine.reject(
                "update", ValidationError("Day index must be between 0 and 6", "day_index")
            )
            return None

        habit = self.state.find(habit_id)
        if habit is None:
            logger.debug(f"Ignoring day toggle of unknown habit {habit_id}")
            return None

        days = list(habit.get("days") or empty_week())
        days[day_index] = not days[day_index]
        return self.engine.update(habit_id, {"days": days})

    def rename(self, habit_id: str, name: str) -> Optional[Record]:
        return self.engine.update(habit_id, {"name": name})

    def remove(self, habit_id: str) -> bool:
        return self.engine.delete(habit_id)

    def reset_week(self) -> int:
        """Clear every habit's days. Returns how many habits changed."""
        changed = 0
        for habit in list(self.items):
            if any(habit.get("days") or []):
                self.engine.update(habit.id, {"days": empty_week()})
                changed += 1
        return changed

    def habits(self) -> List[Record]:
        """Habits in grid order (oldest first)."""
        return sorted(self.items, key=lambda h: h.created_at.timestamp() if h.created_at else 0.0)

    def weekly_completion(self) -> int:
        """Share of all habit/day slots completed this week."""
        if not self.items:
            return 0
        done = sum(sum(1 for d in (h.get("days") or []) if d) for h in self.items)
        return round(done / (len(self.items) * DAYS_IN_WEEK) * 100)
