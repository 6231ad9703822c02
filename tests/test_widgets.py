"""Tests for the tasks, habits and quick links widgets."""

from datetime import date

import pytest
from conftest import FakeRemote

from polaris.protocols import ValidationError
from polaris.storage.snapshot import read_snapshot
from polaris.types import SyncMode
from polaris.widgets.habits import (
    HABITS,
    HabitsWidget,
    completion_rate,
    today_index,
    validate_habit,
)
from polaris.widgets.links import (
    LINKS,
    LinksWidget,
    extract_domain,
    favicon_url,
    normalize_url,
    title_from_url,
    validate_link,
)
from polaris.widgets.tasks import TasksWidget


@pytest.fixture
async def tasks(cache, anonymous):
    widget = TasksWidget(cache, anonymous)
    await widget.load()
    return widget


@pytest.fixture
async def habits(cache, anonymous):
    widget = HabitsWidget(cache, anonymous)
    await widget.load()
    return widget


@pytest.fixture
async def links(cache, anonymous):
    widget = LinksWidget(cache, anonymous)
    await widget.load()
    return widget


class TestTasksWidget:
    """Tests for TasksWidget."""

    @pytest.mark.asyncio
    async def test_seed_stats(self, tasks):
        """Five demo tasks, two of them done."""
        stats = tasks.stats()
        assert (stats.total, stats.completed, stats.pending, stats.percent) == (5, 2, 3, 40)

    @pytest.mark.asyncio
    async def test_add_with_due_date(self, tasks):
        task = tasks.add("  File taxes  ", due_date="2024-04-15")
        assert task.get("label") == "File taxes"
        assert task.get("due_date") == "2024-04-15"
        assert tasks.items[0].id == task.id

    @pytest.mark.asyncio
    async def test_add_rejects_bad_due_date(self, tasks):
        assert tasks.add("Plan trip", due_date="next week") is None
        assert tasks.state.error == "Due date must be a date like 2024-05-31"

    @pytest.mark.asyncio
    async def test_label_length_limit(self, tasks):
        assert tasks.add("x" * 501) is None
        assert "too long" in tasks.state.error
        assert tasks.add("x" * 500) is not None

    @pytest.mark.asyncio
    async def test_toggle_rename_and_due_date(self, tasks):
        task_id = tasks.items[0].id
        assert tasks.toggle(task_id).get("completed") is True
        assert tasks.rename(task_id, "Renamed").get("label") == "Renamed"
        assert tasks.set_due_date(task_id, "2024-12-31").get("due_date") == "2024-12-31"
        assert tasks.set_due_date(task_id, None).get("due_date") is None

    @pytest.mark.asyncio
    async def test_rename_to_empty_is_rejected(self, tasks):
        task_id = tasks.items[0].id
        assert tasks.rename(task_id, "") is None
        assert tasks.state.find(task_id).get("label") == "Review job applications"

    @pytest.mark.asyncio
    async def test_remove(self, tasks):
        task_id = tasks.items[0].id
        assert tasks.remove(task_id) is True
        assert tasks.stats().total == 4

    @pytest.mark.asyncio
    async def test_empty_stats(self, cache, signed_in):
        widget = TasksWidget(cache, signed_in, FakeRemote())
        await widget.load()
        assert widget.stats().percent == 0


class TestHabitsWidget:
    """Tests for HabitsWidget."""

    @pytest.mark.asyncio
    async def test_seed_habits(self, habits):
        assert [h.get("name") for h in habits.habits()] == ["Exercise", "Read", "Meditate"]
        assert all(h.get("days") == [False] * 7 for h in habits.items)

    @pytest.mark.asyncio
    async def test_toggle_day(self, habits):
        habit_id = habits.habits()[0].id
        assert habits.toggle_day(habit_id, 3).get("days")[3] is True
        assert habits.toggle_day(habit_id, 3).get("days")[3] is False

    @pytest.mark.asyncio
    async def test_toggle_day_out_of_range(self, habits):
        habit_id = habits.habits()[0].id
        assert habits.toggle_day(habit_id, 7) is None
        assert habits.state.error == "Day index must be between 0 and 6"

    @pytest.mark.asyncio
    async def test_toggle_day_unknown_habit(self, habits):
        assert habits.toggle_day("missing", 0) is None
        assert habits.state.error is None

    @pytest.mark.asyncio
    async def test_new_habits_sort_last(self, habits):
        """Habits render oldest first even though creates are prepended."""
        habit = habits.add("Journal")
        assert habits.items[0].id == habit.id
        assert habits.habits()[-1].id == habit.id
        assert habit.get("days") == [False] * 7

    @pytest.mark.asyncio
    async def test_name_limit(self, habits):
        assert habits.add("n" * 101) is None
        assert habits.add("") is None
        assert habits.state.error == "Habit name is required"

    @pytest.mark.asyncio
    async def test_reset_week(self, habits):
        first, second, _ = habits.habits()
        habits.toggle_day(first.id, 0)
        habits.toggle_day(second.id, 6)

        assert habits.reset_week() == 2
        assert all(not any(h.get("days")) for h in habits.items)
        assert habits.reset_week() == 0

    @pytest.mark.asyncio
    async def test_weekly_completion(self, habits):
        habits.toggle_day(habits.habits()[0].id, 1)
        assert habits.weekly_completion() == 5

    @pytest.mark.asyncio
    async def test_rename_and_remove(self, habits):
        habit_id = habits.habits()[1].id
        assert habits.rename(habit_id, "Read 20 pages").get("name") == "Read 20 pages"
        assert habits.remove(habit_id) is True
        assert len(habits.items) == 2

    def test_completion_rate(self):
        habit = HABITS.seed()[0].with_fields(
            {"days": [True, True, False, False, False, False, False]}, None
        )
        assert completion_rate(habit) == 29

    def test_today_index_is_sunday_first(self):
        assert today_index(date(2024, 1, 7)) == 0  # Sunday
        assert today_index(date(2024, 1, 1)) == 1  # Monday
        assert today_index(date(2024, 1, 6)) == 6  # Saturday

    def test_days_must_be_seven_booleans(self):
        with pytest.raises(ValidationError, match="array of 7 booleans"):
            validate_habit({"name": "Run", "days": [True] * 6})
        with pytest.raises(ValidationError):
            validate_habit({"name": "Run", "days": [1, 0, 0, 0, 0, 0, 0]})


class TestLinkHelpers:
    """Tests for URL helpers used by the quick links dock."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("example.com", "https://example.com"),
            ("  http://example.com ", "http://example.com"),
            ("https://example.com/a", "https://example.com/a"),
        ],
    )
    def test_normalize_url(self, url, expected):
        assert normalize_url(url) == expected

    def test_extract_domain_strips_www(self):
        assert extract_domain("https://www.github.com/org") == "github.com"
        assert extract_domain("not a url") == ""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://github.com", "Github"),
            ("https://www.docs.python.org/3/", "Docs Python"),
            ("https://news.ycombinator.com", "News Ycombinator"),
            ("https://openai.ai", "Openai"),
            ("https://io.dev", "io.dev"),
        ],
    )
    def test_title_from_url(self, url, expected):
        assert title_from_url(url) == expected

    def test_favicon_url(self):
        assert (
            favicon_url("https://www.github.com")
            == "https://www.google.com/s2/favicons?domain=github.com&sz=32"
        )
        assert favicon_url("nope") == ""

    def test_validate_link_requires_title_and_position(self):
        with pytest.raises(ValidationError, match="Title is required"):
            validate_link({"url": "https://a.com", "title": " "})
        with pytest.raises(ValidationError, match="at least 0"):
            validate_link({"url": "https://a.com", "title": "A", "position": -1})
        with pytest.raises(ValidationError, match="valid URL"):
            validate_link({"url": "https://a.com", "title": "A", "favicon_url": "ftp://x"})


class TestLinksWidget:
    """Tests for LinksWidget."""

    @pytest.mark.asyncio
    async def test_seed_links(self, links):
        assert [link.get("title") for link in links.links()] == [
            "GitHub",
            "LinkedIn",
            "Stack Overflow",
            "DEV",
        ]
        assert [link.get("position") for link in links.links()] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_add_derives_title_and_favicon(self, links):
        link = links.add("docs.python.org")

        assert link.get("url") == "https://docs.python.org"
        assert link.get("title") == "Docs Python"
        assert link.get("favicon_url").endswith("domain=docs.python.org&sz=32")
        assert link.get("position") == 4
        assert links.links()[-1].id == link.id

    @pytest.mark.asyncio
    async def test_add_with_explicit_title(self, links):
        assert links.add("https://example.com", title="Mine").get("title") == "Mine"

    @pytest.mark.asyncio
    async def test_add_empty_url(self, links):
        assert links.add("   ") is None
        assert links.state.error == "Please enter a URL"

    @pytest.mark.asyncio
    async def test_add_invalid_url(self, links):
        before = links.items
        assert links.add("not a url") is None
        assert links.state.error == "Please enter a valid URL"
        assert links.items == before

    @pytest.mark.asyncio
    async def test_retitle_and_remove(self, links, cache):
        link_id = links.links()[0].id
        assert links.retitle(link_id, "GH").get("title") == "GH"
        assert links.remove(link_id) is True
        cached = read_snapshot(cache, LINKS.cache_key)
        assert link_id not in [link.id for link in cached]

    @pytest.mark.asyncio
    async def test_remote_dock_uses_server_ids(self, cache, signed_in):
        remote = FakeRemote()
        widget = LinksWidget(cache, signed_in, remote)
        await widget.load()
        assert widget.state.mode is SyncMode.REMOTE

        widget.add("example.com")
        await widget.wait_idle()

        assert widget.links()[0].id == "srv-1"
        assert remote.rows[0].get("position") == 0
