"""Tracker facade used by the presentation layer."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, tzinfo
from typing import TypeVar

from macromate.domain.entries import FoodEntry, FoodEntryDraft
from macromate.domain.errors import TrackerError
from macromate.domain.goals import DEFAULT_GOAL, DailyGoal
from macromate.domain.nutrition import MealType
from macromate.domain.sessions import SIGNED_OUT, SessionContext, SessionMode
from macromate.domain.stats import (
    CalorieTrend,
    DailyStats,
    DayExtremes,
    GoalProgress,
    RangeStats,
    StatsPeriod,
)
from macromate.domain.templates import FoodTemplate, FoodTemplateDraft
from macromate.services import stats
from macromate.services.backends import BackendFactory, SignedOutBackend, TrackerBackend
from macromate.services.barrier import FirstValueBarrier
from macromate.services.feeds import Unsubscribe
from macromate.services.template_csv import (
    TemplateImport,
    export_templates_csv,
    parse_templates_csv,
)

FEEDS = ("entries", "goal", "templates")

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FoodTracker:
    """Entries, goal, templates and statistics behind one API.

    The storage strategy is chosen per session; the in-memory views only
    change through the strategy's feeds.
    """

    backend_factory: BackendFactory
    timezone: tzinfo
    load_timeout_seconds: float = 10.0
    clock: Callable[[], datetime] = _utc_now
    _session: SessionContext = field(default=SIGNED_OUT, init=False)
    _backend: TrackerBackend = field(default_factory=SignedOutBackend, init=False)
    _entries: list[FoodEntry] = field(default_factory=list, init=False)
    _goal: DailyGoal | None = field(default=None, init=False)
    _templates: list[FoodTemplate] = field(default_factory=list, init=False)
    _loading: bool = field(default=False, init=False)
    _subscriptions: list[Unsubscribe] = field(default_factory=list, init=False)
    _barrier: FirstValueBarrier | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def entries(self) -> list[FoodEntry]:
        """Every entry of the session, including past and planned days."""
        return list(self._entries)

    @property
    def today_entries(self) -> list[FoodEntry]:
        return self.get_today_entries()

    @property
    def stored_goal(self) -> DailyGoal | None:
        return self._goal

    @property
    def goal(self) -> DailyGoal:
        """The saved goal, or the default goal when none was saved."""
        return self._goal or DEFAULT_GOAL

    @property
    def templates(self) -> list[FoodTemplate]:
        return list(self._templates)

    async def start(self, session: SessionContext) -> bool:
        """Attach to the storage of a session and wait for its first data.

        Any previous session is released first. Returns False when the feeds
        did not all report before the load timeout.
        """
        await self.close()
        self._generation += 1
        generation = self._generation
        self._session = session
        self._backend = self.backend_factory(session)
        self._loading = True
        barrier = FirstValueBarrier(FEEDS, self.load_timeout_seconds)
        self._barrier = barrier

        def feed(name: str, apply: Callable[[T], None]) -> Callable[[T], None]:
            def on_change(value: T) -> None:
                if generation != self._generation:
                    return
                apply(value)
                barrier.arrive(name)

            return on_change

        self._subscriptions = [
            self._backend.subscribe_entries(feed("entries", self._apply_entries)),
            self._backend.subscribe_goal(feed("goal", self._apply_goal)),
            self._backend.subscribe_templates(feed("templates", self._apply_templates)),
        ]
        complete = await barrier.wait()
        if generation == self._generation:
            self._loading = False
            self._barrier = None
        _logger.info(
            "Tracker started: mode=%s complete=%s entries=%s",
            session.mode,
            complete,
            len(self._entries),
        )
        return complete

    async def switch_session(self, session: SessionContext) -> bool:
        """Tear down the current session and start the given one."""
        _logger.info("Switching session: %s -> %s", self._session.mode, session.mode)
        return await self.start(session)

    async def close(self) -> None:
        """Release every subscription and forget the session's data."""
        self._generation += 1
        subscriptions, self._subscriptions = self._subscriptions, []
        for unsubscribe in subscriptions:
            unsubscribe()
        if self._barrier is not None:
            self._barrier.cancel()
            self._barrier = None
        self._session = SIGNED_OUT
        self._backend = SignedOutBackend()
        self._entries = []
        self._goal = None
        self._templates = []
        self._loading = False

    async def add_entry(
        self, draft: FoodEntryDraft, timestamp: int | None = None
    ) -> FoodEntry:
        """Store an entry at the given time (ms since epoch) or now."""
        resolved = timestamp if timestamp is not None else stats.to_millis(self.clock())
        return await self._mutate(
            "add food entry", self._backend.add_entry(draft, resolved)
        )

    async def delete_entry(self, entry_id: str) -> None:
        await self._mutate("delete food entry", self._backend.delete_entry(entry_id))

    async def edit_entry(self, entry_id: str, changes: dict[str, object]) -> None:
        await self._mutate(
            "edit food entry", self._backend.edit_entry(entry_id, changes)
        )

    async def set_goal(self, goal: DailyGoal) -> None:
        await self._mutate("save goal", self._backend.save_goal(goal))

    async def add_template(self, draft: FoodTemplateDraft) -> FoodTemplate:
        return await self._mutate("add template", self._backend.add_template(draft))

    async def delete_template(self, template_id: str) -> None:
        await self._mutate(
            "delete template", self._backend.delete_template(template_id)
        )

    async def edit_template(self, template_id: str, changes: dict[str, object]) -> None:
        await self._mutate(
            "edit template", self._backend.edit_template(template_id, changes)
        )

    async def delete_templates_bulk(self, template_ids: list[str]) -> None:
        """Delete several templates; remotely either all go or none do."""
        if not template_ids:
            return
        await self._mutate(
            "delete templates", self._backend.delete_templates(list(template_ids))
        )

    async def add_entry_from_template(
        self,
        template_id: str,
        amount: float,
        meal_type: MealType | None = None,
        timestamp: int | None = None,
    ) -> FoodEntry | None:
        """Log an amount of a template; returns None for unknown templates."""
        if self._session.mode is SessionMode.SIGNED_OUT:
            return None
        template = self._find_template(template_id)
        if template is None:
            return None
        portion = template.portion(amount)
        draft = FoodEntryDraft(
            name=template.display_name(amount),
            calories=portion.calories,
            protein=portion.protein,
            carbs=portion.carbs,
            fat=portion.fat,
            meal_type=meal_type,
            from_template=True,
            template_id=template.id,
            original_amount=amount,
            original_unit=template.unit,
        )
        return await self.add_entry(draft, timestamp)

    async def rescale_entry(
        self, entry_id: str, amount: float, meal_type: MealType | None = None
    ) -> bool:
        """Recompute a template-derived entry for a new amount.

        Returns False when the entry is manual or its template is gone.
        """
        entry = next((item for item in self._entries if item.id == entry_id), None)
        if entry is None or not entry.from_template or entry.template_id is None:
            return False
        template = self._find_template(entry.template_id)
        if template is None:
            return False
        portion = template.portion(amount)
        changes: dict[str, object] = {
            "name": template.display_name(amount),
            "calories": portion.calories,
            "protein": portion.protein,
            "carbs": portion.carbs,
            "fat": portion.fat,
            "original_amount": amount,
            "original_unit": template.unit,
        }
        if meal_type is not None:
            changes["meal_type"] = meal_type
        await self.edit_entry(entry_id, changes)
        return True

    async def import_templates_csv(self, text: str) -> TemplateImport:
        """Add the templates of a CSV whose names are not taken yet."""
        result = parse_templates_csv(text, self._templates)
        for draft in result.drafts:
            await self.add_template(draft)
        return result

    def export_templates_csv(self) -> str:
        return export_templates_csv(self._templates)

    def today(self) -> date:
        return self.clock().astimezone(self.timezone).date()

    def get_today_entries(self) -> list[FoodEntry]:
        """Return entries between today's first and last millisecond."""
        return stats.entries_on_date(
            self._entries, stats.date_key(self.today()), self.timezone
        )

    def get_daily_stats(self) -> DailyStats:
        return stats.daily_stats_for(
            self._entries, stats.date_key(self.today()), self.timezone
        )

    def get_range_stats(self, days: int) -> RangeStats:
        return stats.range_stats(self._entries, days, self.timezone, self.today())

    def get_period_stats(self, period: StatsPeriod) -> RangeStats:
        if period is StatsPeriod.ALL_TIME:
            return stats.all_time_stats(self._entries, self.timezone, self.today())
        return self.get_range_stats(period.value)

    def get_upcoming_stats(self, days: int = 7) -> RangeStats:
        return stats.upcoming_stats(
            self._entries, self.timezone, self.today(), days=days
        )

    def get_day_extremes(
        self, period: StatsPeriod = StatsPeriod.MONTHLY
    ) -> DayExtremes | None:
        return stats.day_extremes(self.get_period_stats(period), self.goal)

    def get_calorie_trend(
        self, period: StatsPeriod = StatsPeriod.MONTHLY
    ) -> CalorieTrend | None:
        """Compare a period with the one before it; None for all-time stats."""
        if period.value is None:
            return None
        window = self.get_range_stats(period.value * 2)
        return stats.calorie_trend(window, self.goal, period_days=period.value)

    def get_goal_progress(self) -> GoalProgress:
        return stats.goal_progress(self.get_daily_stats(), self.goal)

    def get_today_meal_groups(self) -> dict[str, list[FoodEntry]]:
        return stats.group_by_meal_type(self.get_today_entries())

    def _find_template(self, template_id: str) -> FoodTemplate | None:
        return next(
            (template for template in self._templates if template.id == template_id),
            None,
        )

    def _apply_entries(self, entries: list[FoodEntry]) -> None:
        self._entries = list(entries)

    def _apply_goal(self, goal: DailyGoal | None) -> None:
        self._goal = goal

    def _apply_templates(self, templates: list[FoodTemplate]) -> None:
        self._templates = list(templates)

    @staticmethod
    async def _mutate(action: str, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except (TrackerError, ValueError):
            raise
        except Exception:
            _logger.exception("Failed to %s", action)
            raise
