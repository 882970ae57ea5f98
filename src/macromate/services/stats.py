"""Day bucketing and range statistics for food entries.

Every function here is pure: the time zone and the current day are passed in,
inputs are never mutated and nothing is cached between calls.
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo

from macromate.domain.entries import FoodEntry
from macromate.domain.goals import DailyGoal
from macromate.domain.nutrition import round_half_up
from macromate.domain.stats import (
    CalorieTrend,
    DailyStats,
    DayExtremes,
    GoalProgress,
    RangeStats,
)

MIN_TREND_ACTIVE_DAYS = 3
MEAL_GROUPS = ("breakfast", "lunch", "dinner", "snack", "other")


def date_key(moment: date | datetime) -> str:
    """Return the ``YYYY-MM-DD`` key of a date or an aware datetime."""
    if isinstance(moment, datetime):
        moment = moment.date()
    return moment.isoformat()


def today_in(tz: tzinfo) -> date:
    """Return the current calendar day in a time zone."""
    return datetime.now(tz=tz).date()


def day_bounds(day_key: str, tz: tzinfo) -> tuple[int, int]:
    """Return the first and last millisecond of a local calendar day."""
    day = date.fromisoformat(day_key)
    start = datetime(day.year, day.month, day.day, tzinfo=tz)
    following = day + timedelta(days=1)
    end = datetime(following.year, following.month, following.day, tzinfo=tz)
    return to_millis(start), to_millis(end) - 1


def entries_on_date(
    entries: Iterable[FoodEntry], day_key: str, tz: tzinfo
) -> list[FoodEntry]:
    """Return the entries whose timestamp falls on the given local day."""
    start, end = day_bounds(day_key, tz)
    return [entry for entry in entries if start <= entry.timestamp <= end]


def daily_stats_for(
    entries: Iterable[FoodEntry], day_key: str, tz: tzinfo
) -> DailyStats:
    """Sum the nutrients of one local day."""
    day_entries = entries_on_date(entries, day_key, tz)
    return DailyStats(
        date=day_key,
        total_calories=sum(entry.calories for entry in day_entries),
        total_protein=sum(entry.protein for entry in day_entries),
        total_carbs=sum(entry.carbs for entry in day_entries),
        total_fat=sum(entry.fat for entry in day_entries),
        entries=day_entries,
    )


def date_range(days: int, today: date) -> list[str]:
    """Return the keys of the last ``days`` days ending today, oldest first."""
    return [
        date_key(today - timedelta(days=offset)) for offset in range(days - 1, -1, -1)
    ]


def range_stats(
    entries: Iterable[FoodEntry], days: int, tz: tzinfo, today: date | None = None
) -> RangeStats:
    """Return daily stats for the window plus averages over active days."""
    if days < 0:
        raise ValueError("days must not be negative")
    entries = list(entries)
    current = today or today_in(tz)
    daily = [daily_stats_for(entries, key, tz) for key in date_range(days, current)]
    return _summarize(daily, days)


def all_time_stats(
    entries: Iterable[FoodEntry], tz: tzinfo, today: date | None = None
) -> RangeStats:
    """Return stats from the day of the oldest entry through today."""
    entries = list(entries)
    current = today or today_in(tz)
    if not entries:
        return range_stats(entries, 0, tz, current)
    oldest = min(entry.timestamp for entry in entries)
    first_day = datetime.fromtimestamp(oldest / 1000, tz=tz).date()
    days = max((current - first_day).days + 1, 0)
    return range_stats(entries, days, tz, current)


def upcoming_stats(
    entries: Iterable[FoodEntry],
    tz: tzinfo,
    today: date | None = None,
    days: int = 7,
) -> RangeStats:
    """Return the planned entries of the days after today.

    Averages are not meaningful for plans and stay at zero.
    """
    entries = list(entries)
    current = today or today_in(tz)
    daily = [
        daily_stats_for(entries, date_key(current + timedelta(days=offset)), tz)
        for offset in range(1, days + 1)
    ]
    return RangeStats(
        days=daily,
        average_calories=0,
        average_protein=0,
        average_carbs=0,
        average_fat=0,
        total_days=days,
    )


def day_extremes(stats: RangeStats, goal: DailyGoal) -> DayExtremes | None:
    """Return the active days closest to and furthest from the calorie goal."""
    active = stats.active_days
    if not active:
        return None
    best = worst = active[0]
    for day in active:
        distance = abs(day.total_calories - goal.calories)
        if distance < abs(best.total_calories - goal.calories):
            best = day
        if distance > abs(worst.total_calories - goal.calories):
            worst = day
    return DayExtremes(best=best, worst=worst)


def calorie_trend(
    stats: RangeStats, goal: DailyGoal, period_days: int = 30
) -> CalorieTrend | None:
    """Compare the last period's calorie average with the period before it."""
    if len(stats.active_days) < MIN_TREND_ACTIVE_DAYS:
        return None
    count = len(stats.days)
    current = [day for day in stats.days[-period_days:] if day.is_active]
    previous_start = max(0, count - period_days * 2)
    previous_end = max(0, count - period_days)
    previous = [
        day for day in stats.days[previous_start:previous_end] if day.is_active
    ]
    if not current or not previous:
        return None
    current_avg = sum(day.total_calories for day in current) / len(current)
    previous_avg = sum(day.total_calories for day in previous) / len(previous)
    if previous_avg == 0:
        return None
    change = (current_avg - previous_avg) / previous_avg * 100
    return CalorieTrend(
        change_percent=int(round_half_up(change)),
        improving=abs(current_avg - goal.calories)
        < abs(previous_avg - goal.calories),
    )


def goal_progress(stats: DailyStats, goal: DailyGoal) -> GoalProgress:
    """Return how much of each goal a day reached."""
    return GoalProgress(
        calories=_percent(stats.total_calories, goal.calories),
        protein=_percent(stats.total_protein, goal.protein),
        carbs=_percent(stats.total_carbs, goal.carbs),
        fat=_percent(stats.total_fat, goal.fat),
    )


def group_by_meal_type(entries: Iterable[FoodEntry]) -> dict[str, list[FoodEntry]]:
    """Split entries by meal; entries without a meal go to ``other``."""
    groups: dict[str, list[FoodEntry]] = {name: [] for name in MEAL_GROUPS}
    for entry in entries:
        key = str(entry.meal_type) if entry.meal_type else "other"
        groups[key].append(entry)
    return groups


def _summarize(daily: list[DailyStats], days: int) -> RangeStats:
    active_count = max(sum(1 for day in daily if day.is_active), 1)

    def average(total: float) -> int:
        return int(round_half_up(total / active_count))

    return RangeStats(
        days=daily,
        average_calories=average(sum(day.total_calories for day in daily)),
        average_protein=average(sum(day.total_protein for day in daily)),
        average_carbs=average(sum(day.total_carbs for day in daily)),
        average_fat=average(sum(day.total_fat for day in daily)),
        total_days=days,
    )


def _percent(current: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return min(current / target * 100, 100.0)


def to_millis(moment: datetime) -> int:
    """Return epoch milliseconds for an aware datetime."""
    return int(moment.timestamp() * 1000)
