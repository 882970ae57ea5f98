"""Domain models for statistics."""

from dataclasses import dataclass
from enum import Enum

from macromate.domain.entries import FoodEntry


class StatsPeriod(Enum):
    """Named history windows, valued by their day count."""

    WEEKLY = 7
    MONTHLY = 30
    QUARTERLY = 90
    ALL_TIME = None


@dataclass(frozen=True)
class DailyStats:
    """Totals for one local calendar day."""

    date: str
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    entries: list[FoodEntry]

    @property
    def is_active(self) -> bool:
        return bool(self.entries)


@dataclass(frozen=True)
class RangeStats:
    """Consecutive days ending today with active-day averages."""

    days: list[DailyStats]
    average_calories: int
    average_protein: int
    average_carbs: int
    average_fat: int
    total_days: int

    @property
    def active_days(self) -> list[DailyStats]:
        return [day for day in self.days if day.is_active]


@dataclass(frozen=True)
class DayExtremes:
    """Closest and furthest active days from the calorie goal."""

    best: DailyStats
    worst: DailyStats


@dataclass(frozen=True)
class CalorieTrend:
    """Change in average calories against the previous period."""

    change_percent: int
    improving: bool


@dataclass(frozen=True)
class GoalProgress:
    """Percent of each goal reached, capped at 100."""

    calories: float
    protein: float
    carbs: float
    fat: float
