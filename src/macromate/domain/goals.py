"""Domain models for daily goals."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DailyGoal:
    """Daily nutrition targets."""

    calories: float
    protein: float
    carbs: float
    fat: float


DEFAULT_GOAL = DailyGoal(calories=2000, protein=150, carbs=250, fat=65)
