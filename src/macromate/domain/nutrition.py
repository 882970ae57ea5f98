"""Nutrition domain models."""

import math
from dataclasses import dataclass
from enum import StrEnum


class MeasurementUnit(StrEnum):
    """Unit a food template is measured in."""

    GRAM = "gram"
    PIECE = "piece"


class MealType(StrEnum):
    """Meal a food entry belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class MacroProfile:
    """Calories plus macronutrients in grams."""

    calories: float
    protein: float
    carbs: float
    fat: float

    def scaled(self, factor: float) -> "MacroProfile":
        """Return the profile multiplied by a portion factor."""
        return MacroProfile(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
        )


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, e.g. 247.5 -> 248 and 2.25 -> 2.3."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale
