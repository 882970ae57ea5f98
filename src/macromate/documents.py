"""Pydantic schemas for stored entries, goals and templates.

Local storage uses the camelCase aliases of the browser-era format while
Supabase rows use the snake_case field names.
"""

from dataclasses import asdict
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from macromate.domain.entries import FoodEntry, FoodEntryDraft
from macromate.domain.goals import DailyGoal
from macromate.domain.nutrition import MacroProfile, MealType, MeasurementUnit
from macromate.domain.templates import FoodTemplate, FoodTemplateDraft, basis_for


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FoodEntryDocument(_Document):
    """Stored form of a food entry."""

    id: str | None = None
    name: str
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    timestamp: int
    meal_type: MealType | None = Field(default=None, alias="mealType")
    from_template: bool | None = Field(default=None, alias="fromTemplate")
    template_id: str | None = Field(default=None, alias="templateId")
    original_amount: float | None = Field(default=None, alias="originalAmount")
    original_unit: MeasurementUnit | None = Field(default=None, alias="originalUnit")

    @classmethod
    def from_entry(cls, entry: FoodEntry) -> "FoodEntryDocument":
        return cls.model_validate(asdict(entry))

    @classmethod
    def from_draft(cls, draft: FoodEntryDraft, timestamp: int) -> "FoodEntryDocument":
        return cls.model_validate({**asdict(draft), "timestamp": timestamp})

    def to_entry(self) -> FoodEntry:
        return FoodEntry(
            id=str(self.id or ""),
            name=self.name,
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
            timestamp=self.timestamp,
            meal_type=self.meal_type,
            from_template=bool(self.from_template),
            template_id=self.template_id,
            original_amount=self.original_amount,
            original_unit=self.original_unit,
        )


class GoalDocument(_Document):
    """Stored form of the daily goal."""

    calories: float
    protein: float
    carbs: float
    fat: float

    @classmethod
    def from_goal(cls, goal: DailyGoal) -> "GoalDocument":
        return cls.model_validate(asdict(goal))

    def to_goal(self) -> DailyGoal:
        return DailyGoal(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )


class TemplateDocument(_Document):
    """Stored form of a food template, nutrients flattened next to the unit."""

    id: str | None = None
    name: str
    unit: MeasurementUnit = MeasurementUnit.GRAM
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    @classmethod
    def from_template(
        cls, template: FoodTemplate | FoodTemplateDraft
    ) -> "TemplateDocument":
        macros = template.basis.macros
        return cls(
            id=getattr(template, "id", None),
            name=template.name,
            unit=template.basis.unit,
            calories=macros.calories,
            protein=macros.protein,
            carbs=macros.carbs,
            fat=macros.fat,
        )

    def to_template(self) -> FoodTemplate:
        macros = MacroProfile(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )
        return FoodTemplate(
            id=str(self.id or ""),
            name=self.name,
            basis=basis_for(self.unit, macros),
        )


def row_payload(document: BaseModel, *, include_id: bool = False) -> dict[str, object]:
    """Dump a document as a Supabase row payload with unset fields stripped."""
    payload = document.model_dump(mode="json", exclude_none=True)
    if not include_id:
        payload.pop("id", None)
    return payload


def changes_payload(changes: dict[str, object]) -> dict[str, object]:
    """Convert partial domain changes to row values.

    ``None`` is kept and written as ``null``, clearing the column.
    """
    return {
        name: value.value if isinstance(value, Enum) else value
        for name, value in changes.items()
    }
