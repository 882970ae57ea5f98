"""Domain models for reusable food templates."""

from dataclasses import dataclass, replace
from typing import ClassVar

from macromate.domain.nutrition import MacroProfile, MeasurementUnit, round_half_up

PIECE_LABEL = "adet"


def format_amount(amount: float) -> str:
    """Render an amount without a trailing ``.0``."""
    return str(int(amount)) if float(amount).is_integer() else str(amount)


@dataclass(frozen=True)
class PerHundredGrams:
    """Nutrients given for 100 grams of the food."""

    macros: MacroProfile
    unit: ClassVar[MeasurementUnit] = MeasurementUnit.GRAM

    def factor(self, amount: float) -> float:
        return amount / 100

    def portion_label(self, amount: float) -> str:
        return f"{format_amount(amount)}g"


@dataclass(frozen=True)
class PerPiece:
    """Nutrients given for one piece of the food."""

    macros: MacroProfile
    unit: ClassVar[MeasurementUnit] = MeasurementUnit.PIECE

    def factor(self, amount: float) -> float:
        return amount

    def portion_label(self, amount: float) -> str:
        return f"{format_amount(amount)} {PIECE_LABEL}"


TemplateBasis = PerHundredGrams | PerPiece


def basis_for(unit: MeasurementUnit | str, macros: MacroProfile) -> TemplateBasis:
    """Build the nutrient basis for a unit tag."""
    if MeasurementUnit(unit) is MeasurementUnit.PIECE:
        return PerPiece(macros)
    return PerHundredGrams(macros)


@dataclass(frozen=True)
class FoodTemplateDraft:
    """A template that has not been stored yet."""

    name: str
    basis: TemplateBasis


@dataclass(frozen=True)
class FoodTemplate:
    """A stored food template."""

    id: str
    name: str
    basis: TemplateBasis

    @property
    def unit(self) -> MeasurementUnit:
        return self.basis.unit

    def portion(self, amount: float) -> MacroProfile:
        """Return rounded macros for an amount in the template's unit."""
        raw = self.basis.macros.scaled(self.basis.factor(amount))
        return MacroProfile(
            calories=round_half_up(raw.calories),
            protein=round_half_up(raw.protein, 1),
            carbs=round_half_up(raw.carbs, 1),
            fat=round_half_up(raw.fat, 1),
        )

    def display_name(self, amount: float) -> str:
        return f"{self.name} ({self.basis.portion_label(amount)})"


TEMPLATE_FIELDS = frozenset({"name", "unit", "calories", "protein", "carbs", "fat"})
_MACRO_FIELDS = ("calories", "protein", "carbs", "fat")


def validate_template_changes(changes: dict[str, object]) -> None:
    """Reject changes to unknown template fields and attempts to clear one."""
    unknown = set(changes) - TEMPLATE_FIELDS
    if unknown:
        raise ValueError(f"Cannot edit template fields: {', '.join(sorted(unknown))}")
    cleared = sorted(name for name, value in changes.items() if value is None)
    if cleared:
        raise ValueError(f"Cannot clear template fields: {', '.join(cleared)}")


def apply_template_changes(
    template: FoodTemplate, changes: dict[str, object]
) -> FoodTemplate:
    """Merge flat field changes (name, unit, nutrients) into a template."""
    validate_template_changes(changes)
    current = template.basis.macros
    macros = MacroProfile(
        **{
            name: float(changes.get(name, getattr(current, name)))
            for name in _MACRO_FIELDS
        }
    )
    unit = changes.get("unit", template.unit)
    return replace(
        template,
        name=str(changes.get("name", template.name)),
        basis=basis_for(unit, macros),
    )
