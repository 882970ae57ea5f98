"""Domain models for food entries."""

from dataclasses import asdict, dataclass, fields, replace

from macromate.domain.nutrition import MacroProfile, MealType, MeasurementUnit


@dataclass(frozen=True)
class FoodEntryDraft:
    """A food entry that has not been assigned an id or timestamp yet."""

    name: str
    calories: float
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    meal_type: MealType | None = None
    from_template: bool = False
    template_id: str | None = None
    original_amount: float | None = None
    original_unit: MeasurementUnit | None = None


@dataclass(frozen=True)
class FoodEntry:
    """A logged food entry."""

    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    timestamp: int
    meal_type: MealType | None = None
    from_template: bool = False
    template_id: str | None = None
    original_amount: float | None = None
    original_unit: MeasurementUnit | None = None

    @property
    def macros(self) -> MacroProfile:
        return MacroProfile(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )


EDITABLE_ENTRY_FIELDS = frozenset(
    item.name for item in fields(FoodEntry) if item.name != "id"
)
CLEARABLE_ENTRY_FIELDS = frozenset(
    {"meal_type", "template_id", "original_amount", "original_unit"}
)


def build_entry(draft: FoodEntryDraft, entry_id: str, timestamp: int) -> FoodEntry:
    """Attach an id and timestamp to a draft."""
    return FoodEntry(id=entry_id, timestamp=timestamp, **asdict(draft))


def validate_entry_changes(changes: dict[str, object]) -> None:
    """Reject edits to unknown fields and clears of required ones."""
    unknown = set(changes) - EDITABLE_ENTRY_FIELDS
    if unknown:
        raise ValueError(f"Cannot edit entry fields: {', '.join(sorted(unknown))}")
    required = sorted(
        name
        for name, value in changes.items()
        if value is None and name not in CLEARABLE_ENTRY_FIELDS
    )
    if required:
        raise ValueError(f"Cannot clear entry fields: {', '.join(required)}")


def apply_entry_changes(entry: FoodEntry, changes: dict[str, object]) -> FoodEntry:
    """Merge partial changes into an entry, keeping the id."""
    validate_entry_changes(changes)
    return replace(entry, **changes)
