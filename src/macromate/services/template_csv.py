"""CSV export and import of food templates."""

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass, field

from macromate.domain.nutrition import MacroProfile, MeasurementUnit
from macromate.domain.templates import (
    FoodTemplate,
    FoodTemplateDraft,
    basis_for,
    format_amount,
)

CSV_COLUMNS = ("name", "unit", "calories", "protein", "carbs", "fat")


@dataclass
class TemplateImport:
    """Outcome of parsing a template CSV."""

    drafts: list[FoodTemplateDraft] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def export_templates_csv(templates: Iterable[FoodTemplate]) -> str:
    """Render templates as CSV with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for template in templates:
        macros = template.basis.macros
        writer.writerow(
            [
                template.name,
                template.unit.value,
                format_amount(macros.calories),
                format_amount(macros.protein),
                format_amount(macros.carbs),
                format_amount(macros.fat),
            ]
        )
    return buffer.getvalue()


def parse_templates_csv(
    text: str, existing: Iterable[FoodTemplate] = ()
) -> TemplateImport:
    """Parse template rows, skipping names that already exist.

    Rows without a name or with zero calories are ignored. Name comparison is
    case-insensitive and ignores surrounding whitespace.
    """
    result = TemplateImport()
    reader = csv.DictReader(io.StringIO(text.strip()))
    if reader.fieldnames is None:
        return result
    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    seen = {_name_key(template.name) for template in existing}
    for row in reader:
        name = (row.get("name") or "").strip()
        calories = _to_float(row.get("calories"))
        if not name:
            continue
        if _name_key(name) in seen:
            result.skipped.append(name)
            continue
        if not calories:
            continue
        unit = (
            MeasurementUnit.PIECE
            if (row.get("unit") or "").strip() == "piece"
            else MeasurementUnit.GRAM
        )
        macros = MacroProfile(
            calories=calories,
            protein=_to_float(row.get("protein")),
            carbs=_to_float(row.get("carbs")),
            fat=_to_float(row.get("fat")),
        )
        result.drafts.append(
            FoodTemplateDraft(name=name, basis=basis_for(unit, macros))
        )
        seen.add(_name_key(name))
    return result


def _name_key(name: str) -> str:
    return name.strip().lower()


def _to_float(value: object) -> float:
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0
