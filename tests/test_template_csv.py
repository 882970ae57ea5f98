"""Tests for template CSV import and export."""

from macromate.domain.nutrition import MacroProfile, MeasurementUnit
from macromate.domain.templates import FoodTemplate, PerHundredGrams, PerPiece
from macromate.services.template_csv import export_templates_csv, parse_templates_csv


def test_export_quotes_every_cell() -> None:
    templates = [
        FoodTemplate(
            id="t1",
            name="Pilav, sade",
            basis=PerHundredGrams(MacroProfile(130, 2.7, 28, 0.3)),
        ),
        FoodTemplate(id="t2", name="Yumurta", basis=PerPiece(MacroProfile(70, 6, 0, 5))),
    ]

    text = export_templates_csv(templates)

    assert text.splitlines() == [
        '"name","unit","calories","protein","carbs","fat"',
        '"Pilav, sade","gram","130","2.7","28","0.3"',
        '"Yumurta","piece","70","6","0","5"',
    ]


def test_parse_reads_columns_by_header() -> None:
    text = "fat,name,calories,unit,protein,carbs\n5,Yumurta,70,piece,6,0\n1,Ekmek,265,gram,9,49\n"

    result = parse_templates_csv(text)

    assert [draft.name for draft in result.drafts] == ["Yumurta", "Ekmek"]
    egg = result.drafts[0]
    assert egg.basis.unit is MeasurementUnit.PIECE
    assert egg.basis.macros == MacroProfile(calories=70, protein=6, carbs=0, fat=5)
    assert result.drafts[1].basis.unit is MeasurementUnit.GRAM


def test_parse_skips_existing_and_repeated_names() -> None:
    existing = [
        FoodTemplate(id="t1", name="Elma", basis=PerPiece(MacroProfile(95, 0, 25, 0)))
    ]
    text = (
        "name,unit,calories,protein,carbs,fat\n"
        " elma ,piece,95,0,25,0\n"
        "Muz,piece,105,1,27,0\n"
        "MUZ,piece,105,1,27,0\n"
    )

    result = parse_templates_csv(text, existing)

    assert [draft.name for draft in result.drafts] == ["Muz"]
    assert result.skipped == ["elma", "MUZ"]


def test_parse_ignores_rows_without_name_or_calories() -> None:
    text = (
        "name,unit,calories,protein,carbs,fat\n"
        ",gram,100,1,1,1\n"
        "Su,gram,0,0,0,0\n"
        "Ayran,litre,abc,3,4,2\n"
        "Peynir,grams,300,x,2,25\n"
    )

    result = parse_templates_csv(text)

    assert [draft.name for draft in result.drafts] == ["Peynir"]
    cheese = result.drafts[0]
    assert cheese.basis.unit is MeasurementUnit.GRAM
    assert cheese.basis.macros.protein == 0


def test_parse_empty_text() -> None:
    result = parse_templates_csv("")

    assert result.drafts == []
    assert result.skipped == []
