"""Tests for the file-backed key/value storage."""

from pathlib import Path

import pytest

from macromate.adapters.file_storage import FileKeyValueStorage
from macromate.domain.goals import DailyGoal
from macromate.services.local_store import GuestStorage


def test_set_get_remove(tmp_path: Path) -> None:
    storage = FileKeyValueStorage(tmp_path / "data")

    assert storage.get_item("macromate-goal") is None

    storage.set_item("macromate-goal", '{"calories": 1}')
    assert storage.get_item("macromate-goal") == '{"calories": 1}'
    assert (tmp_path / "data" / "macromate-goal.json").exists()
    assert not (tmp_path / "data" / "macromate-goal.json.tmp").exists()

    storage.remove_item("macromate-goal")
    storage.remove_item("macromate-goal")
    assert storage.get_item("macromate-goal") is None


def test_rejects_path_like_keys(tmp_path: Path) -> None:
    storage = FileKeyValueStorage(tmp_path)

    with pytest.raises(ValueError):
        storage.set_item("../escape", "x")


def test_guest_storage_survives_restart(tmp_path: Path) -> None:
    goal = DailyGoal(calories=1800, protein=120, carbs=200, fat=60)
    GuestStorage.create(FileKeyValueStorage(tmp_path)).save_goal(goal)

    reopened = GuestStorage.create(FileKeyValueStorage(tmp_path))

    assert reopened.load_goal() == goal
