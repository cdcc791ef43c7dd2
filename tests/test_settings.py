import json

import pytest

from config import DEFAULT_BUDGET, DEFAULT_CATEGORIES
from services.settings_service import BUDGET_KEY, CATEGORIES_KEY, SettingsStore
from utils.exceptions import DuplicateError, StorageError, ValidationError


def test_defaults_on_first_launch(settings):
    assert settings.get_budget() == DEFAULT_BUDGET
    assert settings.get_categories() == DEFAULT_CATEGORIES


def test_set_budget_persists(settings, store):
    assert settings.set_budget("1500000") == 1500000.0
    assert settings.get_budget() == 1500000.0
    assert json.loads(store.get(BUDGET_KEY)) == 1500000.0


@pytest.mark.parametrize("value", [0, -10, "abc", None, float("inf"), True])
def test_set_budget_rejects_invalid(settings, store, value):
    with pytest.raises(ValidationError) as exc:
        settings.set_budget(value)
    assert exc.value.field == "budget"
    assert settings.get_budget() == DEFAULT_BUDGET
    assert store.get(BUDGET_KEY) is None


def test_add_category_trims_and_appends(settings, store):
    assert settings.add_category("  Tiles ") == "Tiles"
    assert settings.get_categories()[-1] == "Tiles"
    assert json.loads(store.get(CATEGORIES_KEY))[-1] == "Tiles"


def test_add_duplicate_category(settings):
    with pytest.raises(DuplicateError):
        settings.add_category(" Steel ")


def test_duplicates_are_case_sensitive(settings):
    settings.add_category("steel")
    assert "steel" in settings.get_categories()


def test_add_empty_category(settings):
    with pytest.raises(ValidationError):
        settings.add_category("   ")


def test_rename_keeps_position(settings):
    assert settings.rename_category("Sand", "River Sand") is True
    assert settings.get_categories()[2] == "River Sand"
    assert "Sand" not in settings.get_categories()


def test_rename_missing_is_noop(settings, store):
    assert settings.rename_category("Glass", "Glazing") is False
    assert store.get(CATEGORIES_KEY) is None


def test_rename_to_existing_name(settings):
    with pytest.raises(DuplicateError):
        settings.rename_category("Sand", "Steel")


def test_remove_category(settings):
    assert settings.remove_category("Painting") is True
    assert settings.remove_category("Painting") is False
    assert "Painting" not in settings.get_categories()


def test_remove_protected_category_is_allowed_at_data_layer(settings):
    assert settings.is_protected("Cement")
    assert settings.remove_category("Cement") is True


def test_remove_referenced_category_keeps_expense(ledger, settings):
    expense = ledger.add({"title": "TMT bars", "amount": 100, "category": "Steel", "date": "2024-02-01"})

    settings.remove_category("Steel")

    assert ledger.get(expense.id).category == "Steel"


def test_failed_write_leaves_settings_unchanged(settings, store):
    store.fail_writes = True
    with pytest.raises(StorageError):
        settings.add_category("Tiles")
    with pytest.raises(StorageError):
        settings.set_budget(5)
    assert "Tiles" not in settings.get_categories()
    assert settings.get_budget() == DEFAULT_BUDGET


def test_reload_and_legacy_string_budget(store):
    store.set(BUDGET_KEY, "250000")
    store.set(CATEGORIES_KEY, json.dumps(["Cement", "Cement", "Tiles"]))

    settings = SettingsStore(store)

    assert settings.get_budget() == 250000.0
    assert settings.get_categories() == ["Cement", "Tiles"]


def test_invalid_stored_values_fall_back_to_defaults(store):
    store.set(BUDGET_KEY, "-1")
    store.set(CATEGORIES_KEY, "{not json")

    settings = SettingsStore(store)

    assert settings.get_budget() == DEFAULT_BUDGET
    assert settings.get_categories() == DEFAULT_CATEGORIES
