import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

import config
from handlers.budget_handler import budget_command
from handlers.category_handler import categories_command
from handlers.common import parse_options, split_category
from handlers.expense_handler import add_command, delete_command, edit_command
from handlers.export_handler import export_csv_command, reset_command, restore_command
from handlers.report_handler import report_command
from repositories.kv_repo import MemoryKeyValueStore
from services.container import BOT_DATA_KEY, AppServices, create_store


@pytest.fixture
def services():
    return AppServices.build(MemoryKeyValueStore())


def _update(user_id=1):
    update = MagicMock()
    update.effective_user.id = user_id
    update.message.reply_text = AsyncMock()
    update.message.reply_document = AsyncMock()
    update.message.reply_photo = AsyncMock()
    update.message.reply_to_message = None
    update.effective_message = update.message
    return update


def _run(handler, services, *args, update=None):
    update = update or _update()
    context = SimpleNamespace(args=list(args), bot_data={BOT_DATA_KEY: services})
    asyncio.run(handler(update, context))
    return update


def _last_reply(update):
    return update.message.reply_text.call_args[0][0]


def test_parse_options_collects_multiword_values():
    positional, options = parse_options(["42000", "Cement", "notes:first", "floor", "mode:upi"])
    assert positional == ["42000", "Cement"]
    assert options == {"notes": "first floor", "payment_mode": "upi"}


def test_parse_options_trailing_words():
    _, options = parse_options(["notes:", "first", "floor", "slab"])
    assert options == {"notes": "first floor slab"}


def test_split_category_prefers_longest_match():
    category, rest = split_category(["river", "sand", "truck"], ["River Sand", "River"])
    assert category == "River Sand"
    assert rest == ["truck"]


def test_add_command_records_expense(services):
    update = _run(add_command, services, "42,000", "cement", "100", "bags", "OPC", "mode:Online")

    expense = services.ledger.list()[0]
    assert expense.amount == 42000.0
    assert expense.category == "Cement"
    assert expense.title == "100 bags OPC"
    assert expense.payment_mode.value == "UPI"
    assert "Expense added" in _last_reply(update)


def test_add_command_reports_validation_error(services):
    update = _run(add_command, services, "0", "Cement", "Bad amount")

    assert services.ledger.list() == []
    assert _last_reply(update).startswith("⚠️")


def test_add_command_without_arguments_shows_usage(services):
    update = _run(add_command, services)
    assert "Format:" in _last_reply(update)


def test_edit_and_delete_by_short_id(services):
    expense = services.ledger.add({"title": "Mason wages", "amount": 3000, "category": "Labour"})
    short = expense.id[:8]

    _run(edit_command, services, short, "amount:3500", "notes:week", "2")
    assert services.ledger.get(expense.id).amount == 3500.0
    assert services.ledger.get(expense.id).notes == "week 2"

    _run(delete_command, services, f"#{short}")
    assert services.ledger.list() == []


def test_budget_set_and_status(services):
    _run(budget_command, services, "set", "2,000,000")
    assert services.settings.get_budget() == 2000000.0

    update = _run(budget_command, services)
    assert "HEALTHY" in _last_reply(update)


def test_protected_category_cannot_be_deleted(services):
    update = _run(categories_command, services, "delete", "Cement")

    assert "Cement" in services.settings.get_categories()
    assert "cannot be deleted" in _last_reply(update)


def test_category_add_rename_delete(services):
    _run(categories_command, services, "add", "Tiles")
    _run(categories_command, services, "rename", "Tiles", "|", "Floor", "Tiles")
    assert services.settings.get_categories()[-1] == "Floor Tiles"

    _run(categories_command, services, "delete", "Floor", "Tiles")
    assert "Floor Tiles" not in services.settings.get_categories()


def test_report_sends_breakdown_and_chart(services):
    services.ledger.add({"title": "TMT bars", "amount": 100, "category": "Steel"})
    services.ledger.add({"title": "River sand", "amount": 50, "category": "Sand"})

    update = _run(report_command, services)

    text = _last_reply(update)
    assert text.index("Steel") < text.index("Sand")
    update.message.reply_photo.assert_awaited_once()


def test_export_csv_sends_document(services):
    services.ledger.add({"title": "TMT bars", "amount": 100, "category": "Steel"})

    update = _run(export_csv_command, services)

    kwargs = update.message.reply_document.call_args.kwargs
    assert kwargs["filename"].startswith("expenzoo_data_")
    assert kwargs["filename"].endswith(".csv")


def test_export_csv_empty_ledger(services):
    update = _run(export_csv_command, services)

    update.message.reply_document.assert_not_awaited()
    assert "no expenses" in _last_reply(update)


def test_restore_from_replied_document(services):
    payload = {
        "budget": 750000,
        "categories": ["Cement", "Tiles"],
        "expenses": [{"id": "r1", "title": "Floor tiles", "amount": 900,
                      "category": "Tiles", "date": "2024-01-02"}],
    }
    tg_file = MagicMock()
    tg_file.download_as_bytearray = AsyncMock(return_value=bytearray(json.dumps(payload).encode()))
    update = _update()
    update.message.reply_to_message = MagicMock()
    update.message.reply_to_message.document.file_size = 200
    update.message.reply_to_message.document.get_file = AsyncMock(return_value=tg_file)

    _run(restore_command, services, update=update)

    assert services.settings.get_budget() == 750000.0
    assert [e.id for e in services.ledger.list()] == ["r1"]
    assert "restored" in _last_reply(update)


def test_restore_rejects_invalid_backup(services):
    services.ledger.add({"title": "TMT bars", "amount": 100, "category": "Steel"})
    tg_file = MagicMock()
    tg_file.download_as_bytearray = AsyncMock(return_value=bytearray(b'{"budget": 5}'))
    update = _update()
    update.message.reply_to_message = MagicMock()
    update.message.reply_to_message.document.file_size = 20
    update.message.reply_to_message.document.get_file = AsyncMock(return_value=tg_file)

    _run(restore_command, services, update=update)

    assert len(services.ledger.list()) == 1
    assert "Missing expenses data" in _last_reply(update)


def test_reset_requires_confirmation(services):
    services.ledger.add({"title": "TMT bars", "amount": 100, "category": "Steel"})

    _run(reset_command, services)
    assert len(services.ledger.list()) == 1

    _run(reset_command, services, "confirm")
    assert services.ledger.list() == []


def test_unauthorized_user_is_refused(services, monkeypatch):
    monkeypatch.setattr(config, "ALLOWED_USER_IDS", [99])

    update = _run(add_command, services, "100", "Sand", "River sand", update=_update(user_id=1))

    assert services.ledger.list() == []
    assert "private" in _last_reply(update)


def test_rate_limit_blocks_excess_messages(services, monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_MESSAGES", 2)

    for _ in range(2):
        _run(budget_command, services)
    update = _run(budget_command, services)

    assert "Too many messages" in _last_reply(update)


def test_create_store_backends(tmp_path):
    assert isinstance(create_store("memory"), MemoryKeyValueStore)
    assert create_store("file", str(tmp_path / "data.json")).path == tmp_path / "data.json"
    with pytest.raises(ValueError):
        create_store("redis")
