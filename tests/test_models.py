from datetime import date, datetime, timezone

import pytest

from models.expense import Expense, PaymentMode, parse_timestamp


@pytest.mark.parametrize(
    "value, expected",
    [
        ("cash", PaymentMode.CASH),
        (" UPI ", PaymentMode.UPI),
        ("Online", PaymentMode.UPI),
        ("card", PaymentMode.BANK),
        ("Other", PaymentMode.OTHER),
        (PaymentMode.BANK, PaymentMode.BANK),
    ],
)
def test_payment_mode_parse(value, expected):
    assert PaymentMode.parse(value) is expected


def test_payment_mode_parse_unknown():
    with pytest.raises(ValueError):
        PaymentMode.parse("Cheque")


def test_parse_timestamp_variants():
    assert parse_timestamp("2024-01-02T08:00:00.000Z") == datetime(2024, 1, 2, 8, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-02T08:00:00").tzinfo == timezone.utc


def test_to_dict_uses_storage_keys():
    expense = Expense(
        title="Wiring", amount=1200.0, category="Electrical", date=date(2024, 3, 1),
        payment_mode=PaymentMode.UPI, id="abc",
        created_at=datetime(2024, 3, 1, 9, tzinfo=timezone.utc),
    )

    data = expense.to_dict()

    assert data["paymentMode"] == "UPI"
    assert data["createdAt"] == "2024-03-01T09:00:00+00:00"
    assert data["date"] == "2024-03-01"
    assert Expense.from_dict(data) == expense


def test_from_dict_legacy_record():
    expense = Expense.from_dict({
        "_id": "65a1f0",
        "title": "Plumbing fittings",
        "amount": "850",
        "category": "Plumbing",
        "createdAt": "2024-01-20T18:30:00.000Z",
    })

    assert expense.id == "65a1f0"
    assert expense.amount == 850.0
    assert expense.date == date(2024, 1, 20)
    assert expense.payment_mode is PaymentMode.CASH
    assert expense.notes == ""


@pytest.mark.parametrize(
    "data",
    [
        {"title": "x", "category": "Sand", "date": "2024-01-01"},
        {"title": "x", "amount": True, "category": "Sand", "date": "2024-01-01"},
        {"title": "x", "amount": 5, "category": "Sand"},
        {"title": "x", "amount": 5, "category": "Sand", "date": "01/02/2024"},
        {"title": None, "amount": 5, "category": "Sand", "date": "2024-01-01"},
        {"title": "x", "amount": 5, "category": 7, "date": "2024-01-01"},
    ],
)
def test_from_dict_rejects_malformed(data):
    with pytest.raises((KeyError, TypeError, ValueError)):
        Expense.from_dict(data)
