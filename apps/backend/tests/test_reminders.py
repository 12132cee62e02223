from datetime import date
from decimal import Decimal

import pytest

from cardledger import models
from cardledger.core.clock import FixedClock
from cardledger.services.reminder_service import ReminderService
from cardledger.utils.billing_calendar import invoice_window, next_due_invoice


def _reminder(client, **overrides):
    body = {"title": "Rent", "amount": "1200", "due_date": "2024-01-25"}
    body.update(overrides)
    r = client.post("/api/reminders", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def _card_charge(client, account, category, card, amount, day):
    r = client.post(
        "/api/transactions",
        json={
            "type": "EXPENSE",
            "amount": amount,
            "date": day,
            "description": "Card purchase",
            "account_id": account.id,
            "category_id": category.id,
            "credit_card_id": card.id,
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture()
def late_card(db_session, user, account) -> models.CreditCard:
    row = models.CreditCard(
        user_id=user.id, account_id=account.id, name="Master", closing_day=25, due_day=31
    )
    db_session.add(row)
    db_session.commit()
    return row


@pytest.mark.parametrize(
    "today,expected",
    [
        (date(2024, 1, 3), (2024, 1)),
        # closed on the 5th, still due on the 10th
        (date(2024, 1, 7), (2024, 1)),
        (date(2024, 1, 10), (2024, 1)),
        (date(2024, 1, 11), (2024, 2)),
        (date(2023, 12, 20), (2024, 1)),
    ],
)
def test_next_due_invoice(today, expected):
    assert next_due_invoice(today, closing_day=5, due_day=10) == expected


def test_invoice_window_follows_closing_day():
    assert invoice_window(2024, 1, closing_day=5) == (date(2023, 12, 6), date(2024, 1, 5))
    # February closes on its last day when the closing day does not exist
    assert invoice_window(2024, 2, closing_day=31) == (date(2024, 2, 1), date(2024, 2, 29))
    assert invoice_window(2024, 3, closing_day=31) == (date(2024, 3, 1), date(2024, 3, 31))


def test_reminder_crud(client, card):
    created = _reminder(client, credit_card_id=card.id, description="Landlord")
    assert created["status"] == "PENDING"
    assert created["reminder_days"] == 3
    assert created["is_recurring"] is False
    assert created["credit_card"] == {"id": card.id, "name": "Visa", "due_day": 10}

    r = client.patch(f"/api/reminders/{created['id']}", json={"amount": "1250.5", "reminder_days": 5})
    assert r.status_code == 200, r.text
    assert Decimal(r.json()["amount"]) == Decimal("1250.50")
    assert r.json()["reminder_days"] == 5
    assert r.json()["title"] == "Rent"

    assert client.patch(f"/api/reminders/{created['id']}", json={"title": None}).status_code == 400
    assert client.patch(f"/api/reminders/{created['id']}", json={"reminder_days": 31}).status_code == 422

    assert client.get(f"/api/reminders/{created['id']}").json()["description"] == "Landlord"
    assert client.delete(f"/api/reminders/{created['id']}").status_code == 204
    assert client.get(f"/api/reminders/{created['id']}").status_code == 404


def test_list_is_ordered_by_due_date_and_filters_status(client):
    late = _reminder(client, title="Internet", due_date="2024-02-05")
    early = _reminder(client, title="Water", due_date="2024-01-22")
    client.patch(f"/api/reminders/{late['id']}/dismiss")

    assert [r["title"] for r in client.get("/api/reminders").json()] == ["Water", "Internet"]
    pending = client.get("/api/reminders", params={"status": "PENDING"}).json()
    assert [r["id"] for r in pending] == [early["id"]]


def test_reminders_are_private(client, other_user, card):
    mine = _reminder(client)
    headers = {"X-User-Id": str(other_user.id)}
    assert client.get("/api/reminders", headers=headers).json() == []
    assert client.get(f"/api/reminders/{mine['id']}", headers=headers).status_code == 404
    assert client.patch(f"/api/reminders/{mine['id']}/dismiss", headers=headers).status_code == 404
    # someone else's card cannot be attached
    r = client.post(
        "/api/reminders",
        json={"title": "Card", "amount": "10", "due_date": "2024-01-25", "credit_card_id": card.id},
        headers=headers,
    )
    assert r.status_code == 404


def test_pending_includes_overdue_and_window(client):
    _reminder(client, title="Phone", due_date="2024-01-15")
    _reminder(client, title="Rent", due_date="2024-01-25")
    _reminder(client, title="Insurance", due_date="2024-02-10")
    dismissed = _reminder(client, title="Gym", due_date="2024-01-22")
    client.patch(f"/api/reminders/{dismissed['id']}/dismiss")

    items = client.get("/api/reminders/pending").json()
    assert [(i["reminder"]["title"], i["days_until_due"], i["is_overdue"]) for i in items] == [
        ("Phone", -5, True),
        ("Rent", 5, False),
    ]
    assert items[0]["reminder_id"] == items[0]["reminder"]["id"]

    wider = client.get("/api/reminders/pending", params={"days_ahead": 30}).json()
    assert [i["reminder"]["title"] for i in wider] == ["Phone", "Rent", "Insurance"]


def test_mark_paid_links_an_owned_transaction(client, db_session, other_user, account, expense_category):
    reminder = _reminder(client)
    txn = client.post(
        "/api/transactions",
        json={
            "type": "EXPENSE",
            "amount": "1200",
            "date": "2024-01-20",
            "description": "Rent",
            "account_id": account.id,
            "category_id": expense_category.id,
        },
    ).json()

    r = client.patch(f"/api/reminders/{reminder['id']}/paid", json={"transaction_id": txn["id"]})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "PAID"
    assert r.json()["transaction_id"] == txn["id"]
    assert client.get("/api/reminders/pending").json() == []

    # deleting the payment keeps the reminder
    assert client.delete(f"/api/transactions/{txn['id']}").status_code == 204
    assert client.get(f"/api/reminders/{reminder['id']}").json()["transaction_id"] is None

    other = _reminder(client, title="Power")
    assert client.patch(f"/api/reminders/{other['id']}/paid", json={"transaction_id": 9999}).status_code == 404
    assert client.patch(f"/api/reminders/{other['id']}/paid").json()["status"] == "PAID"


def test_upcoming_invoices_sum_each_cards_next_invoice(
    client, account, expense_category, card, late_card
):
    # Visa closes on the 5th: Jan 15 and Feb 3 are billed on Feb 10, Feb 7 on Mar 10
    _card_charge(client, account, expense_category, card, "100", "2024-01-15")
    _card_charge(client, account, expense_category, card, "50.25", "2024-02-03")
    _card_charge(client, account, expense_category, card, "999", "2024-02-07")
    # Master closes on the 25th and is due on the 31st
    _card_charge(client, account, expense_category, late_card, "40", "2024-01-18")

    r = client.get("/api/reminders/credit-cards/upcoming")
    assert r.status_code == 200, r.text
    items = r.json()
    assert [i["credit_card_name"] for i in items] == ["Master", "Visa"]

    master, visa = items
    assert master["due_date"] == "2024-01-31"
    assert master["days_until_due"] == 11
    assert Decimal(master["amount"]) == Decimal("40")
    assert (master["invoice_start"], master["invoice_end"]) == ("2023-12-26", "2024-01-25")
    assert master["account_name"] == "Checking"

    assert visa["due_date"] == "2024-02-10"
    assert Decimal(visa["amount"]) == Decimal("150.25")
    assert (visa["invoice_start"], visa["invoice_end"]) == ("2024-01-06", "2024-02-05")


def test_upcoming_invoice_between_closing_and_due_day(db_session, user, account, expense_category, card):
    db_session.add(
        models.Transaction(
            user_id=user.id,
            type=models.TxnType.EXPENSE,
            amount=Decimal("75"),
            date=date(2024, 1, 10),
            purchase_date=date(2024, 1, 2),
            description="Books",
            account_id=account.id,
            category_id=expense_category.id,
            credit_card_id=card.id,
        )
    )
    db_session.commit()

    items = ReminderService(db_session, FixedClock(date(2024, 1, 7))).upcoming_invoices(user.id)
    assert len(items) == 1
    assert items[0].due_date == date(2024, 1, 10)
    assert items[0].days_until_due == 3
    assert items[0].amount == Decimal("75.00")
    assert (items[0].invoice_start, items[0].invoice_end) == (date(2023, 12, 6), date(2024, 1, 5))


def test_deleting_a_card_keeps_its_reminders(client, card):
    reminder = _reminder(client, credit_card_id=card.id)
    assert client.delete(f"/api/credit-cards/{card.id}").status_code == 204
    kept = client.get(f"/api/reminders/{reminder['id']}").json()
    assert kept["credit_card_id"] is None
    assert kept["credit_card"] is None
