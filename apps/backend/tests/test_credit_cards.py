from datetime import date
from decimal import Decimal

from cardledger import models
from cardledger.schemas import RecurrenceCreate
from cardledger.services.ledger_service import LedgerService
from cardledger.services.recurrence_service import RecurrenceService


def _charge(client, account, category, card, amount, day):
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


def test_create_card_validates_days(client, account):
    r = client.post(
        "/api/credit-cards",
        json={"name": "Master", "account_id": account.id, "closing_day": 32, "due_day": 10},
    )
    assert r.status_code == 422

    r = client.post(
        "/api/credit-cards",
        json={"name": "Master", "account_id": account.id, "closing_day": 25, "due_day": 5, "credit_limit": "1500"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert Decimal(body["used_amount"]) == Decimal("0")
    assert Decimal(body["available_amount"]) == Decimal("1500")


def test_used_amount_counts_unpaid_charges(client, account, expense_category, card):
    _charge(client, account, expense_category, card, "100", "2024-01-07")
    paid = _charge(client, account, expense_category, card, "40", "2024-01-08")
    client.patch(f"/api/transactions/{paid['id']}/paid", json={"paid": True})

    r = client.get(f"/api/credit-cards/{card.id}/usage")
    assert r.status_code == 200, r.text
    body = r.json()
    assert Decimal(body["used_amount"]) == Decimal("100")
    assert Decimal(body["available_amount"]) == Decimal("4900")
    assert body["current_invoice_date"] == "2024-02-10"


def test_future_recurring_cycles_do_not_count(db_session, user, account, expense_category, card, clock):
    RecurrenceService(db_session, clock).create(
        user.id,
        RecurrenceCreate(
            type=models.TxnType.EXPENSE,
            amount=Decimal("39.90"),
            description="Streaming",
            interval=models.RecurrenceInterval.MONTH,
            start_date=date(2024, 1, 7),
            end_date=date(2024, 3, 31),
            account_id=account.id,
            category_id=expense_category.id,
            credit_card_id=card.id,
        ),
    )
    # invoices 2024-02-10, 03-10 and 04-10 exist; only the one open today counts
    assert LedgerService(db_session, clock).used_amount(user.id, card.id) == Decimal("39.90")


def test_card_without_limit_has_no_available_amount(db_session, user, account, clock):
    unlimited = models.CreditCard(user_id=user.id, account_id=account.id, name="Amex", closing_day=1, due_day=8)
    db_session.add(unlimited)
    db_session.commit()
    usage = LedgerService(db_session, clock).used_amounts(user.id, card_id=unlimited.id)[0]
    assert usage.used_amount == Decimal("0")
    assert usage.available_amount is None


def test_delete_card_turns_charges_into_plain_expenses(client, db_session, account, expense_category, card):
    charge = _charge(client, account, expense_category, card, "100", "2024-01-07")
    assert client.delete(f"/api/credit-cards/{card.id}").status_code == 204

    r = client.get(f"/api/transactions/{charge['id']}")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["credit_card_id"] is None
    assert body["purchase_date"] is None
    assert body["date"] == "2024-02-10"


def test_foreign_card_is_not_found(client, db_session, other_user):
    theirs = models.Account(user_id=other_user.id, name="Theirs", type=models.AccountType.CHECKING)
    db_session.add(theirs)
    db_session.flush()
    card = models.CreditCard(user_id=other_user.id, account_id=theirs.id, name="Theirs", closing_day=3, due_day=9)
    db_session.add(card)
    db_session.commit()
    assert client.get(f"/api/credit-cards/{card.id}").status_code == 404
    assert client.get(f"/api/credit-cards/{card.id}/usage").status_code == 404
