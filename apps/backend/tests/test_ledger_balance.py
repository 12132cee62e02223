from decimal import Decimal

from cardledger import models


def _post_txn(client, account, category, txn_type, amount, day, **extra):
    body = {
        "type": txn_type,
        "amount": amount,
        "date": day,
        "description": f"{txn_type.lower()} {amount}",
        "account_id": account.id,
        "category_id": category.id,
    }
    body.update(extra)
    r = client.post("/api/transactions", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def _balance(client, account_id, as_of=None):
    params = {"as_of": as_of} if as_of else {}
    r = client.get(f"/api/accounts/{account_id}/balance", params=params)
    assert r.status_code == 200, r.text
    return Decimal(r.json()["balance"])


def test_balance_is_initial_plus_income_minus_expense(client, account, income_category, expense_category):
    _post_txn(client, account, income_category, "INCOME", "1000", "2024-01-05")
    _post_txn(client, account, expense_category, "EXPENSE", "200", "2024-01-20")

    assert _balance(client, account.id) == Decimal("1800")
    assert _balance(client, account.id, "2024-01-10") == Decimal("2000")
    assert _balance(client, account.id, "2023-12-31") == Decimal("1000")


def test_transfers_move_money_between_accounts(client, db_session, user, account):
    savings = models.Account(user_id=user.id, name="Savings", type=models.AccountType.SAVINGS)
    db_session.add(savings)
    db_session.commit()

    r = client.post(
        "/api/transfers",
        json={
            "amount": "300",
            "date": "2024-01-15",
            "from_account_id": account.id,
            "to_account_id": savings.id,
        },
    )
    assert r.status_code == 201, r.text

    assert _balance(client, account.id) == Decimal("700")
    assert _balance(client, savings.id) == Decimal("300")
    assert _balance(client, savings.id, "2024-01-14") == Decimal("0")

    balances = {row["name"]: Decimal(row["balance"]) for row in client.get("/api/accounts/balances").json()}
    assert balances == {"Checking": Decimal("700"), "Savings": Decimal("300")}


def test_card_charge_hits_balance_on_invoice_date(client, account, expense_category, card):
    _post_txn(
        client, account, expense_category, "EXPENSE", "100", "2024-01-07", credit_card_id=card.id
    )
    assert _balance(client, account.id) == Decimal("1000")
    assert _balance(client, account.id, "2024-02-10") == Decimal("900")


def test_balance_of_foreign_account_is_not_found(client, db_session, other_user):
    theirs = models.Account(user_id=other_user.id, name="Theirs", type=models.AccountType.CASH)
    db_session.add(theirs)
    db_session.commit()
    assert client.get(f"/api/accounts/{theirs.id}/balance").status_code == 404
