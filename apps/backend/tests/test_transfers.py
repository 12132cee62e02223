from decimal import Decimal

import pytest

from cardledger import models


@pytest.fixture()
def savings(db_session, user):
    row = models.Account(user_id=user.id, name="Savings", type=models.AccountType.SAVINGS)
    db_session.add(row)
    db_session.commit()
    return row


def _transfer(client, source, target, amount="250", day="2024-01-15"):
    return client.post(
        "/api/transfers",
        json={"amount": amount, "date": day, "from_account_id": source.id, "to_account_id": target.id},
    )


def test_transfer_requires_distinct_accounts(client, account):
    r = _transfer(client, account, account)
    assert r.status_code == 400
    assert client.get("/api/transfers").json() == []


def test_transfer_between_foreign_accounts_is_not_found(client, db_session, other_user, account):
    theirs = models.Account(user_id=other_user.id, name="Theirs", type=models.AccountType.CASH)
    db_session.add(theirs)
    db_session.commit()
    assert _transfer(client, account, theirs).status_code == 404


def test_list_filters_by_either_leg_and_dates(client, db_session, user, account, savings):
    cash = models.Account(user_id=user.id, name="Cash", type=models.AccountType.CASH)
    db_session.add(cash)
    db_session.commit()
    _transfer(client, account, savings, day="2024-01-10")
    _transfer(client, savings, cash, day="2024-01-12")
    _transfer(client, cash, account, day="2024-01-14")

    assert len(client.get("/api/transfers", params={"account_id": savings.id}).json()) == 2
    in_range = client.get(
        "/api/transfers", params={"start_date": "2024-01-11", "end_date": "2024-01-14"}
    ).json()
    assert [t["date"] for t in in_range] == ["2024-01-14", "2024-01-12"]


def test_update_keeps_accounts_distinct(client, account, savings):
    created = _transfer(client, account, savings).json()
    r = client.patch(f"/api/transfers/{created['id']}", json={"to_account_id": account.id})
    assert r.status_code == 400
    r = client.patch(f"/api/transfers/{created['id']}", json={"amount": "99.5", "description": "Rainy day"})
    assert r.status_code == 200, r.text
    assert Decimal(r.json()["amount"]) == Decimal("99.50")
    assert r.json()["description"] == "Rainy day"


def test_delete_transfer(client, account, savings):
    created = _transfer(client, account, savings).json()
    assert client.delete(f"/api/transfers/{created['id']}").status_code == 204
    assert client.get(f"/api/transfers/{created['id']}").status_code == 404
