from cardledger import models
from cardledger.seed import DEFAULT_CATEGORIES, seed_user


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_account_crud(client):
    r = client.post(
        "/api/accounts",
        json={"name": "Nubank", "type": "CHECKING", "initial_balance": "150.5", "color": "#FF0000"},
    )
    assert r.status_code == 201, r.text
    acc = r.json()
    assert acc["color"] == "#ff0000"

    r = client.patch(f"/api/accounts/{acc['id']}", json={"name": "Main"})
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Main"
    assert r.json()["type"] == "CHECKING"

    assert [a["name"] for a in client.get("/api/accounts").json()] == ["Main"]
    assert client.delete(f"/api/accounts/{acc['id']}").status_code == 204
    assert client.get(f"/api/accounts/{acc['id']}").status_code == 404


def test_account_color_must_be_hex(client):
    r = client.post("/api/accounts", json={"name": "Bad", "type": "CASH", "color": "red"})
    assert r.status_code == 422


def test_accounts_are_private(client, account, other_user):
    headers = {"X-User-Id": str(other_user.id)}
    assert client.get("/api/accounts", headers=headers).json() == []
    assert client.get(f"/api/accounts/{account.id}", headers=headers).status_code == 404
    assert client.delete(f"/api/accounts/{account.id}", headers=headers).status_code == 404


def test_category_kind_filter(client, income_category, expense_category):
    expenses = client.get("/api/categories", params={"kind": "EXPENSE"}).json()
    assert [c["name"] for c in expenses] == ["Groceries"]
    everything = client.get("/api/categories").json()
    assert [c["name"] for c in everything] == ["Groceries", "Salary"]


def test_category_update(client, expense_category):
    r = client.patch(f"/api/categories/{expense_category.id}", json={"icon": "cart", "color": ""})
    assert r.status_code == 200, r.text
    assert r.json()["icon"] == "cart"
    assert r.json()["kind"] == "EXPENSE"


def test_seed_user_is_idempotent(db_session, user):
    seed_user(db_session, user)
    db_session.commit()
    seed_user(db_session, user)
    db_session.commit()
    assert db_session.query(models.Account).filter_by(user_id=user.id, name="Wallet").count() == 1
    assert db_session.query(models.Category).filter_by(user_id=user.id).count() == len(DEFAULT_CATEGORIES)
