from decimal import Decimal

from sqlalchemy import event

from cardledger.services.budget_service import BudgetService, classify


def _spend(client, account, category, amount, day="2024-01-18"):
    r = client.post(
        "/api/transactions",
        json={
            "type": "EXPENSE",
            "amount": amount,
            "date": day,
            "description": "Groceries",
            "account_id": account.id,
            "category_id": category.id,
        },
    )
    assert r.status_code == 201, r.text


def _budget(client, category, amount="500", month=1, year=2024):
    return client.post(
        "/api/budgets",
        json={"category_id": category.id, "month": month, "year": year, "amount": amount},
    )


def test_classify_thresholds():
    assert classify(Decimal("100"), Decimal("79.99"))[1] == "ok"
    assert classify(Decimal("100"), Decimal("80"))[1] == "warning"
    assert classify(Decimal("100"), Decimal("100"))[1] == "exceeded"
    assert classify(Decimal("0"), Decimal("10")) == (0.0, "ok")


def test_one_budget_per_category_and_month(client, expense_category):
    assert _budget(client, expense_category).status_code == 201
    r = _budget(client, expense_category, amount="600")
    assert r.status_code == 409
    assert _budget(client, expense_category, month=2).status_code == 201


def test_budget_requires_expense_category(client, income_category):
    assert _budget(client, income_category).status_code == 400


def test_budget_status_tracks_spending(client, account, expense_category):
    created = _budget(client, expense_category).json()
    _spend(client, account, expense_category, "450")
    # outside the budget month
    _spend(client, account, expense_category, "999", day="2024-02-01")

    rows = client.get("/api/budgets", params={"month": 1, "year": 2024}).json()
    assert len(rows) == 1
    row = rows[0]
    assert Decimal(row["spent"]) == Decimal("450")
    assert Decimal(row["remaining"]) == Decimal("50")
    assert row["percentage"] == 90.0
    assert row["status"] == "warning"

    _spend(client, account, expense_category, "100")
    single = client.get(f"/api/budgets/{created['id']}").json()
    assert single["status"] == "exceeded"
    assert Decimal(single["remaining"]) == Decimal("-50")


def test_update_and_delete_budget(client, expense_category):
    created = _budget(client, expense_category).json()
    r = client.put(f"/api/budgets/{created['id']}", json={"amount": "750"})
    assert r.status_code == 200, r.text
    assert Decimal(r.json()["amount"]) == Decimal("750")
    assert client.delete(f"/api/budgets/{created['id']}").status_code == 204
    assert client.get(f"/api/budgets/{created['id']}").status_code == 404


def test_copy_previous_month(client, expense_category):
    _budget(client, expense_category, month=12, year=2023)
    r = client.post("/api/budgets/copy-previous", json={"month": 1, "year": 2024})
    assert r.status_code == 201, r.text
    copied = r.json()
    assert len(copied) == 1
    assert (copied[0]["month"], copied[0]["year"]) == (1, 2024)

    # already budgeted categories are skipped
    again = client.post("/api/budgets/copy-previous", json={"month": 1, "year": 2024})
    assert again.json() == []

    empty = client.post("/api/budgets/copy-previous", json={"month": 6, "year": 2024})
    assert empty.status_code == 404


def test_history_starts_at_current_month(client, account, expense_category):
    _budget(client, expense_category)
    _spend(client, account, expense_category, "120")
    r = client.get(f"/api/budgets/history/{expense_category.id}", params={"months": 3})
    assert r.status_code == 200, r.text
    items = r.json()
    assert [(i["year"], i["month"]) for i in items] == [(2024, 1), (2023, 12), (2023, 11)]
    assert Decimal(items[0]["budgeted"]) == Decimal("500")
    assert Decimal(items[0]["spent"]) == Decimal("120")
    assert Decimal(items[0]["difference"]) == Decimal("380")
    assert Decimal(items[1]["budgeted"]) == Decimal("0")


def test_history_buckets_spending_across_the_year_boundary(
    client, engine, db_session, user, account, expense_category, clock
):
    _budget(client, expense_category, amount="300", month=11, year=2023)
    _budget(client, expense_category, amount="400", month=1, year=2024)
    _spend(client, account, expense_category, "50", day="2023-12-02")
    _spend(client, account, expense_category, "25.5", day="2023-12-31")
    _spend(client, account, expense_category, "80", day="2024-01-01")
    # outside the three-month window
    _spend(client, account, expense_category, "999", day="2023-10-31")

    user_id, category_id = user.id, expense_category.id
    statements = []

    def _count(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _count)
    try:
        items = BudgetService(db_session, clock).history(user_id, category_id, months=3)
    finally:
        event.remove(engine, "before_cursor_execute", _count)

    # ownership check, budgets, grouped spending
    assert len(statements) == 3
    by_period = {(i["year"], i["month"]): i for i in items}
    assert by_period[(2024, 1)]["spent"] == Decimal("80.00")
    assert by_period[(2024, 1)]["difference"] == Decimal("320.00")
    assert by_period[(2023, 12)]["spent"] == Decimal("75.50")
    assert by_period[(2023, 12)]["budgeted"] == Decimal("0.00")
    assert by_period[(2023, 11)]["budgeted"] == Decimal("300.00")
    assert by_period[(2023, 11)]["spent"] == Decimal("0.00")
