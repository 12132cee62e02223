from __future__ import annotations

import os
import tempfile
from datetime import date
from decimal import Decimal
from typing import Generator, Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cardledger.core.clock import FixedClock, get_clock
from cardledger.core.database import Base, enable_sqlite_pragmas, get_db
from cardledger.main import app
from cardledger import models


# every "today"-relative rule (auto-pay, open invoice, recurrence horizon) is evaluated here
TODAY = date(2024, 1, 20)


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # temp file SQLite so the developer database is never touched
    fd, path = tempfile.mkstemp(prefix="cardledger_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    try:
        os.remove(path)
    except OSError:
        pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    eng = create_engine(test_db_url, connect_args={"check_same_thread": False})
    enable_sqlite_pragmas(eng)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    # seed: demo user (id 1, resolved when no X-User-Id header is sent) and a second user
    session.add(models.User(email="demo@example.com", name="Demo"))
    session.add(models.User(email="other@example.com", name="Other"))
    session.commit()

    try:
        yield session
    finally:
        session.close()
        with engine.begin() as conn:
            if engine.dialect.name == "sqlite":
                conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())
            if engine.dialect.name == "sqlite":
                if _has_sqlite_sequence(conn):
                    conn.exec_driver_sql("DELETE FROM sqlite_sequence")
                conn.exec_driver_sql("PRAGMA foreign_keys=ON")


def _has_sqlite_sequence(conn) -> bool:
    return (
        conn.exec_driver_sql("SELECT name FROM sqlite_master WHERE name='sqlite_sequence'").first()
        is not None
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture(autouse=True)
def override_dependency(db_session, clock):
    # FastAPI DI override
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    app.dependency_overrides[get_clock] = lambda: clock
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user(db_session) -> models.User:
    return db_session.query(models.User).filter_by(email="demo@example.com").one()


@pytest.fixture()
def other_user(db_session) -> models.User:
    return db_session.query(models.User).filter_by(email="other@example.com").one()


@pytest.fixture()
def account(db_session, user) -> models.Account:
    row = models.Account(user_id=user.id, name="Checking", type=models.AccountType.CHECKING, initial_balance=Decimal("1000"))
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture()
def expense_category(db_session, user) -> models.Category:
    row = models.Category(user_id=user.id, name="Groceries", kind=models.CategoryKind.EXPENSE)
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture()
def income_category(db_session, user) -> models.Category:
    row = models.Category(user_id=user.id, name="Salary", kind=models.CategoryKind.INCOME)
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture()
def card(db_session, user, account) -> models.CreditCard:
    row = models.CreditCard(
        user_id=user.id,
        account_id=account.id,
        name="Visa",
        closing_day=5,
        due_day=10,
        credit_limit=Decimal("5000"),
    )
    db_session.add(row)
    db_session.commit()
    return row
