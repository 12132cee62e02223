from __future__ import annotations

from sqlalchemy.orm import Session

from .core.database import SessionLocal
from .core.logging import get_logger, setup_logging
from .models import Account, AccountType, Category, CategoryKind, User

logger = get_logger(__name__)

DEFAULT_CATEGORIES: tuple[tuple[str, CategoryKind, str], ...] = (
    ("Salary", CategoryKind.INCOME, "#16a34a"),
    ("Other income", CategoryKind.INCOME, "#22c55e"),
    ("Groceries", CategoryKind.EXPENSE, "#f97316"),
    ("Housing", CategoryKind.EXPENSE, "#ef4444"),
    ("Transport", CategoryKind.EXPENSE, "#3b82f6"),
    ("Subscriptions", CategoryKind.EXPENSE, "#8b5cf6"),
)


def seed_user(db: Session, user: User) -> None:
    """Give ``user`` a wallet account and the default categories (idempotent by name)."""
    if not db.query(Account).filter_by(user_id=user.id, name="Wallet").first():
        db.add(Account(user_id=user.id, name="Wallet", type=AccountType.CASH))
    for name, kind, color in DEFAULT_CATEGORIES:
        if not db.query(Category).filter_by(user_id=user.id, name=name, kind=kind).first():
            db.add(Category(user_id=user.id, name=name, kind=kind, color=color))


def seed() -> None:
    db: Session = SessionLocal()
    try:
        user = db.query(User).filter_by(email="demo@example.com").first()
        if not user:
            user = User(email="demo@example.com", name="Demo")
            db.add(user)
            db.flush()
        seed_user(db, user)
        db.commit()
        logger.info("Seeded demo user %s", user.id)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    seed()
