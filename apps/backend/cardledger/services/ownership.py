"""Owner-scoped lookups shared by the services.

Rows that are missing and rows owned by somebody else are reported the same
way (``NotFoundError``) so callers cannot discover other users' ids.
"""

from __future__ import annotations

from typing import Type, TypeVar

from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.errors import NotFoundError, ValidationFailedError


T = TypeVar("T")

_LABELS: dict[type, str] = {
    models.Account: "Account",
    models.Category: "Category",
    models.CreditCard: "Credit card",
    models.Transaction: "Transaction",
    models.Transfer: "Transfer",
    models.Recurrence: "Recurrence",
    models.Budget: "Budget",
    models.Goal: "Goal",
    models.Reminder: "Reminder",
}


def get_owned(db: Session, model: Type[T], row_id: int, user_id: int) -> T:
    row = (
        db.query(model)
        .filter(model.id == row_id, model.user_id == user_id)  # type: ignore[attr-defined]
        .first()
    )
    if row is None:
        raise NotFoundError(f"{_LABELS.get(model, model.__name__)} not found")
    return row


def ensure_category_matches(category: models.Category, txn_type: models.TxnType) -> None:
    if category.kind.value != txn_type.value:
        raise ValidationFailedError(
            f"Category kind {category.kind.value} does not match transaction type {txn_type.value}"
        )
