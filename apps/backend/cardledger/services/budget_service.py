from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import extract, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.core.errors import ConflictError, NotFoundError, ValidationFailedError
from cardledger.core.logging import get_logger
from cardledger.schemas import BudgetCreate
from cardledger.services.ownership import get_owned
from cardledger.utils.billing_calendar import shift_month, month_bounds
from cardledger.utils.money import ZERO, quantize_amount, to_money


logger = get_logger(__name__)

WARNING_THRESHOLD = 80.0
EXCEEDED_THRESHOLD = 100.0


@dataclass(frozen=True)
class BudgetStatus:
    budget: models.Budget
    spent: Decimal
    remaining: Decimal
    percentage: float
    status: str

    def as_dict(self) -> dict:
        return {
            "id": self.budget.id,
            "user_id": self.budget.user_id,
            "category_id": self.budget.category_id,
            "month": self.budget.month,
            "year": self.budget.year,
            "amount": self.budget.amount,
            "spent": self.spent,
            "remaining": self.remaining,
            "percentage": self.percentage,
            "status": self.status,
        }


def classify(amount: Decimal, spent: Decimal) -> tuple[float, str]:
    percentage = float(spent / amount * 100) if amount > 0 else 0.0
    if percentage >= EXCEEDED_THRESHOLD:
        return percentage, "exceeded"
    if percentage >= WARNING_THRESHOLD:
        return percentage, "warning"
    return percentage, "ok"


class BudgetService:
    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()

    def create(self, user_id: int, payload: BudgetCreate) -> models.Budget:
        category = get_owned(self.db, models.Category, payload.category_id, user_id)
        if category.kind != models.CategoryKind.EXPENSE:
            raise ValidationFailedError("Budget can only be created for expense categories")
        if self._find(user_id, payload.category_id, payload.month, payload.year) is not None:
            raise ConflictError("Budget already exists for this category in this period")
        row = models.Budget(
            user_id=user_id,
            category_id=payload.category_id,
            month=payload.month,
            year=payload.year,
            amount=quantize_amount(payload.amount),
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Budget already exists for this category in this period")
        self.db.refresh(row)
        return row

    def get(self, budget_id: int, user_id: int) -> BudgetStatus:
        row = get_owned(self.db, models.Budget, budget_id, user_id)
        spent = self._spent_by_category(user_id, row.year, row.month, [row.category_id])
        return self._status(row, spent.get(row.category_id, ZERO))

    def list_for_month(self, user_id: int, month: int, year: int) -> list[BudgetStatus]:
        rows = (
            self.db.query(models.Budget)
            .filter(models.Budget.user_id == user_id, models.Budget.month == month, models.Budget.year == year)
            .order_by(models.Budget.id)
            .all()
        )
        if not rows:
            return []
        spent = self._spent_by_category(user_id, year, month, [row.category_id for row in rows])
        return [self._status(row, spent.get(row.category_id, ZERO)) for row in rows]

    def update_amount(self, budget_id: int, user_id: int, amount: Decimal) -> models.Budget:
        row = get_owned(self.db, models.Budget, budget_id, user_id)
        row.amount = quantize_amount(amount)
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, budget_id: int, user_id: int) -> None:
        row = get_owned(self.db, models.Budget, budget_id, user_id)
        self.db.delete(row)
        self.db.commit()

    def history(self, user_id: int, category_id: int, months: int = 6) -> list[dict]:
        """Budgeted vs spent for the last ``months`` months, current month first.

        One query for the budgets and one grouped sum for the spending cover
        the whole range.
        """
        get_owned(self.db, models.Category, category_id, user_id)
        today = self.clock.today()
        periods = [shift_month(today.year, today.month, -offset) for offset in range(months)]
        if not periods:
            return []
        oldest_year, oldest_month = periods[-1]
        first, _ = month_bounds(oldest_year, oldest_month)
        _, last = month_bounds(today.year, today.month)

        period_key = models.Budget.year * 100 + models.Budget.month
        budgets = (
            self.db.query(models.Budget)
            .filter(
                models.Budget.user_id == user_id,
                models.Budget.category_id == category_id,
                period_key.between(oldest_year * 100 + oldest_month, today.year * 100 + today.month),
            )
            .all()
        )
        budgeted_by_period = {(row.year, row.month): to_money(row.amount) for row in budgets}

        year_col = extract("year", models.Transaction.date)
        month_col = extract("month", models.Transaction.date)
        rows = (
            self.db.query(year_col, month_col, func.sum(models.Transaction.amount))
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.type == models.TxnType.EXPENSE,
                models.Transaction.category_id == category_id,
                models.Transaction.date >= first,
                models.Transaction.date <= last,
            )
            .group_by(year_col, month_col)
            .all()
        )
        spent_by_period = {(int(year), int(month)): to_money(total) for year, month, total in rows}

        items: list[dict] = []
        for year, month in periods:
            budgeted = budgeted_by_period.get((year, month), ZERO)
            spent = spent_by_period.get((year, month), ZERO)
            items.append(
                {
                    "month": month,
                    "year": year,
                    "budgeted": budgeted,
                    "spent": spent,
                    "difference": budgeted - spent,
                }
            )
        return items

    def copy_previous(
self, user_id: int, month: int, year: int) -> list[models.Budget]:
        """Copy last month's budgets into ``month``/``year``, skipping categories already budgeted."""
        prev_year, prev_month = shift_month(year, month, -1)
        previous = (
            self.db.query(models.Budget)
            .filter(
                models.Budget.user_id == user_id,
                models.Budget.month == prev_month,
                models.Budget.year == prev_year,
            )
            .order_by(models.Budget.id)
            .all()
        )
        if not previous:
            raise NotFoundError("No budgets found in previous month")
        created: list[models.Budget] = []
        for prev in previous:
            if self._find(user_id, prev.category_id, month, year) is not None:
                continue
            row = models.Budget(
                user_id=user_id,
                category_id=prev.category_id,
                month=month,
                year=year,
                amount=prev.amount,
            )
            self.db.add(row)
            created.append(row)
        self.db.commit()
        for row in created:
            self.db.refresh(row)
        logger.info("Copied %d budgets into %04d-%02d for user %s", len(created), year, month, user_id)
        return created

    # ---- Helpers ---------------------------------------------------------
    def _find(self, user_id: int, category_id: int, month: int, year: int) -> Optional[models.Budget]:
        return (
            self.db.query(models.Budget)
            .filter(
                models.Budget.user_id == user_id,
                models.Budget.category_id == category_id,
                models.Budget.month == month,
                models.Budget.year == year,
            )
            .first()
        )

    def _spent_by_category(self, user_id: int, year: int, month: int, category_ids: list[int]) -> dict[int, Decimal]:
        first, last = month_bounds(year, month)
        rows = (
            self.db.query(models.Transaction.category_id, func.sum(models.Transaction.amount))
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.type == models.TxnType.EXPENSE,
                models.Transaction.category_id.in_(category_ids),
                models.Transaction.date >= first,
                models.Transaction.date <= last,
            )
            .group_by(models.Transaction.category_id)
            .all()
        )
        return {category_id: to_money(total) for category_id, total in rows}

    def _status(self, row: models.Budget, spent: Decimal) -> BudgetStatus:
        amount = to_money(row.amount)
        percentage, status = classify(amount, spent)
        return BudgetStatus(
            budget=row,
            spent=spent,
            remaining=amount - spent,
            percentage=round(percentage, 2),
            status=status,
        )
