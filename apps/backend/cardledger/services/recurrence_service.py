from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.core.config import settings
from cardledger.core.errors import ValidationFailedError
from cardledger.core.logging import get_logger
from cardledger.schemas import RecurrenceCreate
from cardledger.services.invoice_service import InvoiceAssignmentService
from cardledger.services.ownership import ensure_category_matches, get_owned
from cardledger.utils.billing_calendar import (
    add_months,
    first_occurrence_on_or_after,
    iter_occurrences,
    next_occurrence,
)
from cardledger.utils.money import quantize_amount


logger = get_logger(__name__)

_SCHEDULE_FIELDS = {"interval", "interval_count", "start_date"}


class RecurrenceService:
    """Keep a rolling horizon of materialized transactions per recurrence.

    ``next_due_date`` always points at the first occurrence that has not been
    generated yet. Generation for one recurrence (inserted rows plus the
    ``next_due_date`` advance) is committed as a single unit, so a failure
    can never move the pointer past occurrences that were not written.
    """

    def __init__(self, db: Session, clock: Clock | None = None, horizon_months: int | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()
        self.horizon_months = horizon_months or settings.RECURRENCE_HORIZON_MONTHS
        self.invoices = InvoiceAssignmentService(db, self.clock)

    # ---- Queries ---------------------------------------------------------
    def get(self, recurrence_id: int, user_id: int) -> models.Recurrence:
        return get_owned(self.db, models.Recurrence, recurrence_id, user_id)

    def list(self, user_id: int, include_inactive: bool = False) -> list[models.Recurrence]:
        q = self.db.query(models.Recurrence).filter(models.Recurrence.user_id == user_id)
        if not include_inactive:
            q = q.filter(models.Recurrence.is_active.is_(True))
        return q.order_by(
            models.Recurrence.next_due_date.is_(None),
            models.Recurrence.next_due_date.asc(),
            models.Recurrence.id.asc(),
        ).all()

    def list_transactions(self, recurrence_id: int, user_id: int) -> list[models.Transaction]:
        self.get(recurrence_id, user_id)
        return (
            self.db.query(models.Transaction)
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.recurrence_id == recurrence_id,
            )
            .order_by(models.Transaction.date.desc(), models.Transaction.id.desc())
            .all()
        )

    # ---- Lifecycle -------------------------------------------------------
    def horizon_end(self, end_date: Optional[date] = None) -> date:
        limit = add_months(self.clock.today(), self.horizon_months)
        if end_date is not None and end_date < limit:
            return end_date
        return limit

    def create(self, user_id: int, payload: RecurrenceCreate) -> tuple[models.Recurrence, int]:
        if payload.end_date is not None and payload.end_date < payload.start_date:
            raise ValidationFailedError("end_date must not be before start_date")
        card = self._check_references(
            user_id, payload.type, payload.account_id, payload.category_id, payload.credit_card_id
        )
        row = models.Recurrence(
            user_id=user_id,
            kind=models.RecurrenceKind.RECURRING,
            type=payload.type,
            interval=payload.interval,
            interval_count=payload.interval_count,
            start_date=payload.start_date,
            end_date=payload.end_date,
            amount=quantize_amount(payload.amount),
            description=payload.description,
            account_id=payload.account_id,
            category_id=payload.category_id,
            credit_card_id=payload.credit_card_id,
            is_active=True,
            next_due_date=payload.start_date,
        )
        self.db.add(row)
        self.db.flush()
        generated = self._materialize(row, card)
        self.db.commit()
        self.db.refresh(row)
        logger.info(
            "Recurrence %s created for user %s: %d transactions, next due %s",
            row.id,
            user_id,
            generated,
            row.next_due_date,
        )
        return row, generated

    def extend(self, user_id: int) -> int:
        """Materialize every active recurrence up to the current horizon.

        Safe to call repeatedly: an occurrence that already has a transaction
        is never inserted twice. Recurrences missing their amount, account or
        category are skipped with a warning.
        """
        today = self.clock.today()
        limit = self.horizon_end()
        candidates = (
            self.db.query(models.Recurrence)
            .filter(
                models.Recurrence.user_id == user_id,
                models.Recurrence.kind == models.RecurrenceKind.RECURRING,
                models.Recurrence.is_active.is_(True),
                models.Recurrence.next_due_date.is_not(None),
                models.Recurrence.next_due_date <= limit,
                or_(models.Recurrence.end_date.is_(None), models.Recurrence.end_date >= today),
            )
            .order_by(models.Recurrence.id)
            .all()
        )
        total = 0
        for row in candidates:
            if row.amount is None or row.account_id is None or row.category_id is None:
                logger.warning(
                    "Skipping recurrence %s: amount, account or category is missing", row.id
                )
                continue
            card = None
            if row.credit_card_id is not None:
                card = self.db.get(models.CreditCard, row.credit_card_id)
            try:
                generated = self._materialize(row, card)
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise
            total += generated
        if total:
            logger.info("Extended recurrences for user %s: %d transactions generated", user_id, total)
        return total

    def pause(self, recurrence_id: int, user_id: int) -> models.Recurrence:
        row = self.get(recurrence_id, user_id)
        row.is_active = False
        self.db.commit()
        self.db.refresh(row)
        return row

    def resume(self, recurrence_id: int, user_id: int) -> models.Recurrence:
        """Reactivate without backfilling: next due moves to the first occurrence on or after today."""
        row = self.get(recurrence_id, user_id)
        row.is_active = True
        if row.kind == models.RecurrenceKind.RECURRING:
            row.next_due_date = first_occurrence_on_or_after(
                row.start_date,
                row.interval,
                row.interval_count,
                row.next_due_date or row.start_date,
                self.clock.today(),
            )
        self.db.commit()
        self.db.refresh(row)
        return row

    def update(self, recurrence_id: int, user_id: int, patch: dict) -> models.Recurrence:
        row = self.get(recurrence_id, user_id)
        if not patch:
            return row
        if row.kind == models.RecurrenceKind.INSTALLMENT:
            raise ValidationFailedError("Installment groups are edited through their transactions")
        for key in ("type", "amount", "description", "interval", "interval_count", "start_date", "account_id", "category_id"):
            if key in patch and patch[key] is None:
                raise ValidationFailedError(f"{key} cannot be null")

        start_date = patch.get("start_date", row.start_date)
        end_date = patch.get("end_date", row.end_date)
        if end_date is not None and end_date < start_date:
            raise ValidationFailedError("end_date must not be before start_date")
        if {"type", "account_id", "category_id", "credit_card_id"} & patch.keys():
            self._check_references(
                user_id,
                patch.get("type", row.type),
                patch.get("account_id", row.account_id),
                patch.get("category_id", row.category_id),
                patch.get("credit_card_id", row.credit_card_id),
            )
        if "amount" in patch:
            patch["amount"] = quantize_amount(patch["amount"])

        for key, value in patch.items():
            setattr(row, key, value)
        if _SCHEDULE_FIELDS & patch.keys():
            self._reschedule(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, recurrence_id: int, user_id: int) -> None:
        row = self.get(recurrence_id, user_id)
        # generated history survives as orphans
        self.db.query(models.Transaction).filter(models.Transaction.recurrence_id == row.id).update(
            {models.Transaction.recurrence_id: None}, synchronize_session=False
        )
        self.db.query(models.Reminder).filter(models.Reminder.recurrence_id == row.id).update(
            {models.Reminder.recurrence_id: None}, synchronize_session=False
        )
        self.db.delete(row)
        self.db.commit()

    # ---- Helpers ---------------------------------------------------------
    def _reschedule(self, row: models.Recurrence) -> None:
        """Swap the unpaid rows from today on for rows on the new schedule.

        Past and paid rows are kept as history. Does not commit.
        """
        today = self.clock.today()
        occurs_on = func.coalesce(models.Transaction.purchase_date, models.Transaction.date)
        stale = select(models.Transaction.id).where(
            models.Transaction.recurrence_id == row.id,
            models.Transaction.paid.is_(False),
            occurs_on >= today,
        )
        self.db.query(models.Reminder).filter(models.Reminder.transaction_id.in_(stale)).update(
            {models.Reminder.transaction_id: None}, synchronize_session=False
        )
        dropped = (
            self.db.query(models.Transaction)
            .filter(models.Transaction.id.in_(stale))
            .delete(synchronize_session=False)
        )
        row.next_due_date = first_occurrence_on_or_after(
            row.start_date, row.interval, row.interval_count, row.start_date, today
        )
        generated = 0
        if row.is_active:
            card = None
            if row.credit_card_id is not None:
                card = self.db.get(models.CreditCard, row.credit_card_id)
            generated = self._materialize(row, card)
        logger.info(
            "Recurrence %s rescheduled: %d unpaid rows replaced by %d", row.id, dropped, generated
        )

    def _check_references(
        self,
        user_id: int,
        txn_type: models.TxnType,
        account_id: Optional[int],
        category_id: Optional[int],
        credit_card_id: Optional[int],
    ) -> Optional[models.CreditCard]:
        if account_id is not None:
            get_owned(self.db, models.Account, account_id, user_id)
        if category_id is not None:
            category = get_owned(self.db, models.Category, category_id, user_id)
            ensure_category_matches(category, txn_type)
        if credit_card_id is None:
            return None
        return self.invoices.load_card(user_id, credit_card_id)

    def _occurrence_exists(self, row: models.Recurrence, occurs_on: date, card: Optional[models.CreditCard]) -> bool:
        # card charges are keyed by purchase day, their ledger date is the invoice date
        day_column = models.Transaction.purchase_date if card is not None else models.Transaction.date
        return (
            self.db.query(models.Transaction.id)
            .filter(models.Transaction.recurrence_id == row.id, day_column == occurs_on)
            .first()
            is not None
        )

    def _materialize(self, row: models.Recurrence, card: Optional[models.CreditCard]) -> int:
        """Insert occurrences from ``next_due_date`` through the horizon and advance the pointer.

        Does not commit; callers own the unit of work.
        """
        start = row.next_due_date or row.start_date
        until = self.horizon_end(row.end_date)
        generated = 0
        last: Optional[date] = None
        for occurs_on in iter_occurrences(row.start_date, row.interval, row.interval_count, start, until):
            last = occurs_on
            if self._occurrence_exists(row, occurs_on, card):
                continue
            placement = self.invoices.place(card, occurs_on)
            self.db.add(
                models.Transaction(
                    user_id=row.user_id,
                    type=row.type,
                    amount=row.amount,
                    date=placement.date,
                    purchase_date=placement.purchase_date,
                    description=row.description or "",
                    account_id=row.account_id,
                    category_id=row.category_id,
                    credit_card_id=card.id if card is not None else None,
                    recurrence_id=row.id,
                    is_recurring_charge=True,
                    paid=False,
                )
            )
            generated += 1
        if last is not None:
            row.next_due_date = next_occurrence(row.start_date, row.interval, row.interval_count, last)
        else:
            row.next_due_date = start
        self.db.flush()
        return generated
