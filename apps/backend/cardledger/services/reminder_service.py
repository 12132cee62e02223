from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.core.errors import ValidationFailedError
from cardledger.core.logging import get_logger
from cardledger.schemas import ReminderCreate
from cardledger.services.ownership import get_owned
from cardledger.utils.billing_calendar import invoice_due_date, invoice_window, next_due_invoice
from cardledger.utils.money import ZERO, quantize_amount, to_money


logger = get_logger(__name__)

DEFAULT_DAYS_AHEAD = 7


@dataclass(frozen=True)
class PendingReminder:
    reminder: models.Reminder
    days_until_due: int
    is_overdue: bool

    def as_dict(self) -> dict:
        return {
            "reminder_id": self.reminder.id,
            "days_until_due": self.days_until_due,
            "is_overdue": self.is_overdue,
            "reminder": self.reminder,
        }


@dataclass(frozen=True)
class UpcomingInvoice:
    card: models.CreditCard
    due_date: date
    days_until_due: int
    amount: Decimal
    invoice_start: date
    invoice_end: date

    def as_dict(self) -> dict:
        return {
            "credit_card_id": self.card.id,
            "credit_card_name": self.card.name,
            "account_name": self.card.account.name,
            "due_date": self.due_date,
            "days_until_due": self.days_until_due,
            "amount": self.amount,
            "invoice_start": self.invoice_start,
            "invoice_end": self.invoice_end,
        }


class ReminderService:
    """Bill reminders plus the upcoming invoice of every credit card.

    Reminders are plain records; nothing is sent. ``pending`` is what a
    client polls to decide what to surface.
    """

    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()

    def get(self, reminder_id: int, user_id: int) -> models.Reminder:
        return get_owned(self.db, models.Reminder, reminder_id, user_id)

    def list(self, user_id: int, status: Optional[models.ReminderStatus] = None) -> list[models.Reminder]:
        q = self.db.query(models.Reminder).filter(models.Reminder.user_id == user_id)
        if status is not None:
            q = q.filter(models.Reminder.status == status)
        return q.order_by(models.Reminder.due_date.asc(), models.Reminder.id.asc()).all()

    def create(self, user_id: int, payload: ReminderCreate) -> models.Reminder:
        if payload.credit_card_id is not None:
            get_owned(self.db, models.CreditCard, payload.credit_card_id, user_id)
        row = models.Reminder(
            user_id=user_id,
            title=payload.title,
            description=payload.description,
            amount=quantize_amount(payload.amount),
            due_date=payload.due_date,
            reminder_days=payload.reminder_days,
            status=models.ReminderStatus.PENDING,
            is_recurring=payload.is_recurring,
            credit_card_id=payload.credit_card_id,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def update(self, reminder_id: int, user_id: int, patch: dict) -> models.Reminder:
        row = self.get(reminder_id, user_id)
        if not patch:
            return row
        for key in ("title", "amount", "due_date", "reminder_days", "is_recurring"):
            if key in patch and patch[key] is None:
                raise ValidationFailedError(f"{key} cannot be null")
        if patch.get("credit_card_id") is not None:
            get_owned(self.db, models.CreditCard, patch["credit_card_id"], user_id)
        if "amount" in patch:
            patch["amount"] = quantize_amount(patch["amount"])
        for key, value in patch.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, reminder_id: int, user_id: int) -> None:
        row = self.get(reminder_id, user_id)
        self.db.delete(row)
        self.db.commit()

    def pending(self, user_id: int, days_ahead: int = DEFAULT_DAYS_AHEAD) -> list[PendingReminder]:
        """PENDING reminders due within ``days_ahead`` days, overdue ones included."""
        today = self.clock.today()
        rows = (
            self.db.query(models.Reminder)
            .filter(
                models.Reminder.user_id == user_id,
                models.Reminder.status == models.ReminderStatus.PENDING,
                models.Reminder.due_date <= today + timedelta(days=days_ahead),
            )
            .order_by(models.Reminder.due_date.asc(), models.Reminder.id.asc())
            .all()
        )
        items = []
        for row in rows:
            days_until_due = (row.due_date - today).days
            items.append(PendingReminder(row, days_until_due, days_until_due < 0))
        return items

    def mark_paid(self, reminder_id: int, user_id: int, transaction_id: Optional[int] = None) -> models.Reminder:
        row = self.get(reminder_id, user_id)
        if transaction_id is not None:
            get_owned(self.db, models.Transaction, transaction_id, user_id)
        row.status = models.ReminderStatus.PAID
        row.transaction_id = transaction_id
        self.db.commit()
        self.db.refresh(row)
        logger.info("Reminder %s marked paid (transaction %s)", row.id, transaction_id)
        return row

    def dismiss(self, reminder_id: int, user_id: int) -> models.Reminder:
        row = self.get(reminder_id, user_id)
        row.status = models.ReminderStatus.DISMISSED
        self.db.commit()
        self.db.refresh(row)
        return row

    def upcoming_invoices(self, user_id: int) -> list[UpcomingInvoice]:
        """Next invoice due on or after today for every card, soonest first.

        Card charges carry their invoice due date as ledger date, so an
        invoice total is the sum of the card's expenses dated on that day.
        """
        today = self.clock.today()
        cards = (
            self.db.query(models.CreditCard)
            .options(joinedload(models.CreditCard.account))
            .filter(models.CreditCard.user_id == user_id)
            .order_by(models.CreditCard.id)
            .all()
        )
        if not cards:
            return []
        invoice_of = {}
        for card in cards:
            year, month = next_due_invoice(today, card.closing_day, card.due_day)
            invoice_of[card.id] = (year, month, invoice_due_date(year, month, card.due_day))

        rows = (
            self.db.query(
                models.Transaction.credit_card_id,
                models.Transaction.date,
                func.sum(models.Transaction.amount),
            )
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.type == models.TxnType.EXPENSE,
                models.Transaction.credit_card_id.in_(list(invoice_of)),
                models.Transaction.date.in_(sorted({due for _, _, due in invoice_of.values()})),
            )
            .group_by(models.Transaction.credit_card_id, models.Transaction.date)
            .all()
        )
        # other cards' due days may match too; only the (card, due date) pair counts
        totals = {(card_id, day): to_money(total) for card_id, day, total in rows}

        items = []
        for card in cards:
            year, month, due = invoice_of[card.id]
            start, end = invoice_window(year, month, card.closing_day)
            items.append(
                UpcomingInvoice(
                    card=card,
                    due_date=due,
                    days_until_due=(due - today).days,
                    amount=totals.get((card.id, due), ZERO),
                    invoice_start=start,
                    invoice_end=end,
                )
            )
        items.sort(key=lambda item: (item.due_date, item.card.id))
        return items
