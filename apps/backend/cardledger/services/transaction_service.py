from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.core.config import settings
from cardledger.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from cardledger.schemas import TransactionCreate
from cardledger.services.invoice_service import InvoiceAssignmentService
from cardledger.services.ownership import ensure_category_matches, get_owned
from cardledger.utils.money import quantize_amount


_NOT_NULL_FIELDS = (
    "type",
    "amount",
    "date",
    "description",
    "account_id",
    "category_id",
    "is_recurring_charge",
)
_PLACEMENT_FIELDS = {"date", "purchase_date", "credit_card_id"}


class TransactionService:
    """Single write path for individual transactions.

    Ownership and reference checks run before anything is written. Card
    charges are placed on their invoice through ``InvoiceAssignmentService``.
    """

    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()
        self.invoices = InvoiceAssignmentService(db, self.clock)

    # ---- Reads -----------------------------------------------------------
    def get(self, txn_id: int, user_id: int) -> models.Transaction:
        return get_owned(self.db, models.Transaction, txn_id, user_id)

    def list(
        self,
        user_id: int,
        *,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        credit_card_id: Optional[int] = None,
        txn_type: Optional[models.TxnType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[models.Transaction]:
        q = self.db.query(models.Transaction).filter(models.Transaction.user_id == user_id)
        if account_id is not None:
            q = q.filter(models.Transaction.account_id == account_id)
        if category_id is not None:
            q = q.filter(models.Transaction.category_id == category_id)
        if credit_card_id is not None:
            q = q.filter(models.Transaction.credit_card_id == credit_card_id)
        if txn_type is not None:
            q = q.filter(models.Transaction.type == txn_type)
        if start_date is not None:
            q = q.filter(models.Transaction.date >= start_date)
        if end_date is not None:
            q = q.filter(models.Transaction.date <= end_date)
        limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        return (
            q.order_by(models.Transaction.date.desc(), models.Transaction.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count(self, user_id: int) -> dict:
        total, latest = (
            self.db.query(func.count(models.Transaction.id), func.max(models.Transaction.date))
            .filter(models.Transaction.user_id == user_id)
            .one()
        )
        return {"count": int(total or 0), "last_transaction": latest}

    # ---- Writes ----------------------------------------------------------
    def create(self, user_id: int, payload: TransactionCreate) -> models.Transaction:
        if (
            payload.installment_number is not None
            and payload.total_installments is not None
            and payload.installment_number > payload.total_installments
        ):
            raise ValidationFailedError("installment_number must not exceed total_installments")
        self._check_references(user_id, payload.type, payload.account_id, payload.category_id)
        placement = self.invoices.assign(
            user_id, payload.date, credit_card_id=payload.credit_card_id, purchase_date=payload.purchase_date
        )
        auto_paid = self.invoices.should_auto_pay(payload.type, payload.credit_card_id, placement.date)
        row = models.Transaction(
            user_id=user_id,
            type=payload.type,
            amount=quantize_amount(payload.amount),
            date=placement.date,
            purchase_date=placement.purchase_date,
            description=payload.description,
            notes=payload.notes,
            account_id=payload.account_id,
            category_id=payload.category_id,
            credit_card_id=payload.credit_card_id,
            installment_number=payload.installment_number,
            total_installments=payload.total_installments,
            is_recurring_charge=payload.is_recurring_charge,
            paid=auto_paid,
            paid_at=self.clock.today() if auto_paid else None,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def update(self, txn_id: int, user_id: int, patch: dict) -> models.Transaction:
        row = self.get(txn_id, user_id)
        if not patch:
            return row
        for key in _NOT_NULL_FIELDS:
            if key in patch and patch[key] is None:
                raise ValidationFailedError(f"{key} cannot be null")

        number = patch.get("installment_number", row.installment_number)
        total = patch.get("total_installments", row.total_installments)
        if number is not None and total is not None and number > total:
            raise ValidationFailedError("installment_number must not exceed total_installments")

        if {"type", "account_id", "category_id"} & patch.keys():
            self._check_references(
                user_id,
                patch.get("type", row.type),
                patch.get("account_id", row.account_id),
                patch.get("category_id", row.category_id),
            )
        if "amount" in patch:
            patch["amount"] = quantize_amount(patch["amount"])

        if _PLACEMENT_FIELDS & patch.keys():
            card_id = patch["credit_card_id"] if "credit_card_id" in patch else row.credit_card_id
            if card_id is not None:
                purchased_on = (
                    patch.get("purchase_date") or patch.get("date") or row.purchase_date or row.date
                )
                placement = self.invoices.assign(user_id, purchased_on, credit_card_id=card_id)
                patch["date"] = placement.date
                patch["purchase_date"] = placement.purchase_date
            else:
                # purchase dates only exist on card charges
                patch["purchase_date"] = None

        for key, value in patch.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, txn_id: int, user_id: int) -> None:
        """Delete a transaction; a foreign row is Forbidden rather than NotFound."""
        row = self.db.get(models.Transaction, txn_id)
        if row is None:
            raise NotFoundError("Transaction not found")
        if row.user_id != user_id:
            raise ForbiddenError("Transaction does not belong to user")
        self.db.query(models.Reminder).filter(models.Reminder.transaction_id == row.id).update(
            {models.Reminder.transaction_id: None}, synchronize_session=False
        )
        self.db.delete(row)
        self.db.commit()

    def set_paid(
        self,
        txn_id: int,
        user_id: int,
        paid: bool,
        paid_at: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> models.Transaction:
        """Mark paid or unpaid.

        Paying with an explicit ``paid_at`` moves the ledger date to that
        day. ``account_id`` redirects the paying account.
        """
        row = self.get(txn_id, user_id)
        if account_id is not None:
            get_owned(self.db, models.Account, account_id, user_id)

        row.paid = paid
        if paid:
            row.paid_at = paid_at or self.clock.today()
            if paid_at is not None:
                row.date = paid_at
        else:
            row.paid_at = None
        if account_id is not None:
            row.account_id = account_id
        self.db.commit()
        self.db.refresh(row)
        return row

    # ---- Helpers ---------------------------------------------------------
    def _check_references(
        self,
        user_id: int,
        txn_type: models.TxnType,
        account_id: int,
        category_id: int,
    ) -> None:
        get_owned(self.db, models.Account, account_id, user_id)
        category = get_owned(self.db, models.Category, category_id, user_id)
        ensure_category_matches(category, txn_type)
