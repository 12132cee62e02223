from __future__ import annotations

from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.core.config import settings
from cardledger.core.errors import ValidationFailedError
from cardledger.core.logging import get_logger
from cardledger.schemas import InstallmentCreate
from cardledger.services.invoice_service import InvoiceAssignmentService
from cardledger.services.ownership import ensure_category_matches, get_owned
from cardledger.utils.billing_calendar import add_months_rolling
from cardledger.utils.money import quantize_amount


logger = get_logger(__name__)


class InstallmentService:
    """Split one purchase into monthly installment transactions.

    The payload amount is the per-installment figure; it is stored as-is on
    every row, there is no remainder redistribution. All rows share a freshly
    created INSTALLMENT recurrence that only serves as a grouping key and is
    never extended.
    """

    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()
        self.invoices = InvoiceAssignmentService(db, self.clock)

    def create_installments(self, user_id: int, payload: InstallmentCreate) -> list[models.Transaction]:
        total = payload.total_installments
        if total < 2 or total > settings.MAX_INSTALLMENTS:
            raise ValidationFailedError(
                f"total_installments must be between 2 and {settings.MAX_INSTALLMENTS}"
            )
        get_owned(self.db, models.Account, payload.account_id, user_id)
        category = get_owned(self.db, models.Category, payload.category_id, user_id)
        ensure_category_matches(category, payload.type)
        card = None
        if payload.credit_card_id is not None:
            card = self.invoices.load_card(user_id, payload.credit_card_id)

        amount = quantize_amount(payload.amount)
        purchased_on = payload.purchase_date or payload.date

        group = models.Recurrence(
            user_id=user_id,
            kind=models.RecurrenceKind.INSTALLMENT,
            type=payload.type,
            interval=models.RecurrenceInterval.MONTH,
            interval_count=1,
            start_date=purchased_on,
            total_installments=total,
            amount=amount,
            description=payload.description,
            account_id=payload.account_id,
            category_id=payload.category_id,
            credit_card_id=payload.credit_card_id,
            is_active=True,
            next_due_date=None,
        )
        self.db.add(group)
        self.db.flush()

        rows: list[models.Transaction] = []
        for number in range(1, total + 1):
            placement = self.invoices.place(card, add_months_rolling(purchased_on, number - 1))
            # the "i/N" suffix marks invoice-linked debt; cardless rows are plain pre-dated expenses
            description = f"{payload.description} {number}/{total}" if card else payload.description
            row = models.Transaction(
                user_id=user_id,
                type=payload.type,
                amount=amount,
                date=placement.date,
                purchase_date=placement.purchase_date,
                description=description,
                notes=payload.notes,
                account_id=payload.account_id,
                category_id=payload.category_id,
                credit_card_id=payload.credit_card_id,
                installment_number=number,
                total_installments=total,
                recurrence_id=group.id,
                is_recurring_charge=payload.is_recurring_charge,
                paid=False,
            )
            self.db.add(row)
            rows.append(row)

        self.db.commit()
        for row in rows:
            self.db.refresh(row)
        logger.info(
            "Created %d installments of %s for user %s (group %s)", total, amount, user_id, group.id
        )
        return rows
