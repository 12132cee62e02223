from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.services.ownership import get_owned
from cardledger.utils.billing_calendar import invoice_date


@dataclass(frozen=True)
class InvoiceAssignment:
    """Ledger placement of a single charge.

    ``purchase_date`` is set only when ``card`` is set.
    """

    date: date
    purchase_date: Optional[date]
    card: Optional[models.CreditCard]


class InvoiceAssignmentService:
    """Map real-world purchase dates to ledger dates for card charges."""

    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()

    def load_card(self, user_id: int, card_id: int) -> models.CreditCard:
        return get_owned(self.db, models.CreditCard, card_id, user_id)

    def assign(
        self,
        user_id: int,
        when: date,
        credit_card_id: Optional[int] = None,
        purchase_date: Optional[date] = None,
    ) -> InvoiceAssignment:
        """Resolve the ledger date of a charge.

        Without a card the date passes through and no purchase date is kept.
        With a card, ``purchase_date`` (falling back to ``when``) is billed
        under the invoice computed from the card's closing and due days.
        """
        if credit_card_id is None:
            return self.place(None, when)
        card = self.load_card(user_id, credit_card_id)
        return self.place(card, purchase_date or when)

    def place(self, card: Optional[models.CreditCard], purchased_on: date) -> InvoiceAssignment:
        """Placement against an already loaded (and ownership-checked) card."""
        if card is None:
            return InvoiceAssignment(date=purchased_on, purchase_date=None, card=None)
        return InvoiceAssignment(
            date=invoice_date(purchased_on, card.closing_day, card.due_day),
            purchase_date=purchased_on,
            card=card,
        )

    def should_auto_pay(
        self,
        txn_type: models.TxnType,
        credit_card_id: Optional[int],
        ledger_date: date,
    ) -> bool:
        # cash/debit spends dated today settle immediately; card charges never do
        return (
            txn_type == models.TxnType.EXPENSE
            and credit_card_id is None
            and ledger_date == self.clock.today()
        )
