from datetime import date

import pytest

from cardledger import models
from cardledger.core.errors import NotFoundError
from cardledger.services.invoice_service import InvoiceAssignmentService


def test_assign_without_card_passes_date_through(db_session, user, clock):
    svc = InvoiceAssignmentService(db_session, clock)
    placement = svc.assign(user.id, date(2024, 1, 7))
    assert placement.date == date(2024, 1, 7)
    assert placement.purchase_date is None
    assert placement.card is None


def test_assign_with_card_uses_invoice_due_date(db_session, user, card, clock):
    svc = InvoiceAssignmentService(db_session, clock)
    placement = svc.assign(user.id, date(2024, 1, 7), credit_card_id=card.id)
    assert placement.date == date(2024, 2, 10)
    assert placement.purchase_date == date(2024, 1, 7)
    assert placement.card.id == card.id


def test_explicit_purchase_date_wins_over_date(db_session, user, card, clock):
    svc = InvoiceAssignmentService(db_session, clock)
    placement = svc.assign(
        user.id, date(2024, 1, 20), credit_card_id=card.id, purchase_date=date(2024, 1, 2)
    )
    assert placement.date == date(2024, 1, 10)
    assert placement.purchase_date == date(2024, 1, 2)


def test_assign_rejects_foreign_card(db_session, other_user, card, clock):
    svc = InvoiceAssignmentService(db_session, clock)
    with pytest.raises(NotFoundError):
        svc.assign(other_user.id, date(2024, 1, 7), credit_card_id=card.id)


def test_should_auto_pay_only_cash_expense_today(db_session, card, clock):
    svc = InvoiceAssignmentService(db_session, clock)
    today = clock.today()
    assert svc.should_auto_pay(models.TxnType.EXPENSE, None, today) is True
    assert svc.should_auto_pay(models.TxnType.EXPENSE, None, date(2024, 1, 19)) is False
    assert svc.should_auto_pay(models.TxnType.INCOME, None, today) is False
    assert svc.should_auto_pay(models.TxnType.EXPENSE, card.id, today) is False
