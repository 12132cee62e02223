from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, get_clock
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import CardUsageOut, CreditCardCreate, CreditCardOut, CreditCardUpdate
from cardledger.services.ledger_service import CardUsage, LedgerService
from cardledger.services.ownership import get_owned


router = APIRouter(prefix="/credit-cards", tags=["credit-cards"])


def _card_out(usage: CardUsage) -> CreditCardOut:
    out = CreditCardOut.model_validate(usage.card)
    out.used_amount = usage.used_amount
    out.available_amount = usage.available_amount
    return out


def _usage_for(db: Session, clock: Clock, user_id: int, card_id: int) -> CardUsage:
    get_owned(db, models.CreditCard, card_id, user_id)
    return LedgerService(db, clock).used_amounts(user_id, card_id=card_id)[0]


@router.get("", response_model=list[CreditCardOut])
def list_credit_cards(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return [_card_out(usage) for usage in LedgerService(db, clock).used_amounts(current_user.id)]


@router.post("", response_model=CreditCardOut, status_code=201)
def create_credit_card(
    payload: CreditCardCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    get_owned(db, models.Account, payload.account_id, current_user.id)
    row = models.CreditCard(user_id=current_user.id, **payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return _card_out(_usage_for(db, clock, current_user.id, row.id))


@router.get("/{card_id}", response_model=CreditCardOut)
def get_credit_card(
    card_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return _card_out(_usage_for(db, clock, current_user.id, card_id))


@router.patch("/{card_id}", response_model=CreditCardOut)
def update_credit_card(
    card_id: int,
    payload: CreditCardUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    row = get_owned(db, models.CreditCard, card_id, current_user.id)
    patch = payload.model_dump(exclude_unset=True)
    for key in ("name", "account_id", "closing_day", "due_day"):
        if key in patch and patch[key] is None:
            patch.pop(key)
    if "account_id" in patch:
        get_owned(db, models.Account, patch["account_id"], current_user.id)
    # existing charges keep their invoice dates; new closing/due days apply to later charges
    for key, value in patch.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return _card_out(_usage_for(db, clock, current_user.id, row.id))


@router.delete("/{card_id}", status_code=204)
def delete_credit_card(card_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    row = get_owned(db, models.CreditCard, card_id, current_user.id)
    # charges become plain expenses on their ledger date; purchase dates only exist with a card
    db.query(models.Transaction).filter(models.Transaction.credit_card_id == row.id).update(
        {models.Transaction.credit_card_id: None, models.Transaction.purchase_date: None},
        synchronize_session=False,
    )
    db.query(models.Recurrence).filter(models.Recurrence.credit_card_id == row.id).update(
        {models.Recurrence.credit_card_id: None}, synchronize_session=False
    )
    db.query(models.Reminder).filter(models.Reminder.credit_card_id == row.id).update(
        {models.Reminder.credit_card_id: None}, synchronize_session=False
    )
    db.delete(row)
    db.commit()
    return Response(status_code=204)


@router.get("/{card_id}/usage", response_model=CardUsageOut)
def get_credit_card_usage(
    card_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    usage = _usage_for(db, clock, current_user.id, card_id)
    return CardUsageOut(
        credit_card_id=usage.card.id,
        used_amount=usage.used_amount,
        credit_limit=usage.card.credit_limit,
        available_amount=usage.available_amount,
        current_invoice_date=usage.current_invoice_date,
    )
