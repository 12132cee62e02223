from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, get_clock
from cardledger.core.config import settings
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import (
    InstallmentCreate,
    PaidStatusUpdate,
    RecurrenceCreatedOut,
    RecurrenceOut,
    RecurringTransactionCreate,
    TransactionCountOut,
    TransactionCreate,
    TransactionOut,
    TransactionSummaryOut,
    TransactionUpdate,
)
from cardledger.services.installment_service import InstallmentService
from cardledger.services.ledger_service import LedgerService
from cardledger.services.recurrence_service import RecurrenceService
from cardledger.services.transaction_service import TransactionService


router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    account_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    credit_card_id: Optional[int] = Query(None),
    type: Optional[models.TxnType] = Query(None),
    start_date: Optional[date] = Query(None, description="Ledger date lower bound (inclusive)"),
    end_date: Optional[date] = Query(None, description="Ledger date upper bound (inclusive)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return TransactionService(db, clock).list(
        current_user.id,
        account_id=account_id,
        category_id=category_id,
        credit_card_id=credit_card_id,
        txn_type=type,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return TransactionService(db, clock).create(current_user.id, payload)


@router.post("/installments", response_model=list[TransactionOut], status_code=201)
def create_installments(
    payload: InstallmentCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return InstallmentService(db, clock).create_installments(current_user.id, payload)


@router.post("/recurring", response_model=RecurrenceCreatedOut, status_code=201)
def create_recurring_transaction(
    payload: RecurringTransactionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    recurrence, generated = RecurrenceService(db, clock).create(current_user.id, payload.to_recurrence())
    return RecurrenceCreatedOut(
        **RecurrenceOut.model_validate(recurrence).model_dump(),
        generated_transactions=generated,
    )


@router.get("/count", response_model=TransactionCountOut)
def count_transactions(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return TransactionService(db, clock).count(current_user.id)


@router.get("/summary", response_model=TransactionSummaryOut)
def transaction_summary(
    start_date: date = Query(...),
    end_date: date = Query(...),
    account_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    summary = LedgerService(db, clock).period_summary(
        current_user.id, start_date, end_date, account_id=account_id
    )
    return TransactionSummaryOut.model_validate(summary, from_attributes=True)


@router.get("/{txn_id}", response_model=TransactionOut)
def get_transaction(
    txn_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return TransactionService(db, clock).get(txn_id, current_user.id)


@router.patch("/{txn_id}", response_model=TransactionOut)
def update_transaction(
    txn_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return TransactionService(db, clock).update(txn_id, current_user.id, payload.model_dump(exclude_unset=True))


@router.patch("/{txn_id}/paid", response_model=TransactionOut)
def set_transaction_paid(
    txn_id: int,
    payload: PaidStatusUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return TransactionService(db, clock).set_paid(
        txn_id,
        current_user.id,
        payload.paid,
        paid_at=payload.paid_at,
        account_id=payload.account_id,
    )


@router.delete("/{txn_id}", status_code=204)
def delete_transaction(
    txn_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    TransactionService(db, clock).delete(txn_id, current_user.id)
    return Response(status_code=204)
