from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, get_clock
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import (
    AccountBalanceOut,
    AccountCreate,
    AccountOut,
    AccountUpdate,
    BalanceOut,
)
from cardledger.services.ledger_service import LedgerService
from cardledger.services.ownership import get_owned


router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=list[AccountOut])
def list_accounts(db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return (
        db.query(models.Account)
        .filter(models.Account.user_id == current_user.id)
        .order_by(models.Account.name.asc(), models.Account.id.asc())
        .all()
    )


@router.get("/balances", response_model=list[AccountBalanceOut])
def list_account_balances(
    as_of: Optional[date] = Query(None, description="Cutoff date (inclusive); defaults to today"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    rows = LedgerService(db, clock).balances_as_of(current_user.id, as_of=as_of)
    return [
        AccountBalanceOut(
            **AccountOut.model_validate(row.account).model_dump(),
            balance=row.balance,
            as_of=row.as_of,
        )
        for row in rows
    ]


@router.post("", response_model=AccountOut, status_code=201)
def create_account(payload: AccountCreate, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    row = models.Account(user_id=current_user.id, **payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/{account_id}", response_model=AccountOut)
def get_account(account_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return get_owned(db, models.Account, account_id, current_user.id)


@router.patch("/{account_id}", response_model=AccountOut)
def update_account(
    account_id: int,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    row = get_owned(db, models.Account, account_id, current_user.id)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{account_id}", status_code=204)
def delete_account(account_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    row = get_owned(db, models.Account, account_id, current_user.id)
    db.delete(row)
    db.commit()
    return Response(status_code=204)


@router.get("/{account_id}/balance", response_model=BalanceOut)
def get_account_balance(
    account_id: int,
    as_of: Optional[date] = Query(None, description="Cutoff date (inclusive); defaults to today"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    effective = as_of or clock.today()
    balance = LedgerService(db, clock).balance_as_of(current_user.id, account_id, as_of=effective)
    return BalanceOut(account_id=account_id, balance=balance, as_of=effective)
