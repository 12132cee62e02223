from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.core.errors import ValidationFailedError
from cardledger.schemas import TransferCreate, TransferOut, TransferUpdate
from cardledger.services.ownership import get_owned
from cardledger.utils.money import quantize_amount


router = APIRouter(prefix="/transfers", tags=["transfers"])


@router.get("", response_model=list[TransferOut])
def list_transfers(
    account_id: Optional[int] = Query(None, description="Either leg"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    q = db.query(models.Transfer).filter(models.Transfer.user_id == current_user.id)
    if account_id is not None:
        q = q.filter(
            (models.Transfer.from_account_id == account_id) | (models.Transfer.to_account_id == account_id)
        )
    if start_date is not None:
        q = q.filter(models.Transfer.date >= start_date)
    if end_date is not None:
        q = q.filter(models.Transfer.date <= end_date)
    return q.order_by(models.Transfer.date.desc(), models.Transfer.id.desc()).all()


@router.post("", response_model=TransferOut, status_code=201)
def create_transfer(payload: TransferCreate, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    if payload.from_account_id == payload.to_account_id:
        raise ValidationFailedError("from_account_id and to_account_id must be different")
    get_owned(db, models.Account, payload.from_account_id, current_user.id)
    get_owned(db, models.Account, payload.to_account_id, current_user.id)
    row = models.Transfer(
        user_id=current_user.id,
        amount=quantize_amount(payload.amount),
        date=payload.date,
        description=payload.description,
        from_account_id=payload.from_account_id,
        to_account_id=payload.to_account_id,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/{transfer_id}", response_model=TransferOut)
def get_transfer(transfer_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return get_owned(db, models.Transfer, transfer_id, current_user.id)


@router.patch("/{transfer_id}", response_model=TransferOut)
def update_transfer(
    transfer_id: int,
    payload: TransferUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    row = get_owned(db, models.Transfer, transfer_id, current_user.id)
    patch = payload.model_dump(exclude_unset=True)
    for key in ("amount", "date", "from_account_id", "to_account_id"):
        if key in patch and patch[key] is None:
            raise ValidationFailedError(f"{key} cannot be null")
    for key in ("from_account_id", "to_account_id"):
        if key in patch:
            get_owned(db, models.Account, patch[key], current_user.id)
    source = patch.get("from_account_id", row.from_account_id)
    target = patch.get("to_account_id", row.to_account_id)
    if source == target:
        raise ValidationFailedError("from_account_id and to_account_id must be different")
    if "amount" in patch:
        patch["amount"] = quantize_amount(patch["amount"])
    for key, value in patch.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{transfer_id}", status_code=204)
def delete_transfer(transfer_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    row = get_owned(db, models.Transfer, transfer_id, current_user.id)
    db.delete(row)
    db.commit()
    return Response(status_code=204)
