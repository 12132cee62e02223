from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger.core.clock import Clock, get_clock
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import (
    RecurrenceCreate,
    RecurrenceCreatedOut,
    RecurrenceGenerateResult,
    RecurrenceOut,
    RecurrenceUpdate,
    TransactionOut,
)
from cardledger.services.recurrence_service import RecurrenceService


router = APIRouter(prefix="/recurrences", tags=["recurrences"])


@router.get("", response_model=list[RecurrenceOut])
def list_recurrences(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return RecurrenceService(db, clock).list(current_user.id, include_inactive=include_inactive)


@router.post("", response_model=RecurrenceCreatedOut, status_code=201)
def create_recurrence(
    payload: RecurrenceCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    recurrence, generated = RecurrenceService(db, clock).create(current_user.id, payload)
    return RecurrenceCreatedOut(
        **RecurrenceOut.model_validate(recurrence).model_dump(),
        generated_transactions=generated,
    )


@router.post("/generate", response_model=RecurrenceGenerateResult)
def generate_recurrences(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    generated = RecurrenceService(db, clock).extend(current_user.id)
    return RecurrenceGenerateResult(generated=generated)


@router.get("/{recurrence_id}", response_model=RecurrenceOut)
def get_recurrence(
    recurrence_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return RecurrenceService(db, clock).get(recurrence_id, current_user.id)


@router.patch("/{recurrence_id}", response_model=RecurrenceOut)
def update_recurrence(
    recurrence_id: int,
    payload: RecurrenceUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return RecurrenceService(db, clock).update(
        recurrence_id, current_user.id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{recurrence_id}", status_code=204)
def delete_recurrence(
    recurrence_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    RecurrenceService(db, clock).delete(recurrence_id, current_user.id)
    return Response(status_code=204)


@router.patch("/{recurrence_id}/pause", response_model=RecurrenceOut)
def pause_recurrence(
    recurrence_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return RecurrenceService(db, clock).pause(recurrence_id, current_user.id)


@router.patch("/{recurrence_id}/resume", response_model=RecurrenceOut)
def resume_recurrence(
    recurrence_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return RecurrenceService(db, clock).resume(recurrence_id, current_user.id)


@router.get("/{recurrence_id}/transactions", response_model=list[TransactionOut])
def list_recurrence_transactions(
    recurrence_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return RecurrenceService(db, clock).list_transactions(recurrence_id, current_user.id)
