from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, get_clock
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import (
    PendingReminderOut,
    ReminderCreate,
    ReminderOut,
    ReminderPaid,
    ReminderUpdate,
    UpcomingInvoiceOut,
)
from cardledger.services.reminder_service import DEFAULT_DAYS_AHEAD, ReminderService


router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("", response_model=list[ReminderOut])
def list_reminders(
    status: Optional[models.ReminderStatus] = Query(None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return ReminderService(db, clock).list(current_user.id, status=status)


@router.get("/pending", response_model=list[PendingReminderOut])
def list_pending_reminders(
    days_ahead: int = Query(DEFAULT_DAYS_AHEAD, ge=0, le=365),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    items = ReminderService(db, clock).pending(current_user.id, days_ahead=days_ahead)
    return [item.as_dict() for item in items]


@router.get("/credit-cards/upcoming", response_model=list[UpcomingInvoiceOut])
def list_upcoming_invoices(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return [item.as_dict() for item in ReminderService(db, clock).upcoming_invoices(current_user.id)]


@router.post("", response_model=ReminderOut, status_code=201)
def create_reminder(
    payload: ReminderCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return ReminderService(db, clock).create(current_user.id, payload)


@router.get("/{reminder_id}", response_model=ReminderOut)
def get_reminder(
    reminder_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return ReminderService(db, clock).get(reminder_id, current_user.id)


@router.patch("/{reminder_id}", response_model=ReminderOut)
def update_reminder(
    reminder_id: int,
    payload: ReminderUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return ReminderService(db, clock).update(
        reminder_id, current_user.id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{reminder_id}", status_code=204)
def delete_reminder(
    reminder_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    ReminderService(db, clock).delete(reminder_id, current_user.id)
    return Response(status_code=204)


@router.patch("/{reminder_id}/paid", response_model=ReminderOut)
def mark_reminder_paid(
    reminder_id: int,
    payload: Optional[ReminderPaid] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    transaction_id = payload.transaction_id if payload is not None else None
    return ReminderService(db, clock).mark_paid(reminder_id, current_user.id, transaction_id)


@router.patch("/{reminder_id}/dismiss", response_model=ReminderOut)
def dismiss_reminder(
    reminder_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return ReminderService(db, clock).dismiss(reminder_id, current_user.id)
