from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger.core.clock import Clock, get_clock
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import (
    BudgetCopyRequest,
    BudgetCreate,
    BudgetHistoryItem,
    BudgetOut,
    BudgetStatusOut,
    BudgetUpdate,
)
from cardledger.services.budget_service import BudgetService


router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("", response_model=list[BudgetStatusOut])
def list_budgets(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    rows = BudgetService(db, clock).list_for_month(current_user.id, month, year)
    return [row.as_dict() for row in rows]


@router.post("", response_model=BudgetOut, status_code=201)
def create_budget(
    payload: BudgetCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return BudgetService(db, clock).create(current_user.id, payload)


@router.post("/copy-previous", response_model=list[BudgetOut], status_code=201)
def copy_previous_budgets(
    payload: BudgetCopyRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return BudgetService(db, clock).copy_previous(current_user.id, payload.month, payload.year)


@router.get("/history/{category_id}", response_model=list[BudgetHistoryItem])
def budget_history(
    category_id: int,
    months: int = Query(6, ge=1, le=24),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return BudgetService(db, clock).history(current_user.id, category_id, months=months)


@router.get("/{budget_id}", response_model=BudgetStatusOut)
def get_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return BudgetService(db, clock).get(budget_id, current_user.id).as_dict()


@router.put("/{budget_id}", response_model=BudgetOut)
def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return BudgetService(db, clock).update_amount(budget_id, current_user.id, payload.amount)


@router.delete("/{budget_id}", status_code=204)
def delete_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    BudgetService(db, clock).delete(budget_id, current_user.id)
    return Response(status_code=204)
