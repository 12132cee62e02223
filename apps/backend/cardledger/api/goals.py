from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, get_clock
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import (
    GoalContributionCreate,
    GoalContributionOut,
    GoalCreate,
    GoalOut,
    GoalProgressOut,
    GoalUpdate,
)
from cardledger.services.goal_service import GoalService


router = APIRouter(prefix="/goals", tags=["goals"])


def _with_progress(svc: GoalService, goal: models.Goal) -> GoalOut:
    out = GoalOut.model_validate(goal)
    out.progress = GoalProgressOut(**asdict(svc.progress(goal)))
    return out


@router.get("", response_model=list[GoalOut])
def list_goals(
    status: Optional[models.GoalStatus] = Query(None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    svc = GoalService(db, clock)
    return [_with_progress(svc, goal) for goal in svc.list(current_user.id, status=status)]


@router.post("", response_model=GoalOut, status_code=201)
def create_goal(
    payload: GoalCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    svc = GoalService(db, clock)
    return _with_progress(svc, svc.create(current_user.id, payload))


@router.get("/{goal_id}", response_model=GoalOut)
def get_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    svc = GoalService(db, clock)
    return _with_progress(svc, svc.get(goal_id, current_user.id))


@router.patch("/{goal_id}", response_model=GoalOut)
def update_goal(
    goal_id: int,
    payload: GoalUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    svc = GoalService(db, clock)
    goal = svc.update(goal_id, current_user.id, payload.model_dump(exclude_unset=True))
    return _with_progress(svc, goal)


@router.delete("/{goal_id}", status_code=204)
def delete_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    GoalService(db, clock).delete(goal_id, current_user.id)
    return Response(status_code=204)


@router.post("/{goal_id}/contributions", response_model=GoalContributionOut, status_code=201)
def add_goal_contribution(
    goal_id: int,
    payload: GoalContributionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return GoalService(db, clock).add_contribution(goal_id, current_user.id, payload)


@router.get("/{goal_id}/contributions", response_model=list[GoalContributionOut])
def list_goal_contributions(
    goal_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    return GoalService(db, clock).list_contributions(goal_id, current_user.id)


@router.patch("/{goal_id}/complete", response_model=GoalOut)
def complete_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    svc = GoalService(db, clock)
    return _with_progress(svc, svc.complete(goal_id, current_user.id))


@router.patch("/{goal_id}/cancel", response_model=GoalOut)
def cancel_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user=Depends(get_current_user),
):
    svc = GoalService(db, clock)
    return _with_progress(svc, svc.cancel(goal_id, current_user.id))
