from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.clock import Clock, SystemClock
from cardledger.core.errors import ValidationFailedError
from cardledger.core.logging import get_logger
from cardledger.schemas import GoalContributionCreate, GoalCreate
from cardledger.services.ownership import get_owned
from cardledger.utils.money import ZERO, quantize_amount, to_money


logger = get_logger(__name__)


@dataclass(frozen=True)
class GoalProgress:
    percentage: float
    remaining: Decimal
    days_left: int
    monthly_needed: Decimal
    is_on_track: bool


def compute_progress(current: Decimal, target: Decimal, deadline: date, today: date) -> GoalProgress:
    """Progress snapshot; months left are approximated as 30-day blocks, never fewer than one."""
    current = to_money(current)
    target = to_money(target)
    percentage = float(current / target * 100) if target > 0 else 0.0
    remaining = max(ZERO, target - current)
    days_left = max(0, (deadline - today).days)
    months_left = max(1, math.ceil(days_left / 30))
    monthly_needed = quantize_amount(remaining / months_left)
    return GoalProgress(
        percentage=round(min(100.0, percentage), 2),
        remaining=remaining,
        days_left=days_left,
        monthly_needed=monthly_needed,
        is_on_track=remaining <= 0 or days_left > 0,
    )


class GoalService:
    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or SystemClock()

    def progress(self, goal: models.Goal) -> GoalProgress:
        return compute_progress(goal.current_amount, goal.target_amount, goal.deadline, self.clock.today())

    def get(self, goal_id: int, user_id: int) -> models.Goal:
        return get_owned(self.db, models.Goal, goal_id, user_id)

    def list(self, user_id: int, status: Optional[models.GoalStatus] = None) -> list[models.Goal]:
        q = self.db.query(models.Goal).filter(models.Goal.user_id == user_id)
        if status is not None:
            q = q.filter(models.Goal.status == status)
        return q.order_by(models.Goal.deadline.asc(), models.Goal.id.asc()).all()

    def create(self, user_id: int, payload: GoalCreate) -> models.Goal:
        if payload.account_id is not None:
            get_owned(self.db, models.Account, payload.account_id, user_id)
        row = models.Goal(
            user_id=user_id,
            name=payload.name,
            target_amount=quantize_amount(payload.target_amount),
            current_amount=ZERO,
            deadline=payload.deadline,
            status=models.GoalStatus.ACTIVE,
            account_id=payload.account_id,
            color=payload.color,
            icon=payload.icon,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def update(self, goal_id: int, user_id: int, patch: dict) -> models.Goal:
        row = self.get(goal_id, user_id)
        if not patch:
            return row
        for key in ("name", "target_amount", "deadline"):
            if key in patch and patch[key] is None:
                raise ValidationFailedError(f"{key} cannot be null")
        if patch.get("account_id") is not None:
            get_owned(self.db, models.Account, patch["account_id"], user_id)
        if "target_amount" in patch:
            patch["target_amount"] = quantize_amount(patch["target_amount"])
        for key, value in patch.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, goal_id: int, user_id: int) -> None:
        row = self.get(goal_id, user_id)
        self.db.delete(row)
        self.db.commit()

    def add_contribution(
        self, goal_id: int, user_id: int, payload: GoalContributionCreate
    ) -> models.GoalContribution:
        """Record a contribution and bump the running total in one commit.

        An ACTIVE goal whose total reaches the target becomes COMPLETED.
        """
        goal = self.get(goal_id, user_id)
        if goal.status != models.GoalStatus.ACTIVE:
            raise ValidationFailedError("Cannot add contribution to inactive goal")
        amount = quantize_amount(payload.amount)
        contribution = models.GoalContribution(
            goal_id=goal.id, amount=amount, date=payload.date, notes=payload.notes
        )
        self.db.add(contribution)
        # incremented in SQL; the loaded total may be stale
        self.db.query(models.Goal).filter(models.Goal.id == goal.id).update(
            {models.Goal.current_amount: models.Goal.current_amount + amount}, synchronize_session=False
        )
        self.db.refresh(goal, ["current_amount"])
        if to_money(goal.current_amount) >= to_money(goal.target_amount):
            goal.status = models.GoalStatus.COMPLETED
            goal.completed_at = self.clock.today()
            logger.info("Goal %s reached its target", goal.id)
        self.db.commit()
        self.db.refresh(contribution)
        return contribution

    def list_contributions(self, goal_id: int, user_id: int) -> list[models.GoalContribution]:
        goal = self.get(goal_id, user_id)
        return (
            self.db.query(models.GoalContribution)
            .filter(models.GoalContribution.goal_id == goal.id)
            .order_by(models.GoalContribution.date.desc(), models.GoalContribution.id.desc())
            .all()
        )

    def complete(self, goal_id: int, user_id: int) -> models.Goal:
        row = self.get(goal_id, user_id)
        row.status = models.GoalStatus.COMPLETED
        row.completed_at = self.clock.today()
        self.db.commit()
        self.db.refresh(row)
        return row

    def cancel(self, goal_id: int, user_id: int) -> models.Goal:
        row = self.get(goal_id, user_id)
        row.status = models.GoalStatus.CANCELLED
        self.db.commit()
        self.db.refresh(row)
        return row
