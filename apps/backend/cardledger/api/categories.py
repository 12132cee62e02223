from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cardledger import models
from cardledger.core.database import get_db
from cardledger.core.deps import get_current_user
from cardledger.schemas import CategoryCreate, CategoryOut, CategoryUpdate
from cardledger.services.ownership import get_owned


router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(
    kind: Optional[models.CategoryKind] = Query(None),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    q = db.query(models.Category).filter(models.Category.user_id == current_user.id)
    if kind is not None:
        q = q.filter(models.Category.kind == kind)
    return q.order_by(models.Category.name.asc(), models.Category.id.asc()).all()


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    row = models.Category(user_id=current_user.id, **payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return get_owned(db, models.Category, category_id, current_user.id)


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    row = get_owned(db, models.Category, category_id, current_user.id)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{category_id}", status_code=204)
def delete_category(category_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    row = get_owned(db, models.Category, category_id, current_user.id)
    db.delete(row)
    db.commit()
    return Response(status_code=204)
