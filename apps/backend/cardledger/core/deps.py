from __future__ import annotations

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from cardledger.core.database import get_db
from cardledger import models


def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: Session = Depends(get_db),
) -> models.User:
    """Very lightweight current user resolver.

    The authenticating proxy forwards the user id in ``X-User-Id``. Without
    the header the first user is returned (a demo user is created if none).
    Tests may override this dependency or send the header.
    """
    if x_user_id is not None:
        user = db.get(models.User, x_user_id)
        if not user:
            raise HTTPException(status_code=401, detail="Unknown user")
        return user
    user = db.query(models.User).order_by(models.User.id).first()
    if not user:
        user = models.User(email="demo@example.com", name="Demo")
        db.add(user)
        db.commit()
        db.refresh(user)
    return user
