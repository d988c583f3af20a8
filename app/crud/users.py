from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.users import User


def get_active_user_by_email(db: Session, email: str) -> User | None:
    normalized = (email or "").strip().lower()
    if not normalized:
        return None
    stmt = (
        select(User)
        .where(func.lower(User.email) == normalized)
        .where(User.is_active.is_(True))
    )
    return db.execute(stmt).scalar_one_or_none()
