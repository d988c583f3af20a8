from __future__ import annotations

from sqlalchemy.orm import Session

from app.crud.users import get_active_user_by_email
from app.schemas.request_identity import RequestIdentity


def attach_internal_user_context(
    db: Session,
    *,
    identity: RequestIdentity,
) -> RequestIdentity:
    """
    Resolve the caller to an active local user and attach its id and role.

    The user id is the audit actor for ledger writes; an identity that maps to
    no active user stays unattributed and writes under it leave no history.
    """
    if not identity.email:
        return identity

    user = get_active_user_by_email(db, identity.email)
    if user is None:
        return identity

    role = (user.role or "").strip().upper()
    return identity.model_copy(
        update={
            "user_id": int(user.id),
            "role_names": [role] if role else [],
        }
    )
