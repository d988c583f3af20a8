"""
Caller identity for API requests.

AUTH_MODE selects the source:
- legacy_header: X-User-Email / X-User headers, anonymous when absent.
- jwt_only: a Bearer token verified with the shared secret is mandatory.
- dual: a Bearer token when present, headers otherwise.
"""

from __future__ import annotations

from functools import lru_cache
import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import csv_values, settings
from app.core.security.jwt_verifier import AuthTokenValidationError, JWTVerifier
from app.db.session import get_db
from app.schemas.request_identity import RequestIdentity
from app.services.identity_mapping_service import attach_internal_user_context

logger = logging.getLogger(__name__)

ADMIN_ROLE = "ADMIN"
AUTH_MODES = ("legacy_header", "dual", "jwt_only")
_IDENTITY_HEADERS = ("X-User-Email", "X-User")
_EMAIL_CLAIMS = ("email", "upn", "preferred_username", "username")


def _auth_mode() -> str:
    mode = (settings.AUTH_MODE or "").strip().lower()
    return mode if mode in AUTH_MODES else "legacy_header"


@lru_cache(maxsize=1)
def _get_verifier() -> JWTVerifier:
    algorithms = [name.upper() for name in csv_values(settings.AUTH_JWT_ALGORITHMS)]
    return JWTVerifier(
        secret=settings.AUTH_JWT_SECRET,
        algorithms=algorithms or ["HS256"],
        leeway_sec=settings.AUTH_JWT_CLOCK_SKEW_SEC,
    )


def _bearer_token(request: Request) -> str | None:
    scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
    if scheme != "Bearer":
        return None
    return token.strip() or None


def _header_identity(request: Request) -> RequestIdentity:
    for header in _IDENTITY_HEADERS:
        email = (request.headers.get(header) or "").strip().lower()
        if email:
            return RequestIdentity(email=email, auth_source="legacy_header")
    return RequestIdentity(auth_source="anonymous")


def _claims_email(claims: dict) -> str | None:
    candidates = [claims.get(key) for key in _EMAIL_CLAIMS]
    # Namespaced custom claims, e.g. "https://tenant.example.com/email".
    candidates.extend(
        value
        for key, value in claims.items()
        if str(key).strip().lower().endswith(("/email", ":email"))
    )
    for value in candidates:
        text = str(value).strip().lower() if value is not None else ""
        if text:
            return text
    return None


def _token_identity(token: str) -> RequestIdentity:
    try:
        claims = _get_verifier().verify(token)
    except AuthTokenValidationError as exc:
        logger.warning("jwt_identity_rejected reason=%s", exc)
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    subject = str(claims.get("sub") or "").strip() or None
    email = _claims_email(claims)
    if email is None:
        logger.warning(
            "jwt_identity_email_missing subject=%s claim_keys=%s",
            subject or "-",
            sorted(str(k) for k in claims),
        )
    return RequestIdentity(subject=subject, email=email, auth_source="jwt", claims=claims)


def resolve_request_identity(request: Request) -> RequestIdentity:
    mode = _auth_mode()
    if mode == "legacy_header":
        return _header_identity(request)

    token = _bearer_token(request)
    if token:
        return _token_identity(token)
    if mode == "jwt_only":
        raise HTTPException(status_code=401, detail="Missing Bearer access token.")
    return _header_identity(request)


def get_request_identity(request: Request) -> RequestIdentity:
    return resolve_request_identity(request)


def get_request_identity_with_db(
    request: Request,
    db: Session = Depends(get_db),
) -> RequestIdentity:
    return attach_internal_user_context(db, identity=resolve_request_identity(request))


def require_admin(identity: RequestIdentity) -> RequestIdentity:
    if not identity.email and not identity.subject:
        raise HTTPException(status_code=401, detail="Authentication required.")
    if not identity.has_role(ADMIN_ROLE):
        raise HTTPException(status_code=403, detail=f"{ADMIN_ROLE} role is required.")
    return identity


def get_admin_identity(
    identity: RequestIdentity = Depends(get_request_identity_with_db),
) -> RequestIdentity:
    return require_admin(identity)
