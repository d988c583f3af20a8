from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.api.deps import request_identity as request_identity_module
from app.core.config import settings
from app.core.security.jwt_verifier import AuthTokenValidationError
from app.models.users import User
from app.schemas.request_identity import RequestIdentity
from app.services.identity_mapping_service import attach_internal_user_context


class _FakeVerifier:
    def verify(self, token: str):
        if token == "ok-token":
            return {
                "sub": "user-1",
                "email": "jwt@example.com",
                "iat": 1,
                "exp": 9999999999,
            }
        if token == "ok-token-ns-email":
            return {
                "sub": "user-2",
                "https://logistics.example.com/email": "ns.jwt@example.com",
                "iat": 1,
                "exp": 9999999999,
            }
        raise AuthTokenValidationError("Access token is invalid.")


def _build_app() -> FastAPI:
    app = FastAPI()

    @app.get("/whoami")
    def whoami(identity: RequestIdentity = Depends(request_identity_module.get_request_identity)):
        return {
            "email": identity.email,
            "source": identity.auth_source,
            "sub": identity.subject,
        }

    return app


def test_legacy_header_mode_uses_x_user_email(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "legacy_header")
    app = _build_app()
    with TestClient(app) as client:
        r = client.get("/whoami", headers={"X-User-Email": "Legacy@Example.com"})
        assert r.status_code == 200
        payload = r.json()
        assert payload["email"] == "legacy@example.com"
        assert payload["source"] == "legacy_header"


def test_legacy_header_mode_without_header_is_anonymous(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "legacy_header")
    app = _build_app()
    with TestClient(app) as client:
        r = client.get("/whoami")
        assert r.status_code == 200
        assert r.json() == {"email": None, "source": "anonymous", "sub": None}


def test_legacy_header_mode_ignores_bearer_token(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "legacy_header")
    monkeypatch.setattr(request_identity_module, "_get_verifier", lambda: _FakeVerifier())
    app = _build_app()
    with TestClient(app) as client:
        r = client.get(
            "/whoami",
            headers={
                "Authorization": "Bearer ok-token",
                "X-User-Email": "legacy@example.com",
            },
        )
        assert r.status_code == 200
        payload = r.json()
        assert payload["email"] == "legacy@example.com"
        assert payload["source"] == "legacy_header"


def test_jwt_only_mode_requires_bearer(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "jwt_only")
    app = _build_app()
    with TestClient(app) as client:
        r = client.get("/whoami")
        assert r.status_code == 401


def test_jwt_only_mode_rejects_invalid_token(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "jwt_only")
    monkeypatch.setattr(request_identity_module, "_get_verifier", lambda: _FakeVerifier())
    app = _build_app()
    with TestClient(app) as client:
        r = client.get("/whoami", headers={"Authorization": "Bearer forged"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Access token is invalid."


def test_dual_mode_prefers_bearer(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "dual")
    monkeypatch.setattr(request_identity_module, "_get_verifier", lambda: _FakeVerifier())
    app = _build_app()
    with TestClient(app) as client:
        r = client.get(
            "/whoami",
            headers={
                "Authorization": "Bearer ok-token",
                "X-User-Email": "legacy@example.com",
            },
        )
        assert r.status_code == 200
        payload = r.json()
        assert payload["email"] == "jwt@example.com"
        assert payload["source"] == "jwt"
        assert payload["sub"] == "user-1"


def test_jwt_email_extracted_from_namespaced_claim(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "jwt_only")
    monkeypatch.setattr(request_identity_module, "_get_verifier", lambda: _FakeVerifier())
    app = _build_app()
    with TestClient(app) as client:
        r = client.get(
            "/whoami",
            headers={"Authorization": "Bearer ok-token-ns-email"},
        )
        assert r.status_code == 200
        payload = r.json()
        assert payload["email"] == "ns.jwt@example.com"
        assert payload["source"] == "jwt"


def test_identity_maps_to_active_user_roles(db_session):
    db_session.add_all(
        [
            User(email="boss@example.com", username="boss", role="admin", is_active=True),
            User(email="gone@example.com", username="gone", role="admin", is_active=False),
        ]
    )
    db_session.commit()

    mapped = attach_internal_user_context(
        db_session,
        identity=RequestIdentity(email="boss@example.com", auth_source="legacy_header"),
    )
    assert mapped.user_id is not None
    assert mapped.role_names == ["ADMIN"]
    assert mapped.has_role("admin")

    inactive = attach_internal_user_context(
        db_session,
        identity=RequestIdentity(email="gone@example.com", auth_source="legacy_header"),
    )
    assert inactive.user_id is None
    assert inactive.role_names == []
