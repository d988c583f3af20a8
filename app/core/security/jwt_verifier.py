from __future__ import annotations

import jwt


class AuthTokenValidationError(Exception):
    """Raised when a bearer token cannot be trusted."""


class JWTVerifier:
    """
    Verifies access tokens issued by the authentication service.

    Token issuance lives outside this API; only signature, expiry and the
    presence of a subject are checked here.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithms: list[str],
        leeway_sec: int = 60,
    ):
        self.secret = secret
        self.algorithms = algorithms
        self.leeway_sec = leeway_sec

    def verify(self, token: str) -> dict:
        if not self.secret:
            raise AuthTokenValidationError("Token verification is not configured.")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                leeway=self.leeway_sec,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthTokenValidationError("Access token has expired.") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthTokenValidationError("Access token is invalid.") from exc
        if not isinstance(claims, dict):
            raise AuthTokenValidationError("Access token payload is invalid.")
        return claims
