from __future__ import annotations

from pydantic import BaseModel, Field


class RequestIdentity(BaseModel):
    subject: str | None = None
    email: str | None = None
    auth_source: str = "anonymous"
    claims: dict = Field(default_factory=dict)
    user_id: int | None = None
    role_names: list[str] = Field(default_factory=list)

    @property
    def actor_label(self) -> str | None:
        """Human-readable actor for free-text audit columns (inspected_by etc.)."""
        return self.email or self.subject

    def has_role(self, role: str) -> bool:
        wanted = (role or "").strip().upper()
        return any((name or "").strip().upper() == wanted for name in self.role_names)
