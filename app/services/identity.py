"""Caller identity forwarded by the upstream identity provider.

Authentication happens in front of this service; it passes the resolved
user id and role as request headers.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Literal, Optional

from fastapi import Depends, Header, HTTPException

from app.config import settings

Role = Literal["user", "admin"]


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: str
    role: Role = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def get_optional_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_identity_secret: Optional[str] = Header(default=None),
) -> Optional[Identity]:
    """Resolve the caller, or None for anonymous requests."""
    if not x_user_id or not x_user_id.strip():
        return None

    secret = settings.identity_shared_secret
    if secret and not hmac.compare_digest(x_identity_secret or "", secret):
        raise HTTPException(status_code=401, detail="Untrusted identity headers")

    role: Role = "admin" if (x_user_role or "").strip().lower() == "admin" else "user"
    return Identity(user_id=x_user_id.strip(), role=role)


async def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    """Resolve the caller (or raise 401)."""
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity


async def require_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """FastAPI dependency enforcing the admin role (raises 401/403)."""
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity
