from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request

from .service import is_reviewer


@dataclass(frozen=True)
class SessionUser:
    name: str
    role: str
    username: Optional[str] = None

    @property
    def can_review(self) -> bool:
        return is_reviewer(self.role)


def current_user(request: Request) -> Optional[SessionUser]:
    s = request.session
    if not s.get("authenticated"):
        return None
    return SessionUser(
        name=s.get("displayName") or s.get("username") or "Unknown",
        role=s.get("role") or "user",
        username=s.get("username"),
    )


def require_auth(request: Request) -> SessionUser:
    u = current_user(request)
    if u is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return u


def require_reviewer(request: Request) -> SessionUser:
    u = require_auth(request)
    if not u.can_review:
        raise HTTPException(status_code=403, detail="Only GM/Admin can review changes")
    return u
