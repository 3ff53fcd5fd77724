from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Any, Dict, List, Optional

from campaign_map.core.config import get_settings

PBKDF2_ITERATIONS = 260_000
REVIEWER_ROLES = ("gm", "admin")


def hash_password(password: str, *, salt: Optional[str] = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${dk.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algo, iterations, salt, expected = encoded.split("$", 3)
    except ValueError:
        return False
    if algo != "pbkdf2_sha256":
        return False
    candidate = hash_password(password, salt=salt, iterations=int(iterations))
    return hmac.compare_digest(candidate.rsplit("$", 1)[1], expected)


def list_users() -> List[Dict[str, Any]]:
    return get_settings().load_users()


def validate_user(username: str, password: str) -> Optional[Dict[str, Any]]:
    """
    Users come from CAMPAIGN_USERS / CAMPAIGN_USERS_FILE:
      [{"username", "displayName", "role", "password_hash" | "password"}]
    """
    for u in list_users():
        if str(u.get("username") or "") != username:
            continue
        if u.get("password_hash"):
            ok = verify_password(password, str(u["password_hash"]))
        else:
            # plain passwords are only meant for local setups
            ok = hmac.compare_digest(str(u.get("password") or ""), password)
        if not ok:
            return None
        return {
            "username": username,
            "displayName": u.get("displayName") or username,
            "role": u.get("role") or "user",
        }
    return None


def is_reviewer(role: Optional[str]) -> bool:
    return (role or "") in REVIEWER_ROLES
