from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from campaign_map.core.logs import emit

from .deps import current_user
from .schemas import AuthStatusOut, LoginIn, LoginOut
from .service import validate_user

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginOut)
def login(body: LoginIn, request: Request) -> LoginOut:
    rid = getattr(request.state, "request_id", None)
    user = validate_user(body.username, body.password)
    if user is None:
        emit("warning", "auth.login.failed", f"login failed for {body.username}", rid, __name__)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    request.session.update(
        {
            "authenticated": True,
            "username": user["username"],
            "displayName": user["displayName"],
            "role": user["role"],
        }
    )
    emit("info", "auth.login", f"login for {user['displayName']}", rid, __name__, role=user["role"])
    return LoginOut(username=user["displayName"], role=user["role"])


@router.post("/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"success": True, "message": "Logout successful"}


@router.get("/auth-status", response_model=AuthStatusOut)
def auth_status(request: Request) -> AuthStatusOut:
    u = current_user(request)
    if u is None:
        return AuthStatusOut(authenticated=False)
    return AuthStatusOut(authenticated=True, username=u.name, role=u.role)
