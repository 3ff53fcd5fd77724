from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field


class LoginIn(BaseModel):
    username: str = Field(min_length=1)
    password: str


class LoginOut(BaseModel):
    success: bool = True
    message: str = "Login successful"
    username: str
    role: str


class AuthStatusOut(BaseModel):
    authenticated: bool
    username: Optional[str] = None
    role: Optional[str] = None
