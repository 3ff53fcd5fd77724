from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


# one row per document path; sha is the git-style blob sha of content_json
class ContentFile(SQLModel, table=True):
    __tablename__ = "content_files"

    path: str = Field(primary_key=True)
    sha: str
    content_json: str
    updated_at: str


# append-only commit log; id gives a stable newest-first order within one second
class ContentCommit(SQLModel, table=True):
    __tablename__ = "content_commits"

    id: Optional[int] = Field(default=None, primary_key=True)
    sha: str = Field(index=True, unique=True)
    path: str = Field(index=True)
    message: str
    author: str
    created_at: str = Field(index=True)
