"""
Local content store: the GitHub Contents semantics on top of sqlite.

- blob sha = sha1("blob <len>\\0" + bytes), same scheme git uses
- create requires sha=None, update requires the current sha
- every write appends a row to content_commits
"""
from __future__ import annotations

import hashlib
import json
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from .content_store import CommitInfo, ContentStoreError, ShaConflictError, StoredFile
from .db import db_health, get_engine
from .logs import emit, now_iso
from .models import ContentCommit, ContentFile

DEFAULT_AUTHOR = "campaign-map"


def blob_sha(raw: bytes) -> str:
    h = hashlib.sha1()
    h.update(f"blob {len(raw)}\0".encode("utf-8"))
    h.update(raw)
    return h.hexdigest()


def dump_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


class LocalContentStore:
    name = "local"

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self.engine = get_engine(database_url)
        # alembic owns the schema in deployments; create_all keeps fresh dbs usable
        SQLModel.metadata.create_all(self.engine)

    def read_json(self, path: str) -> Optional[StoredFile]:
        with Session(self.engine) as s:
            row = s.get(ContentFile, path)
            if row is None:
                return None
            return StoredFile(path=row.path, sha=row.sha, data=json.loads(row.content_json))

    def write_json(
        self,
        path: str,
        data: Any,
        *,
        message: str,
        sha: Optional[str],
        author: Optional[str] = None,
    ) -> str:
        content = dump_json(data)
        new_sha = blob_sha(content.encode("utf-8"))
        now = now_iso()
        commit_sha = hashlib.sha1(f"commit {path} {new_sha} {now} {uuid.uuid4().hex}".encode("utf-8")).hexdigest()
        files = ContentFile.__table__

        # the sha check and the write are one statement, so concurrent writers
        # holding the same sha cannot both succeed
        try:
            with self.engine.begin() as conn:
                if sha is None:
                    conn.execute(insert(files).values(path=path, sha=new_sha, content_json=content, updated_at=now))
                else:
                    res = conn.execute(
                        update(files)
                        .where(files.c.path == path, files.c.sha == sha)
                        .values(sha=new_sha, content_json=content, updated_at=now)
                    )
                    if res.rowcount != 1:
                        actual = conn.execute(select(files.c.sha).where(files.c.path == path)).scalar_one_or_none()
                        raise ShaConflictError(path, expected=sha, actual=actual)
                conn.execute(
                    insert(ContentCommit.__table__).values(
                        sha=commit_sha,
                        path=path,
                        message=message,
                        author=author or DEFAULT_AUTHOR,
                        created_at=now,
                    )
                )
        except IntegrityError:
            # create raced with another create of the same path
            current = self.read_json(path)
            raise ShaConflictError(path, expected=None, actual=current.sha if current else None) from None

        emit("info", "content.commit", message, None, __name__, path=path, commit_sha=commit_sha, backend=self.name)
        return commit_sha

    def list_commits(
        self,
        *,
        path: Optional[str] = None,
        since: Optional[str] = None,
        limit: int = 50,
    ) -> List[CommitInfo]:
        stmt = select(ContentCommit)
        if path:
            stmt = stmt.where(ContentCommit.path == path)
        if since:
            stmt = stmt.where(ContentCommit.created_at >= since)
        stmt = stmt.order_by(ContentCommit.id.desc()).limit(max(int(limit), 1))

        with Session(self.engine) as s:
            rows = s.exec(stmt).all()
            return [
                CommitInfo(sha=r.sha, message=r.message, author=r.author, date=r.created_at, path=r.path)
                for r in rows
            ]

    def ping(self) -> Dict[str, Any]:
        h = db_health(self.database_url)
        if h["status"] != "ok":
            raise ContentStoreError(h.get("error") or "local content db unavailable")
        return {"repo": f"local:{h['path']}"}

    def describe(self) -> Dict[str, Any]:
        h = db_health(self.database_url)
        return {"backend": self.name, "db": h}
