"""
DB utilities for the local content store (sqlite default).

Defaults:
- DATABASE_URL: sqlite:///./data/app.db
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine


def _repo_root() -> Path:
    # apps/api/campaign_map/core/db.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def resolve_sqlite_path(database_url: str) -> Optional[Path]:
    if not database_url.startswith("sqlite:///"):
        return None
    p = database_url[len("sqlite:///") :]

    # absolute unix
    if p.startswith("/"):
        return Path(p)

    # absolute windows drive, both C:/ and C:\ forms
    if len(p) >= 3 and p[1] == ":" and (p[2] == "/" or p[2] == "\\"):
        return Path(p)

    # relative -> repo root
    return (_repo_root() / p).resolve()


_engines: Dict[str, Engine] = {}


def get_engine(url: str) -> Engine:
    if url in _engines:
        return _engines[url]

    connect_args = {}
    resolved = url
    if url.startswith("sqlite:///"):
        connect_args = {"check_same_thread": False}
        sp = resolve_sqlite_path(url)
        if sp is not None:
            sp.parent.mkdir(parents=True, exist_ok=True)
            resolved = "sqlite:///" + sp.as_posix()

    eng = create_engine(resolved, future=True, connect_args=connect_args)
    _engines[url] = eng
    return eng


def db_health(url: str) -> Dict[str, Any]:
    kind = "sqlite" if url.startswith("sqlite") else "unknown"
    sp = resolve_sqlite_path(url)
    path = str(sp.as_posix()) if sp is not None else url

    try:
        with get_engine(url).connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "kind": kind, "path": path}
    except Exception as e:
        return {"status": "error", "kind": kind, "path": path, "error": str(e)}
