"""
Local filesystem storage for optimized media files.

Defaults:
- STORAGE_ROOT: ./data/storage
- media files: <STORAGE_ROOT>/media, served at MEDIA_URL_PREFIX
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from .config import get_settings


def get_storage_root() -> Path:
    return get_settings().storage_root_path()


def ensure_storage_root() -> Path:
    root = get_storage_root()
    root.mkdir(parents=True, exist_ok=True)
    return root


def media_dir() -> Path:
    d = ensure_storage_root() / "media"
    d.mkdir(parents=True, exist_ok=True)
    return d


def safe_media_path(filename: str) -> Path:
    base = media_dir().resolve()
    p = (base / filename).resolve()
    if p.parent != base:
        raise ValueError(f"media filename escapes storage root: {filename!r}")
    return p


def storage_health() -> Dict[str, Any]:
    try:
        root = ensure_storage_root()
        probe = root / ".probe_write"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
        return {"status": "ok", "kind": "local_fs", "root": str(root.as_posix())}
    except OSError as e:
        return {"status": "error", "kind": "local_fs", "root": str(get_storage_root().as_posix()), "error": str(e)}
