"""
Runtime settings, read from the environment.

Defaults target local development:
- CONTENT_BACKEND: local (sqlite content store at DATABASE_URL)
- STORAGE_ROOT: ./data/storage (optimized media files)
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional


def _repo_root() -> Path:
    # apps/api/campaign_map/core/config.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _list_env(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    app_version: str = "0.1.0"
    content_backend: str = "local"  # github|local

    github_token: Optional[str] = None
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None
    github_branch: str = "main"
    github_api_url: str = "https://api.github.com"

    database_url: str = "sqlite:///./data/app.db"
    storage_root: str = "./data/storage"
    media_url_prefix: str = "/media"

    session_secret: str = "campaign-map-secret-change-this"
    session_max_age: int = 24 * 60 * 60
    users_raw: Optional[str] = None
    users_file: Optional[str] = None

    path_cache_ttl_seconds: int = 300
    review_retention_days: int = 30
    changelog_system_authors: List[str] = field(default_factory=list)

    def storage_root_path(self) -> Path:
        p = Path(self.storage_root)
        return p if p.is_absolute() else (_repo_root() / p).resolve()

    def load_users(self) -> List[Dict[str, Any]]:
        raw = self.users_raw
        if not raw and self.users_file:
            raw = Path(self.users_file).read_text(encoding="utf-8")
        if not raw:
            return []
        data = json.loads(raw)
        if isinstance(data, dict):
            data = data.get("users") or []
        return [u for u in data if isinstance(u, dict)]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        content_backend=os.getenv("CONTENT_BACKEND", "local").strip().lower(),
        github_token=os.getenv("GITHUB_TOKEN"),
        github_owner=os.getenv("GITHUB_USERNAME"),
        github_repo=os.getenv("GITHUB_REPO"),
        github_branch=os.getenv("GITHUB_BRANCH", "main"),
        github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./data/app.db"),
        storage_root=os.getenv("STORAGE_ROOT", "./data/storage"),
        media_url_prefix=os.getenv("MEDIA_URL_PREFIX", "/media"),
        session_secret=os.getenv("SESSION_SECRET", "campaign-map-secret-change-this"),
        session_max_age=_int_env("SESSION_MAX_AGE", 24 * 60 * 60),
        users_raw=os.getenv("CAMPAIGN_USERS"),
        users_file=os.getenv("CAMPAIGN_USERS_FILE"),
        path_cache_ttl_seconds=_int_env("PATH_CACHE_TTL_SECONDS", 300),
        review_retention_days=_int_env("REVIEW_RETENTION_DAYS", 30),
        changelog_system_authors=_list_env("CHANGELOG_SYSTEM_AUTHORS", []),
    )
