"""
Content repository contract.

Campaign data lives as JSON documents in a git-like content repository:
every write is a commit, and updates are guarded by the current blob sha
(file-level optimistic concurrency).

Backends:
- github: GitHub Contents API (github_store.GitHubContentStore)
- local: sqlite via SQLModel (local_store.LocalContentStore)
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from .config import Settings, get_settings

CHARACTERS_PATH = "public/data/characters.json"
LOCATIONS_PATH = "public/data/places.geojson"
REVIEWS_PATH = "public/data/reviews.json"
MEDIA_LIBRARY_PATH = "public/data/media-library.json"


class ContentStoreError(RuntimeError):
    """Backend failure that is not a concurrency conflict."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ShaConflictError(ContentStoreError):
    """The file changed since it was read (stale or missing sha)."""

    def __init__(self, path: str, expected: Optional[str], actual: Optional[str]) -> None:
        super().__init__(f"sha mismatch for {path}", status_code=409)
        self.path = path
        self.expected = expected
        self.actual = actual


@dataclass(frozen=True)
class StoredFile:
    path: str
    sha: str
    data: Any


@dataclass(frozen=True)
class CommitInfo:
    sha: str
    message: str
    author: str
    date: str
    path: Optional[str] = None


class ContentStore(Protocol):
    name: str

    def read_json(self, path: str) -> Optional[StoredFile]:
        ...

    def write_json(
        self,
        path: str,
        data: Any,
        *,
        message: str,
        sha: Optional[str],
        author: Optional[str] = None,
    ) -> str:
        ...

    def list_commits(
        self,
        *,
        path: Optional[str] = None,
        since: Optional[str] = None,
        limit: int = 50,
    ) -> List[CommitInfo]:
        ...

    def ping(self) -> Dict[str, Any]:
        ...

    def describe(self) -> Dict[str, Any]:
        ...


# -------------------------
# document helpers
# -------------------------
def empty_characters() -> Dict[str, Any]:
    return {"version": "1.0", "characters": []}


def empty_locations() -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": []}


def empty_reviews() -> Dict[str, Any]:
    return {"version": "1.0", "reviews": []}


def empty_media_library() -> Dict[str, Any]:
    return {"version": "1.0", "images": {}}


def load_document(
    store: ContentStore,
    path: str,
    empty: Callable[[], Dict[str, Any]],
) -> Tuple[Dict[str, Any], Optional[str]]:
    """Returns (data, sha); a missing file yields the empty shape and sha=None."""
    f = store.read_json(path)
    if f is None or not isinstance(f.data, dict):
        return empty(), (f.sha if f is not None else None)
    return copy.deepcopy(f.data), f.sha


def save_document(
    store: ContentStore,
    path: str,
    data: Dict[str, Any],
    *,
    message: str,
    sha: Optional[str],
    author: Optional[str] = None,
) -> str:
    return store.write_json(path, data, message=message, sha=sha, author=author)


# -------------------------
# backend registry
# -------------------------
_store: Optional[ContentStore] = None


def build_store(settings: Settings) -> ContentStore:
    if settings.content_backend == "github":
        from .github_store import GitHubContentStore

        return GitHubContentStore.from_settings(settings)
    if settings.content_backend == "local":
        from .local_store import LocalContentStore

        return LocalContentStore(settings.database_url)
    raise ValueError(f"Unknown CONTENT_BACKEND={settings.content_backend!r} (expected github|local)")


def get_store() -> ContentStore:
    """FastAPI dependency; one store per process."""
    global _store
    if _store is None:
        _store = build_store(get_settings())
    return _store


def store_health() -> Dict[str, Any]:
    try:
        return {"status": "ok", **get_store().describe()}
    except Exception as e:
        return {"status": "error", "backend": get_settings().content_backend, "error": str(e)}
