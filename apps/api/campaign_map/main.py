from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from campaign_map.core.config import get_settings

settings = get_settings()

app = FastAPI(title="Campaign Map API", version=settings.app_version)

# === OBSERVABILITY FOUNDATIONS ===
# Contract locks:
# - /health keys: status, version, storage, path_cache, last_error_summary
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details
import uuid
from typing import Any, Dict, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from campaign_map.core.content_store import (
    ContentStore,
    ContentStoreError,
    ShaConflictError,
    get_store,
    store_health,
)
from campaign_map.core.logs import emit, now_iso

_last_error: Optional[Dict[str, Any]] = None


def _remember_error(kind: str, message: str, request_id: Optional[str]) -> None:
    global _last_error
    _last_error = {"error": kind, "message": message, "request_id": request_id, "ts": now_iso()}


def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int):
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )


@app.middleware("http")
async def _request_id_mw(request: Request, call_next):
    rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
    request.state.request_id = rid
    emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
    try:
        resp = await call_next(request)
    except Exception as e:
        emit("error", "http.request.exception", str(e), rid, __name__)
        raise
    resp.headers["X-Request-Id"] = rid
    emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp,'status_code',None)}", rid, __name__)
    return resp


@app.exception_handler(StarletteHTTPException)
async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
    rid = getattr(request.state, "request_id", None)
    details: Dict[str, Any] = {"status_code": exc.status_code}
    message = exc.detail
    if isinstance(exc.detail, dict):
        extra = dict(exc.detail)
        message = extra.pop("message", "")
        details.update(extra)
    return _err_envelope("http_error", str(message), rid, details, exc.status_code)


@app.exception_handler(RequestValidationError)
async def _validation_exc_handler(request: Request, exc: RequestValidationError):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("validation_error", "request validation failed", rid, exc.errors(), 422)


@app.exception_handler(ShaConflictError)
async def _conflict_exc_handler(request: Request, exc: ShaConflictError):
    rid = getattr(request.state, "request_id", None)
    emit("warning", "content.conflict", str(exc), rid, __name__, path=exc.path)
    return _err_envelope(
        "conflict",
        "content changed since it was read; reload and retry",
        rid,
        {"path": exc.path, "expected_sha": exc.expected, "actual_sha": exc.actual},
        409,
    )


@app.exception_handler(ContentStoreError)
async def _upstream_exc_handler(request: Request, exc: ContentStoreError):
    rid = getattr(request.state, "request_id", None)
    emit("error", "content.upstream_error", str(exc), rid, __name__, upstream_status=exc.status_code)
    _remember_error("upstream_error", str(exc), rid)
    return _err_envelope("upstream_error", str(exc), rid, {"upstream_status": exc.status_code}, 502)


@app.exception_handler(Exception)
async def _unhandled_exc_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", None)
    emit("error", "http.unhandled", str(exc), rid, __name__, type=type(exc).__name__)
    _remember_error("internal_error", type(exc).__name__, rid)
    return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)
# === END OBSERVABILITY FOUNDATIONS ===


app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    max_age=settings.session_max_age,
    same_site="lax",
)

from campaign_map.modules.activity.router import router as activity_router
from campaign_map.modules.auth.router import router as auth_router
from campaign_map.modules.campaign_config.router import router as config_router
from campaign_map.modules.character_paths.cache import get_path_cache
from campaign_map.modules.character_paths.router import router as character_paths_router
from campaign_map.modules.characters.router import router as characters_router
from campaign_map.modules.locations.router import router as locations_router
from campaign_map.modules.map_layout.router import router as map_layout_router
from campaign_map.modules.media.router import router as media_router
from campaign_map.modules.reviews.router import router as changelog_router

for r in (
    auth_router,
    locations_router,
    characters_router,
    character_paths_router,
    map_layout_router,
    changelog_router,
    activity_router,
    media_router,
    config_router,
):
    app.include_router(r, prefix="/api")

app.mount(
    settings.media_url_prefix,
    StaticFiles(directory=str(settings.storage_root_path() / "media"), check_dir=False),
    name="media",
)


@app.get("/health")
def health():
    # Contract keys are locked above
    from campaign_map.core.storage import storage_health

    store = store_health()
    storage = storage_health()
    status = "ok" if store["status"] == "ok" and storage["status"] == "ok" else "degraded"
    return {
        "status": status,
        "version": settings.app_version,
        "storage": {"content": store, "media": storage},
        "path_cache": get_path_cache().stats(),
        "last_error_summary": _last_error,
    }


@app.get("/api/test")
def api_test(store: ContentStore = Depends(get_store)):
    info = store.ping()
    return {"success": True, "message": "Content backend reachable", "backend": store.name, **info}
