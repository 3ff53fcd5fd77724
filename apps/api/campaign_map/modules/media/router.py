from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from campaign_map.core.content_store import ContentStore, get_store
from campaign_map.modules.auth.deps import SessionUser, require_auth

from .schemas import CategoriesOut, MediaItemResponse, MediaListOut, MediaUpdateIn, MediaUploadOut
from .service import CATEGORIES, Upload, delete_media, get_media, list_media, update_media, upload_media

router = APIRouter(prefix="/media", tags=["media"])


@router.get("", response_model=MediaListOut)
def api_list_media(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    store: ContentStore = Depends(get_store),
) -> Dict[str, Any]:
    return list_media(store, category=category, search=search, page=page, limit=limit)


@router.post("/upload", response_model=MediaUploadOut)
def api_upload_media(
    request: Request,
    images: List[UploadFile] = File(...),
    category: str = Form("general"),
    title: str = Form(""),
    caption: str = Form(""),
    credits: str = Form(""),
    tags: str = Form(""),
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> MediaUploadOut:
    uploads = [
        Upload(filename=f.filename or "", content_type=f.content_type or "", data=f.file.read())
        for f in images
    ]
    entries = upload_media(
        store,
        uploads,
        category=category,
        title=title,
        caption=caption,
        credits=credits,
        tags=tags,
        user=user.name,
        request_id=getattr(request.state, "request_id", None),
    )
    return MediaUploadOut(
        message=f"Successfully uploaded and processed {len(entries)} files",
        media=entries,
        totalProcessed=len(entries),
        category=category or "general",
    )


@router.get("/categories", response_model=CategoriesOut)
def api_categories() -> CategoriesOut:
    return CategoriesOut(categories=CATEGORIES)


@router.get("/{media_id}", response_model=MediaItemResponse)
def api_get_media(
    media_id: str,
    _: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> MediaItemResponse:
    return MediaItemResponse(media=get_media(store, media_id))


@router.put("/{media_id}", response_model=MediaItemResponse)
def api_update_media(
    media_id: str,
    body: MediaUpdateIn,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> MediaItemResponse:
    item = update_media(store, media_id, body.model_dump(), user.name)
    return MediaItemResponse(message="Media metadata updated successfully", media=item)


@router.delete("/{media_id}", response_model=MediaItemResponse)
def api_delete_media(
    media_id: str,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> MediaItemResponse:
    delete_media(store, media_id, user.name, getattr(request.state, "request_id", None))
    return MediaItemResponse(message="Media deleted successfully")
