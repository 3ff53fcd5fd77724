"""
Media library: optimized images on local storage, metadata in
public/data/media-library.json.

Each upload is written as WebP in four bounded sizes plus a full-size
original; the library entry records filename, url and real dimensions
per size.
"""
from __future__ import annotations

import io
import math
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import HTTPException
from PIL import Image, UnidentifiedImageError

from campaign_map.core.config import get_settings
from campaign_map.core.content_store import (
    MEDIA_LIBRARY_PATH,
    ContentStore,
    empty_media_library,
    load_document,
    save_document,
)
from campaign_map.core.ids import short_id
from campaign_map.core.logs import emit, now_iso
from campaign_map.core.storage import safe_media_path

CATEGORIES = ["characters", "locations", "maps", "items", "creatures", "sessions", "general"]
ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
MAX_FILES = 10
MAX_FILE_BYTES = 50 * 1024 * 1024

IMAGE_SIZES = {
    "thumb": (150, 150),
    "small": (300, 300),
    "medium": (600, 600),
    "large": (1200, 1200),
}
RESIZED_QUALITY = 85
ORIGINAL_QUALITY = 95


@dataclass(frozen=True)
class Upload:
    filename: str
    content_type: str
    data: bytes


# -------------------------
# image processing
# -------------------------
def _webp_ready(img: Image.Image) -> Image.Image:
    if img.mode in ("RGB", "RGBA"):
        return img
    has_alpha = img.mode in ("LA", "PA") or (img.mode == "P" and "transparency" in img.info)
    return img.convert("RGBA" if has_alpha else "RGB")


def open_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise HTTPException(status_code=400, detail=f"Unreadable image: {e}") from e
    return _webp_ready(img)


def render_sizes(img: Image.Image) -> Dict[str, Tuple[Image.Image, int]]:
    """size name -> (image, webp quality); resized copies never upscale."""
    out: Dict[str, Tuple[Image.Image, int]] = {}
    for name, box in IMAGE_SIZES.items():
        copy = img.copy()
        copy.thumbnail(box, Image.Resampling.LANCZOS)
        out[name] = (copy, RESIZED_QUALITY)
    out["original"] = (img, ORIGINAL_QUALITY)
    return out


def write_sizes(img: Image.Image, base_id: str) -> Dict[str, Dict[str, Any]]:
    prefix = get_settings().media_url_prefix.rstrip("/")
    sizes: Dict[str, Dict[str, Any]] = {}
    try:
        for name, (rendered, quality) in render_sizes(img).items():
            filename = f"{base_id}-{name}.webp"
            sizes[name] = {
                "filename": filename,
                "url": f"{prefix}/{filename}",
                "width": rendered.width,
                "height": rendered.height,
            }
            rendered.save(safe_media_path(filename), "WEBP", quality=quality)
    except Exception:
        remove_files(sizes)
        raise
    return sizes


def remove_files(sizes: Dict[str, Any]) -> int:
    removed = 0
    for info in (sizes or {}).values():
        filename = (info or {}).get("filename")
        if not filename:
            continue
        try:
            p = safe_media_path(filename)
        except ValueError:
            continue
        if p.exists():
            p.unlink()
            removed += 1
    return removed


def parse_tags(raw: Any) -> List[str]:
    if isinstance(raw, list):
        return [str(t).strip() for t in raw if str(t).strip()]
    if isinstance(raw, str):
        return [t.strip() for t in raw.split(",") if t.strip()]
    return []


# -------------------------
# library
# -------------------------
def load_library(store: ContentStore) -> Tuple[Dict[str, Any], Optional[str]]:
    doc, sha = load_document(store, MEDIA_LIBRARY_PATH, empty_media_library)
    if not isinstance(doc.get("images"), dict):
        doc["images"] = {}
    return doc, sha


def _matches(item: Dict[str, Any], needle: str) -> bool:
    for key in ("title", "caption", "credits"):
        if needle in str(item.get(key) or "").lower():
            return True
    return any(needle in str(t).lower() for t in item.get("tags") or [])


def list_media(
    store: ContentStore,
    *,
    category: Optional[str],
    search: Optional[str],
    page: int,
    limit: int,
) -> Dict[str, Any]:
    doc, _ = load_library(store)
    entries = list(doc["images"].items())
    if category:
        entries = [(k, v) for k, v in entries if v.get("category") == category]
    if search:
        needle = search.lower()
        entries = [(k, v) for k, v in entries if _matches(v, needle)]
    entries.sort(key=lambda kv: str(kv[1].get("title") or kv[0] or "").lower())

    total = len(entries)
    start = (page - 1) * limit
    return {
        "success": True,
        "media": dict(entries[start : start + limit]),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }


def get_media(store: ContentStore, media_id: str) -> Dict[str, Any]:
    doc, _ = load_library(store)
    item = doc["images"].get(media_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media item not found")
    return item


def upload_media(
    store: ContentStore,
    files: Sequence[Upload],
    *,
    category: str,
    title: str,
    caption: str,
    credits: str,
    tags: Any,
    user: str,
    request_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    if not (credits or "").strip():
        raise HTTPException(status_code=400, detail="Credits/Attribution is required for all image uploads")
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > MAX_FILES:
        raise HTTPException(status_code=400, detail=f"At most {MAX_FILES} files per upload")

    category = category or "general"
    decoded: List[Tuple[Upload, Image.Image]] = []
    for f in files:
        if f.content_type not in ALLOWED_MIME_TYPES:
            raise HTTPException(status_code=400, detail="Only image files (JPEG, PNG, GIF, WebP) are allowed!")
        if len(f.data) > MAX_FILE_BYTES:
            raise HTTPException(status_code=400, detail=f"File too large: {f.filename}")
        decoded.append((f, open_image(f.data)))

    entries: List[Dict[str, Any]] = []
    try:
        for f, img in decoded:
            base_id = short_id()
            entries.append(
                {
                    "id": f"{category}-{base_id}",
                    "category": category,
                    "title": title or PurePath(f.filename or base_id).stem,
                    "caption": caption or "",
                    "credits": credits.strip(),
                    "tags": parse_tags(tags),
                    "uploadDate": now_iso(),
                    "sizes": write_sizes(img, base_id),
                    "fileSize": len(f.data),
                    "mimeType": f.content_type,
                }
            )

        doc, sha = load_library(store)
        for e in entries:
            doc["images"][e["id"]] = e
        doc["lastUpdated"] = now_iso()
        save_document(
            store,
            MEDIA_LIBRARY_PATH,
            doc,
            message=f"Add {len(entries)} new media files via CMS",
            sha=sha,
            author=user,
        )
    except Exception:
        # files without a library entry would be orphans
        for e in entries:
            remove_files(e["sizes"])
        raise

    emit("info", "media.uploaded", f"{len(entries)} media files added", request_id, __name__, category=category)
    return entries


def update_media(store: ContentStore, media_id: str, body: Dict[str, Any], user: str) -> Dict[str, Any]:
    credits = (body.get("credits") or "").strip()
    if not credits:
        raise HTTPException(status_code=400, detail="Credits field is required")

    doc, sha = load_library(store)
    item = doc["images"].get(media_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media item not found")

    item.update(
        title=body.get("title") or "",
        caption=body.get("caption") or "",
        credits=credits,
        category=body.get("category") or "general",
        tags=parse_tags(body.get("tags")),
        lastModified=now_iso(),
    )
    doc["lastUpdated"] = now_iso()
    save_document(store, MEDIA_LIBRARY_PATH, doc, message=f"Update metadata for media {media_id}", sha=sha, author=user)
    return item


def delete_media(store: ContentStore, media_id: str, user: str, request_id: Optional[str] = None) -> None:
    doc, sha = load_library(store)
    item = doc["images"].pop(media_id, None)
    if item is None:
        raise HTTPException(status_code=404, detail="Media not found")

    doc["lastUpdated"] = now_iso()
    label = item.get("title") or media_id
    save_document(store, MEDIA_LIBRARY_PATH, doc, message=f"Delete media: {label}", sha=sha, author=user)
    removed = remove_files(item.get("sizes") or {})
    emit("info", "media.deleted", f"media {media_id} deleted", request_id, __name__, files_removed=removed)
