from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from campaign_map.core.content_store import ContentStore, get_store

from .service import activity_stats, item_history, recent_activity

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("/recent")
def get_recent(
    limit: int = Query(20, ge=1, le=100),
    store: ContentStore = Depends(get_store),
) -> Dict[str, Any]:
    return {"success": True, "activities": recent_activity(store, limit)}


@router.get("/stats")
def get_stats(
    days: int = Query(30, ge=1, le=365),
    store: ContentStore = Depends(get_store),
) -> Dict[str, Any]:
    return {"success": True, "stats": activity_stats(store, days), "period": f"{days} days"}


@router.get("/{item_type}/{name}/history")
def get_item_history(
    item_type: str,
    name: str,
    limit: int = Query(10, ge=1, le=100),
    store: ContentStore = Depends(get_store),
) -> Dict[str, Any]:
    history = item_history(store, item_type, name, limit)
    return {"success": True, "history": history, "itemName": name, "itemType": item_type}
