from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from .schemas import ClusterRequest, ClusterResponse, FocusRequest, FocusResponse, ViewportIn
from .service import LatLng, Viewport, cluster_markers, plan_focus

router = APIRouter(prefix="/map-layout", tags=["map-layout"])


def _viewport(v: ViewportIn) -> Viewport:
    return Viewport(
        width=v.width,
        height=v.height,
        zoom=v.zoom,
        center=LatLng(v.center.lat, v.center.lng),
        min_zoom=v.minZoom,
        max_zoom=v.maxZoom,
        zoom_snap=v.zoomSnap,
    )


@router.post("/clusters", response_model=ClusterResponse)
def post_clusters(body: ClusterRequest) -> Dict[str, Any]:
    markers = [m.model_dump() for m in body.markers]
    return cluster_markers(markers, _viewport(body.viewport), radius=body.radius)


@router.post("/focus", response_model=FocusResponse)
def post_focus(body: FocusRequest) -> Dict[str, Any]:
    target = LatLng(body.target.lat, body.target.lng)
    return plan_focus(target, _viewport(body.viewport), body.panelOpen)
