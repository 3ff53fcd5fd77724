from __future__ import annotations

from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field


class LatLngIn(BaseModel):
    lat: float
    lng: float


class ViewportIn(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    zoom: float
    center: LatLngIn = Field(default_factory=lambda: LatLngIn(lat=0, lng=0))
    minZoom: float = -1.0
    maxZoom: float = 3.0
    zoomSnap: float = Field(0.02, ge=0)


class MarkerIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    lat: float
    lng: float
    type: str = "location"


class ClusterRequest(BaseModel):
    markers: List[MarkerIn]
    viewport: ViewportIn
    radius: float = Field(30.0, gt=0)


class FanPosition(BaseModel):
    lat: float
    lng: float
    offsetX: float
    offsetY: float


class ClusterMember(BaseModel):
    marker: Dict[str, Any]
    fan: FanPosition


class ClusterOut(BaseModel):
    id: str
    center: LatLngIn
    count: int
    members: List[ClusterMember]


class ClusterResponse(BaseModel):
    singles: List[Dict[str, Any]]
    clusters: List[ClusterOut]
    fanInDelays: Dict[str, int]


class FocusRequest(BaseModel):
    target: LatLngIn
    viewport: ViewportIn
    panelOpen: bool = False


class FocusView(BaseModel):
    center: LatLngIn
    zoom: float


class FocusResponse(BaseModel):
    target: LatLngIn
    bounds: Dict[str, LatLngIn]
    padding: Dict[str, int]
    fitBoundsOptions: Dict[str, Any]
    view: FocusView
    isMobile: bool
