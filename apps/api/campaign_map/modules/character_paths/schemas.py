from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class PathStyle(BaseModel):
    color: str
    weight: float
    opacity: float
    dashArray: str


class CharacterPathOut(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    type: str  # movement|static
    coordinates: List[List[float]]
    currentLocation: List[float]
    style: PathStyle
    metadata: Dict[str, Any]


class PathsMetadata(BaseModel):
    generated: str
    statistics: Dict[str, int]
    version: str


class CharacterPathsOut(BaseModel):
    paths: Dict[str, CharacterPathOut]
    metadata: PathsMetadata


class InvalidateOut(BaseModel):
    success: bool = True
    message: str = "Cache invalidated successfully"


class PathStatsOut(BaseModel):
    cached: bool
    message: Optional[str] = None
    cacheAge: Optional[int] = None
    expired: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None
    pathCount: Optional[int] = None
