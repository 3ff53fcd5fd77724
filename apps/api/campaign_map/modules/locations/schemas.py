from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PointGeometry(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(min_length=2, max_length=3)


class LocationProperties(BaseModel):
    # campaign data carries extra keys (image, gallery, ...) that must survive round-trips
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    description: str = ""
    contentUrl: Optional[str] = None
    region: Optional[str] = None
    type: Optional[str] = None
    visited: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class LocationIn(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: LocationProperties
    geometry: PointGeometry


class LocationWriteOut(BaseModel):
    success: bool = True
    feature: Optional[Dict[str, Any]] = None
    message: Optional[str] = None
    commitSha: str
