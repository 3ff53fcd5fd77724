from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class CharacterIn(BaseModel):
    name: str = Field(min_length=1)
    title: str = ""
    placeOfOrigin: str = ""
    description: str = ""
    image: str = ""
    status: str = "alive"
    faction: str = ""
    relationship: str = "neutral"
    firstMet: str = ""
    notes: str = ""


class MovementIn(BaseModel):
    location: Optional[str] = None
    # [x, y]; validated in the service so bad custom coordinates are a 400
    coordinates: Optional[List[Any]] = None
    date: Optional[str] = None
    dateStart: Optional[str] = None
    dateEnd: Optional[str] = None
    notes: str = ""
    type: Optional[str] = None
    isCustomLocation: bool = False


class MovementRef(BaseModel):
    id: str


class ReorderIn(BaseModel):
    movements: List[MovementRef]


class CharactersDocOut(BaseModel):
    version: str = "1.0"
    characters: List[Dict[str, Any]] = Field(default_factory=list)
    lastUpdated: Optional[str] = None


class CharacterWriteOut(BaseModel):
    success: bool = True
    message: Optional[str] = None
    character: Optional[Dict[str, Any]] = None
    movement: Optional[Dict[str, Any]] = None
    reorderedCount: Optional[int] = None
    commitSha: str


class MigrateOut(BaseModel):
    success: bool = True
    message: str
    changes: List[str] = Field(default_factory=list)
    commitSha: Optional[str] = None
