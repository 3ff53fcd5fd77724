from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class MediaSize(BaseModel):
    filename: str
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


class MediaItemOut(BaseModel):
    id: str
    category: str = "general"
    title: str = ""
    caption: str = ""
    credits: str
    tags: List[str] = Field(default_factory=list)
    uploadDate: Optional[str] = None
    lastModified: Optional[str] = None
    sizes: Dict[str, MediaSize] = Field(default_factory=dict)
    fileSize: Optional[int] = None
    mimeType: Optional[str] = None


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class MediaListOut(BaseModel):
    success: bool = True
    media: Dict[str, Dict[str, Any]]
    pagination: PaginationOut


class MediaUploadOut(BaseModel):
    success: bool = True
    message: str
    media: List[MediaItemOut]
    totalProcessed: int
    category: str


class MediaUpdateIn(BaseModel):
    title: str = ""
    caption: str = ""
    credits: str = ""
    category: str = "general"
    tags: Union[List[str], str] = Field(default_factory=list)


class MediaItemResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    media: Optional[MediaItemOut] = None


class CategoriesOut(BaseModel):
    success: bool = True
    categories: List[str]
