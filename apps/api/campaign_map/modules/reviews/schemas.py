from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

ReviewStatus = Literal["pending", "approved", "rejected", "untracked"]


class ReviewOut(BaseModel):
    commitSha: Optional[str] = None
    action: Optional[str] = None
    type: Optional[str] = None
    itemName: Optional[str] = None
    user: Optional[str] = None
    timestamp: Optional[str] = None
    status: ReviewStatus = "untracked"
    reviewedBy: Optional[str] = None
    reviewedAt: Optional[str] = None
    reviewNotes: str = ""
    commitMessage: Optional[str] = None


class ReviewSubmitIn(BaseModel):
    commitSha: str = Field(min_length=1)
    action: str
    type: str
    itemName: str
    commitMessage: str = ""


class ReviewSubmitOut(BaseModel):
    success: bool = True
    message: str
    review: Optional[ReviewOut] = None


class ReviewUpdateIn(BaseModel):
    # validated in the service so the error carries the allowed values
    status: str
    reviewNotes: Optional[str] = None


class ReviewUpdateOut(BaseModel):
    success: bool = True
    review: ReviewOut
    message: str


class ChangelogItemOut(BaseModel):
    id: str
    sha: str
    action: str
    type: str
    itemName: str
    user: str
    description: str
    timestamp: str
    fullMessage: str
    review: ReviewOut
    isOwnChange: bool = False
    canReview: bool = False


class ChangelogOut(BaseModel):
    success: bool = True
    changelog: List[ChangelogItemOut]
    currentUser: Optional[str] = None
    userRole: str = "user"
    totalItems: int


class PendingOut(BaseModel):
    success: bool = True
    pendingReviews: List[ReviewOut]
    count: int


class UserStatsOut(BaseModel):
    success: bool = True
    user: str
    stats: Dict[str, Any]
