from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from civicsense.core.enums import Category, ReportPriority, ReportStatus, UpdateType
from civicsense.models.common import CivicBaseModel, utcnow


class Location(CivicBaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None

    @field_validator("lat", "lng")
    @classmethod
    def _limit_precision(cls, v: float) -> float:
        return round(v, 6)


class MediaRef(CivicBaseModel):
    url: str
    filename: Optional[str] = None
    original_name: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)
    mimetype: Optional[str] = None


class ReportUpdate(CivicBaseModel):
    type: UpdateType
    message: str
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
    old_status: Optional[ReportStatus] = None
    new_status: Optional[ReportStatus] = None
    note: Optional[str] = None
    team_id: Optional[str] = None


class Report(CivicBaseModel):
    id: str
    tracking_id: str = Field(..., frozen=True)
    description: str = Field(..., min_length=10, max_length=2000)
    status: ReportStatus = ReportStatus.reported
    priority: ReportPriority = ReportPriority.medium
    category: Category = Category.other
    location: Optional[Location] = None
    media: Optional[MediaRef] = None
    contact_info: Optional[str] = None
    anonymous: bool = False
    created_by: str = "unknown"
    assigned_to: Optional[str] = None
    updates: List[ReportUpdate] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def title(self) -> str:
        return f"Issue Report #{self.tracking_id.split('-')[-1]}"

    def public_view(self) -> dict:
        data = self.model_dump(mode="json")
        data["title"] = self.title
        data["media_url"] = self.media.url if self.media else None
        if self.anonymous:
            data["contact_info"] = None
            data["created_by"] = "anonymous"
        return data

    def admin_view(self) -> dict:
        data = self.model_dump(mode="json")
        data["title"] = self.title
        data["media_url"] = self.media.url if self.media else None
        return data
