from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from civicsense.core.enums import AssignmentPriority, Category, ReportPriority, ReportStatus
from civicsense.models.report import Location, MediaRef


class ReportCreate(BaseModel):
    description: str = Field(..., min_length=10, max_length=2000)
    contact_info: Optional[EmailStr] = None
    anonymous: bool = False
    location: Optional[Location] = None
    media: Optional[MediaRef] = None
    category: Category = Category.other
    priority: ReportPriority = ReportPriority.medium

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("contact_info", mode="before")
    @classmethod
    def _blank_contact(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class ReportCreated(BaseModel):
    success: bool = True
    id: str
    tracking_id: str
    title: str
    status: ReportStatus
    created_at: datetime
    has_location: bool
    has_media: bool
    message: str = "Report submitted successfully"


class StatusChange(BaseModel):
    status: ReportStatus
    note: Optional[str] = Field(None, max_length=500)
    updated_by: Optional[str] = None


class AssignBody(BaseModel):
    team_id: str
    priority: AssignmentPriority = AssignmentPriority.medium
    assigned_by: Optional[str] = None


class UnassignBody(BaseModel):
    team_id: Optional[str] = None


class Pagination(BaseModel):
    total: int
    offset: int
    limit: int
    has_more: bool


class AdminReportList(BaseModel):
    reports: List[dict]
    pagination: Pagination


SortField = Literal["created_at", "updated_at", "status", "priority", "category", "tracking_id"]
SortOrder = Literal["asc", "desc"]
