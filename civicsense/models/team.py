from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from civicsense.core.enums import (
    AssignmentPriority,
    Category,
    Department,
    MemberRole,
    Weekday,
)
from civicsense.models.common import CivicBaseModel, utcnow

DEFAULT_WORKING_DAYS = [
    Weekday.monday,
    Weekday.tuesday,
    Weekday.wednesday,
    Weekday.thursday,
    Weekday.friday,
]


class TeamMember(CivicBaseModel):
    name: str
    email: str
    role: MemberRole = MemberRole.member


class ContactInfo(CivicBaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None


class WorkingHours(CivicBaseModel):
    start: str = Field("08:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end: str = Field("17:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    days: List[Weekday] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))


class AssignedReport(CivicBaseModel):
    report_id: str
    assigned_at: datetime = Field(default_factory=utcnow)
    priority: AssignmentPriority = AssignmentPriority.medium


class Team(CivicBaseModel):
    """
    A municipal work group. current_load and assigned_reports only change
    through civicsense.domain.assignment (or the equivalent atomic update
    in the Mongo repository).
    """

    id: str
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field("", max_length=500)
    department: Department
    members: List[TeamMember] = Field(default_factory=list)
    specialties: List[Category] = Field(default_factory=list)
    capacity: int = Field(5, ge=1, le=50)
    current_load: int = Field(0, ge=0)
    assigned_reports: List[AssignedReport] = Field(default_factory=list)
    is_active: bool = True
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("specialties")
    @classmethod
    def _dedupe_specialties(cls, v: List[Category]) -> List[Category]:
        seen: List[Category] = []
        for s in v:
            if s not in seen:
                seen.append(s)
        return seen

    def assigned_report_ids(self) -> List[str]:
        return [a.report_id for a in self.assigned_reports]
