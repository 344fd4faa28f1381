from typing import List, Optional

from pydantic import BaseModel, Field

from civicsense.core.enums import AssignmentPriority, Category, Department
from civicsense.domain.capacity import team_stats
from civicsense.models.team import ContactInfo, Team, TeamMember, WorkingHours


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field("", max_length=500)
    department: Department
    members: List[TeamMember] = []
    specialties: List[Category] = []
    capacity: int = Field(5, ge=1, le=50)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    working_hours: WorkingHours = Field(default_factory=WorkingHours)


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    department: Optional[Department] = None
    members: Optional[List[TeamMember]] = None
    specialties: Optional[List[Category]] = None
    capacity: Optional[int] = Field(None, ge=1, le=50)
    contact_info: Optional[ContactInfo] = None
    working_hours: Optional[WorkingHours] = None
    is_active: Optional[bool] = None


class TeamOut(Team):
    available_capacity: int
    utilization_rate: int
    can_take_assignment: bool

    @classmethod
    def from_team(cls, team: Team) -> "TeamOut":
        return cls(**team.model_dump(), **team_stats(team))


class TeamLoad(BaseModel):
    id: str
    name: str
    current_load: int
    capacity: int
    available_capacity: int

    @classmethod
    def from_team(cls, team: Team) -> "TeamLoad":
        return cls(
            id=team.id,
            name=team.name,
            current_load=team.current_load,
            capacity=team.capacity,
            available_capacity=team_stats(team)["available_capacity"],
        )


class BulkAssignBody(BaseModel):
    report_ids: List[str] = Field(..., min_length=1)
    priority: AssignmentPriority = AssignmentPriority.medium


class BulkAssignOut(BaseModel):
    message: str
    assigned: List[str]
    skipped: List[str]
    team: TeamLoad


class TeamUnassignBody(BaseModel):
    report_id: str
