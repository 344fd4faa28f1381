from typing import List, Optional

from civicsense.core.enums import Category, Department
from civicsense.core.errors import TeamNotFound
from civicsense.models.team import Team
from civicsense.services.audit_service import AuditService
from civicsense.utils.diff import diff_fields, diff_lists

SCALAR_FIELDS = ["name", "description", "department", "capacity", "is_active"]
LIST_FIELDS = ["specialties"]


class TeamService:
    def __init__(self, team_repo, audit: AuditService):
        self.team_repo = team_repo
        self.audit = audit

    async def list(
        self,
        department: Optional[Department] = None,
        specialty: Optional[Category] = None,
        available: Optional[bool] = None,
    ) -> List[Team]:
        return await self.team_repo.list(
            department=department, specialty=specialty, available=available
        )

    async def get(self, team_id: str) -> Team:
        team = await self.team_repo.get(team_id)
        if team is None:
            raise TeamNotFound(team_id)
        return team

    async def find_available_for_category(self, category: Category) -> List[Team]:
        return await self.team_repo.find_available_for_category(category)

    async def create(self, data: dict, actor: str) -> Team:
        team = await self.team_repo.create(data)
        await self.audit.log_event(
            type="team.create",
            actor=actor,
            entity_type="team",
            entity_id=team.id,
            message=f"Team created ({team.name})",
            meta={
                "department": team.department.value,
                "specialties": [s.value for s in team.specialties],
                "capacity": team.capacity,
            },
        )
        return team

    async def update(self, team_id: str, data: dict, actor: str) -> Team:
        before = await self.get(team_id)
        after = await self.team_repo.update(team_id, data)
        if after is None:
            raise TeamNotFound(team_id)

        old, new = before.model_dump(), after.model_dump()
        changes = diff_fields(old, new, [f for f in SCALAR_FIELDS if f in data])
        for field in LIST_FIELDS:
            if field in data:
                changes[field] = diff_lists(old.get(field), new.get(field))

        await self.audit.log_event(
            type="team.update",
            actor=actor,
            entity_type="team",
            entity_id=team_id,
            message=f"Team updated ({after.name})",
            meta={"changes": changes},
        )
        return after

    async def deactivate(self, team_id: str, actor: str) -> Team:
        """Teams are never removed; a deactivated team stops taking work."""
        team = await self.get(team_id)
        updated = await self.team_repo.set_active(team_id, False)
        await self.audit.log_event(
            type="team.deactivate",
            actor=actor,
            entity_type="team",
            entity_id=team_id,
            message=f"Team deactivated ({team.name})",
            meta={"from": team.is_active, "to": False, "current_load": team.current_load},
        )
        return updated
