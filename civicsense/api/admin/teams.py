from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from civicsense.api.deps import get_container, http_error
from civicsense.core.enums import Category, Department
from civicsense.core.errors import CivicSenseError
from civicsense.core.security import (
    ASSIGN_REPORTS,
    MANAGE_TEAMS,
    VIEW_REPORTS,
    Admin,
    require_permission,
)
from civicsense.schemas.team import (
    BulkAssignBody,
    BulkAssignOut,
    TeamCreate,
    TeamLoad,
    TeamOut,
    TeamUnassignBody,
    TeamUpdate,
)
from civicsense.services.container import Container

router = APIRouter(prefix="/teams", tags=["Admin Teams"])


@router.get("", response_model=List[TeamOut])
async def list_teams(
    department: Optional[Department] = Query(None),
    specialty: Optional[Category] = Query(None),
    available: Optional[bool] = Query(None),
    admin: Admin = Depends(require_permission(VIEW_REPORTS)),
    c: Container = Depends(get_container),
):
    teams = await c.teams.list(department=department, specialty=specialty, available=available)
    return [TeamOut.from_team(t) for t in teams]


@router.get("/available", response_model=List[TeamOut])
async def available_teams(
    category: Category = Query(...),
    admin: Admin = Depends(require_permission(VIEW_REPORTS)),
    c: Container = Depends(get_container),
):
    teams = await c.teams.find_available_for_category(category)
    return [TeamOut.from_team(t) for t in teams]


@router.get("/{team_id}", response_model=TeamOut)
async def get_team(
    team_id: str,
    admin: Admin = Depends(require_permission(VIEW_REPORTS)),
    c: Container = Depends(get_container),
):
    try:
        team = await c.teams.get(team_id)
    except CivicSenseError as exc:
        raise http_error(exc) from exc
    return TeamOut.from_team(team)


@router.post("", response_model=TeamOut, status_code=201)
async def create_team(
    body: TeamCreate,
    admin: Admin = Depends(require_permission(MANAGE_TEAMS)),
    c: Container = Depends(get_container),
):
    data = body.model_dump()
    data["name"] = data["name"].strip()
    data["description"] = data["description"].strip()
    try:
        team = await c.teams.create(data, admin.username)
    except CivicSenseError as exc:
        raise http_error(exc) from exc
    return TeamOut.from_team(team)


@router.patch("/{team_id}", response_model=TeamOut)
async def update_team(
    team_id: str,
    body: TeamUpdate,
    admin: Admin = Depends(require_permission(MANAGE_TEAMS)),
    c: Container = Depends(get_container),
):
    updates = body.model_dump(exclude_unset=True)
    if "name" in updates and updates["name"]:
        updates["name"] = updates["name"].strip()
    try:
        team = await c.teams.update(team_id, updates, admin.username)
    except CivicSenseError as exc:
        raise http_error(exc) from exc
    return TeamOut.from_team(team)


@router.delete("/{team_id}")
async def delete_team(
    team_id: str,
    admin: Admin = Depends(require_permission(MANAGE_TEAMS)),
    c: Container = Depends(get_container),
):
    try:
        await c.teams.deactivate(team_id, admin.username)
    except CivicSenseError as exc:
        raise http_error(exc) from exc
    return {"success": True, "message": "Team deactivated"}


@router.patch("/{team_id}/assign", response_model=BulkAssignOut)
async def assign_reports(
    team_id: str,
    body: BulkAssignBody,
    admin: Admin = Depends(require_permission(ASSIGN_REPORTS)),
    c: Container = Depends(get_container),
):
    try:
        result = await c.assignments.assign_many(
            team_id, body.report_ids, body.priority, admin.username
        )
    except CivicSenseError as exc:
        raise http_error(exc) from exc

    return BulkAssignOut(
        message=f"{len(result.assigned)} report(s) assigned successfully",
        assigned=result.assigned,
        skipped=result.skipped,
        team=TeamLoad.from_team(result.team),
    )


@router.patch("/{team_id}/unassign")
async def unassign_report(
    team_id: str,
    body: TeamUnassignBody,
    admin: Admin = Depends(require_permission(ASSIGN_REPORTS)),
    c: Container = Depends(get_container),
):
    try:
        _, team = await c.assignments.unassign(body.report_id, team_id, admin.username)
    except CivicSenseError as exc:
        raise http_error(exc) from exc

    return {"message": "Report unassigned successfully", "team": TeamLoad.from_team(team)}
