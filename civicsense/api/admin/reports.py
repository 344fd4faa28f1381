from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from civicsense.api.deps import get_container, http_error
from civicsense.core.enums import Category, ReportPriority, ReportStatus
from civicsense.core.errors import CivicSenseError
from civicsense.core.security import (
    ASSIGN_REPORTS,
    UPDATE_STATUS,
    VIEW_REPORTS,
    Admin,
    require_permission,
)
from civicsense.repositories.report_repository import ReportQuery
from civicsense.schemas.report import (
    AdminReportList,
    AssignBody,
    Pagination,
    SortField,
    SortOrder,
    StatusChange,
    UnassignBody,
)
from civicsense.schemas.team import TeamLoad, TeamOut
from civicsense.services.container import Container

router = APIRouter(tags=["Admin Reports"])


@router.get("/admin/reports", response_model=AdminReportList)
async def list_admin_reports(
    status: Optional[ReportStatus] = Query(None),
    severity: Optional[ReportPriority] = Query(None),
    assigned_to: Optional[str] = Query(None),
    category: Optional[Category] = Query(None),
    format: Optional[Literal["map"]] = Query(None),
    sort_by: SortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=500),
    admin: Admin = Depends(require_permission(VIEW_REPORTS)),
    c: Container = Depends(get_container),
):
    query = ReportQuery(
        status=status,
        priority=severity,
        category=category,
        assigned_to=assigned_to,
        located_only=format == "map",
        sort_by=sort_by,
        sort_order=sort_order,
        offset=offset,
        limit=limit,
    )
    reports, total = await c.reports.list_admin(query)
    effective_limit = limit or total
    return AdminReportList(
        reports=[r.admin_view() for r in reports],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=effective_limit,
            has_more=offset + len(reports) < total,
        ),
    )


@router.get("/reports/{report_id}/suggested-team")
async def suggested_team(
    report_id: str,
    admin: Admin = Depends(require_permission(VIEW_REPORTS)),
    c: Container = Depends(get_container),
):
    try:
        team = await c.assignments.suggest_team(report_id)
    except CivicSenseError as exc:
        raise http_error(exc) from exc
    return {"team": TeamOut.from_team(team) if team else None}


@router.patch("/reports/{report_id}/assign")
async def assign_report(
    report_id: str,
    body: AssignBody,
    admin: Admin = Depends(require_permission(ASSIGN_REPORTS)),
    c: Container = Depends(get_container),
):
    actor = body.assigned_by or admin.username
    try:
        report, team = await c.assignments.assign(report_id, body.team_id, body.priority, actor)
    except CivicSenseError as exc:
        raise http_error(exc) from exc

    return {
        "message": "Report assigned successfully",
        "report": {
            "id": report.id,
            "tracking_id": report.tracking_id,
            "assigned_to": report.assigned_to,
            "status": report.status.value,
            "updated_at": report.updated_at,
        },
        "team": TeamLoad.from_team(team),
    }


@router.patch("/reports/{report_id}/unassign")
async def unassign_report(
    report_id: str,
    body: Optional[UnassignBody] = None,
    admin: Admin = Depends(require_permission(ASSIGN_REPORTS)),
    c: Container = Depends(get_container),
):
    team_id = body.team_id if body else None
    try:
        report, team = await c.assignments.unassign(report_id, team_id, admin.username)
    except CivicSenseError as exc:
        raise http_error(exc) from exc

    return {
        "message": "Report unassigned successfully",
        "report": {
            "id": report.id,
            "tracking_id": report.tracking_id,
            "assigned_to": report.assigned_to,
        },
        "team": TeamLoad.from_team(team),
    }


@router.patch("/reports/{report_id}/status")
async def update_report_status(
    report_id: str,
    body: StatusChange,
    admin: Admin = Depends(require_permission(UPDATE_STATUS)),
    c: Container = Depends(get_container),
):
    actor = body.updated_by or admin.username
    try:
        report = await c.reports.change_status(report_id, body.status, actor, body.note)
    except CivicSenseError as exc:
        raise http_error(exc) from exc

    return {
        "message": "Report status updated successfully",
        "report": {
            "id": report.id,
            "tracking_id": report.tracking_id,
            "status": report.status.value,
            "updated_at": report.updated_at,
            "updates": [u.model_dump(mode="json") for u in report.updates],
        },
    }
