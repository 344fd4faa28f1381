from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from civicsense.api.deps import get_container, http_error
from civicsense.core.enums import ReportPriority, ReportStatus
from civicsense.core.errors import CivicSenseError
from civicsense.domain.geo import parse_lat_lng
from civicsense.schemas.report import ReportCreate, ReportCreated
from civicsense.services.container import Container

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ReportCreated, status_code=201)
async def create_report(body: ReportCreate, c: Container = Depends(get_container)):
    try:
        report = await c.reports.create(body)
    except CivicSenseError as exc:
        raise http_error(exc) from exc

    return ReportCreated(
        id=report.id,
        tracking_id=report.tracking_id,
        title=report.title,
        status=report.status,
        created_at=report.created_at,
        has_location=report.location is not None,
        has_media=report.media is not None,
    )


@router.get("")
async def list_reports(
    status: Optional[ReportStatus] = Query(None),
    severity: Optional[ReportPriority] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    format: Optional[Literal["map"]] = Query(None),
    near: Optional[str] = Query(None, description="lat,lng"),
    radius_km: Optional[float] = Query(None, gt=0, le=100),
    c: Container = Depends(get_container),
):
    center = None
    if near:
        try:
            center = parse_lat_lng(near)
        except ValueError as exc:
            raise HTTPException(400, str(exc)) from exc

    reports = await c.reports.list_public(
        status=status,
        severity=severity,
        limit=limit,
        map_only=format == "map",
        near=center,
        radius_km=radius_km,
    )
    return [r.public_view() for r in reports]


@router.get("/{tracking_id}")
async def get_report(tracking_id: str, c: Container = Depends(get_container)):
    report = await c.report_repo.get_by_tracking_id(tracking_id)
    if not report:
        raise HTTPException(404, "Report not found")
    return report.public_view()
