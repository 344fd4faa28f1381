from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from civicsense.core.config import Settings
from civicsense.core.enums import ReportPriority, ReportStatus
from civicsense.core.errors import (
    AssignmentConflict,
    AssignmentNotFound,
    CivicSenseError,
    ReportNotFound,
    TeamNotFound,
)
from civicsense.domain import assignment, lifecycle
from civicsense.domain.geo import LatLng, within_radius
from civicsense.domain.tracking import make_tracking_id
from civicsense.models.common import utcnow
from civicsense.models.report import Report
from civicsense.repositories.report_repository import ReportQuery
from civicsense.schemas.report import ReportCreate
from civicsense.services.geocoding import ReverseGeocoder
from civicsense.services.notifications import NotificationService

logger = logging.getLogger(__name__)


class ReportService:
    def __init__(
        self,
        report_repo,
        team_repo,
        notifications: NotificationService,
        settings: Settings,
        geocoder: Optional[ReverseGeocoder] = None,
    ):
        self.report_repo = report_repo
        self.team_repo = team_repo
        self.notifications = notifications
        self.settings = settings
        self.geocoder = geocoder

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------
    async def create(self, payload: ReportCreate) -> Report:
        now = utcnow()
        location = payload.location
        if location is not None and not location.address and self.geocoder is not None:
            address = await self.geocoder.reverse(location.lat, location.lng)
            if address:
                location = location.model_copy(update={"address": address})

        contact = str(payload.contact_info) if payload.contact_info else None
        base = {
            "description": payload.description,
            "contact_info": contact,
            "anonymous": payload.anonymous,
            "location": location,
            "media": payload.media,
            "category": payload.category,
            "priority": payload.priority,
            "status": ReportStatus.reported,
            "created_by": "anonymous" if payload.anonymous else (contact or "unknown"),
            "assigned_to": None,
            "updates": [],
            "created_at": now,
            "updated_at": now,
        }

        for attempt in range(self.settings.tracking_id_attempts):
            report = Report(
                id=str(ObjectId()),
                tracking_id=make_tracking_id(self.settings.tracking_id_prefix, now),
                **base,
            )
            try:
                saved = await self.report_repo.insert(report)
            except DuplicateKeyError:
                logger.info("Tracking id collision on %s, retrying", report.tracking_id)
                continue

            logger.info("Report created: %s", saved.tracking_id)
            self.notifications.notify_report_created(
                tracking_id=saved.tracking_id,
                category=saved.category.value,
                has_location=saved.location is not None,
                contact_info=saved.contact_info,
                anonymous=saved.anonymous,
            )
            return saved

        raise CivicSenseError("Failed to generate unique tracking id after retries")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get(self, ref: str) -> Report:
        report = await self.report_repo.find(ref)
        if report is None:
            raise ReportNotFound(ref)
        return report

    async def count(self) -> int:
        return await self.report_repo.count()

    async def list_public(
        self,
        status: Optional[ReportStatus] = None,
        severity: Optional[ReportPriority] = None,
        limit: Optional[int] = None,
        map_only: bool = False,
        near: Optional[LatLng] = None,
        radius_km: Optional[float] = None,
    ) -> List[Report]:
        query = ReportQuery(
            status=status,
            priority=severity,
            located_only=map_only or near is not None,
            limit=None if near is not None else limit,
        )
        reports, _ = await self.report_repo.list(query)
        if near is not None:
            radius = radius_km if radius_km is not None else self.settings.default_radius_km
            reports = [
                r for r in reports
                if within_radius(near, (r.location.lat, r.location.lng), radius)
            ]
            if limit:
                reports = reports[:limit]
        return reports

    async def list_admin(self, query: ReportQuery) -> Tuple[List[Report], int]:
        return await self.report_repo.list(query)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def change_status(
        self,
        ref: str,
        target: ReportStatus,
        actor: str,
        note: Optional[str] = None,
    ) -> Report:
        report = await self.get(ref)
        old_status = report.status
        now = utcnow()

        working = report.model_copy(deep=True)
        new_updates = [lifecycle.apply_transition(working, target, actor, note, now)]

        # Closing frees the team slot; assigned_to stays as history.
        release_team = None
        if target == ReportStatus.closed and working.assigned_to:
            team = await self.team_repo.get(working.assigned_to)
            if team is not None and working.id in team.assigned_report_ids():
                release_team = team
                new_updates.append(
                    assignment.unlink_report(working, team, actor, now, keep_reference=True)
                )

        ok = await self.report_repo.commit(
            working,
            new_updates,
            expected_status=old_status,
            expected_assigned_to=report.assigned_to,
        )
        if not ok:
            raise AssignmentConflict(f"Report {report.tracking_id} changed concurrently, retry")

        if release_team is not None:
            try:
                await self.team_repo.release_slot(release_team.id, working.id, now)
            except (AssignmentNotFound, TeamNotFound):
                logger.warning(
                    "Slot for %s already released from team %s", working.tracking_id, release_team.id
                )

        logger.info(
            "Report %s status %s -> %s by %s", working.tracking_id, old_status.value, target.value, actor
        )
        self.notifications.notify_status_change(
            tracking_id=working.tracking_id,
            old_status=old_status.value,
            new_status=working.status.value,
            note=note,
            updated_by=actor,
            contact_info=working.contact_info,
            anonymous=working.anonymous,
        )
        return working
