"""
Assignment of reports to teams.

The team side is the capacity authority: a slot is reserved with one atomic
repository call that re-checks capacity at commit time, so a stale
availability listing can never over-fill a team. The report is linked
afterwards with a conditional write; if the report moved underneath us the
slot is handed back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from civicsense.core.enums import AssignmentPriority, Category, ReportStatus
from civicsense.core.errors import (
    AssignmentConflict,
    AssignmentNotFound,
    CivicSenseError,
    InvariantViolation,
    ReportNotFound,
    TeamNotFound,
)
from civicsense.domain import assignment
from civicsense.models.common import utcnow
from civicsense.models.report import Report
from civicsense.models.team import Team
from civicsense.services.notifications import (
    REPORT_ASSIGNED,
    REPORT_UNASSIGNED,
    NotificationService,
)

logger = logging.getLogger(__name__)


@dataclass
class BulkAssignResult:
    team: Team
    assigned: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class AssignmentService:
    def __init__(self, report_repo, team_repo, notifications: NotificationService):
        self.report_repo = report_repo
        self.team_repo = team_repo
        self.notifications = notifications

    async def _report(self, ref: str) -> Report:
        report = await self.report_repo.find(ref)
        if report is None:
            raise ReportNotFound(ref)
        return report

    async def _team(self, team_id: str) -> Team:
        team = await self.team_repo.get(team_id)
        if team is None:
            raise TeamNotFound(team_id)
        return team

    async def _link(self, report: Report, team: Team, actor: str, now) -> Optional[Report]:
        working = report.model_copy(deep=True)
        updates = assignment.link_report(working, team, actor, now)
        ok = await self.report_repo.commit(
            working,
            updates,
            expected_status=report.status,
            expected_assigned_to=None,
        )
        if not ok:
            await self.team_repo.release_slot(team.id, report.id, now)
            return None

        self.notifications.send_in_app(REPORT_ASSIGNED, {
            "tracking_id": working.tracking_id,
            "team_id": team.id,
            "team_name": team.name,
        })
        if working.status != report.status:
            self.notifications.notify_status_change(
                tracking_id=working.tracking_id,
                old_status=report.status.value,
                new_status=working.status.value,
                note=None,
                updated_by=actor,
                contact_info=working.contact_info,
                anonymous=working.anonymous,
            )
        return working

    async def assign(
        self,
        report_ref: str,
        team_id: str,
        priority: AssignmentPriority = AssignmentPriority.medium,
        actor: str = "system",
    ) -> Tuple[Report, Team]:
        report = await self._report(report_ref)
        await self._team(team_id)
        assignment.ensure_assignable(report)

        now = utcnow()
        team = await self.team_repo.reserve_slot(team_id, report.id, priority, now)
        linked = await self._link(report, team, actor, now)
        if linked is None:
            raise AssignmentConflict(f"Report {report.tracking_id} changed concurrently, retry")

        logger.info("Report %s assigned to team %s by %s", linked.tracking_id, team.name, actor)
        return linked, team

    async def assign_many(
        self,
        team_id: str,
        report_refs: List[str],
        priority: AssignmentPriority = AssignmentPriority.medium,
        actor: str = "system",
    ) -> BulkAssignResult:
        """
        Reserve capacity for every report at once or not at all. A report
        that changes between the reservation and its link gets its slot back
        and is listed in ``skipped``.
        """
        await self._team(team_id)
        reports = [await self._report(ref) for ref in report_refs]
        for r in reports:
            assignment.ensure_assignable(r)

        now = utcnow()
        team = await self.team_repo.reserve_slots(team_id, [r.id for r in reports], priority, now)
        result = BulkAssignResult(team=team)
        for r in reports:
            if await self._link(r, team, actor, now) is None:
                result.skipped.append(r.tracking_id)
            else:
                result.assigned.append(r.tracking_id)

        if result.skipped:
            result.team = await self._team(team_id)
        logger.info(
            "%d report(s) assigned to team %s by %s", len(result.assigned), team.name, actor
        )
        return result

    async def unassign(
        self,
        report_ref: str,
        team_id: Optional[str] = None,
        actor: str = "system",
    ) -> Tuple[Report, Team]:
        report = await self._report(report_ref)
        team_id = team_id or report.assigned_to
        if not team_id:
            raise AssignmentNotFound("-", report.id)

        held = await self._team(team_id)
        entry = next((a for a in held.assigned_reports if a.report_id == report.id), None)
        if entry is None:
            raise AssignmentNotFound(team_id, report.id)

        now = utcnow()
        team = await self.team_repo.release_slot(team_id, report.id, now)

        working = report.model_copy(deep=True)
        keep = working.assigned_to != team_id
        update = assignment.unlink_report(working, team, actor, now, keep_reference=keep)
        ok = await self.report_repo.commit(
            working,
            [update],
            expected_status=report.status,
            expected_assigned_to=report.assigned_to,
        )
        if not ok:
            # the report still points at the team: take the slot back
            try:
                await self.team_repo.reserve_slot(team_id, report.id, entry.priority, entry.assigned_at)
            except CivicSenseError:
                logger.exception(
                    "Could not restore slot of %s on team %s", report.tracking_id, team_id
                )
                raise InvariantViolation(
                    f"Report {report.tracking_id} lost its slot on team {team_id}"
                )
            raise AssignmentConflict(f"Report {report.tracking_id} changed concurrently, retry")

        self.notifications.send_in_app(REPORT_UNASSIGNED, {
            "tracking_id": working.tracking_id,
            "team_id": team.id,
            "team_name": team.name,
        })
        logger.info("Report %s unassigned from team %s by %s", working.tracking_id, team.name, actor)
        return working, team

    async def find_available_for_category(self, category: Category) -> List[Team]:
        return await self.team_repo.find_available_for_category(category)

    async def suggest_team(self, report_ref: str) -> Optional[Team]:
        report = await self._report(report_ref)
        if report.status == ReportStatus.closed:
            return None
        candidates = await self.find_available_for_category(report.category)
        return candidates[0] if candidates else None
