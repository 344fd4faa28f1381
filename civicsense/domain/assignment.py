"""
Capacity-checked linking of reports to teams.

Every function here validates first and mutates second, so a raised error
always leaves the passed objects untouched. The functions operate on plain
models; the repositories decide how the resulting state is stored.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from civicsense.core.enums import AssignmentPriority, ReportStatus, UpdateType
from civicsense.core.errors import (
    AssignmentConflict,
    AssignmentNotFound,
    CapacityExceeded,
    InvariantViolation,
)
from civicsense.domain.capacity import available_capacity, can_take_assignment
from civicsense.domain.lifecycle import ASSIGNABLE_STATUSES, apply_transition
from civicsense.models.common import utcnow
from civicsense.models.report import Report, ReportUpdate
from civicsense.models.team import AssignedReport, Team


def _capacity_error(team: Team, requested: int = 1) -> CapacityExceeded:
    available = max(available_capacity(team), 0) if team.is_active else 0
    return CapacityExceeded(team.id, available=available, requested=requested)


def reserve_slot(
    team: Team,
    report_id: str,
    priority: AssignmentPriority = AssignmentPriority.medium,
    now: Optional[datetime] = None,
) -> AssignedReport:
    if report_id in team.assigned_report_ids():
        raise AssignmentConflict(f"Report {report_id} already assigned to team {team.id}")
    if not can_take_assignment(team):
        raise _capacity_error(team)

    now = now or utcnow()
    entry = AssignedReport(report_id=report_id, assigned_at=now, priority=priority)
    team.assigned_reports.append(entry)
    team.current_load += 1
    team.updated_at = now
    return entry


def reserve_slots(
    team: Team,
    report_ids: List[str],
    priority: AssignmentPriority = AssignmentPriority.medium,
    now: Optional[datetime] = None,
) -> List[AssignedReport]:
    """All-or-nothing variant of reserve_slot for bulk assignment."""
    if len(set(report_ids)) != len(report_ids):
        raise AssignmentConflict("Duplicate report ids in request")
    already = set(team.assigned_report_ids()) & set(report_ids)
    if already:
        raise AssignmentConflict(
            f"Reports already assigned to team {team.id}: {', '.join(sorted(already))}"
        )
    if not team.is_active or team.current_load + len(report_ids) > team.capacity:
        raise _capacity_error(team, requested=len(report_ids))

    now = now or utcnow()
    return [reserve_slot(team, rid, priority, now) for rid in report_ids]


def release_slot(team: Team, report_id: str, now: Optional[datetime] = None) -> AssignedReport:
    index = next(
        (i for i, a in enumerate(team.assigned_reports) if a.report_id == report_id),
        None,
    )
    if index is None:
        raise AssignmentNotFound(team.id, report_id)
    if team.current_load <= 0:
        raise InvariantViolation(
            f"Team {team.id} lists report {report_id} but current_load is {team.current_load}"
        )

    entry = team.assigned_reports.pop(index)
    team.current_load -= 1
    team.updated_at = now or utcnow()
    return entry


def ensure_assignable(report: Report) -> None:
    if report.status not in ASSIGNABLE_STATUSES:
        raise AssignmentConflict(
            f"Report {report.tracking_id} is {report.status.value} and cannot be assigned"
        )
    if report.assigned_to is not None:
        raise AssignmentConflict(
            f"Report {report.tracking_id} is already assigned to team {report.assigned_to}"
        )


def link_report(
    report: Report,
    team: Team,
    actor: str,
    now: Optional[datetime] = None,
) -> List[ReportUpdate]:
    """
    Point ``report`` at ``team`` and record the history entries. A report
    still in ``reported`` moves to ``in-progress`` as part of the assignment.
    """
    ensure_assignable(report)
    now = now or utcnow()

    update = ReportUpdate(
        type=UpdateType.assignment,
        message=f"Report assigned to team {team.name}",
        created_by=actor,
        created_at=now,
        team_id=team.id,
    )
    report.assigned_to = team.id
    report.updated_at = now
    report.updates.append(update)
    updates = [update]

    if report.status == ReportStatus.reported:
        updates.append(
            apply_transition(report, ReportStatus.in_progress, actor, now=now)
        )
    return updates


def unlink_report(
    report: Report,
    team: Team,
    actor: str,
    now: Optional[datetime] = None,
    keep_reference: bool = False,
) -> ReportUpdate:
    now = now or utcnow()
    update = ReportUpdate(
        type=UpdateType.assignment,
        message=f"Report unassigned from team {team.name}",
        created_by=actor,
        created_at=now,
        team_id=team.id,
    )
    if not keep_reference:
        report.assigned_to = None
    report.updated_at = now
    report.updates.append(update)
    return update


def assign(
    report: Report,
    team: Team,
    priority: AssignmentPriority = AssignmentPriority.medium,
    actor: str = "system",
    now: Optional[datetime] = None,
) -> List[ReportUpdate]:
    ensure_assignable(report)
    now = now or utcnow()
    reserve_slot(team, report.id, priority, now)
    return link_report(report, team, actor, now)


def unassign(
    report: Report,
    team: Team,
    actor: str = "system",
    now: Optional[datetime] = None,
) -> ReportUpdate:
    now = now or utcnow()
    release_slot(team, report.id, now)
    return unlink_report(report, team, actor, now)
