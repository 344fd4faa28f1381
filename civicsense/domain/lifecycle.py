from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from civicsense.core.enums import ReportStatus, UpdateType
from civicsense.core.errors import InvalidTransition
from civicsense.models.common import utcnow
from civicsense.models.report import Report, ReportUpdate

# resolved -> in_progress is the reopen edge; closed is terminal.
ALLOWED_TRANSITIONS: Dict[ReportStatus, List[ReportStatus]] = {
    ReportStatus.reported: [ReportStatus.in_progress],
    ReportStatus.in_progress: [ReportStatus.resolved],
    ReportStatus.resolved: [ReportStatus.closed, ReportStatus.in_progress],
    ReportStatus.closed: [],
}

ASSIGNABLE_STATUSES = {ReportStatus.reported, ReportStatus.in_progress}


def get_allowed_next(state: ReportStatus) -> List[ReportStatus]:
    return ALLOWED_TRANSITIONS.get(ReportStatus(state), [])


def validate_transition(current: ReportStatus, target: ReportStatus) -> None:
    current = ReportStatus(current)
    target = ReportStatus(target)
    if target not in get_allowed_next(current):
        raise InvalidTransition(
            f"Invalid transition from {current.value} to {target.value}"
        )


def status_message(old: ReportStatus, new: ReportStatus, note: Optional[str]) -> str:
    base = f"Status changed from {old.value} to {new.value}"
    return f"{base}: {note}" if note else base


def apply_transition(
    report: Report,
    target: ReportStatus,
    actor: str,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ReportUpdate:
    validate_transition(report.status, target)
    now = now or utcnow()
    old = report.status
    target = ReportStatus(target)

    update = ReportUpdate(
        type=UpdateType.status,
        message=status_message(old, target, note),
        created_by=actor,
        created_at=now,
        old_status=old,
        new_status=target,
        note=note,
    )
    report.status = target
    report.updated_at = now
    report.updates.append(update)
    return update
