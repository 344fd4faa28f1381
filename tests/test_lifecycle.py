"""Tests for report status transitions."""
import pytest

from civicsense.core.enums import ReportStatus, UpdateType
from civicsense.core.errors import InvalidTransition
from civicsense.domain.lifecycle import (
    apply_transition,
    get_allowed_next,
    status_message,
    validate_transition,
)

S = ReportStatus

ALLOWED = [
    (S.reported, S.in_progress),
    (S.in_progress, S.resolved),
    (S.resolved, S.closed),
    (S.resolved, S.in_progress),
]

REJECTED = [
    (S.reported, S.resolved),
    (S.reported, S.closed),
    (S.reported, S.reported),
    (S.in_progress, S.reported),
    (S.in_progress, S.closed),
    (S.in_progress, S.in_progress),
    (S.resolved, S.reported),
    (S.closed, S.reported),
    (S.closed, S.in_progress),
    (S.closed, S.closed),
]


@pytest.mark.parametrize("current,target", ALLOWED)
def test_allowed_transitions(current, target):
    validate_transition(current, target)


@pytest.mark.parametrize("current,target", REJECTED)
def test_rejected_transitions(current, target):
    with pytest.raises(InvalidTransition) as exc:
        validate_transition(current, target)
    assert str(exc.value) == f"Invalid transition from {current.value} to {target.value}"


def test_closed_is_terminal():
    assert get_allowed_next(S.closed) == []


def test_accepts_raw_values():
    assert get_allowed_next("resolved") == [S.closed, S.in_progress]


def test_status_message_with_note():
    assert status_message(S.in_progress, S.resolved, "patched") == (
        "Status changed from in-progress to resolved: patched"
    )


def test_apply_transition_records_update(report_factory):
    report = report_factory(status=S.in_progress)

    update = apply_transition(report, S.resolved, "inspector", note="fixed")

    assert report.status == S.resolved
    assert report.updates[-1] is update
    assert update.type == UpdateType.status
    assert update.old_status == S.in_progress
    assert update.new_status == S.resolved
    assert update.created_by == "inspector"
    assert update.note == "fixed"


def test_apply_transition_rejects_without_mutation(report_factory):
    report = report_factory()
    before = report.model_copy(deep=True)

    with pytest.raises(InvalidTransition):
        apply_transition(report, S.closed, "inspector")

    assert report == before
