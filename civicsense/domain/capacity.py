from civicsense.core.errors import InvariantViolation
from civicsense.models.team import Team


def can_take_assignment(team: Team) -> bool:
    return team.is_active and team.current_load < team.capacity


def available_capacity(team: Team) -> int:
    return team.capacity - team.current_load


def utilization_rate(team: Team) -> int:
    return round(team.current_load / team.capacity * 100)


def check_invariants(team: Team) -> None:
    """
    Raise InvariantViolation when the load bookkeeping of ``team`` is
    inconsistent. Nothing is corrected here; a desync means some writer
    bypassed the assignment operations.
    """
    if not 0 <= team.current_load <= team.capacity:
        raise InvariantViolation(
            f"Team {team.id}: current_load={team.current_load} "
            f"outside [0, {team.capacity}]"
        )

    ids = team.assigned_report_ids()
    if len(ids) != team.current_load:
        raise InvariantViolation(
            f"Team {team.id}: {len(ids)} assigned reports but "
            f"current_load={team.current_load}"
        )

    if len(set(ids)) != len(ids):
        raise InvariantViolation(f"Team {team.id}: duplicate report assignment")


def team_stats(team: Team) -> dict:
    return {
        "available_capacity": available_capacity(team),
        "utilization_rate": utilization_rate(team),
        "can_take_assignment": can_take_assignment(team),
    }
