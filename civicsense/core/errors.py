class CivicSenseError(Exception):
    """Base class for domain failures raised by the assignment core."""


class NotFound(CivicSenseError):
    pass


class TeamNotFound(NotFound):
    def __init__(self, team_id: str):
        super().__init__(f"Team not found: {team_id}")
        self.team_id = team_id


class ReportNotFound(NotFound):
    def __init__(self, report_ref: str):
        super().__init__(f"Report not found: {report_ref}")
        self.report_ref = report_ref


class AssignmentNotFound(NotFound):
    def __init__(self, team_id: str, report_id: str):
        super().__init__(f"Report {report_id} is not assigned to team {team_id}")
        self.team_id = team_id
        self.report_id = report_id


class CapacityExceeded(CivicSenseError):
    def __init__(self, team_id: str, available: int = 0, requested: int = 1):
        super().__init__(
            f"Team capacity exceeded. Available: {available}, Requested: {requested}"
        )
        self.team_id = team_id
        self.available = available
        self.requested = requested


class AssignmentConflict(CivicSenseError):
    pass


class InvalidTransition(CivicSenseError):
    pass


class InvariantViolation(CivicSenseError):
    pass


class AlreadyExists(CivicSenseError):
    pass
