from enum import Enum


class Department(str, Enum):
    public_works = "public-works"
    utilities = "utilities"
    parks_recreation = "parks-recreation"
    transportation = "transportation"
    emergency_services = "emergency-services"
    environmental = "environmental"
    other = "other"


class Category(str, Enum):
    infrastructure = "infrastructure"
    safety = "safety"
    environment = "environment"
    public_services = "public-services"
    emergency = "emergency"
    maintenance = "maintenance"
    other = "other"


class ReportStatus(str, Enum):
    reported = "reported"
    in_progress = "in-progress"
    resolved = "resolved"
    closed = "closed"


class ReportPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class AssignmentPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class UpdateType(str, Enum):
    status = "status"
    assignment = "assignment"
    note = "note"


class MemberRole(str, Enum):
    lead = "lead"
    member = "member"
    specialist = "specialist"


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


class UserRole(str, Enum):
    admin = "admin"
    viewer = "viewer"
