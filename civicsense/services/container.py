from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from civicsense.core.config import Settings
from civicsense.db.mongo import AUDIT_LOGS, REPORTS, TEAMS, MongoHandle
from civicsense.repositories.audit_repository import AuditRepository, InMemoryAuditRepository
from civicsense.repositories.report_repository import InMemoryReportRepository, ReportRepository
from civicsense.repositories.team_repository import InMemoryTeamRepository, TeamRepository
from civicsense.services.assignment_service import AssignmentService
from civicsense.services.audit_service import AuditService
from civicsense.services.geocoding import ReverseGeocoder
from civicsense.services.notifications import NotificationBus, NotificationService
from civicsense.services.report_service import ReportService
from civicsense.services.team_service import TeamService

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    mongo: Optional[MongoHandle]
    team_repo: object
    report_repo: object
    bus: NotificationBus
    notifications: NotificationService
    audit: AuditService
    teams: TeamService
    reports: ReportService
    assignments: AssignmentService

    @property
    def storage_mode(self) -> str:
        return "MongoDB" if self.mongo is not None else "In-Memory"

    def close(self) -> None:
        if self.mongo is not None:
            self.mongo.close()


def build_container(settings: Settings, geocoder: Optional[ReverseGeocoder] = None) -> Container:
    mongo = None
    if settings.storage_backend == "mongo":
        mongo = MongoHandle(settings.mongo_uri, settings.mongo_db)
        db = mongo.connect()
        team_repo = TeamRepository(db[TEAMS])
        report_repo = ReportRepository(db[REPORTS])
        audit_repo = AuditRepository(db[AUDIT_LOGS])
    else:
        team_repo = InMemoryTeamRepository()
        report_repo = InMemoryReportRepository()
        audit_repo = InMemoryAuditRepository()

    if geocoder is None:
        geocoder = ReverseGeocoder(
            settings.geocoding_url,
            timeout=settings.geocoding_timeout_seconds,
            enabled=settings.enable_geocoding,
        )

    bus = NotificationBus(settings.notification_buffer_size)
    notifications = NotificationService(bus)
    audit = AuditService(audit_repo)

    logger.info("Storage backend: %s", settings.storage_backend)
    return Container(
        settings=settings,
        mongo=mongo,
        team_repo=team_repo,
        report_repo=report_repo,
        bus=bus,
        notifications=notifications,
        audit=audit,
        teams=TeamService(team_repo, audit),
        reports=ReportService(report_repo, team_repo, notifications, settings, geocoder),
        assignments=AssignmentService(report_repo, team_repo, notifications),
    )
