"""Seed sample teams (and optionally a few reports) into the configured store.

    python -m civicsense.seed [--with-reports]
"""
import argparse
import asyncio
import logging

from civicsense.core.config import get_settings
from civicsense.core.enums import AssignmentPriority, Category, ReportPriority
from civicsense.core.errors import AlreadyExists, CivicSenseError
from civicsense.core.logging_config import configure_logging
from civicsense.schemas.report import ReportCreate
from civicsense.schemas.team import TeamCreate
from civicsense.services.container import Container, build_container

logger = logging.getLogger("civicsense.seed")

SEED_ACTOR = "seed"

SEED_TEAMS = [
    {
        "name": "Public Works Alpha",
        "description": "Primary infrastructure maintenance and repair team",
        "department": "public-works",
        "members": [
            {"name": "John Smith", "email": "j.smith@city.gov", "role": "lead"},
            {"name": "Maria Garcia", "email": "m.garcia@city.gov", "role": "member"},
            {"name": "David Chen", "email": "d.chen@city.gov", "role": "specialist"},
        ],
        "specialties": ["infrastructure", "maintenance"],
        "capacity": 8,
        "contact_info": {
            "phone": "(555) 123-4567",
            "email": "publicworks.alpha@city.gov",
            "location": "City Maintenance Facility A",
        },
    },
    {
        "name": "Emergency Response Unit",
        "description": "Rapid response team for urgent safety issues",
        "department": "emergency-services",
        "members": [
            {"name": "Sarah Johnson", "email": "s.johnson@city.gov", "role": "lead"},
            {"name": "Mike Rodriguez", "email": "m.rodriguez@city.gov", "role": "member"},
            {"name": "Lisa Park", "email": "l.park@city.gov", "role": "member"},
        ],
        "specialties": ["safety", "emergency"],
        "capacity": 6,
        "contact_info": {
            "phone": "(555) 911-0000",
            "email": "emergency@city.gov",
            "location": "Emergency Services HQ",
        },
        "working_hours": {
            "start": "00:00",
            "end": "23:59",
            "days": ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"],
        },
    },
    {
        "name": "Environmental Services",
        "description": "Environmental cleanup and monitoring specialists",
        "department": "environmental",
        "members": [
            {"name": "Dr. Amanda White", "email": "a.white@city.gov", "role": "lead"},
            {"name": "Carlos Martinez", "email": "c.martinez@city.gov", "role": "specialist"},
        ],
        "specialties": ["environment"],
        "capacity": 4,
        "contact_info": {
            "phone": "(555) 234-5678",
            "email": "environmental@city.gov",
            "location": "Environmental Services Building",
        },
    },
    {
        "name": "Parks & Recreation Crew",
        "description": "Maintenance and improvement of public parks and recreational facilities",
        "department": "parks-recreation",
        "members": [
            {"name": "Tom Wilson", "email": "t.wilson@city.gov", "role": "lead"},
            {"name": "Jennifer Lee", "email": "j.lee@city.gov", "role": "member"},
            {"name": "Robert Brown", "email": "r.brown@city.gov", "role": "member"},
        ],
        "specialties": ["public-services", "maintenance"],
        "capacity": 7,
        "contact_info": {
            "phone": "(555) 345-6789",
            "email": "parks@city.gov",
            "location": "Parks Department Office",
        },
    },
]

SEED_REPORTS = [
    {
        "description": "Large pothole on Main Street near the library entrance",
        "category": Category.infrastructure,
        "priority": ReportPriority.high,
        "location": {"lat": 40.7128, "lng": -74.0060, "address": "Main St & 5th Ave"},
    },
    {
        "description": "Streetlight out at the corner of Oak and Pine for a week",
        "category": Category.safety,
        "priority": ReportPriority.medium,
        "location": {"lat": 40.7150, "lng": -74.0030},
    },
    {
        "description": "Overflowing trash bins along the river walk path",
        "category": Category.environment,
        "priority": ReportPriority.low,
    },
]


async def seed_teams(c: Container) -> int:
    created = 0
    for data in SEED_TEAMS:
        body = TeamCreate(**data)
        try:
            team = await c.teams.create(body.model_dump(), SEED_ACTOR)
        except AlreadyExists:
            logger.info("Team already present, skipping: %s", data["name"])
            continue
        created += 1
        logger.info("Seeded team %s (%s)", team.name, team.id)
    return created


async def seed_reports(c: Container) -> int:
    created = 0
    for data in SEED_REPORTS:
        report = await c.reports.create(ReportCreate(**data))
        created += 1
        team = await c.assignments.suggest_team(report.id)
        if team is None:
            logger.info("No team available for %s", report.tracking_id)
            continue
        try:
            await c.assignments.assign(report.id, team.id, AssignmentPriority.medium, SEED_ACTOR)
        except CivicSenseError as exc:
            logger.warning("Could not assign %s: %s", report.tracking_id, exc)
        else:
            logger.info("Assigned %s to %s", report.tracking_id, team.name)
    return created


async def run(with_reports: bool = False) -> None:
    settings = get_settings()
    c = build_container(settings)
    try:
        if c.mongo is not None:
            await c.mongo.ensure_indexes()
        teams = await seed_teams(c)
        reports = await seed_reports(c) if with_reports else 0
        logger.info("Seeding done: %d team(s), %d report(s) [%s]", teams, reports, c.storage_mode)
    finally:
        c.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed CivicSense sample data")
    parser.add_argument("--with-reports", action="store_true", help="also create and assign sample reports")
    args = parser.parse_args()

    configure_logging(get_settings().log_level)
    asyncio.run(run(with_reports=args.with_reports))


if __name__ == "__main__":
    main()
