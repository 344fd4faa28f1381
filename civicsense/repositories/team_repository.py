from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from civicsense.core.enums import AssignmentPriority, Category, Department
from civicsense.core.errors import (
    AlreadyExists,
    AssignmentConflict,
    AssignmentNotFound,
    CapacityExceeded,
    InvariantViolation,
    TeamNotFound,
)
from civicsense.domain import assignment
from civicsense.domain.availability import find_available_for_category
from civicsense.domain.capacity import available_capacity, check_invariants
from civicsense.models.common import parse_oid, utcnow
from civicsense.models.team import AssignedReport, Team
from civicsense.utils.mongo import from_mongo, to_mongo

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Query builders (pure, shared with tests)
# ------------------------------------------------------------------
def build_team_query(
    department: Optional[Department] = None,
    specialty: Optional[Category] = None,
    available: Optional[bool] = None,
    include_inactive: bool = False,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if not include_inactive:
        query["is_active"] = True
    if department:
        query["department"] = Department(department).value
    if specialty:
        query["specialties"] = Category(specialty).value
    if available:
        query["$expr"] = {"$lt": ["$current_load", "$capacity"]}
    return query


def available_for_category_query(category: Category) -> Dict[str, Any]:
    return {
        "is_active": True,
        "$expr": {"$lt": ["$current_load", "$capacity"]},
        "specialties": Category(category).value,
    }


AVAILABLE_SORT = [("current_load", 1), ("capacity", -1)]


def reserve_filter(oid: ObjectId, report_ids: List[str]) -> Dict[str, Any]:
    """Matches only when the team can absorb every report in ``report_ids``."""
    return {
        "_id": oid,
        "is_active": True,
        "assigned_reports.report_id": {"$nin": report_ids},
        "$expr": {"$lte": [{"$add": ["$current_load", len(report_ids)]}, "$capacity"]},
    }


def reserve_update(entries: List[AssignedReport], now: datetime) -> Dict[str, Any]:
    return {
        "$inc": {"current_load": len(entries)},
        "$push": {"assigned_reports": {"$each": [to_mongo(e.model_dump()) for e in entries]}},
        "$set": {"updated_at": now},
    }


def release_filter(oid: ObjectId, report_id: str) -> Dict[str, Any]:
    return {
        "_id": oid,
        "assigned_reports.report_id": report_id,
        "current_load": {"$gt": 0},
    }


def release_update(report_id: str, now: datetime) -> Dict[str, Any]:
    return {
        "$pull": {"assigned_reports": {"report_id": report_id}},
        "$inc": {"current_load": -1},
        "$set": {"updated_at": now},
    }


# ------------------------------------------------------------------
# MongoDB
# ------------------------------------------------------------------
class TeamRepository:
    def __init__(self, col):
        self.col = col

    def _team(self, d) -> Team:
        return Team(**from_mongo(d))

    async def list(self, **filters) -> List[Team]:
        cur = self.col.find(build_team_query(**filters)).sort("name", 1)
        return [self._team(x) async for x in cur]

    async def get(self, team_id: str) -> Optional[Team]:
        oid = parse_oid(team_id)
        if oid is None:
            return None
        d = await self.col.find_one({"_id": oid})
        return self._team(d) if d else None

    async def create(self, data: dict) -> Team:
        now = utcnow()
        data = to_mongo(dict(data))
        data.update({
            "current_load": 0,
            "assigned_reports": [],
            "is_active": data.get("is_active", True),
            "created_at": now,
            "updated_at": now,
        })
        try:
            r = await self.col.insert_one(data)
        except DuplicateKeyError:
            raise AlreadyExists(f"Team name already in use: {data.get('name')}")
        return await self.get(str(r.inserted_id))

    async def update(self, team_id: str, data: dict) -> Optional[Team]:
        oid = parse_oid(team_id)
        if oid is None:
            return None
        data = to_mongo(dict(data))
        data["updated_at"] = utcnow()
        query: Dict[str, Any] = {"_id": oid}
        if "capacity" in data:
            # never shrink below the committed load
            query["current_load"] = {"$lte": data["capacity"]}
        try:
            r = await self.col.update_one(query, {"$set": data})
        except DuplicateKeyError:
            raise AlreadyExists(f"Team name already in use: {data.get('name')}")
        if r.matched_count == 0:
            team = await self.get(team_id)
            if team is None:
                return None
            raise CapacityExceeded(team.id, available=available_capacity(team), requested=0)
        return await self.get(team_id)

    async def set_active(self, team_id: str, active: bool) -> Optional[Team]:
        return await self.update(team_id, {"is_active": active})

    async def find_available_for_category(self, category: Category) -> List[Team]:
        cur = self.col.find(available_for_category_query(category)).sort(AVAILABLE_SORT)
        return [self._team(x) async for x in cur]

    async def _reserve_failure(self, team_id: str, report_ids: List[str]):
        team = await self.get(team_id)
        if team is None:
            return TeamNotFound(team_id)
        already = set(team.assigned_report_ids()) & set(report_ids)
        if already:
            return AssignmentConflict(
                f"Reports already assigned to team {team.id}: {', '.join(sorted(already))}"
            )
        available = max(available_capacity(team), 0) if team.is_active else 0
        return CapacityExceeded(team.id, available=available, requested=len(report_ids))

    async def reserve_slots(
        self,
        team_id: str,
        report_ids: List[str],
        priority: AssignmentPriority = AssignmentPriority.medium,
        now: Optional[datetime] = None,
    ) -> Team:
        """
        Check capacity and record the assignments in one conditional update,
        so two concurrent callers can never push a team past its capacity.
        """
        oid = parse_oid(team_id)
        if oid is None:
            raise TeamNotFound(team_id)
        if len(set(report_ids)) != len(report_ids):
            raise AssignmentConflict("Duplicate report ids in request")

        now = now or utcnow()
        entries = [AssignedReport(report_id=rid, assigned_at=now, priority=priority) for rid in report_ids]
        d = await self.col.find_one_and_update(
            reserve_filter(oid, report_ids),
            reserve_update(entries, now),
            return_document=ReturnDocument.AFTER,
        )
        if d is None:
            raise await self._reserve_failure(team_id, report_ids)

        team = self._team(d)
        check_invariants(team)
        return team

    async def reserve_slot(self, team_id, report_id, priority=AssignmentPriority.medium, now=None) -> Team:
        return await self.reserve_slots(team_id, [report_id], priority, now)

    async def release_slot(self, team_id: str, report_id: str, now: Optional[datetime] = None) -> Team:
        oid = parse_oid(team_id)
        if oid is None:
            raise TeamNotFound(team_id)

        d = await self.col.find_one_and_update(
            release_filter(oid, report_id),
            release_update(report_id, now or utcnow()),
            return_document=ReturnDocument.AFTER,
        )
        if d is None:
            team = await self.get(team_id)
            if team is None:
                raise TeamNotFound(team_id)
            if report_id not in team.assigned_report_ids():
                raise AssignmentNotFound(team_id, report_id)
            raise InvariantViolation(
                f"Team {team_id} lists report {report_id} but current_load is {team.current_load}"
            )

        team = self._team(d)
        check_invariants(team)
        return team


# ------------------------------------------------------------------
# In-memory (development / tests)
# ------------------------------------------------------------------
class InMemoryTeamRepository:
    """
    Same contract as TeamRepository, backed by a dict. Every check-then-act
    runs under one lock with no awaits in between.
    """

    def __init__(self):
        self._teams: Dict[str, Team] = {}
        self._lock = asyncio.Lock()

    def _copy(self, team: Team) -> Team:
        return team.model_copy(deep=True)

    def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        return any(t.name == name and t.id != exclude_id for t in self._teams.values())

    async def list(
        self,
        department: Optional[Department] = None,
        specialty: Optional[Category] = None,
        available: Optional[bool] = None,
        include_inactive: bool = False,
    ) -> List[Team]:
        out = []
        for t in sorted(self._teams.values(), key=lambda t: t.name):
            if not include_inactive and not t.is_active:
                continue
            if department and t.department != Department(department):
                continue
            if specialty and Category(specialty) not in t.specialties:
                continue
            if available and t.current_load >= t.capacity:
                continue
            out.append(self._copy(t))
        return out

    async def get(self, team_id: str) -> Optional[Team]:
        t = self._teams.get(team_id)
        return self._copy(t) if t else None

    async def create(self, data: dict) -> Team:
        async with self._lock:
            if self._name_taken(data.get("name")):
                raise AlreadyExists(f"Team name already in use: {data.get('name')}")
            now = utcnow()
            data = dict(data)
            data.update({
                "id": str(ObjectId()),
                "current_load": 0,
                "assigned_reports": [],
                "created_at": now,
                "updated_at": now,
            })
            team = Team(**data)
            self._teams[team.id] = team
            return self._copy(team)

    async def update(self, team_id: str, data: dict) -> Optional[Team]:
        async with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return None
            if "name" in data and self._name_taken(data["name"], exclude_id=team_id):
                raise AlreadyExists(f"Team name already in use: {data['name']}")
            if "capacity" in data and data["capacity"] < team.current_load:
                raise CapacityExceeded(team.id, available=available_capacity(team), requested=0)
            merged = team.model_dump()
            merged.update(data)
            merged["updated_at"] = utcnow()
            updated = Team(**merged)
            self._teams[team_id] = updated
            return self._copy(updated)

    async def set_active(self, team_id: str, active: bool) -> Optional[Team]:
        return await self.update(team_id, {"is_active": active})

    async def find_available_for_category(self, category: Category) -> List[Team]:
        return [self._copy(t) for t in find_available_for_category(self._teams.values(), category)]

    async def reserve_slots(
        self,
        team_id: str,
        report_ids: List[str],
        priority: AssignmentPriority = AssignmentPriority.medium,
        now: Optional[datetime] = None,
    ) -> Team:
        async with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                raise TeamNotFound(team_id)
            working = self._copy(team)
            assignment.reserve_slots(working, report_ids, priority, now)
            check_invariants(working)
            self._teams[team_id] = working
            return self._copy(working)

    async def reserve_slot(self, team_id, report_id, priority=AssignmentPriority.medium, now=None) -> Team:
        return await self.reserve_slots(team_id, [report_id], priority, now)

    async def release_slot(self, team_id: str, report_id: str, now: Optional[datetime] = None) -> Team:
        async with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                raise TeamNotFound(team_id)
            working = self._copy(team)
            assignment.release_slot(working, report_id, now)
            check_invariants(working)
            self._teams[team_id] = working
            return self._copy(working)
