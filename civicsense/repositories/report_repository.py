from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from civicsense.core.enums import Category, ReportPriority, ReportStatus
from civicsense.domain.tracking import looks_like_tracking_id
from civicsense.models.common import parse_oid
from civicsense.models.report import Report, ReportUpdate
from civicsense.utils.mongo import from_mongo, to_mongo

SORTABLE_FIELDS = {"created_at", "updated_at", "status", "priority", "category", "tracking_id"}

# "no expectation" marker for commit(expected_assigned_to=...)
_UNSET = object()


@dataclass
class ReportQuery:
    status: Optional[ReportStatus] = None
    priority: Optional[ReportPriority] = None
    category: Optional[Category] = None
    assigned_to: Optional[str] = None
    located_only: bool = False
    sort_by: str = "created_at"
    sort_order: str = "desc"
    offset: int = 0
    limit: Optional[int] = None

    def __post_init__(self):
        if self.sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {self.sort_by!r}")
        if self.sort_order not in ("asc", "desc"):
            raise ValueError(f"Invalid sort order {self.sort_order!r}")

    def to_mongo_filter(self) -> Dict[str, Any]:
        filters: Dict[str, Any] = {}
        if self.status:
            filters["status"] = ReportStatus(self.status).value
        if self.priority:
            filters["priority"] = ReportPriority(self.priority).value
        if self.category:
            filters["category"] = Category(self.category).value
        if self.assigned_to:
            filters["assigned_to"] = self.assigned_to
        if self.located_only:
            filters["location.lat"] = {"$exists": True, "$ne": None}
            filters["location.lng"] = {"$exists": True, "$ne": None}
        return filters

    def matches(self, report: Report) -> bool:
        if self.status and report.status != ReportStatus(self.status):
            return False
        if self.priority and report.priority != ReportPriority(self.priority):
            return False
        if self.category and report.category != Category(self.category):
            return False
        if self.assigned_to and report.assigned_to != self.assigned_to:
            return False
        if self.located_only and report.location is None:
            return False
        return True


def commit_update(report: Report, new_updates: List[ReportUpdate]) -> Dict[str, Any]:
    update: Dict[str, Any] = {
        "$set": {
            "status": report.status.value,
            "assigned_to": report.assigned_to,
            "updated_at": report.updated_at,
        }
    }
    if new_updates:
        update["$push"] = {
            "updates": {"$each": [to_mongo(u.model_dump()) for u in new_updates]}
        }
    return update


class ReportRepository:
    def __init__(self, col):
        self.col = col

    def _report(self, d) -> Report:
        return Report(**from_mongo(d))

    async def count(self) -> int:
        return await self.col.count_documents({})

    async def insert(self, report: Report) -> Report:
        """Raises DuplicateKeyError when the tracking id is taken."""
        doc = to_mongo(report.model_dump(exclude={"id"}))
        doc["_id"] = parse_oid(report.id) or ObjectId()
        await self.col.insert_one(doc)
        return self._report(doc)

    async def get(self, report_id: str) -> Optional[Report]:
        oid = parse_oid(report_id)
        if oid is None:
            return None
        d = await self.col.find_one({"_id": oid})
        return self._report(d) if d else None

    async def get_by_tracking_id(self, tracking_id: str) -> Optional[Report]:
        d = await self.col.find_one({"tracking_id": tracking_id})
        return self._report(d) if d else None

    async def find(self, ref: str) -> Optional[Report]:
        """Look a report up by database id or tracking id."""
        if looks_like_tracking_id(ref):
            return await self.get_by_tracking_id(ref)
        return await self.get(ref)

    async def list(self, query: ReportQuery) -> Tuple[List[Report], int]:
        filters = query.to_mongo_filter()
        direction = -1 if query.sort_order == "desc" else 1
        cursor = self.col.find(filters).sort(query.sort_by, direction).skip(query.offset)
        if query.limit:
            cursor = cursor.limit(query.limit)
        reports = [self._report(d) async for d in cursor]
        total = await self.col.count_documents(filters)
        return reports, total

    async def commit(
        self,
        report: Report,
        new_updates: List[ReportUpdate],
        expected_status: Optional[ReportStatus] = None,
        expected_assigned_to: Any = _UNSET,
    ) -> bool:
        """
        Write status/assignment changes and append ``new_updates`` only if
        the stored report still matches the expected values.
        """
        oid = parse_oid(report.id)
        if oid is None:
            return False
        query: Dict[str, Any] = {"_id": oid}
        if expected_status is not None:
            query["status"] = ReportStatus(expected_status).value
        if expected_assigned_to is not _UNSET:
            query["assigned_to"] = expected_assigned_to
        r = await self.col.update_one(query, commit_update(report, new_updates))
        return r.matched_count == 1


class InMemoryReportRepository:
    def __init__(self):
        self._reports: Dict[str, Report] = {}
        self._lock = asyncio.Lock()

    def _copy(self, report: Report) -> Report:
        return report.model_copy(deep=True)

    async def count(self) -> int:
        return len(self._reports)

    async def insert(self, report: Report) -> Report:
        async with self._lock:
            if any(r.tracking_id == report.tracking_id for r in self._reports.values()):
                raise DuplicateKeyError(f"duplicate tracking_id {report.tracking_id}")
            self._reports[report.id] = self._copy(report)
            return self._copy(report)

    async def get(self, report_id: str) -> Optional[Report]:
        r = self._reports.get(report_id)
        return self._copy(r) if r else None

    async def get_by_tracking_id(self, tracking_id: str) -> Optional[Report]:
        for r in self._reports.values():
            if r.tracking_id == tracking_id:
                return self._copy(r)
        return None

    async def find(self, ref: str) -> Optional[Report]:
        if looks_like_tracking_id(ref):
            return await self.get_by_tracking_id(ref)
        return await self.get(ref)

    async def list(self, query: ReportQuery) -> Tuple[List[Report], int]:
        matched = [r for r in self._reports.values() if query.matches(r)]

        def sort_key(r: Report):
            v = getattr(r, query.sort_by)
            return v.value if hasattr(v, "value") else v

        matched.sort(key=sort_key, reverse=query.sort_order == "desc")
        end = query.offset + query.limit if query.limit else None
        page = matched[query.offset:end]
        return [self._copy(r) for r in page], len(matched)

    async def commit(
        self,
        report: Report,
        new_updates: List[ReportUpdate],
        expected_status: Optional[ReportStatus] = None,
        expected_assigned_to: Any = _UNSET,
    ) -> bool:
        async with self._lock:
            stored = self._reports.get(report.id)
            if stored is None:
                return False
            if expected_status is not None and stored.status != ReportStatus(expected_status):
                return False
            if expected_assigned_to is not _UNSET and stored.assigned_to != expected_assigned_to:
                return False

            stored.status = report.status
            stored.assigned_to = report.assigned_to
            stored.updated_at = report.updated_at
            stored.updates.extend(u.model_copy() for u in new_updates)
            return True
