from typing import List

from civicsense.utils.mongo import serialize_mongo, to_mongo


class AuditRepository:
    def __init__(self, collection):
        self.collection = collection

    async def list(self, limit: int = 200):
        out = []
        async for doc in self.collection.find().sort("time", -1).limit(limit):
            doc["id"] = str(doc.pop("_id"))
            out.append(doc)

        return [serialize_mongo(r) for r in out]

    async def create(self, data: dict):
        await self.collection.insert_one(to_mongo(data))


class InMemoryAuditRepository:
    def __init__(self):
        self._events: List[dict] = []

    async def list(self, limit: int = 200):
        ordered = sorted(reversed(self._events), key=lambda e: e["time"], reverse=True)
        return [serialize_mongo(e) for e in ordered[:limit]]

    async def create(self, data: dict):
        event = to_mongo(dict(data))
        event["id"] = f"evt_{len(self._events) + 1}"
        self._events.append(event)
