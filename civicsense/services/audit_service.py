import logging
from typing import Any, Dict, Optional

from civicsense.models.common import utcnow

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, repo):
        self.repo = repo

    async def list_logs(self, limit: int = 200):
        return await self.repo.list(limit)

    async def log_event(
        self,
        type: str,
        actor: str,
        entity_type: str,
        entity_id: str,
        message: str,
        meta: Optional[Dict[str, Any]] = None,
    ):
        await self.repo.create({
            "time": utcnow(),
            "type": type,
            "actor": {"role": "admin", "username": actor},
            "entity": {"type": entity_type, "id": entity_id},
            "message": message,
            "meta": meta or {},
        })
        logger.info("audit %s %s/%s by %s", type, entity_type, entity_id, actor)
