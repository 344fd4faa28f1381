from fastapi import APIRouter, Depends, Query

from civicsense.api.deps import get_container
from civicsense.models.common import utcnow
from civicsense.services.container import Container

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    after: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    c: Container = Depends(get_container),
):
    events = c.bus.recent(after=after, limit=limit)
    return {
        "events": [e.to_dict() for e in events],
        "last_seq": c.bus.last_seq,
    }


@router.get("/status")
async def notification_status(c: Container = Depends(get_container)):
    return {
        "status": "OK",
        "queues": c.notifications.queue_status(),
        "timestamp": utcnow().isoformat(),
    }
