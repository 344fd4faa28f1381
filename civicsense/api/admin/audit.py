from fastapi import APIRouter, Depends, Query

from civicsense.api.deps import get_container
from civicsense.core.security import VIEW_REPORTS, Admin, require_permission
from civicsense.services.container import Container

router = APIRouter(prefix="/admin/audit", tags=["Admin - Audit"])


@router.get("")
async def list_audit_logs(
    limit: int = Query(200, ge=1, le=1000),
    admin: Admin = Depends(require_permission(VIEW_REPORTS)),
    c: Container = Depends(get_container),
):
    return await c.audit.list_logs(limit)
