# civicsense/core/security.py
from typing import Dict, FrozenSet

from fastapi import Depends, HTTPException, Request, status

from civicsense.core.enums import UserRole

VIEW_REPORTS = "view-reports"
MANAGE_TEAMS = "manage-teams"
ASSIGN_REPORTS = "assign-reports"
UPDATE_STATUS = "update-status"

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.admin: frozenset({VIEW_REPORTS, MANAGE_TEAMS, ASSIGN_REPORTS, UPDATE_STATUS}),
    UserRole.viewer: frozenset({VIEW_REPORTS}),
}


class Admin:
    def __init__(self, username: str, role: UserRole):
        self.username = username
        self.role = role

    @property
    def permissions(self) -> FrozenSet[str]:
        return ROLE_PERMISSIONS.get(self.role, frozenset())


def get_current_admin(request: Request) -> Admin:
    """
    Header based admin guard.
    Replace with token validation when real accounts exist.
    """
    raw_role = request.headers.get("X-Role", "")
    try:
        role = UserRole(raw_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin authentication required",
        )

    username = request.headers.get("X-Admin-User", "admin")
    return Admin(username=username, role=role)


def require_permission(permission: str):
    def guard(admin: Admin = Depends(get_current_admin)) -> Admin:
        if permission not in admin.permissions:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{permission}' required",
            )
        return admin

    return guard
