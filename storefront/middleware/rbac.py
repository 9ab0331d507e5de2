"""
Role-based access control dependencies.

Effective permissions are the role defaults from ``ROLE_PERMISSIONS`` plus
any permissions granted on the user record.
"""

from __future__ import annotations

from typing import Set

from fastapi import Depends, HTTPException, status

from storefront.entities.user import ROLE_PERMISSIONS, Permission, User
from storefront.middleware.auth import get_current_user


def get_user_permissions(user: User) -> Set[str]:
    granted = {p.value for p in ROLE_PERMISSIONS.get(user.role, set())}
    granted.update(str(p) for p in user.permissions)
    return granted


class RequireRole:
    """
    Dependency class restricting a route to some roles.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: User = Depends(RequireRole("admin"))):
            ...
    """

    def __init__(self, *roles: str):
        self.roles = set(roles)

    async def __call__(self, user: User = Depends(get_current_user)) -> User:
        if user.role not in self.roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user


class RequirePermission:
    """Dependency class requiring any (or all) of the given permissions."""

    def __init__(self, *permissions: Permission, require_all: bool = False):
        self.permissions = {p.value for p in permissions}
        self.require_all = require_all

    async def __call__(self, user: User = Depends(get_current_user)) -> User:
        granted = get_user_permissions(user)
        if self.require_all:
            has_access = self.permissions.issubset(granted)
        else:
            has_access = bool(granted & self.permissions)

        if not has_access:
            perm_names = ", ".join(sorted(self.permissions))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied. Required: {perm_names}",
            )
        return user


require_admin = RequireRole("admin")
require_staff = RequireRole("admin", "employee")
require_read_users = RequirePermission(Permission.READ_USERS)
