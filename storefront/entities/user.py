from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import Field

from .base import BaseEntity, CamelModel, RecordId


class UserRole(str, Enum):
    CUSTOMER = "customer"
    EMPLOYEE = "employee"
    ADMIN = "admin"


PRIVILEGED_ROLES = {UserRole.EMPLOYEE.value, UserRole.ADMIN.value}


class Permission(str, Enum):
    """Capabilities that can be granted to a user."""

    READ_PRODUCTS = "read_products"
    WRITE_PRODUCTS = "write_products"
    DELETE_PRODUCTS = "delete_products"
    READ_ORDERS = "read_orders"
    WRITE_ORDERS = "write_orders"
    DELETE_ORDERS = "delete_orders"
    READ_USERS = "read_users"
    WRITE_USERS = "write_users"
    DELETE_USERS = "delete_users"
    READ_ANALYTICS = "read_analytics"
    WRITE_ANALYTICS = "write_analytics"
    MANAGE_SYSTEM = "manage_system"
    MANAGE_ROLES = "manage_roles"


# Role to default permissions mapping
ROLE_PERMISSIONS: Dict[str, Set[Permission]] = {
    UserRole.ADMIN.value: set(Permission),
    UserRole.EMPLOYEE.value: {
        Permission.READ_PRODUCTS,
        Permission.WRITE_PRODUCTS,
        Permission.READ_ORDERS,
        Permission.WRITE_ORDERS,
        Permission.READ_USERS,
    },
    UserRole.CUSTOMER.value: set(),
}


class Department(str, Enum):
    SALES = "sales"
    SUPPORT = "support"
    OPERATIONS = "operations"
    MANAGEMENT = "management"
    IT = "it"
    HR = "hr"


class OtpData(CamelModel):
    """Pending one-time code. ``code`` holds a hash, never the code itself."""

    code: Optional[str] = None
    expires: Optional[datetime] = None
    attempts: int = 0
    max_attempts: int = 5


class User(BaseEntity):
    """Customer, employee or admin account."""

    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = Field(default=None, description="Password hash")
    phone: Optional[str] = None

    role: UserRole = UserRole.CUSTOMER
    permissions: List[Permission] = Field(default_factory=list)

    is_active: bool = True
    is_email_verified: bool = False
    is_phone_verified: bool = False
    must_change_password: bool = Field(
        default=False, description="Set for temporary credentials until the first change"
    )

    # Employment
    employee_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    hire_date: Optional[datetime] = None
    supervisor: Optional[RecordId] = Field(default=None, description="User id of the supervisor")

    # Password reset
    login_otp: Optional[OtpData] = None
    reset_token_hash: Optional[str] = None
    reset_token_expires: Optional[datetime] = None

    last_login: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def public_view(self) -> dict:
        """User fields safe to return from the API."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude_none=True,
            exclude={"password", "login_otp", "reset_token_hash", "reset_token_expires"},
        )
