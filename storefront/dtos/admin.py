"""DTOs for admin endpoints."""

from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from storefront.entities.base import CamelModel


class EmployeeCreateRequest(CamelModel):
    """Request to provision a privileged account. No password is accepted."""

    email: EmailStr
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    role: Literal["employee", "admin"] = "employee"
    username: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    supervisor: Optional[str] = None


class BulkSmsRequest(CamelModel):
    phone_numbers: List[str] = Field(..., min_length=1)
    message: str = Field(..., min_length=1, max_length=1600)


class LowStockAlertRequest(CamelModel):
    phone_number: str
