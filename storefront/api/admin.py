"""Admin-only endpoints: staff accounts, user list, SMS and stock alerts."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.database.collection_store import CollectionStore, get_store
from storefront.dtos import BulkSmsRequest, EmployeeCreateRequest, LowStockAlertRequest
from storefront.entities.user import User
from storefront.middleware.rbac import require_admin, require_read_users, require_staff
from storefront.repositories.product import ProductRepository
from storefront.repositories.user import UserRepository
from storefront.services.admin_provisioning import AdminProvisioningService
from storefront.services.sms import SmsService, get_sms_service

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/employees", status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: EmployeeCreateRequest,
    store: CollectionStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    """Provision an employee or admin account with a one-time password.

    The temporary password appears in this response only.
    """
    result = AdminProvisioningService(store).provision(
        email=payload.email,
        role=payload.role,
        first_name=payload.first_name,
        last_name=payload.last_name,
        username=payload.username,
        department=payload.department,
        position=payload.position,
        phone=payload.phone,
        supervisor=payload.supervisor or admin.id,
    )
    if not result.created:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    return {
        "success": True,
        "message": f"{payload.role.capitalize()} account created",
        "data": {
            "user": result.user.public_view(),
            "temporaryPassword": result.temporary_password,
        },
    }


@router.get("/users")
def list_users(
    q: Optional[str] = Query(None, description="Search by name, username, or email"),
    role: Optional[str] = Query(None, pattern="^(customer|employee|admin)$"),
    store: CollectionStore = Depends(get_store),
    _user: User = Depends(require_read_users),
):
    users = UserRepository(store).list_all(search=q, role=role)
    return {
        "success": True,
        "data": {"users": [u.public_view() for u in users], "total": len(users)},
    }


@router.post("/sms/bulk")
async def send_bulk_sms(
    payload: BulkSmsRequest,
    sms: SmsService = Depends(get_sms_service),
    _admin: User = Depends(require_admin),
):
    """Send one message to many numbers. Each number gets its own outcome."""
    outcomes = await sms.send_bulk(payload.phone_numbers, payload.message)
    sent = sum(1 for o in outcomes if o.status == "sent")
    return {
        "success": True,
        "data": {
            "results": [o.to_dict() for o in outcomes],
            "total": len(outcomes),
            "sent": sent,
            "failed": len(outcomes) - sent,
        },
    }


@router.get("/alerts/low-stock")
def list_low_stock(
    store: CollectionStore = Depends(get_store),
    _user: User = Depends(require_staff),
):
    products = ProductRepository(store).find_low_stock()
    return {
        "success": True,
        "data": {
            "products": [p.to_document() for p in products],
            "total": len(products),
        },
    }


@router.post("/alerts/low-stock/notify")
async def notify_low_stock(
    payload: LowStockAlertRequest,
    store: CollectionStore = Depends(get_store),
    sms: SmsService = Depends(get_sms_service),
    _user: User = Depends(require_staff),
):
    """Text one low-stock alert per product that is under its threshold."""
    results = []
    for product in ProductRepository(store).find_low_stock():
        result = await sms.send_low_stock_alert(payload.phone_number, product.name, product.stock)
        results.append(
            {
                "productId": product.id,
                "name": product.name,
                "stock": product.stock,
                "sent": result.success,
                "error": result.error,
            }
        )
    return {"success": True, "data": {"alerts": results, "total": len(results)}}
