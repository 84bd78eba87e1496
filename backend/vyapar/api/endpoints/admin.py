# FILE: backend/vyapar/api/endpoints/admin.py
# LOCALVYAPAR - ADMIN ENDPOINTS
# 1. Users: list with order counts, change role, delete.
# 2. Listings: delete, grant/revoke premium, verify.

from fastapi import APIRouter, Depends, status
from typing import List, Annotated, Dict, Optional
from pymongo.database import Database

from ...core.db import get_db
from ...services import admin_service
from ...services.business_service import to_business_out
from ...services.order_service import OrderService
from ...models.admin import UserAdminView, UserRoleUpdate, PremiumToggle, VerificationToggle
from ...models.business import BusinessOut
from ...models.order import OrderOut, OrderStatus
from ...models.user import UserInDB
from .dependencies import get_current_admin_user

router = APIRouter()

@router.get("/users", response_model=List[UserAdminView])
def get_all_users(
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    """Retrieves a list of all users. (Admin only)"""
    return admin_service.get_all_users(db)

@router.put("/users/{user_id}/role", response_model=UserAdminView)
def update_user_role(
    user_id: str,
    data: UserRoleUpdate,
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    return admin_service.update_user_role(db, current_admin, user_id, data.role)

@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    """Deletes a user, and their shop listing when they own one."""
    admin_service.delete_user(db, current_admin, user_id)

@router.delete("/businesses/{business_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_business(
    business_id: str,
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    admin_service.delete_business(db, business_id)

@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    admin_service.delete_product(db, product_id)

@router.put("/businesses/{business_id}/premium", response_model=BusinessOut)
def toggle_premium(
    business_id: str,
    data: PremiumToggle,
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    business = admin_service.set_premium(db, business_id, data.active)
    return to_business_out(business.model_dump(by_alias=True))

@router.put("/businesses/{business_id}/verification", response_model=BusinessOut)
def toggle_verification(
    business_id: str,
    data: VerificationToggle,
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    business = admin_service.set_verification(db, business_id, data.is_verified)
    return to_business_out(business.model_dump(by_alias=True))

@router.get("/orders", response_model=List[OrderOut])
def list_orders(
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db),
    status_filter: Optional[OrderStatus] = None,
):
    return OrderService(db).list_all(status_filter)

@router.post("/premium/expire", response_model=Dict[str, int])
def expire_premium_now(
    current_admin: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    """Runs the daily premium expiry immediately."""
    return {"expired": admin_service.expire_premium_listings(db)}
