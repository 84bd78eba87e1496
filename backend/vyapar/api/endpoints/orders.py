# FILE: backend/vyapar/api/endpoints/orders.py
# LOCALVYAPAR - ORDER ENDPOINTS
# 1. Proof photos arrive as multipart uploads and are compressed to the 200KB target.
# 2. Cancellation is admin-only; riders only move orders forward.

import asyncio
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from typing import Annotated, List
from pymongo.database import Database

from ...core.db import get_db
from ...core.exceptions import ImageDecodeError
from ...models.order import OrderCreate, OrderOut
from ...models.user import UserInDB, UserRole
from ...services import image_service
from ...services.business_service import BusinessService
from ...services.order_service import OrderService
from .dependencies import (
    get_current_user, get_current_admin_user, get_current_business_user,
    get_current_customer_user, get_current_delivery_user, provider_http_error,
)

router = APIRouter()

async def _proof_photo(file: UploadFile) -> str:
    raw = await file.read()
    try:
        return await asyncio.to_thread(
            image_service.compress_image, raw, max_size_kb=image_service.PROOF_PHOTO_MAX_SIZE_KB
        )
    except ImageDecodeError as e:
        raise provider_http_error(e)

# --- Customer ---

@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def place_order(
    data: OrderCreate,
    current_user: Annotated[UserInDB, Depends(get_current_customer_user)],
    db: Database = Depends(get_db)
):
    return OrderService(db).place_order(current_user, data)

@router.get("/mine", response_model=List[OrderOut])
def list_my_orders(
    current_user: Annotated[UserInDB, Depends(get_current_customer_user)],
    db: Database = Depends(get_db)
):
    return OrderService(db).list_for_customer(str(current_user.id))

# --- Shop ---

@router.get("/shop", response_model=List[OrderOut])
def list_shop_orders(
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    business = BusinessService(db).get_by_owner(str(current_user.id))
    if not business:
        return []
    return OrderService(db).list_for_business(str(business.id))

# --- Rider ---

@router.get("/available", response_model=List[OrderOut])
def list_available_orders(
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
    db: Database = Depends(get_db)
):
    return OrderService(db).list_available()

@router.get("/assigned", response_model=List[OrderOut])
def list_assigned_orders(
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
    db: Database = Depends(get_db)
):
    return OrderService(db).list_for_rider(str(current_user.id))

@router.post("/{order_id}/claim", response_model=OrderOut)
def claim_order(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
    db: Database = Depends(get_db)
):
    return OrderService(db).claim(order_id, current_user)

@router.post("/{order_id}/pickup", response_model=OrderOut)
async def mark_picked_up(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
    db: Database = Depends(get_db),
    file: UploadFile = File(...)
):
    photo = await _proof_photo(file)
    return await asyncio.to_thread(OrderService(db).mark_picked_up, order_id, current_user, photo)

@router.post("/{order_id}/out-for-delivery", response_model=OrderOut)
def mark_out_for_delivery(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
    db: Database = Depends(get_db)
):
    return OrderService(db).mark_out_for_delivery(order_id, current_user)

@router.post("/{order_id}/deliver", response_model=OrderOut)
async def mark_delivered(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
    db: Database = Depends(get_db),
    file: UploadFile = File(...)
):
    photo = await _proof_photo(file)
    return await asyncio.to_thread(OrderService(db).mark_delivered, order_id, current_user, photo)

# --- Admin ---

@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    return OrderService(db).cancel(order_id)

# --- Shared detail ---

@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_user)],
    db: Database = Depends(get_db)
):
    order = OrderService(db).get(order_id)
    user_id = str(current_user.id)
    if current_user.role.is_staff or user_id in (order.customer_id, order.delivery_boy_id):
        return order
    if current_user.role == UserRole.BUSINESS:
        business = BusinessService(db).get_by_owner(user_id)
        if business and str(business.id) == order.business_id:
            return order
    raise HTTPException(status_code=403, detail="You are not part of this order.")
