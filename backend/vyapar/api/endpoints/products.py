# FILE: backend/vyapar/api/endpoints/products.py

from fastapi import APIRouter, Depends, status
from typing import Annotated, List
from pymongo.database import Database

from ...core.db import get_db
from ...models.product import ModerationDecision, ProductCreate, ProductOut
from ...models.user import UserInDB
from ...services.product_service import ProductService
from .dependencies import get_current_business_user, get_current_staff_user

router = APIRouter()

@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    """Submits a product for moderation. It stays hidden from customers until approved."""
    return ProductService(db).create(str(current_user.id), data)

@router.get("/mine", response_model=List[ProductOut])
def list_my_products(
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    return ProductService(db).list_for_owner(str(current_user.id))

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_product(
    product_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    ProductService(db).delete_own(str(current_user.id), product_id)

@router.get("/pending", response_model=List[ProductOut])
def list_pending_products(
    current_user: Annotated[UserInDB, Depends(get_current_staff_user)],
    db: Database = Depends(get_db)
):
    return ProductService(db).list_pending()

@router.patch("/{product_id}/status", response_model=ProductOut)
def moderate_product(
    product_id: str,
    decision: ModerationDecision,
    current_user: Annotated[UserInDB, Depends(get_current_staff_user)],
    db: Database = Depends(get_db)
):
    return ProductService(db).moderate(product_id, decision.status)
