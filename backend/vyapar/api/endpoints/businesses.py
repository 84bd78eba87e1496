# FILE: backend/vyapar/api/endpoints/businesses.py
# LOCALVYAPAR - BUSINESS ENDPOINTS
# 1. Listing is public; a missing location degrades to an unfiltered list with a notice.
# 2. GET /{id} counts a view; POST /{id}/leads counts a call or WhatsApp tap.

import asyncio
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from typing import Annotated, List, Optional
from pymongo.database import Database

from ...core.db import get_db
from ...core.exceptions import ImageDecodeError
from ...models.business import (
    BusinessInDB, BusinessListing, BusinessOut, BusinessProfileUpdate,
    LeadEvent, ReviewCreate, ReviewOut,
)
from ...models.product import ProductOut
from ...models.user import UserInDB
from ...services import geo_service, image_service
from ...services.business_service import BusinessService, to_business_out
from ...services.product_service import ProductService
from .dependencies import get_current_user, get_current_business_user, provider_http_error

router = APIRouter()

@router.get("", response_model=BusinessListing)
def list_businesses(
    db: Database = Depends(get_db),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
    near_me: bool = True,
    radius_km: float = Query(default=geo_service.DEFAULT_RADIUS_KM, gt=0, le=100),
    category: Optional[str] = None,
    search: Optional[str] = Query(default=None, max_length=100),
    area_code: Optional[str] = None,
):
    return BusinessService(db).list_businesses(
        lat=lat, lon=lon, near_me=near_me, radius_km=radius_km,
        category=category, search=search, area_code=area_code,
    )

# --- Owner ---

def _owned_business(db: Database, owner: UserInDB) -> BusinessInDB:
    business = BusinessService(db).get_by_owner(str(owner.id))
    if not business:
        raise HTTPException(status_code=404, detail="You have not created a shop profile yet.")
    return business

@router.get("/me", response_model=BusinessOut)
def get_my_business(
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    business = _owned_business(db, current_user)
    return to_business_out(business.model_dump(by_alias=True))

@router.put("/me", response_model=BusinessOut)
def save_my_business(
    data: BusinessProfileUpdate,
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    business = BusinessService(db).upsert_profile(current_user, data)
    return to_business_out(business.model_dump(by_alias=True))

@router.post("/me/image", response_model=BusinessOut)
async def upload_business_image(
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db),
    file: UploadFile = File(...)
):
    raw = await file.read()
    try:
        image_url = await asyncio.to_thread(
            image_service.compress_image, raw, max_size_kb=image_service.DEFAULT_MAX_SIZE_KB
        )
    except ImageDecodeError as e:
        raise provider_http_error(e)
    business = await asyncio.to_thread(BusinessService(db).update_image, str(current_user.id), image_url)
    return to_business_out(business.model_dump(by_alias=True))

# --- Public detail ---

@router.get("/{business_id}", response_model=BusinessOut)
def get_business(business_id: str, db: Database = Depends(get_db)):
    return BusinessService(db).view(business_id)

@router.get("/{business_id}/products", response_model=List[ProductOut])
def list_business_products(business_id: str, db: Database = Depends(get_db)):
    return ProductService(db).list_approved(business_id)

@router.post("/{business_id}/leads", response_model=BusinessOut)
def record_lead(business_id: str, event: LeadEvent, db: Database = Depends(get_db)):
    return BusinessService(db).record_lead(business_id, event.channel)

@router.get("/{business_id}/reviews", response_model=List[ReviewOut])
def list_reviews(business_id: str, db: Database = Depends(get_db)):
    return BusinessService(db).list_reviews(business_id)

@router.post("/{business_id}/reviews", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def add_review(
    business_id: str,
    data: ReviewCreate,
    current_user: Annotated[UserInDB, Depends(get_current_user)],
    db: Database = Depends(get_db)
):
    return BusinessService(db).add_review(business_id, current_user, data)
