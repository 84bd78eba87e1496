# FILE: backend/vyapar/api/endpoints/users.py

import asyncio
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from typing import Annotated, Any, Dict, List
from pymongo.database import Database

from ...core.db import get_db
from ...core.exceptions import ImageDecodeError
from ...models.user import UserOut, UserInDB, ProfileUpdate, PublicProfile
from .dependencies import get_current_user, provider_http_error
from ...services import user_service, image_service

router = APIRouter()

@router.get("/me", response_model=UserOut)
def get_current_user_profile(current_user: Annotated[UserInDB, Depends(get_current_user)]):
    """
    Retrieves the profile for the currently authenticated user.
    """
    return current_user

@router.patch("/me", response_model=UserOut)
def update_current_user_profile(
    data: ProfileUpdate,
    current_user: Annotated[UserInDB, Depends(get_current_user)],
    db: Database = Depends(get_db)
):
    return user_service.update_profile(db, str(current_user.id), data)

@router.post("/me/photo", response_model=UserOut)
async def upload_profile_photo(
    current_user: Annotated[UserInDB, Depends(get_current_user)],
    db: Database = Depends(get_db),
    file: UploadFile = File(...)
):
    raw = await file.read()
    try:
        photo_url = await asyncio.to_thread(
            image_service.compress_image, raw, max_size_kb=image_service.DEFAULT_MAX_SIZE_KB
        )
    except ImageDecodeError as e:
        raise provider_http_error(e)
    return await asyncio.to_thread(user_service.set_photo, db, str(current_user.id), photo_url)

@router.post("/me/favorites/{business_id}", response_model=Dict[str, List[str]])
def toggle_favorite(
    business_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_user)],
    db: Database = Depends(get_db)
) -> Any:
    return {"favorites": user_service.toggle_favorite(db, str(current_user.id), business_id)}

@router.get("/{user_id}", response_model=PublicProfile)
def get_public_profile(
    user_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_user)],
    db: Database = Depends(get_db)
):
    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return PublicProfile(
        id=str(user.id),
        name=user.name,
        role=user.role,
        photo_url=user.photo_url,
        city=user.city,
        area_code=user.area_code,
        is_staff=user.role.is_staff,
    )
