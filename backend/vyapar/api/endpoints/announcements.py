# FILE: backend/vyapar/api/endpoints/announcements.py

from fastapi import APIRouter, Depends, status
from typing import Annotated, List, Optional
from pymongo.database import Database

from ...core.db import get_db
from ...models.announcement import AnnouncementCreate, AnnouncementOut, AnnouncementUpdate, PlatformConfig
from ...models.user import UserInDB
from ...services.announcement_service import AnnouncementService
from .dependencies import get_optional_user, get_current_admin_user

router = APIRouter()

@router.get("", response_model=List[AnnouncementOut])
def list_my_announcements(
    current_user: Annotated[Optional[UserInDB], Depends(get_optional_user)],
    db: Database = Depends(get_db)
):
    """Active announcements targeted at the caller, newest first. Anonymous callers get global ones."""
    return AnnouncementService(db).for_viewer(current_user)

@router.get("/config", response_model=PlatformConfig)
def get_platform_config(db: Database = Depends(get_db)):
    return AnnouncementService(db).get_config()

# --- Admin ---

@router.get("/all", response_model=List[AnnouncementOut])
def list_all_announcements(
    current_user: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    return AnnouncementService(db).list_all()

@router.post("", response_model=AnnouncementOut, status_code=status.HTTP_201_CREATED)
def create_announcement(
    data: AnnouncementCreate,
    current_user: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    return AnnouncementService(db).create(data)

@router.patch("/{announcement_id}", response_model=AnnouncementOut)
def update_announcement(
    announcement_id: str,
    data: AnnouncementUpdate,
    current_user: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    return AnnouncementService(db).update(announcement_id, data)

@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_announcement(
    announcement_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    AnnouncementService(db).delete(announcement_id)

@router.put("/config", response_model=PlatformConfig)
def update_platform_config(
    data: PlatformConfig,
    current_user: Annotated[UserInDB, Depends(get_current_admin_user)],
    db: Database = Depends(get_db)
):
    return AnnouncementService(db).update_config(data)
