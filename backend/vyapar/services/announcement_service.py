# FILE: backend/vyapar/services/announcement_service.py
# LOCALVYAPAR - ANNOUNCEMENTS & PLATFORM CONFIG
# 1. Targeting: global reaches everyone; area matches area_code or city (case-insensitive); pincode matches exactly.
# 2. Anonymous viewers only see global announcements.
# 3. Platform config is a single document with _id 'platform'.

import structlog
from typing import Any, Dict, List, Optional
from pymongo import ReturnDocument
from pymongo.database import Database
from fastapi import HTTPException

from ..core.change_feed import publish_change
from ..models.announcement import (
    AnnouncementCreate, AnnouncementOut, AnnouncementUpdate, PlatformConfig, TargetType,
)
from ..models.common import utcnow, to_object_id
from ..models.user import UserInDB

logger = structlog.get_logger(__name__)

PLATFORM_CONFIG_ID = "platform"

def matches_viewer(announcement: AnnouncementOut, viewer: Optional[UserInDB]) -> bool:
    if not announcement.is_active:
        return False
    if announcement.target_type == TargetType.GLOBAL:
        return True
    if viewer is None:
        return False

    target = (announcement.target_value or "").strip()
    if announcement.target_type == TargetType.AREA:
        target = target.lower()
        return bool(target) and target in ((viewer.area_code or "").lower(), (viewer.city or "").lower())
    if announcement.target_type == TargetType.PINCODE:
        return bool(target) and viewer.pincode == target
    return False

def visible_for(announcements: List[AnnouncementOut], viewer: Optional[UserInDB]) -> List[AnnouncementOut]:
    """Announcements the viewer should see, newest first."""
    matched = [a for a in announcements if matches_viewer(a, viewer)]
    return sorted(matched, key=lambda a: a.created_at, reverse=True)

class AnnouncementService:
    def __init__(self, db: Database):
        self.db = db

    def list_all(self) -> List[AnnouncementOut]:
        cursor = self.db.announcements.find().sort("created_at", -1)
        return [AnnouncementOut.model_validate(a) for a in cursor]

    def list_active(self) -> List[AnnouncementOut]:
        cursor = self.db.announcements.find({"is_active": True})
        return [AnnouncementOut.model_validate(a) for a in cursor]

    def for_viewer(self, viewer: Optional[UserInDB]) -> List[AnnouncementOut]:
        return visible_for(self.list_active(), viewer)

    def create(self, data: AnnouncementCreate) -> AnnouncementOut:
        doc = data.model_dump(mode="json")
        doc["created_at"] = utcnow()
        result = self.db.announcements.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("announcement.created", announcement_id=str(result.inserted_id), target_type=data.target_type.value)
        publish_change("announcements", result.inserted_id, "created")
        return AnnouncementOut.model_validate(doc)

    def update(self, announcement_id: str, data: AnnouncementUpdate) -> AnnouncementOut:
        fields = data.model_dump(mode="json", exclude_unset=True)
        oid = to_object_id(announcement_id)
        if oid is None:
            raise HTTPException(status_code=404, detail="Announcement not found")
        if fields:
            doc = self.db.announcements.find_one_and_update(
                {"_id": oid}, {"$set": fields}, return_document=ReturnDocument.AFTER
            )
        else:
            doc = self.db.announcements.find_one({"_id": oid})
        if not doc:
            raise HTTPException(status_code=404, detail="Announcement not found")
        publish_change("announcements", oid, "updated")
        return AnnouncementOut.model_validate(doc)

    def delete(self, announcement_id: str):
        oid = to_object_id(announcement_id)
        result = self.db.announcements.delete_one({"_id": oid}) if oid else None
        if not result or result.deleted_count == 0:
            raise HTTPException(status_code=404, detail="Announcement not found")
        logger.info("announcement.deleted", announcement_id=announcement_id)
        publish_change("announcements", oid, "deleted")

    # --- Platform Config ---

    def get_config(self) -> PlatformConfig:
        doc = self.db.config.find_one({"_id": PLATFORM_CONFIG_ID})
        return PlatformConfig.model_validate(doc) if doc else PlatformConfig()

    def update_config(self, data: PlatformConfig) -> PlatformConfig:
        fields: Dict[str, Any] = data.model_dump(exclude={"last_updated"})
        fields["last_updated"] = utcnow()
        doc = self.db.config.find_one_and_update(
            {"_id": PLATFORM_CONFIG_ID},
            {"$set": fields},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.info("platform.config_updated", is_maintenance=fields["is_maintenance"])
        publish_change("config", PLATFORM_CONFIG_ID, "updated")
        return PlatformConfig.model_validate(doc)
