# FILE: backend/vyapar/services/business_service.py
# LOCALVYAPAR - BUSINESS SERVICE
# 1. One listing per owner; the profile form upserts it.
# 2. Premium = is_paid AND premium_status 'active' AND premium_until in the future.
# 3. Listing: shops without a name are hidden; premium first, then nearest, then unknown distance.

import re
import structlog
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from zoneinfo import ZoneInfo
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from fastapi import HTTPException

from ..core.change_feed import publish_change
from ..core.config import settings
from ..models.business import (
    BusinessInDB, BusinessOut, BusinessListing, BusinessProfileUpdate,
    LeadChannel, PremiumStatus, ReviewCreate, ReviewOut,
)
from ..models.common import ensure_utc, utcnow, to_object_id
from ..models.product import ProductStatus
from ..models.user import UserInDB
from . import geo_service

logger = structlog.get_logger(__name__)

LOCATION_UNAVAILABLE_NOTICE = "Location unavailable. Showing all shops instead of nearby ones."

BusinessLike = Union[BusinessInDB, Mapping[str, Any]]

def _field(business: BusinessLike, name: str) -> Any:
    if isinstance(business, Mapping):
        return business.get(name)
    return getattr(business, name, None)

def is_business_premium(business: Optional[BusinessLike], now: Optional[datetime] = None) -> bool:
    if not business:
        return False
    premium_until = ensure_utc(_field(business, "premium_until"))
    status = _field(business, "premium_status")
    if not _field(business, "is_paid") or premium_until is None:
        return False
    if getattr(status, "value", status) != PremiumStatus.ACTIVE.value:
        return False
    return premium_until > (now or utcnow())

def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)

def is_shop_open(business: Optional[BusinessLike], now: Optional[datetime] = None) -> bool:
    """Open when no hours are set. Hours are local to SHOP_TIMEZONE; both ends inclusive."""
    if not business:
        return True
    opening, closing = _field(business, "opening_time"), _field(business, "closing_time")
    if not opening or not closing:
        return True

    local = (now or utcnow()).astimezone(ZoneInfo(settings.SHOP_TIMEZONE))
    current = local.hour * 60 + local.minute
    start, end = _minutes(opening), _minutes(closing)
    if start <= end:
        return start <= current <= end
    # Overnight hours, e.g. 20:00 - 02:00
    return current >= start or current <= end

def whatsapp_link(contact_number: str) -> str:
    digits = re.sub(r"\D", "", contact_number or "")
    return f"https://wa.me/{digits}" if digits else ""

def to_business_out(doc: Mapping[str, Any], distance_km: Optional[float] = None, now: Optional[datetime] = None) -> BusinessOut:
    business = BusinessOut.model_validate(doc)
    business.premium_until = ensure_utc(business.premium_until)
    business.is_premium = is_business_premium(business, now)
    business.is_open = is_shop_open(business, now)
    business.distance_km = round(distance_km, 3) if distance_km is not None else None
    return business

def listing_sort_key(business: BusinessOut) -> Tuple[int, int, float]:
    return (
        0 if business.is_premium else 1,
        0 if business.distance_km is not None else 1,
        business.distance_km if business.distance_km is not None else 0.0,
    )

class BusinessService:
    def __init__(self, db: Database):
        self.db = db

    # --- Lookups ---

    def get_by_owner(self, owner_id: str) -> Optional[BusinessInDB]:
        doc = self.db.businesses.find_one({"owner_id": owner_id})
        return BusinessInDB.model_validate(doc) if doc else None

    def _get_doc(self, business_id: str) -> Dict[str, Any]:
        oid = to_object_id(business_id)
        doc = self.db.businesses.find_one({"_id": oid}) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Business not found")
        return doc

    def get(self, business_id: str) -> BusinessOut:
        return to_business_out(self._get_doc(business_id))

    def view(self, business_id: str) -> BusinessOut:
        """Returns the business and counts the visit."""
        oid = to_object_id(business_id)
        doc = self.db.businesses.find_one_and_update(
            {"_id": oid},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        ) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Business not found")
        return to_business_out(doc)

    def get_many(self, business_ids: List[str]) -> List[BusinessOut]:
        oids = [oid for oid in (to_object_id(b) for b in business_ids) if oid is not None]
        if not oids:
            return []
        return [to_business_out(doc) for doc in self.db.businesses.find({"_id": {"$in": oids}})]

    # --- Owner Actions ---

    def upsert_profile(self, owner: UserInDB, data: BusinessProfileUpdate) -> BusinessInDB:
        """Creates the owner's listing on first save, updates it afterwards."""
        owner_id = str(owner.id)
        fields = data.model_dump(mode="json", exclude={"address"}, exclude_unset=True)
        fields["address"] = data.address.compose()
        fields["pincode"] = data.address.pincode or None
        fields["whatsapp_link"] = whatsapp_link(data.contact_number)
        fields["area_code"] = (data.area_code or owner.area_code or settings.DEFAULT_AREA_CODE).upper()
        fields["updated_at"] = utcnow()

        defaults = {
            "owner_id": owner_id,
            "is_verified": False,
            "is_paid": False,
            "premium_status": PremiumStatus.NONE.value,
            "premium_until": None,
            "views": 0,
            "call_count": 0,
            "whatsapp_count": 0,
            "rating": 0.0,
            "review_count": 0,
            "created_at": utcnow(),
        }
        doc = self.db.businesses.find_one_and_update(
            {"owner_id": owner_id},
            {"$set": fields, "$setOnInsert": defaults},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.info("business.profile_saved", business_id=str(doc["_id"]), owner_id=owner_id)
        publish_change("businesses", doc["_id"], "updated", owner_id=owner_id)
        return BusinessInDB.model_validate(doc)

    def update_image(self, owner_id: str, image_url: str) -> BusinessInDB:
        doc = self.db.businesses.find_one_and_update(
            {"owner_id": owner_id},
            {"$set": {"image_url": image_url, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise HTTPException(status_code=404, detail="Save your shop profile before adding a photo.")
        publish_change("businesses", doc["_id"], "updated", owner_id=owner_id)
        return BusinessInDB.model_validate(doc)

    # --- Public Listing ---

    def _matching_product_business_ids(self, pattern: Dict[str, str]) -> List[str]:
        cursor = self.db.products.find(
            {"status": ProductStatus.APPROVED.value, "$or": [{"title": pattern}, {"description": pattern}]},
            {"business_id": 1},
        )
        return list({p["business_id"] for p in cursor})

    def list_businesses(
        self,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        near_me: bool = True,
        radius_km: float = geo_service.DEFAULT_RADIUS_KM,
        category: Optional[str] = None,
        search: Optional[str] = None,
        area_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BusinessListing:
        query: Dict[str, Any] = {"shop_name": {"$nin": [None, ""]}}
        if category and category.lower() != "all":
            query["category"] = category
        if area_code:
            query["area_code"] = area_code.upper()
        if search and search.strip():
            pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
            product_owners = [to_object_id(b) for b in self._matching_product_business_ids(pattern)]
            query["$or"] = [
                {"shop_name": pattern},
                {"category": pattern},
                {"_id": {"$in": [oid for oid in product_owners if oid is not None]}},
            ]

        docs = list(self.db.businesses.find(query))
        origin = (lat, lon) if lat is not None and lon is not None else None
        notice = None
        filter_active = False

        if origin is not None and near_me:
            filter_active = True
            pairs = geo_service.filter_within_radius(
                origin, docs, lambda d: (d.get("latitude"), d.get("longitude")), radius_km
            )
            items = [to_business_out(doc, dist, now) for doc, dist in pairs]
        else:
            if near_me and origin is None:
                notice = LOCATION_UNAVAILABLE_NOTICE
            items = [
                to_business_out(doc, geo_service.distance_to(origin, doc.get("latitude"), doc.get("longitude")), now)
                for doc in docs
            ]

        items.sort(key=listing_sort_key)
        return BusinessListing(items=items, radius_km=radius_km, radius_filter_active=filter_active, notice=notice)

    # --- Engagement ---

    def record_lead(self, business_id: str, channel: LeadChannel) -> BusinessOut:
        counter = "call_count" if channel == LeadChannel.CALL else "whatsapp_count"
        oid = to_object_id(business_id)
        doc = self.db.businesses.find_one_and_update(
            {"_id": oid}, {"$inc": {counter: 1}}, return_document=ReturnDocument.AFTER
        ) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Business not found")
        logger.info("business.lead_recorded", business_id=business_id, channel=channel.value)
        publish_change("businesses", oid, "updated", owner_id=doc.get("owner_id"))
        return to_business_out(doc)

    def add_review(self, business_id: str, reviewer: UserInDB, data: ReviewCreate) -> ReviewOut:
        business = self._get_doc(business_id)
        if business.get("owner_id") == str(reviewer.id):
            raise HTTPException(status_code=400, detail="You cannot review your own shop.")

        review = {
            "business_id": business_id,
            "user_id": str(reviewer.id),
            "user_name": reviewer.name,
            "user_photo_url": reviewer.photo_url,
            "rating": data.rating,
            "comment": data.comment.strip(),
            "created_at": utcnow(),
        }
        result = self.db.reviews.insert_one(review)
        review["_id"] = result.inserted_id

        ratings = [r["rating"] for r in self.db.reviews.find({"business_id": business_id}, {"rating": 1})]
        average = round(sum(ratings) / len(ratings), 1) if ratings else 0.0
        self.db.businesses.update_one(
            {"_id": business["_id"]},
            {"$set": {"rating": average, "review_count": len(ratings)}}
        )
        logger.info("business.review_added", business_id=business_id, rating=data.rating)
        publish_change("reviews", result.inserted_id, "created", business_id=business_id)
        publish_change("businesses", business["_id"], "updated", owner_id=business.get("owner_id"))
        return ReviewOut.model_validate(review)

    def list_reviews(self, business_id: str) -> List[ReviewOut]:
        cursor = self.db.reviews.find({"business_id": business_id}).sort("created_at", -1)
        return [ReviewOut.model_validate(r) for r in cursor]

    # --- Premium ---

    def unlock_premium(self, business_id: Union[str, ObjectId], transaction_id: Optional[str] = None, days: Optional[int] = None) -> BusinessInDB:
        oid = business_id if isinstance(business_id, ObjectId) else to_object_id(business_id)
        update: Dict[str, Any] = {
            "is_paid": True,
            "premium_status": PremiumStatus.ACTIVE.value,
            "premium_until": utcnow() + timedelta(days=days or settings.PREMIUM_DAYS),
            "updated_at": utcnow(),
        }
        if transaction_id:
            update["last_transaction_id"] = transaction_id
        doc = self.db.businesses.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        ) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Business not found")
        logger.info("business.premium_unlocked", business_id=str(oid), transaction_id=transaction_id)
        publish_change("businesses", oid, "updated", owner_id=doc.get("owner_id"))
        return BusinessInDB.model_validate(doc)

    def revoke_premium(self, business_id: str) -> BusinessInDB:
        oid = to_object_id(business_id)
        doc = self.db.businesses.find_one_and_update(
            {"_id": oid},
            {"$set": {"is_paid": False, "premium_status": PremiumStatus.NONE.value, "premium_until": None, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        ) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Business not found")
        logger.info("business.premium_revoked", business_id=business_id)
        publish_change("businesses", oid, "updated", owner_id=doc.get("owner_id"))
        return BusinessInDB.model_validate(doc)

    def set_verified(self, business_id: str, is_verified: bool) -> BusinessInDB:
        oid = to_object_id(business_id)
        doc = self.db.businesses.find_one_and_update(
            {"_id": oid},
            {"$set": {"is_verified": is_verified, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        ) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Business not found")
        publish_change("businesses", oid, "updated", owner_id=doc.get("owner_id"))
        return BusinessInDB.model_validate(doc)
