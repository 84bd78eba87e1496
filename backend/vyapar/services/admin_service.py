# FILE: backend/vyapar/services/admin_service.py
# LOCALVYAPAR - ADMIN SERVICE
# 1. Admins cannot change their own role or delete themselves.
# 2. Deleting a business owner removes their listing and its products.
# 3. expire_premium_listings() is run daily by the worker.

from collections import Counter
from datetime import datetime, timezone
from typing import List
from pymongo import ReturnDocument
from pymongo.database import Database
from fastapi import HTTPException
import logging

from ..core.change_feed import publish_change
from ..models.admin import UserAdminView
from ..models.business import BusinessInDB, PremiumStatus
from ..models.common import utcnow, to_object_id
from ..models.user import UserInDB, UserRole
from .business_service import BusinessService

logger = logging.getLogger(__name__)

USER_COLLECTION = "users"
ORDER_COLLECTION = "orders"

def get_all_users(db: Database) -> List[UserAdminView]:
    order_counts = Counter(o["customer_id"] for o in db[ORDER_COLLECTION].find({}, {"customer_id": 1}))
    users = []
    for doc in db[USER_COLLECTION].find({}, {"hashed_password": 0}).sort("created_at", -1):
        doc["order_count"] = order_counts.get(str(doc["_id"]), 0)
        users.append(UserAdminView.model_validate(doc))
    return users

def update_user_role(db: Database, actor: UserInDB, user_id: str, role: UserRole) -> UserAdminView:
    if str(actor.id) == user_id:
        raise HTTPException(status_code=400, detail="You cannot change your own role.")

    oid = to_object_id(user_id)
    doc = db[USER_COLLECTION].find_one_and_update(
        {"_id": oid},
        {"$set": {"role": role.value, "updated_at": utcnow()}},
        projection={"hashed_password": 0},
        return_document=ReturnDocument.AFTER,
    ) if oid else None
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")

    logger.info(f"--- [ADMIN] Role of user {user_id} set to {role.value} by {actor.id} ---")
    publish_change("users", oid, "updated", user_id=oid)
    doc["order_count"] = db[ORDER_COLLECTION].count_documents({"customer_id": user_id})
    return UserAdminView.model_validate(doc)

def delete_user(db: Database, actor: UserInDB, user_id: str):
    if str(actor.id) == user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account.")

    oid = to_object_id(user_id)
    if oid is None or not db[USER_COLLECTION].find_one({"_id": oid}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="User not found")

    business = db.businesses.find_one({"owner_id": user_id}, {"_id": 1})
    if business:
        delete_business(db, str(business["_id"]))
    db[USER_COLLECTION].delete_one({"_id": oid})
    logger.info(f"--- [ADMIN] User {user_id} deleted by {actor.id} ---")
    publish_change("users", oid, "deleted", user_id=oid)

def delete_business(db: Database, business_id: str):
    oid = to_object_id(business_id)
    result = db.businesses.delete_one({"_id": oid}) if oid else None
    if not result or result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Business not found")
    removed = db.products.delete_many({"business_id": business_id}).deleted_count
    db.reviews.delete_many({"business_id": business_id})
    logger.info(f"--- [ADMIN] Business {business_id} deleted with {removed} products ---")
    publish_change("businesses", oid, "deleted")
    if removed:
        publish_change("products", business_id, "deleted", business_id=business_id)

def delete_product(db: Database, product_id: str):
    oid = to_object_id(product_id)
    doc = db.products.find_one_and_delete({"_id": oid}) if oid else None
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info(f"--- [ADMIN] Product {product_id} deleted ---")
    publish_change("products", oid, "deleted", business_id=doc.get("business_id"))

def set_premium(db: Database, business_id: str, active: bool) -> BusinessInDB:
    service = BusinessService(db)
    if active:
        return service.unlock_premium(business_id, transaction_id="admin-grant")
    return service.revoke_premium(business_id)

def set_verification(db: Database, business_id: str, is_verified: bool) -> BusinessInDB:
    return BusinessService(db).set_verified(business_id, is_verified)

def expire_premium_listings(db: Database) -> int:
    now = datetime.now(timezone.utc)
    result = db.businesses.update_many(
        {"premium_status": PremiumStatus.ACTIVE.value, "premium_until": {"$lt": now}},
        {"$set": {"premium_status": PremiumStatus.EXPIRED.value, "updated_at": now}}
    )
    if result.modified_count:
        logger.info(f"--- [ADMIN] Expired {result.modified_count} premium listings ---")
        publish_change("businesses", "*", "updated")
    return result.modified_count
