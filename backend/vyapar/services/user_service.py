# FILE: backend/vyapar/services/user_service.py
# LOCALVYAPAR - USER SERVICE
# 1. Email lookups are case-insensitive.
# 2. Signup is limited to customer/business/delivery-boy; staff roles come from an admin.
# 3. Customers get a delivery id (LV-<AREA>-<4 digits>) the first time one is needed.

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from bson import ObjectId
from fastapi import HTTPException
from typing import List, Optional, Union
import hashlib
import logging
import re
import secrets

from ..core.change_feed import publish_change
from ..core.config import settings
from ..core.security import verify_password, get_password_hash, create_reset_token, decode_token
from ..models.common import utcnow, to_object_id
from ..models.user import UserInDB, UserCreate, UserRole, ProfileUpdate, SELF_SERVICE_ROLES

logger = logging.getLogger(__name__)

def get_user_by_email(db: Database, email: str) -> Optional[UserInDB]:
    query = {"email": {"$regex": f"^{re.escape(email)}$", "$options": "i"}}
    user_dict = db.users.find_one(query)
    if user_dict:
        return UserInDB.model_validate(user_dict)
    return None

def get_user_by_id(db: Database, user_id: Union[ObjectId, str]) -> Optional[UserInDB]:
    oid = user_id if isinstance(user_id, ObjectId) else to_object_id(user_id)
    if oid is None:
        return None
    user_dict = db.users.find_one({"_id": oid})
    if user_dict:
        return UserInDB.model_validate(user_dict)
    return None

def _require_user(db: Database, user_id: str) -> UserInDB:
    user = get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

def authenticate(db: Database, email: str, password: str) -> Optional[UserInDB]:
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user

def generate_delivery_id(area_code: Optional[str] = None) -> str:
    area = (area_code or settings.DEFAULT_AREA_CODE).strip().upper() or settings.DEFAULT_AREA_CODE
    return f"LV-{area}-{secrets.randbelow(9000) + 1000}"

def create(db: Database, obj_in: UserCreate) -> UserInDB:
    if obj_in.role not in SELF_SERVICE_ROLES:
        raise HTTPException(status_code=400, detail="This role cannot be chosen at signup.")
    if get_user_by_email(db, obj_in.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user_data = obj_in.model_dump(mode="json")
    password = user_data.pop("password")
    user_data["hashed_password"] = get_password_hash(password)
    user_data["created_at"] = utcnow()
    user_data["favorites"] = []
    user_data["country"] = "India"
    if obj_in.role == UserRole.CUSTOMER:
        user_data["delivery_id"] = generate_delivery_id()

    try:
        result = db.users.insert_one(user_data)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = db.users.find_one({"_id": result.inserted_id})
    if not new_user:
        raise HTTPException(status_code=500, detail="User creation failed")

    logger.info(f"New {obj_in.role.value} account created: {result.inserted_id}")
    publish_change("users", result.inserted_id, "created", role=obj_in.role.value)
    return UserInDB.model_validate(new_user)

def update_last_login(db: Database, user_id: str):
    oid = to_object_id(user_id)
    if oid is not None:
        db.users.update_one({"_id": oid}, {"$set": {"last_login": utcnow()}})

def change_password(db: Database, user_id: str, old_pass: str, new_pass: str):
    user = _require_user(db, user_id)
    if not verify_password(old_pass, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid old password")

    db.users.update_one(
        {"_id": user.id},
        {"$set": {"hashed_password": get_password_hash(new_pass), "updated_at": utcnow()}}
    )

def _apply_update(db: Database, user_id: ObjectId, fields: dict) -> UserInDB:
    fields["updated_at"] = utcnow()
    db.users.update_one({"_id": user_id}, {"$set": fields})
    publish_change("users", user_id, "updated", user_id=user_id)
    updated = get_user_by_id(db, user_id)
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return updated

def update_profile(db: Database, user_id: str, data: ProfileUpdate) -> UserInDB:
    user = _require_user(db, user_id)
    fields = data.model_dump(exclude_unset=True)
    if not fields:
        return user
    if fields.get("area_code"):
        fields["area_code"] = fields["area_code"].strip().upper()
    return _apply_update(db, user.id, fields)

def set_photo(db: Database, user_id: str, photo_url: str) -> UserInDB:
    user = _require_user(db, user_id)
    return _apply_update(db, user.id, {"photo_url": photo_url})

def toggle_favorite(db: Database, user_id: str, business_id: str) -> List[str]:
    """Adds the business to the user's favourites, or removes it when already present."""
    user = _require_user(db, user_id)
    if not db.businesses.find_one({"_id": to_object_id(business_id)}):
        raise HTTPException(status_code=404, detail="Business not found")

    if business_id in user.favorites:
        db.users.update_one({"_id": user.id}, {"$pull": {"favorites": business_id}})
    else:
        db.users.update_one({"_id": user.id}, {"$addToSet": {"favorites": business_id}})
    publish_change("users", user.id, "updated", user_id=user.id)
    return _require_user(db, user_id).favorites

def ensure_delivery_id(db: Database, user: UserInDB) -> str:
    if user.delivery_id:
        return user.delivery_id
    delivery_id = generate_delivery_id(user.area_code)
    db.users.update_one({"_id": user.id}, {"$set": {"delivery_id": delivery_id}})
    return delivery_id

# --- Password Reset ---

def _password_fingerprint(hashed_password: str) -> str:
    # Derived from the stored hash: any password change voids outstanding reset tokens
    return hashlib.sha256(hashed_password.encode()).hexdigest()[:16]

def request_password_reset(db: Database, email: str) -> Optional[str]:
    """Returns a reset token for a known email, None otherwise. Callers must not reveal which."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    return create_reset_token({"id": str(user.id), "pwd": _password_fingerprint(user.hashed_password)})

def confirm_password_reset(db: Database, token: str, new_password: str):
    payload = decode_token(token, expected_type="reset")
    user = get_user_by_id(db, payload.get("id", ""))
    if not user:
        raise HTTPException(status_code=400, detail="Invalid reset token")
    if payload.get("pwd") != _password_fingerprint(user.hashed_password):
        raise HTTPException(status_code=400, detail="This reset link has already been used.")
    db.users.update_one(
        {"_id": user.id},
        {"$set": {"hashed_password": get_password_hash(new_password), "updated_at": utcnow()}}
    )
    logger.info(f"Password reset completed for user {user.id}")
