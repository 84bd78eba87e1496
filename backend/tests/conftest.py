import io

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from PIL import Image

from vyapar.core.config import settings
from vyapar.core.db import get_db
from vyapar.core.lifespan import create_mongo_indexes
from vyapar.core.security import create_access_token, get_password_hash
from vyapar.main import app
from vyapar.models.common import utcnow
from vyapar.models.user import UserInDB

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def provider_settings(monkeypatch):
    """Every test starts with no provider credentials configured."""
    monkeypatch.setattr(settings, "LLM_API_KEY", "")
    monkeypatch.setattr(settings, "CASHFREE_APP_ID", "")
    monkeypatch.setattr(settings, "CASHFREE_SECRET_KEY", "")
    monkeypatch.setattr(settings, "SMTP_USER", "")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "")


@pytest.fixture
def db():
    database = mongomock.MongoClient().localvyapar_test
    create_mongo_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(role="customer", **fields) -> UserInDB:
        doc = {
            "name": f"Test {role.title()}",
            "email": f"{role}-{ObjectId()}@example.com",
            "role": role,
            "hashed_password": PASSWORD_HASH,
            "favorites": [],
            "country": "India",
            "created_at": utcnow(),
        }
        doc.update(fields)
        result = db.users.insert_one(doc)
        return UserInDB.model_validate(db.users.find_one({"_id": result.inserted_id}))
    return _make


@pytest.fixture
def make_business(db):
    def _make(owner: UserInDB, **fields) -> dict:
        doc = {
            "owner_id": str(owner.id),
            "shop_name": "Sharma General Store",
            "category": "Groceries",
            "address": "MG Road, Near Temple, Jhansi, UP, India - 284001",
            "pincode": "284001",
            "area_code": "JHP",
            "contact_number": "+91 98765 43210",
            "whatsapp_link": "https://wa.me/919876543210",
            "is_verified": False,
            "is_paid": False,
            "premium_status": "none",
            "premium_until": None,
            "views": 0,
            "call_count": 0,
            "whatsapp_count": 0,
            "rating": 0.0,
            "review_count": 0,
            "created_at": utcnow(),
        }
        doc.update(fields)
        doc["_id"] = db.businesses.insert_one(doc).inserted_id
        return doc
    return _make


@pytest.fixture
def make_product(db):
    def _make(business_id, status="approved", **fields) -> dict:
        doc = {
            "business_id": str(business_id),
            "title": "Basmati Rice 5kg",
            "price": 450.0,
            "description": "Aged long grain rice",
            "status": status,
            "created_at": utcnow(),
        }
        doc.update(fields)
        doc["_id"] = db.products.insert_one(doc).inserted_id
        return doc
    return _make


def auth_headers(user: UserInDB) -> dict:
    token = create_access_token({"id": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def image_bytes(size=(800, 600), noise=False, fmt="JPEG") -> bytes:
    if noise:
        image = Image.effect_noise(size, 80).convert("RGB")
    else:
        image = Image.new("RGB", size, (200, 120, 40))
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, quality=95)
    return buffer.getvalue()
