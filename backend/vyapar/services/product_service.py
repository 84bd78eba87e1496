# FILE: backend/vyapar/services/product_service.py
# LOCALVYAPAR - PRODUCT MODERATION
# 1. Every new product starts 'pending' regardless of what the owner sends.
# 2. Customers only ever see 'approved' products.
# 3. Only staff (admin/moderator) change the status.

import structlog
from typing import Dict, List, Optional
from pymongo import ReturnDocument
from pymongo.database import Database
from fastapi import HTTPException

from ..core.change_feed import publish_change
from ..models.common import utcnow, to_object_id
from ..models.product import ProductCreate, ProductInDB, ProductOut, ProductStatus

logger = structlog.get_logger(__name__)

def count_by_status(products: List[ProductInDB]) -> Dict[str, int]:
    counts = {s.value: 0 for s in ProductStatus}
    for product in products:
        counts[product.status.value] += 1
    return counts

class ProductService:
    def __init__(self, db: Database):
        self.db = db

    def _business_id_for(self, owner_id: str) -> str:
        business = self.db.businesses.find_one({"owner_id": owner_id}, {"_id": 1})
        if not business:
            raise HTTPException(status_code=400, detail="Create your shop profile before adding products.")
        return str(business["_id"])

    def create(self, owner_id: str, data: ProductCreate) -> ProductOut:
        business_id = self._business_id_for(owner_id)
        product = data.model_dump(mode="json")
        product.update({
            "business_id": business_id,
            "status": ProductStatus.PENDING.value,
            "created_at": utcnow(),
        })
        result = self.db.products.insert_one(product)
        product["_id"] = result.inserted_id
        logger.info("product.submitted", product_id=str(result.inserted_id), business_id=business_id)
        publish_change("products", result.inserted_id, "created", business_id=business_id)
        return ProductOut.model_validate(product)

    def list_for_owner(self, owner_id: str) -> List[ProductOut]:
        business = self.db.businesses.find_one({"owner_id": owner_id}, {"_id": 1})
        if not business:
            return []
        return self.list_for_business(str(business["_id"]))

    def list_for_business(self, business_id: str, status: Optional[ProductStatus] = None) -> List[ProductOut]:
        query = {"business_id": business_id}
        if status is not None:
            query["status"] = status.value
        cursor = self.db.products.find(query).sort("created_at", -1)
        return [ProductOut.model_validate(p) for p in cursor]

    def list_approved(self, business_id: str) -> List[ProductOut]:
        return self.list_for_business(business_id, ProductStatus.APPROVED)

    def list_pending(self) -> List[ProductOut]:
        cursor = self.db.products.find({"status": ProductStatus.PENDING.value}).sort("created_at", 1)
        return [ProductOut.model_validate(p) for p in cursor]

    def get(self, product_id: str) -> ProductOut:
        oid = to_object_id(product_id)
        doc = self.db.products.find_one({"_id": oid}) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Product not found")
        return ProductOut.model_validate(doc)

    def delete_own(self, owner_id: str, product_id: str):
        product = self.get(product_id)
        if product.business_id != self._business_id_for(owner_id):
            raise HTTPException(status_code=403, detail="You can only delete your own products.")
        self.db.products.delete_one({"_id": product.id})
        logger.info("product.deleted", product_id=product_id)
        publish_change("products", product.id, "deleted", business_id=product.business_id)

    def moderate(self, product_id: str, status: ProductStatus) -> ProductOut:
        oid = to_object_id(product_id)
        doc = self.db.products.find_one_and_update(
            {"_id": oid},
            {"$set": {"status": status.value}},
            return_document=ReturnDocument.AFTER,
        ) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Product not found")
        logger.info("product.moderated", product_id=product_id, status=status.value)
        publish_change("products", oid, "updated", business_id=doc.get("business_id"))
        return ProductOut.model_validate(doc)
