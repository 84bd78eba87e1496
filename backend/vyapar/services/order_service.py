# FILE: backend/vyapar/services/order_service.py
# LOCALVYAPAR - ORDER SERVICE
# 1. CLAIM: one conditional write on {status: pending, delivery_boy_id: null}; the loser gets 409.
# 2. Riders without a saved phone cannot claim; the order is left untouched.
# 3. Every later transition is conditional on the current status and the assigned rider.
# 4. Proof photos are written in the same update as the status they evidence.

import structlog
from typing import Any, Dict, List, Optional
from pymongo import ReturnDocument
from pymongo.database import Database
from fastapi import HTTPException

from ..core.change_feed import publish_change
from ..models.common import utcnow, to_object_id
from ..models.order import OrderCreate, OrderOut, OrderStatus
from ..models.product import ProductStatus
from ..models.user import UserInDB
from . import order_lifecycle
from .user_service import ensure_delivery_id

logger = structlog.get_logger(__name__)

NO_PHONE_MESSAGE = "Please add your phone number in your profile before accepting orders."
INCOMPLETE_ADDRESS_MESSAGE = "Please add your house number and address in your profile before ordering."

def to_order_out(doc: Dict[str, Any]) -> OrderOut:
    order = OrderOut.model_validate(doc)
    order.stage_index = order_lifecycle.stage_index(order.status)
    order.progress = order_lifecycle.progress_fraction(order.status)
    return order

class OrderService:
    def __init__(self, db: Database):
        self.db = db

    def _publish(self, doc: Dict[str, Any], action: str):
        publish_change(
            "orders", doc["_id"], action,
            customer_id=doc.get("customer_id"),
            business_id=doc.get("business_id"),
            delivery_boy_id=doc.get("delivery_boy_id"),
        )

    def _get_doc(self, order_id: str) -> Dict[str, Any]:
        oid = to_object_id(order_id)
        doc = self.db.orders.find_one({"_id": oid}) if oid else None
        if not doc:
            raise HTTPException(status_code=404, detail="Order not found")
        return doc

    def get(self, order_id: str) -> OrderOut:
        return to_order_out(self._get_doc(order_id))

    def next_display_id(self) -> str:
        """Atomic per-year sequence; numbers are never reused, even after deletes."""
        year = utcnow().year
        counter = self.db.counters.find_one_and_update(
            {"_id": f"orders-{year}"},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return f"LV-{year}-{counter['seq']:05d}"

    # --- Customer ---

    def place_order(self, customer: UserInDB, data: OrderCreate) -> OrderOut:
        if not customer.house_no or not customer.city:
            raise HTTPException(status_code=400, detail=INCOMPLETE_ADDRESS_MESSAGE)

        product_oid = to_object_id(data.product_id)
        product = self.db.products.find_one({"_id": product_oid}) if product_oid else None
        if not product or product.get("status") != ProductStatus.APPROVED.value:
            raise HTTPException(status_code=404, detail="Product not available")

        business_oid = to_object_id(product["business_id"])
        business = self.db.businesses.find_one({"_id": business_oid}) if business_oid else None
        if not business:
            raise HTTPException(status_code=404, detail="Shop not found")

        now = utcnow()
        order = {
            "display_order_id": self.next_display_id(),
            "customer_id": str(customer.id),
            "customer_name": customer.name,
            "customer_delivery_id": ensure_delivery_id(self.db, customer),
            "customer_phone": customer.phone,
            "address": customer.full_address,
            "business_id": str(business["_id"]),
            "shop_name": business.get("shop_name", ""),
            "shop_phone": business.get("contact_number"),
            "shop_address": business.get("address"),
            "product_id": str(product["_id"]),
            "product_title": product["title"],
            "price": product["price"],
            "delivery_boy_id": None,
            "delivery_boy_name": None,
            "delivery_boy_phone": None,
            "status": OrderStatus.PENDING.value,
            "pickup_photo": None,
            "delivery_photo": None,
            "created_at": now,
            "updated_at": now,
        }
        result = self.db.orders.insert_one(order)
        order["_id"] = result.inserted_id
        logger.info("order.placed", order_id=str(result.inserted_id), display_order_id=order["display_order_id"])
        self._publish(order, "created")
        return to_order_out(order)

    def list_for_customer(self, customer_id: str) -> List[OrderOut]:
        cursor = self.db.orders.find({"customer_id": customer_id}).sort("created_at", -1)
        return [to_order_out(o) for o in cursor]

    # --- Shop ---

    def list_for_business(self, business_id: str) -> List[OrderOut]:
        cursor = self.db.orders.find({"business_id": business_id}).sort("created_at", -1)
        return [to_order_out(o) for o in cursor]

    # --- Rider ---

    def list_available(self) -> List[OrderOut]:
        cursor = self.db.orders.find(
            {"status": OrderStatus.PENDING.value, "delivery_boy_id": None}
        ).sort("created_at", 1)
        return [to_order_out(o) for o in cursor]

    def list_for_rider(self, rider_id: str, statuses: Optional[List[OrderStatus]] = None) -> List[OrderOut]:
        query: Dict[str, Any] = {"delivery_boy_id": rider_id}
        if statuses:
            query["status"] = {"$in": [s.value for s in statuses]}
        cursor = self.db.orders.find(query).sort("updated_at", -1)
        return [to_order_out(o) for o in cursor]

    def claim(self, order_id: str, rider: UserInDB) -> OrderOut:
        if not rider.phone or not rider.phone.strip():
            logger.info("order.claim_rejected_no_phone", order_id=order_id, rider_id=str(rider.id))
            raise HTTPException(status_code=400, detail=NO_PHONE_MESSAGE)

        oid = to_object_id(order_id)
        if oid is None:
            raise HTTPException(status_code=404, detail="Order not found")

        now = utcnow()
        doc = self.db.orders.find_one_and_update(
            {"_id": oid, "status": OrderStatus.PENDING.value, "delivery_boy_id": None},
            {"$set": {
                "status": OrderStatus.ASSIGNED.value,
                "delivery_boy_id": str(rider.id),
                "delivery_boy_name": rider.name,
                "delivery_boy_phone": rider.phone,
                "assigned_at": now,
                "updated_at": now,
            }},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            self._get_doc(order_id)
            raise HTTPException(status_code=409, detail="This order has already been taken by another rider.")

        logger.info("order.claimed", order_id=order_id, rider_id=str(rider.id))
        self._publish(doc, "updated")
        return to_order_out(doc)

    def _advance(self, order_id: str, rider: UserInDB, target: OrderStatus, photo: Optional[str] = None) -> OrderOut:
        current = self._get_doc(order_id)
        rider_id = str(rider.id)
        if current.get("delivery_boy_id") != rider_id:
            raise HTTPException(status_code=403, detail="Only the assigned rider can update this order.")
        if not order_lifecycle.can_transition(current["status"], target):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot move order from '{current['status']}' to '{target.value}'.",
            )

        now = utcnow()
        update: Dict[str, Any] = {"status": target.value, "updated_at": now}
        if order_lifecycle.requires_photo(target):
            if not photo:
                raise HTTPException(status_code=400, detail="A proof photo is required for this step.")
            update[order_lifecycle.PHOTO_FIELD_FOR[target]] = photo
        timestamp_field = order_lifecycle.TIMESTAMP_FIELD_FOR.get(target)
        if timestamp_field:
            update[timestamp_field] = now

        doc = self.db.orders.find_one_and_update(
            {"_id": current["_id"], "status": current["status"], "delivery_boy_id": rider_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise HTTPException(status_code=409, detail="Order changed while you were updating it. Please refresh.")

        logger.info("order.status_changed", order_id=order_id, status=target.value, rider_id=rider_id)
        self._publish(doc, "updated")
        return to_order_out(doc)

    def mark_picked_up(self, order_id: str, rider: UserInDB, photo: str) -> OrderOut:
        return self._advance(order_id, rider, OrderStatus.PICKED_UP, photo)

    def mark_out_for_delivery(self, order_id: str, rider: UserInDB) -> OrderOut:
        return self._advance(order_id, rider, OrderStatus.OUT_FOR_DELIVERY)

    def mark_delivered(self, order_id: str, rider: UserInDB, photo: str) -> OrderOut:
        return self._advance(order_id, rider, OrderStatus.DELIVERED, photo)

    # --- Admin ---

    def list_all(self, status: Optional[OrderStatus] = None) -> List[OrderOut]:
        query = {"status": status.value} if status else {}
        return [to_order_out(o) for o in self.db.orders.find(query).sort("created_at", -1)]

    def cancel(self, order_id: str) -> OrderOut:
        current = self._get_doc(order_id)
        if not order_lifecycle.can_transition(current["status"], OrderStatus.CANCELLED):
            raise HTTPException(status_code=400, detail=f"A '{current['status']}' order cannot be cancelled.")

        now = utcnow()
        doc = self.db.orders.find_one_and_update(
            {"_id": current["_id"], "status": current["status"]},
            {"$set": {"status": OrderStatus.CANCELLED.value, "cancelled_at": now, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise HTTPException(status_code=409, detail="Order changed while cancelling. Please refresh.")

        logger.info("order.cancelled", order_id=order_id)
        self._publish(doc, "updated")
        return to_order_out(doc)
