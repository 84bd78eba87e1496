# FILE: backend/vyapar/services/payment_service.py
# LOCALVYAPAR - PREMIUM PAYMENTS (CASHFREE)
# 1. Both calls fail fast with ConfigurationError when credentials are unset. No simulated orders.
# 2. Gateway orders are recorded in 'payments' so verify() only unlocks the payer's own listing.
# 3. A PAID order unlocks premium once; repeat verifications are idempotent.

import time
import structlog
from typing import Any, Dict
from pymongo.database import Database
from fastapi import HTTPException
import httpx

from ..core.config import settings
from ..core.exceptions import ConfigurationError, ProviderError
from ..models.common import utcnow
from ..models.payment import PaymentOrderOut, PaymentVerifyOut
from ..models.user import UserInDB
from .business_service import BusinessService

logger = structlog.get_logger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Payment gateway is not configured. Set CASHFREE_APP_ID and CASHFREE_SECRET_KEY."
PAID = "PAID"
FALLBACK_PHONE = "9999999999"

def _headers() -> Dict[str, str]:
    if not settings.CASHFREE_APP_ID or not settings.CASHFREE_SECRET_KEY:
        raise ConfigurationError(MISSING_CREDENTIALS_MESSAGE)
    return {
        "x-api-version": settings.CASHFREE_API_VERSION,
        "Content-Type": "application/json",
        "x-client-id": settings.CASHFREE_APP_ID,
        "x-client-secret": settings.CASHFREE_SECRET_KEY,
    }

def _request(method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
    headers = _headers()
    url = f"{settings.CASHFREE_BASE_URL.rstrip('/')}{path}"
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        logger.error("payment.gateway_error", path=path, status=e.response.status_code, body=e.response.text[:500])
        raise ProviderError(f"Payment gateway rejected the request ({e.response.status_code}).") from e
    except (httpx.HTTPError, ValueError) as e:
        logger.error("payment.gateway_unreachable", path=path, error=str(e))
        raise ProviderError("Payment gateway is unreachable.") from e

def create_premium_order(db: Database, owner: UserInDB) -> PaymentOrderOut:
    _headers()  # fail before touching the database
    business = BusinessService(db).get_by_owner(str(owner.id))
    if not business:
        raise HTTPException(status_code=400, detail="Create your shop profile before upgrading to premium.")

    order_id = f"LVP_{business.id}_{int(time.time())}"
    body = {
        "order_id": order_id,
        "order_amount": round(settings.PREMIUM_PRICE, 2),
        "order_currency": "INR",
        "customer_details": {
            "customer_id": str(owner.id),
            "customer_email": owner.email,
            "customer_phone": owner.phone or FALLBACK_PHONE,
        },
        "order_meta": {
            "return_url": f"{settings.APP_URL}/dashboard?order_id={{order_id}}",
        },
    }
    data = _request("POST", "/orders", json=body)
    gateway_order_id = data.get("order_id") or order_id
    session_id = data.get("payment_session_id")
    if not session_id:
        raise ProviderError("Payment gateway did not return a payment session.")

    db.payments.insert_one({
        "order_id": gateway_order_id,
        "business_id": str(business.id),
        "user_id": str(owner.id),
        "amount": body["order_amount"],
        "currency": "INR",
        "status": data.get("order_status", "ACTIVE"),
        "created_at": utcnow(),
        "verified_at": None,
    })
    logger.info("payment.order_created", order_id=gateway_order_id, business_id=str(business.id))
    return PaymentOrderOut(
        order_id=gateway_order_id,
        payment_session_id=session_id,
        order_amount=body["order_amount"],
        order_currency="INR",
    )

def verify_premium_order(db: Database, owner: UserInDB, order_id: str) -> PaymentVerifyOut:
    _headers()
    record = db.payments.find_one({"order_id": order_id, "user_id": str(owner.id)})
    if not record:
        raise HTTPException(status_code=404, detail="Payment not found")

    data = _request("GET", f"/orders/{order_id}")
    order_status = str(data.get("order_status", "UNKNOWN"))
    unlocked = False

    if order_status == PAID:
        claimed = db.payments.find_one_and_update(
            {"_id": record["_id"], "verified_at": None},
            {"$set": {"status": PAID, "verified_at": utcnow()}},
        )
        if claimed:
            BusinessService(db).unlock_premium(record["business_id"], transaction_id=order_id)
        unlocked = True
    else:
        db.payments.update_one({"_id": record["_id"]}, {"$set": {"status": order_status}})

    logger.info("payment.verified", order_id=order_id, order_status=order_status, premium_unlocked=unlocked)
    return PaymentVerifyOut(order_id=order_id, order_status=order_status, premium_unlocked=unlocked, gateway=data)
