# FILE: backend/vyapar/api/endpoints/payments.py

from fastapi import APIRouter, Depends
from typing import Annotated
from pymongo.database import Database

from ...core.db import get_db
from ...core.exceptions import ConfigurationError, ProviderError
from ...models.payment import PaymentOrderOut, PaymentVerifyOut
from ...models.user import UserInDB
from ...services import payment_service
from .dependencies import get_current_business_user, provider_http_error

router = APIRouter()

@router.post("/premium", response_model=PaymentOrderOut)
def create_premium_order(
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    """Opens a gateway order for the premium upgrade. The client completes checkout with the session id."""
    try:
        return payment_service.create_premium_order(db, current_user)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)

@router.get("/premium/{order_id}", response_model=PaymentVerifyOut)
def verify_premium_order(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
    db: Database = Depends(get_db)
):
    try:
        return payment_service.verify_premium_order(db, current_user, order_id)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)
