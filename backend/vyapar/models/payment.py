from pydantic import BaseModel
from typing import Any, Dict, Optional

class PaymentOrderOut(BaseModel):
    order_id: str
    payment_session_id: Optional[str] = None
    order_amount: float
    order_currency: str = "INR"

class PaymentVerifyOut(BaseModel):
    order_id: str
    order_status: str
    premium_unlocked: bool = False
    gateway: Dict[str, Any] = {}
