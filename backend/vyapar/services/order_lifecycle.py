# FILE: backend/vyapar/services/order_lifecycle.py
# LOCALVYAPAR - ORDER STAGE TRACKER
# 1. Fixed stage sequence; 'cancelled' sits outside it and renders no progress.
# 2. Transitions move exactly one stage forward, or to 'cancelled' (admin only).

from typing import Dict, Optional, Union

from ..models.order import OrderStatus

ORDER_STAGES = (
    OrderStatus.PENDING,
    OrderStatus.ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

# Statuses in which a rider is holding the parcel or on the way to the shop
ACTIVE_DELIVERY_STATUSES = (OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.OUT_FOR_DELIVERY)

# Forward transitions that need a proof photo written with the status
PHOTO_FIELD_FOR: Dict[OrderStatus, str] = {
    OrderStatus.PICKED_UP: "pickup_photo",
    OrderStatus.DELIVERED: "delivery_photo",
}

TIMESTAMP_FIELD_FOR: Dict[OrderStatus, str] = {
    OrderStatus.ASSIGNED: "assigned_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

def _coerce(status: Union[OrderStatus, str]) -> Optional[OrderStatus]:
    try:
        return OrderStatus(status)
    except ValueError:
        return None

def stage_index(status: Union[OrderStatus, str]) -> int:
    """Zero-based position in ORDER_STAGES, or -1 for cancelled/unknown statuses."""
    value = _coerce(status)
    if value is None or value not in ORDER_STAGES:
        return -1
    return ORDER_STAGES.index(value)

def should_render_progress(status: Union[OrderStatus, str]) -> bool:
    return stage_index(status) != -1

def progress_fraction(status: Union[OrderStatus, str]) -> Optional[float]:
    index = stage_index(status)
    if index == -1:
        return None
    return index / (len(ORDER_STAGES) - 1)

def next_stage(status: Union[OrderStatus, str]) -> Optional[OrderStatus]:
    index = stage_index(status)
    if index == -1 or index == len(ORDER_STAGES) - 1:
        return None
    return ORDER_STAGES[index + 1]

def can_transition(current: Union[OrderStatus, str], target: Union[OrderStatus, str]) -> bool:
    current_value, target_value = _coerce(current), _coerce(target)
    if current_value is None or target_value is None:
        return False
    if target_value == OrderStatus.CANCELLED:
        return current_value not in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)
    return next_stage(current_value) == target_value

def requires_photo(target: Union[OrderStatus, str]) -> bool:
    value = _coerce(target)
    return value in PHOTO_FIELD_FOR
