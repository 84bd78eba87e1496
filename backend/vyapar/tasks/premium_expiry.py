# FILE: backend/vyapar/tasks/premium_expiry.py

import logging

from ..celery_app import celery_app
from ..core.db import connect_to_mongo, connect_to_redis
from ..services import admin_service

logger = logging.getLogger(__name__)

@celery_app.task(name="expire_premium_listings_task")
def expire_premium_listings_task() -> int:
    """Flips listings whose premium window has passed from 'active' to 'expired'."""
    db = connect_to_mongo()
    connect_to_redis()
    expired = admin_service.expire_premium_listings(db)
    logger.info(f"--- [Premium Expiry] {expired} listings expired ---")
    return expired
