# FILE: backend/vyapar/celery_app.py

from celery import Celery
from celery.schedules import crontab
import logging

from .core.config import settings

celery_app = Celery("vyapar", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    beat_schedule={
        "expire-premium-listings-daily": {
            "task": "expire_premium_listings_task",
            # 00:05 IST
            "schedule": crontab(hour=18, minute=35),
        },
    },
)

celery_app.autodiscover_tasks([
    'vyapar.tasks.premium_expiry',
])

logging.getLogger(__name__).info("--- [Celery App] Celery application configured successfully. ---")
