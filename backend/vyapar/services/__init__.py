# FILE: backend/vyapar/services/__init__.py
# LOCALVYAPAR - SERVICE REGISTRY

from . import (
    admin_service,
    announcement_service,
    audio_service,
    business_service,
    dashboard_service,
    email_service,
    geo_service,
    image_service,
    llm_service,
    order_lifecycle,
    order_service,
    payment_service,
    product_service,
    session_service,
    user_service,
)
