# FILE: backend/vyapar/api/endpoints/ai.py
# LOCALVYAPAR - AI ASSIST ENDPOINTS
# 1. Missing provider key -> 503; bad provider output -> 502.
# 2. Audio comes back as a WAV data URL in 'media'.

from fastapi import APIRouter, Depends, HTTPException
from typing import Annotated
from pymongo.database import Database

from ...core.db import get_db
from ...core.exceptions import ConfigurationError, ProviderError
from ...models.ai import (
    AudioOutput, DescriptionInput, DescriptionOutput, OrderBriefInput,
    ShopAudioIntroInput, SocialCaptionInput, SocialCaptionOutput,
    SupportChatInput, SupportChatOutput,
)
from ...models.user import UserInDB
from ...services import llm_service
from ...services.order_service import OrderService
from .dependencies import get_current_user, get_current_business_user, get_current_delivery_user, provider_http_error

router = APIRouter()

@router.post("/description", response_model=DescriptionOutput)
def generate_description(
    data: DescriptionInput,
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
):
    try:
        return llm_service.generate_product_description(data)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)

@router.post("/support", response_model=SupportChatOutput)
def support_chat(
    data: SupportChatInput,
    current_user: Annotated[UserInDB, Depends(get_current_user)],
):
    try:
        return llm_service.support_chat(data)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)

@router.post("/social-caption", response_model=SocialCaptionOutput)
def social_caption(
    data: SocialCaptionInput,
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
):
    try:
        return llm_service.generate_social_caption(data)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)

@router.post("/shop-intro", response_model=AudioOutput)
def shop_audio_intro(
    data: ShopAudioIntroInput,
    current_user: Annotated[UserInDB, Depends(get_current_business_user)],
):
    try:
        return llm_service.generate_shop_audio_intro(data)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)

@router.post("/order-brief", response_model=AudioOutput)
def order_voice_brief(
    data: OrderBriefInput,
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
):
    try:
        return llm_service.generate_order_voice_brief(data)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)

@router.post("/order-brief/{order_id}", response_model=AudioOutput)
def order_voice_brief_for_order(
    order_id: str,
    current_user: Annotated[UserInDB, Depends(get_current_delivery_user)],
    db: Database = Depends(get_db)
):
    """Speaks the brief for an order the rider has claimed."""
    order = OrderService(db).get(order_id)
    if order.delivery_boy_id != str(current_user.id):
        raise HTTPException(status_code=403, detail="Only the assigned rider can hear this brief.")
    data = OrderBriefInput(
        product_title=order.product_title,
        shop_name=order.shop_name,
        customer_name=order.customer_name,
        address=order.address,
    )
    try:
        return llm_service.generate_order_voice_brief(data)
    except (ConfigurationError, ProviderError) as e:
        raise provider_http_error(e)
