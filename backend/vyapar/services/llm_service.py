# FILE: backend/vyapar/services/llm_service.py
# LOCALVYAPAR - AI ASSIST FLOWS
# 1. One OpenAI-compatible client for chat (JSON mode) and speech (raw PCM).
# 2. Missing credential fails fast with ConfigurationError, before any network call.
# 3. Empty or malformed provider output raises ProviderError. No retries, no caching.

import json
import logging
import re
from typing import Any, Dict, Optional, Type, TypeVar

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from ..core.config import settings
from ..core.exceptions import ConfigurationError, ProviderError
from ..models.ai import (
    AudioOutput, DescriptionInput, DescriptionOutput, OrderBriefInput,
    ShopAudioIntroInput, SocialCaptionInput, SocialCaptionOutput,
    SupportChatInput, SupportChatOutput,
)
from .audio_service import pcm_to_wav_data_url

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API Key missing. Please set LLM_API_KEY to enable AI features."

M = TypeVar("M", bound=BaseModel)

_client: Optional[OpenAI] = None
_client_key: Optional[str] = None

# --- HOUSE STYLE (shared by every text prompt) ---
HOUSE_STYLE = """
You write for LocalVyapar, a hyperlocal marketplace for Indian neighbourhood shops.
Write in Hinglish (Hindi + English in Latin script), friendly and short.
"""

def get_llm_client() -> OpenAI:
    global _client, _client_key
    if not settings.LLM_API_KEY:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    if _client is None or _client_key != settings.LLM_API_KEY:
        _client = OpenAI(api_key=settings.LLM_API_KEY, base_url=settings.LLM_BASE_URL)
        _client_key = settings.LLM_API_KEY
    return _client

def _parse_json_safely(content: str) -> Dict[str, Any]:
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        # Fallback: Extract JSON block from Markdown ```json ... ```
        match = re.search(r'```(?:json)?\s*(\{.*?\})\s*```', content, re.DOTALL)
        if match:
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError:
                pass
        # Fallback: Find outer braces
        start, end = content.find('{'), content.rfind('}')
        if start != -1 and end != -1:
            try:
                return json.loads(content[start:end + 1])
            except json.JSONDecodeError:
                pass
        return {}

def _call_llm(system_prompt: str, user_prompt: str, json_mode: bool = False) -> str:
    client = get_llm_client()
    kwargs: Dict[str, Any] = {
        "model": settings.LLM_MODEL,
        "messages": [
            {"role": "system", "content": f"{system_prompt}\n\n{HOUSE_STYLE}"},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": 0.7,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        response = client.chat.completions.create(**kwargs)
    except OpenAIError as e:
        logger.warning(f"LLM call failed: {e}")
        raise ProviderError(f"AI generation failed: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    if not content or not content.strip():
        raise ProviderError("AI returned empty output")
    return content

def _call_structured(system_prompt: str, user_prompt: str, output_model: Type[M]) -> M:
    content = _call_llm(system_prompt, user_prompt, json_mode=True)
    data = _parse_json_safely(content)
    try:
        return output_model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"LLM output did not match {output_model.__name__}: {e}")
        raise ProviderError("AI could not produce a usable answer.") from e

def _synthesize_speech(script: str) -> str:
    client = get_llm_client()
    try:
        response = client.audio.speech.create(
            model=settings.TTS_MODEL,
            voice=settings.TTS_VOICE,
            input=script,
            response_format="pcm",
        )
    except OpenAIError as e:
        logger.warning(f"Speech synthesis failed: {e}")
        raise ProviderError(f"Audio generation failed: {e}") from e

    pcm = response.content
    if not pcm:
        raise ProviderError("No audio media returned")
    return pcm_to_wav_data_url(pcm)

# --- PUBLIC FLOWS ---

def generate_product_description(data: DescriptionInput) -> DescriptionOutput:
    system_prompt = """
    You are an expert Indian marketing copywriter.
    Guidelines:
    1. Keep it under 150 characters.
    2. Highlight the quality and local availability.
    3. Add 1-2 relevant emojis.
    Respond as JSON: {"description": "..."}
    """
    user_prompt = f'Write a catchy description for a product named "{data.title}" in the "{data.category}" category.'
    return _call_structured(system_prompt, user_prompt, DescriptionOutput)

def support_chat(data: SupportChatInput) -> SupportChatOutput:
    system_prompt = """
    You are the LocalVyapar support assistant. Help customers, shop owners and delivery partners.
    Answer the question in 1-3 sentences.
    If one of these actions would help, set "suggested_action" to it, otherwise null:
    "open_orders", "update_profile", "browse_shops", "contact_shop", "upgrade_premium", "contact_support".
    Respond as JSON: {"reply": "...", "suggested_action": "..." | null}
    """
    return _call_structured(system_prompt, f'User question: "{data.query}"', SupportChatOutput)

def generate_social_caption(data: SocialCaptionInput) -> SocialCaptionOutput:
    system_prompt = """
    You are an expert Social Media Manager for Indian local shops.
    Write a viral-style WhatsApp Status / Instagram caption.
    Structure: a hook, why to buy, a call to action. Under 200 characters, with emojis.
    Mention that it is available on LocalVyapar.
    Respond as JSON: {"caption": "..."}
    """
    user_prompt = (
        f"Shop Name: {data.shop_name}\n"
        f"Product: {data.product_name}\n"
        f"Price: ₹{data.price:g}\n"
        f"Category: {data.category}"
    )
    return _call_structured(system_prompt, user_prompt, SocialCaptionOutput)

def order_brief_script(data: OrderBriefInput) -> str:
    return (
        f"Naya order mila hai. {data.shop_name} se {data.product_title} uthana hai "
        f"aur {data.customer_name} ko {data.address} par deliver karna hai. Drive safe!"
    )

def generate_order_voice_brief(data: OrderBriefInput) -> AudioOutput:
    return AudioOutput(media=_synthesize_speech(order_brief_script(data)))

def generate_shop_audio_intro(data: ShopAudioIntroInput) -> AudioOutput:
    system_prompt = """
    Write a short, professional and friendly 10-second audio script for a local shop intro.
    Radio ad style, energetic and welcoming. Keep it under 25 words. Output only the script.
    """
    user_prompt = (
        f"Shop Name: {data.shop_name}\n"
        f"Category: {data.category}\n"
        f"Description: {data.description}\n"
        f"Location: {data.address}"
    )
    script = _call_llm(system_prompt, user_prompt).strip()
    return AudioOutput(media=_synthesize_speech(script))
