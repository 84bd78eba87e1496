# FILE: backend/vyapar/models/ai.py
# Input/output shapes for the AI assist flows. Outputs double as validators for provider replies.

from pydantic import BaseModel, Field
from typing import Optional

class DescriptionInput(BaseModel):
    title: str = Field(..., min_length=2, description="The name of the product or service.")
    category: str = Field(..., min_length=2, description="The category of the business.")

class DescriptionOutput(BaseModel):
    description: str = Field(..., min_length=1)

class OrderBriefInput(BaseModel):
    product_title: str
    shop_name: str
    customer_name: str
    address: str

class SupportChatInput(BaseModel):
    query: str = Field(..., min_length=2, max_length=1000)

class SupportChatOutput(BaseModel):
    reply: str = Field(..., min_length=1)
    suggested_action: Optional[str] = None

class ShopAudioIntroInput(BaseModel):
    shop_name: str
    category: str
    description: str = ""
    address: str

class SocialCaptionInput(BaseModel):
    shop_name: str
    product_name: str
    price: float
    category: str

class SocialCaptionOutput(BaseModel):
    caption: str = Field(..., min_length=1)

class AudioOutput(BaseModel):
    media: str
