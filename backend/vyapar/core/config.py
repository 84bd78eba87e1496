# FILE: backend/vyapar/core/config.py
# LOCALVYAPAR - CONFIGURATION
# 1. Handles comma-separated CORS strings (for Docker/Production).
# 2. Handles JSON strings.
# 3. Provider credentials default to empty; callers fail fast when unset.

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Union
from pydantic import field_validator
import json

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- API Setup ---
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "LocalVyapar API"

    # --- Auth ---
    SECRET_KEY: str = "changeme"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    RESET_TOKEN_EXPIRE_MINUTES: int = 30

    # --- CORS Configuration ---
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            # Handle comma-separated string: "http://localhost,https://myapp.com"
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            # Handle JSON string: '["http://localhost"]'
            return json.loads(v)
        return v

    # --- Database & Broker ---
    DATABASE_URI: str = "mongodb://mongo:27017/localvyapar"
    REDIS_URL: str = "redis://redis:6379/0"

    # --- AI Provider (OpenAI-compatible) ---
    LLM_API_KEY: str = ""
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_MODEL: str = "gpt-4o-mini"
    TTS_MODEL: str = "gpt-4o-mini-tts"
    TTS_VOICE: str = "alloy"

    # --- Payment Gateway (Cashfree) ---
    CASHFREE_APP_ID: str = ""
    CASHFREE_SECRET_KEY: str = ""
    CASHFREE_BASE_URL: str = "https://api.cashfree.com/pg"
    CASHFREE_API_VERSION: str = "2023-08-01"

    # --- Marketplace Rules ---
    PREMIUM_PRICE: float = 99.0
    PREMIUM_DAYS: int = 30
    DELIVERY_FEE: int = 40
    DEFAULT_AREA_CODE: str = "JHP"
    SHOP_TIMEZONE: str = "Asia/Kolkata"
    APP_URL: str = "http://localhost:3000"

    # --- Email (password reset) ---
    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""

settings = Settings()
