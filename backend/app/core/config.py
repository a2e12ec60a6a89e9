"""
Application configuration read from the environment.

Static settings are module constants; values that may change between
requests (and that tests flip) are exposed as small accessor functions.
"""

import os

# Upstream completion provider
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_CHAT_MODEL = os.getenv("OPENROUTER_CHAT_MODEL", "deepseek/deepseek-chat-v3.1")
OPENROUTER_VISION_MODELS = [
    model.strip()
    for model in os.getenv(
        "OPENROUTER_VISION_MODELS", "google/gemini-2.0-flash-001"
    ).split(",")
    if model.strip()
]
OPENROUTER_TIMEOUT_SECONDS = float(os.getenv("OPENROUTER_TIMEOUT_SECONDS", "60"))
OPENROUTER_REFERER = os.getenv("OPENROUTER_REFERER", "https://aidorama.app")
OPENROUTER_TITLE = os.getenv("OPENROUTER_TITLE", "AIDorama")

# Chat
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Jakarta")
CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", "8"))
CHAT_MAX_TOKENS = 6000
CHAT_TEMPERATURE = 0.8

# HTTP
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def is_production() -> bool:
    """Return True when running with ENVIRONMENT=production."""
    return os.getenv("ENVIRONMENT", "development") == "production"


def debug_bypass_access() -> bool:
    """
    Return True when the session ownership check may be skipped.

    The flag is never honoured in production, whatever its value.
    """
    if is_production():
        return False
    return os.getenv("AIDORAMA_DEBUG_BYPASS_ACCESS") == "true"


def get_openrouter_api_key():
    """Return the configured upstream API key, or None."""
    return os.getenv("OPENROUTER_API_KEY") or None
