"""Application configuration settings"""

import os
from dotenv import load_dotenv

load_dotenv()


def _table_override(name: str) -> str:
    return os.getenv(name, "").strip()


class Config:
    # App settings
    APP_ENV = os.getenv("APP_ENV", "development")
    DEBUG = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes", "on"}
    ALLOWED_ORIGIN = os.getenv("ALLOWED_ORIGIN", "*")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_PATH = os.getenv("LOG_PATH", "")
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
    )

    # Auth / sessions
    JWT_SECRET = os.getenv("JWT_SECRET", "")
    ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY", "")
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
    AUTH_SESSION_TTL_SECONDS = int(os.getenv("AUTH_SESSION_TTL_SECONDS", "1800"))
    AUTH_RATE_LIMIT = int(os.getenv("AUTH_RATE_LIMIT", "10"))
    AUTH_RATE_WINDOW_SECONDS = int(os.getenv("AUTH_RATE_WINDOW_SECONDS", "3600"))

    # Airtable
    AIRTABLE_TOKEN = os.getenv("AIRTABLE_PERSONAL_ACCESS_TOKEN") or os.getenv(
        "AIRTABLE_API_KEY", ""
    )
    # Base IDs pasted from the UI sometimes carry trailing text
    AIRTABLE_BASE_ID = (os.getenv("AIRTABLE_BASE_ID", "").strip().split() or [""])[0]
    AIRTABLE_API_URL = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com")
    AIRTABLE_TIMEOUT = float(os.getenv("AIRTABLE_TIMEOUT", "15"))
    AIRTABLE_USERS_TABLE = _table_override("AIRTABLE_USERS_TABLE")
    AIRTABLE_OPPORTUNITIES_TABLE = _table_override("AIRTABLE_OPPORTUNITIES_TABLE")
    AIRTABLE_RESOURCES_TABLE = _table_override("AIRTABLE_RESOURCES_TABLE")
    AIRTABLE_MATCHES_TABLE = _table_override("AIRTABLE_MATCHES_TABLE")
    AIRTABLE_MATCHES_RESOURCES_TABLE = _table_override(
        "AIRTABLE_MATCHES_RESOURCES_TABLE"
    )
    AIRTABLE_CONVERSATIONS_TABLE = _table_override("AIRTABLE_CONVERSATIONS_TABLE")
    AIRTABLE_MESSAGES_TABLE = _table_override("AIRTABLE_MESSAGES_TABLE")
    AIRTABLE_CHAT_ANALYTICS_TABLE = _table_override("AIRTABLE_CHAT_ANALYTICS_TABLE")
    AIRTABLE_DOCUMENTS_TABLE = _table_override("AIRTABLE_DOCUMENTS_TABLE")
    AIRTABLE_SESSIONS_TABLE = _table_override("AIRTABLE_SESSIONS_TABLE")
    AIRTABLE_FEEDBACK_TABLE = _table_override("AIRTABLE_FEEDBACK_TABLE")
    AIRTABLE_VETERAN_NEWS_TABLE = _table_override("AIRTABLE_VETERAN_NEWS_TABLE")
    AIRTABLE_CHAT_TRANSCRIPTS_TABLE = _table_override(
        "AIRTABLE_CHAT_TRANSCRIPTS_TABLE"
    )
    AIRTABLE_VETERAN_CHAT_TABLE = _table_override("AIRTABLE_VETERAN_CHAT_TABLE")

    # Analytics / retention
    ENABLE_ANALYTICS = os.getenv("ENABLE_ANALYTICS", "false").lower() in {
        "1",
        "true",
        "yes",
        "on",
    }
    DATA_RETENTION_DAYS = int(os.getenv("DATA_RETENTION_DAYS", "90"))
    STATE_SWEEP_INTERVAL_SECONDS = float(os.getenv("STATE_SWEEP_INTERVAL_SECONDS", "300"))

    # Per-user limits stored alongside the profile
    RATE_LIMIT_FREE_USER = int(os.getenv("RATE_LIMIT_FREE_USER", "20"))
    RATE_LIMIT_PAID_USER = int(os.getenv("RATE_LIMIT_PAID_USER", "100"))
    RATE_LIMIT_WINDOW = int(os.getenv("RATE_LIMIT_WINDOW", "3600000"))  # ms

    # Chat request limits per minute, by tier
    CHAT_RATE_LIMIT_FREE = int(os.getenv("CHAT_RATE_LIMIT_FREE", "10"))
    CHAT_RATE_LIMIT_PREMIUM = int(os.getenv("CHAT_RATE_LIMIT_PREMIUM", "30"))
    CHAT_RATE_LIMIT_FOUNDER = int(os.getenv("CHAT_RATE_LIMIT_FOUNDER", "60"))
    CHAT_RATE_WINDOW_SECONDS = int(os.getenv("CHAT_RATE_WINDOW_SECONDS", "60"))

    # Usage tracking
    USAGE_BACKEND: str = os.getenv("USAGE_BACKEND", "memory")
    TIER_CACHE_TTL: int = int(os.getenv("TIER_CACHE_TTL", "300"))

    # Redis settings
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")

    # OpenAI
    OPENAI_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    # Other providers
    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-latest")
    ANTHROPIC_HEALTH_MODEL = os.getenv(
        "ANTHROPIC_HEALTH_MODEL", "claude-3-5-haiku-latest"
    )
    PERPLEXITY_API_KEY = os.getenv("PERPLEXITY_API_KEY", "")
    PERPLEXITY_API_URL = os.getenv(
        "PERPLEXITY_API_URL", "https://api.perplexity.ai/chat/completions"
    )
    PERPLEXITY_MODEL = os.getenv(
        "PERPLEXITY_MODEL", "llama-3.1-sonar-small-128k-online"
    )
    AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "2000"))

    # LLM resilience
    LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "40"))
    LLM_CONNECT_TIMEOUT = float(os.getenv("LLM_CONNECT_TIMEOUT", "10"))
    LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "2"))
    LLM_CB_FAILURE_THRESHOLD = int(os.getenv("LLM_CB_FAILURE_THRESHOLD", "5"))
    LLM_CB_RECOVERY_TIMEOUT = int(os.getenv("LLM_CB_RECOVERY_TIMEOUT", "30"))

    # Product links
    UPGRADE_URL = os.getenv("UPGRADE_URL", "https://vadiy.com/upgrade")
    VA_HOTLINE = os.getenv("VA_HOTLINE", "1-800-827-1000")

    @classmethod
    def is_production(cls) -> bool:
        return cls.APP_ENV == "production"

