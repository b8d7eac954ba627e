"""
Transfer Concierge Configuration
Loads settings from environment variables
"""

import os
import sys
from typing import List, Optional
from dotenv import load_dotenv
from loguru import logger

# Load environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment"""

    # OpenAI Configuration
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_BASE_URL: Optional[str] = os.getenv("OPENAI_BASE_URL") or None
    TRANSCRIPTION_MODEL: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")

    # Web search provider (Serper)
    SERPER_API_KEY: str = os.getenv("SERPER_API_KEY", "")
    SERPER_API_URL: str = os.getenv("SERPER_API_URL", "https://google.serper.dev/search")

    # Service area
    SERVICE_CITY: str = os.getenv("SERVICE_CITY", "Vienna")
    SERVICE_COUNTRY: str = os.getenv("SERVICE_COUNTRY", "Austria")

    # Rates proxy (consumed by the concierge)
    RATES_PROXY_URL: str = os.getenv("RATES_PROXY_URL", "http://localhost:3001/api/transfers")
    RATES_TIMEOUT_SECONDS: float = float(os.getenv("RATES_TIMEOUT_SECONDS", "30"))

    # Conversation
    CONTEXT_WINDOW_TURNS: int = int(os.getenv("CONTEXT_WINDOW_TURNS", "10"))

    # Redis Configuration (optional; in-memory stores when unset)
    REDIS_URL: str = os.getenv("REDIS_URL", "")
    SESSION_TTL_HOURS: int = int(os.getenv("SESSION_TTL_HOURS", "24"))

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_ENV: str = os.getenv("API_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Configuration
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    # Rates proxy service
    PROXY_PORT: int = int(os.getenv("PROXY_PORT", "3001"))
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "300"))
    CACHE_MAX_KEYS: int = int(os.getenv("CACHE_MAX_KEYS", "1000"))
    RATE_LIMIT_WINDOW_MS: int = int(os.getenv("RATE_LIMIT_WINDOW_MS", "900000"))
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000")
    BOOKING_RATES_URL: str = os.getenv(
        "BOOKING_RATES_URL", "https://taxis.booking.com/search-results-mfe/rates"
    )
    BOOKING_TIMEOUT_MS: int = int(os.getenv("BOOKING_TIMEOUT_MS", "10000"))
    BOOKING_USER_AGENT: str = os.getenv(
        "BOOKING_USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get rates proxy allowed origins as a list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def use_openai(self) -> bool:
        """True when a usable OpenAI key is configured"""
        return bool(self.OPENAI_API_KEY) and not self.OPENAI_API_KEY.startswith("sk-your")

    @property
    def service_area(self) -> str:
        return f"{self.SERVICE_CITY}, {self.SERVICE_COUNTRY}"


def configure_logging(level: Optional[str] = None):
    """Route loguru output to stderr at the configured level"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.LOG_LEVEL).upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan> - <level>{message}</level>",
    )


# Global settings instance
settings = Settings()
