"""Application configuration settings"""

import os
from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


class Config:
    # App settings
    APP_ENV = os.getenv("APP_ENV", "development")
    TESTING = os.getenv("TESTING", "false").lower() in _TRUTHY
    DEBUG = os.getenv("DEBUG", "false").lower() in _TRUTHY
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "5001"))
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_PATH = os.getenv("LOG_PATH") or None
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
    )

    # Auth (tokens are issued by the external identity provider)
    SERVICE_AUTH_SECRET = os.getenv("SERVICE_AUTH_SECRET", "")
    SERVICE_AUTH_ISSUER = os.getenv("SERVICE_AUTH_ISSUER", "your_service_name")
    SERVICE_AUTH_AUDIENCE = os.getenv("SERVICE_AUTH_AUDIENCE", "your_service_audience")

    # Postgresql Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    MESSAGE_MAX_LENGTH: int = int(os.getenv("MESSAGE_MAX_LENGTH", "5000"))
    CONVERSATION_MESSAGE_LIMIT: int = int(
        os.getenv("CONVERSATION_MESSAGE_LIMIT", "200")
    )
    CONVERSATION_USER_LIMIT: int = int(os.getenv("CONVERSATION_USER_LIMIT", "50"))

    # =============================================================================
    # REALTIME NOTIFICATIONS
    # =============================================================================
    # "local": single process, frames go straight to the in-memory bus
    # "redis": frames are published to Redis and fanned out by every process
    REALTIME_RELAY: str = os.getenv("REALTIME_RELAY", "local").lower()

    # Seconds a channel may stay open without sending an auth frame
    REALTIME_AUTH_TIMEOUT_SECONDS: float = float(
        os.getenv("REALTIME_AUTH_TIMEOUT_SECONDS", "10")
    )
    # Oldest unauthenticated channel is evicted once this many are pending
    REALTIME_MAX_UNAUTHENTICATED: int = int(
        os.getenv("REALTIME_MAX_UNAUTHENTICATED", "1000")
    )
    # Frames queued per channel before new events are dropped for it
    REALTIME_SEND_BUFFER: int = int(os.getenv("REALTIME_SEND_BUFFER", "100"))
    # Require a signed token (sub == userId) in the auth frame
    REALTIME_REQUIRE_TOKEN: bool = (
        os.getenv("REALTIME_REQUIRE_TOKEN", "false").lower() in _TRUTHY
    )
    REALTIME_RELAY_RETRY_SECONDS: float = float(
        os.getenv("REALTIME_RELAY_RETRY_SECONDS", "2")
    )

    # Protocol-level keep-alive, enforced by uvicorn
    WS_PING_INTERVAL: float = float(os.getenv("WS_PING_INTERVAL", "20"))
    WS_PING_TIMEOUT: float = float(os.getenv("WS_PING_TIMEOUT", "20"))

    # Redis settings
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")


class DevelopmentConfig(Config):
    """Development configuration"""

    DEBUG = True


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    REALTIME_RELAY = "local"


class ProductionConfig(Config):
    """Production configuration"""

    pass


# Configuration dictionary
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env=None):
    """Get configuration based on environment"""
    if env is None:
        env = os.getenv("APP_ENV", "development")
    return config.get(env, config["default"])
