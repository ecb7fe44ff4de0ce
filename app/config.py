from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    APP_NAME: str = "Vicino API"
    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006"
    LOG_LEVEL: str = "INFO"

    # Engine endpoints refuse unverified users
    REQUIRE_VERIFIED_USERS: bool = True

    # Chat quotas per match
    MAX_MESSAGES_PER_USER: int = 30
    MAX_MESSAGES_TOTAL: int = 60

    # Meetup offer deadlines
    OFFER_RESPONSE_SECONDS: int = 600
    LOCATION_EXPIRY_MINUTES: int = 120
    COORDINATION_WINDOW_MINUTES: int = 30

    # What to do when an initiator starts availability while one is active
    AVAILABILITY_RESTART_POLICY: Literal["close", "reuse", "reject"] = "close"

    PUBLIC_PLACE_ID_PREFIX: str = "poi_"

    # Offers are paused between these local hours (end exclusive)
    OFFER_CURFEW_ENABLED: bool = False
    OFFER_CURFEW_START_HOUR: int = 2
    OFFER_CURFEW_END_HOUR: int = 4
    OFFER_CURFEW_TIMEZONE: str = "UTC"

    DEFAULT_MAX_DISTANCE_MILES: float = 25.0

    # Expo push notifications
    PUSH_NOTIFICATIONS_ENABLED: bool = False
    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"
    PUSH_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
