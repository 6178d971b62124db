from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Database
    database_url: str = ""

    # Event schedule
    first_event_time: str = ""  # RFC3339, e.g. 2024-01-01T00:00:00Z
    event_interval_minutes: int = 210  # 3.5 hours
    notification_lead_minutes: int = 5

    # Web Push
    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_subscriber: str = ""
    push_urgency: str = "high"
    push_ttl: int = 30  # seconds

    # Notifications
    notification_title: str = "World Boss Alert!"
    notification_body: str = "A new World Boss event is starting in 5 minutes!"
    notification_enabled: bool = True

    # Heartbeat
    heartbeat_url: str = "https://diablo-timer.paulgeorge.dev/api/subscription/push"
    heartbeat_interval_minutes: int = 5
    heartbeat_timeout: int = 30  # seconds

    # Logging
    display_utc_offset_hours: int = 2

    @property
    def is_push_configured(self) -> bool:
        return bool(self.vapid_private_key and self.vapid_subscriber)


@lru_cache
def get_settings() -> Settings:
    return Settings()
