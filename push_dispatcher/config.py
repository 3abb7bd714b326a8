from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the Push Dispatcher Service"""

    # Application settings
    service_name: str = "push-dispatcher"
    log_level: str = "INFO"
    environment: str = "dev"

    # Firebase settings
    firebase_secret: Optional[str] = None  # service account JSON
    firebase_project_id: Optional[str] = None

    # Firestore collection holding queued notification records
    notifications_collection: str = "push_notifications"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


# Create settings instance
settings = Settings()
