"""Configuration management for Payload Depot."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "payload-depot"
    SERVICE_VERSION: str = "0.1.0"
    PORT: int = 3003
    LOG_LEVEL: str = "INFO"

    # Storage Configuration
    STORAGE_BACKEND: str = "local"  # "gcs", "local" or "memory"
    LOCAL_STORAGE_PATH: str = "data/payloads"

    # GCP Configuration
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = "depot-payloads"
    GCS_CREATE_BUCKET: bool = True  # Create the bucket on first use if missing

    # Ingestion Constraints
    MAX_UPLOAD_MB: int = 50

    @property
    def max_upload_bytes(self) -> int:
        """Convert MAX_UPLOAD_MB to bytes."""
        return self.MAX_UPLOAD_MB * 1024 * 1024


# Singleton settings instance
settings = Settings()
