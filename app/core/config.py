"""Application configuration."""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str

    # JWT (tokens are minted by the identity provider)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Object storage (S3-compatible). Each setting accepts the hosting
    # platform's default variable first, then the prefixed variant.
    STORAGE_ENDPOINT: str = Field(
        "", validation_alias=AliasChoices("ENDPOINT", "RAILWAY_BUCKET_ENDPOINT")
    )
    STORAGE_BUCKET: str = Field(
        "upload-prints-files",
        validation_alias=AliasChoices("BUCKET", "RAILWAY_BUCKET_NAME"),
    )
    STORAGE_REGION: str = Field(
        "us-west-1", validation_alias=AliasChoices("REGION", "RAILWAY_BUCKET_REGION")
    )
    STORAGE_ACCESS_KEY_ID: str = Field(
        "", validation_alias=AliasChoices("ACCESS_KEY_ID", "RAILWAY_BUCKET_ACCESS_KEY")
    )
    STORAGE_SECRET_ACCESS_KEY: str = Field(
        "",
        validation_alias=AliasChoices("SECRET_ACCESS_KEY", "RAILWAY_BUCKET_SECRET_KEY"),
    )

    # Presigned URL lifetimes
    UPLOAD_URL_TTL_SECONDS: int = 3600
    DOWNLOAD_URL_TTL_SECONDS: int = 3600

    # Order numbering
    ORDER_NUMBER_MAX_ATTEMPTS: int = 5

    @property
    def storage_configured(self) -> bool:
        """True when endpoint, bucket and the credential pair are present."""
        return bool(
            self.STORAGE_ENDPOINT
            and self.STORAGE_BUCKET
            and self.STORAGE_ACCESS_KEY_ID
            and self.STORAGE_SECRET_ACCESS_KEY
        )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""

    # Environment
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


settings = Settings()
