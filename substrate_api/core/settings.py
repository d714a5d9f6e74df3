from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Session tokens
    JWT_SECRET: str = "substrate-dev-secret-change-me-32-chars"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL_SECONDS: int = 3600
    REFRESH_TOKEN_TTL_SECONDS: int = 60 * 60 * 24 * 30

    # Listing
    DEFAULT_PAGE_SIZE: int = 20

    # Tenancy
    DEFAULT_ORGANIZATION_PLAN: str = "free"
    INVITATION_TTL_DAYS: int = 7

    # Simulated sync jobs advance from queued to completed over this window
    SYNC_JOB_DURATION_SECONDS: int = 30

    # Demo tenant loaded into a fresh backend
    SEED_DEMO_DATA: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
