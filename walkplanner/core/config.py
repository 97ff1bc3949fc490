from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./walkplanner.db"
    DB_POOL_TIMEOUT_SECONDS: int = 10
    DB_STATEMENT_TIMEOUT_MS: int = 5000

    # Planning policy
    PLANNING_MAX_WALKS_PER_WEEK: int = 5
    PLANNING_MIN_CAPACITY: int = 1
    PLANNING_MAX_CAPACITY: int = 6
    PLANNING_CONSECUTIVE_BLOCK_DISTANCE: int = 1
    PLANNING_NEAR_CAPACITY_PERCENT: int = 75

    # Cancellations: free with at least this much notice, partial charge above
    # the second threshold, full charge below it
    CANCELLATION_FREE_NOTICE_HOURS: int = 24
    CANCELLATION_PARTIAL_NOTICE_HOURS: int = 6
    CANCELLATION_PARTIAL_CHARGE_PERCENT: int = 50

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
