from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Lensbook Booking API"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BUSINESS_TIMEZONE: str = "Europe/Paris"
    DAY_START: str = "09:00"
    DAY_END: str = "18:00"
    SLOT_STEP_MINUTES: int = 30
    MODIFY_NOTICE_HOURS: int = 24
    CLIENT_NOTES_MAX_LENGTH: int = 500
    CONFLICT_RETRY_ATTEMPTS: int = 3

    STORE_PROVIDER: str = "memory"  # "memory" | "json"
    DATA_DIR: str = "./data/bookings"

    EVENTS_WEBHOOK_URL: str | None = None
    EVENTS_WEBHOOK_SECRET: str | None = None


settings = Settings()
