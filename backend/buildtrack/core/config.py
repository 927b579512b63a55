from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "BuildTrack Activity"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/buildtrack.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Session tokens
    AUTH_JWT_SECRET: str = "change-me"
    AUTH_TOKEN_TTL_HOURS: int = 12

    # Activity feed
    ACTIVITY_FETCH_LIMIT: int = 200
    ACTIVITY_KEEP_LAST: int = 500

    # Realtime change feed
    REALTIME_KEEPALIVE_SECONDS: float = 15.0
    REALTIME_QUEUE_SIZE: int = 256

    # Client side
    BACKEND_URL: str = "http://localhost:8000"
    BACKEND_TIMEOUT_SECONDS: float = 30.0


settings = Settings()
