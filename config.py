from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration, read from environment variables or a local .env file.

    One instance is built at startup and handed to ``create_app``; nothing in
    the application reads the environment on its own.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "course-marketplace-api"

    # --- Database ---
    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "courseApp"

    # --- Security ---
    SECRET_KEY: str = "dev-secret-key-change-in-prod"
    ALGORITHM: str = "HS256"
    ADMIN_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    # None means user tokens never expire
    USER_TOKEN_EXPIRE_MINUTES: Optional[int] = None

    # --- HTTP ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "*"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    @property
    def cors_origins(self) -> List[str]:
        raw = self.CORS_ORIGINS.strip()
        if not raw or raw == "*":
            return ["*"]
        return [p.strip() for p in raw.split(",") if p.strip()]
