"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Kometa Studio server.

    Every field can be overridden by an environment variable with the
    ``KOMETA_STUDIO_`` prefix (``KOMETA_STUDIO_MASTER_KEY`` and so on) or by
    a ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="KOMETA_STUDIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Base64 of 32 random bytes; see ``kometa-studio-keygen``.  Checked at
    # startup, never logged.
    MASTER_KEY: str = ""
    DATABASE_URL: str = "sqlite:///./data/kometa-studio.db"
    HOST: str = "127.0.0.1"
    PORT: int = 3001
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]
    LOG_LEVEL: str = "INFO"


settings = Settings()
