from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str = "mesa"
    POSTGRES_PASSWORD: str = "mesa"
    POSTGRES_DB: str = "mesa_chat"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    REDIS_URL: str = "redis://localhost:6379/0"

    TOKEN_BACKEND: Literal["memory", "redis"] = "memory"
    TOKEN_TTL_SECONDS: int = 7 * 24 * 3600
    TOKEN_SWEEP_SECONDS: float = 300.0
    TOKEN_KEY_PREFIX: str = "mesa:token"

    # Empty secret disables moderator login entirely.
    ADMIN_SECRET: str = ""
    MODERATOR_NAME: str = "Mestre"
    MODERATOR_SESSIONS: Literal["plural", "single"] = "plural"

    TYPING_TTL_SECONDS: float = 3.0
    TYPING_SWEEP_SECONDS: float = 1.0

    HISTORY_LIMIT: int = 500
    MESSAGE_MAX_LENGTH: int = 500
    NAME_MAX_LENGTH: int = 20
    PASSWORD_MIN_LENGTH: int = 4
    BCRYPT_ROUNDS: int = 10

    CORS_ORIGINS: list[str] = ["*"]

    WS_HEARTBEAT_SECONDS: int = 30

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "info"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
