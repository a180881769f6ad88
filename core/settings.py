from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, PostgresDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod", "test"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=True)


class PgDbSettings(CustomSettings):
    POSTGRES_ENGINE: str = Field(default="postgresql+asyncpg")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: SecretStr = Field(default="postgres")
    POSTGRES_DB: str = Field(default="conversations")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    DATABASE_URL: PostgresDsn | str = Field(default="")
    DB_ECHO: bool = Field(default=False)
    # Applied per connection on PostgreSQL only
    DB_LOCK_TIMEOUT: str = Field(default="4s")
    DB_STATEMENT_TIMEOUT: str = Field(default="8s")

    @model_validator(mode="before")
    def validate_postgres_dsn(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            _built_uri = PostgresDsn.build(
                scheme=data.get("POSTGRES_ENGINE", "postgresql+asyncpg"),
                username=data.get("POSTGRES_USER", "postgres"),
                password=data.get("POSTGRES_PASSWORD", "postgres"),
                host=data.get("POSTGRES_HOST", "localhost"),
                port=int(data.get("POSTGRES_PORT", 5432)),
                path=data.get("POSTGRES_DB", "conversations"),
            ).unicode_string()
            data["DATABASE_URL"] = _built_uri
        return data


class ConversationSettings(CustomSettings):
    """Limits and defaults for the conversation and message stores.

    Set via env vars:
    - CONVERSATION_DEFAULT_TITLE
    - CONVERSATION_TITLE_MAX_LENGTH
    - MODEL_USED_MAX_LENGTH
    - STREAM_BATCH_SIZE
    """

    CONVERSATION_DEFAULT_TITLE: str = Field(default="Nueva Conversación")
    CONVERSATION_TITLE_MAX_LENGTH: int = Field(default=500, ge=1)
    MODEL_USED_MAX_LENGTH: int = Field(default=100, ge=1)
    STREAM_BATCH_SIZE: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def validate_default_title(self):
        if not self.CONVERSATION_DEFAULT_TITLE.strip():
            raise ValueError("CONVERSATION_DEFAULT_TITLE must not be blank")
        return self


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: PgDbSettings = Field(default_factory=PgDbSettings)
    CONVERSATION: ConversationSettings = Field(default_factory=ConversationSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
