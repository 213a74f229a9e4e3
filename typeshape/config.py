from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # Type construction
    MAX_TYPE_DEPTH: int = 32  # Deepest allowed nesting of composite types

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_JSON: bool = False  # True for structured JSON, False for colored console output

    model_config = SettingsConfigDict(env_prefix="TYPESHAPE_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
