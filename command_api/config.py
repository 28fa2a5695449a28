import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from COMMAND_API_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COMMAND_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "Production"
    database_url: str = "sqlite:///./commands.db"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Bearer token validation
    auth_enabled: bool = False
    instance: str = "https://login.microsoftonline.com/"
    tenant_id: str = ""
    resource_id: str = ""
    jwt_issuer: Optional[str] = None
    jwt_secret: Optional[str] = None
    jwks_url: Optional[str] = None

    @property
    def authority(self) -> str:
        return f"{self.instance}{self.tenant_id}"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Set up process-wide logging; call once before serving."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    logging.getLogger("command_api").setLevel(level.upper())

    # Keep third-party loggers quiet
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.WARNING)
