"""Configuration management."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Recipe settings from environment."""

    # Coordination cluster
    hosts: str | None = None  # e.g. "zk1:2181,zk2:2181"

    # Polling
    sleep_cycle: float = Field(default=0.1, gt=0)  # seconds between checks
    connection_timeout: float = Field(default=5.0, gt=0)

    # Default ACL applied to every node we create
    acl_scheme: str = "world"
    acl_credential: str = "anyone"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "ZR_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
