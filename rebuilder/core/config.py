"""
Application configuration using pydantic-settings.
All environment variables are validated and typed.
"""

import logging
import os
from pydantic_settings import BaseSettings
from pydantic import field_validator

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Listener
    host: str = "0.0.0.0"
    port: int = 8080
    webhook_path: str = "/"

    # Optional HMAC secret shared with the git hosting webhook
    webhook_secret: str | None = None

    # In-cluster service account
    namespace_file: str = f"{SERVICE_ACCOUNT_DIR}/namespace"
    token_file: str = f"{SERVICE_ACCOUNT_DIR}/token"
    ca_file: str = f"{SERVICE_ACCOUNT_DIR}/ca.crt"

    # Injected by the cluster into every pod
    kubernetes_service_host: str | None = None
    kubernetes_service_port: int = 443

    # Build-run waiting (seconds)
    poll_interval: float = 10.0
    default_build_run_timeout: float = 600.0

    # Background rebuilds allowed to run at once
    max_concurrent_rebuilds: int = 32

    # Per-request timeout for cluster API calls (seconds)
    api_timeout: float = 30.0

    log_level: str = "INFO"

    @property
    def api_server_url(self) -> str | None:
        """Build the API server base URL from the injected host and port."""
        if not self.kubernetes_service_host:
            return None
        host = self.kubernetes_service_host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"https://{host}:{self.kubernetes_service_port}"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level

    @field_validator("webhook_secret", mode="before")
    @classmethod
    def _normalize_secret(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("poll_interval", "default_build_run_timeout", "api_timeout")
    @classmethod
    def _positive_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("max_concurrent_rebuilds")
    @classmethod
    def _positive_limit(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    model_config = {
        "env_file": os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton settings instance
settings = Settings()
