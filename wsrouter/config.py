"""Router configuration — env-driven.

Centralized settings using pydantic-settings. Reads from a .env file and
WSROUTER_* environment variables.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class RouterConfig(BaseSettings):
    """Runtime configuration with environment variable overrides.

    All settings can be overridden via WSROUTER_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Override via environment::

        export WSROUTER_LOG_LEVEL=DEBUG
        export WSROUTER_OPEN_TIMEOUT=3

    Or via .env file::

        WSROUTER_PING_INTERVAL=30
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WSROUTER_",
        env_file_encoding="utf-8",
    )

    log_level: str = "INFO"

    # URL validation for Coordinator.connect()
    allowed_schemes: tuple[str, ...] = ("ws", "wss")

    # WebSocket transport
    open_timeout: float = 10.0
    close_timeout: float = 5.0
    ping_interval: float | None = 20.0
    max_message_size: int | None = 2**20  # 1 MiB; None disables the limit


# Module-level singleton; import as `from wsrouter.config import config`
config = RouterConfig()
