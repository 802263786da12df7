"""Service configuration loaded from PIPEFORGE_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class PipeforgeSettings(BaseSettings):
    """Pipeline daemon settings.

    All fields are read from environment variables with the ``PIPEFORGE_``
    prefix.  For example, ``PIPEFORGE_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="PIPEFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_file: str | None = None
    """Optional path of a rotating log file, in addition to stderr."""

    # -- Server ----------------------------------------------------------------
    host: str = "127.0.0.1"
    port: int = 6927
    graceful_shutdown_timeout: int = 600
    """Seconds to wait for queued plugin tasks to drain during shutdown.

    Tasks still waiting after this timeout are cancelled.
    """

    # -- Data storage ----------------------------------------------------------
    data_root: str = "./data"
    """Root for pipeline working directories and installed plugins."""

    # -- Config resolution -----------------------------------------------------
    config_fetch_timeout: float = 30.0
    """Timeout (seconds) for fetching remote pipeline configs."""

    # -- Replication -----------------------------------------------------------
    copy_max_in_flight: int = 64
    """Upper bound on concurrent file operations while copying a tree."""

    # -- Plugin install --------------------------------------------------------
    install_command: str = "python -m pip install --target {target} {package}"
    """Shell template; ``{package}`` is shell-quoted before substitution."""

    install_timeout: float | None = 600.0

    # -- Streaming -------------------------------------------------------------
    sse_high_water_mark: int = 16
    """Buffered frame count at which ``emit`` starts reporting back-pressure."""

    # -- Helpers ---------------------------------------------------------------

    @property
    def workdirs_root(self) -> Path:
        return Path(self.data_root) / "workdirs"

    @property
    def plugins_root(self) -> Path:
        return Path(self.data_root) / "plugins"


@lru_cache(maxsize=1)
def get_settings() -> PipeforgeSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return PipeforgeSettings()
