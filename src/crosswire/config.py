"""Runtime settings for crosswire, loaded from the environment.

Settings are always read explicitly (``get_settings()`` or an instance passed
by the caller). Nothing in the package mutates them after construction.

Environment variables:
    CROSSWIRE_BATCHED_SEND: bool (default False)
    CROSSWIRE_RESOLVE_CONCURRENCY: int (default 8)
    CROSSWIRE_INITIAL_BLOCK_TIME: float (default 1000)
    CROSSWIRE_MAX_SEARCH_ITERATIONS: int (default 256)
    CROSSWIRE_RETRY_ATTEMPTS: int (default 3)
    CROSSWIRE_RETRY_INITIAL_DELAY: float (default 1.0, seconds)
    CROSSWIRE_RETRY_MAX_DELAY: float (default 30.0, seconds)
    CROSSWIRE_LOG_LEVEL: str (default "WARNING")
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level defaults for the orchestration layers."""

    model_config = SettingsConfigDict(
        env_prefix="CROSSWIRE_",
        extra="ignore",
        frozen=True,
    )

    batched_send: bool = Field(
        default=False,
        description="Submit consecutive same-chain transactions as one batch when the signer supports it",
    )
    resolve_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of symbolic contract references resolved at once",
    )
    initial_block_time: float = Field(
        default=1000,
        gt=0,
        description="Seed for the block time estimate used by the timestamp search",
    )
    max_search_iterations: int = Field(
        default=256,
        ge=1,
        description="Upper bound on iterations of a single timestamp search",
    )
    retry_attempts: int = Field(default=3, ge=1)
    retry_initial_delay: float = Field(default=1.0, ge=0)
    retry_max_delay: float = Field(default=30.0, ge=0)
    log_level: str = Field(default="WARNING")


def get_settings() -> Settings:
    """Build a fresh Settings instance from the current environment."""
    return Settings()
