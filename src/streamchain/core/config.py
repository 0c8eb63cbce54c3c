# src/streamchain/core/config.py
"""
Configuration schema and loading for sequencing sessions.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import math
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 2 MiB: ceiling on bytes buffered across queued and active streams.
DEFAULT_MAX_DATA_SIZE = 2 * 1024 * 1024


class SessionSettings(BaseModel):
    """Options recognised by SequenceSession.create().

    Example YAML:
        max_data_size: 4194304   # 4 MiB
        pause_streams: true

    Use ``.inf`` in YAML (or math.inf in code) for an unbounded ceiling.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_data_size: int | float = Field(
        default=DEFAULT_MAX_DATA_SIZE,
        gt=0,
        description="Maximum bytes pending across queued and active streams before the session fails",
    )
    pause_streams: bool = Field(
        default=True,
        description="Pause streams on append and relay pause()/resume() to the active stream",
    )

    @field_validator("max_data_size")
    @classmethod
    def validate_max_data_size(cls, v: int | float) -> int | float:
        """Reject NaN; a NaN ceiling would make every comparison false."""
        if isinstance(v, float) and math.isnan(v):
            raise ValueError("max_data_size must be a number or infinity, got NaN")
        return v

    @property
    def is_unbounded(self) -> bool:
        """Whether the size ceiling is disabled."""
        return math.isinf(self.max_data_size)


def load_settings(config_path: Path) -> SessionSettings:
    """Load session settings from YAML with environment variable overrides.

    Precedence:
    1. Environment variables (STREAMCHAIN_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated SessionSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="STREAMCHAIN",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
    )

    # Dynaconf returns uppercase keys and its own bookkeeping entries
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return SessionSettings(**raw_config)
