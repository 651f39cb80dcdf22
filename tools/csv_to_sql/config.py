"""Converter settings."""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .detector import DEFAULT_SAMPLE_SIZE as DEFAULT_TYPE_SAMPLE_SIZE
from .renderer import DEFAULT_BATCH_SIZE
from .validator import DEFAULT_SAMPLE_SIZE as DEFAULT_VALIDATION_SAMPLE_SIZE

ENV_PREFIX = "CSV2SQL_"

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_UPLOAD_TTL_SECONDS = 60 * 60


def _env_int(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got '{raw}'")


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return default
    return raw.strip().lower() in ["1", "true", "yes", "on"]


@dataclass
class ConverterSettings:
    """
    Tunable limits for analysis and SQL generation.

    Attributes:
        type_sample_size: Non-empty values inspected per column for type detection
        validation_sample_size: Rows inspected by the validator
        batch_size: Rows per INSERT statement
        max_insert_rows: Stop rendering INSERTs after this many rows (None = all)
        strict_numeric: Quote non-numeric values found in numeric columns
        max_upload_bytes: Largest accepted upload for the HTTP service
        temp_dir: Where the HTTP service keeps uploads between preview and convert
        upload_ttl_seconds: Age after which unconverted uploads are deleted
    """

    type_sample_size: int = DEFAULT_TYPE_SAMPLE_SIZE
    validation_sample_size: int = DEFAULT_VALIDATION_SAMPLE_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    max_insert_rows: Optional[int] = None
    strict_numeric: bool = False
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "csv2sql")
    upload_ttl_seconds: int = DEFAULT_UPLOAD_TTL_SECONDS

    def __post_init__(self):
        positive = [
            "type_sample_size",
            "validation_sample_size",
            "batch_size",
            "max_upload_bytes",
            "upload_ttl_seconds",
        ]
        for name in positive:
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive")
        if self.max_insert_rows is not None and self.max_insert_rows < 0:
            raise ValueError("max_insert_rows must not be negative")
        self.temp_dir = Path(self.temp_dir)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ConverterSettings":
        """
        Build settings from CSV2SQL_* environment variables.

        Args:
            env: Environment mapping (defaults to os.environ)

        Returns:
            ConverterSettings with defaults for unset variables
        """
        env = os.environ if env is None else env
        defaults = cls()

        return cls(
            type_sample_size=_env_int(env, "TYPE_SAMPLE_SIZE", defaults.type_sample_size),
            validation_sample_size=_env_int(env, "VALIDATION_SAMPLE_SIZE", defaults.validation_sample_size),
            batch_size=_env_int(env, "BATCH_SIZE", defaults.batch_size),
            max_insert_rows=_env_int(env, "MAX_INSERT_ROWS", defaults.max_insert_rows),
            strict_numeric=_env_bool(env, "STRICT_NUMERIC", defaults.strict_numeric),
            max_upload_bytes=_env_int(env, "MAX_UPLOAD_BYTES", defaults.max_upload_bytes),
            temp_dir=Path(env.get(ENV_PREFIX + "TEMP_DIR") or defaults.temp_dir),
            upload_ttl_seconds=_env_int(env, "UPLOAD_TTL_SECONDS", defaults.upload_ttl_seconds),
        )
