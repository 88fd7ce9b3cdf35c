import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from entropy_detector import DEFAULT_ENTROPY_THRESHOLD, DEFAULT_MIN_TOKEN_LENGTH

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
DEFAULT_READ_TIMEOUT = 30.0


@dataclass(frozen=True)
class ScanConfig:
    """Tuning knobs for a scan"""

    entropy_threshold: float = DEFAULT_ENTROPY_THRESHOLD
    min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH
    max_workers: int = DEFAULT_MAX_WORKERS
    read_timeout: Optional[float] = DEFAULT_READ_TIMEOUT
    patterns_file: Optional[str] = None

    def __post_init__(self):
        if self.entropy_threshold < 0:
            raise ValueError("entropy_threshold must not be negative")
        if self.min_token_length < 1:
            raise ValueError("min_token_length must be at least 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides) -> "ScanConfig":
        """
        Reads the configuration from environment variables, a .env file is loaded first.

        Keyword overrides that are not None win over the environment.
        """

        load_dotenv()

        values = {
            "entropy_threshold": _get_env_number(
                "SECRETS_ENTROPY_THRESHOLD", DEFAULT_ENTROPY_THRESHOLD, float, allow_zero=True
            ),
            "min_token_length": _get_env_number(
                "SECRETS_MIN_TOKEN_LENGTH", DEFAULT_MIN_TOKEN_LENGTH, int
            ),
            "max_workers": _get_env_number("SECRETS_MAX_WORKERS", DEFAULT_MAX_WORKERS, int),
            "read_timeout": _get_env_number(
                "SECRETS_READ_TIMEOUT", DEFAULT_READ_TIMEOUT, float
            ),
            "patterns_file": os.getenv("SECRETS_PATTERNS_FILE") or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _get_env_number(name: str, default, cast, allow_zero: bool = False):
    """Gets a positive number (or zero, if allowed) from the env. variable, default fallback"""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Invalid {name} env var, using default {default}")
        return default
    if value < 0 or (value == 0 and not allow_zero):
        logger.warning(f"Out of range {name} env var, using default {default}")
        return default
    return value
