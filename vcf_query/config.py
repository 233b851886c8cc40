"""Runtime defaults for vcf_query.

Values can be overridden through environment variables (``VCFQ_*``) or a
dict passed to :class:`Config`; the command line reads its argparse
defaults from here.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

__all__ = ["Config", "ON_ERROR_MODES", "get_config"]

ON_ERROR_MODES = ("abort", "skip")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration for readers, writers and the CLI.

    Attributes
    ----------
    ON_ERROR : str
        Malformed record policy, ``abort`` (default) or ``skip``.
    QUIET : bool
        Suppress ``[INFO]``/``[WARN]`` messages on stderr.
    DELIMITER : str
        Output delimiter for projected ``filter`` output.
    TRANSFORM_DELIMITER : str
        Default output delimiter for ``transform``.
    MAX_RECORDS : int | None
        Stop after this many records (debugging aid).
    PROGRESS : bool
        Emit periodic progress messages while streaming.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self.ON_ERROR = os.getenv("VCFQ_ON_ERROR", "abort")
        self.QUIET = _env_bool("VCFQ_QUIET", False)
        self.DELIMITER = os.getenv("VCFQ_DELIMITER", "\t")
        self.TRANSFORM_DELIMITER = os.getenv("VCFQ_TRANSFORM_DELIMITER", ",")
        max_records = os.getenv("VCFQ_MAX_RECORDS")
        try:
            self.MAX_RECORDS = int(max_records) if max_records else None
        except ValueError:
            raise ValueError(f"VCFQ_MAX_RECORDS must be an integer, got {max_records!r}") from None
        self.PROGRESS = _env_bool("VCFQ_PROGRESS", True)

        if config_dict:
            self._update_from_dict(config_dict)
        if self.ON_ERROR not in ON_ERROR_MODES:
            raise ValueError(f"ON_ERROR must be one of {ON_ERROR_MODES}, got {self.ON_ERROR!r}")
        if self.MAX_RECORDS is not None and self.MAX_RECORDS < 0:
            raise ValueError(f"MAX_RECORDS must not be negative, got {self.MAX_RECORDS}")

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        for key, value in config_dict.items():
            if hasattr(self, key.upper()):
                setattr(self, key.upper(), value)
            else:
                raise KeyError(f"Unknown configuration key: {key}")

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in vars(self).items() if k.isupper()}


def get_config(overrides: Optional[Dict[str, Any]] = None) -> Config:
    """Return a fresh configuration, reading the environment at call time."""
    return Config(overrides)
