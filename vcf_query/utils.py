"""Small utility helpers used across the vcf_query package.

Logging follows the package convention of tagged, timestamped lines; they
go to stderr because stdout carries query output.
"""
import re
import sys
from datetime import datetime
from typing import Dict, Iterable, List, Optional

__all__ = [
    "set_quiet",
    "log_info",
    "log_warn",
    "log_error",
    "progress_interval",
    "parse_delimiter",
    "parse_label_mapping",
    "split_field_list",
    "natural_sort_key",
]

_QUIET = False

_DELIMITER_NAMES = {
    "tab": "\t",
    "\\t": "\t",
    "comma": ",",
    "space": " ",
    "pipe": "|",
    "semicolon": ";",
}


def set_quiet(quiet: bool) -> None:
    """Silence (or re-enable) INFO and WARN messages."""
    global _QUIET
    _QUIET = bool(quiet)


def _emit(level: str, msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] [{level}] {msg}", file=sys.stderr)


def log_info(msg: str) -> None:
    """Print info log message."""
    if not _QUIET:
        _emit("INFO", msg)


def log_warn(msg: str) -> None:
    """Print warning log message."""
    if not _QUIET:
        _emit("WARN", msg)


def log_error(msg: str) -> None:
    """Print error log message. Never silenced."""
    _emit("ERROR", msg)


def progress_interval(count: int) -> int:
    """Reporting interval for streaming progress: start with 1K, then increase."""
    if count <= 10000:
        return 1000
    if count <= 100000:
        return 10000
    return 50000


def parse_delimiter(text: str) -> str:
    """Translate a command-line delimiter spelling into the literal character.

    Accepts names (``tab``, ``comma``...), the escape ``\\t`` or any single
    character.
    """
    if text in _DELIMITER_NAMES:
        return _DELIMITER_NAMES[text]
    if len(text) != 1:
        raise ValueError(f"delimiter must be a single character or one of {sorted(_DELIMITER_NAMES)}, got {text!r}")
    if text in ('"', "\n", "\r"):
        raise ValueError(f"{text!r} cannot be used as a delimiter")
    return text


def parse_label_mapping(pairs: Optional[Iterable[str]]) -> Dict[str, str]:
    """Parse ``OLD=NEW`` pairs into an ordered mapping.

    Example: ['CHROM=Chromosome', 'POS=Position'] -> {'CHROM': 'Chromosome', 'POS': 'Position'}
    """
    out: Dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"expected OLD=NEW, got {pair!r}")
        old, new = pair.split("=", 1)
        old, new = old.strip(), new.strip()
        if not old or not new:
            raise ValueError(f"expected OLD=NEW, got {pair!r}")
        out[old] = new
    return out


def split_field_list(values: Optional[Iterable[str]]) -> List[str]:
    """Flatten repeated and comma-separated field arguments."""
    out: List[str] = []
    for value in values or []:
        out.extend(tok.strip() for tok in value.split(",") if tok.strip())
    return out


def natural_sort_key(item: str) -> List:
    """Generate sort key for natural sorting (chr1, chr2, ..., chr10)."""
    def convert(text):
        if text.isdigit():
            return int(text)
        return text.lower()

    return [convert(c) for c in re.split(r"(\d+)", str(item))]
