"""Summary table subpackage."""

from .summary import counts_table, tally_table, quality_series, collect_quality, quality_summary, records_frame  # noqa: F401

__all__ = ["counts_table", "tally_table", "quality_series", "collect_quality", "quality_summary", "records_frame"]
