"""Plotting API for summary tables.

Import convenience: ``from vcf_query.plot import plot_counts_bar``.
"""

from .summary_plots import plot_counts_bar, plot_quality_distribution  # noqa: F401

__all__ = ["plot_counts_bar", "plot_quality_distribution"]
