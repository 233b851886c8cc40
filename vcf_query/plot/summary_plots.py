"""Plots for count tables and QUAL distributions.

All functions follow the convention of returning a ``matplotlib.figure.Figure``
when ``output_path`` is not provided; otherwise they save and return ``None``.
"""

from __future__ import annotations

from typing import Optional, Union

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt

from .base import bar_plot, hist_plot

__all__ = [
	"plot_counts_bar",
	"plot_quality_distribution",
]


def plot_counts_bar(
	counts: pd.DataFrame,
	key_col: str,
	*,
	count_col: str = "Count",
	output_path: Optional[str] = None,
	title: Optional[str] = None,
) -> Optional[plt.Figure]:
	"""Bar chart of a ``counts_table`` result (e.g. variants per chromosome)."""
	if not {key_col, count_col}.issubset(counts.columns):
		raise ValueError(f"DataFrame must contain columns: {key_col}, {count_col}")
	total = int(counts[count_col].sum()) if not counts.empty else 0
	return bar_plot(
		counts,
		key_col,
		count_col,
		output_path=output_path,
		title=title or f"Records per {key_col} (total {total:,})",
		ylabel="Records",
	)


def plot_quality_distribution(
	qual: Union[pd.Series, np.ndarray, list],
	*,
	output_path: Optional[str] = None,
	title: str = "QUAL distribution",
	bins: int = 60,
) -> Optional[plt.Figure]:
	"""Histogram of QUAL values; missing QUAL (NaN) is counted but not drawn."""
	return hist_plot(
		qual,
		output_path=output_path,
		title=title,
		xlabel="QUAL",
		bins=bins,
		color="#355C7D",
	)
