"""Base plotting utilities shared by the summary plots.

Each helper returns a matplotlib Figure when ``output_path`` is not
provided; otherwise the figure is saved and closed (to avoid memory
accumulation in batch runs) and ``None`` is returned.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union

import matplotlib

matplotlib.use("Agg")  # non-interactive backend

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

__all__ = [
	"set_plot_style",
	"save_figure",
	"bar_plot",
	"hist_plot",
]


def set_plot_style() -> None:
	"""Apply a unified visual style."""
	sns.set_theme(style="whitegrid")
	plt.rcParams.update({
		"axes.titlesize": 13,
		"axes.labelsize": 11,
		"font.size": 10,
		"figure.dpi": 100,
	})


def save_figure(fig: plt.Figure, output_path: Optional[str]) -> Optional[plt.Figure]:
	"""Save figure if ``output_path`` provided else return it.

	Parameters
	----------
	fig : matplotlib.figure.Figure
		Figure to save or return.
	output_path : str | None
		Path to save. If None the figure is returned and *not* closed.
	"""
	if output_path:
		fig.savefig(output_path, bbox_inches="tight")
		plt.close(fig)
		return None
	return fig


def bar_plot(
	data: pd.DataFrame,
	x: str,
	y: str,
	*,
	output_path: Optional[str] = None,
	title: str = "",
	xlabel: Optional[str] = None,
	ylabel: Optional[str] = None,
	color: str = "#4477AA",
	rotation: int = 45,
	annotate: bool = True,
) -> Optional[plt.Figure]:
	"""Vertical bar chart of ``y`` per category ``x`` in the given row order."""
	set_plot_style()
	width = max(6, min(18, 0.5 * len(data) + 2))
	fig, ax = plt.subplots(figsize=(width, 5))
	order = [str(v) for v in data[x]]
	plot_df = pd.DataFrame({x: order, y: data[y].to_numpy()})
	sns.barplot(data=plot_df, x=x, y=y, order=order, color=color, ax=ax)
	if annotate:
		for i, v in enumerate(plot_df[y]):
			ax.text(i, v, f"{v:,}", ha="center", va="bottom", fontsize=8)
	ax.set_title(title)
	ax.set_xlabel(xlabel or x)
	ax.set_ylabel(ylabel or y)
	ax.tick_params(axis="x", labelrotation=rotation)
	fig.tight_layout()
	return save_figure(fig, output_path)


def hist_plot(
	values: Union[pd.Series, np.ndarray, list],
	*,
	output_path: Optional[str] = None,
	title: str = "",
	xlabel: str = "",
	bins: int = 50,
	color: str = "steelblue",
	kde: bool = True,
	figsize: Tuple[int, int] = (8, 5),
) -> Optional[plt.Figure]:
	"""Histogram + (optional) KDE of the non-NaN values.

	The title notes how many values were missing and the observed range.
	"""
	set_plot_style()
	arr = np.asarray(values, dtype=float)
	mask = ~np.isnan(arr)
	present = arr[mask]
	missing = int(arr.size - present.size)
	fig, ax = plt.subplots(figsize=figsize)
	if present.size:
		# KDE needs at least two distinct values
		sns.histplot(present, bins=bins, kde=kde and np.unique(present).size > 1, color=color, ax=ax)
		note = f"n={present.size:,}, missing={missing:,}, range {present.min():g}-{present.max():g}"
	else:
		ax.text(0.5, 0.5, "no values", ha="center", va="center", transform=ax.transAxes)
		note = f"n=0, missing={missing:,}"
	ax.set_title(f"{title}\n({note})" if title else note)
	ax.set_xlabel(xlabel)
	ax.set_ylabel("Count")
	fig.tight_layout()
	return save_figure(fig, output_path)
