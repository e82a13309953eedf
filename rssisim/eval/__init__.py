"""
Evaluation and Visualization Module.

This module provides evaluation metrics and visualization utilities
for simulated RSSI positioning runs.

Modules:
    metrics: Error metrics and run summaries
    plots: Scene, coverage map, filter trace and error CDF plots
"""

from .metrics import (
    compute_error_stats,
    compute_position_errors,
    compute_rmse,
    summarize_ticks,
)
from .plots import (
    plot_coverage_map,
    plot_error_cdf,
    plot_filter_trace,
    plot_scene,
    save_figure,
)

__all__ = [
    # Metrics
    "compute_position_errors",
    "compute_rmse",
    "compute_error_stats",
    "summarize_ticks",
    # Plots
    "plot_scene",
    "plot_coverage_map",
    "plot_filter_trace",
    "plot_error_cdf",
    "save_figure",
]
