"""
Visualization Utilities for the RSSI simulator.

This module provides plotting functions for the floor plan scene (anchors,
obstacles, ranging circles, estimates), coverage maps, RSSI filter traces
and error distributions.

All functions return matplotlib Figure objects for flexible display/saving.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np

from rssisim.obstacles.types import Material, Obstacle
from rssisim.positioning.types import Anchor
from rssisim.sim.session import TickResult

MATERIAL_COLORS = {
    Material.DRYWALL: "#cccccc",
    Material.CONCRETE: "#888888",
    Material.BRICK: "#aa6644",
    Material.GLASS: "#8888ff",
    Material.METAL: "#666666",
    Material.WOOD_DOOR: "#996633",
    Material.METAL_DOOR: "#555555",
}

QUALITY_COLORS = {
    "strong": "#4CAF50",
    "medium": "#FF9800",
    "weak": "#F44336",
}


def plot_scene(
    anchors: Sequence[Anchor],
    obstacles: Sequence[Obstacle] = (),
    tick: Optional[TickResult] = None,
    title: str = "RSSI Trilateration",
) -> plt.Figure:
    """
    Plot the floor plan: anchors, obstacles and (optionally) one tick.

    For a tick, ranging circles are drawn around each active anchor coloured
    by signal quality, together with the true and estimated positions.

    Args:
        anchors: Anchors to draw.
        obstacles: Obstacles to draw, coloured by material.
        tick: Optional tick result.
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))

    # Obstacles
    drawn_materials = set()
    for obstacle in obstacles:
        label = None
        if obstacle.material not in drawn_materials:
            label = obstacle.material.display_name
            drawn_materials.add(obstacle.material)
        ax.plot(
            [obstacle.start[0], obstacle.end[0]],
            [obstacle.start[1], obstacle.end[1]],
            "-",
            color=MATERIAL_COLORS[obstacle.material],
            linewidth=4,
            label=label,
        )

    # Anchors
    anchors_xy = np.array([a.position for a in anchors]).reshape(-1, 2)
    ax.plot(
        anchors_xy[:, 0],
        anchors_xy[:, 1],
        "s",
        color="blue",
        markersize=12,
        label="Anchors",
    )
    for anchor in anchors:
        ax.text(
            anchor.position[0],
            anchor.position[1] + 0.5,
            anchor.label,
            fontsize=10,
            ha="center",
            color="blue",
        )

    if tick is not None:
        for m in tick.measurements:
            circle = plt.Circle(
                m.anchor.position,
                m.distance,
                fill=False,
                color=QUALITY_COLORS[m.quality],
                alpha=0.6,
                linewidth=1.5,
            )
            ax.add_patch(circle)

        ax.plot(
            tick.receiver[0],
            tick.receiver[1],
            "o",
            color="#FFC107",
            markersize=12,
            markeredgecolor="black",
            label="True position",
        )
        if tick.estimate.ok:
            est = tick.estimate.position
            ax.plot(est[0], est[1], "o", color="#2196F3", markersize=10, label="Estimate")
            ax.plot(
                [tick.receiver[0], est[0]],
                [tick.receiver[1], est[1]],
                "r--",
                alpha=0.5,
            )

    ax.set_xlabel("X (m)", fontsize=12)
    ax.set_ylabel("Y (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis("equal")

    plt.tight_layout()
    return fig


def plot_coverage_map(
    coverage: Dict[str, np.ndarray],
    anchors: Optional[Sequence[Anchor]] = None,
    obstacles: Sequence[Obstacle] = (),
    title: str = "Coverage Map (best-server RSSI)",
) -> plt.Figure:
    """
    Plot a coverage map from :func:`rssisim.sim.coverage.compute_coverage_map`.

    Args:
        coverage: Coverage dictionary ('rssi', 'extent').
        anchors: Anchors to overlay (optional).
        obstacles: Obstacles to overlay.
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))

    im = ax.imshow(
        coverage["rssi"],
        extent=coverage["extent"],
        origin="lower",
        cmap="RdYlGn",
        vmin=-100,
        vmax=-60,
        aspect="auto",
        interpolation="bilinear",
    )
    cbar = plt.colorbar(im, ax=ax)
    cbar.set_label("RSSI (dBm)", fontsize=12)

    for obstacle in obstacles:
        ax.plot(
            [obstacle.start[0], obstacle.end[0]],
            [obstacle.start[1], obstacle.end[1]],
            "k-",
            linewidth=3,
        )

    if anchors:
        anchors_xy = np.array([a.position for a in anchors])
        ax.plot(
            anchors_xy[:, 0],
            anchors_xy[:, 1],
            "ws",
            markersize=10,
            markeredgecolor="black",
            markeredgewidth=2,
            label="Anchors",
        )
        ax.legend(fontsize=10)

    ax.set_xlabel("X (m)", fontsize=12)
    ax.set_ylabel("Y (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")

    plt.tight_layout()
    return fig


def plot_filter_trace(
    raw: np.ndarray,
    filtered: np.ndarray,
    truth: Optional[float] = None,
    title: str = "RSSI Kalman Filter",
) -> plt.Figure:
    """
    Plot a raw RSSI stream against its filtered version.

    Args:
        raw: Raw RSSI samples, shape (T,)
        filtered: Filtered RSSI samples, shape (T,)
        truth: Noise-free RSSI level (optional)
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 5))
    k = np.arange(len(raw))

    ax.plot(k, raw, ".", color="gray", alpha=0.6, label="Raw")
    ax.plot(k, filtered, "b-", linewidth=2, label="Filtered")
    if truth is not None:
        ax.axhline(truth, color="k", linestyle="--", label="Noise-free")

    ax.set_xlabel("Sample", fontsize=12)
    ax.set_ylabel("RSSI (dBm)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_error_cdf(
    errors_dict: Dict[str, np.ndarray], title: str = "Error CDF"
) -> plt.Figure:
    """
    Plot Cumulative Distribution Function (CDF) of position errors.

    Args:
        errors_dict: Dictionary of error magnitude arrays {name: errors}
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    colors = ["blue", "red", "green", "orange", "purple"]
    linestyles = ["-", "--", "-.", ":", "-"]

    for i, (name, errors) in enumerate(errors_dict.items()):
        sorted_errors = np.sort(np.abs(np.asarray(errors, dtype=float)))
        cdf = np.arange(1, len(sorted_errors) + 1) / max(len(sorted_errors), 1)

        ax.plot(
            sorted_errors,
            cdf,
            label=name,
            color=colors[i % len(colors)],
            linestyle=linestyles[i % len(linestyles)],
            linewidth=2,
        )

    ax.set_xlabel("Position Error (m)", fontsize=12)
    ax.set_ylabel("CDF", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.set_xlim(left=0)
    ax.set_ylim([0, 1.05])

    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Tuple[str, ...] = ("svg", "pdf", "png"),
) -> List[Path]:
    """
    Save figure in multiple formats.

    Args:
        fig: Matplotlib figure to save
        out_dir: Output directory
        name: Base filename (without extension)
        formats: Tuple of format extensions

    Returns:
        paths: List of saved file paths
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        filepath = out_dir / f"{name}.{fmt}"
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        paths.append(filepath)

    return paths
