"""
RSSI Trilateration Example.

This script demonstrates 2D positioning from RSSI-derived ranges:
    - Noise-free trilateration with three anchors (closed form + Gauss-Newton)
    - Default 3/4/5/6 anchor layouts on a walk with noisy RSSI
    - Failure handling (collinear anchors, weak signals)
    - Best-server coverage map for a floor plan with walls

Run with:
    python -m sim_examples.example_trilateration
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from rssisim.config import SimulationConfig, get_preset
from rssisim.eval import (
    plot_coverage_map,
    plot_error_cdf,
    plot_scene,
    save_figure,
    summarize_ticks,
)
from rssisim.obstacles import Obstacle
from rssisim.positioning import Anchor, PositionEstimator
from rssisim.sim import SimulationSession, compute_coverage_map, create_anchor_layout
from rssisim.utils import check_anchor_geometry

FIGS_DIR = Path(__file__).parent / "figs"

WIDTH, HEIGHT = 20.0, 15.0

FLOOR_PLAN = [
    Obstacle([10.0, 0.0], [10.0, 6.0], material="concrete"),
    Obstacle([10.0, 9.0], [10.0, 15.0], material="concrete"),
    Obstacle([0.0, 7.5], [6.0, 7.5], material="drywall"),
    Obstacle([13.0, 7.5], [20.0, 7.5], material="brick"),
    Obstacle([6.0, 7.5], [7.0, 7.5], material="wood_door"),
]


def walk_trajectory(n_steps: int = 120) -> np.ndarray:
    """Rectangular walk through the floor plan."""
    corners = np.array([[3.0, 3.0], [17.0, 3.0], [17.0, 12.0], [3.0, 12.0], [3.0, 3.0]])
    segment_steps = n_steps // 4
    points = [
        np.linspace(corners[i], corners[i + 1], segment_steps, endpoint=False)
        for i in range(4)
    ]
    return np.vstack(points)


def example_noise_free():
    """Example 1: Noise-free trilateration with three anchors."""
    print("=" * 70)
    print("Example 1: Noise-Free Trilateration (3 anchors)")
    print("=" * 70)

    anchors = [
        Anchor("R1", [0.0, 0.0]),
        Anchor("R2", [10.0, 0.0]),
        Anchor("R3", [0.0, 10.0]),
    ]
    session = SimulationSession(get_preset("free_space"), anchors=anchors)
    true_pos = np.array([3.0, 4.0])

    result = session.tick(true_pos)

    for m in result.measurements:
        print(f"  {m.anchor_id}: RSSI {m.rssi:7.2f} dBm -> range {m.distance:6.3f} m "
              f"(true {m.true_distance:6.3f} m)")
    print(f"\nTrue position: {true_pos}")
    print(f"Estimated position: {result.estimate.position}")
    print(f"Method: {result.estimate.info['method']}, "
          f"solver: {result.estimate.info['solver_status'].value}, "
          f"iterations: {result.estimate.info['iterations']}")
    print(f"Position error: {result.error:.6f} m")

    return session, result


def example_layouts(rng: np.random.Generator):
    """Example 2: Default layouts on a noisy walk with walls."""
    print("\n" + "=" * 70)
    print("Example 2: Anchor Layouts on a Noisy Walk")
    print("=" * 70)

    trajectory = walk_trajectory()
    config = get_preset("noisy_office")
    errors = {}

    for n_anchors in (3, 4, 5, 6):
        session = SimulationSession(
            config,
            anchors=create_anchor_layout(n_anchors, WIDTH, HEIGHT),
            obstacles=FLOOR_PLAN,
            rng=rng,
            area=(0.0, 0.0, WIDTH, HEIGHT),
        )
        results = session.run(trajectory)
        summary = summarize_ticks(results)
        stats = summary["error_stats"]

        print(f"\n{n_anchors} anchors:")
        print(f"  Availability: {summary['availability'] * 100:.1f}%")
        print(f"  RMSE: {stats['rmse']:.2f} m, P90: {stats['p90']:.2f} m")
        if summary["failures"]:
            print(f"  Failures: {summary['failures']}")

        errors[f"{n_anchors} anchors"] = np.array(
            [r.error for r in results if r.error is not None]
        )

    return errors


def example_failures():
    """Example 3: Degenerate geometry and weak signals."""
    print("\n" + "=" * 70)
    print("Example 3: Failure Handling")
    print("=" * 70)

    estimator = PositionEstimator()
    collinear = np.array([[0.0, 0.0], [5.0, 0.0], [10.0, 0.0]])
    ranges = np.linalg.norm(collinear - np.array([3.0, 4.0]), axis=1)

    _, geometry_msg = check_anchor_geometry(collinear, warn_degenerate=False)
    estimate = estimator.estimate(collinear, ranges, np.full(3, -70.0))
    print(f"\nCollinear anchors: {geometry_msg}")
    print(f"  Status: {estimate.status.value}")
    print(f"  Notes: {[note.value for note in estimate.notes]}")
    print(f"  Position: {estimate.position}")

    session = SimulationSession(
        SimulationConfig(min_signal=-60.0),
        anchors=create_anchor_layout(4, WIDTH, HEIGHT),
    )
    result = session.tick(np.array([10.0, 7.5]))
    print("\nAll anchors below min_signal = -60 dBm:")
    print(f"  Active anchors: {result.active_count}/{result.total_count}")
    print(f"  Status: {result.estimate.status.value} ({result.estimate.reason.value})")


def main():
    """Run all trilateration examples."""
    rng = np.random.default_rng(42)

    session, tick = example_noise_free()
    errors = example_layouts(rng)
    example_failures()

    print("\n" + "=" * 70)
    print("Generating visualization...")
    print("=" * 70)

    fig1 = plot_scene(session.anchors, tick=tick, title="Noise-Free Trilateration")
    save_figure(fig1, FIGS_DIR, "trilateration_scene")

    office = SimulationSession(
        get_preset("office"),
        anchors=create_anchor_layout(4, WIDTH, HEIGHT),
        obstacles=FLOOR_PLAN,
    )
    coverage = compute_coverage_map(office.propagation, office.anchors, WIDTH, HEIGHT)
    fig2 = plot_coverage_map(coverage, office.anchors, office.obstacle_field.obstacles)
    save_figure(fig2, FIGS_DIR, "coverage_map")

    fig3 = plot_error_cdf(errors, title="Position Error CDF by Anchor Layout")
    save_figure(fig3, FIGS_DIR, "layout_error_cdf")

    print(f"\nFigures saved to: {FIGS_DIR}")
    plt.show()

    print("\n" + "=" * 70)
    print("Examples completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
