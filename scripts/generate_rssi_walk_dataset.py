"""
Generate RSSI Walk Dataset.

This script runs the RSSI trilateration simulator along a receiver
trajectory and saves the ground truth, per-anchor RSSI readings and the
position estimates, so that filtering and positioning experiments can be
repeated on identical data.

Output files:
    truth.npz         positions (T, 2), anchors (N, 2), anchor_ids (N,)
    measurements.npz  rssi / filtered_rssi / distance / obstacle_loss (T, N),
                      active (T, N), estimates (T, 2), status (T,), reason (T,)
    config.json       simulation parameters and run summary

Usage:
    python scripts/generate_rssi_walk_dataset.py --preset noisy_office
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rssisim.config import PRESETS, config_to_dict, get_preset
from rssisim.eval.metrics import summarize_ticks
from rssisim.obstacles import Obstacle
from rssisim.sim import SimulationSession, TickResult, create_anchor_layout


def generate_trajectory(
    trajectory_type: str = "rectangle",
    width: float = 20.0,
    height: float = 15.0,
    num_points: int = 200,
    seed: int = 42,
) -> np.ndarray:
    """
    Generate a 2D receiver trajectory.

    Args:
        trajectory_type: 'rectangle', 'circle' or 'random'.
        width: Area width in meters.
        height: Area height in meters.
        num_points: Number of trajectory points.
        seed: Random seed (used by 'random').

    Returns:
        Trajectory of shape (num_points, 2).
    """
    if trajectory_type == "rectangle":
        x0, x1 = 0.15 * width, 0.85 * width
        y0, y1 = 0.2 * height, 0.8 * height
        corners = np.array([[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]])
        seg_lengths = np.linalg.norm(np.diff(corners, axis=0), axis=1)
        s = np.linspace(0.0, seg_lengths.sum(), num_points, endpoint=False)
        cumulative = np.concatenate([[0.0], np.cumsum(seg_lengths)])
        idx = np.searchsorted(cumulative, s, side="right") - 1
        frac = (s - cumulative[idx]) / seg_lengths[idx]
        return corners[idx] + frac[:, None] * (corners[idx + 1] - corners[idx])

    elif trajectory_type == "circle":
        center = np.array([width / 2, height / 2])
        radius = 0.35 * min(width, height)
        angles = np.linspace(0.0, 2 * np.pi, num_points, endpoint=False)
        return center + radius * np.column_stack([np.cos(angles), np.sin(angles)])

    elif trajectory_type == "random":
        rng = np.random.default_rng(seed)
        return rng.uniform([1.0, 1.0], [width - 1.0, height - 1.0], size=(num_points, 2))

    else:
        raise ValueError(f"Unknown trajectory type: {trajectory_type}")


def create_floor_plan(layout: str, width: float, height: float) -> List[Obstacle]:
    """Obstacle set for a named floor plan ('none' or 'office')."""
    if layout == "none":
        return []
    if layout == "office":
        mid_x, mid_y = width / 2, height / 2
        return [
            Obstacle([mid_x, 0.0], [mid_x, 0.4 * height], material="concrete"),
            Obstacle([mid_x, 0.6 * height], [mid_x, height], material="concrete"),
            Obstacle([0.0, mid_y], [0.3 * width, mid_y], material="drywall"),
            Obstacle([0.3 * width, mid_y], [0.35 * width, mid_y], material="wood_door"),
            Obstacle([0.65 * width, mid_y], [width, mid_y], material="brick"),
            Obstacle([0.8 * width, 0.1 * height], [0.8 * width, 0.3 * height], material="metal"),
        ]
    raise ValueError(f"Unknown floor plan: {layout}")


def collect_arrays(results: List[TickResult], anchor_ids: List[str]) -> Dict[str, np.ndarray]:
    """Stack tick results into (T, N) / (T, 2) arrays in anchor order."""
    T, N = len(results), len(anchor_ids)
    column = {anchor_id: j for j, anchor_id in enumerate(anchor_ids)}

    arrays = {
        "rssi": np.full((T, N), np.nan),
        "filtered_rssi": np.full((T, N), np.nan),
        "distance": np.full((T, N), np.nan),
        "obstacle_loss": np.zeros((T, N)),
        "active": np.zeros((T, N), dtype=bool),
        "estimates": np.full((T, 2), np.nan),
        "status": np.empty(T, dtype="<U16"),
        "reason": np.empty(T, dtype="<U32"),
    }

    for k, result in enumerate(results):
        for m in result.all_measurements:
            j = column[m.anchor_id]
            arrays["rssi"][k, j] = m.rssi
            if m.filtered_rssi is not None:
                arrays["filtered_rssi"][k, j] = m.filtered_rssi
            arrays["distance"][k, j] = m.distance
            arrays["obstacle_loss"][k, j] = m.obstacle_loss
        for m in result.measurements:
            arrays["active"][k, column[m.anchor_id]] = True

        arrays["status"][k] = result.estimate.status.value
        arrays["reason"][k] = result.estimate.reason.value if result.estimate.reason else ""
        if result.estimate.ok:
            arrays["estimates"][k] = result.estimate.position

    return arrays


def generate_dataset(
    output_dir: str,
    preset: str = "office",
    n_anchors: int = 4,
    floor_plan: str = "office",
    trajectory: str = "rectangle",
    width: float = 20.0,
    height: float = 15.0,
    num_points: int = 200,
    noise_std: Optional[float] = None,
    filter_enabled: Optional[bool] = None,
    seed: int = 42,
) -> Dict:
    """
    Generate and save an RSSI walk dataset.

    Args:
        output_dir: Output directory.
        preset: Simulation preset name (see rssisim.config.PRESETS).
        n_anchors: Number of anchors in the default layout (3-6).
        floor_plan: 'none' or 'office'.
        trajectory: 'rectangle', 'circle' or 'random'.
        width: Area width in meters.
        height: Area height in meters.
        num_points: Number of trajectory points.
        noise_std: Override of the preset noise std (dB). Enables noise.
        filter_enabled: Override of the preset filter switch.
        seed: Random seed.

    Returns:
        The config dictionary written to config.json.
    """
    print("\n" + "=" * 70)
    print(f"Generating RSSI Walk Dataset: {preset}")
    print("=" * 70)

    overrides = {}
    if noise_std is not None:
        overrides.update(noise_enabled=True, noise_std=noise_std)
    if filter_enabled is not None:
        overrides["filter_enabled"] = filter_enabled
    sim_config = get_preset(preset, **overrides)

    anchors = create_anchor_layout(n_anchors, width, height)
    obstacles = create_floor_plan(floor_plan, width, height)
    positions = generate_trajectory(trajectory, width, height, num_points, seed)

    print(f"\n  Anchors: {n_anchors}, obstacles: {len(obstacles)}")
    print(f"  Trajectory: {trajectory} ({num_points} points)")
    print(f"  Path-loss exponent: {sim_config.path_loss_exponent}, "
          f"noise: {sim_config.noise_std if sim_config.noise_enabled else 0.0} dB, "
          f"filter: {'on' if sim_config.filter_enabled else 'off'}")

    session = SimulationSession(
        sim_config,
        anchors=anchors,
        obstacles=obstacles,
        rng=np.random.default_rng(seed),
        area=(0.0, 0.0, width, height),
    )
    results = session.run(positions)
    summary = summarize_ticks(results)

    anchor_ids = [a.anchor_id for a in anchors]
    arrays = collect_arrays(results, anchor_ids)

    print(f"\n  Availability: {summary['availability'] * 100:.1f}%")
    print(f"  RMSE: {summary['error_stats']['rmse']:.2f} m")
    if summary["failures"]:
        print(f"  Failures: {summary['failures']}")

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    np.savez(
        out / "truth.npz",
        positions=positions,
        anchors=np.array([a.position for a in anchors]),
        anchor_ids=np.array(anchor_ids),
    )
    np.savez(out / "measurements.npz", **arrays)

    config = {
        "dataset": "rssi_walk",
        "preset": preset,
        "simulation": config_to_dict(sim_config),
        "area": {"width": width, "height": height},
        "anchors": {a.anchor_id: a.position.tolist() for a in anchors},
        "obstacles": [
            {
                "id": o.obstacle_id,
                "start": o.start.tolist(),
                "end": o.end.tolist(),
                "material": o.material.key,
            }
            for o in obstacles
        ],
        "trajectory": {"type": trajectory, "num_points": num_points},
        "performance": {
            "availability": summary["availability"],
            "rmse_m": summary["error_stats"]["rmse"],
            "p90_m": summary["error_stats"]["p90"],
            "failures": summary["failures"],
        },
        "seed": seed,
    }
    with open(out / "config.json", "w") as f:
        json.dump(config, f, indent=2)

    print(f"\n  Saved dataset to: {out}")
    print("    Files: truth.npz, measurements.npz, config.json")

    print("\n" + "=" * 70)
    print("Dataset generation complete!")
    print("=" * 70)

    return config


def main():
    """Main CLI entry point."""
    preset_lines = "\n".join(
        f"  {name:<18}{params['description']}" for name, params in PRESETS.items()
    )
    parser = argparse.ArgumentParser(
        description="Generate RSSI walk dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Presets:
{preset_lines}

Examples:
  # Office floor plan, noise-free
  python scripts/generate_rssi_walk_dataset.py --preset office

  # Noisy office, 6 anchors, random points
  python scripts/generate_rssi_walk_dataset.py \\
      --preset noisy_office \\
      --anchors 6 \\
      --trajectory random \\
      --output data/sim/rssi_walk_random

  # Same data without the Kalman filter
  python scripts/generate_rssi_walk_dataset.py --preset noisy_office --no-filter
        """,
    )

    parser.add_argument(
        "--preset",
        type=str,
        choices=sorted(PRESETS),
        default="office",
        help="Simulation preset (default: office)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="data/sim/rssi_walk",
        help="Output directory (default: data/sim/rssi_walk)",
    )

    # Scene parameters
    scene_group = parser.add_argument_group("Scene Parameters")
    scene_group.add_argument(
        "--anchors", type=int, choices=[3, 4, 5, 6], default=4,
        help="Number of anchors (default: 4)",
    )
    scene_group.add_argument(
        "--floor-plan", type=str, choices=["none", "office"], default="office",
        help="Obstacle layout (default: office)",
    )
    scene_group.add_argument(
        "--width", type=float, default=20.0, help="Area width in meters (default: 20.0)"
    )
    scene_group.add_argument(
        "--height", type=float, default=15.0, help="Area height in meters (default: 15.0)"
    )

    # Trajectory parameters
    traj_group = parser.add_argument_group("Trajectory Parameters")
    traj_group.add_argument(
        "--trajectory", type=str, choices=["rectangle", "circle", "random"],
        default="rectangle", help="Trajectory type (default: rectangle)",
    )
    traj_group.add_argument(
        "--num-points", type=int, default=200, help="Number of points (default: 200)"
    )

    # Signal parameters
    signal_group = parser.add_argument_group("Signal Parameters")
    signal_group.add_argument(
        "--noise-std", type=float, default=None,
        help="RSSI noise std in dB (enables noise; default: from preset)",
    )
    filter_switch = signal_group.add_mutually_exclusive_group()
    filter_switch.add_argument(
        "--filter", dest="filter_enabled", action="store_true", default=None,
        help="Enable per-anchor Kalman filtering",
    )
    filter_switch.add_argument(
        "--no-filter", dest="filter_enabled", action="store_false",
        help="Disable per-anchor Kalman filtering",
    )

    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

    args = parser.parse_args()

    generate_dataset(
        output_dir=args.output,
        preset=args.preset,
        n_anchors=args.anchors,
        floor_plan=args.floor_plan,
        trajectory=args.trajectory,
        width=args.width,
        height=args.height,
        num_points=args.num_points,
        noise_std=args.noise_std,
        filter_enabled=args.filter_enabled,
        seed=args.seed,
    )


if __name__ == "__main__":
    main()
