"""
RSSI Noise Filter Example.

This script demonstrates per-anchor scalar Kalman smoothing of noisy RSSI:
    - A static receiver: raw vs filtered RSSI for one anchor
    - Effect of R and Q on smoothing and lag
    - Positioning accuracy with and without the filter

Run with:
    python -m sim_examples.example_noise_filter
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from rssisim.config import get_preset
from rssisim.estimators import ScalarKalmanFilter
from rssisim.eval import plot_error_cdf, plot_filter_trace, save_figure, summarize_ticks
from rssisim.rf import SignalPropagationModel
from rssisim.sim import SimulationSession, create_anchor_layout

FIGS_DIR = Path(__file__).parent / "figs"


def example_static_receiver(rng: np.random.Generator):
    """Example 1: Smoothing a static anchor's RSSI stream."""
    print("=" * 70)
    print("Example 1: Static Receiver, 5 dB Noise")
    print("=" * 70)

    config = get_preset("noisy_office", noise_std=5.0)
    model = SignalPropagationModel(config, rng=rng)
    distance = 6.0
    truth = model.base_signal_strength(distance)

    raw = np.array([model.to_signal_strength(distance) for _ in range(100)])
    kf = ScalarKalmanFilter(R=config.filter_r, Q=config.filter_q)
    filtered = np.array([kf.filter(z) for z in raw])

    print(f"\nNoise-free RSSI at {distance} m: {truth:.2f} dBm")
    print(f"Raw std:      {np.std(raw):.2f} dB")
    print(f"Filtered std: {np.std(filtered):.2f} dB")
    print(f"Range from raw mean:      {model.to_distance(np.mean(raw)):.2f} m")
    print(f"Range from last filtered: {model.to_distance(filtered[-1]):.2f} m")

    return raw, filtered, truth


def example_tuning(raw: np.ndarray):
    """Example 2: R/Q trade-off."""
    print("\n" + "=" * 70)
    print("Example 2: Filter Tuning (R, Q)")
    print("=" * 70)

    print(f"\n{'R':>6} {'Q':>6} {'filtered std':>14}")
    for R, Q in [(1.0, 1.0), (4.0, 0.25), (16.0, 0.25), (25.0, 0.01)]:
        kf = ScalarKalmanFilter(R=R, Q=Q)
        filtered = np.array([kf.filter(z) for z in raw])
        print(f"{R:6.2f} {Q:6.2f} {np.std(filtered[20:]):14.2f}")


def example_positioning(seed: int = 7):
    """Example 3: Positioning with and without filtering."""
    print("\n" + "=" * 70)
    print("Example 3: Positioning With and Without Filtering")
    print("=" * 70)

    trajectory = np.tile(np.array([[8.0, 6.0]]), (200, 1))
    errors = {}

    for filter_enabled in (False, True):
        config = get_preset("noisy_office", filter_enabled=filter_enabled)
        session = SimulationSession(
            config,
            anchors=create_anchor_layout(4),
            rng=np.random.default_rng(seed),
        )
        results = session.run(trajectory)
        summary = summarize_ticks(results)
        label = "filtered" if filter_enabled else "raw"

        print(f"\n{label}:")
        print(f"  Availability: {summary['availability'] * 100:.1f}%")
        print(f"  RMSE: {summary['error_stats']['rmse']:.2f} m")

        errors[label] = np.array([r.error for r in results if r.error is not None])

    return errors


def main():
    """Run all noise filter examples."""
    rng = np.random.default_rng(42)

    raw, filtered, truth = example_static_receiver(rng)
    example_tuning(raw)
    errors = example_positioning()

    print("\n" + "=" * 70)
    print("Generating visualization...")
    print("=" * 70)

    fig1 = plot_filter_trace(raw, filtered, truth=truth)
    save_figure(fig1, FIGS_DIR, "rssi_filter_trace")
    fig2 = plot_error_cdf(errors, title="Static Receiver Error CDF")
    save_figure(fig2, FIGS_DIR, "filter_error_cdf")

    print(f"\nFigures saved to: {FIGS_DIR}")
    plt.show()

    print("\n" + "=" * 70)
    print("Examples completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
