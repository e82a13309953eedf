"""
Wall Attenuation Example.

This script walks through obstacle penetration loss scenarios: a baseline
without walls, single walls of different materials, multiple walls with
cumulative scattering, an angled wall, and a wall that does not block the
sight line.

All scenarios use a transmitter at (2.5, 2.5) m and a receiver at
(7.5, 2.5) m, tx power -59 dBm and path-loss exponent 2.7.

Run with:
    python -m sim_examples.example_wall_attenuation
"""

from typing import List

import numpy as np

from rssisim.config import SimulationConfig
from rssisim.obstacles import Obstacle, ObstacleField
from rssisim.rf import SignalPropagationModel

TX = np.array([2.5, 2.5])
RX = np.array([7.5, 2.5])

BASE_CONFIG = SimulationConfig(
    tx_power=-59.0,
    path_loss_exponent=2.7,
    noise_enabled=False,
    obstacles_enabled=True,
    angle_effect_enabled=True,
    cumulative_effect_enabled=True,
)


def wall(x: float, material: str) -> Obstacle:
    """Vertical wall crossing the sight line at ``x``."""
    return Obstacle([x, 1.25], [x, 3.75], material=material)


def run_scenario(title: str, obstacles: List[Obstacle], config: SimulationConfig = BASE_CONFIG):
    """Print the RSSI breakdown for one scenario and return it."""
    print("\n" + "-" * 70)
    print(title)
    print("-" * 70)

    model = SignalPropagationModel(config, obstacle_field=ObstacleField(obstacles))
    sample = model.breakdown(float(np.linalg.norm(RX - TX)), TX, RX)

    for obstacle in obstacles:
        print(f"Obstacle: {obstacle.material.display_name} ({obstacle.attenuation:.0f} dB)")
    print(f"Distance: {sample['distance']:.2f} m")
    print(f"Base RSSI: {sample['base_rssi']:.1f} dBm")
    print(f"Obstacles crossed: {sample['obstacle_count']}")
    if sample['obstacle_losses']:
        losses = ", ".join(f"{loss:.2f}" for loss in sample['obstacle_losses'])
        print(f"Per-obstacle loss: [{losses}] dB")
    print(f"Total attenuation: {sample['total_attenuation']:.1f} dB")
    print(f"Final RSSI: {sample['rssi']:.1f} dBm")

    return sample


def main():
    print("=" * 70)
    print("Wall Attenuation Scenarios")
    print("=" * 70)

    run_scenario("Scenario 1: No walls (baseline)", [])
    run_scenario("Scenario 2: Single drywall, perpendicular", [wall(5.0, "drywall")])
    run_scenario("Scenario 3: Single concrete wall", [wall(5.0, "concrete")])

    sample = run_scenario(
        "Scenario 4: Two drywalls (cumulative scattering)",
        [wall(5.0, "drywall"), wall(7.5, "drywall")],
    )
    print(f"Loss from walls: {sample['base_rssi'] - sample['rssi']:.1f} dB")

    sample = run_scenario(
        "Scenario 5: Mixed materials (drywall + concrete)",
        [wall(5.0, "drywall"), wall(7.5, "concrete")],
    )
    print(f"Loss from walls: {sample['base_rssi'] - sample['rssi']:.1f} dB")

    diagonal = [Obstacle([3.75, 1.25], [6.25, 3.75], material="drywall")]
    with_angle = run_scenario("Scenario 6a: Angled wall (45 deg), angle effect on", diagonal)
    without_angle = run_scenario(
        "Scenario 6b: Angled wall (45 deg), angle effect off",
        diagonal,
        BASE_CONFIG.with_changes(angle_effect_enabled=False),
    )
    print(f"\nDifference: {abs(with_angle['rssi'] - without_angle['rssi']):.1f} dB")

    run_scenario("Scenario 7: Metal wall (heavy attenuation)", [wall(5.0, "metal")])
    run_scenario(
        "Scenario 8: Wall beside the sight line (no intersection)",
        [Obstacle([5.0, 5.0], [5.0, 7.5], material="concrete")],
    )

    print("\n" + "=" * 70)
    print("Examples completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
