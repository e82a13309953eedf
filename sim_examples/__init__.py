"""
RSSI Simulator Examples.

Example scripts for the RSSI trilateration simulator.

Examples:
    - Wall attenuation scenarios (materials, multiple walls, angled walls)
    - Trilateration with default anchor layouts, obstacles and coverage map
    - Per-anchor Kalman smoothing of noisy RSSI
"""

__version__ = "0.1.0"
