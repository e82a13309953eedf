"""Core modules for the RSSI trilateration simulator.

This package contains the computational core of an educational radio
positioning simulator:
- obstacles: Line-segment obstacles and line-of-sight queries
- rf: Log-distance path-loss model with obstacle and noise effects
- estimators: Recursive scalar noise filter for RSSI streams
- positioning: Closed-form and Gauss-Newton trilateration
- sim: Simulation session (driving loop), anchor layouts, coverage maps
- eval: Error metrics, run summaries and plots
- config: Simulation parameters, presets and JSON persistence
"""

__version__ = "0.1.0"
