"""
Simulation utilities: session (driving loop), anchor layouts, coverage maps.

Modules:
    session: SimulationSession and TickResult
    layouts: Default triangle/square/pentagon/hexagon anchor layouts
    coverage: Best-server RSSI coverage map
"""

from rssisim.sim.coverage import compute_coverage_map
from rssisim.sim.layouts import (
    SUPPORTED_ANCHOR_COUNTS,
    create_anchor_layout,
    create_anchor_positions,
)
from rssisim.sim.session import SimulationSession, TickResult

__all__ = [
    "SimulationSession",
    "TickResult",
    "SUPPORTED_ANCHOR_COUNTS",
    "create_anchor_positions",
    "create_anchor_layout",
    "compute_coverage_map",
]
