"""Data types for RSSI trilateration.

This module defines the records exchanged between the simulation session and
the position estimator: anchors, per-anchor measurements, solver results and
the outward-facing position estimate with its status taxonomy.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from rssisim.obstacles.types import Intersection
from rssisim.rf.measurement_models import signal_quality


@dataclass(frozen=True, eq=False)
class Anchor:
    """A fixed transmitter of known position.

    Attributes:
        anchor_id: Unique identifier (e.g. 'R1').
        position: Position [x, y] in meters.
        label: Display label. Defaults to the id.
    """

    anchor_id: str
    position: np.ndarray
    label: str = ""

    def __post_init__(self) -> None:
        """Validate the anchor record."""
        if not isinstance(self.anchor_id, str) or not self.anchor_id:
            raise ValueError(f"anchor_id must be a non-empty string, got {self.anchor_id!r}")
        position = np.asarray(self.position, dtype=float)
        if position.shape != (2,):
            raise ValueError(f"Anchor position must have shape (2,), got {position.shape}")
        if not np.all(np.isfinite(position)):
            raise ValueError(f"Anchor position must be finite, got {position}")
        object.__setattr__(self, "position", position)
        if not self.label:
            object.__setattr__(self, "label", self.anchor_id)

    def moved_to(self, position: np.ndarray) -> "Anchor":
        """Return a copy of this anchor at a new position."""
        return Anchor(anchor_id=self.anchor_id, position=position, label=self.label)


@dataclass
class Measurement:
    """One anchor's reading for the current tick.

    Attributes:
        anchor: Anchor that produced the reading.
        rssi: Raw RSSI in dBm, clamped to [-120, -30].
        distance: Range estimated from the ranging RSSI (m).
        filtered_rssi: Smoothed RSSI if the noise filter is enabled.
        intersections: Obstacles crossed on the anchor→receiver segment,
                       nearest first.
        true_distance: Geometric anchor-receiver distance (m), if known.
        obstacle_loss: Total obstacle attenuation applied (dB).
    """

    anchor: Anchor
    rssi: float
    distance: float
    filtered_rssi: Optional[float] = None
    intersections: List[Intersection] = field(default_factory=list)
    true_distance: Optional[float] = None
    obstacle_loss: float = 0.0

    @property
    def anchor_id(self) -> str:
        return self.anchor.anchor_id

    @property
    def ranging_rssi(self) -> float:
        """RSSI used for ranging and weighting: filtered if available."""
        return self.rssi if self.filtered_rssi is None else self.filtered_rssi

    @property
    def quality(self) -> str:
        return signal_quality(self.ranging_rssi)


class PositionStatus(Enum):
    """Outward-facing result of a position estimate."""

    OK = "ok"
    NO_SOLUTION = "no_solution"


class FailureReason(Enum):
    """Reason codes for conditions met while estimating a position.

    Attributes:
        INSUFFICIENT_MEASUREMENTS: Fewer than 3 usable anchors.
        DEGENERATE_GEOMETRY: 3 anchors are collinear; closed form skipped,
                             the iterative solver is used instead.
        NUMERICAL_SINGULARITY: Gauss-Newton normal matrix became singular;
                               the last valid estimate is kept.
        OUT_OF_BOUNDS: Estimate outside the working region (divergence).
    """

    INSUFFICIENT_MEASUREMENTS = "insufficient_measurements"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    NUMERICAL_SINGULARITY = "numerical_singularity"
    OUT_OF_BOUNDS = "out_of_bounds"


class SolverStatus(Enum):
    """How the Gauss-Newton iteration ended."""

    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    SINGULAR = "singular"


@dataclass
class WLSResult:
    """Result container for the weighted Gauss-Newton solver.

    Attributes:
        x: Final position estimate [x, y].
        status: Why the iteration stopped.
        iterations: Number of completed update steps.
        residuals: Predicted minus measured ranges at x.
        history: Estimates visited, starting with the initial guess.
    """

    x: np.ndarray
    status: SolverStatus
    iterations: int
    residuals: np.ndarray
    history: np.ndarray

    @property
    def converged(self) -> bool:
        return self.status is SolverStatus.CONVERGED


@dataclass(frozen=True, eq=False)
class PositionEstimate:
    """Position estimate for one tick.

    Attributes:
        position: Estimated [x, y] in meters, or None for NO_SOLUTION.
        status: OK or NO_SOLUTION.
        reason: Failure reason when status is NO_SOLUTION.
        notes: Conditions handled locally on the way to an OK result
               (degenerate geometry, numerical singularity).
        info: Diagnostics (method, iterations, solver status, region...).
    """

    position: Optional[np.ndarray]
    status: PositionStatus
    reason: Optional[FailureReason] = None
    notes: Tuple[FailureReason, ...] = ()
    info: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is PositionStatus.OK

    @classmethod
    def valid(
        cls,
        position: np.ndarray,
        notes: Tuple[FailureReason, ...] = (),
        info: Optional[Dict[str, Any]] = None,
    ) -> "PositionEstimate":
        return cls(
            position=np.asarray(position, dtype=float),
            status=PositionStatus.OK,
            notes=tuple(notes),
            info=info or {},
        )

    @classmethod
    def no_solution(
        cls,
        reason: FailureReason,
        notes: Tuple[FailureReason, ...] = (),
        info: Optional[Dict[str, Any]] = None,
    ) -> "PositionEstimate":
        return cls(
            position=None,
            status=PositionStatus.NO_SOLUTION,
            reason=reason,
            notes=tuple(notes),
            info=info or {},
        )
