"""
Base classes for recursive estimators.

This module defines the common interface of sequential (predict/update)
estimators used to smooth measurement streams.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple


class StateEstimator(ABC):
    """Abstract base class for scalar recursive estimators."""

    def __init__(self):
        self.state: Optional[float] = None
        self.covariance: Optional[float] = None

    @property
    def initialized(self) -> bool:
        return self.state is not None

    @abstractmethod
    def predict(self) -> None:
        """Perform prediction step (time update)."""
        pass

    @abstractmethod
    def update(self, z: float) -> None:
        """
        Perform measurement update (correction step).

        Args:
            z: Scalar measurement.
        """
        pass

    def reset(self) -> None:
        """Discard the current estimate and covariance."""
        self.state = None
        self.covariance = None

    def get_state(self) -> Tuple[float, float]:
        """
        Get current estimate and covariance.

        Returns:
            Tuple of (state, covariance).
        """
        if self.state is None or self.covariance is None:
            raise RuntimeError("Estimator not initialized. Feed a measurement first.")
        return self.state, self.covariance
