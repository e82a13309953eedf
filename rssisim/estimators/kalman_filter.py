"""
Scalar Kalman filter for smoothing per-anchor RSSI streams.

The RSSI reading of a static anchor is treated as a slowly varying scalar
(random-walk model, F = H = 1), not as a moving target with velocity:

    Predict:  x_{k|k-1} = x_{k-1}
              P_{k|k-1} = P_{k-1} + Q
    Update:   K_k = P_{k|k-1} / (P_{k|k-1} + R)
              x_k = x_{k|k-1} + K_k (z_k - x_{k|k-1})
              P_k = (1 - K_k) P_{k|k-1}

The first measurement bootstraps the estimate (x_0 = z_0, P_0 = R).
Each call depends only on the previous state and the current input.
"""

from typing import Dict, Iterable, Iterator, Optional

from rssisim.estimators.base import StateEstimator


class ScalarKalmanFilter(StateEstimator):
    """
    One-dimensional Kalman filter with constant noise parameters.

    Attributes:
        R: Measurement noise covariance (dB^2). Larger R trusts new readings
           less and smooths more.
        Q: Process noise covariance (dB^2). Larger Q lets the estimate follow
           changes faster.
        state: Current RSSI estimate, or None before the first measurement.
        covariance: Current error covariance, or None before the first
                    measurement.

    Example:
        >>> kf = ScalarKalmanFilter(R=4.0, Q=0.25)
        >>> kf.filter(-70.0)
        -70.0
        >>> kf.filter(-74.0) > -74.0
        True
    """

    def __init__(self, R: float = 4.0, Q: float = 0.25):
        super().__init__()
        self._validate(R, Q)
        self.R = float(R)
        self.Q = float(Q)

    @staticmethod
    def _validate(R: float, Q: float) -> None:
        if R <= 0:
            raise ValueError(f"Measurement noise R must be positive, got {R}")
        if Q < 0:
            raise ValueError(f"Process noise Q must be non-negative, got {Q}")

    def configure(self, R: Optional[float] = None, Q: Optional[float] = None) -> None:
        """
        Change the noise parameters.

        Any change discards the filter history, since an estimate built under
        the old parameters is inconsistent with the new ones.
        """
        new_R = self.R if R is None else float(R)
        new_Q = self.Q if Q is None else float(Q)
        self._validate(new_R, new_Q)
        self.R = new_R
        self.Q = new_Q
        self.reset()

    def predict(self) -> None:
        """Random-walk time update: P <- P + Q."""
        if self.state is None or self.covariance is None:
            raise RuntimeError("Must call update() with a measurement before predict()")
        self.covariance = self.covariance + self.Q

    def update(self, z: float) -> None:
        """Measurement update. Bootstraps the estimate on the first call."""
        z = float(z)
        if self.state is None:
            self.state = z
            self.covariance = self.R
            return

        gain = self.covariance / (self.covariance + self.R)
        self.state = self.state + gain * (z - self.state)
        self.covariance = (1.0 - gain) * self.covariance

    def filter(self, z: float) -> float:
        """
        Feed one raw value and return the smoothed value.

        Args:
            z: Raw measurement (e.g. RSSI in dBm).

        Returns:
            Filtered estimate after incorporating z.
        """
        if self.state is not None:
            self.predict()
        self.update(z)
        return self.state


class FilterBank:
    """
    Explicit mapping anchor id -> ScalarKalmanFilter.

    Filters are keyed by anchor identity, so adding or removing anchors never
    shifts another anchor's filter history. All filters share R and Q.

    Example:
        >>> bank = FilterBank(R=4.0, Q=0.25)
        >>> bank.filter("R1", -70.0)
        -70.0
        >>> "R1" in bank
        True
    """

    def __init__(self, R: float = 4.0, Q: float = 0.25, anchor_ids: Iterable[str] = ()):
        ScalarKalmanFilter._validate(R, Q)
        self.R = float(R)
        self.Q = float(Q)
        self._filters: Dict[str, ScalarKalmanFilter] = {}
        for anchor_id in anchor_ids:
            self.register(anchor_id)

    def __contains__(self, anchor_id: str) -> bool:
        return anchor_id in self._filters

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._filters))

    def register(self, anchor_id: str) -> ScalarKalmanFilter:
        """Create a fresh filter for ``anchor_id`` (replacing any existing one)."""
        kf = ScalarKalmanFilter(R=self.R, Q=self.Q)
        self._filters[anchor_id] = kf
        return kf

    def unregister(self, anchor_id: str) -> None:
        self._filters.pop(anchor_id, None)

    def get(self, anchor_id: str) -> Optional[ScalarKalmanFilter]:
        return self._filters.get(anchor_id)

    def filter(self, anchor_id: str, z: float) -> float:
        """Smooth ``z`` with the anchor's own filter (registered on first use)."""
        kf = self._filters.get(anchor_id)
        if kf is None:
            kf = self.register(anchor_id)
        return kf.filter(z)

    def configure(self, R: Optional[float] = None, Q: Optional[float] = None) -> None:
        """Change R/Q for every filter; resets all filter states."""
        new_R = self.R if R is None else float(R)
        new_Q = self.Q if Q is None else float(Q)
        ScalarKalmanFilter._validate(new_R, new_Q)
        self.R = new_R
        self.Q = new_Q
        for kf in self._filters.values():
            kf.configure(R=new_R, Q=new_Q)

    def reset(self) -> None:
        for kf in self._filters.values():
            kf.reset()
