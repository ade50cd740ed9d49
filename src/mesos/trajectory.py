"""
Trajectory class definition: dense mean-element output of one propagation.
"""

import numpy as np
from typing import Union, Optional, TYPE_CHECKING

from .orbital_elements import OrbitalElements
if TYPE_CHECKING:
    import pandas as pd
    from .propagator import MeanElementsPropagator

ELEMENT_COLUMNS = ('a', 'ex', 'ey', 'hx', 'hy', 'lm')


class Trajectory:
    """
    A trajectory segment with continuous-time state access.

    Attributes:
        propagator: Reference to the propagator that produced it
        output: continuous output of ``solve_ivp`` (``OdeSolution``)
        t0: Start time
        tf: End time
        mass: Spacecraft mass [kg]
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, propagator: "MeanElementsPropagator", output, t0: float, tf: float,
                 mass: Optional[float] = None):
        self._propagator = propagator
        self._output = output  # dense output, callable on times
        self._t0 = float(t0)
        self._tf = float(tf)
        self._mass = mass

    # ========== PROPERTY ACCESS ==========
    @property
    def propagator(self) -> "MeanElementsPropagator":
        return self._propagator

    @property
    def t0(self):
        return self._t0

    @property
    def tf(self):
        return self._tf

    @property
    def duration(self):
        """Trajectory duration."""
        return self.tf - self.t0

    # ========== UTILITY METHODS ==========
    def _to_orbit(self, row, t, osculating):
        orbit = OrbitalElements.equinoctial(row[:6], mu=self._propagator.mu, epoch=t)
        if osculating:
            return self._propagator.compute_osculating_state(orbit, mass=self._mass)
        return orbit

    def state_at(self, t: float, osculating: bool = False) -> OrbitalElements:
        """
        Get the equinoctial orbit at specified time.

        Parameters:
            t: Time to query (must be in [t0, tf])
            osculating: Add the short-period corrections to the mean elements
        """
        self._validate_time(t)
        return self._to_orbit(self.state_at_raw(t), float(t), osculating)

    def evaluate(self, times: Union[float, np.ndarray, list],
                 osculating: bool = False) -> Union[OrbitalElements, list]:
        """
        Evaluate trajectory at one or more times.

        Returns:
            Single OrbitalElements if times is scalar,
            list of OrbitalElements if times is array-like
        """
        if isinstance(times, (int, float)):
            return self.state_at(times, osculating)

        times = np.asarray(times, dtype=float)
        states = self.evaluate_raw(times)
        return [self._to_orbit(row, t, osculating) for t, row in zip(times, states)]

    def sample(self, n_points: int = 100, osculating: bool = False) -> list:
        """
        Uniformly sample trajectory in time.

        Parameters:
            n_points: Number of points to sample (default: 100)
            osculating: Add the short-period corrections
        """
        if n_points < 2:
            raise ValueError("n_points must be at least 2, use .state_at()")
        return self.evaluate(self.get_times(n_points), osculating)

    def state_at_raw(self, t: float) -> np.ndarray:
        """Mean equinoctial element array at time t."""
        self._validate_time(t)
        return np.asarray(self._output(float(t)))[:6]

    def evaluate_raw(self, times: Union[float, np.ndarray, list]) -> np.ndarray:
        """
        Evaluate mean elements at one or more times, returning raw arrays.

        Returns:
            Array of shape (6,) if times is scalar,
            Array of shape (n_times, 6) if times is array-like
        """
        if isinstance(times, (int, float)):
            return self.state_at_raw(times)

        times = np.asarray(times, dtype=float)
        for t in (times.min(), times.max()):
            self._validate_time(t)
        # OdeSolution returns (n_states, n_times)
        return np.asarray(self._output(times))[:6].T

    def _validate_time(self, t: float):
        """Validate that time is within trajectory bounds."""
        t_min = min(self.t0, self.tf)
        t_max = max(self.t0, self.tf)

        if not (t_min <= t <= t_max):
            raise ValueError(
                f"Time {t} outside trajectory bounds [{self.t0}, {self.tf}]"
            )

    def contains_time(self, t: float) -> bool:
        """Check if time is within trajectory bounds."""
        return min(self.t0, self.tf) <= t <= max(self.t0, self.tf)

    def get_times(self, n_points: int = 100) -> np.ndarray:
        """Generate uniform time array spanning trajectory."""
        return np.linspace(self.t0, self.tf, n_points)

    def to_dataframe(self, times: Optional[np.ndarray] = None, n_points: int = 1000,
                     osculating: bool = False) -> "pd.DataFrame":
        """
        Export trajectory to pandas DataFrame.

        Parameters:
            times: Specific times to evaluate. If None, uses uniform sampling.
            n_points: Number of uniform samples if times not provided (default: 1000)
            osculating: Export osculating instead of mean elements

        Returns:
            DataFrame with a time column and the six equinoctial elements
        """
        # pandas isn't needed unless this function is used
        import pandas as pd

        if times is None:
            times = self.get_times(n_points)
        else:
            times = np.asarray(times, dtype=float)

        if osculating:
            states = np.array([o.elements for o in self.evaluate(times, osculating=True)])
        else:
            states = self.evaluate_raw(times)

        data = {'time': times}
        for i, column in enumerate(ELEMENT_COLUMNS):
            data[column] = states[:, i]
        return pd.DataFrame(data)

    def slice(self, t_start: float, t_end: float) -> 'Trajectory':
        """
        Extract a time window as a new Trajectory.

        The new trajectory shares this one's dense output, so no
        re-propagation takes place.

        Raises:
            ValueError: If slice bounds are invalid or outside trajectory bounds
        """
        if t_start >= t_end:
            raise ValueError(f"t_start ({t_start}) must be < t_end ({t_end})")
        if not (self.contains_time(t_start) and self.contains_time(t_end)):
            raise ValueError(
                f"Slice bounds [{t_start}, {t_end}] outside trajectory "
                f"bounds [{self.t0}, {self.tf}]"
            )
        return Trajectory(self._propagator, self._output, float(t_start), float(t_end),
                          self._mass)

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"Trajectory(type={self._propagator.propagation_type.value}, "
                f"t0={self.t0}, tf={self.tf}, duration={self.duration})")

    def __str__(self):
        return f"Mean-element trajectory: t ∈ [{self.t0}, {self.tf}]"

    def __call__(self, t: float, osculating: bool = False) -> OrbitalElements:
        """
        Evaluate trajectory at time t.
        Syntactic sugar for .state_at(t). Allows traj(t) syntax.
        """
        return self.state_at(t, osculating)
