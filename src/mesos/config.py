"""
Global Configuration for Mesos Package
======================================

This module provides package-wide configuration settings that users can modify
to control numerical tolerances, validation behavior, truncation of the
semi-analytical expansions and integrator defaults.

Examples
--------
View current configuration:

>>> import mesos
>>> print(mesos.config)

Modify settings:

>>> mesos.config.INTEGRATION_RTOL = 1e-12  # Tighter integration
>>> mesos.config.HANSEN_KERNEL = 'recursive'  # Direct Hansen recursion

Reset to defaults:

>>> mesos.config.reset()

Temporarily modify settings:

>>> with mesos.temp_config(GAUSS_QUADRATURE_POINTS=64):
...     # Finer quadrature for this block only
...     rates = drag.get_mean_element_rate(state, aux, params)

Notes
-----
These settings affect package-wide behavior. Modifying them will impact
all subsequent operations until changed again or reset.
"""

from dataclasses import dataclass
from contextlib import contextmanager
import math


@dataclass
class MesosConfig:
    """
    Global configuration for Mesos package.

    Attributes
    ----------
    EQUALITY_RTOL : float
        Relative tolerance for floating-point equality comparisons.
        Default: 1e-12 (approximately millimeter-level at LEO distances)
    EQUALITY_ATOL : float
        Absolute tolerance for floating-point equality comparisons.
        Default: 1e-14
    HASH_DECIMALS : int
        Number of decimal places for rounding when computing hash values.
        Automatically computed to preserve hash contract
    STRICT_VALIDATION : bool
        If True, validation failures raise exceptions.
        If False, validation failures issue warnings.
        Default: True
    INTEGRATION_METHOD : str
        ``scipy.integrate.solve_ivp`` method used by the mean-element
        propagator. Default: 'DOP853'
    INTEGRATION_RTOL : float
        Relative tolerance handed to the integrator. Default: 1e-10
    POSITION_TOLERANCE : float
        Position error [km] from which absolute tolerances on the equinoctial
        elements are derived. Default: 1e-3 (one meter)
    HANSEN_KERNEL : str
        Third-body Hansen kernel variant, 'linear' (precomputed polynomial
        tables, grown on demand) or 'recursive' (direct recursion).
        Default: 'linear'
    GAUSS_QUADRATURE_POINTS : int
        Number of Gauss-Legendre nodes over one revolution used for averaged
        Gauss equations and short-period Fourier coefficients. Default: 48
    SHORT_PERIOD_MAX_FREQUENCY : int
        Highest multiple of the mean longitude retained in short-period
        corrections. Default: 12
    MEAN_STATE_EPSILON : float
        Relative convergence threshold for osculating to mean conversion.
        Default: 1e-12
    MEAN_STATE_MAX_ITERATIONS : int
        Iteration limit for osculating to mean conversion. Default: 200
    MAX_COEFFICIENT_INDEX : int
        Largest degree or index accepted by the coefficient caches.
        Default: 150
    MEMO_CACHE_SIZE : int
        Entry bound of the least-recently-used memo caches (Newcomb operator
        values, tesseral Hansen kernels), read when they are created.
        Default: 4096
    LOG_LEVEL : str
        Level used by ``mesos.utils.configure_logging``. Default: 'WARNING'
    """

    # Numerical tolerance for equality comparisons
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    # Validation behavior
    STRICT_VALIDATION: bool = True

    # Integration defaults
    INTEGRATION_METHOD: str = 'DOP853'
    INTEGRATION_RTOL: float = 1e-10
    POSITION_TOLERANCE: float = 1e-3

    # Semi-analytical expansions
    HANSEN_KERNEL: str = 'linear'
    GAUSS_QUADRATURE_POINTS: int = 48
    SHORT_PERIOD_MAX_FREQUENCY: int = 12

    # Mean / osculating conversion
    MEAN_STATE_EPSILON: float = 1e-12
    MEAN_STATE_MAX_ITERATIONS: int = 200

    # Coefficient caches
    MAX_COEFFICIENT_INDEX: int = 150
    MEMO_CACHE_SIZE: int = 4096

    # Logging
    LOG_LEVEL: str = 'WARNING'

    @property
    def HASH_DECIMALS(self) -> int:
        """
        Compute hash rounding decimals from equality tolerance.

        The hash rounding must be coarse enough that if two values
        are equal (within EQUALITY_ATOL), they hash to the same value.

        Returns
        -------
        int
            Number of decimal places for hash rounding
        """
        magnitude = -math.floor(math.log10(self.EQUALITY_ATOL))
        return max(magnitude - 2, 0)

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import mesos
        >>> mesos.config.INTEGRATION_RTOL = 1e-6  # Modify
        >>> mesos.config.reset()  # Back to defaults
        >>> mesos.config.INTEGRATION_RTOL
        1e-10
        """
        defaults = MesosConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["MesosConfig:"]
        lines.append("  Numerical Tolerances:")
        lines.append(f"    EQUALITY_RTOL = {self.EQUALITY_RTOL}")
        lines.append(f"    EQUALITY_ATOL = {self.EQUALITY_ATOL}")
        lines.append(f"    HASH_DECIMALS = {self.HASH_DECIMALS}")
        lines.append("  Integration:")
        lines.append(f"    INTEGRATION_METHOD = '{self.INTEGRATION_METHOD}'")
        lines.append(f"    INTEGRATION_RTOL = {self.INTEGRATION_RTOL}")
        lines.append(f"    POSITION_TOLERANCE = {self.POSITION_TOLERANCE}")
        lines.append("  Expansions:")
        lines.append(f"    HANSEN_KERNEL = '{self.HANSEN_KERNEL}'")
        lines.append(f"    GAUSS_QUADRATURE_POINTS = {self.GAUSS_QUADRATURE_POINTS}")
        lines.append(f"    SHORT_PERIOD_MAX_FREQUENCY = {self.SHORT_PERIOD_MAX_FREQUENCY}")
        lines.append("  Mean State Conversion:")
        lines.append(f"    MEAN_STATE_EPSILON = {self.MEAN_STATE_EPSILON}")
        lines.append(f"    MEAN_STATE_MAX_ITERATIONS = {self.MEAN_STATE_MAX_ITERATIONS}")
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append(f"    MAX_COEFFICIENT_INDEX = {self.MAX_COEFFICIENT_INDEX}")
        lines.append(f"    MEMO_CACHE_SIZE = {self.MEMO_CACHE_SIZE}")
        lines.append(f"    LOG_LEVEL = '{self.LOG_LEVEL}'")
        return "\n".join(lines)


# Global configuration instance
config = MesosConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import mesos
    >>> with mesos.temp_config(HANSEN_KERNEL='recursive', STRICT_VALIDATION=False):
    ...     rates = third_body.get_mean_element_rate(state, aux, params)
    >>> # Original config restored here
    >>> mesos.config.HANSEN_KERNEL
    'linear'

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if key not in config.__dataclass_fields__:
            raise AttributeError(
                f"MesosConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
