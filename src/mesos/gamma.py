"""
Inclination function Γ^m_{n,s}(γ) used by the tesseral expansion.

The closed form (Danielson et al., 1995, section 2.7.2) has three branches::

    s ≤ -m       Γ = (-1)^(m-s) 2^s (1 + Iγ)^(-Im)
    -m < s < m   Γ = (-1)^(m-s) 2^(-m) R(m, n, s) (1 + Iγ)^(Is)
    s ≥ m        Γ = 2^(-s) (1 + Iγ)^(Im)

with ``R(m, n, s) = (n+m)!(n-m)! / ((n+s)!(n-s)!)``.  The factorial ratios
are held in an append-only :class:`GammaRatioTable`.

When ``1 + Iγ = 0`` (equatorial retrograde orbit described with I = +1) the
negative powers diverge; the functions return the signed infinity predicted by
the closed form instead of raising.
"""

from fractions import Fraction
import logging
import math
import threading

import numpy as np

from .differentiation import power
from .utils import check_cache_index

logger = logging.getLogger(__name__)


def ratio_index(m, n, s):
    """Flat index of ``(m, n, s)`` in the ratio table."""
    return n * (n + 1) * (4 * n - 1) // 6 + m * (2 * n + 1) + s + n


def ratio_table_size(n_max):
    """Number of entries needed to hold every ``n ≤ n_max``."""
    return (n_max + 1) * (n_max + 2) * (4 * n_max + 3) // 6


class GammaRatioTable:
    """
    Append-only table of factorial ratios ``R(m, n, s)``.

    Growing the table to a larger degree allocates a new array, copies the
    existing entries unchanged and fills only the new degrees.

    Parameters
    ----------
    n_max : int, optional
        Degree to precompute at construction (default: 0)
    """

    def __init__(self, n_max=0):
        self._lock = threading.Lock()
        self._n_max = -1
        self._ratios = np.empty(0)
        self.ensure(n_max)

    @property
    def n_max(self):
        """Largest degree currently held."""
        return self._n_max

    @property
    def ratios(self):
        """Read-only view of the table."""
        view = self._ratios.view()
        view.flags.writeable = False
        return view

    def ensure(self, n_max):
        """
        Grow the table so that it covers degree ``n_max``.

        Raises
        ------
        ConfigurationError
            If ``n_max`` is negative
        CacheLimitError
            If ``n_max`` exceeds ``config.MAX_COEFFICIENT_INDEX``
        """
        check_cache_index("n_max", n_max)
        if n_max <= self._n_max:
            return
        with self._lock:
            if n_max <= self._n_max:
                return
            grown = np.empty(ratio_table_size(n_max))
            old_size = self._ratios.shape[0]
            grown[:old_size] = self._ratios
            for n in range(self._n_max + 1, n_max + 1):
                self._fill_degree(grown, n)
            logger.debug("Gamma ratio table grown from degree %d to %d", self._n_max, n_max)
            self._ratios = grown
            self._n_max = n_max

    @staticmethod
    def _fill_degree(table, n):
        # exact rationals, converted once, so regrowth is reproducible
        ratio_m0 = Fraction(1)
        for m in range(n + 1):
            if m > 0:
                ratio_m0 = ratio_m0 * (n + m) / (n - m + 1)
            ratio = ratio_m0
            table[ratio_index(m, n, 0)] = float(ratio)
            for s in range(1, n + 1):
                ratio = ratio * (n - s + 1) / (n + s)
                table[ratio_index(m, n, s)] = float(ratio)
                table[ratio_index(m, n, -s)] = float(ratio)

    def get(self, m, n, s):
        """Ratio ``(n+m)!(n-m)! / ((n+s)!(n-s)!)``."""
        self.ensure(n)
        return self._ratios[ratio_index(m, n, s)]


DEFAULT_RATIO_TABLE = GammaRatioTable()


class GammaMnsFunction:
    """
    Γ^m_{n,s}(γ) and its derivative with respect to γ.

    Parameters
    ----------
    n_max : int
        Maximum degree that will be requested
    gamma : float or tensor
        Direction cosine of the body polar axis along ``w``
    retrograde : int
        Retrograde factor I (+1 or -1)
    ratio_table : GammaRatioTable, optional
        Shared factorial-ratio table (default: module table)
    """

    def __init__(self, n_max, gamma, retrograde, ratio_table=None):
        self.ratio_table = DEFAULT_RATIO_TABLE if ratio_table is None else ratio_table
        self.ratio_table.ensure(n_max)
        self.retrograde = retrograde
        self.op_ig = 1.0 + retrograde * gamma
        self._values = {}

    def _exponent(self, m, s):
        if s <= -m:
            return -self.retrograde * m
        if s >= m:
            return self.retrograde * m
        return self.retrograde * s

    def _factor(self, m, n, s):
        if s <= -m:
            return (-1.0) ** (m - s) * math.ldexp(1.0, s)
        if s >= m:
            return math.ldexp(1.0, -s)
        return (-1.0) ** (m - s) * math.ldexp(float(self.ratio_table.get(m, n, s)), -m)

    def value(self, m, n, s):
        """Γ^m_{n,s}(γ); signed infinity when ``1 + Iγ = 0`` and the exponent is negative."""
        key = (m, n, s)
        cached = self._values.get(key)
        if cached is not None:
            return cached
        with np.errstate(invalid='ignore'):
            result = self._factor(m, n, s) * power(self.op_ig, self._exponent(m, s))
        self._values[key] = result
        return result

    def derivative(self, m, n, s):
        """dΓ^m_{n,s}/dγ."""
        p = self._exponent(m, s)
        if p == 0:
            return 0.0 * self.op_ig
        with np.errstate(invalid='ignore'):
            return self._factor(m, n, s) * (p * self.retrograde) * power(self.op_ig, p - 1)
