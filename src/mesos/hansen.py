"""
Kernels of Hansen coefficients.

Three families are needed by the averaged potentials:

``K₀^{n,s}(χ)``, n ≥ 0
    third-body expansion (positive powers of r/a); recursive and linear
    evaluators.
``K₀^{-n-1,s}(χ)``
    zonal expansion; closed-form seeds and a two-term recursion.
``K_j^{-n-1,s}(e²)``
    tesseral expansion; truncated series of modified Newcomb operators.

Here ``χ = 1/sqrt(1 - e²)``.  Every evaluator works on plain floats or on
autograd tensors (see :mod:`mesos.differentiation`) and returns the kernel
together with its derivative (d/dχ for the first two families, d/de² for the
tesseral one).
"""

import logging
import threading

from numpy.polynomial import Polynomial

from .config import config
from .differentiation import power
from .utils import check_cache_index, ConfigurationError

logger = logging.getLogger(__name__)


def horner(coefficients, x):
    """Evaluate ``Σ c_i xⁱ`` for a generic ``x`` (float or tensor)."""
    result = 0.0
    for c in reversed(coefficients):
        result = result * x + c
    return result


class HansenKernels:
    """
    Kernel values and derivatives for one ``s`` (and ``j``), indexed by ``n``.

    Parameters
    ----------
    n_min : int
        Smallest index held
    values, derivatives : list
        Entries for ``n_min, n_min + 1, ...``
    """
    __slots__ = ("n_min", "_values", "_derivatives")

    def __init__(self, n_min, values, derivatives):
        self.n_min = n_min
        self._values = values
        self._derivatives = derivatives

    @property
    def n_max(self):
        return self.n_min + len(self._values) - 1

    def _position(self, n):
        i = n - self.n_min
        if i < 0 or i >= len(self._values):
            raise ConfigurationError(
                f"Hansen kernel index n = {n} outside computed range "
                f"[{self.n_min}, {self.n_max}]"
            )
        return i

    def value(self, n):
        return self._values[self._position(n)]

    def derivative(self, n):
        return self._derivatives[self._position(n)]


# ========== THIRD BODY ==========
def third_body_root_index(s):
    """First of the two seed indices ``n`` of the K₀^{n,s} recursion."""
    return max(s - 1, 0)


def third_body_roots(s, chi):
    """
    Seed kernels K₀^{n0,s}, K₀^{n0+1,s} and their χ-derivatives.

    Returns
    -------
    tuple
        ``(K0, K1, dK0, dK1)``
    """
    if s == 0:
        chi_m2 = power(chi, -2)
        return (1.0, (3.0 - chi_m2) * 0.5, 0.0, power(chi, -3))
    # K₀^{s-1,s} = -(2s-1)/s K₀^{s-2,s-1}, starting from K₀^{0,1} = -1
    first = -1.0
    for t in range(2, s + 1):
        first = -(2.0 * t - 1.0) / t * first
    # K₀^{s,s} = (2s+1)/(s+1) K₀^{s-1,s}
    second = (2.0 * s + 1.0) / (s + 1.0) * first
    return (first, second, 0.0, 0.0)


def _third_body_coefficients(n, s):
    """Coefficients of ``K_n = a_n K_{n-1} - b_n χ⁻² K_{n-2}``."""
    a_n = (2.0 * n + 1.0) / (n + 1.0)
    b_n = (n + s) * (n - s) / (n * (n + 1.0))
    return a_n, b_n


class HansenThirdBodyRecursive:
    """
    K₀^{n,s}(χ) by direct recursion on ``n``.

    Parameters
    ----------
    s : int
        Non-negative index
    max_n : int
        Largest ``n`` to compute
    """

    def __init__(self, s, max_n):
        check_cache_index("s", s)
        check_cache_index("max_n", max_n)
        self.s = s
        self.max_n = max_n
        self.n0 = third_body_root_index(s)

    def evaluate(self, chi):
        """Kernels for every ``n0 ≤ n ≤ max_n`` at ``chi``."""
        k0, k1, dk0, dk1 = third_body_roots(self.s, chi)
        values = [k0, k1]
        derivatives = [dk0, dk1]
        chi_m2 = power(chi, -2)
        dchi_m2 = -2.0 * power(chi, -3)
        for n in range(self.n0 + 2, self.max_n + 1):
            a_n, b_n = _third_body_coefficients(n, self.s)
            value = a_n * values[-1] - b_n * chi_m2 * values[-2]
            derivative = a_n * derivatives[-1] - b_n * (dchi_m2 * values[-2] + chi_m2 * derivatives[-2])
            values.append(value)
            derivatives.append(derivative)
        count = self.max_n - self.n0 + 1
        return HansenKernels(self.n0, values[:count], derivatives[:count])


class ThirdBodyPolynomialTable:
    """
    Polynomials ``P_n(x), Q_n(x)`` in ``x = χ⁻²`` with
    ``K₀^{n,s} = P_n K₀^{n0,s} + Q_n K₀^{n0+1,s}``.

    One list per ``s``, grown on demand under a lock; existing entries are
    never recomputed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tables = {}

    def get(self, s, max_n):
        """
        Tables for index ``s`` covering every ``n ≤ max_n``.

        Returns
        -------
        tuple of list
            ``(P, Q)`` indexed by ``n - n0``
        """
        check_cache_index("s", s)
        check_cache_index("max_n", max_n)
        n0 = third_body_root_index(s)
        count = max_n - n0 + 1
        table = self._tables.get(s)
        if table is not None and len(table[0]) >= count:
            return table
        with self._lock:
            table = self._tables.get(s)
            if table is None:
                p_list = [Polynomial([1.0]), Polynomial([0.0])]
                q_list = [Polynomial([0.0]), Polynomial([1.0])]
            else:
                p_list, q_list = list(table[0]), list(table[1])
            x = Polynomial([0.0, 1.0])
            while len(p_list) < count:
                n = n0 + len(p_list)
                a_n, b_n = _third_body_coefficients(n, s)
                p_list.append(a_n * p_list[-1] - b_n * x * p_list[-2])
                q_list.append(a_n * q_list[-1] - b_n * x * q_list[-2])
            logger.debug("Third-body Hansen polynomial table for s = %d grown to %d entries",
                         s, len(p_list))
            table = (tuple(p_list), tuple(q_list))
            self._tables[s] = table
            return table


class HansenThirdBodyLinear:
    """
    K₀^{n,s}(χ) as a linear combination of the two seed kernels.

    The combination coefficients are polynomials in χ⁻² stored in a shared
    :class:`ThirdBodyPolynomialTable`, so that each evaluation costs work
    linear in ``n - s``.

    Parameters
    ----------
    s : int
        Non-negative index
    max_n : int
        Largest ``n`` to compute
    table : ThirdBodyPolynomialTable
        Shared polynomial table
    """

    def __init__(self, s, max_n, table):
        self.s = s
        self.max_n = max_n
        self.n0 = third_body_root_index(s)
        p_list, q_list = table.get(s, max_n)
        count = max_n - self.n0 + 1
        self._p = [p.coef for p in p_list[:count]]
        self._q = [q.coef for q in q_list[:count]]
        self._dp = [p.deriv().coef for p in p_list[:count]]
        self._dq = [q.deriv().coef for q in q_list[:count]]

    def evaluate(self, chi):
        """Kernels for every ``n0 ≤ n ≤ max_n`` at ``chi``."""
        k0, k1, dk0, dk1 = third_body_roots(self.s, chi)
        x = power(chi, -2)
        dx = -2.0 * power(chi, -3)
        values = []
        derivatives = []
        for p, q, dp, dq in zip(self._p, self._q, self._dp, self._dq):
            p_x = horner(p, x)
            q_x = horner(q, x)
            values.append(p_x * k0 + q_x * k1)
            derivatives.append((horner(dp, x) * k0 + horner(dq, x) * k1) * dx
                               + p_x * dk0 + q_x * dk1)
        return HansenKernels(self.n0, values, derivatives)


def hansen_third_body(s, max_n, table, kernel=None):
    """
    Third-body Hansen evaluator of the configured variant.

    Parameters
    ----------
    s, max_n : int
        Index and largest ``n``
    table : ThirdBodyPolynomialTable
        Table used by the linear variant
    kernel : str, optional
        'linear' or 'recursive'; defaults to ``config.HANSEN_KERNEL``
    """
    kernel = config.HANSEN_KERNEL if kernel is None else kernel
    if kernel == 'linear':
        return HansenThirdBodyLinear(s, max_n, table)
    if kernel == 'recursive':
        return HansenThirdBodyRecursive(s, max_n)
    raise ConfigurationError(
        f"Unknown Hansen kernel variant '{kernel}', expected 'linear' or 'recursive'"
    )


# ========== ZONAL ==========
class HansenZonal:
    """
    K₀^{-n-1,s}(χ) for ``|s| ≤ n ≤ max_n``.

    Seeds: ``K = 0`` at ``n = |s|`` and ``K = χ^{1+2|s|}/2^{|s|}`` at
    ``n = |s| + 1``; then
    ``K_n = (n-1)χ²[(2n-3)K_{n-1} - (n-2)K_{n-2}] / ((n+s-1)(n-s-1))``.
    """

    def __init__(self, s, max_n):
        self.s = abs(s)
        check_cache_index("max_n", max_n)
        self.max_n = max_n

    def evaluate(self, chi):
        s = self.s
        chi2 = chi * chi
        values = [0.0, power(chi, 1 + 2 * s) / 2.0 ** s]
        derivatives = [0.0, (1 + 2 * s) * power(chi, 2 * s) / 2.0 ** s]
        for n in range(s + 2, self.max_n + 1):
            factor = (n - 1.0) / ((n + s - 1.0) * (n - s - 1.0))
            bracket = (2.0 * n - 3.0) * values[-1] - (n - 2.0) * values[-2]
            d_bracket = (2.0 * n - 3.0) * derivatives[-1] - (n - 2.0) * derivatives[-2]
            values.append(factor * chi2 * bracket)
            derivatives.append(factor * (2.0 * chi * bracket + chi2 * d_bracket))
        count = self.max_n - s + 1
        return HansenKernels(s, values[:count], derivatives[:count])


# ========== TESSERAL ==========
class HansenTesseral:
    """
    K_j^{-n-1,s}(e²) from the truncated modified Newcomb series

        χ^{2n-1} Σ_α Y^{-n-1,s}_{α+a, α+b} e^{2α}

    with ``a = max(j - s, 0)``, ``b = max(s - j, 0)`` and ``α`` limited so
    that the total eccentricity power ``|j - s| + 2α`` stays within
    ``max_ecc_pow``.

    Parameters
    ----------
    j, s : int
        Fourier and inclination indices
    n_min, max_n : int
        Range of degrees
    max_ecc_pow : int
        Eccentricity power truncation
    newcomb : NewcombOperators
        Shared Newcomb operator cache
    """

    def __init__(self, j, s, n_min, max_n, max_ecc_pow, newcomb):
        self.j = j
        self.s = s
        self.n_min = n_min
        self.max_n = max_n
        a = max(j - s, 0)
        b = max(s - j, 0)
        alpha_max = max((max_ecc_pow - abs(j - s)) // 2, 0)
        self._series = []
        for n in range(n_min, max_n + 1):
            self._series.append([newcomb.get_value(alpha + a, alpha + b, -n - 1, s)
                                 for alpha in range(alpha_max + 1)])

    def evaluate(self, e2, chi):
        """Kernels and their derivatives with respect to e²."""
        chi2 = chi * chi
        values = []
        derivatives = []
        for n, coefficients in zip(range(self.n_min, self.max_n + 1), self._series):
            chi_pow = power(chi, 2 * n - 1)
            series = horner(coefficients, e2)
            d_series = horner([alpha * c for alpha, c in enumerate(coefficients)][1:], e2)
            value = chi_pow * series
            values.append(value)
            derivatives.append((n - 0.5) * chi2 * value + chi_pow * d_series)
        return HansenKernels(self.n_min, values, derivatives)
