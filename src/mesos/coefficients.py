"""
Coefficient families shared by the averaged gravity expansions.

Contains the constant families (``V_{n,s}``, ``V^m_{n,s}``, Jacobi
polynomials), the inclination and eccentricity polynomial families evaluated
per state (``Q_{n,s}``, ``G_s``/``H_s``, ``C_j``/``S_j``, ``G^j_{m,s}``/``H^j_{m,s}``)
and :class:`CoefficientCache`, the injectable bundle of every memoized table
used by the force models.

Polynomial families evaluated per state accept floats or
autograd tensors (see :mod:`mesos.differentiation`).
"""

from fractions import Fraction
import logging
import math
import threading

from numpy.polynomial import Polynomial

from .gamma import GammaRatioTable, GammaMnsFunction
from .hansen import ThirdBodyPolynomialTable, hansen_third_body, horner
from .newcomb import NewcombOperators
from .utils import check_cache_index, ConfigurationError

logger = logging.getLogger(__name__)


def _double_factorial(n):
    """n!! with (-1)!! = 0!! = 1."""
    result = 1
    while n > 1:
        result *= n
        n -= 2
    return result


def _sign(x):
    """Sign with sgn(0) = +1."""
    return -1 if x < 0 else 1


# ========== CONSTANT FAMILIES ==========
def compute_vns(n, s):
    """
    ``V_{n,s} = (-1)^{(n-s)/2} (n-s-1)!! / (n+s)!!`` for even ``n - s``, else 0.
    """
    if (n - s) % 2 != 0:
        return 0.0
    sign = -1 if ((n - s) // 2) % 2 else 1
    return float(sign * Fraction(_double_factorial(n - s - 1), _double_factorial(n + s)))


def compute_vmns(m, n, s):
    """
    ``V^m_{n,s}``.

    ``(n+|s|)!/(n-m)! V_{n,|s|}`` for ``s ≥ 0``, with an extra ``(-1)^s`` for
    negative ``s``; zero when ``n - s`` is odd.

    Raises
    ------
    ConfigurationError
        If ``m > n``
    """
    if m > n:
        raise ConfigurationError(f"V^m_(n,s) requires m <= n, got m = {m}, n = {n}")
    if (n - s) % 2 != 0:
        return 0.0
    s_abs = abs(s)
    ratio = Fraction(math.factorial(n + s_abs), math.factorial(n - m))
    value = float(ratio * Fraction(compute_vns(n, s_abs)))
    if s < 0 and s_abs % 2 == 1:
        value = -value
    return value


def jacobi_polynomial(l, v, w):
    """
    Jacobi polynomial ``P_l^{(v,w)}`` as a ``numpy.polynomial.Polynomial``.

    Built with the three-term recurrence from
    ``P_0 = 1`` and ``P_1 = (v+1) + (v+w+2)(x-1)/2``.
    """
    x = Polynomial([0.0, 1.0])
    p_prev = Polynomial([1.0])
    if l == 0:
        return p_prev
    p_curr = Polynomial([(v + 1.0) - (v + w + 2.0) / 2.0, (v + w + 2.0) / 2.0])
    for n in range(2, l + 1):
        c = 2.0 * n + v + w
        a1 = 2.0 * n * (n + v + w) * (c - 2.0)
        a2 = (c - 1.0) * (v * v - w * w)
        a3 = (c - 2.0) * (c - 1.0) * c
        a4 = 2.0 * (n + v - 1.0) * (n + w - 1.0) * c
        p_prev, p_curr = p_curr, ((a2 + a3 * x) * p_curr - a4 * p_prev) / a1
    return p_curr


# ========== STATE-DEPENDENT FAMILIES ==========
def compute_qns(gamma, n_max, s_max):
    """
    ``Q_{n,s}(γ)``, the s-th derivative of the Legendre polynomial ``P_n``.

    Returns
    -------
    list of list
        ``Q[n][s]`` for ``0 ≤ s ≤ min(n, s_max + 1)``; the extra column gives
        ``dQ_{n,s}/dγ = Q_{n,s+1}``.
    """
    s_dim = min(s_max + 1, n_max) + 1
    qns = []
    for n in range(n_max + 1):
        row = []
        for s in range(min(n + 1, s_dim)):
            if n == s:
                value = 1.0 if s == 0 else (2.0 * s - 1.0) * qns[s - 1][s - 1]
            elif n == s + 1:
                value = (2.0 * s + 1.0) * gamma * qns[s][s]
            else:
                value = ((2.0 * n - 1.0) * gamma * qns[n - 1][s]
                         - (n + s - 1.0) * qns[n - 2][s]) / (n - s)
            row.append(value)
        qns.append(row)
    return qns


def qns_derivative(qns, n, s):
    """``dQ_{n,s}/dγ`` read from a table built by :func:`compute_qns`."""
    if s + 1 < len(qns[n]):
        return qns[n][s + 1]
    return 0.0


def compute_gs_hs(k, h, alpha, beta, order):
    """
    ``G_s + i H_s = (kα + hβ + i(hα - kβ))^s`` for ``0 ≤ s ≤ order``.

    Returns
    -------
    tuple of list
        ``(G, H)``
    """
    a2 = k * alpha + h * beta
    b2 = h * alpha - k * beta
    gs = [1.0]
    hs = [0.0]
    for _ in range(order):
        g_prev, h_prev = gs[-1], hs[-1]
        gs.append(a2 * g_prev - b2 * h_prev)
        hs.append(b2 * g_prev + a2 * h_prev)
    return gs, hs


def gs_derivatives(gs, hs, k, h, alpha, beta, s):
    """
    Partial derivatives of ``G_s`` with respect to ``k``, ``h``, ``α``, ``β``.

    Uses ``d(G_s + i H_s) = s (G_{s-1} + i H_{s-1}) dZ`` with
    ``Z = kα + hβ + i(hα - kβ)``.
    """
    if s == 0:
        return 0.0, 0.0, 0.0, 0.0
    g, hh = gs[s - 1], hs[s - 1]
    return (s * (alpha * g + beta * hh),
            s * (beta * g - alpha * hh),
            s * (k * g - h * hh),
            s * (h * g + k * hh))


class CjSj:
    """
    ``C_j + i S_j = (k + i h)^j`` and its partial derivatives.

    Parameters
    ----------
    k, h : float or tensor
        Real and imaginary parts of the base
    order : int, optional
        Initial highest power (grown on demand)
    """

    def __init__(self, k, h, order=0):
        self.k = k
        self.h = h
        self._c = [1.0]
        self._s = [0.0]
        self._grow(order)

    def _grow(self, j):
        while len(self._c) <= j:
            c_prev, s_prev = self._c[-1], self._s[-1]
            self._c.append(self.k * c_prev - self.h * s_prev)
            self._s.append(self.h * c_prev + self.k * s_prev)

    def cj(self, j):
        self._grow(j)
        return self._c[j]

    def sj(self, j):
        self._grow(j)
        return self._s[j]

    def dcj_dk(self, j):
        return 0.0 if j == 0 else j * self.cj(j - 1)

    def dsj_dk(self, j):
        return 0.0 if j == 0 else j * self.sj(j - 1)

    def dcj_dh(self, j):
        return 0.0 if j == 0 else -j * self.sj(j - 1)

    def dsj_dh(self, j):
        return 0.0 if j == 0 else j * self.cj(j - 1)


class GHmsj:
    """
    Polynomials ``G^j_{m,s}`` and ``H^j_{m,s}`` of the tesseral potential
    (Danielson et al., 1995, eq. 2.7.5-(1)) and their partial derivatives
    with respect to ``k``, ``h``, ``α`` and ``β``.

    Parameters
    ----------
    k, h : float or tensor
        Equinoctial eccentricity components
    alpha, beta : float or tensor
        Direction cosines of the body polar axis along ``f`` and ``g``
    retrograde : int
        Retrograde factor I
    """

    def __init__(self, k, h, alpha, beta, retrograde):
        self.kh = CjSj(k, h)
        self.ab = CjSj(alpha, beta)
        self.retrograde = retrograde

    def _combine(self, m, s, j, c_kh, s_kh, c_ab, s_ab):
        """Shared expression for G, H and every partial derivative."""
        s_m_j = abs(s - j)
        sg_smj = _sign(s - j)
        if abs(s) <= m:
            m_mis = m - self.retrograde * s
            g = (c_kh(s_m_j) * c_ab(m_mis)
                 - self.retrograde * sg_smj * s_kh(s_m_j) * s_ab(m_mis))
            h = (self.retrograde * c_kh(s_m_j) * s_ab(m_mis)
                 + sg_smj * s_kh(s_m_j) * c_ab(m_mis))
        else:
            s_mim = abs(s - self.retrograde * m)
            sg_smm = _sign(s - m)
            g = (c_kh(s_m_j) * c_ab(s_mim)
                 + sg_smj * sg_smm * s_kh(s_m_j) * s_ab(s_mim))
            h = (-sg_smm * c_kh(s_m_j) * s_ab(s_mim)
                 + sg_smj * s_kh(s_m_j) * c_ab(s_mim))
        return g, h

    def gh(self, m, s, j):
        """``(G^j_{m,s}, H^j_{m,s})``."""
        return self._combine(m, s, j, self.kh.cj, self.kh.sj, self.ab.cj, self.ab.sj)

    def dgh_dk(self, m, s, j):
        return self._combine(m, s, j, self.kh.dcj_dk, self.kh.dsj_dk, self.ab.cj, self.ab.sj)

    def dgh_dh(self, m, s, j):
        return self._combine(m, s, j, self.kh.dcj_dh, self.kh.dsj_dh, self.ab.cj, self.ab.sj)

    def dgh_dalpha(self, m, s, j):
        return self._combine(m, s, j, self.kh.cj, self.kh.sj, self.ab.dcj_dk, self.ab.dsj_dk)

    def dgh_dbeta(self, m, s, j):
        return self._combine(m, s, j, self.kh.cj, self.kh.sj, self.ab.dcj_dh, self.ab.dsj_dh)


# ========== SHARED CACHE ==========
class CoefficientCache:
    """
    Bundle of the memoized coefficient tables used by the force models.

    A single instance can be shared by every force model of every
    propagation: each table grows under its own lock, never alters entries
    it already holds, and is read without locking once populated.

    Parameters
    ----------
    newcomb : NewcombOperators, optional
    gamma_ratios : GammaRatioTable, optional
    third_body_table : ThirdBodyPolynomialTable, optional

    Examples
    --------
    >>> from mesos.coefficients import CoefficientCache
    >>> cache = CoefficientCache()
    >>> cache.vns(2, 0)
    -0.5
    """

    def __init__(self, newcomb=None, gamma_ratios=None, third_body_table=None):
        self.newcomb = NewcombOperators() if newcomb is None else newcomb
        self.gamma_ratios = GammaRatioTable() if gamma_ratios is None else gamma_ratios
        self.third_body_table = (ThirdBodyPolynomialTable() if third_body_table is None
                                 else third_body_table)
        self._lock = threading.Lock()
        self._vns = {}
        self._vmns = {}
        self._jacobi = {}

    def vns(self, n, s):
        """Cached ``V_{n,s}``."""
        key = (n, s)
        value = self._vns.get(key)
        if value is None:
            check_cache_index("n", n)
            value = compute_vns(n, s)
            with self._lock:
                self._vns.setdefault(key, value)
        return value

    def vmns(self, m, n, s):
        """Cached ``V^m_{n,s}``."""
        key = (m, n, s)
        value = self._vmns.get(key)
        if value is None:
            check_cache_index("m", m)
            check_cache_index("n", n)
            value = compute_vmns(m, n, s)
            with self._lock:
                self._vmns.setdefault(key, value)
        return value

    def jacobi(self, l, v, w):
        """
        Coefficient arrays of ``P_l^{(v,w)}`` and of its derivative.

        Returns
        -------
        tuple of numpy.ndarray
        """
        key = (l, v, w)
        entry = self._jacobi.get(key)
        if entry is None:
            check_cache_index("l", l)
            check_cache_index("v", v)
            check_cache_index("w", w)
            poly = jacobi_polynomial(l, v, w)
            entry = (poly.coef, poly.deriv().coef)
            with self._lock:
                self._jacobi.setdefault(key, entry)
        return entry

    def jacobi_value(self, l, v, w, gamma):
        """``(P_l^{(v,w)}(γ), dP/dγ)`` for a generic ``γ``."""
        coef, dcoef = self.jacobi(l, v, w)
        return horner(coef, gamma), horner(dcoef, gamma)

    def gamma_function(self, n_max, gamma, retrograde):
        """Inclination function Γ^m_{n,s} sharing this cache's ratio table."""
        return GammaMnsFunction(n_max, gamma, retrograde, self.gamma_ratios)

    def hansen_third_body(self, s, max_n, kernel=None):
        """Third-body Hansen evaluator of the configured variant."""
        return hansen_third_body(s, max_n, self.third_body_table, kernel)


DEFAULT_CACHE = CoefficientCache()
