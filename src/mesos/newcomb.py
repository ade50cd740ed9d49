"""
Modified Newcomb operators.

The modified Newcomb operator ``Y^{n,s}_{ρ,σ}`` is stored as a list of
polynomials in ``s``, one per power of ``n``::

    Y^{n,s}_{ρ,σ} = P_0(s) + P_1(s) n + P_2(s) n² + ...

The lists are built once per (ρ, σ) with the recurrence of Danielson et al.
(1995), eq. 2.7.3-(12), from the four seeds

    Y_{0,0} = 1
    Y_{0,1} = -s - n/2
    Y_{1,0} =  s - n/2
    Y_{1,1} = 3/2 - s² + 5n/4 + n²/4

and are reused for every later evaluation.
"""

from functools import lru_cache
import logging
import threading

from numpy.polynomial import Polynomial

from .config import config
from .utils import check_cache_index

logger = logging.getLogger(__name__)


# ========== POLYNOMIAL LIST ALGEBRA ==========
def _trimmed(poly):
    """Drop trailing zero coefficients so that zero compares equal to zero."""
    return Polynomial(poly.coef).trim()


def multiply_polynomial_lists(poly1, poly2):
    """
    Product of two polynomial lists in powers of ``n``.

    ``(Σ_i A_i(s) nⁱ)(Σ_j B_j(s) nʲ) = Σ_k (Σ_{i+j=k} A_i B_j)(s) nᵏ``

    Parameters
    ----------
    poly1, poly2 : list of numpy.polynomial.Polynomial

    Returns
    -------
    list of numpy.polynomial.Polynomial
        ``len(poly1) + len(poly2) - 1`` buckets
    """
    result = [Polynomial([0.0]) for _ in range(len(poly1) + len(poly2) - 1)]
    for i, p1 in enumerate(poly1):
        for j, p2 in enumerate(poly2):
            result[i + j] = result[i + j] + p1 * p2
    return [_trimmed(p) for p in result]


def sum_polynomial_lists(poly1, poly2):
    """
    Sum of two polynomial lists, padding the shorter one with zeros.

    Parameters
    ----------
    poly1, poly2 : list of numpy.polynomial.Polynomial

    Returns
    -------
    list of numpy.polynomial.Polynomial
    """
    longest = max(len(poly1), len(poly2))
    zero = Polynomial([0.0])
    result = []
    for i in range(longest):
        p1 = poly1[i] if i < len(poly1) else zero
        p2 = poly2[i] if i < len(poly2) else zero
        result.append(_trimmed(p1 + p2))
    return result


def shift_polynomial_list(polys, shift):
    """Replace every ``P(s)`` of the list by ``P(s + shift)``."""
    argument = Polynomial([float(shift), 1.0])
    return [_trimmed(p(argument)) for p in polys]


def _recurrence_coefficients(rho, sigma):
    """The five polynomial-list factors of the (ρ, σ) recurrence."""
    den = 1.0 / (4.0 * (rho + sigma))
    denx2 = 2.0 * den
    denx4 = 4.0 * den
    return (
        # (s - n)
        [Polynomial([0.0, den]), Polynomial([-den])],
        # 2(2ρ + 2σ + 2 + 3n)
        [Polynomial([1.0 + denx4]), Polynomial([denx2 + denx4])],
        # 2(2s - n)
        [Polynomial([0.0, denx4]), Polynomial([-denx2])],
        # -(s + n)
        [Polynomial([0.0, -den]), Polynomial([-den])],
        # -2(2s + n)
        [Polynomial([0.0, -denx4]), Polynomial([-denx2])],
    )


class NewcombOperators:
    """
    Memoized generator of modified Newcomb operators.

    Instances are safe to share between threads: the polynomial table grows
    under a lock and entries are never modified once stored.  Evaluated
    operators are kept in a least-recently-used cache of
    ``config.MEMO_CACHE_SIZE`` entries.

    Examples
    --------
    >>> newcomb = NewcombOperators()
    >>> newcomb.get_value(1, 1, -3, 0)
    0.0
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._polynomials = {
            (0, 0): [Polynomial([1.0])],
            (0, 1): [Polynomial([0.0, -1.0]), Polynomial([-0.5])],
            (1, 0): [Polynomial([0.0, 1.0]), Polynomial([-0.5])],
            (1, 1): [Polynomial([1.5, 0.0, -1.0]), Polynomial([1.25]), Polynomial([0.25])],
        }
        self._values = lru_cache(maxsize=config.MEMO_CACHE_SIZE)(self._evaluate)

    def get_polynomials(self, rho, sigma):
        """
        Polynomial list representing ``Y_{ρ,σ}``.

        Parameters
        ----------
        rho, sigma : int
            Non-negative Newcomb indices

        Returns
        -------
        list of numpy.polynomial.Polynomial

        Raises
        ------
        ConfigurationError
            If an index is negative
        CacheLimitError
            If an index exceeds ``config.MAX_COEFFICIENT_INDEX``
        """
        check_cache_index("rho", rho)
        check_cache_index("sigma", sigma)
        key = (rho, sigma)
        polys = self._polynomials.get(key)
        if polys is not None:
            return polys
        with self._lock:
            if key not in self._polynomials:
                self._polynomials[key] = self._compute(rho, sigma)
            return self._polynomials[key]

    def _compute(self, rho, sigma):
        c0, c1, c2, c3, c4 = _recurrence_coefficients(rho, sigma)
        result = []
        if rho >= 2:
            lower = shift_polynomial_list(self.get_polynomials(rho - 2, sigma), 2)
            result = multiply_polynomial_lists(c0, lower)
        if rho >= 1 and sigma >= 1:
            lower = self.get_polynomials(rho - 1, sigma - 1)
            result = sum_polynomial_lists(result, multiply_polynomial_lists(c1, lower))
        if rho >= 1:
            lower = shift_polynomial_list(self.get_polynomials(rho - 1, sigma), 1)
            result = sum_polynomial_lists(result, multiply_polynomial_lists(c2, lower))
        if sigma >= 2:
            lower = shift_polynomial_list(self.get_polynomials(rho, sigma - 2), -2)
            result = sum_polynomial_lists(result, multiply_polynomial_lists(c3, lower))
        if sigma >= 1:
            lower = shift_polynomial_list(self.get_polynomials(rho, sigma - 1), -1)
            result = sum_polynomial_lists(result, multiply_polynomial_lists(c4, lower))
        logger.debug("Newcomb polynomials computed for (rho, sigma) = (%d, %d)", rho, sigma)
        return result

    def get_value(self, rho, sigma, n, s):
        """
        Evaluate ``Y^{n,s}_{ρ,σ}``.

        Parameters
        ----------
        rho, sigma : int
            Non-negative Newcomb indices
        n, s : int
            Hansen indices

        Returns
        -------
        float
        """
        return self._values(rho, sigma, n, s)

    def _evaluate(self, rho, sigma, n, s):
        value = 0.0
        n_power = 1.0
        for poly in self.get_polynomials(rho, sigma):
            value += float(poly(s)) * n_power
            n_power *= n
        return value

    def cache_info(self):
        """Hit and size statistics of the bounded value cache."""
        return self._values.cache_info()
