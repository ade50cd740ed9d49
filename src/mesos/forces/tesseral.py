"""
Resonant tesseral harmonics of the central body gravity field.

Tesseral terms depend on the angles ``φ = jλ - mθ`` where θ is the body
rotation angle measured in the equinoctial frame.  Only the resonant pairs,
those whose angle drifts slowly, survive the averaging (Danielson et al.,
1995, section 3.3).  For each resonant ``(j, m)`` the potential is

    U = (μ/a) Σ_s Σ_n (R/a)^n V^m_{n,s} Γ^m_{n,s}(γ) K_j^{-n-1,s}(e²)
        × [cos φ (G C_nm + H S_nm) + sin φ (G S_nm - H C_nm)]

with ``G, H = G^j_{m,s}, H^j_{m,s}`` and ``Γ`` including the Jacobi
polynomial of γ.  The non-resonant pairs make up the short-period terms.
"""

from functools import lru_cache
import logging
import math

from ..config import config
from ..differentiation import atan2, cos, sin, dot, value_of
from ..hansen import HansenTesseral
from ..coefficients import GHmsj
from .force_model import central_attraction_driver, potential_rates
from .gaussian import GaussianForceModel

logger = logging.getLogger(__name__)

DEFAULT_MAX_ECC_POW = 4
DEFAULT_MAX_FREQUENCY_CAP = 12
DEFAULT_MIN_PERIOD = 864000.0
MIN_PERIOD_IN_SAT_REV = 10.0


class TesseralHarmonics(GaussianForceModel):
    """
    Tesseral part of a gravity field.

    Parameters
    ----------
    gravity_field : GravityField
        Central body field (borrowed)
    body_frame : RotatingFrame
        Body-fixed frame (borrowed)
    max_degree : int, optional
        Largest degree (default: field degree)
    max_order : int, optional
        Largest order (default: field order, at most ``max_degree``)
    max_ecc_pow : int, optional
        Largest eccentricity power (default 4)
    max_frequency : int, optional
        Largest resonant multiple j of λ
        (default ``min(max_degree + max_ecc_pow, 12)``)
    min_period : float, optional
        Shortest period [s] of a term treated as resonant (default 864000)
    cache : CoefficientCache, optional
    quadrature_points : int, optional
        Short-period quadrature nodes per revolution
    short_period_max_frequency : int, optional
        Largest |j| in the short-period series

    Notes
    -----
    Leaving a limit at None gives exactly the documented default value, so
    ``TesseralHarmonics(field, frame)`` and
    ``TesseralHarmonics(field, frame, N, M, 4, min(N + 4, 12), 864000.0)``
    produce identical rates.
    """

    def __init__(self, gravity_field, body_frame, max_degree=None, max_order=None,
                 max_ecc_pow=None, max_frequency=None, min_period=None, cache=None,
                 quadrature_points=None, short_period_max_frequency=None):
        super().__init__("tesseral harmonics", cache, quadrature_points,
                         short_period_max_frequency)
        if max_degree is None:
            max_degree = gravity_field.max_degree
        if max_order is None:
            max_order = min(gravity_field.max_order, max_degree)
        if max_ecc_pow is None:
            max_ecc_pow = DEFAULT_MAX_ECC_POW
        if max_frequency is None:
            max_frequency = min(max_degree + max_ecc_pow, DEFAULT_MAX_FREQUENCY_CAP)
        if min_period is None:
            min_period = DEFAULT_MIN_PERIOD

        if max_degree < 2 or max_degree > gravity_field.max_degree:
            raise ValueError(f"Degree must lie in [2, {gravity_field.max_degree}], "
                             f"got {max_degree}")
        if max_order < 1 or max_order > max_degree:
            raise ValueError(f"Order must lie in [1, {max_degree}], got {max_order}")
        if max_ecc_pow < 0:
            raise ValueError(f"Eccentricity power must be non-negative, got {max_ecc_pow}")
        if max_frequency < 1:
            raise ValueError(f"Maximum frequency must be positive, got {max_frequency}")
        if min_period <= 0:
            raise ValueError(f"Minimum period must be positive, got {min_period}")

        self._field = gravity_field
        self._frame = body_frame
        self._max_degree = max_degree
        self._max_order = max_order
        self._max_ecc_pow = max_ecc_pow
        self._max_frequency = max_frequency
        self._min_period = float(min_period)
        self._mu_driver = central_attraction_driver(gravity_field.mu)
        self._hansen_kernels = lru_cache(maxsize=config.MEMO_CACHE_SIZE)(
            self._create_hansen_kernels)
        self._last_resonances = None

    # ========== PROPERTY ACCESS ==========
    @property
    def gravity_field(self):
        return self._field

    @property
    def body_frame(self):
        return self._frame

    @property
    def max_degree(self):
        return self._max_degree

    @property
    def max_order(self):
        return self._max_order

    @property
    def max_ecc_pow(self):
        return self._max_ecc_pow

    @property
    def max_frequency(self):
        return self._max_frequency

    @property
    def min_period(self):
        return self._min_period

    def get_parameters_drivers(self):
        return [self._mu_driver]

    # ========== RESONANCE ==========
    def resonance_tolerance(self, orbit_period):
        """Largest |ν|/n of a resonant term for an orbit of the given period."""
        return 1.0 / max(MIN_PERIOD_IN_SAT_REV, self._min_period / orbit_period)

    def resonant_terms(self, aux):
        """
        Resonant ``(j, m)`` pairs for the orbit of ``aux``.

        Returns
        -------
        list of (int, int)
        """
        orbit_period = aux.keplerian_period
        ratio = orbit_period / self._frame.period
        tolerance = self.resonance_tolerance(orbit_period)
        pairs = []
        for m in range(1, self._max_order + 1):
            resonance = ratio * m
            j_res = int(round(resonance))
            if 0 < j_res <= self._max_frequency and abs(resonance - j_res) <= tolerance:
                pairs.append((j_res, m))
        if pairs != self._last_resonances:
            logger.debug("Resonant tesseral terms (j, m): %s", pairs)
            self._last_resonances = pairs
        return pairs

    def _create_hansen_kernels(self, j, s, n_min):
        return HansenTesseral(j, s, n_min, self._max_degree, self._max_ecc_pow,
                              self._cache.newcomb)

    def hansen_cache_info(self):
        """Hit and size statistics of the bounded Hansen kernel cache."""
        return self._hansen_kernels.cache_info()

    # ========== MEAN ELEMENT RATES ==========
    def _n_sum(self, aux, j, m, s, roa_pow, ghmsj, gamma_fn, e2, chi):
        """Sums over the degree n of the cos/sin parts of every derivative."""
        N = self._max_degree
        v = abs(m - s)
        w = abs(m + s)
        n_min = max(2, m, abs(s))
        kernels = self._hansen_kernels(j, s, n_min).evaluate(e2, chi)
        k, h, gamma = aux.k, aux.h, aux.gamma

        G, H = ghmsj.gh(m, s, j)
        dGdk, dHdk = ghmsj.dgh_dk(m, s, j)
        dGdh, dHdh = ghmsj.dgh_dh(m, s, j)
        dGdA, dHdA = ghmsj.dgh_dalpha(m, s, j)
        dGdB, dHdB = ghmsj.dgh_dbeta(m, s, j)

        sums = {key: [0.0, 0.0] for key in ("dUda", "dUdh", "dUdk", "dUdl",
                                            "dUdAl", "dUdBe", "dUdGa")}
        for n in range(n_min, N + 1):
            if (n - s) % 2 != 0:
                continue
            Cnm = self._field.cnm(n, m)
            Snm = self._field.snm(n, m)
            if Cnm == 0.0 and Snm == 0.0:
                continue
            vmns = self._cache.vmns(m, n, s)
            gam = gamma_fn.value(m, n, s)
            dgam = gamma_fn.derivative(m, n, s)
            K = kernels.value(n)
            dK = kernels.derivative(n)
            l = min(n - m, n - abs(s))
            P, dP = self._cache.jacobi_value(l, v, w, gamma)

            cf0 = roa_pow[n] * vmns
            cf1 = cf0 * gam * P
            cf2 = cf1 * K
            gcPhs = G * Cnm + H * Snm
            gsMhc = G * Snm - H * Cnm

            sums["dUda"][0] = sums["dUda"][0] + (n + 1) * cf2 * gcPhs
            sums["dUda"][1] = sums["dUda"][1] + (n + 1) * cf2 * gsMhc
            sums["dUdh"][0] = sums["dUdh"][0] + cf1 * (K * (Cnm * dGdh + Snm * dHdh)
                                                       + 2.0 * h * dK * gcPhs)
            sums["dUdh"][1] = sums["dUdh"][1] + cf1 * (K * (Snm * dGdh - Cnm * dHdh)
                                                       + 2.0 * h * dK * gsMhc)
            sums["dUdk"][0] = sums["dUdk"][0] + cf1 * (K * (Cnm * dGdk + Snm * dHdk)
                                                       + 2.0 * k * dK * gcPhs)
            sums["dUdk"][1] = sums["dUdk"][1] + cf1 * (K * (Snm * dGdk - Cnm * dHdk)
                                                       + 2.0 * k * dK * gsMhc)
            sums["dUdl"][0] = sums["dUdl"][0] + j * cf2 * gsMhc
            sums["dUdl"][1] = sums["dUdl"][1] - j * cf2 * gcPhs
            sums["dUdAl"][0] = sums["dUdAl"][0] + cf2 * (dGdA * Cnm + dHdA * Snm)
            sums["dUdAl"][1] = sums["dUdAl"][1] + cf2 * (dGdA * Snm - dHdA * Cnm)
            sums["dUdBe"][0] = sums["dUdBe"][0] + cf2 * (dGdB * Cnm + dHdB * Snm)
            sums["dUdBe"][1] = sums["dUdBe"][1] + cf2 * (dGdB * Snm - dHdB * Cnm)
            dGa = cf0 * K * (P * dgam + gam * dP)
            sums["dUdGa"][0] = sums["dUdGa"][0] + dGa * gcPhs
            sums["dUdGa"][1] = sums["dUdGa"][1] + dGa * gsMhc
        return sums

    def body_angle_in_orbit_frame(self, aux):
        """Rotation angle θ of the body frame measured in the equinoctial frame."""
        x_body, y_body = self._frame.axes(aux.epoch)
        I = aux.retrograde
        f, g = aux.f, aux.g
        return atan2(-dot(f, y_body) + I * dot(g, x_body),
                     dot(f, x_body) + I * dot(g, y_body))

    def potential_derivatives(self, aux, mu, resonances=None):
        """
        Derivatives of the resonant tesseral potential.

        Returns
        -------
        dict or None
            ``dUda``, ``dUdk``, ``dUdh``, ``dUdl``, ``dUdAl``, ``dUdBe``,
            ``dUdGa``; None when no term is resonant
        """
        if resonances is None:
            resonances = self.resonant_terms(aux)
        if not resonances:
            return None
        N = self._max_degree
        roa = self._field.radius / aux.a
        roa_pow = [1.0]
        for _ in range(N):
            roa_pow.append(roa_pow[-1] * roa)
        e2, chi = aux.e2, aux.chi
        ghmsj = GHmsj(aux.k, aux.h, aux.alpha, aux.beta, aux.retrograde)
        gamma_fn = self._cache.gamma_function(N, aux.gamma, aux.retrograde)
        theta = self.body_angle_in_orbit_frame(aux)

        totals = {key: 0.0 for key in ("dUda", "dUdh", "dUdk", "dUdl",
                                       "dUdAl", "dUdBe", "dUdGa")}
        for j, m in resonances:
            s_min = min(self._max_ecc_pow - j, N)
            s_max = min(self._max_ecc_pow + j, N)
            cos_sin = {key: [0.0, 0.0] for key in totals}
            s_values = list(range(0, s_max + 1)) + [-s for s in range(1, s_min + 1)]
            for s in s_values:
                sums = self._n_sum(aux, j, m, s, roa_pow, ghmsj, gamma_fn, e2, chi)
                for key in totals:
                    cos_sin[key][0] = cos_sin[key][0] + sums[key][0]
                    cos_sin[key][1] = cos_sin[key][1] + sums[key][1]
            phi = j * aux.lm - m * theta
            c_phi = cos(phi)
            s_phi = sin(phi)
            for key in totals:
                totals[key] = totals[key] + c_phi * cos_sin[key][0] + s_phi * cos_sin[key][1]

        moa = mu / aux.a
        result = {key: moa * value for key, value in totals.items()}
        result["dUda"] = -moa / aux.a * totals["dUda"]
        return result

    def get_mean_element_rate(self, state, aux, parameters):
        mu = self.central_mu(parameters)
        derivatives = self.potential_derivatives(aux, mu)
        if derivatives is None:
            return [0.0] * 6
        A, _ = self.radicals(aux, mu)
        return potential_rates(aux, A, derivatives, derivatives["dUdl"])

    # ========== SHORT PERIODS ==========
    def _theta_samples(self, aux):
        count = 2 * self._max_order + 2
        return [2.0 * math.pi * i / count for i in range(count)]

    def _frequencies(self, aux, parameters):
        n = value_of(aux.mean_motion)
        tolerance = self.resonance_tolerance(aux.keplerian_period)
        J = self.short_period_max_frequency
        pairs = []
        for m in range(1, self._max_order + 1):
            for j in range(-J, J + 1):
                if abs(j * n - m * self._frame.rotation_rate) / n <= tolerance:
                    continue
                pairs.append((j, m))
        return pairs

    def _frequency_rates(self, frequencies, mean_motion):
        omega = self._frame.rotation_rate
        return [j * mean_motion - m * omega for j, m in frequencies]

    def _angle_function(self):
        return self._frame.angle

    def acceleration(self, aux, position, velocity, parameters, mass=None, theta=None):
        c, s = math.cos(theta), math.sin(theta)
        x, y, z = position
        body = (c * x + s * y, -s * x + c * y, z)
        acc = self._field.acceleration(body, degree=self._max_degree, order=self._max_order,
                                       min_order=1)
        ratio = self.central_mu(parameters) / self._field.mu
        ax, ay, az = acc
        return (ratio * (c * ax - s * ay), ratio * (s * ax + c * ay), ratio * az)
