"""
Third-body attraction.

The averaged disturbing potential of a distant body of gravitational
parameter μ₃ at distance R₃ is expanded in powers of a/R₃ and of the
eccentricity (Danielson et al., 1995, section 3.2):

    U = (μ₃/R₃) Σ_s Σ_n (2 - δ_0s) (a/R₃)^n V_{n,s} Q_{n,s}(γ) K₀^{n,s}(χ) G_s(k, h, α, β)

where α, β, γ are the direction cosines of the body with the equinoctial
triad.  The body is held fixed over one revolution of the satellite.
"""

import logging

from ..coefficients import compute_qns, qns_derivative, compute_gs_hs, gs_derivatives
from ..differentiation import dot, sqrt
from ..parameters import ParameterDriver, ATTRACTION_COEFFICIENT_SUFFIX
from .force_model import central_attraction_driver, potential_rates
from .gaussian import GaussianForceModel

logger = logging.getLogger(__name__)

DEFAULT_MAX_AR3_POW = 8


class ThirdBody(GaussianForceModel):
    """
    Attraction of one external body.

    Parameters
    ----------
    ephemeris : CircularEphemeris or FixedEphemeris
        Position provider of the perturbing body (borrowed)
    mu : float
        Central body gravitational parameter [km³/s²], given explicitly
    max_ar3_pow : int, optional
        Largest power of a/R₃ (default 8)
    max_ecc_pow : int, optional
        Largest eccentricity power (default ``max_ar3_pow - 2``)
    cache : CoefficientCache, optional
    quadrature_points, max_frequency : int, optional
        Short-period settings, see :class:`GaussianForceModel`
    """

    def __init__(self, ephemeris, mu, max_ar3_pow=DEFAULT_MAX_AR3_POW, max_ecc_pow=None,
                 cache=None, quadrature_points=None, max_frequency=None):
        body = ephemeris.body
        super().__init__(f"{body.name} attraction", cache, quadrature_points, max_frequency)
        if mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {mu}")
        if max_ar3_pow < 2:
            raise ValueError(f"Power of a/R3 must be at least 2, got {max_ar3_pow}")
        if max_ecc_pow is None:
            max_ecc_pow = max_ar3_pow - 2
        if max_ecc_pow < 0:
            raise ValueError(f"Eccentricity power must be non-negative, got {max_ecc_pow}")
        self._ephemeris = ephemeris
        self._max_ar3_pow = max_ar3_pow
        self._max_ecc_pow = min(max_ecc_pow, max_ar3_pow)
        self._body_driver = ParameterDriver(body.name + ATTRACTION_COEFFICIENT_SUFFIX,
                                            body.mu, scale=abs(body.mu) * 2.0**-32,
                                            min_value=0.0)
        self._mu_driver = central_attraction_driver(mu)

    @property
    def ephemeris(self):
        return self._ephemeris

    @property
    def body(self):
        return self._ephemeris.body

    @property
    def max_ar3_pow(self):
        return self._max_ar3_pow

    @property
    def max_ecc_pow(self):
        return self._max_ecc_pow

    def get_parameters_drivers(self):
        return [self._body_driver, self._mu_driver]

    # ========== MEAN ELEMENT RATES ==========
    def potential_derivatives(self, aux, mu3):
        """
        Averaged third-body potential and its partial derivatives.

        Returns
        -------
        dict
            ``U``, ``dUda``, ``dUdk``, ``dUdh``, ``dUdAl``, ``dUdBe``, ``dUdGa``
        """
        N = self._max_ar3_pow
        s_max = self._max_ecc_pow
        body_position = self._ephemeris.position(aux.epoch)
        R3 = sqrt(dot(body_position, body_position))
        unit = tuple(c / R3 for c in body_position)
        alpha = dot(unit, aux.f)
        beta = dot(unit, aux.g)
        gamma = dot(unit, aux.w)
        k, h, chi = aux.k, aux.h, aux.chi
        chi3 = chi * chi * chi

        aoR3 = aux.a / R3
        aoR3_pow = [1.0]
        for _ in range(N):
            aoR3_pow.append(aoR3_pow[-1] * aoR3)

        qns = compute_qns(gamma, N, s_max)
        gs, hs = compute_gs_hs(k, h, alpha, beta, s_max)

        U = dUda = dUdk = dUdh = dUdAl = dUdBe = dUdGa = 0.0
        for s in range(s_max + 1):
            kernels = self._cache.hansen_third_body(s, N).evaluate(chi)
            dGs_dk, dGs_dh, dGs_dAl, dGs_dBe = gs_derivatives(gs, hs, k, h, alpha, beta, s)
            delta0s = 1.0 if s == 0 else 2.0
            for n in range(max(2, s), N + 1):
                if (n - s) % 2 != 0:
                    continue
                kns = kernels.value(n)
                dkns = kernels.derivative(n)
                coef0 = delta0s * aoR3_pow[n] * self._cache.vns(n, s)
                coef1 = coef0 * qns[n][s]
                coef2 = coef1 * kns
                U = U + coef2 * gs[s]
                dUda = dUda + coef2 * n * gs[s]
                dUdh = dUdh + coef1 * (kns * dGs_dh + h * chi3 * gs[s] * dkns)
                dUdk = dUdk + coef1 * (kns * dGs_dk + k * chi3 * gs[s] * dkns)
                dUdAl = dUdAl + coef2 * dGs_dAl
                dUdBe = dUdBe + coef2 * dGs_dBe
                dUdGa = dUdGa + coef0 * kns * qns_derivative(qns, n, s) * gs[s]

        ooR3 = mu3 / R3
        return {"U": ooR3 * U,
                "dUda": ooR3 / aux.a * dUda,
                "dUdk": ooR3 * dUdk,
                "dUdh": ooR3 * dUdh,
                "dUdAl": ooR3 * dUdAl,
                "dUdBe": ooR3 * dUdBe,
                "dUdGa": ooR3 * dUdGa}

    def get_mean_element_rate(self, state, aux, parameters):
        mu3 = parameters[0]
        A, _ = self.radicals(aux, self.central_mu(parameters))
        return potential_rates(aux, A, self.potential_derivatives(aux, mu3))

    # ========== SHORT PERIODS ==========
    def acceleration(self, aux, position, velocity, parameters, mass=None, theta=None):
        mu3 = parameters[0]
        body = self._ephemeris.position(aux.epoch)
        d = tuple(body[i] - position[i] for i in range(3))
        d_norm = sqrt(dot(d, d))
        d3 = d_norm * d_norm * d_norm
        R3 = sqrt(dot(body, body))
        R33 = R3 * R3 * R3
        return tuple(mu3 * (d[i] / d3 - body[i] / R33) for i in range(3))
