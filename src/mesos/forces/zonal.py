"""
Zonal harmonics of the central body gravity field.

Mean-element rates come from the averaged zonal potential (Danielson et al.,
1995, section 3.1):

    U = -(μ/a) Σ_s Σ_n (2 - δ_0s) (R/a)^n V_{n,s} J_n Q_{n,s}(γ) K₀^{-n-1,s}(χ) G_s(k, h, α, β)

differentiated analytically and fed to the Lagrange equations.  The mean
semi-major axis is unaffected.  Short-period terms use the Fourier
decomposition of the Gauss rates of the zonal acceleration.
"""

import logging

from ..coefficients import compute_qns, qns_derivative, compute_gs_hs, gs_derivatives
from ..hansen import HansenZonal
from .force_model import central_attraction_driver, potential_rates
from .gaussian import GaussianForceModel

logger = logging.getLogger(__name__)


class ZonalHarmonics(GaussianForceModel):
    """
    Zonal part of a gravity field.

    Parameters
    ----------
    gravity_field : GravityField
        Central body field (borrowed)
    max_degree : int, optional
        Largest degree used (default: field degree)
    max_ecc_pow : int, optional
        Largest eccentricity power in the mean rates
        (default ``max_degree - 2``, which keeps every term up to
        ``max_degree``)
    cache : CoefficientCache, optional
    quadrature_points, max_frequency : int, optional
        Short-period settings, see :class:`GaussianForceModel`
    """

    def __init__(self, gravity_field, max_degree=None, max_ecc_pow=None, cache=None,
                 quadrature_points=None, max_frequency=None):
        super().__init__("zonal harmonics", cache, quadrature_points, max_frequency)
        if max_degree is None:
            max_degree = gravity_field.max_degree
        if max_degree < 2:
            raise ValueError(f"Zonal harmonics need a degree of at least 2, got {max_degree}")
        if max_degree > gravity_field.max_degree:
            raise ValueError(f"Degree {max_degree} exceeds the field degree "
                             f"{gravity_field.max_degree}")
        if max_ecc_pow is None:
            max_ecc_pow = max_degree - 2
        if max_ecc_pow < 0:
            raise ValueError(f"Eccentricity power must be non-negative, got {max_ecc_pow}")
        self._field = gravity_field
        self._max_degree = max_degree
        self._max_ecc_pow = min(max_ecc_pow, max_degree - 2)
        self._mu_driver = central_attraction_driver(gravity_field.mu)
        logger.debug("Zonal model: degree %d, eccentricity power %d",
                     self._max_degree, self._max_ecc_pow)

    @property
    def gravity_field(self):
        return self._field

    @property
    def max_degree(self):
        return self._max_degree

    @property
    def max_ecc_pow(self):
        return self._max_ecc_pow

    def get_parameters_drivers(self):
        return [self._mu_driver]

    # ========== MEAN ELEMENT RATES ==========
    def potential_derivatives(self, aux, mu):
        """
        Averaged zonal potential and its partial derivatives.

        Returns
        -------
        dict
            ``U``, ``dUda``, ``dUdk``, ``dUdh``, ``dUdAl``, ``dUdBe``, ``dUdGa``
        """
        N = self._max_degree
        s_max = self._max_ecc_pow
        k, h, chi = aux.k, aux.h, aux.chi
        alpha, beta, gamma = aux.alpha, aux.beta, aux.gamma
        chi3 = chi * chi * chi

        roa = self._field.radius / aux.a
        roa_pow = [1.0]
        for _ in range(N):
            roa_pow.append(roa_pow[-1] * roa)

        qns = compute_qns(gamma, N, s_max)
        gs, hs = compute_gs_hs(k, h, alpha, beta, s_max)

        U = dUda = dUdk = dUdh = dUdAl = dUdBe = dUdGa = 0.0
        for s in range(s_max + 1):
            kernels = HansenZonal(s, N).evaluate(chi)
            dGs_dk, dGs_dh, dGs_dAl, dGs_dBe = gs_derivatives(gs, hs, k, h, alpha, beta, s)
            d0s = 1.0 if s == 0 else 2.0
            for n in range(s + 2, N + 1):
                if (n - s) % 2 != 0:
                    continue
                cn0 = self._field.cnm(n, 0)
                if cn0 == 0.0:
                    continue
                K = kernels.value(n)
                dK = kernels.derivative(n)
                coef0 = d0s * roa_pow[n] * self._cache.vns(n, s) * -cn0
                coef1 = coef0 * qns[n][s]
                coef2 = coef1 * K
                coef3 = coef2 * gs[s]
                U = U + coef3
                dUda = dUda + (n + 1) * coef3
                dUdk = dUdk + coef1 * (K * dGs_dk + k * chi3 * gs[s] * dK)
                dUdh = dUdh + coef1 * (K * dGs_dh + h * chi3 * gs[s] * dK)
                dUdAl = dUdAl + coef2 * dGs_dAl
                dUdBe = dUdBe + coef2 * dGs_dBe
                dUdGa = dUdGa + coef0 * K * qns_derivative(qns, n, s) * gs[s]

        muoa = mu / aux.a
        return {"U": -muoa * U,
                "dUda": muoa / aux.a * dUda,
                "dUdk": -muoa * dUdk,
                "dUdh": -muoa * dUdh,
                "dUdAl": -muoa * dUdAl,
                "dUdBe": -muoa * dUdBe,
                "dUdGa": -muoa * dUdGa}

    def get_mean_element_rate(self, state, aux, parameters):
        mu = self.central_mu(parameters)
        A, _ = self.radicals(aux, mu)
        return potential_rates(aux, A, self.potential_derivatives(aux, mu))

    # ========== SHORT PERIODS ==========
    def acceleration(self, aux, position, velocity, parameters, mass=None, theta=None):
        # zonal terms are symmetric about z: inertial and body frames coincide
        acc = self._field.acceleration(position, degree=self._max_degree, order=0)
        ratio = self.central_mu(parameters) / self._field.mu
        return (ratio * acc[0], ratio * acc[1], ratio * acc[2])
