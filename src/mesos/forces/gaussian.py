"""
Gauss variational equations and their numerical averaging.

Force models whose acceleration is available in closed form (atmospheric
drag, radiation pressure) get their mean-element rates by integrating the
Gauss equations over one revolution with Gauss-Legendre quadrature in the
true longitude.  The same sampled rates, projected on ``cos/sin(jλ - mΘ)``,
give the Fourier coefficients from which every model builds its
short-period correction.

References
----------
Danielson, D. A., Sagovac, C. P., Neta, B., Early, L. W. (1995),
Semianalytic Satellite Theory, sections 2.1.7 and 3.4.
"""

from abc import abstractmethod
from functools import lru_cache
import logging
import math

import numpy as np
from numpy.polynomial.legendre import leggauss

from ..auxiliary import AuxiliaryElements
from ..config import config
from ..differentiation import dot, cos, sin, sqrt, combine
from ..short_periods import ShortPeriodTerms, series_value
from ..state import PropagationType
from .force_model import ForceModel

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def quadrature_nodes(count):
    """Gauss-Legendre nodes and weights mapped to ``[-π, π]``."""
    x, w = leggauss(count)
    return tuple(math.pi * x), tuple(math.pi * w)


def gauss_partials(aux, point, mu):
    """
    Partial derivatives of the equinoctial elements with respect to velocity.

    Parameters
    ----------
    aux : AuxiliaryElements
    point : dict
        Orbit geometry from :meth:`AuxiliaryElements.orbit_point`
    mu : float or tensor
        Central gravitational parameter

    Returns
    -------
    list of 3-tuples
        ``[da/dv, dex/dv, dey/dv, dhx/dv, dhy/dv, dlm/dv]``
    """
    a, k, h, q, p = aux.a, aux.k, aux.h, aux.q, aux.p
    B, C = aux.B, aux.C
    A = sqrt(mu * a)
    f, g, w = aux.f, aux.g, aux.w
    X, Y, Xdot, Ydot = point["X"], point["Y"], point["Xdot"], point["Ydot"]
    I = aux.retrograde
    ooMu = 1.0 / mu
    ooAB = 1.0 / (A * B)
    Q = I * q * Y - p * X

    da = combine((2.0 * a * a * ooMu, point["velocity"]))
    dh = combine(((2.0 * Xdot * Y - X * Ydot) * ooMu, f),
                 (-X * Xdot * ooMu, g),
                 (k * Q * ooAB, w))
    dk = combine((-Y * Ydot * ooMu, f),
                 ((2.0 * X * Ydot - Xdot * Y) * ooMu, g),
                 (-h * Q * ooAB, w))
    dq = combine((I * C * X * 0.5 * ooAB, w))
    dp = combine((C * Y * 0.5 * ooAB, w))
    ooOpB = 1.0 / (1.0 + B)
    dl = combine((-2.0 / A, point["position"]),
                 (k * ooOpB, dh),
                 (-h * ooOpB, dk),
                 (Q / A, w))
    return [da, dk, dh, dq, dp, dl]


def gauss_rates(partials, acceleration):
    """Element rates produced by a perturbing acceleration."""
    return [dot(d, acceleration) for d in partials]


class GaussianForceModel(ForceModel):
    """
    Force model with an explicit perturbing acceleration.

    Subclasses implement :meth:`acceleration`; this class provides numerical
    averaging and Fourier-based short-period terms.

    Parameters
    ----------
    name : str
    cache : CoefficientCache, optional
    quadrature_points : int, optional
        Gauss-Legendre nodes per revolution
        (default ``config.GAUSS_QUADRATURE_POINTS``)
    max_frequency : int, optional
        Highest multiple of λ in the short-period series
        (default ``config.SHORT_PERIOD_MAX_FREQUENCY``)
    """

    def __init__(self, name, cache=None, quadrature_points=None, max_frequency=None):
        super().__init__(name, cache)
        self._quadrature_points = quadrature_points
        self._max_frequency = max_frequency

    @property
    def quadrature_points(self):
        if self._quadrature_points is None:
            return config.GAUSS_QUADRATURE_POINTS
        return self._quadrature_points

    @property
    def short_period_max_frequency(self):
        if self._max_frequency is None:
            return config.SHORT_PERIOD_MAX_FREQUENCY
        return self._max_frequency

    @abstractmethod
    def acceleration(self, aux, position, velocity, parameters, mass=None, theta=None):
        """
        Perturbing acceleration [km/s²] in the inertial frame.

        Parameters
        ----------
        aux : AuxiliaryElements
            Mean orbit snapshot (epoch, elements)
        position, velocity : 3-tuples
            Inertial state on the orbit [km, km/s]
        parameters : sequence
            Driver values
        mass : float, optional
            Spacecraft mass [kg]
        theta : float, optional
            Central body rotation angle, for models that sample it
        """

    # ========== SAMPLING ==========
    def _theta_samples(self, aux):
        """Body rotation angles sampled by the averaging (one dummy by default)."""
        return [None]

    def _frequencies(self, aux, parameters):
        """Frequency pairs ``(j, m)`` of the short-period series."""
        return [(j, 0) for j in range(1, self.short_period_max_frequency + 1)]

    def _frequency_rates(self, frequencies, mean_motion):
        """Rates ν of the angles ``jλ - mΘ``."""
        return [j * mean_motion for j, _ in frequencies]

    def _angle_function(self):
        return None

    def sample_rates(self, aux, parameters, mass=None):
        """
        Gauss rates at the quadrature nodes.

        Yields
        ------
        tuple
            ``(weight, λ, θ, rates)``, the weight including ``dλ/dL`` and the
            ``1/len(θ samples)`` factor
        """
        mu = self.central_mu(parameters)
        nodes, weights = quadrature_nodes(self.quadrature_points)
        thetas = self._theta_samples(aux)
        theta_factor = 1.0 / len(thetas)
        for theta in thetas:
            for L, w in zip(nodes, weights):
                point = aux.orbit_point(L)
                lm = aux.mean_longitude_at(L)
                dlm_dl = point["roa"] * point["roa"] / aux.B
                acc = self.acceleration(aux, point["position"], point["velocity"],
                                        parameters, mass, theta)
                rates = gauss_rates(gauss_partials(aux, point, mu), acc)
                yield w * theta_factor * dlm_dl, lm, theta, rates

    def averaged_rates(self, aux, parameters, mass=None):
        """Mean-element rates by quadrature: (1/2π)∮ rates dλ."""
        mean = [0.0] * 6
        for weight, _, _, rates in self.sample_rates(aux, parameters, mass):
            for i in range(6):
                mean[i] = mean[i] + weight * rates[i]
        return [x / (2.0 * math.pi) for x in mean]

    def rate_fourier_coefficients(self, aux, parameters, mass=None, frequencies=None):
        """
        Fourier coefficients of the osculating rates.

        Returns
        -------
        frequencies : list of (int, int)
        C, S : list of 6 lists
            ``rate_i ≈ mean_i + Σ_k C[i][k] cos φ_k + S[i][k] sin φ_k``
        """
        if frequencies is None:
            frequencies = self._frequencies(aux, parameters)
        K = len(frequencies)
        C = [[0.0] * K for _ in range(6)]
        S = [[0.0] * K for _ in range(6)]
        for weight, lm, theta, rates in self.sample_rates(aux, parameters, mass):
            for k, (j, m) in enumerate(frequencies):
                phi = j * lm - m * theta if m else j * lm
                wc = weight * cos(phi)
                ws = weight * sin(phi)
                for i in range(6):
                    C[i][k] = C[i][k] + wc * rates[i]
                    S[i][k] = S[i][k] + ws * rates[i]
        for i in range(6):
            C[i] = [c / math.pi for c in C[i]]
            S[i] = [s / math.pi for s in S[i]]
        return frequencies, C, S

    def short_period_amplitudes(self, aux, parameters, mass=None, frequencies=None):
        """
        Amplitudes of the short-period series.

        Each rate term integrates to ``(C sin φ - S cos φ)/ν``; the mean
        longitude also collects the drift caused by the semi-major axis
        oscillation, ``(3n/2a)(C_a cos φ + S_a sin φ)/ν²``.

        Returns
        -------
        frequencies, cos_amplitudes, sin_amplitudes
        """
        frequencies, C, S = self.rate_fourier_coefficients(aux, parameters, mass,
                                                             frequencies)
        _, n = self.radicals(aux, self.central_mu(parameters))
        nus = self._frequency_rates(frequencies, n)
        K = len(frequencies)
        cos_amp = [[-S[i][k] / nus[k] for k in range(K)] for i in range(6)]
        sin_amp = [[C[i][k] / nus[k] for k in range(K)] for i in range(6)]
        drift = 1.5 * n / aux.a
        for k in range(K):
            nu2 = nus[k] * nus[k]
            cos_amp[5][k] = cos_amp[5][k] + drift * C[0][k] / nu2
            sin_amp[5][k] = sin_amp[5][k] + drift * S[0][k] / nu2
        return frequencies, cos_amp, sin_amp

    def short_period_correction(self, aux, parameters, mass=None):
        fixed = self._short_period_terms[0].frequencies if self._short_period_terms else None
        frequencies, cos_amp, sin_amp = self.short_period_amplitudes(aux, parameters, mass,
                                                                     fixed)
        angle = self._angle_function()
        theta = angle(aux.epoch) if angle is not None else 0.0
        return series_value(frequencies, cos_amp, sin_amp, aux.lm, theta)

    # ========== SHORT-PERIOD TERMS ==========
    def _create_short_period_terms(self, aux, propagation_type, parameters):
        frequencies = self._frequencies(aux, parameters)
        return [ShortPeriodTerms(self._name, propagation_type, frequencies,
                                 self._angle_function())]

    def update_short_period_terms(self, parameters, states):
        if not self._short_period_terms:
            return
        terms = self._short_period_terms[0]
        if terms.propagation_type is not PropagationType.OSCULATING:
            return
        states = list(states)
        if not states:
            return
        epochs = []
        amplitudes = []
        for state in states:
            aux = AuxiliaryElements.from_orbit(state.orbit)
            _, cos_amp, sin_amp = self.short_period_amplitudes(aux, parameters, state.mass,
                                                               terms.frequencies)
            epochs.append(state.epoch)
            amplitudes.append(np.array([cos_amp, sin_amp], dtype=float))
        terms.add_slot(epochs, amplitudes)
