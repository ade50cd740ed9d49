"""
Common contract of the mean-element force contributions.
"""

from abc import ABC, abstractmethod
import logging

import numpy as np

from ..coefficients import DEFAULT_CACHE
from ..differentiation import sqrt
from ..parameters import ParameterDriver, CENTRAL_ATTRACTION_COEFFICIENT
from ..state import PropagationType

logger = logging.getLogger(__name__)


def central_attraction_driver(mu):
    """Driver of the central body gravitational parameter."""
    return ParameterDriver(CENTRAL_ATTRACTION_COEFFICIENT, mu, scale=abs(mu) * 2.0**-32,
                           min_value=0.0)


def potential_rates(aux, A, dU, dUdl=None):
    """
    Lagrange planetary equations in equinoctial elements.

    Parameters
    ----------
    aux : AuxiliaryElements
    A : float or tensor
        ``sqrt(μa)`` with the parameter value of μ
    dU : dict
        Potential derivatives ``dUda``, ``dUdk``, ``dUdh``, ``dUdAl``,
        ``dUdBe``, ``dUdGa``
    dUdl : float or tensor, optional
        Derivative with respect to the mean longitude; None for a potential
        independent of λ, in which case ``da/dt`` is exactly 0

    Returns
    -------
    list
        Rates ``[da, dex, dey, dhx, dhy, dlm]``
    """
    a, k, h, q, p = aux.a, aux.k, aux.h, aux.q, aux.p
    B, C, I = aux.B, aux.C, aux.retrograde
    alpha, beta, gamma = aux.alpha, aux.beta, aux.gamma
    dUda, dUdk, dUdh = dU["dUda"], dU["dUdk"], dU["dUdh"]
    dUdAl, dUdBe, dUdGa = dU["dUdAl"], dU["dUdBe"], dU["dUdGa"]

    ooAB = 1.0 / (A * B)
    BoA = B / A
    BoABpo = BoA / (1.0 + B)
    Co2AB = C * ooAB / 2.0
    UAlphaGamma = alpha * dUdGa - gamma * dUdAl
    UBetaGamma = beta * dUdGa - gamma * dUdBe
    pUagmIqUbgoAB = (p * UAlphaGamma - I * q * UBetaGamma) * ooAB
    dlm = -2.0 * a / A * dUda + BoABpo * (h * dUdh + k * dUdk) + pUagmIqUbgoAB

    if dUdl is None:
        return [0.0,
                -BoA * dUdh - h * pUagmIqUbgoAB,
                BoA * dUdk + k * pUagmIqUbgoAB,
                -Co2AB * UAlphaGamma * I,
                -Co2AB * UBetaGamma,
                dlm]

    UAlphaBeta = alpha * dUdBe - beta * dUdAl
    Uhk = h * dUdk - k * dUdh
    UhkmUabmdUdl = Uhk - UAlphaBeta - dUdl
    return [2.0 * a / A * dUdl,
            -(BoA * dUdh + h * pUagmIqUbgoAB + k * BoABpo * dUdl),
            BoA * dUdk + k * pUagmIqUbgoAB - h * BoABpo * dUdl,
            Co2AB * (q * UhkmUabmdUdl - I * UAlphaGamma),
            Co2AB * (p * UhkmUabmdUdl - UBetaGamma),
            dlm]


class ForceModel(ABC):
    """
    A force contribution to the averaged equations of motion.

    Subclasses compute the mean-element rates of their perturbation and,
    where relevant, its short-period correction.  Every evaluation reads
    the parameters it receives; parameter values are never cached inside
    the model.

    Parameters
    ----------
    name : str
        Model name, used for short-period terms and log messages
    cache : CoefficientCache, optional
        Shared coefficient tables (default: the package-wide cache)
    """

    def __init__(self, name, cache=None):
        self._name = name
        self._cache = DEFAULT_CACHE if cache is None else cache
        self._short_period_terms = []

    @property
    def name(self):
        return self._name

    @property
    def cache(self):
        return self._cache

    # ========== PARAMETERS ==========
    @abstractmethod
    def get_parameters_drivers(self):
        """Parameter drivers, central attraction coefficient last."""

    def get_parameters(self, epoch=None):
        """Current driver values (value in force at ``epoch`` when given)."""
        return np.array([d.value_at(epoch) for d in self.get_parameters_drivers()])

    @staticmethod
    def central_mu(parameters):
        """Central gravitational parameter from a parameter vector."""
        return parameters[-1]

    @staticmethod
    def radicals(aux, mu):
        """``(A, n)`` recomputed with the gravitational parameter ``mu``."""
        return sqrt(mu * aux.a), sqrt(mu / (aux.a * aux.a * aux.a))

    # ========== MEAN ELEMENT RATES ==========
    @abstractmethod
    def get_mean_element_rate(self, state, aux, parameters):
        """
        Mean-element rates ``[da, dex, dey, dhx, dhy, dlm]``.

        Parameters
        ----------
        state : SpacecraftState
            Current mean state (mass, epoch)
        aux : AuxiliaryElements
            Snapshot of the mean elements, float or tensor
        parameters : sequence
            Driver values in :meth:`get_parameters_drivers` order

        Returns
        -------
        list
            Six rates of the same numeric type as the inputs
        """

    # ========== SHORT PERIODS ==========
    def initialize_short_period_terms(self, aux, propagation_type, parameters):
        """
        Create (once) the short-period terms of this model.

        Calling again with the same mode returns the same objects, emptied of
        the slots stored by an earlier propagation.

        Returns
        -------
        list of ShortPeriodTerms
        """
        propagation_type = PropagationType.parse(propagation_type)
        if self._short_period_terms and \
                self._short_period_terms[0].propagation_type is propagation_type:
            for terms in self._short_period_terms:
                terms.clear()
            return list(self._short_period_terms)
        self._short_period_terms = self._create_short_period_terms(aux, propagation_type,
                                                                   parameters)
        return list(self._short_period_terms)

    def _create_short_period_terms(self, aux, propagation_type, parameters):
        return []

    def get_short_period_terms(self):
        return list(self._short_period_terms)

    def update_short_period_terms(self, parameters, states):
        """
        Add coefficient slots for an ordered collection of mean states.

        Parameters
        ----------
        parameters : sequence of float
            Driver values
        states : sequence of SpacecraftState
            Mean states in increasing epoch order
        """

    def short_period_correction(self, aux, parameters, mass=None):
        """Osculating minus mean elements at ``aux`` (zero by default)."""
        return [0.0] * 6

    # ========== ATTITUDE ==========
    def register_attitude_provider(self, provider):
        """Attitude law for surface forces (ignored by other models)."""

    def __repr__(self):
        return f"{type(self).__name__}('{self._name}')"
