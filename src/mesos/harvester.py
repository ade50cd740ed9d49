"""
Extraction of the state transition matrix and parameter Jacobian.
"""

import logging

import numpy as np

from .auxiliary import AuxiliaryElements
from .differentiation import jacobian
from .state import PropagationType
from .utils import ConfigurationError
from .variational import STATE_DIMENSION, VariationalStatus

logger = logging.getLogger(__name__)

# additional state holding the mean elements of an osculating output state
MEAN_ELEMENTS_STATE = "mean elements"


class JacobianHarvester:
    """
    Read access to the matrices integrated by a :class:`VariationalEquations`.

    Parameters
    ----------
    generator : VariationalEquations
        Generator bound to the propagation
    propagation_type : PropagationType or str
        MEAN returns the integrated matrices; OSCULATING folds in the
        Jacobian of the short-period correction η:
        ``(I + ∂η/∂y) Φ`` and ``(I + ∂η/∂y) J + ∂η/∂p``
    force_models : sequence of ForceModel, optional
        Models whose short-period corrections are differentiated (default:
        the generator's models, including those registered later)
    """

    def __init__(self, generator, propagation_type, force_models=None):
        self._generator = generator
        self._type = PropagationType.parse(propagation_type)
        self._force_models = None if force_models is None else list(force_models)

    @property
    def generator(self):
        return self._generator

    @property
    def propagation_type(self):
        return self._type

    @property
    def force_models(self):
        if self._force_models is None:
            return self._generator.force_models
        return list(self._force_models)

    def get_jacobians_columns_names(self):
        """Names of the selected parameters, in column order."""
        return self._generator.column_names

    # ========== MATRICES ==========
    def _check_ready(self, state, name):
        if self._generator.status is VariationalStatus.UNINITIALIZED:
            raise ConfigurationError(
                f"Variational equations '{self._generator.name}' have not been "
                f"advanced yet")
        if not state.has_additional_state(name):
            raise ConfigurationError(f"State carries no additional state '{name}'")

    def _mean_elements(self, state):
        if state.has_additional_state(MEAN_ELEMENTS_STATE):
            return np.array(state.get_additional_state(MEAN_ELEMENTS_STATE))
        return np.array(state.equinoctial_elements, dtype=float)

    def short_period_jacobian(self, state):
        """
        Partial derivatives of the total short-period correction.

        Returns
        -------
        deta_dy : numpy.ndarray, shape (6, 6)
        deta_dp : numpy.ndarray, shape (6, P)
        """
        generator = self._generator
        variables = generator.free_variables(self._mean_elements(state), state.epoch)
        aux = AuxiliaryElements(generator.gradient_elements(variables), state.mu, state.epoch)
        eta = [0.0] * STATE_DIMENSION
        for model in self.force_models:
            parameters = generator.gradient_parameters(model, state.epoch, variables)
            correction = model.short_period_correction(aux, parameters, state.mass)
            for i in range(STATE_DIMENSION):
                eta[i] = eta[i] + correction[i]
        partials = jacobian(eta, variables)
        return partials[:, :STATE_DIMENSION], partials[:, STATE_DIMENSION:]

    def get_state_transition_matrix(self, state):
        """
        6x6 state transition matrix carried by ``state``.

        Raises
        ------
        ConfigurationError
            If the generator never advanced or the state lacks the block
        """
        name = self._generator.name
        self._check_ready(state, name)
        phi = np.array(state.get_additional_state(name)).reshape(STATE_DIMENSION,
                                                                 STATE_DIMENSION)
        if self._type is PropagationType.OSCULATING:
            deta_dy, _ = self.short_period_jacobian(state)
            phi = (np.eye(STATE_DIMENSION) + deta_dy) @ phi
        return phi

    def get_parameters_jacobian(self, state):
        """
        6xP parameter Jacobian carried by ``state``, None without selected parameters.

        Raises
        ------
        ConfigurationError
            If the generator never advanced or the state lacks the block
        """
        P = self._generator.parameter_count
        if P == 0:
            return None
        name = self._generator.parameters_name
        self._check_ready(state, name)
        J = np.array(state.get_additional_state(name)).reshape(STATE_DIMENSION, P)
        if self._type is PropagationType.OSCULATING:
            deta_dy, deta_dp = self.short_period_jacobian(state)
            J = (np.eye(STATE_DIMENSION) + deta_dy) @ J + deta_dp
        return J

    def __repr__(self):
        return (f"JacobianHarvester('{self._generator.name}', {self._type.value}, "
                f"columns={self._generator.column_names})")
