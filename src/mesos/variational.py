"""
Variational equations of the mean-element dynamics.

The generator re-evaluates every force model on ``torch`` tensors recording
autograd, with the six mean elements and the selected parameters as free
variables, and integrates alongside the mean elements

    dΦ/dt = (∂f/∂y) Φ,        dJ/dt = (∂f/∂y) J + ∂f/∂p

where Φ is the 6x6 state transition matrix and J the 6xP parameter
Jacobian.  Both blocks travel in the spacecraft state as additional states,
so a propagation can stop and resume from any intermediate state.
"""

from enum import Enum
import logging

import numpy as np

from .auxiliary import AuxiliaryElements
from .differentiation import independent_variables, jacobian, value_of
from .parameters import merge_selected_drivers
from .state import SpacecraftState
from .utils import ConfigurationError

logger = logging.getLogger(__name__)

STATE_DIMENSION = 6


class VariationalStatus(Enum):
    """Life cycle of a :class:`VariationalEquations` generator."""
    UNINITIALIZED = 'uninitialized'
    ACCUMULATING = 'accumulating'
    FINALIZED = 'finalized'


class VariationalEquations:
    """
    Generator of the state transition matrix and parameter Jacobian.

    Parameters
    ----------
    name : str
        Name of the additional state holding Φ; J is stored under
        ``name + PARAMETERS_SUFFIX``
    force_models : sequence of ForceModel
        Force models of the propagation (borrowed, registration order)
    observers : sequence, optional
        Objects with a ``partials_computed(epoch, elements, dfdy, dfdp)``
        method, called at every evaluation before the matrices are folded
        into the right-hand side

    Notes
    -----
    The Jacobian columns are the drivers selected when a force model joins
    the generator, at construction or through :meth:`set_force_models`.
    Columns only grow, in registration order.
    """

    PARAMETERS_SUFFIX = "-parameters"

    def __init__(self, name, force_models, observers=()):
        if not name:
            raise ValueError("Variational equations need a non-empty name")
        self._name = name
        self._force_models = list(force_models)
        self._observers = list(observers)
        self._columns = merge_selected_drivers(self._force_models)
        self._status = VariationalStatus.UNINITIALIZED
        self._last_epoch = None
        logger.debug("Variational equations '%s' with %d parameter columns: %s",
                     name, len(self._columns), self._columns)

    # ========== PROPERTY ACCESS ==========
    @property
    def name(self):
        return self._name

    @property
    def parameters_name(self):
        """Name of the additional state holding the parameter Jacobian."""
        return self._name + self.PARAMETERS_SUFFIX

    @property
    def status(self):
        return self._status

    @property
    def last_epoch(self):
        """Epoch of the latest evaluation, None before the first one."""
        return self._last_epoch

    @property
    def force_models(self):
        return list(self._force_models)

    @property
    def column_names(self):
        """Names of the selected parameters, in Jacobian column order."""
        return list(self._columns)

    @property
    def parameter_count(self):
        return len(self._columns)

    @property
    def free_parameters(self):
        return STATE_DIMENSION + len(self._columns)

    def set_force_models(self, force_models):
        """
        Replace the force models after setup, e.g. when one more is registered.

        Selected drivers not yet present are appended as new Jacobian
        columns; :meth:`setup_initial_state` pads existing Jacobian blocks
        with zero columns for them.
        """
        self._force_models = list(force_models)
        added = [name for name in merge_selected_drivers(self._force_models)
                 if name not in self._columns]
        self._columns.extend(added)
        logger.debug("Variational equations '%s' now use %d models, new columns: %s",
                     self._name, len(self._force_models), added)

    # ========== INITIAL STATE ==========
    def setup_initial_state(self, state):
        """
        Add the identity Φ and zero J blocks to a state lacking them.

        Blocks already present are kept, which lets a propagation resume from
        an intermediate state.  A Jacobian block with fewer columns than
        currently selected parameters is extended with zero columns.

        Returns
        -------
        SpacecraftState
        """
        if not state.has_additional_state(self._name):
            state = state.add_additional_state(self._name, np.eye(STATE_DIMENSION).ravel())
        elif state.get_additional_state(self._name).size != STATE_DIMENSION ** 2:
            raise ValueError(f"Additional state '{self._name}' has "
                             f"{state.get_additional_state(self._name).size} entries, "
                             f"expected {STATE_DIMENSION ** 2}")
        P = len(self._columns)
        if P:
            if state.has_additional_state(self.parameters_name):
                current = state.get_additional_state(self.parameters_name)
                present = current.size // STATE_DIMENSION
                if current.size % STATE_DIMENSION or present > P:
                    raise ValueError(f"Additional state '{self.parameters_name}' has "
                                     f"{current.size} entries, expected {STATE_DIMENSION * P}")
                if present < P:
                    grown = np.zeros((STATE_DIMENSION, P))
                    grown[:, :present] = current.reshape(STATE_DIMENSION, present)
                    state = state.add_additional_state(self.parameters_name, grown.ravel())
            else:
                state = state.add_additional_state(self.parameters_name,
                                                   np.zeros(STATE_DIMENSION * P))
        return state

    # ========== GRADIENT EVALUATION ==========
    def free_variables(self, elements, epoch):
        """
        Leaf tensor of the six mean elements followed by the selected parameters.

        A parameter shared by several models takes the value of the first
        model that registers it.
        """
        values = [float(x) for x in elements] + [0.0] * len(self._columns)
        seen = set()
        for model in self._force_models:
            for driver in model.get_parameters_drivers():
                if driver.selected and driver.name in self._columns and driver.name not in seen:
                    seen.add(driver.name)
                    values[STATE_DIMENSION + self._columns.index(driver.name)] = \
                        driver.value_at(epoch)
        return independent_variables(values)

    def gradient_elements(self, variables):
        """Mean elements as the first six entries of ``variables``."""
        return variables[:STATE_DIMENSION]

    def gradient_parameters(self, force_model, epoch, variables):
        """
        Driver values of one force model, selected drivers taken from ``variables``.

        Returns
        -------
        list
            Floats for unselected drivers, scalar tensors for selected ones
        """
        values = []
        for driver in force_model.get_parameters_drivers():
            value = driver.value_at(epoch)
            if driver.selected and driver.name in self._columns:
                variable = variables[STATE_DIMENSION + self._columns.index(driver.name)]
                if value != value_of(variable):
                    # same-named driver of another model keeps its own value
                    variable = variable + (value - value_of(variable))
                value = variable
            values.append(value)
        return values

    def local_jacobian(self, epoch, elements, mu, mass=1000.0):
        """
        Mean-element rates and their partial derivatives.

        Parameters
        ----------
        epoch : float
        elements : array-like, shape (6,)
            Mean equinoctial elements
        mu : float
            Central body gravitational parameter of the orbit
        mass : float, optional
            Spacecraft mass [kg]

        Returns
        -------
        rates : numpy.ndarray, shape (6,)
        dfdy : numpy.ndarray, shape (6, 6)
        dfdp : numpy.ndarray, shape (6, P)
        """
        variables = self.free_variables(elements, epoch)
        aux = AuxiliaryElements(self.gradient_elements(variables), mu, epoch)
        state = SpacecraftState.from_equinoctial(np.asarray(elements, dtype=float), mu,
                                                 epoch, mass)
        totals = [0.0] * STATE_DIMENSION
        for model in self._force_models:
            parameters = self.gradient_parameters(model, epoch, variables)
            rates = model.get_mean_element_rate(state, aux, parameters)
            for i in range(STATE_DIMENSION):
                totals[i] = totals[i] + rates[i]

        rates = np.array([value_of(r) for r in totals])
        partials = jacobian(totals, variables)
        return rates, partials[:, :STATE_DIMENSION], partials[:, STATE_DIMENSION:]

    def derivatives(self, epoch, elements, mu, stm, parameters_jacobian=None, mass=1000.0):
        """
        Right-hand side of the mean elements and of the variational blocks.

        Parameters
        ----------
        epoch : float
        elements : array-like, shape (6,)
        mu : float
        stm : array-like, shape (36,) or (6, 6)
        parameters_jacobian : array-like, shape (6P,) or (6, P), optional
        mass : float, optional

        Returns
        -------
        rates : numpy.ndarray, shape (6,)
        stm_dot : numpy.ndarray, shape (36,)
        parameters_jacobian_dot : numpy.ndarray, shape (6P,)
        """
        rates, dfdy, dfdp = self.local_jacobian(epoch, elements, mu, mass)
        for observer in self._observers:
            observer.partials_computed(epoch, np.asarray(elements, dtype=float),
                                       dfdy.copy(), dfdp.copy())

        phi = np.asarray(stm, dtype=float).reshape(STATE_DIMENSION, STATE_DIMENSION)
        stm_dot = dfdy @ phi
        P = len(self._columns)
        if P:
            if parameters_jacobian is None:
                J = np.zeros((STATE_DIMENSION, P))
            else:
                J = np.asarray(parameters_jacobian, dtype=float).reshape(STATE_DIMENSION, P)
            jac_dot = dfdy @ J + dfdp
        else:
            jac_dot = np.zeros((STATE_DIMENSION, 0))

        self._status = VariationalStatus.ACCUMULATING
        self._last_epoch = float(epoch)
        return rates, stm_dot.ravel(), jac_dot.ravel()

    def finalize(self, epoch):
        """Mark the end of a propagation at ``epoch``."""
        if self._status is VariationalStatus.UNINITIALIZED:
            raise ConfigurationError(
                f"Variational equations '{self._name}' finalized before any evaluation")
        self._status = VariationalStatus.FINALIZED
        self._last_epoch = float(epoch)
        logger.debug("Variational equations '%s' finalized at t = %s", self._name, epoch)

    def __repr__(self):
        return (f"VariationalEquations('{self._name}', {len(self._force_models)} models, "
                f"columns={self._columns}, status={self._status.value})")
