"""
Semi-analytical propagation of mean equinoctial elements.

:class:`MeanElementsPropagator` integrates the averaged equations of motion
built from a list of force models with ``scipy.integrate.solve_ivp``.  The
integrated vector holds the six mean elements and, when matrices are
requested, the state transition matrix and parameter Jacobian produced by a
:class:`~mesos.variational.VariationalEquations` generator.

In OSCULATING mode the initial state is first converted to mean elements,
short-period coefficients are stored along the propagation, and the output
states carry osculating orbits (their mean elements travel as the
``"mean elements"`` additional state).
"""

import logging

import numpy as np
from scipy.integrate import solve_ivp

from .auxiliary import AuxiliaryElements
from .config import config
from .forces.newtonian import NewtonianAttraction
from .harvester import JacobianHarvester, MEAN_ELEMENTS_STATE
from .orbital_elements import OrbitalElements
from .state import PropagationType, SpacecraftState
from .trajectory import Trajectory
from .utils import ConvergenceError, Timer
from .variational import STATE_DIMENSION, VariationalEquations

logger = logging.getLogger(__name__)


class MeanElementsPropagator:
    """
    Numerical integrator of the mean-element equations.

    Parameters
    ----------
    mu : float
        Central body gravitational parameter [km³/s²]
    force_models : sequence of ForceModel, optional
        Perturbations; a :class:`NewtonianAttraction` is used automatically
        when none of them is one
    propagation_type : PropagationType or str, optional
        'mean' (default) or 'osculating'
    rtol : float, optional
        Relative integration tolerance (default ``config.INTEGRATION_RTOL``)
    position_tolerance : float, optional
        Position error [km] the absolute tolerances derive from
        (default ``config.POSITION_TOLERANCE``)
    method : str, optional
        ``solve_ivp`` method (default ``config.INTEGRATION_METHOD``)
    max_step : float, optional
        Largest integration step [s] (default unbounded)

    Examples
    --------
    >>> from mesos.defaults import EARTH, ISS_ORBIT, earth_gravity_field
    >>> from mesos.forces import ZonalHarmonics
    >>> prop = MeanElementsPropagator(EARTH.mu, [ZonalHarmonics(earth_gravity_field(4, 0))])
    >>> final = prop.propagate(SpacecraftState(ISS_ORBIT), 86400.0)
    """

    def __init__(self, mu, force_models=(), propagation_type=PropagationType.MEAN,
                 rtol=None, position_tolerance=None, method=None, max_step=np.inf):
        if mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {mu}")
        self._mu = float(mu)
        self._type = PropagationType.parse(propagation_type)
        self._rtol = config.INTEGRATION_RTOL if rtol is None else float(rtol)
        self._position_tolerance = (config.POSITION_TOLERANCE if position_tolerance is None
                                    else float(position_tolerance))
        self._method = config.INTEGRATION_METHOD if method is None else method
        self._max_step = max_step
        if self._rtol <= 0 or self._position_tolerance <= 0:
            raise ValueError("Integration tolerances must be positive")
        self._force_models = []
        self._newtonian = NewtonianAttraction(self._mu)
        self._attitude = None
        self._generator = None
        for model in force_models:
            self.add_force_model(model)

    # ========== PROPERTY ACCESS ==========
    @property
    def mu(self):
        return self._mu

    @property
    def propagation_type(self):
        return self._type

    @property
    def rtol(self):
        return self._rtol

    @property
    def position_tolerance(self):
        return self._position_tolerance

    @property
    def method(self):
        return self._method

    @property
    def force_models(self):
        """Force models in use, including the automatic Newtonian attraction."""
        if any(isinstance(m, NewtonianAttraction) for m in self._force_models):
            return list(self._force_models)
        return [self._newtonian] + self._force_models

    # ========== CONFIGURATION ==========
    def add_force_model(self, model):
        """Register one more force model, also in the matrices already set up."""
        if self._attitude is not None:
            model.register_attitude_provider(self._attitude)
        self._force_models.append(model)
        if self._generator is not None:
            self._generator.set_force_models(self.force_models)
        logger.debug("Force model added: %s", model.name)

    def remove_force_models(self):
        """Drop every registered force model and the matrix generator."""
        self._force_models = []
        self._generator = None

    def register_attitude_provider(self, provider):
        """Attitude law forwarded to every current and future force model."""
        self._attitude = provider
        for model in self._force_models:
            model.register_attitude_provider(provider)

    def setup_matrices_computation(self, name, observers=()):
        """
        Integrate the variational equations along with the mean elements.

        Parameters
        ----------
        name : str
            Name of the state transition matrix additional state
        observers : sequence, optional
            Per-evaluation partials observers

        Returns
        -------
        JacobianHarvester
        """
        self._generator = VariationalEquations(name, self.force_models, observers)
        return JacobianHarvester(self._generator, self._type)

    @staticmethod
    def tolerances(position_error, orbit):
        """
        Integration tolerances for a given position error.

        Parameters
        ----------
        position_error : float
            Acceptable position error [km]
        orbit : OrbitalElements

        Returns
        -------
        atol : numpy.ndarray, shape (6,)
            ``[dP, dP/a, dP/a, dP/a, dP/a, dP/a]``
        rtol : float
            ``dP / |r|``
        """
        if position_error <= 0:
            raise ValueError(f"Position error must be positive, got {position_error}")
        a = float(orbit.equinoctial_elements[0])
        r = float(np.linalg.norm(orbit.position))
        atol = np.full(STATE_DIMENSION, position_error / a)
        atol[0] = position_error
        return atol, position_error / r

    # ========== MEAN / OSCULATING ==========
    def _corrections(self, mean, epoch, force_models, mass):
        aux = AuxiliaryElements(list(mean), self._mu, epoch)
        eta = np.zeros(STATE_DIMENSION)
        for model in force_models:
            correction = model.short_period_correction(aux, model.get_parameters(epoch), mass)
            eta += np.array([float(x) for x in correction])
        return eta

    def compute_osculating_state(self, mean_orbit, force_models=None, mass=None):
        """
        Osculating orbit of a mean orbit, from freshly computed corrections.

        Returns
        -------
        OrbitalElements
            Equinoctial elements
        """
        models = self.force_models if force_models is None else list(force_models)
        mean = np.array(mean_orbit.equinoctial_elements, dtype=float)
        eta = self._corrections(mean, mean_orbit.epoch, models, mass)
        return OrbitalElements.equinoctial(mean + eta, mu=self._mu, epoch=mean_orbit.epoch)

    def compute_mean_state(self, osculating_orbit, force_models=None, epsilon=None,
                           max_iterations=None, mass=None):
        """
        Mean orbit whose osculating counterpart is ``osculating_orbit``.

        Fixed-point iteration ``mean ← osc - η(mean)``.

        Raises
        ------
        ConvergenceError
            If the iteration does not converge within ``max_iterations``
        """
        models = self.force_models if force_models is None else list(force_models)
        epsilon = config.MEAN_STATE_EPSILON if epsilon is None else epsilon
        max_iterations = (config.MEAN_STATE_MAX_ITERATIONS if max_iterations is None
                          else max_iterations)
        osc = np.array(osculating_orbit.equinoctial_elements, dtype=float)
        epoch = osculating_orbit.epoch
        thresholds = np.full(STATE_DIMENSION, epsilon)
        thresholds[0] = epsilon * abs(osc[0])
        mean = osc.copy()
        for iteration in range(1, max_iterations + 1):
            updated = osc - self._corrections(mean, epoch, models, mass)
            delta = np.abs(updated - mean)
            mean = updated
            if np.all(delta <= thresholds):
                logger.debug("Mean state converged in %d iterations", iteration)
                return OrbitalElements.equinoctial(mean, mu=self._mu, epoch=epoch)
        raise ConvergenceError(
            f"Osculating to mean conversion did not converge in {max_iterations} "
            f"iterations (last correction {delta})")

    # ========== PROPAGATION ==========
    def _prepare(self, initial_state):
        if isinstance(initial_state, OrbitalElements):
            initial_state = SpacecraftState(initial_state)
        if not isinstance(initial_state, SpacecraftState):
            raise TypeError(f"Expected SpacecraftState or OrbitalElements, "
                            f"got {type(initial_state)}")
        orbit = initial_state.orbit
        if not np.all(np.isfinite(orbit.elements)):
            raise ValueError(f"Initial state contains NaN or Inf values: {orbit.elements}")
        models = self.force_models
        # terms first, so the mean state conversion reuses their frequencies
        aux = AuxiliaryElements.from_orbit(orbit)
        for model in models:
            model.initialize_short_period_terms(aux, self._type, model.get_parameters(orbit.epoch))
        if self._type is PropagationType.OSCULATING:
            mean_orbit = self.compute_mean_state(orbit, models, mass=initial_state.mass)
        else:
            mean_orbit = OrbitalElements.equinoctial(orbit.equinoctial_elements, mu=self._mu,
                                                     epoch=orbit.epoch)
        state = initial_state.with_orbit(mean_orbit)
        if self._generator is not None:
            state = self._generator.setup_initial_state(state)
        return state, models

    def _pack(self, state):
        blocks = [np.array(state.equinoctial_elements, dtype=float)]
        if self._generator is not None:
            blocks.append(state.get_additional_state(self._generator.name))
            if self._generator.parameter_count:
                blocks.append(state.get_additional_state(self._generator.parameters_name))
        return np.concatenate(blocks)

    def _unpack(self, y, epoch, template):
        orbit = OrbitalElements.equinoctial(y[:STATE_DIMENSION], mu=self._mu, epoch=epoch)
        state = template.with_orbit(orbit)
        if self._generator is not None:
            n_stm = STATE_DIMENSION * STATE_DIMENSION
            state = state.add_additional_state(
                self._generator.name, y[STATE_DIMENSION:STATE_DIMENSION + n_stm])
            if self._generator.parameter_count:
                state = state.add_additional_state(self._generator.parameters_name,
                                                   y[STATE_DIMENSION + n_stm:])
        return state

    def _right_hand_side(self, models, mass):
        generator = self._generator
        mu = self._mu
        n_stm = STATE_DIMENSION * STATE_DIMENSION

        def fun(t, y):
            mean = y[:STATE_DIMENSION]
            if generator is not None:
                rates, stm_dot, jac_dot = generator.derivatives(
                    t, mean, mu, y[STATE_DIMENSION:STATE_DIMENSION + n_stm],
                    y[STATE_DIMENSION + n_stm:], mass)
                return np.concatenate([rates, stm_dot, jac_dot])
            aux = AuxiliaryElements(list(mean), mu, t)
            state = SpacecraftState.from_equinoctial(mean, mu, t, mass)
            rates = np.zeros(STATE_DIMENSION)
            for model in models:
                rates += np.array([float(r) for r in
                                   model.get_mean_element_rate(state, aux,
                                                               model.get_parameters(t))])
            return rates
        return fun

    def _integrate(self, initial_state, t_end):
        state, models = self._prepare(initial_state)
        t0 = float(state.epoch)
        t_end = float(t_end)
        y0 = self._pack(state)
        fun = self._right_hand_side(models, state.mass)

        if t_end == t0:
            fun(t0, y0)
            if self._generator is not None:
                self._generator.finalize(t0)
            return state, None, models

        atol, _ = self.tolerances(self._position_tolerance, state.orbit)
        if self._generator is not None:
            # matrix entries share the tolerance of the dimensionless elements
            extra = np.full(y0.size - STATE_DIMENSION, atol[1])
            atol = np.concatenate([atol, extra])
        with Timer(f"Mean-element propagation over {t_end - t0} s", verbose=False) as timer:
            solution = solve_ivp(fun, (t0, t_end), y0, method=self._method, rtol=self._rtol,
                                 atol=atol, dense_output=True, max_step=self._max_step)
        logger.info("Propagated %s s in %.3f s (%d evaluations)", t_end - t0, timer.elapsed,
                    solution.nfev)
        if not solution.success:
            raise ValueError(f"Integration failed at t = {solution.t[-1]}: {solution.message}")
        y_end = solution.y[:, -1]
        if not np.all(np.isfinite(y_end)):
            raise ValueError(
                f"Integration failed: state became invalid during propagation.\n"
                f"Initial state: {y0[:STATE_DIMENSION]}\n"
                f"Final state: {y_end[:STATE_DIMENSION]}")

        if self._type is PropagationType.OSCULATING:
            step_states = [SpacecraftState.from_equinoctial(solution.y[:STATE_DIMENSION, i],
                                                            self._mu, t, state.mass)
                           for i, t in enumerate(solution.t)]
            for model in models:
                model.update_short_period_terms(model.get_parameters(t0), step_states)
        if self._generator is not None:
            self._generator.finalize(t_end)
        return self._unpack(y_end, t_end, state), solution, models

    def _output_state(self, mean_state, models):
        """Output state of the propagation mode from a mean state."""
        if self._type is PropagationType.MEAN:
            return mean_state
        mean = np.array(mean_state.equinoctial_elements, dtype=float)
        eta = np.zeros(STATE_DIMENSION)
        for model in models:
            for terms in model.get_short_period_terms():
                eta += terms.value(mean_state.epoch, mean)
        orbit = OrbitalElements.equinoctial(mean + eta, mu=self._mu, epoch=mean_state.epoch)
        return mean_state.with_orbit(orbit).add_additional_state(MEAN_ELEMENTS_STATE, mean)

    def propagate(self, initial_state, t_end):
        """
        Propagate to ``t_end``.

        Parameters
        ----------
        initial_state : SpacecraftState or OrbitalElements
            Mean or osculating state according to the propagation type
        t_end : float
            Final epoch [s]

        Returns
        -------
        SpacecraftState
            Final state; a zero-duration propagation returns the initial state,
            completed with the matrix blocks and, in osculating mode, the mean
            elements
        """
        final_state, solution, models = self._integrate(initial_state, t_end)
        if solution is None:
            if isinstance(initial_state, OrbitalElements):
                initial_state = SpacecraftState(initial_state)
            if self._type is PropagationType.OSCULATING:
                final_state = final_state.add_additional_state(
                    MEAN_ELEMENTS_STATE, np.array(final_state.equinoctial_elements, dtype=float))
            elif self._generator is None:
                return initial_state
            for name, block in final_state.additional_states.items():
                if not initial_state.has_additional_state(name):
                    initial_state = initial_state.add_additional_state(name, block)
            return initial_state
        return self._output_state(final_state, models)

    def propagate_trajectory(self, initial_state, t_end):
        """
        Propagate to ``t_end`` keeping the dense output.

        Returns
        -------
        Trajectory
        """
        final_state, solution, _ = self._integrate(initial_state, t_end)
        if solution is None:
            raise ValueError("A trajectory needs a nonzero propagation duration")
        return Trajectory(self, solution.sol, solution.t[0], float(t_end), final_state.mass)

    def __repr__(self):
        names = [m.name for m in self.force_models]
        return (f"MeanElementsPropagator(μ={self._mu:.6e}, type={self._type.value}, "
                f"models={names})")
