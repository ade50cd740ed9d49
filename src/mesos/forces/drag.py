"""
Atmospheric drag.

The acceleration is the classic cannonball (or single panel) model in a
co-rotating exponential atmosphere:

    a = -½ ρ (Cd A / m) |v_rel| v_rel

Mean rates come from the Gauss equations averaged over one revolution.
Orbits whose perigee lies above the atmosphere get exactly zero rates.
"""

import logging

from ..differentiation import norm, value_of
from ..parameters import ParameterDriver, DRAG_COEFFICIENT
from ..utils import ConfigurationError
from .force_model import central_attraction_driver
from .gaussian import GaussianForceModel

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATMOSPHERE_ALTITUDE = 1000.0


class AtmosphericDrag(GaussianForceModel):
    """
    Drag of a co-rotating exponential atmosphere.

    Parameters
    ----------
    atmosphere : ExponentialAtmosphere
        Density model and atmospheric wind (borrowed)
    satellite : Satellite
        Mass, cross-section and drag coefficient
    mu : float
        Central body gravitational parameter [km³/s²]
    body_radius : float
        Central body equatorial radius [km]
    max_atmosphere_altitude : float, optional
        Altitude [km] above which the atmosphere is ignored (default 1000)
    quadrature_points, max_frequency : int, optional
        See :class:`GaussianForceModel`

    Notes
    -----
    An attitude provider must be registered before rates are requested,
    even for a cannonball satellite.

    Examples
    --------
    >>> from mesos.defaults import EARTH, earth_atmosphere
    >>> from mesos.attitude import VelocityAlignedAttitude
    >>> from mesos.satellite import Satellite
    >>> sat = Satellite(mass=500.0, drag_coeff=2.2, cross_section=4.0)
    >>> drag = AtmosphericDrag(earth_atmosphere(), sat, EARTH.mu, EARTH.radius)
    >>> drag.register_attitude_provider(VelocityAlignedAttitude())
    """

    def __init__(self, atmosphere, satellite, mu, body_radius,
                 max_atmosphere_altitude=DEFAULT_MAX_ATMOSPHERE_ALTITUDE,
                 quadrature_points=None, max_frequency=None):
        super().__init__("atmospheric drag", None, quadrature_points, max_frequency)
        if body_radius <= 0:
            raise ValueError(f"Body radius must be positive, got {body_radius}")
        if max_atmosphere_altitude <= 0:
            raise ValueError(f"Atmosphere altitude must be positive, "
                             f"got {max_atmosphere_altitude}")
        self._atmosphere = atmosphere
        self._satellite = satellite
        self._body_radius = float(body_radius)
        self._max_altitude = float(max_atmosphere_altitude)
        self._attitude = None
        self._cd_driver = ParameterDriver(DRAG_COEFFICIENT, satellite.drag_coeff,
                                          scale=1e-2, min_value=0.0)
        self._mu_driver = central_attraction_driver(mu)

    @property
    def atmosphere(self):
        return self._atmosphere

    @property
    def satellite(self):
        return self._satellite

    @property
    def max_atmosphere_altitude(self):
        return self._max_altitude

    @property
    def attitude_provider(self):
        return self._attitude

    def get_parameters_drivers(self):
        return [self._cd_driver, self._mu_driver]

    def register_attitude_provider(self, provider):
        self._attitude = provider

    def _check_attitude(self):
        if self._attitude is None:
            raise ConfigurationError(f"{self._name}: no attitude provider registered")

    def perigee_altitude(self, aux):
        """Altitude [km] of the perigee of the mean orbit in ``aux`` (float)."""
        return value_of(aux.a) * (1.0 - value_of(aux.ecc)) - self._body_radius

    # ========== RATES ==========
    def acceleration(self, aux, position, velocity, parameters, mass=None, theta=None):
        cd = parameters[0]
        if mass is None:
            mass = self._satellite.mass
        v_rel = self._atmosphere.relative_velocity(position, velocity)
        speed = norm(v_rel)
        rho = self._atmosphere.density(position)
        axes = self._attitude.axes(aux.epoch, position, velocity)
        direction = tuple(c / speed for c in v_rel)
        # m² to km²
        area = self._satellite.effective_area(direction, axes) * 1e-6
        factor = -0.5 * rho * cd * area / mass * speed
        return tuple(factor * c for c in v_rel)

    def get_mean_element_rate(self, state, aux, parameters):
        self._check_attitude()
        if self.perigee_altitude(aux) > self._max_altitude:
            return [0.0] * 6
        mass = state.mass if state is not None else None
        return self.averaged_rates(aux, parameters, mass)

    def short_period_correction(self, aux, parameters, mass=None):
        self._check_attitude()
        if self.perigee_altitude(aux) > self._max_altitude:
            return [0.0] * 6
        return super().short_period_correction(aux, parameters, mass)

    def update_short_period_terms(self, parameters, states):
        self._check_attitude()
        super().update_short_period_terms(parameters, states)

    def __repr__(self):
        return (f"AtmosphericDrag({self._satellite!r}, "
                f"max altitude={self._max_altitude} km)")
