"""
Solar radiation pressure with a conical shadow.

    a = ν P₀ (AU/d)² (Cr A / m) û

where ``û`` points from the Sun to the spacecraft, ``d`` is the Sun
distance and ``ν`` the visible fraction of the solar disc (Montenbruck and
Gill, 2000, section 3.4.2).
"""

import logging
import math

from ..defaults import AU
from ..differentiation import asin, acos, sqrt, norm, dot, value_of
from ..parameters import ParameterDriver, REFLECTION_COEFFICIENT
from ..utils import ConfigurationError
from .force_model import central_attraction_driver
from .gaussian import GaussianForceModel

logger = logging.getLogger(__name__)

# solar flux pressure at 1 AU [N/m²]
SOLAR_PRESSURE = 4.56e-6


def lit_fraction(position, sun_position, sun_radius, body_radius):
    """
    Visible fraction of the solar disc seen from ``position``.

    Parameters
    ----------
    position : 3-sequence
        Spacecraft position relative to the occulting body [km]
    sun_position : 3-sequence
        Sun position relative to the occulting body [km]
    sun_radius, body_radius : float
        Radii of the Sun and of the occulting body [km]

    Returns
    -------
    float or tensor
        1 in full light, 0 in umbra
    """
    to_sun = tuple(sun_position[i] - position[i] for i in range(3))
    r = norm(position)
    d = norm(to_sun)
    a = asin(sun_radius / d)
    b = asin(body_radius / r)
    cos_c = -dot(position, to_sun) / (r * d)
    cos_c_value = value_of(cos_c)
    if -1.0 < cos_c_value < 1.0:
        c = acos(cos_c)
    else:
        c = math.acos(max(-1.0, min(1.0, cos_c_value)))

    av, bv, cv = value_of(a), value_of(b), value_of(c)
    if cv >= av + bv:
        return 1.0
    if cv < bv - av:
        return 0.0
    if cv < av - bv:
        return 1.0 - (b * b) / (a * a)
    x = (c * c + a * a - b * b) / (2.0 * c)
    y = sqrt(a * a - x * x)
    area = a * a * acos(x / a) + b * b * acos((c - x) / b) - c * y
    return 1.0 - area / (math.pi * a * a)


class SolarRadiationPressure(GaussianForceModel):
    """
    Radiation pressure of the Sun on a cannonball or flat panel.

    Parameters
    ----------
    sun : CircularEphemeris or FixedEphemeris
        Sun position provider (borrowed); its body radius sizes the solar disc
    satellite : Satellite
        Mass, cross-section and reflection coefficient
    mu : float
        Central body gravitational parameter [km³/s²]
    body_radius : float
        Radius of the occulting central body [km]
    quadrature_points, max_frequency : int, optional
        See :class:`GaussianForceModel`
    """

    def __init__(self, sun, satellite, mu, body_radius, quadrature_points=None,
                 max_frequency=None):
        super().__init__("solar radiation pressure", None, quadrature_points, max_frequency)
        if body_radius <= 0:
            raise ValueError(f"Body radius must be positive, got {body_radius}")
        self._sun = sun
        self._satellite = satellite
        self._body_radius = float(body_radius)
        self._attitude = None
        self._cr_driver = ParameterDriver(REFLECTION_COEFFICIENT, satellite.reflection_coeff,
                                          scale=1e-2, min_value=0.0, max_value=2.0)
        self._mu_driver = central_attraction_driver(mu)

    @property
    def sun(self):
        return self._sun

    @property
    def satellite(self):
        return self._satellite

    @property
    def attitude_provider(self):
        return self._attitude

    def get_parameters_drivers(self):
        return [self._cr_driver, self._mu_driver]

    def register_attitude_provider(self, provider):
        self._attitude = provider

    def _check_attitude(self):
        if self._attitude is None:
            raise ConfigurationError(f"{self._name}: no attitude provider registered")

    # ========== RATES ==========
    def acceleration(self, aux, position, velocity, parameters, mass=None, theta=None):
        cr = parameters[0]
        if mass is None:
            mass = self._satellite.mass
        sun = self._sun.position(aux.epoch)
        fraction = lit_fraction(position, sun, self._sun.body.radius, self._body_radius)
        if value_of(fraction) == 0.0:
            return (0.0, 0.0, 0.0)
        from_sun = tuple(position[i] - sun[i] for i in range(3))
        d = norm(from_sun)
        direction = tuple(c / d for c in from_sun)
        axes = self._attitude.axes(aux.epoch, position, velocity)
        area = self._satellite.effective_area(direction, axes)
        ratio = AU / d
        # N/kg = m/s² to km/s²
        magnitude = fraction * SOLAR_PRESSURE * ratio * ratio * cr * area / mass * 1e-3
        return tuple(magnitude * c for c in direction)

    def get_mean_element_rate(self, state, aux, parameters):
        self._check_attitude()
        mass = state.mass if state is not None else None
        return self.averaged_rates(aux, parameters, mass)

    def short_period_correction(self, aux, parameters, mass=None):
        self._check_attitude()
        return super().short_period_correction(aux, parameters, mass)

    def update_short_period_terms(self, parameters, states):
        self._check_attitude()
        super().update_short_period_terms(parameters, states)

    def __repr__(self):
        return f"SolarRadiationPressure({self._satellite!r})"
