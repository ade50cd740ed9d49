"""
Default Bodies, Environment Models and Orbits
=============================================

Default values for Solar System BodyParams, exponential atmosphere models,
a low-degree Earth gravity field and some predefined orbits.

Factory functions build the environment models force contributors borrow
(gravity field, rotating Earth frame, atmosphere, Sun and Moon ephemerides)
on demand.

Examples
--------
>>> from mesos.defaults import earth_gravity_field, sun_ephemeris
>>> field = earth_gravity_field(degree=4, order=4)
>>> sun = sun_ephemeris()
"""
import numpy as np
from .orbital_elements import OrbitalElements
from .system import BodyParams, AtmoParams, GravityField, RotatingFrame, ExponentialAtmosphere
from .ephemeris import CircularEphemeris

"""
Predefined Solar System bodies
Values taken from Vallado, Fundamentals of Astrdynamics, Fifth Edition, 2022, Appendix D
Units referenced to km (i.e. mu = km^3/s^2)
"""
EARTH = BodyParams(
    mu=3.986004415e5,
    radius=6378.1363,
    J2=1.0826269e-3,
    rotation_rate=7.2921150e-5,
    name='Earth'
)

MOON = BodyParams(
    mu=4.902799e3,
    radius=1738.0,
    J2=2.027e-4,
    rotation_rate=2.661700e-6,
    name='Moon'
)

MARS = BodyParams(
    mu=4.305e4,
    radius=3397.2,
    J2=1.964e-3,
    rotation_rate=7.0882181e-5,
    name='Mars'
)

SUN = BodyParams(
    mu=1.32712428e11,
    radius=6.957e5,
    J2=None,
    rotation_rate=None,
    name='Sun'
)

# astronomical unit [km] and mean obliquity of the ecliptic (J2000) [rad]
AU = 1.495978707e8
OBLIQUITY = np.radians(23.4392911)
EARTH_MOON_DISTANCE = 384400.0

"""
Predefined exponential atmosphere models (SI units)
"""
EARTH_STD_ATMO = AtmoParams(
    rho0=1.225,
    H=8500.0,
    r0=6378137.0
)

# fit around 400 km altitude
EARTH_LEO_ATMO = AtmoParams(
    rho0=3.725e-12,
    H=58515.0,
    r0=6778137.0
)

"""
EGM96 fully normalized coefficients up to degree and order 5, plus C60
"""
_EGM96_NORMALIZED = {
    (2, 0): (-4.84165371736e-4, 0.0),
    (2, 1): (-1.86987635955e-10, 1.19528012031e-9),
    (2, 2): (2.43914352398e-6, -1.40016683654e-6),
    (3, 0): (9.57254173792e-7, 0.0),
    (3, 1): (2.03046201047e-6, 2.48200415856e-7),
    (3, 2): (9.04787894809e-7, -6.19005475177e-7),
    (3, 3): (7.21321757121e-7, 1.41434926192e-6),
    (4, 0): (5.39873863789e-7, 0.0),
    (4, 1): (-5.36157389388e-7, -4.73567346518e-7),
    (4, 2): (3.50501623962e-7, 6.62480026275e-7),
    (4, 3): (9.90856766672e-7, -2.00956723567e-7),
    (4, 4): (-1.88560802735e-7, 3.08803882149e-7),
    (5, 0): (6.85323475630e-8, 0.0),
    (5, 1): (-6.21012128528e-8, -9.44226127525e-8),
    (5, 2): (6.52438297612e-7, -3.23349612668e-7),
    (5, 3): (-4.51955406071e-7, -2.14847190624e-7),
    (5, 4): (-2.95301647654e-7, 4.96658876769e-8),
    (5, 5): (1.74971983203e-7, -6.69384278219e-7),
    (6, 0): (-1.49957994714e-7, 0.0),
}

"""
Predefined orbits for convenience
"""
ISS_ORBIT = OrbitalElements(
    a=6778.0, e=0.0001, i=np.radians(51.6),
    omega=0, w=0, nu=0, mu=EARTH.mu
)

GEO_ORBIT = OrbitalElements(
    a=42164.0, e=0.0, i=0.0,
    omega=0, w=0, nu=0, mu=EARTH.mu
)

LEO_ORBIT = OrbitalElements(
    a=EARTH.radius+550, e=0.0, i=0.0,
    omega=0, w=0, nu=0, mu=EARTH.mu
)

SSO_ORBIT = OrbitalElements(
    a=EARTH.radius+500, e=0.001, i=np.radians(97.4016),
    omega=np.radians(140), w=0, nu=0, mu=EARTH.mu
)

MOLNIYA_ORBIT = OrbitalElements(
    a = 26554, e = 0.737, i = np.radians(63.4),
    omega=np.radians(100), w=np.radians(270), nu=0, mu=EARTH.mu
)


def earth_gravity_field(degree=5, order=None):
    """
    Unnormalized EGM96 field truncated to ``degree`` and ``order``.

    Parameters
    ----------
    degree : int, optional
        Maximum degree, 2 to 6 (default 5)
    order : int, optional
        Maximum order (default: ``degree``, at most 5)

    Returns
    -------
    GravityField
    """
    if not 2 <= degree <= 6:
        raise ValueError(f"Degree must lie in [2, 6], got {degree}")
    if order is None:
        order = degree
    if not 0 <= order <= degree:
        raise ValueError(f"Order must lie in [0, {degree}], got {order}")
    size = degree + 1
    C_bar = np.zeros((size, size))
    S_bar = np.zeros((size, size))
    for (n, m), (c, s) in _EGM96_NORMALIZED.items():
        if n <= degree and m <= order:
            C_bar[n, m] = c
            S_bar[n, m] = s
    return GravityField.from_normalized(EARTH.mu, EARTH.radius, C_bar, S_bar, name='EGM96')


def earth_j2_field():
    """Degree-2 zonal Earth field from the EARTH J2 value."""
    return GravityField.from_body(EARTH)


def earth_frame(theta0=0.0, epoch0=0.0):
    """Earth-fixed frame rotating at the EARTH rotation rate."""
    return RotatingFrame(EARTH.rotation_rate, theta0, epoch0)


def earth_atmosphere(params=EARTH_LEO_ATMO):
    """Exponential atmosphere co-rotating with the Earth."""
    return ExponentialAtmosphere(params, EARTH.rotation_rate)


def sun_ephemeris(phase0=0.0, epoch0=0.0):
    """
    Sun on a circular geocentric orbit in the ecliptic plane.

    Parameters
    ----------
    phase0 : float, optional
        Ecliptic longitude of the Sun at ``epoch0`` [rad] (default 0)
    epoch0 : float, optional
        Reference epoch [s] (default 0)
    """
    mean_motion = 2.0 * np.pi / (365.25636 * 86400.0)
    return CircularEphemeris(SUN, AU, mean_motion, inclination=OBLIQUITY,
                             raan=0.0, phase0=phase0, epoch0=epoch0)


def moon_ephemeris(phase0=0.0, epoch0=0.0):
    """Moon on a circular geocentric orbit in the ecliptic plane."""
    mean_motion = np.sqrt((EARTH.mu + MOON.mu) / EARTH_MOON_DISTANCE**3)
    return CircularEphemeris(MOON, EARTH_MOON_DISTANCE, mean_motion, inclination=OBLIQUITY,
                             raan=0.0, phase0=phase0, epoch0=epoch0)
