"""
Positions of perturbing bodies relative to the central body.

Two simple providers are available: a body on a uniform circular orbit and a
body fixed in the inertial frame.  Both expose ``position(epoch)`` (inertial,
km) and carry the body's :class:`~mesos.system.BodyParams`.
"""

import math

import numpy as np

from .system import BodyParams


class CircularEphemeris:
    """
    Body on a circular orbit about the central body.

    Parameters
    ----------
    body : BodyParams
        Perturbing body (gravitational parameter, radius, name)
    distance : float
        Orbit radius [km]
    mean_motion : float
        Angular rate [rad/s]
    inclination : float, optional
        Inclination of the orbit plane [rad] (default 0)
    raan : float, optional
        Right ascension of the ascending node [rad] (default 0)
    phase0 : float, optional
        Argument of latitude at ``epoch0`` [rad] (default 0)
    epoch0 : float, optional
        Reference epoch [s] (default 0)

    Examples
    --------
    >>> from mesos.defaults import MOON
    >>> moon = CircularEphemeris(MOON, 384400.0, 2.6617e-6)
    >>> moon.position(0.0)
    (384400.0, 0.0, 0.0)
    """

    def __init__(self, body, distance, mean_motion, inclination=0.0, raan=0.0,
                 phase0=0.0, epoch0=0.0):
        if not isinstance(body, BodyParams):
            raise TypeError(f"body must be BodyParams, got {type(body)}")
        if distance <= 0:
            raise ValueError(f"Distance must be positive, got {distance}")
        self.body = body
        self.distance = float(distance)
        self.mean_motion = float(mean_motion)
        self.inclination = float(inclination)
        self.raan = float(raan)
        self.phase0 = float(phase0)
        self.epoch0 = float(epoch0)

    @property
    def name(self):
        return self.body.name

    @property
    def mu(self):
        return self.body.mu

    def position(self, epoch):
        """Inertial position [km] at ``epoch`` [s]."""
        u = self.phase0 + self.mean_motion * (epoch - self.epoch0)
        cu, su = math.cos(u), math.sin(u)
        ci, si = math.cos(self.inclination), math.sin(self.inclination)
        co, so = math.cos(self.raan), math.sin(self.raan)
        d = self.distance
        return (d * (co * cu - so * ci * su),
                d * (so * cu + co * ci * su),
                d * si * su)

    def __repr__(self):
        return (f"CircularEphemeris('{self.name}', d={self.distance:.6e} km, "
                f"n={self.mean_motion:.6e} rad/s)")


class FixedEphemeris:
    """
    Body at a fixed inertial position.

    Parameters
    ----------
    body : BodyParams
    position : array-like, shape (3,)
        Inertial position [km]
    """

    def __init__(self, body, position):
        if not isinstance(body, BodyParams):
            raise TypeError(f"body must be BodyParams, got {type(body)}")
        position = np.asarray(position, dtype=float)
        if position.shape != (3,):
            raise ValueError(f"Position must have shape (3,), got {position.shape}")
        if np.linalg.norm(position) == 0.0:
            raise ValueError("Position of a perturbing body cannot be the origin")
        self.body = body
        self._position = tuple(float(c) for c in position)

    @property
    def name(self):
        return self.body.name

    @property
    def mu(self):
        return self.body.mu

    def position(self, epoch):
        return self._position

    def __repr__(self):
        return f"FixedEphemeris('{self.name}', position={self._position})"
