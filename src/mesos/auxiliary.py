"""
Auxiliary elements of the averaged theory.

:class:`AuxiliaryElements` is the snapshot every force model reads: the
equinoctial elements of one mean orbit at one epoch together with the
derived radicals ``A``, ``B``, ``C``, the equinoctial triad ``(f, g, w)`` and
the direction cosines of the inertial polar axis.  All quantities are built
from the six element values with generic arithmetic, so a snapshot built from
autograd tensors (see :mod:`mesos.differentiation`) records every formula
that reads it for differentiation.

Notation follows Danielson et al. (1995)::

    k = ex, h = ey, q = hx, p = hy

Examples
--------
>>> from mesos import OrbitalElements
>>> from mesos.auxiliary import AuxiliaryElements
>>> orbit = OrbitalElements(a=7000., ex=0.001, ey=0., hx=0.1, hy=0., lm=0.)
>>> aux = AuxiliaryElements.from_orbit(orbit)
>>> round(aux.B, 9)
0.9999995
"""

import math

import numpy as np

from .differentiation import sqrt, sin, cos, value_of
from .orbital_elements import (OrbitalElements, mean_to_eccentric_longitude,
                               eccentric_to_true_longitude, true_to_mean_longitude)


class AuxiliaryElements:
    """
    Immutable snapshot of a mean orbit and its derived quantities.

    Parameters
    ----------
    elements : sequence
        Equinoctial elements ``[a, ex, ey, hx, hy, lm]`` (floats or tensors)
    mu : float or tensor
        Central body gravitational parameter [km³/s²]
    epoch : float, optional
        Epoch [s] (default 0.0)
    retrograde : int, optional
        Retrograde factor I, +1 for the direct equinoctial set (default)
    """
    __slots__ = ("epoch", "mu", "retrograde", "a", "k", "h", "q", "p", "lm",
                 "e2", "mean_motion", "A", "B", "C", "chi", "f", "g", "w",
                 "alpha", "beta", "gamma", "_true_longitude")

    def __init__(self, elements, mu, epoch=0.0, retrograde=1):
        if retrograde not in (1, -1):
            raise ValueError(f"Retrograde factor must be +1 or -1, got {retrograde}")
        if len(elements) != 6:
            raise ValueError(f"Expected 6 equinoctial elements, got {len(elements)}")
        self.epoch = float(epoch)
        self.mu = mu
        self.retrograde = retrograde
        a, k, h, q, p, lm = elements
        self.a = a
        self.k = k
        self.h = h
        self.q = q
        self.p = p
        self.lm = lm

        self.e2 = k * k + h * h
        self.mean_motion = sqrt(mu / (a * a * a))
        # A = sqrt(μa), B = sqrt(1 - k² - h²), C = 1 + p² + q²
        self.A = sqrt(mu * a)
        self.B = sqrt(1.0 - self.e2)
        self.C = 1.0 + p * p + q * q
        self.chi = 1.0 / self.B

        # equinoctial reference triad
        I = retrograde
        ooC = 1.0 / self.C
        p2 = p * p
        q2 = q * q
        pq = p * q
        self.f = ((1.0 - p2 + q2) * ooC, 2.0 * pq * ooC, -2.0 * I * p * ooC)
        self.g = (2.0 * I * pq * ooC, (1.0 + p2 - q2) * I * ooC, 2.0 * q * ooC)
        self.w = (2.0 * p * ooC, -2.0 * q * ooC, (1.0 - p2 - q2) * I * ooC)

        # direction cosines of the inertial z axis
        self.alpha = self.f[2]
        self.beta = self.g[2]
        self.gamma = self.w[2]
        self._true_longitude = None

    @classmethod
    def from_orbit(cls, orbit, retrograde=1):
        """Snapshot of an :class:`OrbitalElements` (any element type)."""
        if not isinstance(orbit, OrbitalElements):
            raise TypeError(f"Expected OrbitalElements, got {type(orbit)}")
        return cls(list(orbit.equinoctial_elements), orbit.mu, orbit.epoch, retrograde)

    # ========== DERIVED QUANTITIES ==========
    @property
    def ecc(self):
        """Eccentricity."""
        return sqrt(self.e2)

    @property
    def keplerian_period(self):
        """Keplerian period [s] (plain float)."""
        return 2.0 * math.pi / value_of(self.mean_motion)

    @property
    def elements(self):
        """Elements ``[a, ex, ey, hx, hy, lm]`` in their stored numeric type."""
        return [self.a, self.k, self.h, self.q, self.p, self.lm]

    @property
    def element_values(self):
        """Elements as a float array."""
        return np.array([value_of(x) for x in self.elements])

    @property
    def eccentric_longitude(self):
        """
        Eccentric longitude F.

        The Kepler equation is solved on plain values; for tensor elements
        a single generic Newton correction restores the derivatives.
        """
        k, h, lm = self.k, self.h, self.lm
        f0 = mean_to_eccentric_longitude(value_of(lm), value_of(k), value_of(h))
        residual = lm - (f0 - k * math.sin(f0) + h * math.cos(f0))
        return f0 + residual / (1.0 - k * math.cos(f0) - h * math.sin(f0))

    @property
    def true_longitude(self):
        """True longitude L."""
        if self._true_longitude is None:
            self._true_longitude = eccentric_to_true_longitude(
                self.eccentric_longitude, self.k, self.h)
        return self._true_longitude

    def mean_longitude_at(self, L):
        """Mean longitude corresponding to the true longitude ``L``."""
        return true_to_mean_longitude(L, self.k, self.h)

    def orbit_point(self, L):
        """
        In-plane geometry at true longitude ``L``.

        Parameters
        ----------
        L : float or tensor
            True longitude [rad]

        Returns
        -------
        dict
            ``roa`` (r/a), ``X``, ``Y``, ``Xdot``, ``Ydot`` (coordinates along
            f and g), ``position`` and ``velocity`` (inertial 3-tuples)
        """
        cos_l = cos(L)
        sin_l = sin(L)
        roa = self.B * self.B / (1.0 + self.k * cos_l + self.h * sin_l)
        r = self.a * roa
        X = r * cos_l
        Y = r * sin_l
        # na / B
        vfact = self.mean_motion * self.a / self.B
        Xdot = -vfact * (self.h + sin_l)
        Ydot = vfact * (self.k + cos_l)
        f, g = self.f, self.g
        position = (X * f[0] + Y * g[0], X * f[1] + Y * g[1], X * f[2] + Y * g[2])
        velocity = (Xdot * f[0] + Ydot * g[0], Xdot * f[1] + Ydot * g[1],
                    Xdot * f[2] + Ydot * g[2])
        return {"roa": roa, "X": X, "Y": Y, "Xdot": Xdot, "Ydot": Ydot,
                "position": position, "velocity": velocity}

    def __repr__(self):
        values = ", ".join(f"{v:.9g}" for v in self.element_values)
        return f"AuxiliaryElements([{values}], epoch={self.epoch}, I={self.retrograde})"
