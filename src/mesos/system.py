"""
Central-body environment: body constants, gravity field, rotating body frame
and exponential atmosphere.

This module defines immutable dataclasses for celestial body parameters
and atmospheric models, plus the models force contributors borrow to
evaluate accelerations.  Units are km, s and kg unless stated otherwise.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .differentiation import sqrt, exp, norm


@dataclass(frozen=True)
class BodyParams:
    """
    Immutable parameters for a celestial body.

    Attributes
    ----------
    mu : float
        Gravitational parameter [km³/s²]
    radius : float
        Equatorial radius [km]
    J2 : float, optional
        J2 zonal harmonic coefficient [dimensionless]
    rotation_rate : float, optional
        Angular rotation rate [rad/s]
        Required for tesseral resonance and atmospheric drag
    name : str, optional
        Body name, also used for third-body parameter names
    """
    mu: float
    radius: float
    J2: Optional[float] = None
    rotation_rate: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self):
        # Validate parameters
        if self.mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {self.mu}")
        if self.radius <= 0:
            raise ValueError(f"Radius must be positive, got {self.radius}")
        if self.J2 is not None and abs(self.J2) > 1:
            raise ValueError(f"J2 coefficient seems unrealistic: {self.J2}")


@dataclass(frozen=True)
class AtmoParams:
    """
    Immutable parameters for exponential atmosphere model.

    The density profile follows: ρ(r) = ρ₀ * exp(-(r - r₀)/H)

    Attributes
    ----------
    rho0 : float
        Reference density at reference altitude [kg/m³]
    H : float
        Scale height [m]
    r0 : float
        Reference radius (radius where ρ₀ is defined) [m]
    """
    rho0: float
    H: float
    r0: float

    def __post_init__(self):
        """Validate parameters."""
        if self.rho0 <= 0:
            raise ValueError(f"Reference density must be positive, got {self.rho0}")
        if self.H <= 0:
            raise ValueError(f"Scale height must be positive, got {self.H}")
        if self.r0 <= 0:
            raise ValueError(f"Reference radius must be positive, got {self.r0}")


# ========== GRAVITY FIELD ==========
def normalization_factor(n, m):
    """
    Factor N_nm such that C_nm = N_nm * C̄_nm (fully normalized to
    unnormalized).

    N_nm = sqrt((2 - δ_0m)(2n + 1)(n - m)! / (n + m)!)
    """
    delta = 1 if m == 0 else 2
    return math.sqrt(delta * (2 * n + 1) * math.factorial(n - m) / math.factorial(n + m))


class GravityField:
    """
    Unnormalized spherical-harmonic gravity field of the central body.

    Parameters
    ----------
    mu : float
        Gravitational parameter [km³/s²]
    radius : float
        Reference (equatorial) radius [km]
    C, S : array-like, shape (N+1, N+1)
        Unnormalized coefficients, ``C[n, m]`` and ``S[n, m]``, lower
        triangular (entries with m > n are ignored)
    name : str, optional

    Notes
    -----
    The zonal coefficients enter the potential as ``J_n = -C[n, 0]``.
    Degree 0 and 1 terms are never used by the perturbation models.

    Examples
    --------
    >>> C = np.zeros((3, 3)); S = np.zeros((3, 3))
    >>> C[2, 0] = -1.08262668e-3
    >>> field = GravityField(398600.4415, 6378.1363, C, S)
    >>> field.jn(2)
    0.00108262668
    """

    def __init__(self, mu, radius, C, S, name=None):
        C = np.array(C, dtype=float)
        S = np.array(S, dtype=float)
        if C.ndim != 2 or C.shape[0] != C.shape[1]:
            raise ValueError(f"C must be a square (N+1, N+1) array, got shape {C.shape}")
        if S.shape != C.shape:
            raise ValueError(f"S shape {S.shape} does not match C shape {C.shape}")
        if mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {mu}")
        if radius <= 0:
            raise ValueError(f"Radius must be positive, got {radius}")
        self._mu = float(mu)
        self._radius = float(radius)
        self._C = np.tril(C)
        self._S = np.tril(S)
        self._C.flags.writeable = False
        self._S.flags.writeable = False
        self._name = name

        # largest degree and order with a nonzero coefficient (from degree 2)
        degree = order = 0
        for n in range(2, C.shape[0]):
            for m in range(n + 1):
                if self._C[n, m] != 0.0 or self._S[n, m] != 0.0:
                    degree = n
                    order = max(order, m)
        self._max_degree = degree
        self._max_order = order

    @classmethod
    def from_normalized(cls, mu, radius, C_bar, S_bar, name=None):
        """Build from fully normalized coefficients."""
        C_bar = np.asarray(C_bar, dtype=float)
        S_bar = np.asarray(S_bar, dtype=float)
        factors = np.zeros_like(C_bar)
        for n in range(C_bar.shape[0]):
            for m in range(n + 1):
                factors[n, m] = normalization_factor(n, m)
        return cls(mu, radius, C_bar * factors, S_bar * factors, name)

    @classmethod
    def from_body(cls, body):
        """Degree-2 zonal field from a :class:`BodyParams` with J2."""
        if body.J2 is None:
            raise ValueError(f"Body '{body.name}' has no J2 coefficient")
        C = np.zeros((3, 3))
        C[2, 0] = -body.J2
        return cls(body.mu, body.radius, C, np.zeros((3, 3)), body.name)

    # ========== PROPERTY ACCESS ==========
    @property
    def mu(self):
        return self._mu

    @property
    def radius(self):
        return self._radius

    @property
    def name(self):
        return self._name

    @property
    def max_degree(self):
        return self._max_degree

    @property
    def max_order(self):
        return self._max_order

    def cnm(self, n, m):
        """Unnormalized C_nm (0 outside the stored table)."""
        if n >= self._C.shape[0] or m > n or m < 0:
            return 0.0
        return float(self._C[n, m])

    def snm(self, n, m):
        """Unnormalized S_nm (0 outside the stored table)."""
        if n >= self._S.shape[0] or m > n or m < 0:
            return 0.0
        return float(self._S[n, m])

    def jn(self, n):
        """Zonal coefficient J_n = -C_n0."""
        return -self.cnm(n, 0)

    def truncated(self, degree, order=None):
        """Field restricted to ``degree`` and ``order``."""
        if order is None:
            order = degree
        size = degree + 1
        C = np.zeros((size, size))
        S = np.zeros((size, size))
        top = min(size, self._C.shape[0])
        C[:top, :top] = self._C[:top, :top]
        S[:top, :top] = self._S[:top, :top]
        C[:, order + 1:] = 0.0
        S[:, order + 1:] = 0.0
        return GravityField(self._mu, self._radius, C, S, self._name)

    # ========== ACCELERATION ==========
    def acceleration(self, position, degree=None, order=None, min_order=0):
        """
        Perturbing acceleration in the body-fixed frame.

        Cunningham V/W recursion (Montenbruck & Gill, section 3.2) on the
        unnormalized coefficients.  The central ``-μ r/r³`` term is excluded.

        Parameters
        ----------
        position : 3-sequence of float or tensor
            Body-fixed position [km]
        degree, order : int, optional
            Truncation (defaults: field maximum)
        min_order : int, optional
            Lowest order kept (default 0); 1 drops the zonal terms

        Returns
        -------
        tuple
            Acceleration [km/s²]
        """
        N = self._max_degree if degree is None else min(degree, self._max_degree)
        M = self._max_order if order is None else min(order, N)
        if N < 2:
            return (0.0, 0.0, 0.0)

        x, y, z = position
        r2 = x * x + y * y + z * z
        R = self._radius
        rho = R * R / r2
        x0 = x * R / r2
        y0 = y * R / r2
        z0 = z * R / r2

        # V[n][m], W[n][m] up to degree N + 1
        size = N + 2
        V = [[0.0] * (size + 1) for _ in range(size + 1)]
        W = [[0.0] * (size + 1) for _ in range(size + 1)]
        V[0][0] = R / sqrt(r2)
        for m in range(0, min(M + 2, size) + 1):
            if m > 0:
                V[m][m] = (2 * m - 1) * (x0 * V[m - 1][m - 1] - y0 * W[m - 1][m - 1])
                W[m][m] = (2 * m - 1) * (x0 * W[m - 1][m - 1] + y0 * V[m - 1][m - 1])
            if m + 1 <= size:
                V[m + 1][m] = (2 * m + 1) * z0 * V[m][m]
                W[m + 1][m] = (2 * m + 1) * z0 * W[m][m]
            for n in range(m + 2, size + 1):
                V[n][m] = ((2 * n - 1) * z0 * V[n - 1][m] - (n + m - 1) * rho * V[n - 2][m]) / (n - m)
                W[n][m] = ((2 * n - 1) * z0 * W[n - 1][m] - (n + m - 1) * rho * W[n - 2][m]) / (n - m)

        ax = ay = az = 0.0
        for n in range(2, N + 1):
            for m in range(min_order, min(n, M) + 1):
                C = self.cnm(n, m)
                S = self.snm(n, m)
                if C == 0.0 and S == 0.0:
                    continue
                if m == 0:
                    ax = ax - C * V[n + 1][1]
                    ay = ay - C * W[n + 1][1]
                    az = az + (n + 1) * (-C * V[n + 1][0])
                else:
                    fac = 0.5 * (n - m + 1) * (n - m + 2)
                    ax = ax + 0.5 * (-C * V[n + 1][m + 1] - S * W[n + 1][m + 1]) \
                        + fac * (C * V[n + 1][m - 1] + S * W[n + 1][m - 1])
                    ay = ay + 0.5 * (-C * W[n + 1][m + 1] + S * V[n + 1][m + 1]) \
                        + fac * (-C * W[n + 1][m - 1] + S * V[n + 1][m - 1])
                    az = az + (n - m + 1) * (-C * V[n + 1][m] - S * W[n + 1][m])

        factor = self._mu / (R * R)
        return (factor * ax, factor * ay, factor * az)

    def __repr__(self):
        label = f"'{self._name}', " if self._name else ""
        return (f"GravityField({label}μ={self._mu:.6e} km³/s², R={self._radius:.4f} km, "
                f"degree={self._max_degree}, order={self._max_order})")


# ========== BODY FRAME ==========
class RotatingFrame:
    """
    Body-fixed frame rotating uniformly about the inertial +z axis.

    Parameters
    ----------
    rotation_rate : float
        Angular rate ω [rad/s]
    theta0 : float, optional
        Rotation angle at ``epoch0`` [rad] (default 0)
    epoch0 : float, optional
        Reference epoch [s] (default 0)
    """

    def __init__(self, rotation_rate, theta0=0.0, epoch0=0.0):
        if rotation_rate <= 0:
            raise ValueError(f"Rotation rate must be positive, got {rotation_rate}")
        self.rotation_rate = float(rotation_rate)
        self.theta0 = float(theta0)
        self.epoch0 = float(epoch0)

    @property
    def period(self):
        """Rotation period [s]."""
        return 2.0 * math.pi / self.rotation_rate

    def angle(self, epoch):
        """Rotation angle Θ(t) [rad] (not wrapped)."""
        return self.theta0 + self.rotation_rate * (epoch - self.epoch0)

    def axes(self, epoch):
        """Body x and y axes expressed in the inertial frame."""
        theta = self.angle(epoch)
        c = math.cos(theta)
        s = math.sin(theta)
        return (c, s, 0.0), (-s, c, 0.0)

    def to_body(self, vector, epoch):
        """Rotate an inertial vector into the body frame."""
        theta = self.angle(epoch)
        c = math.cos(theta)
        s = math.sin(theta)
        x, y, z = vector
        return (c * x + s * y, -s * x + c * y, z)

    def to_inertial(self, vector, epoch):
        """Rotate a body-frame vector into the inertial frame."""
        theta = self.angle(epoch)
        c = math.cos(theta)
        s = math.sin(theta)
        x, y, z = vector
        return (c * x - s * y, s * x + c * y, z)

    def __repr__(self):
        return (f"RotatingFrame(ω={self.rotation_rate:.6e} rad/s, "
                f"θ0={self.theta0}, t0={self.epoch0})")


# ========== ATMOSPHERE ==========
class ExponentialAtmosphere:
    """
    Exponential density profile co-rotating with the central body.

    Parameters
    ----------
    params : AtmoParams
        Reference density, scale height and reference radius (SI units)
    rotation_rate : float
        Body rotation rate [rad/s] used for the atmospheric wind
    """

    def __init__(self, params, rotation_rate):
        if not isinstance(params, AtmoParams):
            raise TypeError(f"params must be AtmoParams, got {type(params)}")
        self.params = params
        self.rotation_rate = float(rotation_rate)
        # Convert atmospheric params to km (package standard)
        # Density in kg/km³, scale height in km
        self._rho0 = params.rho0 * 1e9
        self._H = params.H / 1000.0
        self._r0 = params.r0 / 1000.0

    def density(self, position):
        """Density [kg/km³] at an inertial position [km] (float or tensor)."""
        r = norm(position)
        return self._rho0 * exp(-(r - self._r0) / self._H)

    def relative_velocity(self, position, velocity):
        """
        Velocity relative to the rotating atmosphere.

        v_rel = v - ω × r, with ω along +z: ω × r = [-ω y, ω x, 0]
        """
        w = self.rotation_rate
        return (velocity[0] + w * position[1],
                velocity[1] - w * position[0],
                velocity[2])

    def __repr__(self):
        return (f"ExponentialAtmosphere(ρ₀={self.params.rho0} kg/m³, "
                f"H={self.params.H} m, r₀={self.params.r0} m)")
