'''Orbital element sets and the conversions between them
OrbitalElements class definition'''

import numpy as np
from enum import Enum

from .config import config
from .differentiation import sin, cos, atan, sqrt
from .utils import ConvergenceError

# Kepler equation solver settings
_KEPLER_TOL = 1e-15
_KEPLER_MAX_ITER = 50


# define an enumerated list of element types
class OEType(Enum):
    CARTESIAN = 'cart'      # [x;y;z;vx;vy;vz]
    KEPLERIAN = 'kep'       # [a;e;i;Omega;w;nu]
    EQUINOCTIAL = 'equi'    # [a;ex;ey;hx;hy;lm]


# ========== ANOMALY AND LONGITUDE HELPERS ==========
def solve_kepler(M, e):
    """Eccentric anomaly E from the mean anomaly M (elliptic orbits)."""
    E = M if e < 0.8 else np.pi
    for _ in range(_KEPLER_MAX_ITER):
        dE = (E - e*np.sin(E) - M) / (1 - e*np.cos(E))
        E -= dE
        if abs(dE) < _KEPLER_TOL:
            return E
    raise ConvergenceError(f"Kepler equation did not converge (M={M}, e={e})")


def true_to_mean_anomaly(nu, e):
    E = 2*np.arctan2(np.sqrt(1 - e)*np.sin(nu/2), np.sqrt(1 + e)*np.cos(nu/2))
    return E - e*np.sin(E)


def mean_to_true_anomaly(M, e):
    E = solve_kepler(M, e)
    return 2*np.arctan2(np.sqrt(1 + e)*np.sin(E/2), np.sqrt(1 - e)*np.cos(E/2))


def true_to_eccentric_longitude(L, ex, ey):
    """
    Eccentric longitude F from the true longitude L.

    Works on floats and autograd tensors.
    """
    eps = sqrt(1 - ex*ex - ey*ey)
    cos_l = cos(L)
    sin_l = sin(L)
    num = ey*cos_l - ex*sin_l
    den = eps + 1 + ex*cos_l + ey*sin_l
    return L + 2*atan(num/den)


def eccentric_to_true_longitude(F, ex, ey):
    """True longitude L from the eccentric longitude F (generic)."""
    eps = sqrt(1 - ex*ex - ey*ey)
    cos_f = cos(F)
    sin_f = sin(F)
    num = ex*sin_f - ey*cos_f
    den = eps + 1 - ex*cos_f - ey*sin_f
    return F + 2*atan(num/den)


def eccentric_to_mean_longitude(F, ex, ey):
    """Mean longitude λ = F - ex sin F + ey cos F (generic)."""
    return F - ex*sin(F) + ey*cos(F)


def true_to_mean_longitude(L, ex, ey):
    """Mean longitude λ from the true longitude L (generic)."""
    return eccentric_to_mean_longitude(true_to_eccentric_longitude(L, ex, ey), ex, ey)


def mean_to_eccentric_longitude(lm, ex, ey):
    """Eccentric longitude F from the mean longitude λ by Newton iteration."""
    F = lm
    for _ in range(_KEPLER_MAX_ITER):
        cos_f = np.cos(F)
        sin_f = np.sin(F)
        f = F - ex*sin_f + ey*cos_f - lm
        dF = f / (1 - ex*cos_f - ey*sin_f)
        F -= dF
        if abs(dF) < _KEPLER_TOL:
            return F
    raise ConvergenceError(
        f"Equinoctial Kepler equation did not converge (lm={lm}, ex={ex}, ey={ey})")


def mean_to_true_longitude(lm, ex, ey):
    return eccentric_to_true_longitude(mean_to_eccentric_longitude(lm, ex, ey), ex, ey)


def equinoctial_frame(hx, hy):
    """
    Unit vectors (u, v) spanning the orbit plane of the equinoctial frame.

    ``u`` points along the equinoctial x axis and ``v`` completes the
    prograde in-plane basis.
    """
    hx2 = hx*hx
    hy2 = hy*hy
    factH = 1.0 / (1 + hx2 + hy2)
    hxhy = hx*hy
    u = np.array([(1 + hx2 - hy2)*factH, 2*hxhy*factH, -2*hy*factH])
    v = np.array([2*hxhy*factH, (1 - hx2 + hy2)*factH, 2*hx*factH])
    return u, v


# define basic orbital element class
class OrbitalElements:
    """
    Represents orbital elements as a set of six phase space invariants
    together with the gravitational parameter and epoch they refer to.
    Cartesian representations assume an inertial frame centered on the
    central body.
    OrbitalElements is immutable, extract elements using numpy methods and create a
    new instance to change

    Equinoctial elements are ``[a, ex, ey, hx, hy, lm]`` with
    ``ex + i ey = e exp(i(ω + Ω))``, ``hx + i hy = tan(i/2) exp(iΩ)`` and the
    mean longitude ``lm = M + ω + Ω``.
    """
    # Default gravitational parameter (Earth)
    DEFAULT_MU = 398600.4418  # km³/s²

    # ========== CONSTRUCTION ==========
    def __init__(self, elements=None, element_type=None, validate=True,
                 mu=None, epoch=0.0, **kwargs):
        """
        Create orbital elements.

        Can be called in two ways:

        1. Array-based (fast for propagation):
        OrbitalElements([7000, 0.01, 0.5, 0, 0, 0], 'kep', mu=398600.4418)

        2. Named parameters (readable for setup):
        OrbitalElements(a=7000, e=0.01, i=0.5, omega=0, w=0, nu=0, mu=398600.4418)
        OrbitalElements(a=7000, ex=0.001, ey=0.0, hx=0.1, hy=0.0, lm=0.0)

        Parameters
        ----------
        elements : array-like, optional
            6-element array of orbital elements
        element_type : OEType or str, optional
            Type of elements ('cart', 'kep', 'equi') - required if using elements array
        validate : bool, optional
            Whether to validate elements (default True)
        mu : float, optional
            Gravitational parameter (km³/s²), defaults to Earth's GM
        epoch : float, optional
            Epoch [s] of the elements (default 0.0)
        **kwargs : dict
            Named parameters for appropriate orbital element set
            Keplerian (a, e, i, omega, w, nu)
            Cartesian (x, y, z, vx, vy, vz)
            Equinoctial (a, ex, ey, hx, hy, lm)
        """
        self._mu = self.DEFAULT_MU if mu is None else float(mu)
        self._epoch = float(epoch)

        # Determine construction method
        if elements is not None:
            # Array-based construction
            self.elements = np.array(elements, dtype=float)
            self.element_type = self._parse_element_type(element_type)

        elif kwargs:
            # Named parameter construction - auto-detect type
            self.elements, self.element_type = self._from_named_params(kwargs)

        else:
            raise ValueError(
                "Must provide either:\n"
                "  - elements array and element_type, or named parameters: \n"
                "  - (a, e, i, omega, w, nu) for Keplerian, or\n"
                "  - (x, y, z, vx, vy, vz) for Cartesian, or\n"
                "  - (a, ex, ey, hx, hy, lm) for Equinoctial"
            )
        # Ensure immutability of elements array
        self.elements.flags.writeable = False
        # run validation checks on input parameters (if not flagged otherwise)
        if validate:
            self._validate()

    # define alternate constructors to bypass validation and automatically input type
    @classmethod
    def cartesian(cls, elements, mu=None, epoch=0.0):
        """
        Create Cartesian orbital elements without validation (for automated processes)

        Args:
            elements: 6-element array [x, y, z, vx, vy, vz]
            mu: Gravitational parameter (optional, defaults to Earth)
            epoch: Epoch [s]

        Returns:
            OrbitalElements instance
        """
        return cls(elements, OEType.CARTESIAN, validate=False, mu=mu, epoch=epoch)

    @classmethod
    def keplerian(cls, elements, mu=None, epoch=0.0):
        """
        Create Keplerian orbital elements without validation (for automated processes)

        Args:
            elements: 6-element array [a, e, i, Ω, ω, ν]
            mu: Gravitational parameter (optional, defaults to Earth)
            epoch: Epoch [s]

        Returns:
            OrbitalElements instance
        """
        return cls(elements, OEType.KEPLERIAN, validate=False, mu=mu, epoch=epoch)

    @classmethod
    def equinoctial(cls, elements, mu=None, epoch=0.0):
        """
        Create Equinoctial orbital elements without validation (for automated processes)

        Args:
            elements: 6-element array [a, ex, ey, hx, hy, lm]
            mu: Gravitational parameter (optional, defaults to Earth)
            epoch: Epoch [s]

        Returns:
            OrbitalElements instance
        """
        return cls(elements, OEType.EQUINOCTIAL, validate=False, mu=mu, epoch=epoch)

    # ========== VALIDATION ==========
    def _validate(self):
        """Check if elements conform to their claimed type
        If validation fails inappropriately, set validate=False for constructor
        """
        # check some properties common to all element sets
        if len(self.elements) != 6:
            raise ValueError("Orbital elements must be 6-element vector")
        if not np.all(np.isfinite(self.elements)):
            raise ValueError("Elements contain NaN or Inf")
        if self._mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {self._mu}")

        if self.element_type == OEType.KEPLERIAN:
            self._validate_keplerian()
        elif self.element_type == OEType.CARTESIAN:
            self._validate_cartesian()
        elif self.element_type == OEType.EQUINOCTIAL:
            self._validate_equinoctial()

    def _validate_keplerian(self):
        a, e, i, omega, w, nu = self.elements
        # semi-analytical theory is restricted to closed orbits
        if e < 0 or e >= 1:
            raise ValueError(f"Eccentricity must be in [0, 1), got e={e}")
        if a <= 0:
            raise ValueError(f"Elliptic orbit (e={e}) "
                             f"requires positive semi-major axis, got a={a}")
        if i > np.pi or i < 0:
            raise ValueError("Inclination out of range")
        # check range for Euler angles
        if omega < -np.pi or omega > 2*np.pi:
            raise ValueError("RAAN out of range")
        if w < -np.pi or w > 2*np.pi:
            raise ValueError("Arg of Periapsis out of range")
        if nu < -np.pi or nu > 2*np.pi:
            raise ValueError("True Anomaly out of range")

    def _validate_equinoctial(self):
        a, ex, ey, hx, hy, lm = self.elements
        if a <= 0:
            raise ValueError(f"Semi-major axis must be positive, got a={a}")
        if ex**2 + ey**2 >= 1:
            raise ValueError(
                f"Eccentricity vector (ex={ex}, ey={ey}) must lie inside the unit circle")

    def _validate_cartesian(self):
        # Basic sanity checks for position/velocity
        pos = np.linalg.norm(self.elements[:3])
        vel = np.linalg.norm(self.elements[3:])
        if pos < 10 * vel:
            raise ValueError(
                f"Position magnitude ({pos:.2f}) should be at least "
                f"an order of magnitude greater than velocity magnitude ({vel:.2f})"
            )
        if vel**2 / 2 - self._mu / pos >= 0:
            raise ValueError("Cartesian state is not on a closed orbit")

    # ========== FACTORY METHODS ==========
    @classmethod
    def from_numpy(cls, array, element_type, validate=True, mu=None, epochs=None):
        """
        Create list of OrbitalElements from NumPy array.

        Parameters
        ----------
        array : np.ndarray
            Array of shape (n_orbits, 6)
        element_type : OEType or str
        validate: bool, optional, defaults to True
        mu : float, optional
        epochs : array-like, optional
            One epoch per row (defaults to 0.0)

        Returns
        -------
        list of OrbitalElements
        """
        if array.ndim != 2 or array.shape[1] != 6:
            raise ValueError(f"Array must have shape (n, 6), got {array.shape}")
        if epochs is None:
            epochs = np.zeros(array.shape[0])
        if len(epochs) != array.shape[0]:
            raise ValueError(
                f"Epochs length ({len(epochs)}) must match number of rows ({array.shape[0]})")

        return [cls(row, element_type, validate=validate, mu=mu, epoch=t)
                for row, t in zip(array, epochs)]

    @classmethod
    def from_dataframe(cls, df, element_type=None, validate=True, mu=None):
        """
        Create list of OrbitalElements from pandas DataFrame.

        The DataFrame index is used as the epoch of each row.

        Parameters
        ----------
        df : pd.DataFrame
            DataFrame with 6 columns of orbital elements
        element_type : OEType or str, optional
            If None, inferred from column names
        validate : bool, optional, defaults to True
        mu : float, optional

        Returns
        -------
        list of OrbitalElements
        """
        if element_type is None:
            # Infer from column names
            cols = set(df.columns)
            if cols == set(_COLUMNS[OEType.KEPLERIAN]):
                element_type = OEType.KEPLERIAN
            elif cols == set(_COLUMNS[OEType.CARTESIAN]):
                element_type = OEType.CARTESIAN
            elif cols == set(_COLUMNS[OEType.EQUINOCTIAL]):
                element_type = OEType.EQUINOCTIAL
            else:
                raise ValueError(
                    "Could not infer element type from columns. "
                    "Provide element_type explicitly."
                )
        element_type = cls._parse_element_type(element_type)
        columns = _COLUMNS[element_type]

        return [cls(row[columns].to_numpy(dtype=float), element_type, validate=validate,
                    mu=mu, epoch=float(t)) for t, row in df.iterrows()]

    # ========== ELEMENT TYPE CONVERSIONS ==========
    def convert_to(self, target_type):
        """
        Convert orbital elements to a different representation.

        Parameters:
        -----------
        target_type : OEType or str
            The desired orbital element type to convert to
            Can be OEType enum or string ('cart', 'kep', 'equi')

        Returns:
        --------
        OrbitalElements
            New OrbitalElements object with elements in target type
        """
        # Convert string to enum if necessary
        target_type = self._parse_element_type(target_type)

        if target_type == self.element_type:
            # No conversion needed, return copy
            return OrbitalElements.copy(self)

        if self.element_type == OEType.KEPLERIAN and target_type == OEType.CARTESIAN:
            converted_elements = self._keplerian_to_cartesian()

        elif self.element_type == OEType.KEPLERIAN and target_type == OEType.EQUINOCTIAL:
            converted_elements = self._keplerian_to_equinoctial()

        elif self.element_type == OEType.CARTESIAN and target_type == OEType.KEPLERIAN:
            converted_elements = self._cartesian_to_keplerian()

        elif self.element_type == OEType.CARTESIAN and target_type == OEType.EQUINOCTIAL:
            converted_elements = self._cartesian_to_equinoctial()

        elif self.element_type == OEType.EQUINOCTIAL and target_type == OEType.KEPLERIAN:
            converted_elements = self._equinoctial_to_keplerian()

        elif self.element_type == OEType.EQUINOCTIAL and target_type == OEType.CARTESIAN:
            converted_elements = self._equinoctial_to_cartesian()
        else:
            raise ValueError(f"Conversion from {self.element_type.value} "
                             f"to {target_type.value} not implemented")

        return OrbitalElements(converted_elements, target_type,
                               validate=False, mu=self._mu, epoch=self._epoch)

    def _keplerian_to_cartesian(self):
        """Convert Keplerian elements to Cartesian state vector."""
        a, e, i, omega, w, nu = self.elements
        # find semi-latus rectum
        p = a*(1 - e**2)
        # find position in perifocal frame
        r_mag = p / (1 + e*np.cos(nu))
        rvec = np.array([r_mag*np.cos(nu), r_mag*np.sin(nu), 0])
        # find velocity in perifocal frame
        vvec = np.array([-np.sqrt(self._mu/p) * np.sin(nu),
                         np.sqrt(self._mu/p) * (e + np.cos(nu)), 0])
        # rotate from perifocal frame to inertial frame: R3(-Ω) R1(-i) R3(-ω)
        co, so = np.cos(omega), np.sin(omega)
        ci, si = np.cos(i), np.sin(i)
        cw, sw = np.cos(w), np.sin(w)
        DCM = np.array([
            [co*cw - so*sw*ci, -co*sw - so*cw*ci,  so*si],
            [so*cw + co*sw*ci, -so*sw + co*cw*ci, -co*si],
            [sw*si,             cw*si,              ci  ]
        ])
        return np.concatenate([DCM @ rvec, DCM @ vvec])

    def _keplerian_to_equinoctial(self):
        """Convert Keplerian elements to equinoctial elements with mean longitude"""
        a, e, i, omega, w, nu = self.elements
        t = np.tan(i/2)
        ex = e*np.cos(omega + w)
        ey = e*np.sin(omega + w)
        hx = t*np.cos(omega)
        hy = t*np.sin(omega)
        lm = omega + w + true_to_mean_anomaly(nu, e)
        return np.array([a, ex, ey, hx, hy, lm])

    def _cartesian_to_keplerian(self):
        """Convert Cartesian state vector to Keplerian elements.
        Uses algorithm from Flores & Fantino, Advances in Space Research, v.75,pp.4910
        """
        # Extract position and velocity
        rvec = self.elements[:3]
        vvec = self.elements[3:]
        # calculate angular momentum vector h = r × v
        hvec = np.cross(rvec, vvec)
        # calculate inclination
        i = np.arctan2(np.sqrt(hvec[0]**2 + hvec[1]**2), hvec[2])
        # find longitude of ascending node
        omega = np.arctan2(hvec[0], -hvec[1])
        # define line of nodes vector
        nhat = np.array([np.cos(omega), np.sin(omega), 0])
        # define an intermediate vector b in the orbit plane
        bhat = np.cross(hvec/np.linalg.norm(hvec), nhat)
        # find semimajor axis from energy equation
        a = ((2/np.linalg.norm(rvec)) - (np.dot(vvec, vvec)/self._mu))**(-1)
        # find eccentricity vector
        evec = np.cross(vvec, hvec)/self._mu - rvec/np.linalg.norm(rvec)
        # find argument of periapsis and true anomaly
        w = np.arctan2(np.dot(evec, bhat), np.dot(evec, nhat))
        nu = np.arctan2(np.dot(rvec, bhat), np.dot(rvec, nhat)) - w
        # wrap into the validated ranges
        w = w % (2*np.pi)
        nu = nu % (2*np.pi)
        omega = omega % (2*np.pi)
        # find eccentricity
        e = np.linalg.norm(evec)
        return np.array([a, e, i, omega, w, nu])

    def _cartesian_to_equinoctial(self):
        """
        Convert Cartesian state vector to equinoctial elements.
        Uses the prograde formulation (singularity at i = 180°).
        """
        rvec = self.elements[:3]
        vvec = self.elements[3:]
        r = np.linalg.norm(rvec)
        V2 = np.dot(vvec, vvec)
        rV2OnMu = r*V2/self._mu
        a = r / (2 - rV2OnMu)
        # inclination vector from the unit angular momentum
        w_hat = np.cross(rvec, vvec)
        w_hat = w_hat / np.linalg.norm(w_hat)
        d = 1.0 / (1 + w_hat[2])
        hx = -d*w_hat[1]
        hy = d*w_hat[0]
        # true longitude direction cosines
        cLv = (rvec[0] - d*rvec[2]*w_hat[0]) / r
        sLv = (rvec[1] - d*rvec[2]*w_hat[1]) / r
        # eccentricity vector
        eSE = np.dot(rvec, vvec) / np.sqrt(self._mu*a)
        eCE = rV2OnMu - 1
        e2 = eCE*eCE + eSE*eSE
        f = eCE - e2
        g = np.sqrt(1 - e2)*eSE
        ex = a*(f*cLv + g*sLv)/r
        ey = a*(f*sLv - g*cLv)/r
        Lv = np.arctan2(sLv, cLv)
        lm = true_to_mean_longitude(Lv, ex, ey)
        return np.array([a, ex, ey, hx, hy, lm])

    def _equinoctial_to_keplerian(self):
        """
        Convert equinoctial elements to Keplerian elements.
        Uses the prograde formulation (singularity at i = 180°).
        """
        a, ex, ey, hx, hy, lm = self.elements
        e = np.sqrt(ex**2 + ey**2)
        i = 2*np.arctan(np.sqrt(hx**2 + hy**2))
        RAAN = np.arctan2(hy, hx) % (2*np.pi)
        w = (np.arctan2(ey, ex) - RAAN) % (2*np.pi)
        M = lm - w - RAAN
        nu = mean_to_true_anomaly(M, e) % (2*np.pi)
        return np.array([a, e, i, RAAN, w, nu])

    def _equinoctial_to_cartesian(self):
        """
        Convert equinoctial elements to Cartesian state vector.
        Uses the prograde formulation (singularity at i = 180°).
        """
        a, ex, ey, hx, hy, lm = self.elements
        u, v = equinoctial_frame(hx, hy)
        F = mean_to_eccentric_longitude(lm, ex, ey)
        cF, sF = np.cos(F), np.sin(F)
        beta = 1.0 / (1 + np.sqrt(1 - ex**2 - ey**2))
        exey = ex*ey
        exCeyS = ex*cF + ey*sF
        x = a*((1 - beta*ey*ey)*cF + beta*exey*sF - ex)
        y = a*((1 - beta*ex*ex)*sF + beta*exey*cF - ey)
        factor = np.sqrt(self._mu/a) / (1 - exCeyS)
        xdot = factor*(-sF + beta*ey*exCeyS)
        ydot = factor*(cF - beta*ex*exCeyS)
        return np.concatenate([x*u + y*v, xdot*u + ydot*v])

    # conversion shortcuts for convenience
    def to_cartesian(self):
        """Shortcut for convert_to('cart')"""
        return self.convert_to(OEType.CARTESIAN)

    def to_keplerian(self):
        """Shortcut for convert_to('kep')"""
        return self.convert_to(OEType.KEPLERIAN)

    def to_equinoctial(self):
        """Shortcut for convert_to('equi')"""
        return self.convert_to(OEType.EQUINOCTIAL)

    def with_elements(self, elements, element_type=None, epoch=None):
        """New orbit sharing this orbit's mu (and epoch unless given)."""
        return OrbitalElements(elements,
                               self.element_type if element_type is None else element_type,
                               validate=False, mu=self._mu,
                               epoch=self._epoch if epoch is None else epoch)

    # ========== PROPERTY ACCESS ==========
    @property
    def mu(self):
        """Gravitational parameter [km³/s²]"""
        return self._mu

    @property
    def epoch(self):
        """Epoch of the elements [s]"""
        return self._epoch

    @property
    def a(self):
        """Semi-major axis (Keplerian and equinoctial elements)"""
        if self.element_type == OEType.CARTESIAN:
            raise AttributeError(
                "Semi-major axis only available for Keplerian and equinoctial elements")
        return self.elements[0]

    @property
    def e(self):
        """Eccentricity"""
        if self.element_type == OEType.KEPLERIAN:
            return self.elements[1]
        elif self.element_type == OEType.EQUINOCTIAL:
            ex, ey = self.elements[1], self.elements[2]
            return np.sqrt(ex**2 + ey**2)
        else:
            return self.to_keplerian().elements[1]

    @property
    def equinoctial_elements(self):
        """Equinoctial element array [a, ex, ey, hx, hy, lm], converting if needed"""
        if self.element_type == OEType.EQUINOCTIAL:
            return self.elements
        return self.to_equinoctial().elements

    @property
    def position(self):
        """Position vector [km]"""
        if self.element_type == OEType.CARTESIAN:
            return self.elements[:3]
        return self.to_cartesian().elements[:3]

    @property
    def velocity(self):
        """Velocity vector [km/s]"""
        if self.element_type == OEType.CARTESIAN:
            return self.elements[3:]
        return self.to_cartesian().elements[3:]

    # ========== ORBITAL PROPERTIES ==========
    def _semi_major_axis(self):
        if self.element_type == OEType.CARTESIAN:
            r = np.linalg.norm(self.elements[:3])
            v2 = np.dot(self.elements[3:], self.elements[3:])
            return 1.0 / (2/r - v2/self._mu)
        return self.elements[0]

    def orbital_period(self):
        """
        Calculate Keplerian orbital period

        Returns period in seconds
        """
        return 2 * np.pi * np.sqrt(self._semi_major_axis()**3 / self._mu)

    def mean_motion(self):
        """
        Calculate mean motion (n = √(μ/a³))

        Returns
        -------
        float
            Mean motion [rad/s]
        """
        return np.sqrt(self._mu / self._semi_major_axis()**3)

    def specific_energy(self):
        """Calculate specific orbital energy (energy per unit mass)"""
        return -self._mu / (2 * self._semi_major_axis())

    def specific_angular_momentum(self):
        """
        Calculate specific angular momentum magnitude

        Returns h = |cross(position,velocity)|
        """
        if self.element_type == OEType.CARTESIAN:
            r = self.elements[:3]
            v = self.elements[3:]
            return np.linalg.norm(np.cross(r, v))
        a = self.elements[0]
        e = self.e
        return np.sqrt(self._mu * a * (1 - e**2))

    def perigee_radius(self):
        """Radius of periapsis a(1 - e) [km]"""
        return self._semi_major_axis() * (1 - self.e)

    # ========== UTILITY METHODS ==========

    def copy(self):
        """Create a deep copy of the orbital elements"""
        return OrbitalElements(self.elements.copy(), self.element_type,
                               validate=False, mu=self._mu, epoch=self._epoch)

    # ========== BATCH OPERATIONS ==========
    class Batch:
        """
        Batch operations on collections of OrbitalElements.

        All methods accept a list of OrbitalElements and return
        a list of OrbitalElements or computed values.
        """
        @staticmethod
        def convert_to(orbits, target_type):
            """Convert multiple orbits to target type"""
            return [o.convert_to(target_type) for o in orbits]

        @staticmethod
        def to_cartesian(orbits):
            """Convert multiple orbits to Cartesian"""
            return [o.to_cartesian() for o in orbits]

        @staticmethod
        def to_equinoctial(orbits):
            """Convert multiple orbits to Equinoctial"""
            return [o.to_equinoctial() for o in orbits]

        @staticmethod
        def epochs(orbits):
            """Get epochs for multiple orbits"""
            return np.array([o.epoch for o in orbits])

        @staticmethod
        def to_numpy(orbits):
            """
            Convert list of OrbitalElements to NumPy array.

            Parameters
            ----------
            orbits : list of OrbitalElements

            Returns
            -------
            np.ndarray
                Array of shape (n_orbits, 6) containing orbital elements

            Notes
            -----
            All orbits must be the same element type. The returned array
            contains the raw element values without type information.
            """
            # Check all same type
            elem_type = orbits[0].element_type
            if not all(o.element_type == elem_type for o in orbits):
                raise ValueError("All orbits must have the same element type")

            return np.array([o.elements for o in orbits])

        @staticmethod
        def to_dataframe(orbits, index=None):
            """
            Convert list of OrbitalElements to pandas DataFrame.

            Parameters
            ----------
            orbits : list of OrbitalElements
                List of orbital elements
            index : array-like, optional
                Index for the DataFrame. If None, uses the orbit epochs.

            Returns
            -------
            pd.DataFrame
                DataFrame with columns named according to element type

            Raises
            ------
            ValueError
                If orbits have different element types or if index length
                doesn't match number of orbits

            Notes
            -----
            Column names depend on element type:
            - Keplerian: ['a', 'e', 'i', 'RAAN', 'omega', 'nu']
            - Cartesian: ['x', 'y', 'z', 'vx', 'vy', 'vz']
            - Equinoctial: ['a', 'ex', 'ey', 'hx', 'hy', 'lm']
            """
            # pandas isn't needed unless this function is used
            import pandas as pd
            # check for empty list input and return empty DataFrame
            if not orbits:
                return pd.DataFrame()

            # Check all same type
            elem_type = orbits[0].element_type
            if not all(o.element_type == elem_type for o in orbits):
                raise ValueError("All orbits must have the same element type")

            if index is None:
                index = pd.Index([o.epoch for o in orbits], name='t')
            elif len(index) != len(orbits):
                raise ValueError(
                    f"Index length ({len(index)}) must match "
                    f"number of orbits ({len(orbits)})"
                )

            data = np.array([o.elements for o in orbits])
            return pd.DataFrame(data, columns=_COLUMNS[elem_type], index=index)

    # ========== SPECIAL METHODS ==========
    def __len__(self):
        # Length of element vector (always 6)
        return 6

    def __getitem__(self, key):
        # Allow indexing like orbit[0]
        return self.elements[key]

    def __iter__(self):
        # Allow iteration over elements
        return iter(self.elements)

    def __repr__(self):
        # Machine-readable representation
        return (f"OrbitalElements({self.elements.tolist()}, {self.element_type}, "
                f"mu={self._mu}, epoch={self._epoch})")

    def __str__(self):
        # Human-readable representation
        if self.element_type == OEType.KEPLERIAN:
            a, e, i, omega, w, nu = self.elements
            return (f"Keplerian Elements (t = {self._epoch} s):\n"
                    f"  a     = {a:12.4f} km\n"
                    f"  e     = {e:12.6f}\n"
                    f"  i     = {np.degrees(i):12.4f}°\n"
                    f"  RAAN  = {np.degrees(omega):12.4f}°\n"
                    f"  ω     = {np.degrees(w):12.4f}°\n"
                    f"  ν     = {np.degrees(nu):12.4f}°")

        elif self.element_type == OEType.CARTESIAN:
            r = self.elements[:3]
            v = self.elements[3:]
            return (f"Cartesian Elements (t = {self._epoch} s):\n"
                    f"  r = [{r[0]:12.4f}, {r[1]:12.4f}, {r[2]:12.4f}] km\n"
                    f"  v = [{v[0]:12.4f}, {v[1]:12.4f}, {v[2]:12.4f}] km/s")

        else:
            a, ex, ey, hx, hy, lm = self.elements
            return (f"Equinoctial Elements (t = {self._epoch} s):\n"
                    f"  a  = {a:12.4f} km\n"
                    f"  ex = {ex:12.6f}\n"
                    f"  ey = {ey:12.6f}\n"
                    f"  hx = {hx:12.6f}\n"
                    f"  hy = {hy:12.6f}\n"
                    f"  λ  = {np.degrees(lm):12.4f}°")

    def __eq__(self, other):
        # Check equality with tolerance
        if not isinstance(other, OrbitalElements):
            return False
        return (self.element_type == other.element_type and
                self._epoch == other._epoch and
                np.allclose(self.elements, other.elements,
                            rtol=config.EQUALITY_RTOL,
                            atol=config.EQUALITY_ATOL))

    def __hash__(self):
        # Hash with rounding to match equality
        rounded = tuple(round(x, config.HASH_DECIMALS) for x in self.elements)
        return hash((self.element_type, self._epoch, rounded))

    # ========== STATIC METHODS ==========
    @staticmethod
    def _parse_element_type(element_type):
        """Convert string or enum to OEType enum"""
        if isinstance(element_type, OEType):
            return element_type
        elif isinstance(element_type, str):
            # Map string to enum
            type_map = {
                'cart': OEType.CARTESIAN,
                'cartesian': OEType.CARTESIAN,
                'kep': OEType.KEPLERIAN,
                'kepler': OEType.KEPLERIAN,
                'keplerian': OEType.KEPLERIAN,
                'eq': OEType.EQUINOCTIAL,
                'equi': OEType.EQUINOCTIAL,
                'equinoctial': OEType.EQUINOCTIAL,
            }
            if element_type in type_map:
                return type_map[element_type]
            else:
                raise ValueError(f"Unknown element type '{element_type}'. "
                                 f"Use: {list(type_map.keys())}")
        else:
            raise TypeError(f"element_type must be OEType or str, "
                            f"got {type(element_type)}")

    @staticmethod
    def _from_named_params(kwargs):
        """
        Convert named parameters to elements array and detect type.

        Returns
        -------
        elements : np.ndarray
            6-element array
        element_type : OEType
            Detected element type
        """
        kep_params = ['a', 'e', 'i', 'omega', 'w', 'nu']
        cart_params = ['x', 'y', 'z', 'vx', 'vy', 'vz']
        equi_params = ['a', 'ex', 'ey', 'hx', 'hy', 'lm']
        for params, element_type in ((kep_params, OEType.KEPLERIAN),
                                     (cart_params, OEType.CARTESIAN),
                                     (equi_params, OEType.EQUINOCTIAL)):
            if all(k in kwargs for k in params):
                elements = np.array([kwargs[k] for k in params], dtype=float)
                return elements, element_type

        # Error: couldn't determine type
        provided = list(kwargs.keys())
        raise ValueError(
            f"Could not determine element type from parameters: {provided}\n"
            f"Keplerian requires: {kep_params}\n"
            f"Cartesian requires: {cart_params}\n"
            f"Equinoctial requires: {equi_params}"
        )


# DataFrame column names per element type
_COLUMNS = {
    OEType.KEPLERIAN: ['a', 'e', 'i', 'RAAN', 'omega', 'nu'],
    OEType.CARTESIAN: ['x', 'y', 'z', 'vx', 'vy', 'vz'],
    OEType.EQUINOCTIAL: ['a', 'ex', 'ey', 'hx', 'hy', 'lm'],
}
