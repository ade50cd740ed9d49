"""
Satellite physical properties for surface-force models.
"""

import numpy as np
from typing import Optional

from .config import config
from .differentiation import dot


class Satellite:
    """
    Represents a satellite's physical properties for dynamics modeling.

    Supports atmospheric drag and solar radiation pressure with either a
    constant cross-section (cannonball) or a single flat panel whose area
    projects along the flow direction.

    Parameters
    ----------
    mass : float
        Satellite mass [kg]
    drag_coeff : float
        Dimensionless drag coefficient (typically 2.0-2.5 for satellites)
    cross_section : float
        Reference cross-sectional area [m^2]
    reflection_coeff : float, optional
        Radiation pressure coefficient Cr, 1 (absorbing) to 2 (specular)
        (default 1.5)
    panel_normal : array-like, shape (3,), optional
        Panel normal in the body frame; when given, the effective area is
        ``cross_section * |n · u|`` for flow direction ``u``
    name : str, optional
        Satellite identifier
    """

    def __init__(
        self,
        mass: float,
        drag_coeff: float,
        cross_section: float,
        reflection_coeff: float = 1.5,
        panel_normal: Optional[np.ndarray] = None,
        name: Optional[str] = None
    ):
        # Validate inputs
        if mass <= 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        if drag_coeff <= 0:
            raise ValueError(f"Drag coefficient must be positive, got {drag_coeff}")
        if cross_section <= 0:
            raise ValueError(f"Cross-sectional area must be positive, "
                             f"got {cross_section}")
        if not 0.0 <= reflection_coeff <= 2.0:
            raise ValueError(f"Reflection coefficient must lie in [0, 2], "
                             f"got {reflection_coeff}")

        if panel_normal is not None:
            panel_normal = np.asarray(panel_normal, dtype=float)
            if panel_normal.shape != (3,):
                raise ValueError(f"Panel normal must have shape (3,), "
                                 f"got {panel_normal.shape}")
            length = np.linalg.norm(panel_normal)
            if length == 0.0:
                raise ValueError("Panel normal cannot be the zero vector")
            panel_normal = panel_normal / length
            panel_normal.flags.writeable = False

        self._mass = float(mass)
        self._drag_coeff = float(drag_coeff)
        self._cross_section = float(cross_section)
        self._reflection_coeff = float(reflection_coeff)
        self._panel_normal = panel_normal
        self._name = name

    @property
    def mass(self) -> float:
        """Satellite mass [kg]"""
        return self._mass

    @property
    def drag_coeff(self) -> float:
        """Drag coefficient (dimensionless)"""
        return self._drag_coeff

    @property
    def cross_section(self) -> float:
        """Reference cross-sectional area [m^2]"""
        return self._cross_section

    @property
    def reflection_coeff(self) -> float:
        """Radiation pressure coefficient (dimensionless)"""
        return self._reflection_coeff

    @property
    def panel_normal(self) -> Optional[np.ndarray]:
        """Unit panel normal in the body frame, None for a cannonball"""
        return self._panel_normal

    @property
    def name(self) -> Optional[str]:
        """Satellite identifier"""
        return self._name

    def effective_area(self, direction, axes=None):
        """
        Area [m^2] presented to a flow along ``direction``.

        Parameters
        ----------
        direction : 3-sequence
            Unit flow direction in the inertial frame (float or tensor)
        axes : tuple of three 3-tuples, optional
            Body axes in the inertial frame, from an attitude provider
        """
        if self._panel_normal is None or axes is None:
            return self._cross_section
        nx, ny, nz = self._panel_normal
        normal = tuple(nx * axes[0][i] + ny * axes[1][i] + nz * axes[2][i] for i in range(3))
        return self._cross_section * abs(dot(normal, direction))

    def __repr__(self) -> str:
        name_str = f"'{self.name}'" if self.name else "unnamed"
        return (f"Satellite({name_str}, mass={self.mass:.2f} kg, "
                f"Cd={self.drag_coeff:.2f}, Cr={self.reflection_coeff:.2f}, "
                f"A={self.cross_section:.2f} m²)")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Satellite):
            return NotImplemented

        rtol, atol = config.EQUALITY_RTOL, config.EQUALITY_ATOL
        normals_match = (
            (self.panel_normal is None and other.panel_normal is None) or
            (self.panel_normal is not None and other.panel_normal is not None and
             np.allclose(self.panel_normal, other.panel_normal, rtol=rtol, atol=atol))
        )
        return (
            np.isclose(self.mass, other.mass, rtol=rtol, atol=atol) and
            np.isclose(self.drag_coeff, other.drag_coeff, rtol=rtol, atol=atol) and
            np.isclose(self.cross_section, other.cross_section, rtol=rtol, atol=atol) and
            np.isclose(self.reflection_coeff, other.reflection_coeff,
                       rtol=rtol, atol=atol) and
            normals_match and
            self.name == other.name
        )

    def __hash__(self) -> int:
        # Round to tolerance for hashing (similar to OrbitalElements)
        decimals = config.HASH_DECIMALS
        normal = None if self.panel_normal is None else \
            tuple(round(x, decimals) for x in self.panel_normal)
        return hash((round(self.mass, decimals), round(self.drag_coeff, decimals),
                     round(self.cross_section, decimals),
                     round(self.reflection_coeff, decimals), normal, self.name))
