"""
Spacecraft state carried through a mean-element propagation.
"""

from enum import Enum
from types import MappingProxyType

import numpy as np

from .orbital_elements import OrbitalElements, OEType


class PropagationType(Enum):
    """Kind of output produced by a semi-analytical propagation."""
    MEAN = 'mean'
    OSCULATING = 'osculating'

    @classmethod
    def parse(cls, value):
        """Accept a PropagationType or its string value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise ValueError(f"Unknown propagation type '{value}'. "
                         f"Use: {[t.value for t in cls]}")


class SpacecraftState:
    """
    Orbit, mass and named additional state blocks at one epoch.

    SpacecraftState is immutable: methods that change it return a new
    instance.

    Parameters
    ----------
    orbit : OrbitalElements
        Orbit (epoch and gravitational parameter are read from it)
    mass : float, optional
        Spacecraft mass [kg] (default 1000.0)
    additional_states : dict of str to array-like, optional
        Named extra state blocks (e.g. state transition matrix)
    """

    def __init__(self, orbit, mass=1000.0, additional_states=None):
        if not isinstance(orbit, OrbitalElements):
            raise TypeError(f"orbit must be OrbitalElements, got {type(orbit)}")
        if mass <= 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        self._orbit = orbit
        self._mass = float(mass)
        blocks = {}
        for name, values in (additional_states or {}).items():
            array = np.array(values, dtype=float).ravel()
            array.flags.writeable = False
            blocks[name] = array
        self._additional = blocks

    # ========== PROPERTY ACCESS ==========
    @property
    def orbit(self):
        return self._orbit

    @property
    def epoch(self):
        return self._orbit.epoch

    @property
    def mu(self):
        return self._orbit.mu

    @property
    def mass(self):
        return self._mass

    @property
    def equinoctial_elements(self):
        """Equinoctial element array of the orbit."""
        return self._orbit.equinoctial_elements

    @property
    def additional_states(self):
        """Read-only mapping of the additional state blocks."""
        return MappingProxyType(self._additional)

    def has_additional_state(self, name):
        return name in self._additional

    def get_additional_state(self, name):
        """
        Additional state block by name.

        Raises
        ------
        KeyError
            If no block of that name exists
        """
        try:
            return self._additional[name]
        except KeyError:
            raise KeyError(f"Unknown additional state '{name}'. "
                           f"Available: {list(self._additional)}") from None

    # ========== DERIVED STATES ==========
    def add_additional_state(self, name, values):
        """New state with one more (or a replaced) additional block."""
        blocks = dict(self._additional)
        blocks[name] = values
        return SpacecraftState(self._orbit, self._mass, blocks)

    def with_orbit(self, orbit):
        """New state sharing mass and additional blocks with a different orbit."""
        return SpacecraftState(orbit, self._mass, self._additional)

    @classmethod
    def from_equinoctial(cls, elements, mu, epoch, mass=1000.0, additional_states=None):
        orbit = OrbitalElements(elements, OEType.EQUINOCTIAL, validate=False,
                                mu=mu, epoch=epoch)
        return cls(orbit, mass, additional_states)

    def __repr__(self):
        blocks = ", ".join(f"{k}[{v.size}]" for k, v in self._additional.items())
        return (f"SpacecraftState(t={self.epoch}, mass={self._mass:.2f} kg, "
                f"elements={self._orbit.element_type.value}, blocks=[{blocks}])")
