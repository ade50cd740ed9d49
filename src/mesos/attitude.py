"""
Attitude providers for surface-force models.

A provider returns the spacecraft body axes expressed in the inertial frame
for a given epoch and orbital state.  Position and velocity may be
autograd tensor triples; the returned axes then record the same graph.
"""

from abc import ABC, abstractmethod

from .differentiation import norm, cross, scale


class AttitudeProvider(ABC):
    """Interface of attitude laws used by drag and radiation pressure."""

    @abstractmethod
    def axes(self, epoch, position, velocity):
        """
        Body axes in the inertial frame.

        Returns
        -------
        tuple of three 3-tuples
            Unit vectors of the body x, y and z axes
        """


class InertialAttitude(AttitudeProvider):
    """Body axes aligned with the inertial axes."""

    def axes(self, epoch, position, velocity):
        return (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)

    def __repr__(self):
        return "InertialAttitude()"


class VelocityAlignedAttitude(AttitudeProvider):
    """
    Body x along the velocity, z along the orbit normal.

    The y axis completes the right-handed triad.
    """

    def axes(self, epoch, position, velocity):
        x_axis = scale(1.0 / norm(velocity), velocity)
        h = cross(position, velocity)
        z_axis = scale(1.0 / norm(h), h)
        y_axis = cross(z_axis, x_axis)
        return x_axis, y_axis, z_axis

    def __repr__(self):
        return "VelocityAlignedAttitude()"
