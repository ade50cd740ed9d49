"""
Mesos: Semi-Analytical Mean-Element Orbit Propagation

A Python package for averaged (mean-element) orbit propagation in equinoctial
elements: zonal, tesseral, third-body, drag and radiation pressure force
models, short-period corrections and variational equations.
"""

# Configuration
from .config import config, temp_config

# Core classes
from .orbital_elements import OrbitalElements, OrbitalElements as OE, OEType
from .state import SpacecraftState, PropagationType
from .auxiliary import AuxiliaryElements
from .system import BodyParams, AtmoParams, GravityField, RotatingFrame, ExponentialAtmosphere
from .satellite import Satellite, Satellite as Sat
from .ephemeris import CircularEphemeris, FixedEphemeris
from .attitude import AttitudeProvider, InertialAttitude, VelocityAlignedAttitude
from .parameters import ParameterDriver
from .coefficients import CoefficientCache
from .short_periods import ShortPeriodTerms
from .forces import (ForceModel, NewtonianAttraction, ZonalHarmonics, TesseralHarmonics,
                     ThirdBody, AtmosphericDrag, SolarRadiationPressure)
from .variational import VariationalEquations, VariationalStatus
from .harvester import JacobianHarvester
from .propagator import MeanElementsPropagator
from .trajectory import Trajectory, Trajectory as Traj

# Errors
from .utils import MesosError, ConfigurationError, CacheLimitError, ConvergenceError

# Commonly-used celestial bodies
from .defaults import EARTH, MOON, MARS, SUN

# Standard atmosphere model
from .defaults import EARTH_STD_ATMO

# Package metadata
__version__ = "0.1.0"
__author__ = "Shane Billingsley"

# Define what gets imported with "from mesos import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    # Classes
    "OrbitalElements",
    "OEType",
    "SpacecraftState",
    "PropagationType",
    "AuxiliaryElements",
    "BodyParams",
    "AtmoParams",
    "GravityField",
    "RotatingFrame",
    "ExponentialAtmosphere",
    "Satellite",
    "CircularEphemeris",
    "FixedEphemeris",
    "AttitudeProvider",
    "InertialAttitude",
    "VelocityAlignedAttitude",
    "ParameterDriver",
    "CoefficientCache",
    "ShortPeriodTerms",
    "ForceModel",
    "NewtonianAttraction",
    "ZonalHarmonics",
    "TesseralHarmonics",
    "ThirdBody",
    "AtmosphericDrag",
    "SolarRadiationPressure",
    "VariationalEquations",
    "VariationalStatus",
    "JacobianHarvester",
    "MeanElementsPropagator",
    "Trajectory",
    # Abbreviations
    "OE",
    "Sat",
    "Traj",
    # Errors
    "MesosError",
    "ConfigurationError",
    "CacheLimitError",
    "ConvergenceError",
    # Constants
    "EARTH",
    "MOON",
    "MARS",
    "SUN",
    "EARTH_STD_ATMO",
]
