"""
Force contributions to the mean-element equations of motion.
"""

from .force_model import ForceModel, potential_rates, central_attraction_driver
from .gaussian import GaussianForceModel
from .newtonian import NewtonianAttraction
from .zonal import ZonalHarmonics
from .tesseral import TesseralHarmonics
from .third_body import ThirdBody
from .drag import AtmosphericDrag
from .radiation import SolarRadiationPressure

__all__ = [
    'ForceModel',
    'GaussianForceModel',
    'NewtonianAttraction',
    'ZonalHarmonics',
    'TesseralHarmonics',
    'ThirdBody',
    'AtmosphericDrag',
    'SolarRadiationPressure',
    'potential_rates',
    'central_attraction_driver',
]
