"""Smoke tests to verify package imports work."""

def test_package_imports():
    """Test that all main classes can be imported."""
    from mesos import (OrbitalElements, SpacecraftState, MeanElementsPropagator,
                       Satellite, Trajectory, VariationalEquations, JacobianHarvester)
    assert OrbitalElements is not None
    assert SpacecraftState is not None
    assert MeanElementsPropagator is not None
    assert Satellite is not None
    assert Trajectory is not None
    assert VariationalEquations is not None
    assert JacobianHarvester is not None

def test_force_models_import():
    """Test that every force model is exported."""
    from mesos.forces import (NewtonianAttraction, ZonalHarmonics, TesseralHarmonics,
                              ThirdBody, AtmosphericDrag, SolarRadiationPressure)
    assert NewtonianAttraction is not None
    assert ZonalHarmonics is not None
    assert TesseralHarmonics is not None
    assert ThirdBody is not None
    assert AtmosphericDrag is not None
    assert SolarRadiationPressure is not None

def test_version_exists():
    """Test that version is defined."""
    import mesos
    assert hasattr(mesos, '__version__')
    assert mesos.__version__ == "0.1.0"

def test_can_create_orbital_elements():
    """Test basic OrbitalElements creation."""
    from mesos import OrbitalElements
    oe = OrbitalElements([7000,0.01,0.1,0,0,0],'kep')
    assert oe.a == 7000

def test_can_create_propagator():
    """Test basic propagator creation."""
    from mesos import MeanElementsPropagator, EARTH
    prop = MeanElementsPropagator(EARTH.mu)
    assert prop.mu == 3.986004415e5
    assert len(prop.force_models) == 1

def test_can_create_satellite():
    """Test basic Satellite creation."""
    from mesos import Satellite
    sat = Satellite(mass=1000,
                    drag_coeff=2.2,
                    cross_section=10.0)
    assert sat.mass == 1000
