"""
Test suite for Trajectory class.

Tests cover:
- Continuous state access (state_at, evaluate, sample, __call__)
- Raw array output methods
- DataFrame export
- Slicing and time bounds
- String representations
"""

import math

import numpy as np
import pandas as pd
import pytest

from mesos import MeanElementsPropagator, ZonalHarmonics, OrbitalElements, OEType, Trajectory, EARTH
from mesos.defaults import earth_j2_field


@pytest.fixture
def orbit():
    return OrbitalElements(a=7000, e=0.01, i=0.5, omega=0.2, w=0.3, nu=0.0, mu=EARTH.mu)


@pytest.fixture
def kepler_traj(orbit):
    return MeanElementsPropagator(EARTH.mu).propagate_trajectory(orbit, 3000.0)


@pytest.fixture
def j2_traj(orbit):
    prop = MeanElementsPropagator(EARTH.mu, [ZonalHarmonics(earth_j2_field())])
    return prop.propagate_trajectory(orbit, 3000.0)


class TestStateAccess:
    """Test continuous-time state access."""

    def test_state_at_returns_equinoctial(self, kepler_traj):
        state = kepler_traj.state_at(1500.0)
        assert state.element_type == OEType.EQUINOCTIAL
        assert state.epoch == 1500.0

    def test_keplerian_mean_longitude(self, orbit, kepler_traj):
        """Without perturbations only the mean longitude moves, at rate n."""
        start = np.array(orbit.equinoctial_elements)
        n = math.sqrt(EARTH.mu / 7000.0 ** 3)
        raw = kepler_traj.state_at_raw(2000.0)

        assert np.allclose(raw[:5], start[:5], rtol=1e-9, atol=1e-12)
        assert np.isclose(raw[5], start[5] + n * 2000.0, rtol=1e-8)

    def test_endpoints(self, orbit, j2_traj):
        assert np.allclose(j2_traj.state_at_raw(0.0), orbit.equinoctial_elements, atol=1e-12)
        assert np.all(np.isfinite(j2_traj.state_at_raw(3000.0)))

    def test_evaluate_scalar(self, j2_traj):
        state = j2_traj.evaluate(100.0)
        assert isinstance(state, OrbitalElements)

    def test_evaluate_array(self, j2_traj):
        states = j2_traj.evaluate([0.0, 1000.0, 2000.0])
        assert len(states) == 3
        assert [s.epoch for s in states] == [0.0, 1000.0, 2000.0]

    def test_sample(self, j2_traj):
        states = j2_traj.sample(5)
        assert len(states) == 5
        assert states[-1].epoch == 3000.0

    def test_sample_needs_two_points(self, j2_traj):
        with pytest.raises(ValueError, match="at least 2"):
            j2_traj.sample(1)

    def test_callable_syntax(self, j2_traj):
        assert np.array_equal(j2_traj(500.0).elements, j2_traj.state_at(500.0).elements)

    def test_osculating_without_short_periods(self, kepler_traj):
        """A Keplerian propagation has identical mean and osculating elements."""
        mean = kepler_traj.state_at(1000.0)
        osc = kepler_traj.state_at(1000.0, osculating=True)
        assert np.allclose(mean.elements, osc.elements)

    def test_osculating_j2(self, j2_traj):
        """The J2 oscillation of a is a few kilometres."""
        times = np.linspace(0.0, 3000.0, 13)
        mean = j2_traj.evaluate(times)
        osc = j2_traj.evaluate(times, osculating=True)
        offsets = [abs(o.elements[0] - m.elements[0]) for o, m in zip(osc, mean)]
        assert 0.5 < max(offsets) < 20.0


class TestRawArrayMethods:
    """Test raw array outputs."""

    def test_state_at_raw_shape(self, j2_traj):
        assert j2_traj.state_at_raw(10.0).shape == (6,)

    def test_evaluate_raw_scalar(self, j2_traj):
        assert j2_traj.evaluate_raw(10.0).shape == (6,)

    def test_evaluate_raw_array(self, j2_traj):
        times = np.linspace(0.0, 3000.0, 7)
        raw = j2_traj.evaluate_raw(times)
        assert raw.shape == (7, 6)
        assert np.allclose(raw[3], j2_traj.state_at_raw(times[3]))

    def test_get_times(self, j2_traj):
        times = j2_traj.get_times(4)
        assert np.allclose(times, [0.0, 1000.0, 2000.0, 3000.0])


class TestDataFrame:
    """Test DataFrame export."""

    def test_columns(self, j2_traj):
        df = j2_traj.to_dataframe(n_points=11)
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ['time', 'a', 'ex', 'ey', 'hx', 'hy', 'lm']
        assert len(df) == 11

    def test_given_times(self, j2_traj):
        df = j2_traj.to_dataframe(times=[0.0, 1500.0])
        assert df['time'].tolist() == [0.0, 1500.0]
        assert np.isclose(df['lm'].iloc[1], j2_traj.state_at_raw(1500.0)[5])

    def test_osculating_export(self, j2_traj):
        mean = j2_traj.to_dataframe(times=[1000.0])
        osc = j2_traj.to_dataframe(times=[1000.0], osculating=True)
        assert mean['a'].iloc[0] != osc['a'].iloc[0]


class TestBounds:
    """Test time bounds and slicing."""

    def test_outside_bounds(self, j2_traj):
        with pytest.raises(ValueError, match="outside trajectory bounds"):
            j2_traj.state_at(3001.0)
        with pytest.raises(ValueError, match="outside trajectory bounds"):
            j2_traj.evaluate_raw([-1.0, 100.0])

    def test_contains_time(self, j2_traj):
        assert j2_traj.contains_time(0.0)
        assert not j2_traj.contains_time(-0.1)

    def test_slice(self, j2_traj):
        window = j2_traj.slice(1000.0, 2000.0)
        assert isinstance(window, Trajectory)
        assert window.duration == 1000.0
        assert np.array_equal(window.state_at_raw(1500.0), j2_traj.state_at_raw(1500.0))
        with pytest.raises(ValueError):
            window.state_at(2500.0)

    def test_slice_validation(self, j2_traj):
        with pytest.raises(ValueError, match="must be <"):
            j2_traj.slice(2000.0, 1000.0)
        with pytest.raises(ValueError, match="outside trajectory"):
            j2_traj.slice(1000.0, 4000.0)

    def test_backward_propagation(self, orbit):
        traj = MeanElementsPropagator(EARTH.mu).propagate_trajectory(orbit, -600.0)
        assert traj.duration == -600.0
        assert traj.contains_time(-300.0)
        n = math.sqrt(EARTH.mu / 7000.0 ** 3)
        expected = orbit.equinoctial_elements[5] - 300.0 * n
        assert np.isclose(traj.state_at_raw(-300.0)[5], expected, rtol=1e-8)

    def test_zero_duration(self, orbit):
        with pytest.raises(ValueError, match="nonzero propagation duration"):
            MeanElementsPropagator(EARTH.mu).propagate_trajectory(orbit, 0.0)


class TestStringRepresentations:
    """Test string representations."""

    def test_repr(self, j2_traj):
        text = repr(j2_traj)
        assert "mean" in text
        assert "3000.0" in text

    def test_str(self, j2_traj):
        assert "Mean-element trajectory" in str(j2_traj)
