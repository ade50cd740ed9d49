"""
Test suite for the state containers shared by the force models.

Tests cover:
- AuxiliaryElements derived quantities and geometry
- SpacecraftState immutability and additional state blocks
- ParameterDriver values, spans and selection
- ShortPeriodTerms slots, interpolation and evaluation
"""

import math
from types import SimpleNamespace

import numpy as np
import pytest

from mesos import (OrbitalElements, AuxiliaryElements, SpacecraftState, PropagationType,
                   ParameterDriver, ShortPeriodTerms, ConfigurationError, temp_config, EARTH)
from mesos.differentiation import independent_variables, jacobian, value_of, dot, cross, norm
from mesos.parameters import merge_selected_drivers, DRAG_COEFFICIENT
from mesos.short_periods import series_value


@pytest.fixture
def orbit():
    return OrbitalElements(a=7200.0, ex=0.01, ey=-0.02, hx=0.3, hy=0.15, lm=1.1,
                           mu=EARTH.mu, epoch=60.0)


class TestAuxiliaryElements:
    """Test the auxiliary snapshot."""

    def test_radicals(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        e2 = 0.01 ** 2 + 0.02 ** 2

        assert np.isclose(aux.e2, e2)
        assert np.isclose(aux.B, math.sqrt(1 - e2))
        assert np.isclose(aux.chi, 1 / aux.B)
        assert np.isclose(aux.A, math.sqrt(EARTH.mu * 7200.0))
        assert np.isclose(aux.C, 1 + 0.3 ** 2 + 0.15 ** 2)
        assert np.isclose(aux.mean_motion, math.sqrt(EARTH.mu / 7200.0 ** 3))
        assert aux.epoch == 60.0

    def test_labels(self, orbit):
        """q carries hx and p carries hy."""
        aux = AuxiliaryElements.from_orbit(orbit)
        assert aux.q == 0.3
        assert aux.p == 0.15
        assert aux.k == 0.01
        assert aux.h == -0.02

    def test_triad_orthonormal(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        matrix = np.array([aux.f, aux.g, aux.w])
        assert np.allclose(matrix @ matrix.T, np.eye(3))
        assert np.allclose(cross(aux.f, aux.g), aux.w)

    def test_direction_cosines(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        assert aux.alpha == aux.f[2]
        assert aux.beta == aux.g[2]
        assert np.isclose(aux.alpha ** 2 + aux.beta ** 2 + aux.gamma ** 2, 1.0)

    def test_inclination_from_gamma(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        inclination = 2 * math.atan(math.hypot(0.3, 0.15))
        assert np.isclose(aux.gamma, math.cos(inclination))

    def test_orbit_point_matches_cartesian(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        point = aux.orbit_point(aux.true_longitude)
        cart = orbit.to_cartesian().elements

        assert np.allclose(point["position"], cart[:3], rtol=1e-10)
        assert np.allclose(point["velocity"], cart[3:], rtol=1e-10)
        assert np.isclose(point["roa"], norm(cart[:3]) / 7200.0)

    def test_mean_longitude_round_trip(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        assert np.isclose(aux.mean_longitude_at(aux.true_longitude), 1.1)

    def test_angular_momentum_along_w(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        cart = orbit.to_cartesian().elements
        h = np.cross(cart[:3], cart[3:])
        assert np.allclose(h / np.linalg.norm(h), aux.w)
        assert np.isclose(dot(aux.w, aux.f), 0.0)

    def test_keplerian_period(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        assert np.isclose(aux.keplerian_period, orbit.orbital_period())

    def test_element_values(self, orbit):
        aux = AuxiliaryElements.from_orbit(orbit)
        assert np.allclose(aux.element_values, orbit.equinoctial_elements)

    def test_gradient_elements(self, orbit):
        """Radicals carry partial derivatives of the elements."""
        elements = independent_variables(list(orbit.equinoctial_elements))
        aux = AuxiliaryElements(elements, EARTH.mu)
        dB, dn = jacobian([aux.B, aux.mean_motion], elements)

        assert np.isclose(dB[1], -0.01 / value_of(aux.B))
        assert np.isclose(dn[0], -1.5 * value_of(aux.mean_motion) / 7200.0)

    def test_eccentric_longitude_gradient(self, orbit):
        elements = independent_variables(list(orbit.equinoctial_elements))
        F = AuxiliaryElements(elements, EARTH.mu).eccentric_longitude
        eps = 1e-7
        shifted = list(orbit.equinoctial_elements)
        shifted[5] += eps
        F_up = AuxiliaryElements(shifted, EARTH.mu).eccentric_longitude
        assert np.isclose(jacobian([F], elements)[0, 5], (F_up - value_of(F)) / eps, rtol=1e-5)

    def test_validation(self):
        with pytest.raises(ValueError, match="Retrograde factor"):
            AuxiliaryElements([7000.0, 0, 0, 0, 0, 0], EARTH.mu, retrograde=0)
        with pytest.raises(ValueError, match="Expected 6"):
            AuxiliaryElements([7000.0, 0, 0], EARTH.mu)
        with pytest.raises(TypeError, match="OrbitalElements"):
            AuxiliaryElements.from_orbit([7000.0, 0, 0, 0, 0, 0])


class TestSpacecraftState:
    """Test the immutable spacecraft state."""

    def test_construction(self, orbit):
        state = SpacecraftState(orbit, mass=500.0)
        assert state.orbit is orbit
        assert state.epoch == 60.0
        assert state.mu == EARTH.mu
        assert state.mass == 500.0
        assert len(state.additional_states) == 0

    def test_validation(self, orbit):
        with pytest.raises(ValueError, match="Mass must be positive"):
            SpacecraftState(orbit, mass=0.0)
        with pytest.raises(TypeError, match="OrbitalElements"):
            SpacecraftState(np.zeros(6))

    def test_add_block_returns_new_state(self, orbit):
        state = SpacecraftState(orbit)
        extended = state.add_additional_state("stm", np.eye(6))

        assert not state.has_additional_state("stm")
        assert extended.has_additional_state("stm")
        assert extended.get_additional_state("stm").shape == (36,)

    def test_blocks_read_only(self, orbit):
        state = SpacecraftState(orbit, additional_states={"mass flow": [1.0, 2.0]})
        with pytest.raises(ValueError):
            state.get_additional_state("mass flow")[0] = 5.0
        with pytest.raises(TypeError):
            state.additional_states["other"] = np.zeros(2)

    def test_missing_block(self, orbit):
        with pytest.raises(KeyError, match="Unknown additional state"):
            SpacecraftState(orbit).get_additional_state("stm")

    def test_with_orbit_keeps_blocks(self, orbit):
        state = SpacecraftState(orbit, mass=750.0, additional_states={"x": [1.0]})
        moved = state.with_orbit(orbit.with_elements(orbit.elements, epoch=120.0))
        assert moved.epoch == 120.0
        assert moved.mass == 750.0
        assert np.array_equal(moved.get_additional_state("x"), [1.0])

    def test_from_equinoctial(self):
        state = SpacecraftState.from_equinoctial([7000.0, 0.0, 0.0, 0.0, 0.0, 0.5],
                                                 EARTH.mu, 30.0)
        assert state.epoch == 30.0
        assert np.allclose(state.equinoctial_elements, [7000.0, 0.0, 0.0, 0.0, 0.0, 0.5])

    def test_propagation_type_parse(self):
        assert PropagationType.parse("MEAN") is PropagationType.MEAN
        assert PropagationType.parse(PropagationType.OSCULATING) is PropagationType.OSCULATING
        with pytest.raises(ValueError, match="Unknown propagation type"):
            PropagationType.parse("instantaneous")


class TestParameterDriver:
    """Test parameter values, spans and selection."""

    def test_defaults(self):
        driver = ParameterDriver(DRAG_COEFFICIENT, 2.2, 0.01, 0.0)
        assert driver.value == 2.2
        assert driver.reference_value == 2.2
        assert not driver.selected
        assert driver.normalized_value == 0.0

    def test_normalized_value(self):
        driver = ParameterDriver("x", 1.0, 0.5)
        driver.value = 2.0
        assert driver.normalized_value == 2.0

    def test_spans(self):
        driver = ParameterDriver("x", 1.0, 0.1)
        driver.add_span(100.0, 2.0)
        driver.add_span(50.0, 3.0)

        assert driver.value_at(0.0) == 1.0
        assert driver.value_at(50.0) == 3.0
        assert driver.value_at(99.0) == 3.0
        assert driver.value_at(1e6) == 2.0
        assert driver.value_at() == 1.0
        assert driver.spans == [(-np.inf, 1.0), (50.0, 3.0), (100.0, 2.0)]

    def test_span_replaced(self):
        driver = ParameterDriver("x", 1.0, 0.1)
        driver.add_span(10.0, 2.0)
        driver.add_span(10.0, 4.0)
        assert len(driver.spans) == 2
        assert driver.value_at(10.0) == 4.0

    def test_out_of_range_strict(self):
        driver = ParameterDriver("x", 1.0, 0.1, 0.0, 2.0)
        with pytest.raises(ValueError, match="outside"):
            driver.value = 3.0

    def test_out_of_range_lenient_clips(self):
        driver = ParameterDriver("x", 1.0, 0.1, 0.0, 2.0)
        with temp_config(STRICT_VALIDATION=False):
            with pytest.warns(UserWarning):
                driver.value = 3.0
        assert driver.value == 2.0

    def test_invalid_construction(self):
        with pytest.raises(ValueError, match="scale must be positive"):
            ParameterDriver("x", 1.0, 0.0)
        with pytest.raises(ValueError, match="Invalid range"):
            ParameterDriver("x", 1.0, 0.1, 2.0, 1.0)

    def test_merge_selected(self):
        mu_a = ParameterDriver("mu", 1.0, 0.1)
        mu_b = ParameterDriver("mu", 1.0, 0.1)
        cd = ParameterDriver("cd", 2.0, 0.1)
        other = ParameterDriver("cr", 1.5, 0.1)
        for driver in (mu_a, mu_b, cd):
            driver.selected = True
        models = [SimpleNamespace(get_parameters_drivers=lambda: [cd, mu_a]),
                  SimpleNamespace(get_parameters_drivers=lambda: [other, mu_b])]

        assert merge_selected_drivers(models) == ["cd", "mu"]


class TestShortPeriodTerms:
    """Test slot storage and evaluation of short-period corrections."""

    @staticmethod
    def amplitudes(values):
        """Amplitude array of one frequency where every entry equals the given value."""
        return np.array([np.full((2, 6, 1), v) for v in values])

    def test_angle_function_required(self):
        with pytest.raises(ConfigurationError, match="no angle function"):
            ShortPeriodTerms("tesseral", "osculating", [(1, 2)])

    def test_interpolation_and_clamping(self):
        terms = ShortPeriodTerms("zonal", "osculating", [(1, 0)])
        terms.add_slot([0.0, 10.0], self.amplitudes([1.0, 3.0]))

        assert np.allclose(terms.get_amplitudes(5.0), 2.0)
        assert np.allclose(terms.get_amplitudes(-5.0), 1.0)
        assert np.allclose(terms.get_amplitudes(20.0), 3.0)

    def test_slot_selection(self):
        terms = ShortPeriodTerms("zonal", "osculating", [(1, 0)])
        terms.add_slot([100.0, 110.0], self.amplitudes([2.0, 2.0]))
        terms.add_slot([0.0, 10.0], self.amplitudes([1.0, 1.0]))

        assert terms.slot_count == 2
        assert terms.slot_spans == [(0.0, 10.0), (100.0, 110.0)]
        assert np.allclose(terms.get_amplitudes(50.0), 1.0)
        assert np.allclose(terms.get_amplitudes(105.0), 2.0)
        assert np.allclose(terms.get_amplitudes(-10.0), 1.0)

    def test_slot_unsorted_epochs(self):
        terms = ShortPeriodTerms("zonal", "osculating", [(1, 0)])
        terms.add_slot([10.0, 0.0], self.amplitudes([3.0, 1.0]))
        assert np.allclose(terms.get_amplitudes(2.5), 1.5)

    def test_slot_shape_checked(self):
        terms = ShortPeriodTerms("zonal", "osculating", [(1, 0), (2, 0)])
        with pytest.raises(ValueError, match="does not match"):
            terms.add_slot([0.0], self.amplitudes([1.0]))
        with pytest.raises(ValueError, match="non-empty"):
            terms.add_slot([], np.zeros((0, 2, 6, 2)))

    def test_value(self):
        terms = ShortPeriodTerms("zonal", "osculating", [(1, 0)])
        amplitudes = np.zeros((1, 2, 6, 1))
        amplitudes[0, 0, 0, 0] = 2.0
        amplitudes[0, 1, 5, 0] = 3.0
        terms.add_slot([0.0], amplitudes)

        eta = terms.value(0.0, [7000.0, 0.0, 0.0, 0.0, 0.0, 0.3])

        assert np.isclose(eta[0], 2.0 * math.cos(0.3))
        assert np.isclose(eta[5], 3.0 * math.sin(0.3))
        assert np.allclose(eta[1:5], 0.0)

    def test_value_with_rotation_angle(self):
        terms = ShortPeriodTerms("tesseral", "osculating", [(2, 1)],
                                 angle_function=lambda t: 0.1 * t)
        amplitudes = np.zeros((1, 2, 6, 1))
        amplitudes[0, 0, 1, 0] = 1.0
        terms.add_slot([0.0], amplitudes)

        eta = terms.value(4.0, [7000.0, 0.0, 0.0, 0.0, 0.0, 0.5])

        assert np.isclose(eta[1], math.cos(2 * 0.5 - 0.4))

    def test_mean_mode_not_evaluable(self):
        terms = ShortPeriodTerms("zonal", PropagationType.MEAN, [(1, 0)])
        with pytest.raises(ConfigurationError, match="mean propagation"):
            terms.get_amplitudes(0.0)

    def test_empty_terms(self):
        terms = ShortPeriodTerms("zonal", "osculating", [(1, 0)])
        with pytest.raises(ConfigurationError, match="no coefficients"):
            terms.value(0.0, np.zeros(6))

    def test_slot_arrays_read_only(self):
        terms = ShortPeriodTerms("zonal", "osculating", [(1, 0)])
        terms.add_slot([0.0, 1.0], self.amplitudes([1.0, 2.0]))
        with pytest.raises(ValueError):
            terms.get_amplitudes(0.0)[0, 0, 0] = 5.0

    def test_series_value(self):
        cos_amp = [[1.0, 0.5]] + [[0.0, 0.0]] * 5
        sin_amp = [[0.0, 0.25]] + [[0.0, 0.0]] * 5
        eta = series_value([(1, 0), (2, 0)], cos_amp, sin_amp, 0.2)
        expected = math.cos(0.2) + 0.5 * math.cos(0.4) + 0.25 * math.sin(0.4)
        assert np.isclose(eta[0], expected)
