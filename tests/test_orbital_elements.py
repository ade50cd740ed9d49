"""
Test suite for OrbitalElements class conversion functions.

Tests include:
1. Roundtrip conversions (kep->cart->kep, equi->cart->equi, etc.)
2. Independent checks of the equinoctial definitions
3. Longitude helpers on floats and autograd tensors
4. Edge cases, validation and special methods
"""

import pytest
import numpy as np
import pandas as pd

from mesos import OrbitalElements, OEType
from mesos.differentiation import independent_variables, jacobian, value_of
from mesos.orbital_elements import (true_to_mean_longitude, mean_to_true_longitude,
                                    mean_to_eccentric_longitude, true_to_eccentric_longitude,
                                    equinoctial_frame)


# =============================================================================
# Test Configuration
# =============================================================================

RTOL = 1e-12  # Relative tolerance (~mm at LEO)
ATOL = 1e-14  # Absolute tolerance

ANGLE_ATOL = 1e-10

MU_EARTH = 398600.435507  # km³/s²

# a, e, i, RAAN, w, nu
KEPLERIAN_CASES = [
    [7000.0, 0.001, np.deg2rad(28.5), np.deg2rad(10.0), np.deg2rad(20.0), np.deg2rad(30.0)],
    [8500.0, 0.01, np.deg2rad(60.0), np.deg2rad(45.0), np.deg2rad(300.0), np.deg2rad(200.0)],
    [26553.0, 0.737, np.deg2rad(63.4), np.deg2rad(100.0), np.deg2rad(270.0), np.deg2rad(5.0)],
    [42164.0, 0.0002, np.deg2rad(0.05), np.deg2rad(75.0), np.deg2rad(15.0), np.deg2rad(90.0)],
    [6878.0, 0.05, np.deg2rad(97.4), np.deg2rad(140.0), np.deg2rad(95.0), np.deg2rad(350.0)],
]


def wrap(angle):
    """Wrap an angle difference to (-π, π]."""
    return np.arctan2(np.sin(angle), np.cos(angle))


# =============================================================================
# Test Roundtrip Conversions
# =============================================================================

class TestRoundtripConversions:
    """Test that conversions are self-consistent (A->B->A should equal A)."""

    @pytest.mark.parametrize("kep", KEPLERIAN_CASES)
    def test_kep_to_cart_to_kep(self, kep):
        """Keplerian -> Cartesian -> Keplerian roundtrip."""
        oe_kep = OrbitalElements(kep, OEType.KEPLERIAN, validate=False, mu=MU_EARTH)
        back = oe_kep.to_cartesian().to_keplerian()

        assert np.isclose(back.elements[0], kep[0], rtol=1e-10)
        assert np.isclose(back.elements[1], kep[1], rtol=1e-8, atol=1e-12)
        assert np.isclose(back.elements[2], kep[2], atol=ANGLE_ATOL)
        # ω + ν is well defined even for nearly circular orbits
        assert np.isclose(wrap(back.elements[4] + back.elements[5] - kep[4] - kep[5]), 0.0,
                          atol=1e-8)

    @pytest.mark.parametrize("kep", KEPLERIAN_CASES)
    def test_equi_to_cart_to_equi(self, kep):
        """Equinoctial -> Cartesian -> Equinoctial roundtrip."""
        equi = OrbitalElements(kep, OEType.KEPLERIAN, validate=False,
                               mu=MU_EARTH).to_equinoctial()
        back = equi.to_cartesian().to_equinoctial()

        assert np.allclose(back.elements[:5], equi.elements[:5], rtol=1e-10, atol=1e-12)
        assert np.isclose(wrap(back.elements[5] - equi.elements[5]), 0.0, atol=ANGLE_ATOL)

    @pytest.mark.parametrize("kep", KEPLERIAN_CASES)
    def test_kep_to_equi_and_cart_agree(self, kep):
        """Both paths to Cartesian give the same position and velocity."""
        oe_kep = OrbitalElements(kep, OEType.KEPLERIAN, validate=False, mu=MU_EARTH)
        direct = oe_kep.to_cartesian().elements
        via_equi = oe_kep.to_equinoctial().to_cartesian().elements

        assert np.allclose(direct[:3], via_equi[:3], rtol=1e-10, atol=1e-7)
        assert np.allclose(direct[3:], via_equi[3:], rtol=1e-10, atol=1e-10)

    def test_same_type_conversion_copies(self):
        """Converting to the current type returns an equal copy."""
        oe = OrbitalElements(KEPLERIAN_CASES[0], 'kep', mu=MU_EARTH, epoch=12.0)
        same = oe.convert_to('kep')

        assert same == oe
        assert same is not oe

    def test_conversion_keeps_mu_and_epoch(self):
        """mu and epoch travel through conversions."""
        oe = OrbitalElements(KEPLERIAN_CASES[1], 'kep', mu=MU_EARTH, epoch=3600.0)
        cart = oe.to_cartesian()

        assert cart.mu == MU_EARTH
        assert cart.epoch == 3600.0


# =============================================================================
# Test Equinoctial Definitions
# =============================================================================

class TestEquinoctialDefinitions:
    """Check equinoctial elements against their defining relations."""

    def test_keplerian_to_equinoctial_definitions(self):
        """ex + i ey = e exp(i(ω+Ω)), hx + i hy = tan(i/2) exp(iΩ)."""
        a, e, i, raan, w, nu = KEPLERIAN_CASES[1]
        equi = OrbitalElements(KEPLERIAN_CASES[1], 'kep', mu=MU_EARTH).to_equinoctial()

        assert np.isclose(equi.elements[1], e * np.cos(w + raan))
        assert np.isclose(equi.elements[2], e * np.sin(w + raan))
        assert np.isclose(equi.elements[3], np.tan(i / 2) * np.cos(raan))
        assert np.isclose(equi.elements[4], np.tan(i / 2) * np.sin(raan))

    def test_mean_longitude_for_circular_orbit(self):
        """For e = 0 the mean longitude is Ω + ω + ν."""
        kep = [7000.0, 0.0, 0.3, 0.4, 0.5, 0.6]
        equi = OrbitalElements(kep, 'kep', validate=False, mu=MU_EARTH).to_equinoctial()

        assert np.isclose(equi.elements[5], 1.5)

    def test_equinoctial_frame_orthonormal(self):
        """u and v are orthonormal and u × v is the orbit normal."""
        hx, hy = 0.3, -0.2
        u, v = equinoctial_frame(hx, hy)

        assert np.isclose(np.dot(u, u), 1.0)
        assert np.isclose(np.dot(v, v), 1.0)
        assert np.isclose(np.dot(u, v), 0.0)
        oe = OrbitalElements([7000.0, 0.01, 0.02, hx, hy, 1.0], 'equi', mu=MU_EARTH)
        h = np.cross(oe.position, oe.velocity)
        assert np.allclose(np.cross(u, v), h / np.linalg.norm(h))

    def test_energy_matches_semi_major_axis(self):
        """Cartesian state from equinoctial elements has energy -μ/2a."""
        oe = OrbitalElements([12000.0, 0.1, -0.2, 0.1, 0.05, 2.0], 'equi', mu=MU_EARTH)
        r = np.linalg.norm(oe.position)
        v2 = np.dot(oe.velocity, oe.velocity)

        assert np.isclose(v2 / 2 - MU_EARTH / r, -MU_EARTH / (2 * 12000.0), rtol=1e-12)


# =============================================================================
# Test Longitude Helpers
# =============================================================================

class TestLongitudes:
    """Test the anomaly and longitude helpers."""

    @pytest.mark.parametrize("lm", [0.0, 0.5, 2.0, -1.0, 3.1])
    def test_mean_true_roundtrip(self, lm):
        """λ -> L -> λ returns the input."""
        ex, ey = 0.1, -0.05
        L = mean_to_true_longitude(lm, ex, ey)

        assert np.isclose(wrap(true_to_mean_longitude(L, ex, ey) - lm), 0.0, atol=1e-12)

    def test_eccentric_longitude_satisfies_kepler(self):
        """F - ex sin F + ey cos F = λ."""
        ex, ey, lm = 0.3, 0.2, 1.2
        F = mean_to_eccentric_longitude(lm, ex, ey)

        assert np.isclose(F - ex * np.sin(F) + ey * np.cos(F), lm, atol=1e-14)

    def test_circular_longitudes_coincide(self):
        """All longitudes are equal on a circular orbit."""
        assert np.isclose(mean_to_true_longitude(0.7, 0.0, 0.0), 0.7)
        assert np.isclose(true_to_eccentric_longitude(0.7, 0.0, 0.0), 0.7)

    def test_gradient_derivative_matches_finite_difference(self):
        """Longitude helpers differentiate through tensor inputs."""
        ex, ey, L = 0.1, 0.05, 0.8
        variables = independent_variables([L, ex, ey])
        grad = true_to_mean_longitude(*variables)
        h = 1e-6
        fd = [
            (true_to_mean_longitude(L + h, ex, ey) - true_to_mean_longitude(L - h, ex, ey)) / (2 * h),
            (true_to_mean_longitude(L, ex + h, ey) - true_to_mean_longitude(L, ex - h, ey)) / (2 * h),
            (true_to_mean_longitude(L, ex, ey + h) - true_to_mean_longitude(L, ex, ey - h)) / (2 * h),
        ]

        assert np.isclose(value_of(grad), true_to_mean_longitude(L, ex, ey))
        assert np.allclose(jacobian([grad], variables)[0], fd, rtol=1e-7, atol=1e-9)


# =============================================================================
# Test Edge Cases
# =============================================================================

class TestEdgeCases:
    """Test special cases that might cause numerical issues."""

    def test_circular_equatorial(self):
        """Circular equatorial orbit (e=0, i=0) has angle singularities."""
        kep = np.array([7000.0, 0.0, 0.0, 0.0, 0.0, 0.0])

        oe = OrbitalElements(kep, OEType.KEPLERIAN, validate=False, mu=MU_EARTH)
        equi = oe.to_equinoctial()
        kep_back = oe.to_cartesian().to_keplerian()

        assert np.allclose(equi.elements, [7000.0, 0, 0, 0, 0, 0], atol=ATOL)
        assert np.allclose(kep_back.elements[0], 7000.0, rtol=RTOL)
        assert np.allclose(kep_back.elements[1], 0.0, atol=1e-12)

    def test_circular_inclined(self):
        """Circular inclined orbit (e=0, i≠0) - arg of periapsis undefined."""
        kep = np.array([8500.0, 0.0, np.deg2rad(60),
                       np.deg2rad(45), 0.0, np.deg2rad(30)])

        oe = OrbitalElements(kep, OEType.KEPLERIAN, validate=False, mu=MU_EARTH)
        equi_back = oe.to_cartesian().to_equinoctial()

        assert np.allclose(equi_back.elements[0], 8500.0, rtol=RTOL)
        assert np.allclose(equi_back.elements[1:3], 0.0, atol=1e-12)
        assert np.isclose(equi_back.e, 0.0, atol=1e-12)

    def test_highly_eccentric(self):
        """Molniya-type highly eccentric orbit."""
        kep = np.array([26553.0, 0.737, np.deg2rad(63.4),
                       np.deg2rad(0), np.deg2rad(0), np.deg2rad(0)])

        oe = OrbitalElements(kep, OEType.KEPLERIAN, validate=False, mu=MU_EARTH)
        kep_from_equi = oe.to_equinoctial().to_keplerian()

        assert np.allclose(kep_from_equi.elements[:3], kep[:3], rtol=RTOL)
        assert np.isclose(oe.perigee_radius(), 26553.0 * (1 - 0.737))


# =============================================================================
# Test Validation
# =============================================================================

class TestValidation:
    """Test element validation."""

    def test_hyperbolic_keplerian_rejected(self):
        """Semi-analytical theory works on closed orbits only."""
        with pytest.raises(ValueError, match="Eccentricity"):
            OrbitalElements([7000.0, 1.2, 0.1, 0, 0, 0], 'kep')

    def test_equinoctial_eccentricity_rejected(self):
        """Eccentricity vector outside the unit circle is rejected."""
        with pytest.raises(ValueError, match="unit circle"):
            OrbitalElements([7000.0, 0.8, 0.8, 0, 0, 0], 'equi')

    def test_negative_semi_major_axis_rejected(self):
        """Equinoctial a must be positive."""
        with pytest.raises(ValueError, match="Semi-major axis"):
            OrbitalElements(a=-7000.0, ex=0.0, ey=0.0, hx=0.0, hy=0.0, lm=0.0)

    def test_open_cartesian_rejected(self):
        """A Cartesian state above escape speed is rejected."""
        with pytest.raises(ValueError, match="closed orbit"):
            OrbitalElements([7000.0, 0, 0, 0, 12.0, 0], 'cart', mu=MU_EARTH)

    def test_nan_rejected(self):
        """NaN elements are rejected."""
        with pytest.raises(ValueError, match="NaN"):
            OrbitalElements([7000.0, np.nan, 0, 0, 0, 0], 'equi')

    def test_unknown_type_string(self):
        """Unknown element type strings raise ValueError."""
        with pytest.raises(ValueError, match="Unknown element type"):
            OrbitalElements([7000.0, 0, 0, 0, 0, 0], 'cr3bp')

    def test_missing_parameters(self):
        """Incomplete named parameters cannot be typed."""
        with pytest.raises(ValueError, match="Could not determine element type"):
            OrbitalElements(a=7000.0, ex=0.0)

    def test_named_equinoctial_construction(self):
        """Named equinoctial parameters build an equinoctial set."""
        oe = OrbitalElements(a=7000.0, ex=0.001, ey=0.0, hx=0.1, hy=0.0, lm=0.0,
                             epoch=60.0)

        assert oe.element_type == OEType.EQUINOCTIAL
        assert oe.epoch == 60.0
        assert np.isclose(oe.e, 0.001)


# =============================================================================
# Test Utilities
# =============================================================================

class TestUtilities:
    """Test utility functions and class methods."""

    @pytest.fixture
    def orbits(self):
        return [OrbitalElements(k, OEType.KEPLERIAN, validate=False, mu=MU_EARTH, epoch=60.0 * n)
                for n, k in enumerate(KEPLERIAN_CASES[:3])]

    def test_batch_conversion(self, orbits):
        """Batch conversion of multiple orbits."""
        equis = OrbitalElements.Batch.to_equinoctial(orbits)

        assert len(equis) == len(orbits)
        assert all(o.element_type == OEType.EQUINOCTIAL for o in equis)
        assert np.allclose(OrbitalElements.Batch.epochs(equis), [0.0, 60.0, 120.0])

    def test_numpy_roundtrip(self, orbits):
        """to_numpy and from_numpy preserve the elements and epochs."""
        array = OrbitalElements.Batch.to_numpy(orbits)
        rebuilt = OrbitalElements.from_numpy(array, 'kep', validate=False, mu=MU_EARTH,
                                             epochs=[0.0, 60.0, 120.0])

        assert array.shape == (3, 6)
        assert rebuilt == orbits

    def test_dataframe_uses_epochs_as_index(self, orbits):
        """DataFrame export indexes rows by epoch and import reads them back."""
        df = OrbitalElements.Batch.to_dataframe(OrbitalElements.Batch.to_equinoctial(orbits))

        assert list(df.columns) == ['a', 'ex', 'ey', 'hx', 'hy', 'lm']
        assert list(df.index) == [0.0, 60.0, 120.0]
        rebuilt = OrbitalElements.from_dataframe(df, mu=MU_EARTH)
        assert rebuilt[2].element_type == OEType.EQUINOCTIAL
        assert rebuilt[2].epoch == 120.0

    def test_empty_dataframe(self):
        """An empty list gives an empty DataFrame."""
        assert isinstance(OrbitalElements.Batch.to_dataframe([]), pd.DataFrame)

    def test_mixed_types_rejected(self, orbits):
        """Batch export requires a single element type."""
        with pytest.raises(ValueError, match="same element type"):
            OrbitalElements.Batch.to_numpy([orbits[0], orbits[1].to_cartesian()])

    def test_orbital_period_consistency(self, orbits):
        """Period and mean motion agree across representations."""
        kep = orbits[0]
        for other in (kep.to_cartesian(), kep.to_equinoctial()):
            assert np.isclose(other.orbital_period(), kep.orbital_period(), rtol=1e-10)
        assert np.isclose(kep.mean_motion() * kep.orbital_period(), 2 * np.pi)

    def test_specific_angular_momentum_consistency(self, orbits):
        """h computed from elements matches |r × v|."""
        molniya = orbits[2]
        assert np.isclose(molniya.specific_angular_momentum(),
                          molniya.to_cartesian().specific_angular_momentum(), rtol=1e-10)

    def test_with_elements_keeps_mu(self, orbits):
        """with_elements builds a new orbit with the same mu."""
        moved = orbits[1].with_elements([9000.0, 0.0, 0.1, 0.0, 0.0, 0.0], epoch=5.0)

        assert moved.mu == MU_EARTH
        assert moved.epoch == 5.0
        assert moved.element_type == OEType.KEPLERIAN


# =============================================================================
# Test Special Methods
# =============================================================================

class TestSpecialMethods:
    """Tests for special methods (__eq__, __hash__, __getitem__, __iter__, etc.)."""

    @pytest.fixture
    def orbit_a(self):
        return OrbitalElements([7000.0, 0.01, np.deg2rad(28.5), 0.0, 0.0, 0.0],
                               OEType.KEPLERIAN, validate=False, mu=MU_EARTH)

    @pytest.fixture
    def orbit_b(self):
        return OrbitalElements([7000.0, 0.01, np.deg2rad(28.5), 0.0, 0.0, 0.0],
                               OEType.KEPLERIAN, validate=False, mu=MU_EARTH)

    def test_eq_identical_orbits(self, orbit_a, orbit_b):
        assert orbit_a == orbit_b
        assert hash(orbit_a) == hash(orbit_b)

    def test_eq_different_epochs(self, orbit_a):
        """Same elements at different epochs are different orbits."""
        later = OrbitalElements(orbit_a.elements, 'kep', validate=False, mu=MU_EARTH, epoch=1.0)
        assert orbit_a != later

    def test_eq_nearly_equal_outside_tolerance(self, orbit_a):
        other = OrbitalElements([7000.1, 0.01, np.deg2rad(28.5), 0.0, 0.0, 0.0],
                                OEType.KEPLERIAN, validate=False, mu=MU_EARTH)
        assert orbit_a != other

    def test_eq_with_non_orbital_elements(self, orbit_a):
        assert orbit_a != "not an orbit"
        assert orbit_a != None

    def test_hash_usable_in_set(self, orbit_a, orbit_b):
        assert len({orbit_a, orbit_b}) == 1

    def test_elements_immutable(self, orbit_a):
        with pytest.raises(ValueError):
            orbit_a.elements[0] = 8000.0

    def test_indexing_and_unpacking(self, orbit_a):
        a, e, i, raan, w, nu = orbit_a
        assert orbit_a[0] == a == 7000.0
        assert len(orbit_a) == 6
        assert np.allclose(orbit_a[-2:], [0.0, 0.0])

    @pytest.mark.parametrize("kind", ['kep', 'cart', 'equi'])
    def test_str_and_repr(self, orbit_a, kind):
        oe = orbit_a.convert_to(kind)
        assert "Elements" in str(oe)
        assert "OrbitalElements" in repr(oe)
