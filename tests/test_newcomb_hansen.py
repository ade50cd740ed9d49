"""
Test suite for modified Newcomb operators and Hansen kernels.

Tests cover:
- Polynomial list algebra and the Newcomb seeds
- Zonal kernels against closed forms
- Third-body kernels: linear and recursive variants, table growth
- Tesseral kernels against the zonal kernels for j = 0
"""

import numpy as np
import pytest
from numpy.polynomial import Polynomial

from mesos import ConfigurationError, CacheLimitError, temp_config
from mesos.newcomb import (NewcombOperators, multiply_polynomial_lists, sum_polynomial_lists,
                           shift_polynomial_list)
from mesos.hansen import (HansenKernels, HansenZonal, HansenTesseral, HansenThirdBodyLinear,
                          HansenThirdBodyRecursive, ThirdBodyPolynomialTable, hansen_third_body,
                          third_body_root_index, horner)


def chi_of(e):
    return 1.0 / np.sqrt(1.0 - e * e)


class TestPolynomialLists:
    """Test the polynomial-list algebra in powers of n."""

    def test_multiply(self):
        """(1 + s n)(2 + n) = 2 + (1 + 2s) n + s n²."""
        a = [Polynomial([1.0]), Polynomial([0.0, 1.0])]
        b = [Polynomial([2.0]), Polynomial([1.0])]
        product = multiply_polynomial_lists(a, b)

        assert len(product) == 3
        assert np.allclose(product[0].coef, [2.0])
        assert np.allclose(product[1].coef, [1.0, 2.0])
        assert np.allclose(product[2].coef, [0.0, 1.0])

    def test_product_and_sum_buckets(self):
        """(1 + 2x + x²) + (2 - 3x) n combined with x + n, bucket by bucket."""
        a = [Polynomial([1.0, 2.0, 1.0]), Polynomial([2.0, -3.0])]
        b = [Polynomial([0.0, 1.0]), Polynomial([1.0])]

        product = multiply_polynomial_lists(a, b)
        assert [list(p.coef) for p in product] == [[0.0, 1.0, 2.0, 1.0],
                                                   [1.0, 4.0, -2.0],
                                                   [2.0, -3.0]]

        total = sum_polynomial_lists(a, b)
        assert [list(p.coef) for p in total] == [[1.0, 3.0, 1.0], [3.0, -3.0]]

    def test_sum_pads_shorter(self):
        total = sum_polynomial_lists([Polynomial([1.0])],
                                     [Polynomial([0.0, 1.0]), Polynomial([3.0])])
        assert len(total) == 2
        assert np.allclose(total[0].coef, [1.0, 1.0])
        assert np.allclose(total[1].coef, [3.0])

    def test_sum_trims_cancellation(self):
        total = sum_polynomial_lists([Polynomial([1.0, 2.0])], [Polynomial([-1.0, -2.0])])
        assert np.allclose(total[0].coef, [0.0])

    def test_shift(self):
        """P(s) = s shifted by 2 gives s + 2."""
        shifted = shift_polynomial_list([Polynomial([0.0, 1.0])], 2)
        assert np.allclose(shifted[0].coef, [2.0, 1.0])


class TestNewcombOperators:
    """Test the memoized Newcomb operator generator."""

    @pytest.mark.parametrize("n, s", [(-3, 0), (-5, 2), (4, -1)])
    def test_seeds(self, n, s):
        newcomb = NewcombOperators()
        assert newcomb.get_value(0, 0, n, s) == 1.0
        assert np.isclose(newcomb.get_value(1, 0, n, s), s - n / 2.0)
        assert np.isclose(newcomb.get_value(0, 1, n, s), -s - n / 2.0)

    def test_circular_average(self):
        """Y^{-3,0}_{1,1} vanishes since K^{-3,0} = χ³ exactly."""
        assert NewcombOperators().get_value(1, 1, -3, 0) == 0.0

    @pytest.mark.parametrize("rho, sigma, n, s", [(2, 1, -4, 1), (3, 1, -5, 2), (2, 3, -6, 0)])
    def test_index_symmetry(self, rho, sigma, n, s):
        """Y^{n,s}_{ρ,σ} = Y^{n,-s}_{σ,ρ}."""
        newcomb = NewcombOperators()
        assert np.isclose(newcomb.get_value(rho, sigma, n, s),
                          newcomb.get_value(sigma, rho, n, -s))

    def test_value_cache_bounded(self):
        with temp_config(MEMO_CACHE_SIZE=4):
            newcomb = NewcombOperators()
        for s in range(10):
            newcomb.get_value(1, 1, -3, s)
        newcomb.get_value(1, 1, -3, 9)
        info = newcomb.cache_info()

        assert info.maxsize == 4
        assert info.currsize == 4
        assert info.hits == 1

    def test_polynomials_memoized(self):
        newcomb = NewcombOperators()
        assert newcomb.get_polynomials(3, 2) is newcomb.get_polynomials(3, 2)

    def test_negative_index_rejected(self):
        with pytest.raises(ConfigurationError, match="non-negative"):
            NewcombOperators().get_polynomials(-1, 0)

    def test_index_limit(self):
        with temp_config(MAX_COEFFICIENT_INDEX=3):
            with pytest.raises(CacheLimitError):
                NewcombOperators().get_polynomials(2, 4)


class TestHansenKernels:
    """Test the kernel container."""

    def test_indexing(self):
        kernels = HansenKernels(2, [1.0, 2.0, 3.0], [0.1, 0.2, 0.3])
        assert kernels.n_max == 4
        assert kernels.value(3) == 2.0
        assert kernels.derivative(4) == 0.3

    @pytest.mark.parametrize("n", [1, 5])
    def test_out_of_range(self, n):
        kernels = HansenKernels(2, [1.0, 2.0, 3.0], [0.1, 0.2, 0.3])
        with pytest.raises(ConfigurationError, match="outside computed range"):
            kernels.value(n)

    def test_horner(self):
        assert horner([1.0, 2.0, 3.0], 2.0) == 17.0


class TestZonalKernels:
    """Test K₀^{-n-1,s} against closed forms."""

    def test_closed_forms(self):
        chi = chi_of(0.2)
        kernels = HansenZonal(0, 5).evaluate(chi)

        assert kernels.value(0) == 0.0
        assert np.isclose(kernels.value(1), chi)
        assert np.isclose(kernels.value(2), chi ** 3)
        assert np.isclose(kernels.value(3), (3 * chi ** 5 - chi ** 3) / 2)

    def test_seed_for_nonzero_s(self):
        chi = chi_of(0.1)
        kernels = HansenZonal(-2, 4).evaluate(chi)
        assert kernels.n_min == 2
        assert kernels.value(2) == 0.0
        assert np.isclose(kernels.value(3), chi ** 5 / 4.0)

    @pytest.mark.parametrize("s", [0, 1, 3])
    def test_derivative_finite_difference(self, s):
        chi, eps = chi_of(0.3), 1e-7
        kernels = HansenZonal(s, 7).evaluate(chi)
        up = HansenZonal(s, 7).evaluate(chi + eps)
        down = HansenZonal(s, 7).evaluate(chi - eps)
        for n in range(s, 8):
            fd = (up.value(n) - down.value(n)) / (2 * eps)
            assert np.isclose(kernels.derivative(n), fd, rtol=1e-6, atol=1e-9)


class TestThirdBodyKernels:
    """Test K₀^{n,s} in both variants."""

    def test_root_index(self):
        assert third_body_root_index(0) == 0
        assert third_body_root_index(1) == 0
        assert third_body_root_index(4) == 3

    def test_closed_forms(self):
        """K₀^{1,0} = 1 + e²/2 and K₀^{2,0} = 1 + 3e²/2."""
        e = 0.25
        kernels = HansenThirdBodyRecursive(0, 4).evaluate(chi_of(e))
        assert kernels.value(0) == 1.0
        assert np.isclose(kernels.value(1), 1 + 0.5 * e * e)
        assert np.isclose(kernels.value(2), 1 + 1.5 * e * e)

    def test_s1_seeds(self):
        kernels = HansenThirdBodyRecursive(1, 3).evaluate(chi_of(0.1))
        assert kernels.value(0) == -1.0
        assert np.isclose(kernels.value(1), -1.5)

    @pytest.mark.parametrize("s", [0, 1, 2, 5])
    def test_variants_agree(self, s):
        chi = chi_of(0.35)
        table = ThirdBodyPolynomialTable()
        linear = HansenThirdBodyLinear(s, 12, table).evaluate(chi)
        recursive = HansenThirdBodyRecursive(s, 12).evaluate(chi)
        for n in range(linear.n_min, 13):
            assert np.isclose(linear.value(n), recursive.value(n), rtol=1e-12)
            assert np.isclose(linear.derivative(n), recursive.derivative(n),
                              rtol=1e-10, atol=1e-12)

    def test_derivative_finite_difference(self):
        chi, eps = chi_of(0.35), 1e-7
        table = ThirdBodyPolynomialTable()
        kernels = HansenThirdBodyLinear(0, 8, table).evaluate(chi)
        up = HansenThirdBodyLinear(0, 8, table).evaluate(chi + eps)
        down = HansenThirdBodyLinear(0, 8, table).evaluate(chi - eps)
        for n in range(0, 9):
            fd = (up.value(n) - down.value(n)) / (2 * eps)
            assert np.isclose(kernels.derivative(n), fd, rtol=1e-6, atol=1e-9)

    def test_table_growth_keeps_entries(self):
        table = ThirdBodyPolynomialTable()
        small = table.get(2, 5)
        large = table.get(2, 9)

        assert len(large[0]) > len(small[0])
        assert all(a is b for a, b in zip(small[0], large[0]))
        assert table.get(2, 4) is large

    def test_selection_follows_config(self):
        table = ThirdBodyPolynomialTable()
        assert isinstance(hansen_third_body(1, 6, table), HansenThirdBodyLinear)
        with temp_config(HANSEN_KERNEL='recursive'):
            assert isinstance(hansen_third_body(1, 6, table), HansenThirdBodyRecursive)
        assert isinstance(hansen_third_body(1, 6, table, kernel='recursive'),
                          HansenThirdBodyRecursive)

    def test_unknown_variant(self):
        with pytest.raises(ConfigurationError, match="Unknown Hansen kernel"):
            hansen_third_body(1, 6, ThirdBodyPolynomialTable(), kernel='fast')


class TestTesseralKernels:
    """Test K_j^{-n-1,s} from the Newcomb series."""

    @pytest.mark.parametrize("s", [0, 1, 2])
    def test_j0_matches_zonal(self, s):
        e = 0.1
        chi = chi_of(e)
        newcomb = NewcombOperators()
        tesseral = HansenTesseral(0, s, s, 6, 20, newcomb).evaluate(e * e, chi)
        zonal = HansenZonal(s, 6).evaluate(chi)
        for n in range(s, 7):
            assert np.isclose(tesseral.value(n), zonal.value(n), rtol=1e-9, atol=1e-12)

    def test_e2_derivative_finite_difference(self):
        e2, eps = 0.04, 1e-8
        newcomb = NewcombOperators()
        hansen = HansenTesseral(1, 2, 2, 5, 8, newcomb)
        kernels = hansen.evaluate(e2, 1.0 / np.sqrt(1.0 - e2))
        up = hansen.evaluate(e2 + eps, 1.0 / np.sqrt(1.0 - e2 - eps))
        down = hansen.evaluate(e2 - eps, 1.0 / np.sqrt(1.0 - e2 + eps))
        for n in range(2, 6):
            fd = (up.value(n) - down.value(n)) / (2 * eps)
            assert np.isclose(kernels.derivative(n), fd, rtol=1e-5)
