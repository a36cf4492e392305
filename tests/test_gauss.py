import numpy as np
import pytest

from thermokernels.fea.gauss import gauss_points_weights_edge, gauss_points_weights_triangle


class TestEdgeRule:
    @pytest.mark.parametrize("n_points", [1, 2, 3])
    def test_weights_sum_to_reference_length(self, n_points):
        _, w = gauss_points_weights_edge(n_points)
        assert w.sum() == pytest.approx(2.0)

    @pytest.mark.parametrize("n_points,degree", [(1, 1), (2, 3), (3, 5)])
    def test_exact_for_polynomials_up_to_degree(self, n_points, degree):
        xi, w = gauss_points_weights_edge(n_points)
        for p in range(degree + 1):
            exact = 0.0 if p % 2 else 2.0 / (p + 1)
            assert np.dot(w, xi**p) == pytest.approx(exact, abs=1e-14)

    def test_unsupported_count_raises(self):
        with pytest.raises(ValueError, match="1, 2, or 3"):
            gauss_points_weights_edge(4)


class TestTriangleRule:
    @pytest.mark.parametrize("n_points", [1, 3])
    def test_weights_sum_to_reference_area(self, n_points):
        points, w = gauss_points_weights_triangle(n_points)
        assert w.sum() == pytest.approx(0.5)
        np.testing.assert_allclose(points.sum(axis=1), 1.0)

    def test_three_point_rule_integrates_quadratics(self):
        points, w = gauss_points_weights_triangle(3)
        r, s = points[:, 1], points[:, 2]
        # ∫ r^2 over the reference triangle is 1/12, ∫ r s is 1/24
        assert np.dot(w, r**2) == pytest.approx(1.0 / 12.0)
        assert np.dot(w, r * s) == pytest.approx(1.0 / 24.0)

    def test_unsupported_count_raises(self):
        with pytest.raises(ValueError):
            gauss_points_weights_triangle(2)
