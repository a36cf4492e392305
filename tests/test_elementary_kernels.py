import numpy as np
import pytest

from thermokernels import (
    CoefTimeDerivative,
    CoefTimeDerivativeParams,
    HeatAccumulation,
    HeatAccumulationParams,
    HeatConduction,
    HeatConductionParams,
    HeatConvection,
    HeatConvectionParams,
    HeatSource,
    HeatSourceParams,
)


@pytest.fixture
def conduction(system):
    return HeatConduction(
        HeatConductionParams(
            variable="temperature",
            thermal_conductivity="conductivity",
            volume_frac="volume_fraction",
        ),
        system,
    )


@pytest.fixture
def convection(system):
    return HeatConvection(
        HeatConvectionParams(
            variable="temperature",
            convection_coeff="htc",
            coupled_temperature="fluid_temperature",
            specific_area="specific_area",
            volume_frac="volume_fraction",
        ),
        system,
    )


@pytest.fixture
def accumulation(system):
    return HeatAccumulation(
        HeatAccumulationParams(
            variable="temperature",
            density="density",
            heat_capacity="heat_capacity",
            volume_frac="volume_fraction",
        ),
        system,
    )


@pytest.fixture
def source(system):
    return HeatSource(HeatSourceParams(variable="temperature", coupled_source="source"), system)


class TestHeatConduction:
    def test_uniform_temperature_has_no_residual(self, conduction, tri_element, tri_values, make_fields):
        values = {**tri_values, "temperature": np.full(3, 315.0)}
        re = conduction.evaluate_residual(make_fields(tri_element, "temperature", values))
        np.testing.assert_allclose(re, 0.0, atol=1e-10)

    def test_residual_is_stiffness_times_temperature(self, conduction, tri_element, tri_values, make_fields):
        fields = make_fields(tri_element, "temperature", tri_values)
        ke = conduction.evaluate_jacobian(fields)
        np.testing.assert_allclose(conduction.evaluate_residual(fields), ke @ tri_values["temperature"])
        np.testing.assert_allclose(ke, ke.T)
        np.testing.assert_allclose(ke.sum(axis=1), 0.0, atol=1e-12)

    def test_constant_coefficients(self, system, line_element, make_fields):
        kernel = HeatConduction(HeatConductionParams(variable="temperature", thermal_conductivity=2.0), system)
        ke = kernel.evaluate_jacobian(make_fields(line_element, "temperature", {"temperature": np.zeros(2)}))
        # K / L * [[1, -1], [-1, 1]] with L = 2
        np.testing.assert_allclose(ke, [[1.0, -1.0], [-1.0, 1.0]])

    @pytest.mark.parametrize("jname", ["conductivity", "volume_fraction"])
    def test_off_diagonal_jacobian(self, conduction, system, tri_element, tri_values, make_fields,
                                   finite_difference, jname):
        def residual(values):
            return conduction.evaluate_residual(make_fields(tri_element, "temperature", values))

        fields = make_fields(tri_element, "temperature", tri_values)
        ke = conduction.evaluate_off_diag_jacobian(fields, system.number(jname))
        np.testing.assert_allclose(ke, finite_difference(residual, tri_values, jname), rtol=1e-6, atol=1e-6)

    def test_unrelated_variable_has_no_off_diagonal(self, conduction, system, tri_element, tri_values, make_fields):
        fields = make_fields(tri_element, "temperature", tri_values)
        ke = conduction.evaluate_off_diag_jacobian(fields, system.number("density"))
        np.testing.assert_array_equal(ke, 0.0)


class TestHeatConvection:
    def test_equal_temperatures_have_no_residual(self, convection, tri_element, tri_values, make_fields):
        values = {**tri_values, "fluid_temperature": tri_values["temperature"]}
        re = convection.evaluate_residual(make_fields(tri_element, "temperature", values))
        np.testing.assert_allclose(re, 0.0, atol=1e-10)

    def test_coupled_temperature_block_is_negated_diagonal(self, convection, system, tri_element, tri_values,
                                                          make_fields):
        fields = make_fields(tri_element, "temperature", tri_values)
        ke = convection.evaluate_jacobian(fields)
        ke_other = convection.evaluate_off_diag_jacobian(fields, system.number("fluid_temperature"))
        np.testing.assert_allclose(ke_other, -ke)

    @pytest.mark.parametrize(
        "jname",
        ["temperature", "fluid_temperature", "htc", "specific_area", "volume_fraction"],
    )
    def test_jacobians_match_finite_differences(self, convection, system, tri_element, tri_values, make_fields,
                                                finite_difference, jname):
        def residual(values):
            return convection.evaluate_residual(make_fields(tri_element, "temperature", values))

        fields = make_fields(tri_element, "temperature", tri_values)
        ke = convection.evaluate_off_diag_jacobian(fields, system.number(jname))
        np.testing.assert_allclose(ke, finite_difference(residual, tri_values, jname), rtol=1e-6, atol=1e-6)

    def test_constant_other_temperature_is_not_coupled(self, system):
        kernel = HeatConvection(
            HeatConvectionParams(
                variable="temperature",
                convection_coeff=10.0,
                coupled_temperature=293.15,
                specific_area=1.0,
            ),
            system,
        )
        assert kernel.coupled_variable_numbers == set()


class TestHeatSource:
    def test_residual_does_not_depend_on_temperature(self, source, tri_element, tri_values, make_fields):
        re = source.evaluate_residual(make_fields(tri_element, "temperature", tri_values))
        hotter = {**tri_values, "temperature": tri_values["temperature"] + 100.0}
        np.testing.assert_array_equal(
            source.evaluate_residual(make_fields(tri_element, "temperature", hotter)), re
        )
        np.testing.assert_array_equal(
            source.evaluate_jacobian(make_fields(tri_element, "temperature", tri_values)), 0.0
        )

    def test_uniform_source(self, system, tri_element, make_fields):
        kernel = HeatSource(HeatSourceParams(variable="temperature", coupled_source=6.0), system)
        re = kernel.evaluate_residual(make_fields(tri_element, "temperature", {"temperature": np.zeros(3)}))
        # -s * ∫ψ_i with ∫ψ_i = area / 3
        np.testing.assert_allclose(re, -2.0 * abs(tri_element.area))

    def test_off_diagonal_jacobian(self, source, system, tri_element, tri_values, make_fields, finite_difference):
        def residual(values):
            return source.evaluate_residual(make_fields(tri_element, "temperature", values))

        fields = make_fields(tri_element, "temperature", tri_values)
        ke = source.evaluate_off_diag_jacobian(fields, system.number("source"))
        np.testing.assert_allclose(ke, finite_difference(residual, tri_values, "source"), rtol=1e-6, atol=1e-8)


class TestHeatAccumulation:
    dt = 0.5

    @pytest.fixture
    def old_temperature(self):
        return np.array([295.0, 318.0, 312.0])

    def _fields(self, make_fields, element, values, old_temperature):
        dots = {"temperature": (values["temperature"] - old_temperature) / self.dt}
        return make_fields(element, "temperature", values, dots, 1.0 / self.dt)

    def test_no_change_no_residual(self, accumulation, tri_element, tri_values, make_fields):
        re = accumulation.evaluate_residual(
            self._fields(make_fields, tri_element, tri_values, tri_values["temperature"])
        )
        np.testing.assert_allclose(re, 0.0)

    @pytest.mark.parametrize("jname", ["temperature", "density", "heat_capacity", "volume_fraction"])
    def test_jacobians_match_finite_differences(self, accumulation, system, tri_element, tri_values,
                                                old_temperature, make_fields, finite_difference, jname):
        def residual(values):
            return accumulation.evaluate_residual(self._fields(make_fields, tri_element, values, old_temperature))

        fields = self._fields(make_fields, tri_element, tri_values, old_temperature)
        ke = accumulation.evaluate_off_diag_jacobian(fields, system.number(jname))
        np.testing.assert_allclose(ke, finite_difference(residual, tri_values, jname), rtol=1e-6, atol=1e-4)

    def test_matches_coefficient_time_derivative(self, system, line_element, make_fields):
        values = {"temperature": np.array([300.0, 340.0])}
        fields = self._fields(make_fields, line_element, values, np.array([290.0, 350.0]))

        accumulation = HeatAccumulation(
            HeatAccumulationParams(variable="temperature", density=2.0, heat_capacity=3.0, volume_frac=0.5),
            system,
        )
        time_derivative = CoefTimeDerivative(CoefTimeDerivativeParams(variable="temperature", coefficient=3.0), system)

        np.testing.assert_allclose(accumulation.evaluate_residual(fields), time_derivative.evaluate_residual(fields))
        np.testing.assert_allclose(accumulation.evaluate_jacobian(fields), time_derivative.evaluate_jacobian(fields))

    def test_consistent_mass_matrix(self, system, line_element, make_fields):
        kernel = CoefTimeDerivative(CoefTimeDerivativeParams(variable="temperature"), system)
        fields = make_fields(line_element, "temperature", {"temperature": np.zeros(2)}, du_dot_du=1.0)
        # L / 6 * [[2, 1], [1, 2]] with L = 2
        np.testing.assert_allclose(kernel.evaluate_jacobian(fields), np.array([[2.0, 1.0], [1.0, 2.0]]) / 3.0)
