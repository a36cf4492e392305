import numpy as np
import pytest

from thermokernels import Assembler, SystemState, VariableSystem, create_object
from thermokernels.errors import ConfigurationError
from thermokernels.fea import Mesh

DT = 0.25


def two_phase_problem(mesh, n_threads=1, upwinding="full"):
    """
    Solid temperature with conduction, accumulation and a heat source,
    exchanging heat with an advected fluid temperature.
    """
    system = VariableSystem()
    system.add_variable("solid_temperature")
    system.add_variable("fluid_temperature")
    system.add_aux_variable("vel_x")
    system.add_aux_variable("source")

    fluid = {"density": 1.2, "heat_capacity": 1000.0, "vel_x": "vel_x", "vel_y": 0.3, "vel_z": 0.0,
             "volume_frac": 0.4}
    kernels = [
        create_object("HeatConduction", {"variable": "solid_temperature", "thermal_conductivity": 1.5,
                                         "volume_frac": 0.6}, system),
        create_object("HeatAccumulation", {"variable": "solid_temperature", "density": 2000.0,
                                           "heat_capacity": 800.0, "volume_frac": 0.6}, system),
        create_object("HeatSource", {"variable": "solid_temperature", "coupled_source": "source"}, system),
        create_object("HeatConvection", {"variable": "solid_temperature", "convection_coeff": 25.0,
                                         "coupled_temperature": "fluid_temperature",
                                         "specific_area": 4.0, "volume_frac": 0.6}, system),
        create_object("HeatConvection", {"variable": "fluid_temperature", "convection_coeff": 25.0,
                                         "coupled_temperature": "solid_temperature",
                                         "specific_area": 4.0, "volume_frac": 0.4}, system),
        create_object("HeatAccumulation", {"variable": "fluid_temperature", "density": 1.2,
                                           "heat_capacity": 1000.0, "volume_frac": 0.4}, system),
        create_object("HeatAdvectionConservative", {"variable": "fluid_temperature",
                                                    "upwinding_type": upwinding, **fluid}, system),
    ]
    bcs = [
        create_object("ThermalFluidFluxBC", {"variable": "fluid_temperature", "boundary": list(mesh.boundary_elements),
                                             "outside_temperature": 300.0, **fluid}, system),
    ]
    return Assembler(mesh, system, kernels, bcs, n_threads=n_threads)


def make_state(assembler, seed=0):
    rng = np.random.default_rng(seed)
    n = assembler.mesh.number_of_nodes
    solution = assembler.combine({
        "solid_temperature": 300.0 + 50.0 * rng.random(n),
        "fluid_temperature": 320.0 + 30.0 * rng.random(n),
    })
    old = assembler.combine({
        "solid_temperature": np.full(n, 310.0),
        "fluid_temperature": np.full(n, 330.0),
    })
    aux = {"vel_x": 0.5 + 0.5 * rng.random(n), "source": 1000.0 * rng.random(n)}
    return SystemState(solution=solution, solution_dot=(solution - old) / DT, du_dot_du=1.0 / DT, aux=aux), old


@pytest.mark.parametrize("mesh_factory", [lambda: Mesh.interval(5, 0.0, 1.0), lambda: Mesh.rectangle(3, 2)])
@pytest.mark.parametrize("upwinding", ["none", "full"])
def test_global_jacobian_matches_finite_differences(mesh_factory, upwinding):
    assembler = two_phase_problem(mesh_factory(), upwinding=upwinding)
    state, old = make_state(assembler)

    def residual(u):
        return assembler.residual(
            SystemState(solution=u, solution_dot=(u - old) / DT, du_dot_du=1.0 / DT, aux=state.aux)
        )

    eps = 1e-3
    fd = np.empty((assembler.neq, assembler.neq))
    for j in range(assembler.neq):
        e = np.zeros(assembler.neq)
        e[j] = eps
        fd[:, j] = (residual(state.solution + e) - residual(state.solution - e)) / (2.0 * eps)

    jac = assembler.jacobian(state).toarray()
    scale = np.abs(fd).max()
    np.testing.assert_allclose(jac, fd, rtol=1e-7, atol=1e-8 * scale)


def test_coupled_blocks_are_assembled():
    assembler = two_phase_problem(Mesh.interval(3))
    state, _ = make_state(assembler)
    jac = assembler.jacobian(state).toarray()
    solid = slice(0, None, 2)
    fluid = slice(1, None, 2)
    assert np.abs(jac[solid, fluid]).max() > 0.0
    assert np.abs(jac[fluid, solid]).max() > 0.0


def test_threaded_assembly_matches_serial():
    mesh = Mesh.rectangle(4, 4)
    serial = two_phase_problem(mesh)
    threaded = two_phase_problem(mesh, n_threads=4)
    state, _ = make_state(serial, seed=3)

    np.testing.assert_allclose(threaded.residual(state), serial.residual(state), rtol=1e-12, atol=1e-6)
    np.testing.assert_allclose(
        threaded.jacobian(state).toarray(), serial.jacobian(state).toarray(), rtol=1e-12, atol=1e-6
    )


def test_node_major_numbering():
    assembler = two_phase_problem(Mesh.interval(2))
    assert assembler.number_of_equations == 6
    element = assembler.mesh.all_elements[1]
    np.testing.assert_array_equal(assembler.dofs(element, "solid_temperature"), [2, 4])
    np.testing.assert_array_equal(assembler.dofs(element, "fluid_temperature"), [3, 5])

    vector = np.arange(6.0)
    parts = assembler.split(vector)
    np.testing.assert_array_equal(parts["fluid_temperature"], [1.0, 3.0, 5.0])
    np.testing.assert_array_equal(assembler.combine(parts), vector)


def test_missing_aux_values():
    assembler = two_phase_problem(Mesh.interval(2))
    state, _ = make_state(assembler)
    del state.aux["source"]
    with pytest.raises(ConfigurationError, match="auxiliary variable 'source'"):
        assembler.residual(state)


def test_wrong_solution_size():
    assembler = two_phase_problem(Mesh.interval(2))
    with pytest.raises(ValueError, match="shape"):
        assembler.residual(SystemState(solution=np.zeros(5)))


def test_kernel_on_auxiliary_variable_is_rejected():
    system = VariableSystem()
    system.add_variable("temperature")
    system.add_aux_variable("velocity")
    kernel = create_object("HeatSource", {"variable": "velocity", "coupled_source": 1.0}, system)
    with pytest.raises(ConfigurationError, match="not a nonlinear variable"):
        Assembler(Mesh.interval(2), system, [kernel])


def test_unknown_boundary_is_rejected():
    system = VariableSystem()
    system.add_variable("temperature")
    bc = create_object(
        "ThermalFluidFluxBC",
        {"variable": "temperature", "boundary": "top", "density": 1.0, "heat_capacity": 1.0,
         "vel_x": 1.0, "vel_y": 0.0, "vel_z": 0.0, "outside_temperature": 300.0},
        system,
    )
    with pytest.raises(ConfigurationError, match="Unknown boundary 'top'"):
        Assembler(Mesh.interval(2), system, [], [bc])
