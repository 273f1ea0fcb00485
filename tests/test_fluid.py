import logging
import math

import numpy as np
import pytest

from stam_fluids import Fluid, Params
from stam_fluids.params import LEVEL_THRESHOLD


def _set_density(fluid, values):
    fluid.fields.interior(fluid.fields.d)[...] = values


# ---- Construction ----

@pytest.mark.parametrize("kwargs", [
    dict(size=0, visc=0.0, diff=0.0, dt=0.1),
    dict(size=4, visc=-0.1, diff=0.0, dt=0.1),
    dict(size=4, visc=0.0, diff=-1e-3, dt=0.1),
    dict(size=4, visc=0.0, diff=0.0, dt=-0.1),
    dict(size=4, visc=0.0, diff=0.0, dt=math.nan),
    dict(size=4, visc=math.inf, diff=0.0, dt=0.1),
    dict(size=4, visc=0.0, diff=0.0, dt=0.1, iters=0),
    dict(size=4, visc=0.0, diff=0.0, dt=0.1, iters=2.5),
    dict(size=4, visc=0.0, diff=0.0, dt=0.1, iters=True),
    dict(size=4, visc="0.1", diff=0.0, dt=0.1),
    dict(size=4, visc=0.0, diff=None, dt=0.1),
])
def test_rejects_invalid_construction(kwargs):
    with pytest.raises(ValueError):
        Fluid(**kwargs)


def test_new_fluid_is_zero(fluid):
    for grid in fluid.fields.grids():
        assert not grid.cells.any()
    assert fluid.density(5, 5) == 0.0
    assert fluid.velocity(5, 5) == (0.0, 0.0)


def test_from_params():
    f = Fluid.from_params(6, Params(visc=0.1, diff=0.2, dt=0.3, iters=7))
    assert (f.visc, f.diff, f.dt, f.params.iters) == (0.1, 0.2, 0.3, 7)
    assert f.fields.d.dim == 8


def test_out_of_range_queries_are_zero(fluid):
    fluid.fields.u.fill(1.0)
    assert fluid.density(-1, 3) == 0.0
    assert fluid.velocity(12, 0) == (0.0, 0.0)
    assert fluid.velocity(11, 11) == (1.0, 0.0)


# ---- Min / max ----

def test_min_max_over_interior_only(fluid):
    values = np.linspace(0.5, 2.0, 100).reshape(10, 10)
    _set_density(fluid, values)
    fluid.fields.d.set(0, 0, 50.0)
    fluid.fields.d.set(11, 3, -50.0)

    assert fluid.min() == pytest.approx(0.5)
    assert fluid.max() == pytest.approx(2.0)


def test_max_is_seeded_at_zero(fluid):
    _set_density(fluid, -1.0)
    assert fluid.max() == 0.0
    assert fluid.min() == -1.0


# ---- Level ----

def test_level_subtracts_floor(fluid):
    values = np.linspace(0.01, 1.0, 100).reshape(10, 10)
    _set_density(fluid, values)
    m = fluid.min()
    old_max = fluid.max()

    fluid.level(m)

    assert fluid.min() <= max(m - 4 * m, 0.0)
    assert fluid.min() == 0.0
    assert fluid.max() == pytest.approx(old_max - 4 * m)
    inner = fluid.density_field()
    assert np.all((inner == 0.0) | (inner >= LEVEL_THRESHOLD))


def test_level_reapplies_density_boundary(fluid):
    _set_density(fluid, np.linspace(0.01, 1.0, 100).reshape(10, 10))
    fluid.level(fluid.min())
    d = fluid.fields.d.cells
    np.testing.assert_array_equal(d[0, 1:11], d[1, 1:11])
    np.testing.assert_array_equal(d[1:11, 11], d[1:11, 10])


def test_level_below_threshold_is_noop(fluid):
    values = np.linspace(0.0, 1.0, 100).reshape(10, 10)
    _set_density(fluid, values)
    fluid.level(LEVEL_THRESHOLD / 2)
    np.testing.assert_array_equal(fluid.density_field(), values)


def test_level_leaves_velocity_alone(fluid):
    fluid.fields.u.fill(3.0)
    _set_density(fluid, 1.0)
    fluid.level(0.1)
    assert not np.any(fluid.fields.u.cells - 3.0)


# ---- Injection ----

def test_add_density_fills_square(fluid):
    fluid.add_density(4, 6, 1, 9.0)
    d0 = fluid.fields.d0
    filled = {(i, j) for i in range(3, 6) for j in range(5, 8)}
    for i in range(12):
        for j in range(12):
            assert d0.get(i, j) == (9.0 if (i, j) in filled else 0.0)


def test_injection_replaces_previous_source(fluid):
    fluid.add_density(3, 3, 1, 5.0)
    fluid.add_density(8, 8, 0, 2.0)
    assert fluid.fields.d0.get(3, 3) == 0.0
    assert fluid.fields.d0.get(8, 8) == 2.0
    assert fluid.fields.d0.cells.sum() == 2.0


def test_add_velocity_fills_both_components(fluid):
    fluid.add_velocity(5, 5, 0, 1.5, -2.5)
    assert fluid.fields.u0.get(5, 5) == 1.5
    assert fluid.fields.v0.get(5, 5) == -2.5
    fluid.add_velocity(2, 2, 0, 1.0, 1.0)
    assert fluid.fields.u0.get(5, 5) == 0.0
    assert fluid.fields.v0.get(5, 5) == 0.0


def test_injection_may_overhang_the_grid(fluid):
    fluid.add_density(0, 0, 3, 1.0)
    # cells 0..3 on each axis are inside the grid
    assert fluid.fields.d0.cells.sum() == 16.0


# ---- Step ----

def test_end_to_end_scene(fluid):
    fluid.add_density(5, 5, 1, 9.0)
    fluid.add_velocity(5, 5, 1, 1000, 1000)
    fluid.step()

    assert fluid.density(5, 5) > 0.0
    assert fluid.density(5, 5) > fluid.density(1, 1)
    u, v = fluid.velocity(5, 5)
    speed = math.hypot(u, v)
    assert speed > 0.0
    assert math.isfinite(speed)


def test_all_zero_is_a_fixed_point(fluid):
    for _ in range(5):
        fluid.step()
    for grid in fluid.fields.grids():
        assert not grid.cells.any()


def test_step_leaves_scratch_zeroed(fluid):
    fluid.add_density(5, 5, 2, 9.0)
    fluid.add_velocity(5, 5, 1, 100, -100)
    fluid.step()
    for grid in fluid.fields.scratch():
        assert not grid.cells.any()
    assert fluid.max() > 0.0


def test_leftover_scratch_is_not_reinjected():
    f = Fluid(6, 0.0, 0.0, 0.1)
    f.add_density(3, 3, 1, 5.0)
    f.step()
    after_first = f.density_field()
    # no new injection, no flow and no diffusion: density must stay put
    f.step()
    np.testing.assert_allclose(f.density_field(), after_first)


def test_sources_are_spent_after_a_step(fluid):
    fluid.add_density(5, 5, 1, 9.0)
    fluid.step()
    after_one = fluid.density_field().sum()
    fluid.step()
    # no new dye without a new injection
    assert fluid.density_field().sum() <= after_one + 1e-12


def test_step_keeps_velocity_bounded(fluid):
    for _ in range(20):
        fluid.add_density(5, 5, 1, 9.0)
        fluid.add_velocity(5, 5, 1, 1000, -500)
        fluid.step()
    u, v = fluid.velocity_field()
    assert np.all(np.isfinite(u)) and np.all(np.isfinite(v))
    assert np.all(np.isfinite(fluid.density_field()))


def test_solver_is_storage_agnostic(nested_factory):
    a = Fluid(12, 0.01, 0.001, 0.01)
    b = Fluid(12, 0.01, 0.001, 0.01, factory=nested_factory)
    for fl in (a, b):
        for _ in range(3):
            fl.add_density(6, 6, 2, 9.0)
            fl.add_velocity(6, 6, 1, 30.0, -20.0)
            fl.step()

    np.testing.assert_allclose(a.density_field(), b.density_field(), rtol=1e-12, atol=1e-15)
    for x, y in zip(a.velocity_field(), b.velocity_field()):
        np.testing.assert_allclose(x, y, rtol=1e-12, atol=1e-15)


def test_clear(fluid):
    fluid.add_density(5, 5, 1, 9.0)
    fluid.step()
    fluid.clear()
    assert fluid.max() == 0.0


def test_step_logs_at_debug(fluid, caplog):
    with caplog.at_level(logging.DEBUG, logger="stam_fluids.solver"):
        fluid.step()
        fluid.step()
    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("step 2:") for m in messages)
    assert fluid.steps == 2
