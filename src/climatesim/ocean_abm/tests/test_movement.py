import numpy as np
import pytest

from climatesim.ocean_abm.collision import CollisionField
from climatesim.ocean_abm.environment import EnvironmentSampler
from climatesim.ocean_abm.movement import MoveKind, bisect_crossing, resolve_move, slide_along


def test_clear_move(wall_east_sampler, numerics):
    res = resolve_move(wall_east_sampler, 5.0, 5.0, 1.0, 0.0, numerics.dt, numerics)
    assert res.kind is MoveKind.CLEAR
    assert res.x == pytest.approx(5.05)
    assert res.y == pytest.approx(5.0)


def test_bisection_brackets_the_wall(wall_east_sampler):
    hx, hy = bisect_crossing(wall_east_sampler, 9.45, 5.0, 9.55, 5.0, 4)
    assert 9.45 < hx < 9.55
    assert hx == pytest.approx(9.5, abs=0.01)
    assert hy == pytest.approx(5.0)


def test_head_on_hit_leaves_state_unchanged(wall_east_sampler, numerics):
    res = resolve_move(wall_east_sampler, 9.45, 5.0, 2.0, 0.0, numerics.dt, numerics)
    assert res.kind is MoveKind.HEAD_ON
    assert (res.x, res.y, res.vx, res.vy) == (9.45, 5.0, 2.0, 0.0)
    assert res.hit_x == pytest.approx(9.5, abs=0.01)
    assert (res.nx, res.ny) == pytest.approx((1.0, 0.0))
    assert res.v_dot_n == pytest.approx(2.0)


def test_glancing_hit_slides_along_wall(wall_east_sampler, numerics):
    res = resolve_move(wall_east_sampler, 9.499, 5.0, 0.04, 1.0, numerics.dt, numerics)
    assert res.kind is MoveKind.SLIDE
    assert res.vx == pytest.approx(0.0)
    assert res.vy == pytest.approx(1.0)
    assert res.x < 9.5
    assert wall_east_sampler.value(res.x, res.y) < 0


def test_stale_overlap_is_pushed_out(wall_east_sampler, numerics):
    res = resolve_move(wall_east_sampler, 10.5, 5.0, 0.1, 0.0, numerics.dt, numerics)
    assert res.kind is MoveKind.RECOVER
    assert res.x < 10.5
    assert wall_east_sampler.value(res.x, res.y) < 0


def test_overlap_without_gradient_is_a_no_op(numerics):
    s = EnvironmentSampler(CollisionField.from_field(np.full((5, 6), 100.0)))
    res = resolve_move(s, 2.0, 2.0, 1.0, 0.0, numerics.dt, numerics)
    assert res.kind is MoveKind.TRAPPED
    assert (res.x, res.y) == (2.0, 2.0)


def test_slide_along_applies_friction(wall_east_sampler, numerics):
    hit = resolve_move(wall_east_sampler, 9.45, 5.0, 2.0, 1.0, numerics.dt, numerics)
    assert hit.kind is MoveKind.HEAD_ON
    res = slide_along(hit, numerics, friction=0.9)
    assert res.kind is MoveKind.SLIDE
    assert res.vx == pytest.approx(0.0)
    assert res.vy == pytest.approx(0.9)
    assert res.x == pytest.approx(hit.hit_x - 0.1)
