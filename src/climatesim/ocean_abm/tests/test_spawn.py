import math

import numpy as np
import pytest

from climatesim.ocean_abm.collision import CollisionField
from climatesim.ocean_abm.config import NumericsParams, PhysicsParams
from climatesim.ocean_abm.environment import EnvironmentSampler
from climatesim.ocean_abm.spawn import SpawnPlanner, km_to_cells


def _planner(field, **overrides):
    sampler = EnvironmentSampler(CollisionField.from_field(field))
    return SpawnPlanner(sampler, PhysicsParams.from_mapping(overrides), NumericsParams())


def test_km_to_cells_at_equator():
    cell_km = 2.0 * math.pi * 6371.0 / 360
    assert km_to_cells(cell_km, 0.0, 360) == pytest.approx(1.0)
    assert km_to_cells(cell_km, 60.0, 360) == pytest.approx(2.0)
    # the pole is clamped instead of dividing by zero
    assert np.isfinite(km_to_cells(100.0, 90.0, 360))


def test_counter_current_seeds():
    field = np.full((10, 40), -100.0)
    field[:, 10:20] = 100.0
    planner = _planner(field, spawn_density=4)
    rows = np.full(40, 5.0)
    seeds = planner.counter_current_spawns(rows)
    # gap-fill every 10 columns, plus the column east of the wall
    assert [c for c, _ in seeds] == [0, 20, 30]
    rows[30] = -1.0
    assert [c for c, _ in planner.counter_current_spawns(rows)] == [0, 20]


def test_west_coast_seed_off_interval():
    field = np.full((10, 40), -100.0)
    field[:, 10:15] = 100.0
    planner = _planner(field, spawn_density=4)
    seeds = planner.counter_current_spawns(np.full(40, 5.0))
    assert 15 in [c for c, _ in seeds]
    # wall columns are never seeded
    assert not any(10 <= c < 15 for c, _ in seeds)


def test_seed_exactly_at_spawn_threshold():
    rows = np.full(40, 5.0)
    at_threshold = _planner(np.full((10, 40), -20.0), spawn_density=4)
    assert [c for c, _ in at_threshold.counter_current_spawns(rows)] == [0, 10, 20, 30]
    shallower = _planner(np.full((10, 40), -19.5), spawn_density=4)
    assert shallower.counter_current_spawns(rows) == []


def test_raycast_finds_deep_water(wall_east_sampler):
    planner = SpawnPlanner(wall_east_sampler, PhysicsParams(), NumericsParams())
    x, found = planner.deep_water_west_of(9.5, 5.0)
    assert found
    assert x == pytest.approx(8.0)


def test_raycast_fallback():
    planner = _planner(np.full((10, 40), 100.0), spawn_offset_km=0.0)
    x, found = planner.deep_water_west_of(30.0, 5.0)
    assert not found
    assert x == pytest.approx(20.0)
    spawn = planner.return_current_spawn(5.0, 5.0, 0.0)
    assert spawn.fallback
    assert spawn.x == pytest.approx(35.0)


def test_return_current_spawn_offset(wall_east_sampler):
    planner = SpawnPlanner(wall_east_sampler, PhysicsParams(), NumericsParams())
    spawn = planner.return_current_spawn(9.5, 5.0, 0.0)
    offset = km_to_cells(100.0, 0.0, 20)
    assert not spawn.fallback
    assert spawn.x == pytest.approx(8.0 - offset)
    assert spawn.y == 5.0
