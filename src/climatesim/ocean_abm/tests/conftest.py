import numpy as np
import pytest

from climatesim.ocean_abm.collision import CollisionField
from climatesim.ocean_abm.config import NumericsParams, PhysicsParams
from climatesim.ocean_abm.environment import EnvironmentSampler
from climatesim.ocean_abm.scenarios import channel_grid, peninsula_grid


@pytest.fixture
def numerics():
    return NumericsParams()


@pytest.fixture
def wall_east_sampler():
    """10x20 field: ocean (-100) west of column 10, wall (+100) from column 10 on."""
    field = np.full((10, 20), -100.0)
    field[:, 10:] = 100.0
    return EnvironmentSampler(CollisionField.from_field(field))


@pytest.fixture
def small_params():
    return PhysicsParams.from_mapping({'max_steps': 80, 'smoothing_iterations': 1,
                                       'collision_buffer': 0.0})


@pytest.fixture
def peninsula():
    return peninsula_grid(60, 90)


@pytest.fixture
def channel():
    return channel_grid(60, 90)
