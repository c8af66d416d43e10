"""Smoothed collision field and its gradient.

The field is the distance-to-coast raster shifted by a coastal buffer and
blurred with repeated 3x3 box filters. Positive values are treated as wall,
negative values as open ocean. Blurring wraps in longitude and clamps in
latitude, matching the topology of the grid.
"""
import logging
from dataclasses import dataclass

import numpy as np
from scipy import ndimage

log = logging.getLogger(__name__)

# rows clamp (edge replicate), columns wrap around the globe
_BOUNDARY_MODES = ('nearest', 'wrap')


def smooth_field(field, iterations):
    """Apply ``iterations`` 3x3 box blurs. Zero iterations returns an equal copy."""
    out = np.array(field, dtype=float, copy=True)
    if out.ndim != 2:
        raise ValueError('field must be a 2-D array')
    for _ in range(int(iterations)):
        out = ndimage.uniform_filter(out, size=3, mode=_BOUNDARY_MODES)
    return out


def compute_gradient(field):
    """Central-difference gradient ``(gx, gy)`` in field units per cell.

    x differences wrap around the globe; y differences clamp at the poles, so
    the first and last rows use a one-sided half difference. Both components
    point toward increasing field values, i.e. toward land.
    """
    f = np.asarray(field, dtype=float)
    gx = (np.roll(f, -1, axis=1) - np.roll(f, 1, axis=1)) * 0.5
    padded = np.pad(f, ((1, 1), (0, 0)), mode='edge')
    gy = (padded[2:, :] - padded[:-2, :]) * 0.5
    return gx, gy


def build_collision_field(distance, buffer, iterations):
    """Return the smoothed ``distance + buffer`` field."""
    return smooth_field(np.asarray(distance, dtype=float) + float(buffer), iterations)


def _frozen(arr):
    arr = np.ascontiguousarray(arr, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class CollisionField:
    """Read-only smoothed field plus its gradient, built once per run."""
    field: np.ndarray
    gx: np.ndarray
    gy: np.ndarray

    def __post_init__(self):
        if not (self.field.shape == self.gx.shape == self.gy.shape):
            raise ValueError('field and gradient shapes differ')
        for name in ('field', 'gx', 'gy'):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    @property
    def rows(self):
        return self.field.shape[0]

    @property
    def cols(self):
        return self.field.shape[1]

    @classmethod
    def from_field(cls, field):
        gx, gy = compute_gradient(field)
        return cls(np.asarray(field, dtype=float), gx, gy)

    @classmethod
    def build(cls, grid, params):
        """Build from a :class:`PlanetGrid` and :class:`PhysicsParams`."""
        field = build_collision_field(grid.distance, params.collision_buffer,
                                      params.smoothing_iterations)
        out = cls.from_field(field)
        log.info('[collision] built %dx%d field (buffer=%.1f km, %d blur passes, %.1f%% wall)',
                 out.rows, out.cols, params.collision_buffer, params.smoothing_iterations,
                 100.0 * float(np.mean(out.field > 0)))
        return out
