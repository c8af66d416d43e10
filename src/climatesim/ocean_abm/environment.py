"""Bilinear sampling of the collision field.

Sampling happens several times per agent sub-step, so the sampler keeps the
field as nested Python lists and interpolates with plain float arithmetic;
per-element numpy indexing is far slower for scalar lookups.
"""
import math
from collections import namedtuple

EnvSample = namedtuple('EnvSample', ['dist', 'gx', 'gy'])


def unit_normal(gx, gy, eps=0.0):
    """Normalized gradient ``(nx, ny, length)``.

    A gradient no longer than ``eps`` has no usable direction and yields
    ``(0.0, 0.0, length)``.
    """
    length = math.hypot(gx, gy)
    if length <= eps:
        return 0.0, 0.0, length
    return gx / length, gy / length, length


class EnvironmentSampler:
    """Pure bilinear lookups of field and gradient at fractional positions.

    ``x`` wraps modulo ``cols``; ``y`` is clamped to ``[0, rows - 1]``.
    """

    def __init__(self, collision):
        self.rows = collision.rows
        self.cols = collision.cols
        self._field = collision.field.tolist()
        self._gx = collision.gx.tolist()
        self._gy = collision.gy.tolist()

    def _weights(self, x, y):
        cols = self.cols
        last = self.rows - 1
        x = x % cols
        y = min(max(y, 0.0), float(last))
        c0 = int(x)
        r0 = int(y)
        fx = x - c0
        fy = y - r0
        c0 %= cols
        c1 = (c0 + 1) % cols
        r1 = r0 + 1 if r0 < last else last
        return r0, r1, c0, c1, fx, fy

    @staticmethod
    def _blend(a, r0, r1, c0, c1, fx, fy):
        top = a[r0]
        bottom = a[r1]
        return (top[c0] * (1.0 - fx) * (1.0 - fy) + top[c1] * fx * (1.0 - fy)
                + bottom[c0] * (1.0 - fx) * fy + bottom[c1] * fx * fy)

    def value(self, x, y):
        """Interpolated field value only."""
        return self._blend(self._field, *self._weights(x, y))

    def sample(self, x, y):
        w = self._weights(x, y)
        return EnvSample(self._blend(self._field, *w),
                         self._blend(self._gx, *w),
                         self._blend(self._gy, *w))

    def cell(self, col, row):
        """Raw field value of an integer cell (column wraps, row clamps)."""
        row = min(max(int(row), 0), self.rows - 1)
        return self._field[row][int(col) % self.cols]
