"""Planet grid input and coordinate helpers.

The grid is an equirectangular raster of ``rows x cols`` cells stored
row-major. Row 0 is the north pole and row ``rows - 1`` the south pole;
column 0 sits at longitude -180 and columns wrap around the globe.

The scalar helpers below are called from the integrator's inner loop, so
they use ``math`` instead of numpy.
"""
import math
from dataclasses import dataclass

import numpy as np


def lat_from_row(row, rows):
    """Latitude (deg) of a fractional row."""
    return 90.0 - row / (rows - 1) * 180.0


def row_from_lat(lat, rows):
    """Fractional row of a latitude (deg)."""
    return (90.0 - lat) / 180.0 * (rows - 1)


def lon_from_col(col, cols):
    """Longitude (deg) of a fractional column."""
    return -180.0 + col / cols * 360.0


def wrap_col(x, cols):
    """Wrap a fractional column into [0, cols)."""
    x = x % cols
    # float modulo can round up to cols for tiny negative inputs
    return 0.0 if x >= cols else x


def wrap_delta(dx, cols):
    """Shortest signed column offset, wrapped to [-cols/2, cols/2)."""
    half = cols / 2.0
    return (dx + half) % cols - half


def cell_distance(x0, y0, x1, y1, cols):
    """Euclidean distance in cells, wrap-aware in x."""
    return math.hypot(wrap_delta(x1 - x0, cols), y1 - y0)


@dataclass(frozen=True)
class PlanetGrid:
    """Distance-to-coast raster of a planet.

    ``distance`` holds signed kilometres to the nearest coastline, negative
    over ocean and positive inland, shaped ``(rows, cols)``.
    """
    distance: np.ndarray

    def __post_init__(self):
        dist = np.asarray(self.distance, dtype=float)
        if dist.ndim != 2:
            raise ValueError('distance must be a 2-D (rows, cols) array')
        rows, cols = dist.shape
        if rows < 2 or cols < 3:
            raise ValueError(f'grid must have at least 2 rows and 3 columns, got {rows}x{cols}')
        if not np.all(np.isfinite(dist)):
            raise ValueError('distance contains non-finite values')
        dist = dist.copy()
        dist.setflags(write=False)
        object.__setattr__(self, 'distance', dist)

    @property
    def rows(self):
        return self.distance.shape[0]

    @property
    def cols(self):
        return self.distance.shape[1]

    @classmethod
    def from_cells(cls, distances, rows, cols):
        """Build from a flat row-major sequence of ``rows * cols`` distances."""
        flat = np.asarray(distances, dtype=float).ravel()
        if flat.size != rows * cols:
            raise ValueError(
                f'grid has {flat.size} cells but resolution {rows}x{cols} implies {rows * cols}'
            )
        return cls(flat.reshape(rows, cols))

    @classmethod
    def from_frame(cls, frame, rows, cols, column='dist_coast'):
        """Build from a pandas DataFrame with one row per cell.

        When the frame carries ``row`` and ``col`` columns the cells are placed
        by index; otherwise they must already be in row-major order.
        """
        if column not in frame.columns:
            raise ValueError(f'frame has no {column!r} column')
        if {'row', 'col'}.issubset(frame.columns):
            if len(frame) != rows * cols:
                raise ValueError(
                    f'grid has {len(frame)} cells but resolution {rows}x{cols} implies {rows * cols}'
                )
            ordered = frame.sort_values(['row', 'col'])
            return cls.from_cells(ordered[column].to_numpy(), rows, cols)
        return cls.from_cells(frame[column].to_numpy(), rows, cols)

    def latitudes(self):
        """Latitude (deg) of every row centre."""
        return lat_from_row(np.arange(self.rows, dtype=float), self.rows)

    def itcz_rows(self, itcz_line):
        """Validate an ITCZ latitude line and convert it to fractional rows."""
        line = np.asarray(itcz_line, dtype=float)
        if line.shape != (self.cols,):
            raise ValueError(f'ITCZ line must have {self.cols} latitudes, got shape {line.shape}')
        if not np.all(np.isfinite(line)):
            raise ValueError('ITCZ line contains non-finite latitudes')
        return row_from_lat(line, self.rows)
