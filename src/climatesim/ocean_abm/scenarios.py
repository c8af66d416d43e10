"""Synthetic planets for demos and tests.

Every scenario is a :class:`PlanetGrid` whose cells are either open ocean
(``-depth`` km from the coast) or land (``+depth`` km). Continents are
lon/lat boxes, ``(lon_min, lon_max, lat_min, lat_max)`` in degrees, with
the longitude interval half-open and the latitude interval closed.
"""
import numpy as np

from climatesim.ocean_abm.grid import PlanetGrid, lat_from_row, lon_from_col

DEFAULT_DEPTH = 1000.0


def land_mask(rows, cols, boxes):
    lats = lat_from_row(np.arange(rows, dtype=float), rows)[:, None]
    lons = lon_from_col(np.arange(cols, dtype=float), cols)[None, :]
    mask = np.zeros((rows, cols), dtype=bool)
    for lon_min, lon_max, lat_min, lat_max in boxes:
        mask |= (lons >= lon_min) & (lons < lon_max) & (lats >= lat_min) & (lats <= lat_max)
    return mask


def continents_grid(rows, cols, boxes, depth=DEFAULT_DEPTH):
    mask = land_mask(rows, cols, boxes)
    return PlanetGrid(np.where(mask, depth, -depth))


def all_ocean_grid(rows=180, cols=360, depth=DEFAULT_DEPTH):
    return continents_grid(rows, cols, [], depth)


def straight_coast_grid(rows=180, cols=360, depth=DEFAULT_DEPTH):
    """One rectangular continent from lon 0 to 60 and lat -30 to 30."""
    return continents_grid(rows, cols, [(0.0, 60.0, -30.0, 30.0)], depth)


def peninsula_grid(rows=60, cols=90, depth=DEFAULT_DEPTH, tip_lat=1.0):
    """A narrow land strip hanging from the north pole down to ``tip_lat``."""
    return continents_grid(rows, cols, [(20.0, 32.0, tip_lat, 90.0)], depth)


def channel_grid(rows=60, cols=90, depth=DEFAULT_DEPTH):
    """Two continents separated by a narrow north-south channel.

    On the default 60x90 grid the channel spans columns 40 to 45.
    """
    return continents_grid(rows, cols, [(-60.0, -20.0, -30.0, 30.0),
                                        (-4.0, 40.0, -30.0, 30.0)], depth)


SCENARIOS = {
    'all-ocean': all_ocean_grid,
    'coast': straight_coast_grid,
    'peninsula': peninsula_grid,
    'channel': channel_grid,
}


def flat_itcz(cols, lat=0.0, months=tuple(range(12))):
    """ITCZ lines at a constant latitude, keyed by month."""
    return {int(m): np.full(cols, float(lat)) for m in months}
