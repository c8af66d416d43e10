"""Spawn planning for both passes.

Phase 1 seeds eastward counter-current agents along the ITCZ: one just east
of every west coast plus gap-fill seeds at a fixed column interval. Phase 2
seeds the return currents from each counter-current impact; the spawn point
is found by marching west out of the coastal buffer into deep water and
then stepping a fixed distance further offshore.
"""
import logging
import math
from collections import namedtuple

log = logging.getLogger(__name__)

SpawnPoint = namedtuple('SpawnPoint', ['x', 'y', 'fallback'])


def km_to_cells(km, lat, cols, radius_km=6371.0):
    """Columns spanned by ``km`` along the parallel at ``lat`` (deg)."""
    cos_lat = max(math.cos(math.radians(lat)), 0.01)
    cell_km = 2.0 * math.pi * radius_km * cos_lat / cols
    return km / cell_km


class SpawnPlanner:
    def __init__(self, sampler, params, numerics):
        self.sampler = sampler
        self.params = params
        self.numerics = numerics
        self.rows = sampler.rows
        self.cols = sampler.cols

    def counter_current_spawns(self, itcz_rows):
        """Return ``(col, row)`` seeds for the eastward pass.

        A column is skipped when its ITCZ row is off the grid or the field
        there is not clearly ocean. Otherwise it is seeded if the cell to the
        west is wall, or if it falls on the gap-fill interval.
        """
        interval = max(1, self.cols // self.params.spawn_density)
        seeds = []
        for col in range(self.cols):
            row = float(itcz_rows[col])
            if row < 0 or row >= self.rows:
                continue
            if self.sampler.value(col, row) > self.params.spawn_max_field:
                continue
            west_is_wall = self.sampler.cell(col - 1, math.floor(row + 0.5)) > 0
            if west_is_wall or col % interval == 0:
                seeds.append((col, row))
        log.debug('[spawn] %d counter-current seeds (gap-fill every %d columns)',
                  len(seeds), interval)
        return seeds

    def deep_water_west_of(self, x, y):
        """March west in small steps until the field is deep ocean.

        Returns ``(x, found)``; when no deep water is found within the step
        budget the fallback position ``x - raycast_fallback`` is returned.
        """
        step = self.numerics.raycast_step
        cur = x
        for _ in range(self.numerics.raycast_max_iterations):
            if self.sampler.value(cur, y) < self.params.deep_water_field:
                return cur - self.numerics.raycast_clearance, True
            cur -= step
        return x - self.numerics.raycast_fallback, False

    def return_current_spawn(self, hit_x, hit_y, lat):
        """Spawn point of the EC_N/EC_S pair for an impact at (hit_x, hit_y)."""
        safe_x, found = self.deep_water_west_of(hit_x, hit_y)
        offset = km_to_cells(self.params.spawn_offset_km, lat, self.cols,
                             self.params.planet_radius_km)
        if not found:
            log.debug('[spawn] no deep water within %d steps of x=%.2f, y=%.2f',
                      self.numerics.raycast_max_iterations, hit_x, hit_y)
        return SpawnPoint((safe_x - offset) % self.cols, hit_y, not found)
