"""Spatial deduplication of parallel flows.

One cache per month is shared by both passes. The first agent to reach a
cell records its velocity there; a later agent entering the cell with a
nearly parallel velocity is redundant and gets pruned. An agent never
prunes itself on a cell it recorded.
"""
import math

import numpy as np


class FlowPruningCache:
    """Single-writer per-cell record of the first flow seen in each cell."""

    def __init__(self, rows, cols, similarity=0.95):
        self.rows = int(rows)
        self.cols = int(cols)
        self.similarity = float(similarity)
        self.u = np.zeros((self.rows, self.cols), dtype=float)
        self.v = np.zeros((self.rows, self.cols), dtype=float)
        self.owner = np.full((self.rows, self.cols), -1, dtype=np.int64)

    def cell_of(self, x, y):
        col = int(math.floor(x + 0.5)) % self.cols
        row = min(max(int(math.floor(y + 0.5)), 0), self.rows - 1)
        return row, col

    def check(self, agent_id, x, y, vx, vy):
        """Record or compare the flow at (x, y). Returns True if the agent should be pruned."""
        row, col = self.cell_of(x, y)
        owner = int(self.owner[row, col])
        if owner < 0:
            self.owner[row, col] = agent_id
            self.u[row, col] = vx
            self.v[row, col] = vy
            return False
        if owner == agent_id:
            return False
        cu = float(self.u[row, col])
        cv = float(self.v[row, col])
        dot = vx * cu + vy * cv
        norms = math.hypot(vx, vy) * math.hypot(cu, cv)
        return dot / (norms + 1e-4) > self.similarity

    @property
    def occupied(self):
        """Number of cells holding a recorded flow."""
        return int(np.count_nonzero(self.owner >= 0))
