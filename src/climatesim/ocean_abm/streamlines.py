"""Streamline and impact records, and their tabular export."""
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import pandas as pd

from climatesim.ocean_abm.agents import CurrentType

StreamlinePoint = namedtuple('StreamlinePoint', ['x', 'y', 'lon', 'lat', 'vx', 'vy'])

STREAMLINE_KINDS = {
    CurrentType.ECC: 'main',
    CurrentType.EC_N: 'split_n',
    CurrentType.EC_S: 'split_s',
}


class ImpactKind(Enum):
    ECC = 'ECC'
    EC = 'EC'


@dataclass
class Streamline:
    points: List[StreamlinePoint]
    kind: str
    strength: float
    agent_id: int


@dataclass
class ImpactPoint:
    """A current hitting a coast.

    Counter-current impacts (``ImpactKind.ECC``) also carry the planned
    return-current spawn and the number of later impacts merged into them;
    ``ImpactKind.EC`` marks a return-current arrival.
    """
    x: float
    y: float
    lat: float
    lon: float
    kind: ImpactKind
    agent_id: int
    spawn_x: Optional[float] = None
    spawn_y: Optional[float] = None
    merged: int = 0


@dataclass
class StreamlineAssembler:
    min_samples: int = 5
    strength: float = 2.0

    def assemble(self, agents):
        """Emit a streamline for every agent with more than ``min_samples`` samples."""
        out = []
        for agent in agents:
            if len(agent.points) > self.min_samples:
                out.append(Streamline(list(agent.points), STREAMLINE_KINDS[agent.kind],
                                      self.strength, agent.id))
        return out


def streamlines_to_frame(streamlines, month=None):
    """One row per streamline sample."""
    records = []
    for line_no, line in enumerate(streamlines):
        for seq, p in enumerate(line.points):
            records.append({
                'month': month, 'streamline': line_no, 'agent_id': line.agent_id,
                'kind': line.kind, 'strength': line.strength, 'seq': seq,
                'x': p.x, 'y': p.y, 'lon': p.lon, 'lat': p.lat, 'vx': p.vx, 'vy': p.vy,
            })
    columns = ['month', 'streamline', 'agent_id', 'kind', 'strength', 'seq',
               'x', 'y', 'lon', 'lat', 'vx', 'vy']
    return pd.DataFrame.from_records(records, columns=columns)


def impacts_to_frame(impacts, month=None):
    columns = ['month', 'kind', 'agent_id', 'x', 'y', 'lat', 'lon', 'spawn_x', 'spawn_y', 'merged']
    records = [{
        'month': month, 'kind': ip.kind.value, 'agent_id': ip.agent_id, 'x': ip.x, 'y': ip.y,
        'lat': ip.lat, 'lon': ip.lon, 'spawn_x': ip.spawn_x, 'spawn_y': ip.spawn_y,
        'merged': ip.merged,
    } for ip in impacts]
    return pd.DataFrame.from_records(records, columns=columns)
