"""Diagnostics, frame capture and post-run analysis of the ocean model.

Diagnostics flag numerically suspicious events (return currents dying young,
stagnating agents, spawn raycasts that found no deep water). They are
collected across passes and months and mirrored to the log at WARNING.

``FrameRecorder`` is an optional per-step observer used for step-through
debugging. It only reads agent state; enabling it never changes a run.
"""
import logging
from collections import namedtuple
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import pandas as pd

log = logging.getLogger(__name__)


class DiagnosticKind(Enum):
    EC_INFANT_DEATH = 'EC_INFANT_DEATH'
    STAGNATION = 'STAGNATION'
    SPAWN_FALLBACK = 'SPAWN_FALLBACK'


@dataclass
class DiagnosticLog:
    kind: DiagnosticKind
    x: float
    y: float
    lat: float
    lon: float
    age: int
    message: str
    month: Optional[int] = None
    agent_id: Optional[int] = None

    def describe(self):
        return f'[Lat:{self.lat:.1f}, Lon:{self.lon:.1f}] {self.message}'


class DiagnosticsCollector:
    """Accumulates diagnostics across passes and months."""

    def __init__(self):
        self._logs = []

    def add(self, entry):
        self._logs.append(entry)
        log.warning('[diag] %s month=%s %s', entry.kind.value, entry.month, entry.describe())
        return entry

    def by_kind(self, kind):
        return [e for e in self._logs if e.kind is kind]

    def for_month(self, month):
        return [e for e in self._logs if e.month == month]

    def __iter__(self):
        return iter(self._logs)

    def __len__(self):
        return len(self._logs)

    def to_list(self):
        return list(self._logs)


def diagnostics_to_frame(entries):
    columns = ['month', 'kind', 'agent_id', 'x', 'y', 'lat', 'lon', 'age', 'message']
    records = [{
        'month': e.month, 'kind': e.kind.value, 'agent_id': e.agent_id, 'x': e.x, 'y': e.y,
        'lat': e.lat, 'lon': e.lon, 'age': e.age, 'message': e.message,
    } for e in entries]
    return pd.DataFrame.from_records(records, columns=columns)


# ---------------------------------------------------------------------------
# Frame capture
# ---------------------------------------------------------------------------

AgentSnapshot = namedtuple('AgentSnapshot', ['id', 'kind', 'x', 'y', 'vx', 'vy', 'state', 'cause'])


@dataclass
class Frame:
    step: int
    phase: int
    agents: List[AgentSnapshot]


class FrameRecorder:
    """Step observer collecting a snapshot of every agent handled in a step."""

    def __init__(self):
        self.frames = []

    def __call__(self, step, phase, agents):
        snaps = [AgentSnapshot(a.id, a.kind.value, a.x, a.y, a.vx, a.vy, a.state.value,
                               a.cause.value if a.cause is not None else None)
                 for a in agents]
        self.frames.append(Frame(step, phase, snaps))

    def __len__(self):
        return len(self.frames)


# ---------------------------------------------------------------------------
# Post-run analysis
# ---------------------------------------------------------------------------

@dataclass
class CheckResult:
    name: str
    passed: bool
    message: str
    samples: List[str] = field(default_factory=list)


def analyze_result(result, max_samples=3):
    """Summarize an :class:`OceanCurrentResult` as a list of checks.

    - ocean diagnostics: fails if any return current died in infancy, and
      lists up to ``max_samples`` of them as ``[Lat:.., Lon:..] message``;
    - impact events: passes when at least one impact was recorded;
    - streamlines: passes when every simulated month produced a streamline.
    """
    checks = []

    infant = [e for e in result.diagnostics if e.kind is DiagnosticKind.EC_INFANT_DEATH]
    if infant:
        checks.append(CheckResult(
            'Ocean Diagnostics', False,
            f'{len(infant)} return currents died within their first steps',
            [e.describe() for e in infant[:max_samples]],
        ))
    else:
        checks.append(CheckResult('Ocean Diagnostics', True, 'no return-current infant deaths'))

    n_impacts = sum(len(m.impacts) for m in result.months.values())
    checks.append(CheckResult(
        'Impact Events', n_impacts > 0,
        f'{n_impacts} impact events across {len(result.months)} months',
    ))

    empty = sorted(m for m, r in result.months.items() if not r.streamlines)
    checks.append(CheckResult(
        'Streamlines', not empty,
        'every month produced streamlines' if not empty
        else f'no streamlines for months {empty}',
    ))
    return checks
