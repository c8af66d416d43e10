"""Current agents and their lifecycle state machine.

Each pass owns a transition table mapping ``(state, event)`` to
``(next_state, cause)``. Terminal states (IMPACT, STUCK, DEAD) accept no
events; an event with no entry for the current state is a programming error
and raises ``RuntimeError``.
"""
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from climatesim.ocean_abm.grid import wrap_delta


class CurrentType(Enum):
    ECC = 'ECC'
    EC_N = 'EC_N'
    EC_S = 'EC_S'


class AgentState(Enum):
    ACTIVE = 'active'
    CRAWLING = 'crawling'
    IMPACT = 'impact'
    STUCK = 'stuck'
    DEAD = 'dead'


LIVE_STATES = frozenset({AgentState.ACTIVE, AgentState.CRAWLING})


class TerminationCause(Enum):
    IMPACT = 'Impact'
    STAGNATION = 'Stagnation'
    SPEED_FLOOR = 'SpeedFloor'
    DEFLECTION = 'Deflection'
    POLAR_EXIT = 'PolarExit'
    ARRIVAL = 'Arrival'
    PRUNED = 'Pruned'
    TRAPPED = 'Trapped'
    BUDGET_EXHAUSTED = 'BudgetExhausted'


class Event(Enum):
    CRAWL = 'crawl'
    RESUME = 'resume'
    HEAD_ON = 'head_on'
    ARRIVED = 'arrived'
    STAGNATED = 'stagnated'
    SLOWED = 'slowed'
    DEFLECTED = 'deflected'
    POLAR = 'polar'
    PRUNED = 'pruned'
    TRAPPED = 'trapped'
    EXHAUSTED = 'exhausted'


_SHARED_ENDINGS = {
    Event.SLOWED: (AgentState.STUCK, TerminationCause.SPEED_FLOOR),
    Event.TRAPPED: (AgentState.STUCK, TerminationCause.TRAPPED),
    Event.PRUNED: (AgentState.DEAD, TerminationCause.PRUNED),
    Event.EXHAUSTED: (AgentState.DEAD, TerminationCause.BUDGET_EXHAUSTED),
}


def _transition_table(endings, live_states, extra=None):
    table = {}
    merged = dict(_SHARED_ENDINGS)
    merged.update(endings)
    for state in live_states:
        for event, outcome in merged.items():
            table[(state, event)] = outcome
    table.update(extra or {})
    return table


COUNTER_CURRENT_TRANSITIONS = _transition_table(
    {
        Event.HEAD_ON: (AgentState.IMPACT, TerminationCause.IMPACT),
        Event.STAGNATED: (AgentState.IMPACT, TerminationCause.STAGNATION),
        Event.DEFLECTED: (AgentState.DEAD, TerminationCause.DEFLECTION),
    },
    live_states=(AgentState.ACTIVE,),
)

SPLIT_CURRENT_TRANSITIONS = _transition_table(
    {
        Event.HEAD_ON: (AgentState.DEAD, TerminationCause.ARRIVAL),
        Event.ARRIVED: (AgentState.DEAD, TerminationCause.ARRIVAL),
        Event.STAGNATED: (AgentState.STUCK, TerminationCause.STAGNATION),
        Event.POLAR: (AgentState.DEAD, TerminationCause.POLAR_EXIT),
    },
    live_states=(AgentState.ACTIVE, AgentState.CRAWLING),
    extra={
        (AgentState.ACTIVE, Event.CRAWL): (AgentState.CRAWLING, None),
        (AgentState.CRAWLING, Event.RESUME): (AgentState.ACTIVE, None),
    },
)


@dataclass
class Agent:
    """A single current particle.

    ``history`` is the ring buffer of recent outer-step positions used for
    stagnation detection; ``points`` is the full trajectory of
    :class:`~climatesim.ocean_abm.streamlines.StreamlinePoint` samples.
    """
    id: int
    x: float
    y: float
    vx: float
    vy: float
    kind: CurrentType
    window: int = 12
    state: AgentState = AgentState.ACTIVE
    cause: Optional[TerminationCause] = None
    age: int = 0
    slides: int = 0
    parent: Optional[int] = None
    points: List = field(default_factory=list)
    history: deque = field(init=False, repr=False)

    def __post_init__(self):
        self.history = deque(maxlen=self.window)

    @property
    def alive(self):
        return self.state in LIVE_STATES

    def apply(self, event, table):
        """Advance the state machine; returns the new state."""
        try:
            state, cause = table[(self.state, event)]
        except KeyError:
            raise RuntimeError(
                f'agent {self.id} ({self.kind.value}): no transition for {event.value} '
                f'from {self.state.value}'
            ) from None
        self.state = state
        if cause is not None:
            self.cause = cause
        return state

    def remember(self):
        self.history.append((self.x, self.y))

    def net_displacement(self, cols):
        """Wrap-aware distance between the oldest and newest remembered positions."""
        (x0, y0), (x1, y1) = self.history[0], self.history[-1]
        return ((wrap_delta(x1 - x0, cols)) ** 2 + (y1 - y0) ** 2) ** 0.5

    def is_stagnant(self, cols, min_displacement):
        """True once the ring buffer is full and the net motion across it is too small."""
        if len(self.history) < self.window:
            return False
        return self.net_displacement(cols) < min_displacement
