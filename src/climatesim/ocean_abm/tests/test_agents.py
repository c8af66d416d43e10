import pytest

from climatesim.ocean_abm.agents import (
    COUNTER_CURRENT_TRANSITIONS, SPLIT_CURRENT_TRANSITIONS, Agent, AgentState, CurrentType,
    Event, TerminationCause,
)


def _agent(kind=CurrentType.ECC, window=12):
    return Agent(0, 1.0, 2.0, 1.0, 0.0, kind, window=window)


def test_counter_current_head_on_is_impact():
    a = _agent()
    assert a.apply(Event.HEAD_ON, COUNTER_CURRENT_TRANSITIONS) is AgentState.IMPACT
    assert a.cause is TerminationCause.IMPACT
    assert not a.alive


def test_counter_current_stagnation_is_impact():
    a = _agent()
    a.apply(Event.STAGNATED, COUNTER_CURRENT_TRANSITIONS)
    assert (a.state, a.cause) == (AgentState.IMPACT, TerminationCause.STAGNATION)


def test_split_current_head_on_is_arrival():
    a = _agent(CurrentType.EC_N)
    a.apply(Event.HEAD_ON, SPLIT_CURRENT_TRANSITIONS)
    assert (a.state, a.cause) == (AgentState.DEAD, TerminationCause.ARRIVAL)


def test_split_current_contact_arrival():
    a = _agent(CurrentType.EC_S)
    a.apply(Event.CRAWL, SPLIT_CURRENT_TRANSITIONS)
    a.apply(Event.ARRIVED, SPLIT_CURRENT_TRANSITIONS)
    assert (a.state, a.cause) == (AgentState.DEAD, TerminationCause.ARRIVAL)
    # counter-currents end on a coast as impacts, never as arrivals
    with pytest.raises(RuntimeError):
        _agent().apply(Event.ARRIVED, COUNTER_CURRENT_TRANSITIONS)


def test_crawling_round_trip_then_polar_exit():
    a = _agent(CurrentType.EC_S)
    a.apply(Event.CRAWL, SPLIT_CURRENT_TRANSITIONS)
    assert a.state is AgentState.CRAWLING and a.alive and a.cause is None
    a.apply(Event.RESUME, SPLIT_CURRENT_TRANSITIONS)
    assert a.state is AgentState.ACTIVE
    a.apply(Event.CRAWL, SPLIT_CURRENT_TRANSITIONS)
    a.apply(Event.POLAR, SPLIT_CURRENT_TRANSITIONS)
    assert (a.state, a.cause) == (AgentState.DEAD, TerminationCause.POLAR_EXIT)


def test_invalid_transitions_raise():
    a = _agent()
    with pytest.raises(RuntimeError):
        a.apply(Event.CRAWL, COUNTER_CURRENT_TRANSITIONS)
    a.apply(Event.SLOWED, COUNTER_CURRENT_TRANSITIONS)
    assert (a.state, a.cause) == (AgentState.STUCK, TerminationCause.SPEED_FLOOR)
    # terminal states accept nothing
    with pytest.raises(RuntimeError):
        a.apply(Event.EXHAUSTED, COUNTER_CURRENT_TRANSITIONS)


def test_stagnation_needs_full_window():
    a = _agent(window=3)
    a.remember()
    a.remember()
    assert not a.is_stagnant(10, 0.25)
    a.remember()
    assert a.is_stagnant(10, 0.25)


def test_stagnation_is_wrap_aware():
    a = _agent(window=3)
    for x in (9.9, 0.0, 0.1):
        a.x = x
        a.remember()
    assert a.net_displacement(10) == pytest.approx(0.2)
    assert a.is_stagnant(10, 0.25)
    a.x = 3.0
    a.remember()
    assert not a.is_stagnant(10, 0.25)
