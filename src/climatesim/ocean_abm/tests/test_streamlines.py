from climatesim.ocean_abm.agents import Agent, CurrentType
from climatesim.ocean_abm.streamlines import (
    ImpactKind, ImpactPoint, StreamlineAssembler, StreamlinePoint, impacts_to_frame,
    streamlines_to_frame,
)


def _agent(agent_id, kind, n_points):
    a = Agent(agent_id, 0.0, 0.0, 1.0, 0.0, kind)
    a.points = [StreamlinePoint(float(i), 1.0, -180.0 + i, 89.0, 1.0, 0.0) for i in range(n_points)]
    return a


def test_assembler_drops_short_trajectories():
    agents = [_agent(0, CurrentType.ECC, 5), _agent(1, CurrentType.ECC, 6),
              _agent(2, CurrentType.EC_N, 7), _agent(3, CurrentType.EC_S, 12)]
    lines = StreamlineAssembler(min_samples=5, strength=2.0).assemble(agents)
    assert [s.agent_id for s in lines] == [1, 2, 3]
    assert [s.kind for s in lines] == ['main', 'split_n', 'split_s']
    assert all(s.strength == 2.0 for s in lines)


def test_streamlines_frame_has_one_row_per_sample():
    lines = StreamlineAssembler().assemble([_agent(4, CurrentType.ECC, 6),
                                            _agent(5, CurrentType.EC_S, 8)])
    df = streamlines_to_frame(lines, month=6)
    assert len(df) == 14
    assert set(df['kind']) == {'main', 'split_s'}
    assert (df['month'] == 6).all()
    assert list(df[df['agent_id'] == 4]['seq']) == list(range(6))


def test_empty_frames_keep_columns():
    assert list(streamlines_to_frame([]).columns)[:3] == ['month', 'streamline', 'agent_id']
    assert len(impacts_to_frame([])) == 0


def test_impacts_frame():
    ips = [ImpactPoint(10.0, 5.0, 40.0, -170.0, ImpactKind.ECC, 3, spawn_x=8.0, spawn_y=5.0,
                       merged=2),
           ImpactPoint(2.0, 7.0, 30.0, -178.0, ImpactKind.EC, 9)]
    df = impacts_to_frame(ips, month=0)
    assert list(df['kind']) == ['ECC', 'EC']
    assert df.loc[0, 'merged'] == 2
    assert df.loc[0, 'spawn_x'] == 8.0
