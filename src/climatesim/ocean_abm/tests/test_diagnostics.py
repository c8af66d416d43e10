import logging

from climatesim.ocean_abm.config import PhysicsParams
from climatesim.ocean_abm.diagnostics import (
    DiagnosticKind, DiagnosticLog, DiagnosticsCollector, analyze_result, diagnostics_to_frame,
)
from climatesim.ocean_abm.scenarios import all_ocean_grid, flat_itcz
from climatesim.ocean_abm.simulation import compute_ocean_currents


def _log(kind, month=0, age=3):
    return DiagnosticLog(kind, 1.0, 2.0, 10.0, -20.0, age, 'EC_N died at age 3: Arrival', month, 7)


def test_collector_groups_and_logs(caplog):
    c = DiagnosticsCollector()
    with caplog.at_level(logging.WARNING, logger='climatesim'):
        c.add(_log(DiagnosticKind.EC_INFANT_DEATH))
        c.add(_log(DiagnosticKind.STAGNATION, month=6))
    assert len(c) == 2
    assert len(c.by_kind(DiagnosticKind.STAGNATION)) == 1
    assert [e.month for e in c.for_month(6)] == [6]
    assert 'EC_INFANT_DEATH' in caplog.text


def test_describe_format():
    assert _log(DiagnosticKind.EC_INFANT_DEATH).describe() == \
        '[Lat:10.0, Lon:-20.0] EC_N died at age 3: Arrival'


def test_diagnostics_frame():
    df = diagnostics_to_frame([_log(DiagnosticKind.SPAWN_FALLBACK)])
    assert df.loc[0, 'kind'] == 'SPAWN_FALLBACK'
    assert df.loc[0, 'agent_id'] == 7


def test_analysis_flags_infant_deaths(channel):
    params = PhysicsParams.from_mapping({
        'max_steps': 40, 'smoothing_iterations': 1, 'collision_buffer': 0.0,
        'spawn_offset_km': 0.0, 'ec_lat_gap_deg': 0.0, 'ec_poleward_drift': 0.0,
        'repulsion_strength': 0.0,
    })
    result = compute_ocean_currents(channel, flat_itcz(90, 0.0), params, months=(0,))
    checks = {c.name: c for c in analyze_result(result)}
    ocean = checks['Ocean Diagnostics']
    assert not ocean.passed
    assert 1 <= len(ocean.samples) <= 3
    assert all(s.startswith('[Lat:') for s in ocean.samples)
    assert checks['Impact Events'].passed


def test_analysis_of_all_ocean_run():
    result = compute_ocean_currents(all_ocean_grid(60, 90), flat_itcz(90, 0.0),
                                    PhysicsParams.from_mapping({'max_steps': 30}), months=(0,))
    checks = {c.name: c for c in analyze_result(result)}
    assert checks['Ocean Diagnostics'].passed
    assert not checks['Impact Events'].passed
    assert result.diagnostics == []
