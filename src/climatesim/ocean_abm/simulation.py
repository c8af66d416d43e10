"""Ocean-current agent simulation.

Usage:
    from climatesim.ocean_abm.simulation import compute_ocean_currents

    result = compute_ocean_currents(grid, itcz_lines)
    for line in result[0].streamlines:
        ...

Each simulated month runs two causally chained passes over the same
collision field:

1. Phase 1 seeds eastward counter-current (ECC) agents along the ITCZ and
   integrates them until they hit a coast, stagnate, deflect away from the
   ITCZ or get pruned. Head-on hits become ECC impacts, each with a planned
   return-current spawn point.
2. Phase 2 seeds one north (EC_N) and one south (EC_S) return current per
   ECC impact and steers them westward toward ITCZ ± gap.

Both passes run through ``_MonthRun._run_pass``; only the force model
differs. A step observer (``FrameRecorder``) can capture every step of one
month without affecting the run.
"""
import argparse
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from climatesim.ocean_abm.agents import (
    Agent, AgentState, CurrentType, Event, TerminationCause,
)
from climatesim.ocean_abm.behaviors import CounterCurrentModel, SplitCurrentModel
from climatesim.ocean_abm.collision import CollisionField
from climatesim.ocean_abm.config import NumericsParams, PhysicsParams
from climatesim.ocean_abm.diagnostics import (
    DiagnosticKind, DiagnosticLog, DiagnosticsCollector, FrameRecorder, analyze_result,
    diagnostics_to_frame,
)
from climatesim.ocean_abm.environment import EnvironmentSampler
from climatesim.ocean_abm.grid import cell_distance, lat_from_row, lon_from_col, wrap_col
from climatesim.ocean_abm.movement import MoveKind
from climatesim.ocean_abm.pruning import FlowPruningCache
from climatesim.ocean_abm.spawn import SpawnPlanner
from climatesim.ocean_abm.streamlines import (
    ImpactKind, ImpactPoint, StreamlineAssembler, StreamlinePoint, impacts_to_frame,
    streamlines_to_frame,
)
from climatesim.ocean_abm.utils import configure_logging

log = logging.getLogger(__name__)

DEFAULT_MONTHS = (0, 6)

# phase-2 endings that say nothing about the health of a return current
_NOT_INFANT_DEATHS = (TerminationCause.PRUNED, TerminationCause.BUDGET_EXHAUSTED)


@dataclass
class MonthResult:
    month: int
    streamlines: List
    impacts: List[ImpactPoint]
    diagnostics: List[DiagnosticLog]
    agents: List[Agent]
    frames: Optional[List] = None

    @property
    def counter_impacts(self):
        return [ip for ip in self.impacts if ip.kind is ImpactKind.ECC]

    @property
    def return_impacts(self):
        return [ip for ip in self.impacts if ip.kind is ImpactKind.EC]

    def agents_of(self, *kinds):
        return [a for a in self.agents if a.kind in kinds]


@dataclass
class OceanCurrentResult:
    months: Dict[int, MonthResult]
    collision: CollisionField
    diagnostics: List[DiagnosticLog]

    def __getitem__(self, month):
        return self.months[month]

    def streamlines_frame(self):
        frames = [streamlines_to_frame(r.streamlines, m) for m, r in sorted(self.months.items())]
        return pd.concat(frames, ignore_index=True) if frames else streamlines_to_frame([])

    def impacts_frame(self):
        frames = [impacts_to_frame(r.impacts, m) for m, r in sorted(self.months.items())]
        return pd.concat(frames, ignore_index=True) if frames else impacts_to_frame([])

    def diagnostics_frame(self):
        return diagnostics_to_frame(self.diagnostics)


def _hit_point(agent, move):
    """Bisected wall hit of a head-on move, else the agent's own position."""
    if move is not None and move.kind is MoveKind.HEAD_ON:
        return move.hit_x, move.hit_y
    return agent.x, agent.y


class _MonthRun:
    """State of one month: agents, impacts, the pruning cache and the step counter."""

    def __init__(self, sim, month, itcz_lats, observer=None):
        self.sim = sim
        self.month = month
        self.params = sim.params
        self.numerics = sim.numerics
        self.rows = sim.collision.rows
        self.cols = sim.collision.cols
        self.observer = observer
        self.cache = FlowPruningCache(self.rows, self.cols, self.numerics.prune_similarity)
        self.counter = CounterCurrentModel(sim.sampler, itcz_lats, self.params, self.numerics)
        self.split = SplitCurrentModel(sim.sampler, itcz_lats, self.params, self.numerics)
        self.rng = np.random.default_rng(self.params.seed)
        self.agents = []
        self.impacts = []
        self.counter_impacts = []
        self.diagnostics = []
        self._next_id = 0
        self._step = 0

    # -- bookkeeping -------------------------------------------------------
    def _spawn(self, x, y, vx, vy, kind, parent=None):
        agent = Agent(self._next_id, float(x), float(y), float(vx), float(vy), kind,
                      window=self.numerics.stagnation_window, parent=parent)
        self._next_id += 1
        self._record_sample(agent)
        agent.remember()
        self.agents.append(agent)
        return agent

    def _record_sample(self, agent):
        agent.points.append(StreamlinePoint(
            agent.x, agent.y, lon_from_col(agent.x, self.cols), lat_from_row(agent.y, self.rows),
            agent.vx, agent.vy,
        ))

    def _diagnose(self, kind, agent, message, x=None, y=None):
        x = agent.x if x is None else x
        y = agent.y if y is None else y
        entry = DiagnosticLog(kind, x, y, lat_from_row(y, self.rows), lon_from_col(x, self.cols),
                              agent.age, message, self.month, agent.id)
        self.diagnostics.append(entry)
        self.sim.collector.add(entry)

    def _record_counter_impact(self, agent, hit_x, hit_y):
        hit_x = wrap_col(hit_x, self.cols)
        for ip in self.counter_impacts:
            if cell_distance(ip.x, ip.y, hit_x, hit_y, self.cols) < self.params.impact_merge_radius:
                ip.merged += 1
                return ip
        lat = lat_from_row(hit_y, self.rows)
        spawn = self.sim.planner.return_current_spawn(hit_x, hit_y, lat)
        ip = ImpactPoint(hit_x, hit_y, lat, lon_from_col(hit_x, self.cols), ImpactKind.ECC,
                         agent.id, spawn.x, spawn.y)
        self.counter_impacts.append(ip)
        self.impacts.append(ip)
        if spawn.fallback:
            self._diagnose(DiagnosticKind.SPAWN_FALLBACK, agent,
                           'no deep water west of impact, using fallback spawn',
                           x=hit_x, y=hit_y)
        return ip

    def _record_return_impact(self, agent, hit_x, hit_y):
        rate = self.params.ec_impact_sample_rate
        if rate < 1.0 and self.rng.random() >= rate:
            return None
        hit_x = wrap_col(hit_x, self.cols)
        ip = ImpactPoint(hit_x, hit_y, lat_from_row(hit_y, self.rows),
                         lon_from_col(hit_x, self.cols), ImpactKind.EC, agent.id)
        self.impacts.append(ip)
        return ip

    def _terminate(self, agent, event, model, move=None):
        agent.apply(event, model.transitions)
        cause = agent.cause
        if model.phase == 1 and agent.state is AgentState.IMPACT:
            self._record_counter_impact(agent, *_hit_point(agent, move))
        elif cause is TerminationCause.ARRIVAL:
            self._record_return_impact(agent, *_hit_point(agent, move))

        if cause is TerminationCause.STAGNATION:
            self._diagnose(DiagnosticKind.STAGNATION, agent,
                           f'{agent.kind.value} stagnated after {agent.age} steps')
        if (model.phase == 2 and cause not in _NOT_INFANT_DEATHS
                and agent.age < self.params.infant_age):
            self._diagnose(DiagnosticKind.EC_INFANT_DEATH, agent,
                           f'{agent.kind.value} died at age {agent.age}: {cause.value}')
        log.debug('[phase%d] agent %d (%s) %s/%s at x=%.2f y=%.2f age=%d', model.phase,
                  agent.id, agent.kind.value, agent.state.value, cause.value,
                  agent.x, agent.y, agent.age)

    # -- integration -------------------------------------------------------
    def _step_agent(self, agent, model):
        n = self.numerics
        if len(agent.points) > n.prune_min_samples and self.cache.check(
                agent.id, agent.x, agent.y, agent.vx, agent.vy):
            self._terminate(agent, Event.PRUNED, model)
            return
        for _ in range(n.sub_steps):
            event, move = model.substep(agent)
            if event is not None:
                self._terminate(agent, event, model, move)
                return
        agent.age += 1
        self._record_sample(agent)
        agent.remember()
        if agent.is_stagnant(self.cols, n.stagnation_min_displacement):
            self._terminate(agent, model.stagnation_event(agent), model)

    def _run_pass(self, agents, model):
        active = list(agents)
        for _ in range(self.params.max_steps):
            if not active:
                break
            for agent in active:
                self._step_agent(agent, model)
            if self.observer is not None:
                self.observer(self._step, model.phase, active)
            self._step += 1
            active = [a for a in active if a.alive]
        for agent in active:
            self._terminate(agent, Event.EXHAUSTED, model)

    def run(self):
        seeds = self.sim.planner.counter_current_spawns(self.counter.itcz_rows)
        vx, vy = self.counter.spawn_velocity()
        ecc = [self._spawn(col, row, vx, vy, CurrentType.ECC) for col, row in seeds]
        log.info('[phase1] month %d: %d counter-current agents', self.month, len(ecc))
        self._run_pass(ecc, self.counter)
        log.info('[phase1] month %d: %d impacts (%d merged hits)', self.month,
                 len(self.counter_impacts), sum(ip.merged for ip in self.counter_impacts))

        ec = []
        for index, ip in enumerate(self.counter_impacts):
            for kind in (CurrentType.EC_N, CurrentType.EC_S):
                vx, vy = self.split.spawn_velocity(kind)
                ec.append(self._spawn(ip.spawn_x, ip.spawn_y, vx, vy, kind, parent=index))
        log.info('[phase2] month %d: %d return-current agents', self.month, len(ec))
        self._run_pass(ec, self.split)

        assembler = StreamlineAssembler(self.numerics.min_streamline_samples,
                                        self.params.streamline_strength)
        streamlines = assembler.assemble(self.agents)
        log.info('[ocean] month %d: %d streamlines, %d impacts, %d diagnostics', self.month,
                 len(streamlines), len(self.impacts), len(self.diagnostics))
        return MonthResult(self.month, streamlines, self.impacts, self.diagnostics, self.agents)


class OceanCurrentSimulation:
    """Builds the collision field once and simulates any number of months on it."""

    def __init__(self, grid, params=None, numerics=None):
        self.grid = grid
        self.params = params if params is not None else PhysicsParams()
        self.numerics = numerics if numerics is not None else NumericsParams()
        self.collision = CollisionField.build(grid, self.params)
        self.sampler = EnvironmentSampler(self.collision)
        self.planner = SpawnPlanner(self.sampler, self.params, self.numerics)
        self.collector = DiagnosticsCollector()

    def run_month(self, month, itcz_line, observer=None):
        """Simulate one month for a single ITCZ latitude line of ``cols`` values."""
        self.grid.itcz_rows(itcz_line)
        lats = np.asarray(itcz_line, dtype=float)
        return _MonthRun(self, month, lats, observer).run()

    def run(self, itcz_lines, months=DEFAULT_MONTHS, capture_month=None):
        results = {}
        for month in months:
            if not 0 <= int(month) <= 11:
                raise ValueError(f'month must lie in 0..11, got {month}')
            try:
                line = itcz_lines[month]
            except (KeyError, IndexError):
                raise ValueError(f'no ITCZ line for month {month}') from None
            recorder = FrameRecorder() if month == capture_month else None
            res = self.run_month(month, line, recorder)
            if recorder is not None:
                res.frames = recorder.frames
            results[month] = res
        return OceanCurrentResult(results, self.collision, self.collector.to_list())


def compute_ocean_currents(grid, itcz_lines, params=None, numerics=None,
                           months=DEFAULT_MONTHS, capture_month=None):
    """Compute streamlines, impacts and diagnostics for the requested months.

    ``itcz_lines`` is indexable by month (a mapping or a sequence of twelve)
    and yields ``grid.cols`` ITCZ latitudes per month.
    """
    sim = OceanCurrentSimulation(grid, params, numerics)
    return sim.run(itcz_lines, months=months, capture_month=capture_month)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def _build_parser():
    from climatesim.ocean_abm.scenarios import SCENARIOS

    p = argparse.ArgumentParser(
        prog='climatesim-ocean',
        description='Run the ocean-current agent model on a synthetic planet.')
    p.add_argument('--scenario', choices=sorted(SCENARIOS), default='coast')
    p.add_argument('--rows', type=int, default=180)
    p.add_argument('--cols', type=int, default=360)
    p.add_argument('--itcz-lat', type=float, default=5.0, help='latitude of a flat ITCZ (deg)')
    p.add_argument('--months', type=int, nargs='+', default=list(DEFAULT_MONTHS))
    p.add_argument('--max-steps', type=int, default=None)
    p.add_argument('--capture-month', type=int, default=None,
                   help='record per-step frames of this month')
    p.add_argument('--out', default='ocean_out', help='output directory for CSVs and frames')
    p.add_argument('-v', '--verbose', action='store_true')
    return p


def main(argv=None):
    from climatesim.io.frame_writer import FrameWriter
    from climatesim.ocean_abm.scenarios import SCENARIOS, flat_itcz

    args = _build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    grid = SCENARIOS[args.scenario](args.rows, args.cols)
    overrides = {} if args.max_steps is None else {'max_steps': args.max_steps}
    params = PhysicsParams.from_mapping(overrides)
    itcz = flat_itcz(args.cols, args.itcz_lat, months=args.months)
    result = compute_ocean_currents(grid, itcz, params, months=args.months,
                                    capture_month=args.capture_month)

    os.makedirs(args.out, exist_ok=True)
    result.streamlines_frame().to_csv(os.path.join(args.out, 'streamlines.csv'), index=False)
    result.impacts_frame().to_csv(os.path.join(args.out, 'impacts.csv'), index=False)
    result.diagnostics_frame().to_csv(os.path.join(args.out, 'diagnostics.csv'), index=False)

    if args.capture_month is not None and args.capture_month in result.months:
        with FrameWriter(os.path.join(args.out, 'frames')) as writer:
            writer.write_field(result.collision)
            for frame in result[args.capture_month].frames:
                writer.append(frame)

    for check in analyze_result(result):
        log.info('[check] %s: %s (%s)', check.name, 'PASS' if check.passed else 'FAIL',
                 check.message)
        for sample in check.samples:
            log.info('[check]   %s', sample)
    log.info('[ocean] wrote results to %s', args.out)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
