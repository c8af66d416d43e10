"""Force models of the two advection passes.

A model advances one agent by one sub-step: it computes the candidate
velocity from its forcing, resolves the move against the collision field
and applies its own termination rules. It returns ``(event, move)`` where
``event`` is the terminal :class:`Event` or ``None``. Non-terminal state
changes (crawling) are applied to the agent directly.
"""
import math

from climatesim.ocean_abm.agents import (
    AgentState, COUNTER_CURRENT_TRANSITIONS, CurrentType, Event, SPLIT_CURRENT_TRANSITIONS,
)
from climatesim.ocean_abm.control import LatitudeController
from climatesim.ocean_abm.environment import unit_normal
from climatesim.ocean_abm.grid import lat_from_row, row_from_lat, wrap_col
from climatesim.ocean_abm.movement import MoveKind, resolve_move, slide_along


def _clamp_speed(vx, vy, max_speed):
    speed = math.hypot(vx, vy)
    if speed > max_speed:
        scale = max_speed / speed
        vx *= scale
        vy *= scale
    return vx, vy, speed


class _ForceModel:
    phase = 0
    transitions = {}

    def __init__(self, sampler, itcz_lats, params, numerics):
        self.sampler = sampler
        self.rows = sampler.rows
        self.cols = sampler.cols
        self.params = params
        self.numerics = numerics
        self.dt = numerics.dt
        self.itcz_lats = [float(v) for v in itcz_lats]
        self.itcz_rows = [row_from_lat(v, self.rows) for v in self.itcz_lats]

    def column(self, x):
        return int(math.floor(x)) % self.cols

    def _adopt(self, agent, move, max_speed):
        """Take the resolved position, clamp speed and report a speed-floor stop."""
        agent.x = wrap_col(move.x, self.cols)
        agent.y = move.y
        vx, vy, speed = _clamp_speed(move.vx, move.vy, max_speed)
        if speed < self.numerics.speed_floor:
            return Event.SLOWED
        agent.vx = vx
        agent.vy = vy
        return None

    def stagnation_event(self, agent):
        return Event.STAGNATED


class CounterCurrentModel(_ForceModel):
    """Eastward equatorial counter-current riding the ITCZ."""
    phase = 1
    kind = CurrentType.ECC
    transitions = COUNTER_CURRENT_TRANSITIONS

    def __init__(self, sampler, itcz_lats, params, numerics):
        super().__init__(sampler, itcz_lats, params, numerics)
        self.east_accel = params.base_speed * params.east_accel_factor
        self.max_speed = params.max_speed_ecc * params.base_speed
        self.max_offset = params.max_deflection_deg * params.deflection_margin

    def spawn_velocity(self):
        return self.params.base_speed, 0.0

    def substep(self, agent):
        col = self.column(agent.x)
        ay = (self.itcz_rows[col] - agent.y) * self.params.pattern_force
        vx = agent.vx + self.east_accel
        vy = agent.vy + ay

        move = resolve_move(self.sampler, agent.x, agent.y, vx, vy, self.dt, self.numerics)
        if move.kind is MoveKind.HEAD_ON:
            return Event.HEAD_ON, move
        if move.kind is MoveKind.SLIDE:
            agent.slides += 1

        event = self._adopt(agent, move, self.max_speed)
        if event is not None:
            return event, move

        col = self.column(agent.x)
        if abs(lat_from_row(agent.y, self.rows) - self.itcz_lats[col]) > self.max_offset:
            return Event.DEFLECTED, move
        return None, move


class SplitCurrentModel(_ForceModel):
    """Westward return current steered to ITCZ ± gap.

    EC_N heads north (toward row 0) and EC_S south. A current arrives when
    it hits a west-facing coast head-on, or when it stalls (speed floor or
    stagnation) while touching one.
    """
    phase = 2
    transitions = SPLIT_CURRENT_TRANSITIONS

    def __init__(self, sampler, itcz_lats, params, numerics):
        super().__init__(sampler, itcz_lats, params, numerics)
        self.drive = -params.base_speed * params.east_accel_factor
        self.max_speed = params.max_speed_ec * params.base_speed
        self.controller = LatitudeController(params.ec_pattern_force, params.ec_damping,
                                             params.damping_window_rows, params.critical_boost)
        self._targets = {
            CurrentType.EC_N: [row_from_lat(v + params.ec_lat_gap_deg, self.rows)
                               for v in self.itcz_lats],
            CurrentType.EC_S: [row_from_lat(v - params.ec_lat_gap_deg, self.rows)
                               for v in self.itcz_lats],
        }

    def spawn_velocity(self, kind):
        vx = -self.params.base_speed * self.params.ec_initial_speed_factor
        drift = self.params.ec_poleward_drift
        return (vx, -drift) if kind is CurrentType.EC_N else (vx, drift)

    def target_row(self, agent):
        return self._targets[agent.kind][self.column(agent.x)]

    def _west_wall_normal(self, dist, gx, gy):
        """Normal of a nearby west-facing wall, or None."""
        if dist <= -self.params.repulsion_range:
            return None
        nx, ny, length = unit_normal(gx, gy, self.numerics.gradient_epsilon)
        if length <= self.numerics.gradient_epsilon or nx >= -self.numerics.west_wall_normal:
            return None
        return nx, ny

    def at_west_wall(self, agent):
        """True while the agent touches a west-facing coast."""
        here = self.sampler.sample(agent.x, agent.y)
        return self._west_wall_normal(here.dist, here.gx, here.gy) is not None

    def stagnation_event(self, agent):
        # repulsion can hold a current just short of the coast it is reaching
        return Event.ARRIVED if self.at_west_wall(agent) else Event.STAGNATED

    def _crawl_velocity(self, nx, ny, error):
        # tangent whose y component reduces |error|
        tx, ty = -ny, nx
        if ty * error < 0:
            tx, ty = -tx, -ty
        speed = self.params.base_speed * self.params.crawl_speed_factor
        push = self.params.crawl_push
        return tx * speed - nx * push, ty * speed - ny * push

    def substep(self, agent):
        p = self.params
        error = self.target_row(agent) - agent.y
        here = self.sampler.sample(agent.x, agent.y)
        wall = self._west_wall_normal(here.dist, here.gx, here.gy)

        if wall is not None and abs(error) > p.crawl_error_rows:
            if agent.state is AgentState.ACTIVE:
                agent.apply(Event.CRAWL, self.transitions)
            vx, vy = self._crawl_velocity(wall[0], wall[1], error)
        else:
            if agent.state is AgentState.CRAWLING:
                agent.apply(Event.RESUME, self.transitions)
            vx = agent.vx + self.drive
            vy = agent.vy + self.controller.update(error, agent.vy)
            ahead = self.sampler.sample(agent.x + vx * self.dt, agent.y + vy * self.dt)
            if ahead.dist > -p.repulsion_range:
                nx, ny, length = unit_normal(ahead.gx, ahead.gy, self.numerics.gradient_epsilon)
                if length > self.numerics.gradient_epsilon:
                    rep = p.repulsion_strength * (1.0 - ahead.dist / -p.repulsion_range)
                    vx -= nx * rep
                    vy -= ny * rep

        move = resolve_move(self.sampler, agent.x, agent.y, vx, vy, self.dt, self.numerics)
        if move.kind is MoveKind.HEAD_ON:
            if move.nx < -self.numerics.west_wall_normal:
                return Event.HEAD_ON, move
            move = slide_along(move, self.numerics, p.slide_friction)
        if move.kind is MoveKind.TRAPPED:
            return Event.TRAPPED, move
        if move.kind is MoveKind.SLIDE:
            agent.slides += 1

        event = self._adopt(agent, move, self.max_speed)
        if event is not None:
            if self.at_west_wall(agent):
                return Event.ARRIVED, move
            return event, move
        if abs(lat_from_row(agent.y, self.rows)) > p.polar_exit_lat:
            return Event.POLAR, move
        return None, move
