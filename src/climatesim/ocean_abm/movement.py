"""Collision-aware resolution of one candidate sub-step move.

Both passes share this resolver. Given an agent position and a candidate
velocity it decides whether the move is clear, crosses into the wall
(located by bisection and classified head-on or glancing), or starts from
inside the wall and needs a push back out.
"""
from dataclasses import dataclass
from enum import Enum

from climatesim.ocean_abm.environment import unit_normal


class MoveKind(Enum):
    CLEAR = 'clear'
    SLIDE = 'slide'
    HEAD_ON = 'head_on'
    RECOVER = 'recover'
    TRAPPED = 'trapped'


@dataclass
class MoveResult:
    kind: MoveKind
    x: float
    y: float
    vx: float
    vy: float
    hit_x: float = None
    hit_y: float = None
    nx: float = 0.0
    ny: float = 0.0
    v_dot_n: float = 0.0


def bisect_crossing(sampler, x0, y0, x1, y1, iterations):
    """Approximate the wall crossing on the segment (x0, y0) → (x1, y1).

    The start is assumed open water and the end inside the wall.
    """
    lo_x, lo_y = x0, y0
    hi_x, hi_y = x1, y1
    mid_x, mid_y = x1, y1
    for _ in range(iterations):
        mid_x = (lo_x + hi_x) * 0.5
        mid_y = (lo_y + hi_y) * 0.5
        if sampler.value(mid_x, mid_y) > 0:
            hi_x, hi_y = mid_x, mid_y
        else:
            lo_x, lo_y = mid_x, mid_y
    return mid_x, mid_y


def resolve_move(sampler, x, y, vx, vy, dt, numerics):
    """Resolve the move ``(x, y) + (vx, vy) * dt`` against the collision field.

    Returns a :class:`MoveResult` whose ``x, y, vx, vy`` are the state to adopt:

    - CLEAR: the target is open water, adopt it.
    - HEAD_ON: the move hits a wall with ``v·n`` above the impact threshold;
      position and velocity are left unchanged and the hit point and normal
      are reported for the caller to act on.
    - SLIDE: glancing hit; the normal velocity component is removed and the
      agent sits ``wall_epsilon`` outside the hit point.
    - RECOVER: the target is inside the wall without a crossing (stale
      overlap); the agent is pushed out along -n by the penetration depth.
    - TRAPPED: stale overlap with no usable gradient; nothing changes.
    """
    next_x = x + vx * dt
    next_y = y + vy * dt
    dist_old = sampler.value(x, y)
    ahead = sampler.sample(next_x, next_y)
    eps = numerics.wall_epsilon

    if ahead.dist > 0 and dist_old <= 0:
        hit_x, hit_y = bisect_crossing(sampler, x, y, next_x, next_y,
                                       numerics.bisection_iterations)
        at_hit = sampler.sample(hit_x, hit_y)
        nx, ny, _ = unit_normal(at_hit.gx, at_hit.gy)
        v_dot_n = vx * nx + vy * ny
        if v_dot_n > numerics.impact_threshold:
            return MoveResult(MoveKind.HEAD_ON, x, y, vx, vy, hit_x, hit_y, nx, ny, v_dot_n)
        return MoveResult(MoveKind.SLIDE, hit_x - nx * eps, hit_y - ny * eps,
                          vx - v_dot_n * nx, vy - v_dot_n * ny,
                          hit_x, hit_y, nx, ny, v_dot_n)

    if ahead.dist > 0:
        nx, ny, length = unit_normal(ahead.gx, ahead.gy, numerics.gradient_epsilon)
        if length > numerics.gradient_epsilon:
            push = ahead.dist / length + eps
            return MoveResult(MoveKind.RECOVER, x - nx * push, y - ny * push, vx, vy,
                              nx=nx, ny=ny)
        return MoveResult(MoveKind.TRAPPED, x, y, vx, vy)

    return MoveResult(MoveKind.CLEAR, next_x, next_y, vx, vy)


def slide_along(move, numerics, friction=1.0):
    """Turn a HEAD_ON result into a slide, keeping ``friction`` of the tangential speed."""
    tx = move.vx - move.v_dot_n * move.nx
    ty = move.vy - move.v_dot_n * move.ny
    eps = numerics.wall_epsilon
    return MoveResult(MoveKind.SLIDE, move.hit_x - move.nx * eps, move.hit_y - move.ny * eps,
                      tx * friction, ty * friction, move.hit_x, move.hit_y,
                      move.nx, move.ny, move.v_dot_n)
