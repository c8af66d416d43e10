# -*- coding: utf-8 -*-

"""
ocean_abm/config.py

Centralizes every tunable of the ocean-current agent model. Keeping the
physical constants and the integration numerics in one place keeps the
collision field, both advection passes, the spawn planner and the tests in
agreement about units and defaults.

Contents:
---------
1. OCEAN_PHYSICS:
   - Drive speeds, ITCZ attraction, return-current geometry and the thresholds
     that end an agent's life (deflection, polar exit, infant age).
   - Distances in the collision field are kilometres (negative = ocean,
     positive = land once the coastal buffer is added). Positions and
     velocities are in grid cells.

2. INTEGRATION:
   - Sub-stepping, bisection and epsilon guards of the integrator, plus the
     stagnation window and the pruning similarity threshold.

Usage:
------
    from climatesim.ocean_abm.config import PhysicsParams, NumericsParams

    params = PhysicsParams.from_mapping({'max_steps': 200})
    numerics = NumericsParams()

The dataclasses are frozen; build a new one (``dataclasses.replace`` or
``from_mapping``) instead of mutating a shared instance.
"""
from dataclasses import dataclass, fields, replace

# ───────────────────────────────────────────────────────────────────────────────
# 1) OCEAN PHYSICS (positions in grid cells, distances in km, angles in degrees)
# ───────────────────────────────────────────────────────────────────────────────
OCEAN_PHYSICS = {
    'base_speed': 1.0,              # cells per unit time, eastward drive of the ECC
    'collision_buffer': 50.0,       # km added to distance-to-coast before smoothing
    'smoothing_iterations': 4,      # number of 3x3 box blurs applied to the field
    'pattern_force': 0.02,          # ITCZ spring applied per ECC sub-step (1/time)
    'max_deflection_deg': 10.0,     # allowed ECC latitude excursion from the ITCZ
    'deflection_margin': 1.5,       # multiplier on max_deflection_deg before DEFLECTION
    'east_accel_factor': 0.05,      # ECC eastward acceleration per sub-step, × base_speed
    'max_speed_ecc': 2.5,           # ECC speed clamp, × base_speed
    'spawn_max_field': -20.0,       # km; ECC spawns only where the field is below this
    'spawn_density': 64,            # gap-fill spawn every cols // spawn_density columns

    # Phase 2: westward split (return) currents
    'ec_lat_gap_deg': 5.0,          # return currents target ITCZ ± this latitude
    'ec_poleward_drift': 1.0,       # initial |vy| (cells/time) of EC_N / EC_S
    'ec_initial_speed_factor': 0.5, # initial westward speed, × base_speed
    'ec_pattern_force': 0.05,       # PD spring constant k
    'ec_damping': 0.3,              # PD damping constant d outside the window
    'damping_window_rows': 3.0,     # |error| (rows) below which damping is boosted
    'critical_boost': 1.5,          # boosted damping = critical_boost × 2√k
    'max_speed_ec': 2.0,            # EC speed clamp, × base_speed
    'repulsion_range': 50.0,        # km; soft wall repulsion starts at field > -range
    'repulsion_strength': 0.8,      # peak repulsion acceleration at the wall
    'crawl_error_rows': 2.0,        # |error| (rows) needed to start crawling a wall
    'crawl_speed_factor': 1.0,      # crawl speed along the wall tangent, × base_speed
    'crawl_push': 0.1,              # outward push (cells/time) while crawling
    'slide_friction': 0.9,          # tangential speed kept after a non-arrival head-on hit
    'polar_exit_lat': 85.0,         # |lat| beyond which a return current leaves the map
    'infant_age': 10,               # outer steps; earlier phase-2 deaths are flagged

    # Spawn planning
    'spawn_offset_km': 100.0,       # westward offset of the phase-2 spawn from safe water
    'deep_water_field': -10.0,      # km; raycast stops once the field is below this
    'planet_radius_km': 6371.0,     # used for the km → cells conversion

    # Run control
    'max_steps': 500,               # outer integration steps per pass
    'impact_merge_radius': 1.0,     # cells; ECC impacts closer than this are merged
    'ec_impact_sample_rate': 1.0,   # fraction of EC arrivals recorded as impacts
    'seed': 0,                      # seed of the impact-thinning generator
    'streamline_strength': 2.0,     # strength tag carried by emitted streamlines
}

# ───────────────────────────────────────────────────────────────────────────────
# 2) INTEGRATION NUMERICS (dimensionless unless stated)
# ───────────────────────────────────────────────────────────────────────────────
INTEGRATION = {
    'sub_steps': 10,                    # sub-steps per outer step
    'step_duration': 0.5,               # time covered by one outer step
    'bisection_iterations': 4,          # refinement steps when locating a wall crossing
    'impact_threshold': 0.05,           # v·n above which a wall hit is head-on
    'wall_epsilon': 0.1,                # cells; clearance after slide or push-out
    'gradient_epsilon': 1e-4,           # km/cell; smaller gradients have no usable normal
    'speed_floor': 0.01,                # cells/time; slower agents are STUCK
    'stagnation_window': 12,            # outer steps kept in the position ring buffer
    'stagnation_min_displacement': 0.25,  # cells of net motion required across the window
    'prune_similarity': 0.95,           # cosine above which a cached flow prunes an agent
    'prune_min_samples': 5,             # pruning starts once an agent has more samples
    'min_streamline_samples': 5,        # streamlines need more samples than this
    'raycast_step': 0.5,                # cells per westward raycast step
    'raycast_max_iterations': 40,
    'raycast_fallback': 10.0,           # cells west of the hit when no deep water is found
    'raycast_clearance': 1.0,           # cells added west of the first deep-water sample
    'west_wall_normal': 0.5,            # nx below -this marks a west-facing wall
}


class _ParamsMixin:
    """Shared constructors for the frozen parameter dataclasses."""

    @classmethod
    def from_mapping(cls, overrides=None):
        """Build defaults updated with ``overrides``; unknown keys raise ValueError."""
        overrides = dict(overrides or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f'unknown {cls.__name__} keys: {", ".join(unknown)}')
        return cls(**overrides)

    def with_overrides(self, **overrides):
        return replace(self, **overrides)

    def as_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PhysicsParams(_ParamsMixin):
    base_speed: float = OCEAN_PHYSICS['base_speed']
    collision_buffer: float = OCEAN_PHYSICS['collision_buffer']
    smoothing_iterations: int = OCEAN_PHYSICS['smoothing_iterations']
    pattern_force: float = OCEAN_PHYSICS['pattern_force']
    max_deflection_deg: float = OCEAN_PHYSICS['max_deflection_deg']
    deflection_margin: float = OCEAN_PHYSICS['deflection_margin']
    east_accel_factor: float = OCEAN_PHYSICS['east_accel_factor']
    max_speed_ecc: float = OCEAN_PHYSICS['max_speed_ecc']
    spawn_max_field: float = OCEAN_PHYSICS['spawn_max_field']
    spawn_density: int = OCEAN_PHYSICS['spawn_density']
    ec_lat_gap_deg: float = OCEAN_PHYSICS['ec_lat_gap_deg']
    ec_poleward_drift: float = OCEAN_PHYSICS['ec_poleward_drift']
    ec_initial_speed_factor: float = OCEAN_PHYSICS['ec_initial_speed_factor']
    ec_pattern_force: float = OCEAN_PHYSICS['ec_pattern_force']
    ec_damping: float = OCEAN_PHYSICS['ec_damping']
    damping_window_rows: float = OCEAN_PHYSICS['damping_window_rows']
    critical_boost: float = OCEAN_PHYSICS['critical_boost']
    max_speed_ec: float = OCEAN_PHYSICS['max_speed_ec']
    repulsion_range: float = OCEAN_PHYSICS['repulsion_range']
    repulsion_strength: float = OCEAN_PHYSICS['repulsion_strength']
    crawl_error_rows: float = OCEAN_PHYSICS['crawl_error_rows']
    crawl_speed_factor: float = OCEAN_PHYSICS['crawl_speed_factor']
    crawl_push: float = OCEAN_PHYSICS['crawl_push']
    slide_friction: float = OCEAN_PHYSICS['slide_friction']
    polar_exit_lat: float = OCEAN_PHYSICS['polar_exit_lat']
    infant_age: int = OCEAN_PHYSICS['infant_age']
    spawn_offset_km: float = OCEAN_PHYSICS['spawn_offset_km']
    deep_water_field: float = OCEAN_PHYSICS['deep_water_field']
    planet_radius_km: float = OCEAN_PHYSICS['planet_radius_km']
    max_steps: int = OCEAN_PHYSICS['max_steps']
    impact_merge_radius: float = OCEAN_PHYSICS['impact_merge_radius']
    ec_impact_sample_rate: float = OCEAN_PHYSICS['ec_impact_sample_rate']
    seed: int = OCEAN_PHYSICS['seed']
    streamline_strength: float = OCEAN_PHYSICS['streamline_strength']

    def __post_init__(self):
        if self.base_speed <= 0:
            raise ValueError('base_speed must be positive')
        if self.smoothing_iterations < 0:
            raise ValueError('smoothing_iterations must be >= 0')
        if self.max_steps < 0:
            raise ValueError('max_steps must be >= 0')
        if self.spawn_density < 1:
            raise ValueError('spawn_density must be >= 1')
        if self.planet_radius_km <= 0:
            raise ValueError('planet_radius_km must be positive')
        if not 0.0 <= self.ec_impact_sample_rate <= 1.0:
            raise ValueError('ec_impact_sample_rate must lie in [0, 1]')


@dataclass(frozen=True)
class NumericsParams(_ParamsMixin):
    sub_steps: int = INTEGRATION['sub_steps']
    step_duration: float = INTEGRATION['step_duration']
    bisection_iterations: int = INTEGRATION['bisection_iterations']
    impact_threshold: float = INTEGRATION['impact_threshold']
    wall_epsilon: float = INTEGRATION['wall_epsilon']
    gradient_epsilon: float = INTEGRATION['gradient_epsilon']
    speed_floor: float = INTEGRATION['speed_floor']
    stagnation_window: int = INTEGRATION['stagnation_window']
    stagnation_min_displacement: float = INTEGRATION['stagnation_min_displacement']
    prune_similarity: float = INTEGRATION['prune_similarity']
    prune_min_samples: int = INTEGRATION['prune_min_samples']
    min_streamline_samples: int = INTEGRATION['min_streamline_samples']
    raycast_step: float = INTEGRATION['raycast_step']
    raycast_max_iterations: int = INTEGRATION['raycast_max_iterations']
    raycast_fallback: float = INTEGRATION['raycast_fallback']
    raycast_clearance: float = INTEGRATION['raycast_clearance']
    west_wall_normal: float = INTEGRATION['west_wall_normal']

    def __post_init__(self):
        if self.sub_steps < 1:
            raise ValueError('sub_steps must be >= 1')
        if self.step_duration <= 0:
            raise ValueError('step_duration must be positive')
        if self.stagnation_window < 2:
            raise ValueError('stagnation_window must be >= 2')

    @property
    def dt(self):
        """Duration of one sub-step."""
        return self.step_duration / self.sub_steps
