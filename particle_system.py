# particle_system.py

import math
import numpy as np
import pygame
import logging
import numba
import constants
from particle import Particle, spawn

logger = logging.getLogger("snowfall")

# --- JIT-Compiled Settling Kernel ---
# Kept outside the ParticleSystem class and restricted to NumPy arrays and
# scalars, as required by Numba's nopython mode.

@numba.jit(nopython=True)
def _detect_settling_jit(positions, radii, falling_idx, recent_idx, surface_height,
                         floor_hits, collided, neighbor_increments):
    """
    Numba-accelerated pairwise scan of falling snow against recently settled snow.

    Marks floor_hits[i] for falling particles touching the floor and collided[i]
    for falling particles overlapping at least one recently settled particle.
    Each overlapping (falling, settled) pair adds one to neighbor_increments of
    the settled particle. A falling particle can be both a floor hit and a
    collision in the same tick.

    The floor test matches Particle.location.y + radius >= height and the
    overlap test is vector_math.overlap inlined for nopython mode, so touching
    circles count as a collision.
    """
    for a in range(falling_idx.shape[0]):
        i = falling_idx[a]
        if positions[i, 1] + radii[i] >= surface_height:
            floor_hits[i] = True

        for b in range(recent_idx.shape[0]):
            j = recent_idx[b]
            dx = positions[i, 0] - positions[j, 0]
            dy = positions[i, 1] - positions[j, 1]
            if math.sqrt(dx * dx + dy * dy) <= radii[i] + radii[j]:
                collided[i] = True
                neighbor_increments[j] += 1


class ParticleSystem:
    """
    Owns the falling and settled snow and advances it one frame at a time.

    Particles live in a single arena stored as NumPy arrays (Structure of
    Arrays). Whether a particle is falling or settled is a status flag, so a
    particle is always in exactly one of the two sets. Every particle gets a
    stable integer id when it enters the arena; removal compacts the arrays
    by id, never by comparing values.

    Data Contract:
    - Inputs:
        - config (dict): The 'simulation' section of the config file. Missing
          keys fall back to the defaults in constants.py.
        - rng: Random source for spawn_at (np.random.Generator or any object
          with random()).
        - bounds (tuple): Initial (width, height) of the drawing surface.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Manages the lifecycle of all particle data.
    - Invariants:
        - All arena arrays have the same length (num_particles).
        - neighbors >= 1 and radius > melt_threshold after every update.
        - The settled population never exceeds max_settled after an update.
        - A settled particle never becomes a falling particle again.
    """
    def __init__(self, config: dict = None, rng=None, bounds: tuple = (constants.WIDTH, constants.HEIGHT)):
        config = config or {}
        self.rng = rng if rng is not None else np.random.default_rng()
        self.bounds = np.array(bounds, dtype=float)

        self.gravity = config.get('gravity', constants.GRAVITY)
        self.max_speed = config.get('max_speed', constants.MAX_SPEED)
        self.horizontal_drag = config.get('horizontal_drag', constants.HORIZONTAL_DRAG)
        self.settle_creep = config.get('settle_creep', constants.SETTLE_CREEP)
        self.melt_rate = config.get('melt_rate', constants.MELT_RATE)
        self.melt_threshold = config.get('melt_threshold', constants.MELT_THRESHOLD)
        self.recent_window = config.get('recent_window', constants.RECENT_WINDOW)
        self.max_settled = int(config.get('max_settled', constants.MAX_SETTLED))

        self._next_id = 0
        self._next_settle_order = 0
        self.tick = 0
        self._clear_arena()
        self._reset_tick_counters()

        logger.info(f"ParticleSystem created with bounds {tuple(self.bounds)}.")
        logger.info(
            f"Physics: gravity={self.gravity:.6f}, max_speed={self.max_speed}, "
            f"melt_rate={self.melt_rate}, melt_threshold={self.melt_threshold}, "
            f"recent_window={self.recent_window}, max_settled={self.max_settled}"
        )

    def _clear_arena(self):
        self.ids = np.zeros(0, dtype=np.int64)
        self.positions = np.zeros((0, 2), dtype=float)
        self.velocities = np.zeros((0, 2), dtype=float)
        self.radii = np.zeros(0, dtype=float)
        self.time_since_death = np.zeros(0, dtype=float)
        self.neighbors = np.zeros(0, dtype=np.int64)
        self.settled = np.zeros(0, dtype=bool)
        # Larger key = settled more recently. -1 while falling.
        self.settle_order = np.zeros(0, dtype=np.int64)

    def _reset_tick_counters(self):
        self.melted_count = 0
        self.settled_count = 0
        self.truncated_count = 0
        self.evicted_count = 0

    # --- Population views ---

    @property
    def num_particles(self) -> int:
        return self.ids.shape[0]

    @property
    def num_falling(self) -> int:
        return int(np.count_nonzero(~self.settled))

    @property
    def num_settled(self) -> int:
        return int(np.count_nonzero(self.settled))

    def falling_ids(self) -> list:
        """Ids of falling particles, newest first."""
        return sorted(self.ids[~self.settled].tolist(), reverse=True)

    def settled_ids(self) -> list:
        """Ids of settled particles, most recently settled first."""
        mask = self.settled
        order = np.argsort(-self.settle_order[mask], kind='stable')
        return self.ids[mask][order].tolist()

    def _index_of(self, pid: int) -> int:
        matches = np.nonzero(self.ids == pid)[0]
        if matches.shape[0] == 0:
            raise KeyError(f"No particle with id {pid}")
        return int(matches[0])

    def get_particle(self, pid: int) -> Particle:
        """Returns a detached snapshot of the particle with the given id."""
        i = self._index_of(pid)
        return Particle(
            location=self.positions[i].copy(),
            velocity=self.velocities[i].copy(),
            radius=self.radii[i],
            time_since_death=self.time_since_death[i],
            neighbors=self.neighbors[i],
            pid=int(self.ids[i]),
        )

    def is_settled(self, pid: int) -> bool:
        return bool(self.settled[self._index_of(pid)])

    def falling_particles(self) -> list:
        return [self.get_particle(pid) for pid in self.falling_ids()]

    def settled_particles(self) -> list:
        return [self.get_particle(pid) for pid in self.settled_ids()]

    # --- Input ---

    def add_particles(self, particles, settled: bool = False) -> list:
        """
        Merges externally created particles into the arena.

        New falling particles go to the front of the falling set. With
        settled=True the batch is prepended to the settled set instead, in the
        given order, and the settled cap is enforced.
        Returns the ids assigned, in the same order as the input.
        """
        particles = list(particles)
        count = len(particles)
        if count == 0:
            return []

        new_ids = np.arange(self._next_id, self._next_id + count, dtype=np.int64)
        self._next_id += count

        if settled:
            # First in the batch gets the largest key, i.e. ends up at the front
            orders = self._next_settle_order + np.arange(count - 1, -1, -1, dtype=np.int64)
            self._next_settle_order += count
        else:
            orders = np.full(count, -1, dtype=np.int64)

        self.ids = np.concatenate([self.ids, new_ids])
        self.positions = np.concatenate([self.positions, np.array([p.location for p in particles], dtype=float)])
        self.velocities = np.concatenate([self.velocities, np.array([p.velocity for p in particles], dtype=float)])
        self.radii = np.concatenate([self.radii, np.array([p.radius for p in particles], dtype=float)])
        self.time_since_death = np.concatenate(
            [self.time_since_death, np.array([p.time_since_death for p in particles], dtype=float)]
        )
        self.neighbors = np.concatenate([self.neighbors, np.array([p.neighbors for p in particles], dtype=np.int64)])
        self.settled = np.concatenate([self.settled, np.full(count, settled, dtype=bool)])
        self.settle_order = np.concatenate([self.settle_order, orders])

        for p, pid in zip(particles, new_ids):
            p.pid = int(pid)

        if settled:
            self._truncate_settled()

        return new_ids.tolist()

    def spawn_at(self, point, max_count: int = constants.TOUCH_SPAWN_COUNT) -> list:
        """Spawns a cluster of falling snow at an input point. Returns the new ids."""
        return self.add_particles(spawn(point, max_count, rng=self.rng))

    def reset(self, bounds: tuple = None):
        """Drops all falling and settled snow, e.g. after the surface is resized."""
        dropped = self.num_particles
        if bounds is not None:
            self.bounds = np.array(bounds, dtype=float)
        self._clear_arena()
        self._reset_tick_counters()
        logger.info(f"ParticleSystem reset. {dropped} particle(s) dropped. Bounds: {tuple(self.bounds)}.")

    # --- Physics ---

    def _integrate_falling(self, dt: float):
        """
        Gravity with a terminal speed, plus horizontal drag.
        The drag factor is applied once per call regardless of dt.
        """
        f = ~self.settled
        self.velocities[f, 0] *= self.horizontal_drag
        self.velocities[f, 1] = np.minimum(self.velocities[f, 1] + self.gravity * dt, self.max_speed)
        self.positions[f] += self.velocities[f] * dt

    def _melt_rates(self, mask: np.ndarray) -> np.ndarray:
        """Fraction of radius lost per update. More neighbors melt slower."""
        return self.melt_rate / (self.neighbors[mask] * 2)

    def _integrate_settled(self, surface_height: float, dt: float):
        """
        Settled snow creeps toward the floor by a fixed step, ages by dt and melts.
        """
        s = self.settled
        ys = self.positions[s, 1]
        above_floor = ys + self.radii[s] < surface_height
        self.positions[s, 1] = np.where(above_floor, np.minimum(surface_height, ys + self.settle_creep), ys)
        self.time_since_death[s] += dt
        self.radii[s] *= 1.0 - self._melt_rates(s)

    def _detect_newly_settled(self, surface_height: float):
        """
        Finds falling snow that reached the floor or landed on recently settled snow.

        - Outputs: (floor_hits, collided, neighbor_increments), each aligned
          with the arena arrays.
        """
        n = self.num_particles
        floor_hits = np.zeros(n, dtype=bool)
        collided = np.zeros(n, dtype=bool)
        neighbor_increments = np.zeros(n, dtype=np.int64)

        falling_idx = np.nonzero(~self.settled)[0].astype(np.int64)
        recent_idx = np.nonzero(self.settled & (self.time_since_death <= self.recent_window))[0].astype(np.int64)

        _detect_settling_jit(
            self.positions,
            self.radii,
            falling_idx,
            recent_idx,
            float(surface_height),
            floor_hits,
            collided,
            neighbor_increments,
        )
        return floor_hits, collided, neighbor_increments

    # --- Population management ---

    def _keep(self, survival_mask: np.ndarray):
        """Compacts every arena array down to the surviving particles."""
        self.ids = self.ids[survival_mask]
        self.positions = self.positions[survival_mask]
        self.velocities = self.velocities[survival_mask]
        self.radii = self.radii[survival_mask]
        self.time_since_death = self.time_since_death[survival_mask]
        self.neighbors = self.neighbors[survival_mask]
        self.settled = self.settled[survival_mask]
        self.settle_order = self.settle_order[survival_mask]

    def _remove_melted(self) -> int:
        melted = self.settled & (self.radii <= self.melt_threshold)
        count = int(np.count_nonzero(melted))
        if count:
            self._keep(~melted)
        return count

    def _settle(self, newly_settled: np.ndarray) -> int:
        """
        Moves newly settled particles into the settled set as a block in front
        of everything settled earlier. Within the block, newer particles
        (higher id) go first, matching the newest-first falling-set order. A
        single spawn cluster therefore lands in reverse creation order.
        """
        idx = np.nonzero(newly_settled)[0]
        count = idx.shape[0]
        if count == 0:
            return 0

        idx = idx[np.argsort(-self.ids[idx], kind='stable')]
        self.settle_order[idx] = self._next_settle_order + np.arange(count - 1, -1, -1, dtype=np.int64)
        self._next_settle_order += count
        self.settled[idx] = True
        return count

    def _truncate_settled(self) -> int:
        """Keeps only the max_settled most recently settled particles."""
        excess = self.num_settled - self.max_settled
        if excess <= 0:
            return 0

        settled_idx = np.nonzero(self.settled)[0]
        oldest_first = settled_idx[np.argsort(self.settle_order[settled_idx], kind='stable')]
        survival_mask = np.ones(self.num_particles, dtype=bool)
        survival_mask[oldest_first[:excess]] = False
        self._keep(survival_mask)
        logger.debug(f"Settled snow over capacity. {excess} oldest particle(s) discarded.")
        return excess

    def _evict_out_of_bounds(self, surface_width: float) -> int:
        """Falling snow that left the surface horizontally is dropped."""
        xs = self.positions[:, 0]
        outside = ~self.settled & ((xs < 0) | (xs >= surface_width))
        count = int(np.count_nonzero(outside))
        if count:
            self._keep(~outside)
        return count

    def update(self, surface_size: tuple, dt: float):
        """
        Advances the simulation by one frame.

        - Inputs:
            - surface_size (tuple): Current (width, height) of the drawing surface.
              None reuses the last known bounds.
            - dt (float): Milliseconds since the previous update. Not clamped.

        Order of operations:
        1. Integrate falling snow.
        2. Integrate settled snow.
        3. Remove melted settled snow.
        4. Detect floor hits and collisions with recently settled snow.
        5. Add neighbors to settled snow that was landed on.
        6-8. Move floor hits and collided snow into the settled set, capped.
        9. Drop falling snow that left the surface horizontally.
        """
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        if surface_size is not None:
            self.bounds = np.array(surface_size, dtype=float)
        surface_width, surface_height = float(self.bounds[0]), float(self.bounds[1])

        self._integrate_falling(dt)
        self._integrate_settled(surface_height, dt)
        self.melted_count = self._remove_melted()

        floor_hits, collided, neighbor_increments = self._detect_newly_settled(surface_height)
        self.neighbors += neighbor_increments

        self.settled_count = self._settle(floor_hits | collided)
        self.truncated_count = self._truncate_settled()
        self.evicted_count = self._evict_out_of_bounds(surface_width)
        self.tick += 1

        if self.melted_count or self.settled_count or self.truncated_count or self.evicted_count:
            logger.debug(
                f"Tick={self.tick}, dt={dt:.1f}, "
                f"Settled={self.settled_count}, Melted={self.melted_count}, "
                f"Truncated={self.truncated_count}, Evicted={self.evicted_count}, "
                f"Falling={self.num_falling}, Resting={self.num_settled}"
            )

    def draw(self, screen: pygame.Surface, color=constants.SNOW_COLOR):
        """
        Draws every particle as a filled circle in a single fixed color.
        Falling snow is drawn first, settled snow on top.
        """
        for mask in (~self.settled, self.settled):
            for (x, y), radius in zip(self.positions[mask], self.radii[mask]):
                pygame.draw.circle(screen, color, (float(x), float(y)), float(radius))
