# particle.py

import math
import logging
import numpy as np
import constants

logger = logging.getLogger("snowfall")

class Particle:
    """
    A single snowflake as seen from outside the ParticleSystem arena.

    Used both to hand new particles to the system (from spawn) and as a
    read-only snapshot of a particle that already lives in the arena.

    Data Contract:
    - location, velocity: length-2 float arrays in surface pixel coordinates.
    - radius: positive float. For settled snow this is also its health.
    - time_since_death: ms spent settled. 0 while falling.
    - neighbors: int >= 1. Grows as falling snow lands on settled snow.
    - pid: arena id, or None before the particle has been added to a system.
    """
    def __init__(self, location, velocity, radius: float, time_since_death: float = 0.0,
                 neighbors: int = 1, pid=None):
        if radius <= 0:
            raise ValueError(f"Particle radius must be positive, got {radius}")
        if neighbors < 1:
            raise ValueError(f"Particle neighbors must be at least 1, got {neighbors}")

        self.location = np.array(location, dtype=float)
        self.velocity = np.array(velocity, dtype=float)
        self.radius = float(radius)
        self.time_since_death = float(time_since_death)
        self.neighbors = int(neighbors)
        self.pid = pid

    def __repr__(self):
        return (
            f"Particle(pid={self.pid}, location={self.location.tolist()}, "
            f"velocity={self.velocity.tolist()}, radius={self.radius:.3f}, "
            f"time_since_death={self.time_since_death:.1f}, neighbors={self.neighbors})"
        )


def _direction(rng) -> int:
    return 1 if rng.random() * 2 - 1 >= 0 else -1


def _jitter(rng) -> float:
    return rng.random() * constants.JITTER_PIXELS


def spawn(origin, max_count: int = constants.TOUCH_SPAWN_COUNT, rng=None) -> list:
    """
    Creates a small random cluster of falling snow around an input point.

    - Inputs:
        - origin: (x, y) of the pointer or touch.
        - max_count (int): Upper bound on how many flakes to create, at least 1.
        - rng: Any object with a random() method returning a float in [0, 1).
          Defaults to a fresh numpy Generator.
    - Outputs: A list of between 1 and max_count new Particles. The caller
      merges them into the falling set.
    """
    if max_count < 1:
        raise ValueError(f"max_count must be at least 1, got {max_count}")
    if rng is None:
        rng = np.random.default_rng()

    x, y = float(origin[0]), float(origin[1])

    # ceil(0.0) would be zero flakes
    count = max(1, math.ceil(rng.random() * max_count))

    particles = []
    for _ in range(count):
        radius = rng.random() * constants.RADIUS_SPREAD + constants.MIN_RADIUS
        location = (
            x + _jitter(rng) * _direction(rng),
            y + _jitter(rng) * _direction(rng),
        )
        velocity = (
            rng.random() * constants.MAX_HORIZONTAL_SPEED * _direction(rng),
            -rng.random() * constants.MAX_UPWARD_SPEED,
        )
        particles.append(Particle(location, velocity, radius))

    logger.debug(f"Spawned {count} particle(s) at ({x:.1f}, {y:.1f}).")
    return particles
