import numpy as np
import pytest
from particle import Particle, spawn
from helpers import SequenceRandom


def test_particle_defaults():
    p = Particle((1, 2), (0.1, -0.2), 3.0)
    assert p.location.tolist() == [1.0, 2.0]
    assert p.time_since_death == 0.0
    assert p.neighbors == 1
    assert p.pid is None


def test_particle_rejects_bad_radius_and_neighbors():
    with pytest.raises(ValueError):
        Particle((0, 0), (0, 0), 0.0)
    with pytest.raises(ValueError):
        Particle((0, 0), (0, 0), 1.0, neighbors=0)


def test_spawn_follows_draw_order():
    rng = SequenceRandom([
        0.1,   # count: ceil(0.5) = 1
        0.5,   # radius
        0.5,   # x jitter
        0.9,   # x direction +
        0.25,  # y jitter
        0.1,   # y direction -
        0.5,   # horizontal speed
        0.2,   # horizontal direction -
        0.4,   # upward speed
    ])
    particles = spawn((100.0, 50.0), max_count=5, rng=rng)

    assert len(particles) == 1
    p = particles[0]
    assert p.radius == pytest.approx(2.75)
    assert p.location.tolist() == pytest.approx([100.5, 49.75])
    assert p.velocity.tolist() == pytest.approx([-0.05, -0.1])
    assert p.time_since_death == 0
    assert p.neighbors == 1
    assert rng.calls == 9


def test_spawn_never_returns_zero_particles():
    rng = SequenceRandom([0.0] + [0.5] * 8)
    assert len(spawn((0, 0), rng=rng)) == 1


def test_spawn_ranges():
    rng = np.random.default_rng(123)
    counts = set()
    for _ in range(300):
        particles = spawn((50.0, 50.0), max_count=6, rng=rng)
        counts.add(len(particles))
        for p in particles:
            assert 2.0 <= p.radius <= 3.5
            assert abs(p.location[0] - 50.0) <= 1.0
            assert abs(p.location[1] - 50.0) <= 1.0
            assert -0.1 <= p.velocity[0] <= 0.1
            assert -0.25 <= p.velocity[1] <= 0.0
    assert counts == {1, 2, 3, 4, 5, 6}


def test_spawn_rejects_non_positive_max_count():
    with pytest.raises(ValueError):
        spawn((0, 0), max_count=0)
