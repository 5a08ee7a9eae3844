import math
import numpy as np
from particle import Particle
from vector_math import subtract, magnitude, overlap


def test_subtract_is_component_wise():
    result = subtract((5.0, 3.0), (1.5, 4.0))
    assert result.tolist() == [3.5, -1.0]


def test_magnitude():
    assert magnitude((3.0, 4.0)) == 5.0
    assert magnitude((0.0, 0.0)) == 0.0
    assert math.isclose(magnitude(np.array([-1.0, 1.0])), math.sqrt(2))


def test_overlap_includes_tangency():
    a = Particle((0, 0), (0, 0), 2.0)
    b = Particle((5, 0), (0, 0), 3.0)
    assert overlap(a, b)


def test_overlap_false_when_apart():
    a = Particle((0, 0), (0, 0), 2.0)
    b = Particle((5.01, 0), (0, 0), 3.0)
    assert not overlap(a, b)


def test_overlap_is_symmetric():
    rng = np.random.default_rng(7)
    for _ in range(200):
        a = Particle(rng.uniform(0, 20, 2), (0, 0), rng.uniform(0.5, 4))
        b = Particle(rng.uniform(0, 20, 2), (0, 0), rng.uniform(0.5, 4))
        assert overlap(a, b) == overlap(b, a)
