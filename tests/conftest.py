import pytest
from particle_system import ParticleSystem


@pytest.fixture
def system():
    return ParticleSystem(config={}, bounds=(200, 100))
