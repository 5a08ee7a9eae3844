import numpy as np
import pygame
from main import handle_event
from particle import Particle
from particle_system import ParticleSystem


class FakeScreen:
    def get_size(self):
        return (200, 100)


def make_system():
    return ParticleSystem(config={}, rng=np.random.default_rng(3), bounds=(200, 100))


def test_quit_stops_the_loop():
    system = make_system()
    assert handle_event(pygame.event.Event(pygame.QUIT), system, FakeScreen()) is None


def test_mouse_click_spawns_snow():
    system = make_system()
    screen = FakeScreen()
    event = pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(50, 40))

    assert handle_event(event, system, screen) is screen
    assert 1 <= system.num_falling <= 6


def test_mouse_motion_without_button_does_nothing():
    system = make_system()
    event = pygame.event.Event(pygame.MOUSEMOTION, pos=(50, 40), rel=(1, 1), buttons=(0, 0, 0))
    handle_event(event, system, FakeScreen())
    assert system.num_particles == 0


def test_touch_coordinates_are_scaled_to_the_surface():
    system = make_system()
    event = pygame.event.Event(pygame.FINGERDOWN, x=0.5, y=0.25, dx=0.0, dy=0.0, finger_id=0, touch_id=0)

    handle_event(event, system, FakeScreen())

    assert 1 <= system.num_falling <= 5
    for p in system.falling_particles():
        assert abs(p.location[0] - 100) <= 1
        assert abs(p.location[1] - 25) <= 1


def test_resize_clears_all_snow(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    pygame.display.init()
    try:
        system = make_system()
        screen = pygame.display.set_mode((200, 100), pygame.RESIZABLE)
        system.spawn_at((50, 40), 6)
        system.update((200, 100), 16)
        system.add_particles([Particle((10, 98), (0, 0), 3.0)], settled=True)
        assert system.num_falling > 0 and system.num_settled > 0

        event = pygame.event.Event(pygame.VIDEORESIZE, w=300, h=150, size=(300, 150))
        screen = handle_event(event, system, screen)

        assert screen is not None
        assert system.num_particles == 0
        assert system.bounds.tolist() == [300, 150]
    finally:
        pygame.display.quit()
