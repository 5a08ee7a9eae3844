# main.py

import pygame
import constants
import json
import logging
import logger_setup
import numpy as np
from particle_system import ParticleSystem

# Get the application's dedicated logger
logger = logging.getLogger("snowfall")


def handle_event(event, particle_system, screen):
    """
    Routes one pygame event to the simulation.
    Returns the (possibly recreated) screen, or None when the user quits.
    """
    if event.type == pygame.QUIT:
        return None

    if event.type == pygame.VIDEORESIZE:
        screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
        # Settled snow does not survive a resize
        particle_system.reset(bounds=(event.w, event.h))

    elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
        particle_system.spawn_at(event.pos, constants.MOUSE_SPAWN_COUNT)

    elif event.type == pygame.MOUSEMOTION and event.buttons[0]:
        particle_system.spawn_at(event.pos, constants.MOUSE_SPAWN_COUNT)

    elif event.type in (pygame.FINGERDOWN, pygame.FINGERMOTION):
        # Touch coordinates arrive normalized to [0, 1]
        width, height = screen.get_size()
        particle_system.spawn_at((event.x * width, event.y * height), constants.TOUCH_SPAWN_COUNT)

    return screen


def run_simulation_loop(particle_system, screen, clock):
    """
    Renders, then advances the simulation by the wall-clock time since the
    previous frame. dt is not clamped.
    """
    running = True
    last_time = pygame.time.get_ticks()

    while running:
        for event in pygame.event.get():
            screen = handle_event(event, particle_system, screen)
            if screen is None:
                running = False
                break
        if not running:
            break

        # --- Drawing ---
        screen.fill(constants.BACKGROUND)
        particle_system.draw(screen)
        pygame.display.flip()

        # --- Physics & Logic Update ---
        current_time = pygame.time.get_ticks()
        particle_system.update(screen.get_size(), current_time - last_time)
        last_time = current_time

        # --- Logging (throttled) ---
        if particle_system.tick % constants.STATS_LOG_INTERVAL == 0:
            logger.debug(
                f"Tick={particle_system.tick}, "
                f"Falling={particle_system.num_falling}, "
                f"Settled={particle_system.num_settled}, "
                f"FPS={clock.get_fps():.1f}"
            )

        clock.tick(constants.FPS)


def main():
    """
    Main function to initialize and run the snowfall simulation.
    """
    # --- Setup ---
    with open('config.json', 'r') as f:
        config = json.load(f)
    logger_setup.setup_logging(config)
    sim_config = config['simulation']

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    # --- Initialization ---
    pygame.init()
    screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT), pygame.RESIZABLE)
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    particle_system = ParticleSystem(
        config=sim_config,
        rng=rng,
        bounds=screen.get_size()
    )

    run_simulation_loop(particle_system, screen, clock)

    logger.info("Application shutting down.")
    pygame.quit()

if __name__ == "__main__":
    main()
