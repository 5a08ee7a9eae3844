# constants.py

"""
Application Constants

This module defines static configuration values for the application's framework,
along with the default physics tuning for the snowfall engine. The physics values
can be overridden per run from the 'simulation' section of config.json.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable. Time is in milliseconds.
"""

# Screen dimensions (initial; the window is resizable)
WIDTH = 1280  # Pixels
HEIGHT = 720  # Pixels

# Framerate
FPS = 60  # Frames per second

# Colors (RGB)
BACKGROUND = (0, 0, 50)  # "#000032"
WHITE = (255, 255, 255)
SNOW_COLOR = WHITE

# Window Title
TITLE = "Snowfall"

# --- Falling motion ---
GRAVITY = 1 / 3000      # Pixels per ms^2
MAX_SPEED = 0.1         # Pixels per ms, terminal downward speed
HORIZONTAL_DRAG = 0.98  # Applied once per update, not scaled by dt

# --- Settled snow ---
SETTLE_CREEP = 0.2      # Pixels per update, not scaled by dt
MELT_RATE = 0.008       # Base fraction of radius lost per update
MELT_THRESHOLD = 0.5    # Pixels. Settled snow at or below this radius is gone.
RECENT_WINDOW = 500     # ms. Only snow settled this recently catches falling snow.
MAX_SETTLED = 2000      # Cap on the settled population

# --- Spawning ---
MIN_RADIUS = 2.0        # Pixels
RADIUS_SPREAD = 1.5     # Pixels, so radii fall in [2.0, 3.5]
JITTER_PIXELS = 1.0     # Max per-axis offset from the input point
MAX_HORIZONTAL_SPEED = 0.1  # Pixels per ms
MAX_UPWARD_SPEED = 0.25     # Pixels per ms
TOUCH_SPAWN_COUNT = 5   # Max particles per touch point per event
MOUSE_SPAWN_COUNT = 6   # Max particles per mouse event

# Logging
STATS_LOG_INTERVAL = 100  # Ticks between population log lines
