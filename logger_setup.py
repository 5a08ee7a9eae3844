# logger_setup.py

import logging
import os

LOGGER_NAME = "snowfall"

def setup_logging(config: dict, log_root: str = 'runs') -> logging.Logger:
    """
    Points the "snowfall" logger at the console and at runs/<run_id>/snowfall.log.

    Only the application's own logger is configured, never the root logger,
    so pygame and numba output stays out of the run log.

    Data Contract:
    - Inputs:
        - config (dict): The parsed config.json. Needs 'run_id' and a 'logging'
          section with 'level' and 'format'.
        - log_root (str): Parent directory of the per-run log folders.
    - Outputs: The configured logger.
    - Side Effects: Creates the run's log directory. Replaces (and closes) any
      handlers left over from an earlier call.
    """
    run_id = config['run_id']
    level = config['logging']['level']
    formatter = logging.Formatter(config['logging']['format'])

    run_dir = os.path.join(log_root, run_id)
    os.makedirs(run_dir, exist_ok=True)
    log_file = os.path.join(run_dir, 'snowfall.log')

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for old in list(logger.handlers):
        old.close()
        logger.removeHandler(old)

    for handler in (logging.FileHandler(log_file), logging.StreamHandler()):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info(f"Logging ready for run '{run_id}' at level {level}, writing to {log_file}")
    return logger
