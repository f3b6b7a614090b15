"""
Single place for default game/setup configuration.
Change DEFAULT_SETUP_ID to switch which setup is used when creating a new game (when no setup_id is provided).
GRIDGETTERS_SETUP in the environment overrides it without touching code.
"""

import os

# Setup id from data/setups/<id>.json
DEFAULT_SETUP_ID = os.environ.get("GRIDGETTERS_SETUP", "grid_getters")
