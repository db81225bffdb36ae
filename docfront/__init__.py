"""Documentation front-end rendering CMS articles and their API references."""

from .utils.env import load_env

# Ensure environment defaults from `.env` are available to all modules on import.
load_env()
