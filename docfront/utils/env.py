"""Lightweight helpers for loading local environment defaults."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

__all__ = ["load_env"]


_env_loaded = False


def load_env(*, dotenv_path: Optional[str | Path] = None) -> None:
    """Load a ``.env`` file once, if present.

    ``DOCFRONT_ENV_FILE`` points at an alternative file when no explicit path is
    given. Values already present in the process environment always win.
    """

    global _env_loaded
    if _env_loaded:
        return

    if dotenv_path is None:
        override_path = os.getenv("DOCFRONT_ENV_FILE", "").strip()
        if override_path:
            dotenv_path = Path(override_path).expanduser()

    load_dotenv(dotenv_path=dotenv_path, override=False)
    _env_loaded = True
