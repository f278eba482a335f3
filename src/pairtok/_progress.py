"""Process-wide switch for training progress logs."""

import os
from typing import Final

DISABLE_ENV_VAR: Final[str] = "PAIRTOK_DISABLE_PROGRESS"

_enabled: bool = True


def enable_progress() -> None:
    """Enable periodic progress logs during training."""
    global _enabled
    _enabled = True


def disable_progress() -> None:
    """Disable periodic progress logs during training."""
    global _enabled
    _enabled = False


def _is_enabled() -> bool:
    """Check if progress is enabled (the environment variable wins)."""
    if os.environ.get(DISABLE_ENV_VAR, "").strip() == "1":
        return False
    return _enabled
