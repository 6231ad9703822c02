"""Path helpers for polaris."""

import os
from pathlib import Path


def get_polaris_home() -> Path:
    """Directory holding the local cache database and logs.

    ``POLARIS_DATA_DIR`` wins over the default ``~/.polaris``.
    """
    override = os.environ.get("POLARIS_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".polaris"
