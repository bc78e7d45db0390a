from __future__ import annotations

import logging
from importlib.metadata import version

__version__ = version("covpolicy")

logger = logging.getLogger("covpolicy")

__all__ = ["__version__", "logger"]
