"""Bootstrap for running the OpenClaw gateway on Railway."""

from openclaw_railway.config import BootstrapSettings
from openclaw_railway.log import get_logger

__all__ = ["BootstrapSettings", "get_logger"]

__version__ = "0.1.0"
