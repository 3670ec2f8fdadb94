"""Veridis Core - event hub with derived status and role-based authorization."""

__version__ = "0.1.0"

from .config import VeridisConfig
from .core import VeridisCore
from .state import EventStore

__all__ = ["EventStore", "VeridisConfig", "VeridisCore", "__version__"]
