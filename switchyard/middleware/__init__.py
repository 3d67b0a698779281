"""
Bundled middleware.
"""

from .access_log import AccessLog
from .cors import Cors

__all__ = ["AccessLog", "Cors"]
