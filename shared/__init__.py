"""
Kernmap Shared Module
=====================

Common utilities, models, and configuration management shared across
the Kernmap package and its command-line front end.
"""

from shared.config import KernmapConfig

__all__ = ["KernmapConfig"]
