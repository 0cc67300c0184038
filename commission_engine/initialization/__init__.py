"""
Initialization package.

Process-wide setup helpers used by scripts and embedding applications.
"""

from commission_engine.initialization.logging import setup_logging


__all__ = ["setup_logging"]
