"""Defew package root."""

from defew.markers import Defew, defew, new

__all__ = ["__version__", "Defew", "defew", "new"]

__version__ = "0.1.0"
