"""
Data Models Layer.

This package contains the Pydantic models that define the application's
configuration.
"""

from .config import NasConfig

__all__ = ["NasConfig"]
