"""
Configuration module for the pgRouting export.
"""

from .settings import (
    Config,
    ConfigurationError,
    ExportSettings,
)

__all__ = [
    'Config',
    'ConfigurationError',
    'ExportSettings',
]
