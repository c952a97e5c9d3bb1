"""
Configuration module for the pipeline.

Provides:
- Injected runtime settings
- YAML source seeds with environment variable substitution
"""

from .settings import ScraperSettings
from .loader import ConfigLoader, load_settings, load_sources, seed_sources

__all__ = [
    "ScraperSettings",
    "ConfigLoader",
    "load_settings",
    "load_sources",
    "seed_sources",
]
