"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import SearchConfig

__all__ = ["ConfigLocator", "ConfigRepository", "SearchConfig"]
