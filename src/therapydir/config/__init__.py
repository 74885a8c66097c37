"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .places import PlacesConfig, default_places_resilience, get_places_config
from .reference_data import (
    DEFAULT_REFERENCE_DATA,
    CategorySeed,
    CitySeed,
    ReferenceData,
)
from .scan import ScanSettings, get_scan_settings
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .taxonomy import TaxonomyConfig, load_taxonomy_config

__all__ = [
    "DEFAULT_REFERENCE_DATA",
    "CacheConfig",
    "CategorySeed",
    "CitySeed",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PlacesConfig",
    "RateLimit",
    "ReferenceData",
    "ResilienceConfig",
    "RetryPolicy",
    "ScanSettings",
    "StorageConfig",
    "TaxonomyConfig",
    "configure_logging",
    "default_places_resilience",
    "get_database_config",
    "get_places_config",
    "get_scan_settings",
    "get_storage_config",
    "load_taxonomy_config",
    "require_env_var",
    "require_env_vars",
]
