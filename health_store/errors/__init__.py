# =============================================================================
# health_store/errors/__init__.py
# Centralized Error Types for the Entity Store
# =============================================================================

from .exceptions import (
    HealthStoreError,
    RemoteBackendError,
    EntityNotFoundError,
    InvalidQueryError,
    ConfigurationError,
)

__all__ = [
    "HealthStoreError",
    "RemoteBackendError",
    "EntityNotFoundError",
    "InvalidQueryError",
    "ConfigurationError",
]
