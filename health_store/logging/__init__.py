# =============================================================================
# health_store/logging/__init__.py
# Centralized Logging Configuration
# =============================================================================

from .config import setup_logging, get_logger, resolve_level, log_fallback, LogContext

__all__ = ["setup_logging", "get_logger", "resolve_level", "log_fallback", "LogContext"]
