# =============================================================================
# health_store/config.py
# Store Configuration (Streamlit secrets / environment)
# =============================================================================
"""
Configuration for the entity store.

Settings are passed explicitly to the stores that need them; nothing here is
read implicitly at import time.

Expected secrets.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [health_store]
    local_db_path = "local_data/health_store.db"
    key_prefix = "tibrah_db_"
    serialize_local_writes = true

    [health_store.table_mapping]
    health_metrics = "health_metrics_v2"

Environment variables (used when secrets are absent):
    SUPABASE_URL, SUPABASE_KEY, HEALTH_STORE_DB_PATH,
    HEALTH_STORE_KEY_PREFIX, HEALTH_STORE_SERIALIZE_WRITES
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import logging

from health_store.errors import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_DB_PATH = Path("local_data") / "health_store.db"
DEFAULT_KEY_PREFIX = "tibrah_db_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Cannot interpret {value!r} as a boolean",
        config_key=key,
        expected_type="bool",
    )


@dataclass
class StoreSettings:
    """Connection and storage settings for a Database."""

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    local_db_path: Path = DEFAULT_DB_PATH
    key_prefix: str = DEFAULT_KEY_PREFIX
    table_mapping: Dict[str, str] = field(default_factory=dict)
    serialize_local_writes: bool = True

    @property
    def has_remote(self) -> bool:
        """True when Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_key)

    def remote_table(self, collection: str) -> str:
        """Map a collection name to its remote table name."""
        return self.table_mapping.get(collection, collection)

    def with_overrides(self, **changes: Any) -> StoreSettings:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> StoreSettings:
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        serialize = env.get("HEALTH_STORE_SERIALIZE_WRITES")
        return cls(
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_key=env.get("SUPABASE_KEY") or None,
            local_db_path=Path(env.get("HEALTH_STORE_DB_PATH") or DEFAULT_DB_PATH),
            key_prefix=env.get("HEALTH_STORE_KEY_PREFIX") or DEFAULT_KEY_PREFIX,
            serialize_local_writes=(
                True if serialize is None
                else _parse_bool(serialize, "HEALTH_STORE_SERIALIZE_WRITES")
            ),
        )

    @classmethod
    def from_streamlit_secrets(cls, secrets: Optional[Mapping[str, Any]] = None) -> StoreSettings:
        """
        Build settings from Streamlit secrets, falling back to the environment.

        Args:
            secrets: Secrets mapping (defaults to st.secrets)

        Returns:
            StoreSettings
        """
        settings = cls.from_env()

        if secrets is None:
            try:
                import streamlit as st
                secrets = st.secrets
                # st.secrets raises lazily when no secrets.toml exists
                if "supabase" not in secrets and "health_store" not in secrets:
                    return settings
            except Exception as e:
                logger.debug(f"Streamlit secrets not available: {e}")
                return settings

        if "supabase" in secrets:
            supabase = secrets["supabase"]
            settings.supabase_url = supabase.get("url") or settings.supabase_url
            settings.supabase_key = supabase.get("key") or settings.supabase_key

        if "health_store" in secrets:
            section = secrets["health_store"]
            if section.get("local_db_path"):
                settings.local_db_path = Path(section["local_db_path"])
            if section.get("key_prefix"):
                settings.key_prefix = str(section["key_prefix"])
            if "serialize_local_writes" in section:
                settings.serialize_local_writes = _parse_bool(
                    section["serialize_local_writes"],
                    "health_store.serialize_local_writes",
                )
            if "table_mapping" in section:
                settings.table_mapping = dict(section["table_mapping"])

        return settings


def load_settings() -> StoreSettings:
    """Load settings, preferring Streamlit secrets over plain environment."""
    return StoreSettings.from_streamlit_secrets()


def get_supabase_client(settings: StoreSettings):
    """
    Create a Supabase client from settings.

    Args:
        settings: StoreSettings with supabase_url and supabase_key

    Returns:
        supabase.Client

    Raises:
        ConfigurationError: If credentials are missing
    """
    if not settings.has_remote:
        raise ConfigurationError(
            "Supabase credentials not configured",
            config_key="supabase.url/supabase.key",
        )

    from supabase import create_client

    client = create_client(settings.supabase_url, settings.supabase_key)
    logger.info("Supabase client created")
    return client
