# =============================================================================
# console_core/settings.py
# Process Configuration for the Retail Console Data Layer
# =============================================================================
"""
Centralized config: this is the ONLY place configuration is read.

Resolution order for each value:
1. Environment variables (a local ``.env`` is loaded first if present)
2. ``[supabase]`` / ``[console]`` tables in Streamlit secrets

Expected secrets.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [console]
    local_db = "local_data/console_mirror.db"
    log_level = "INFO"

Missing or invalid Supabase credentials never raise here. The remote client
will fail every call and the local mirror takes over.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import streamlit as st
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


DEFAULT_LOCAL_DB_PATH = Path("local_data") / "console_mirror.db"


@dataclass(frozen=True)
class AppConfig:
    # Remote backend (Supabase). If unset, remote calls fail and fallback kicks in.
    supabase_url: Optional[str]
    supabase_key: Optional[str]

    # Local mirror location
    local_db_path: Path

    log_level: str = "INFO"

    @property
    def has_remote_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def remote_url_looks_valid(self) -> bool:
        url = self.supabase_url or ""
        return url.startswith("https://") or url.startswith("http://")


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _load_secrets_section(section: str) -> Dict[str, Any]:
    """Read one table from Streamlit secrets, or {} when unavailable."""
    try:
        if section in st.secrets:
            return dict(st.secrets[section])
    except Exception as e:
        # No secrets.toml outside a Streamlit deployment
        logger.debug(f"Streamlit secrets unavailable for [{section}]: {e}")
    return {}


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value if value else None


def get_config(load_env_file: bool = True) -> AppConfig:
    """
    Build the AppConfig from the process environment.

    Args:
        load_env_file: Whether to load a ``.env`` file first (local dev)

    Returns:
        Frozen AppConfig
    """
    if load_env_file:
        load_dotenv(override=False)

    supabase_secrets = _load_secrets_section("supabase")
    console_secrets = _load_secrets_section("console")

    url = _getenv("SUPABASE_URL") or _clean(supabase_secrets.get("url"))
    key = _getenv("SUPABASE_KEY") or _clean(supabase_secrets.get("key"))
    local_db = _getenv("CONSOLE_LOCAL_DB") or _clean(console_secrets.get("local_db"))
    log_level = _getenv("CONSOLE_LOG_LEVEL") or _clean(console_secrets.get("log_level")) or "INFO"

    config = AppConfig(
        supabase_url=url,
        supabase_key=key,
        local_db_path=Path(local_db) if local_db else DEFAULT_LOCAL_DB_PATH,
        log_level=log_level.upper(),
    )

    if not config.has_remote_credentials:
        logger.warning("Supabase credentials not configured; the local mirror will serve all requests")
    elif not config.remote_url_looks_valid:
        logger.warning(f"SUPABASE_URL does not look like an http(s) URL: {config.supabase_url!r}")

    return config
