"""
Runtime settings for the dashboard.

Lookup order for each setting:
1. Environment variable LINKED_VIEWS_<NAME> (e.g. LINKED_VIEWS_GRANULARITY)
2. Streamlit secrets ([linked_views] table in .streamlit/secrets.toml)
3. Built-in default
"""
import os
import logging
from typing import Any, Optional

from .selection import LEVEL_FIELD, LEVEL_SIMULATION

logger = logging.getLogger(__name__)

ENV_PREFIX = 'LINKED_VIEWS_'
SECRETS_SECTION = 'linked_views'

DEFAULTS = {
    'data_dir': None,             # None -> ./data
    'granularity': LEVEL_SIMULATION,
    'log_level': 'INFO',
    'demo_simulations': 900,
}

GRANULARITIES = (LEVEL_SIMULATION, LEVEL_FIELD)


def _from_secrets(name: str) -> Optional[Any]:
    """Read a setting from st.secrets, tolerating a missing secrets file."""
    try:
        import streamlit as st
        # Note: accessing st.secrets throws if no secrets file exists
        if SECRETS_SECTION in st.secrets and name in st.secrets[SECRETS_SECTION]:
            return st.secrets[SECRETS_SECTION][name]
    except Exception:
        # No secrets configured - fall through to defaults
        pass
    return None


def get_setting(name: str, default: Optional[Any] = None) -> Any:
    """
    Resolve a setting by name.

    Args:
        name: Setting name (lower case, e.g. 'granularity')
        default: Fallback when neither env nor secrets define it
            (defaults to DEFAULTS[name])

    Returns:
        The resolved value (env values are strings)
    """
    env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
    if env_value not in (None, ''):
        return env_value

    secret_value = _from_secrets(name)
    if secret_value is not None:
        return secret_value

    return default if default is not None else DEFAULTS.get(name)


def get_granularity() -> str:
    """Selection granularity shared by all views ('simulation' or 'field')."""
    value = str(get_setting('granularity')).strip().lower()
    if value not in GRANULARITIES:
        logger.warning(f"Unknown granularity '{value}', using '{LEVEL_SIMULATION}'")
        return LEVEL_SIMULATION
    return value


def get_demo_simulations() -> int:
    value = get_setting('demo_simulations')
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        logger.warning(f"Invalid demo_simulations '{value}', using {DEFAULTS['demo_simulations']}")
        return DEFAULTS['demo_simulations']


def get_log_level() -> int:
    name = str(get_setting('log_level')).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
