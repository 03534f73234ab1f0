"""
Configuration and logging setup.
Secrets come from Streamlit secrets first, then environment variables.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Union

import streamlit as st
from supabase import Client, create_client
from supabase.client import ClientOptions

from errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DAILY_RATE = 800
DEFAULT_APP_URL = "http://localhost:8501"
DEFAULT_CURRENCY = "UAH"

REQUIRED_SECRETS = ("SUPABASE_URL", "SUPABASE_ANON_KEY")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_secret(name: str, default=None):
    """Look up a setting in secrets.toml, then the process environment."""
    try:
        value = st.secrets[name]
    except Exception:
        # no secrets file, or the key is not in it
        value = None
    return os.getenv(name, default) if value is None else value


def configure_logging() -> None:
    """Configure root logging once per process; later calls are no-ops."""
    level_name = str(get_secret("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass(frozen=True)
class Configured:
    client: Client


@dataclass(frozen=True)
class Unconfigured:
    reason: str


Backend = Union[Configured, Unconfigured]


def load_backend(factory: Callable[..., Client] = create_client) -> Backend:
    """
    Build the Supabase client from secrets.

    Args:
        factory: Client constructor (injectable for tests)

    Returns:
        Configured with a client, or Unconfigured naming what is missing
    """
    values = {name: get_secret(name) for name in REQUIRED_SECRETS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        reason = f"Missing {' / '.join(missing)}. Add them to Streamlit secrets or the environment."
        logger.warning("Backend unconfigured: %s", reason)
        return Unconfigured(reason)

    try:
        # PKCE lets the server finish the OAuth redirect itself
        client = factory(
            values["SUPABASE_URL"],
            values["SUPABASE_ANON_KEY"],
            options=ClientOptions(flow_type="pkce"),
        )
    except Exception as e:
        logger.exception("Supabase client creation failed")
        return Unconfigured(f"Supabase client could not be created: {e}")
    return Configured(client)


def require_client(backend: Backend) -> Client:
    if isinstance(backend, Configured):
        return backend.client
    raise ConfigurationError(backend.reason)


def app_url() -> str:
    return str(get_secret("APP_URL", DEFAULT_APP_URL)).rstrip("/")


def currency_label() -> str:
    return str(get_secret("CURRENCY", DEFAULT_CURRENCY))
