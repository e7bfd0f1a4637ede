"""
Initializes the Dynaconf settings object for sracp.
This module is the single source of truth for all configuration.

Values come from config/settings.toml next to this file, then
config/.secrets.toml, then environment variables prefixed with SRACP_.
Nested keys are reached with '__', e.g. SRACP_RESOLVER__default_endpoint.
"""

from pathlib import Path
from dynaconf import Dynaconf

PACKAGE_ROOT = Path(__file__).parent


def load_settings() -> Dynaconf:
    return Dynaconf(
        root_path=PACKAGE_ROOT,
        settings_files=["config/settings.toml"],
        secrets=["config/.secrets.toml"],
        envvar_prefix="SRACP",
    )


settings = load_settings()
