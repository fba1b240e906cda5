"""
Root conftest.py — sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without network access or deployment-specific configuration.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'webmap_styles', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


WEBMAP_ENV_VARS = [
    "WEBMAP_EXCLUDED_LAYERS",
    "WEBMAP_SERVICE_RENDERER_TITLES",
    "WEBMAP_CIRCLE_RADIUS_FACTOR",
    "WEBMAP_FETCH_TIMEOUT",
    "WEBMAP_MAX_FETCH_WORKERS",
    "WEBMAP_PORTAL_URL",
    "WEBMAP_DEFAULT_ID",
]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """
    Clear WEBMAP_* env vars and the config singleton around every test.

    Deployment lists (exclusions, renderer overrides) must not leak from
    the developer's shell into assertions.
    """
    from config import reset_config

    for var in WEBMAP_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()
