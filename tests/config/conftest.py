"""
Config test fixtures — clean environment via monkeypatch.
"""

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all env vars that config modules might read, for isolation."""
    env_vars_to_clear = [
        "WEBMAP_EXCLUDED_LAYERS", "WEBMAP_SERVICE_RENDERER_TITLES",
        "WEBMAP_CIRCLE_RADIUS_FACTOR", "WEBMAP_FETCH_TIMEOUT",
        "WEBMAP_MAX_FETCH_WORKERS", "WEBMAP_PORTAL_URL", "WEBMAP_DEFAULT_ID",
        "DEBUG_LOGGING",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
