"""
Configuration Package

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── defaults.py              # Constants and default values
    └── transform_config.py      # Transform settings (lists, sizing, fetch)

Usage:
    # Singleton pattern (preferred)
    from config import get_config
    config = get_config()
    factor = config.circle_radius_factor

    # Debug output
    from config import debug_config
    info = debug_config()
"""

from typing import Optional

from .defaults import ServiceDefaults, TransformDefaults
from .transform_config import TransformConfig, parse_list_env


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[TransformConfig] = None


def get_config() -> TransformConfig:
    """
    Get global configuration singleton.

    Returns:
        TransformConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = TransformConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None


def debug_config() -> dict:
    """
    Get configuration for debugging.

    Returns:
        Dictionary with configuration values, or an error entry
    """
    try:
        config = get_config()
        return {
            'excluded_layers': list(config.excluded_layers),
            'service_renderer_titles': list(config.service_renderer_titles),
            'circle_radius_factor': config.circle_radius_factor,
            'fetch_timeout_seconds': config.fetch_timeout_seconds,
            'max_fetch_workers': config.max_fetch_workers,
            'portal_url': config.portal_url,
            'default_webmap_id': config.default_webmap_id,
        }
    except Exception as e:
        return {'error': f'Configuration validation failed: {e}'}


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    'TransformConfig',
    'TransformDefaults',
    'ServiceDefaults',
    'get_config',
    'reset_config',
    'debug_config',
    'parse_list_env',
]
