"""
WebMap Transform Configuration.

Provides configuration for:
    - Layer exclusion list (known-incomplete datasets)
    - Service renderer override list (titles whose WebMap renderer is wrong)
    - Symbol sizing constant
    - Feature service fetch settings

Exports:
    TransformConfig: Pydantic transform configuration model
    parse_list_env: Split a list-valued environment variable
"""

import json
import os
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from config.defaults import ServiceDefaults, TransformDefaults
from exceptions import ConfigurationError


def parse_list_env(raw: Optional[str]) -> List[str]:
    """
    Split a list-valued environment variable.

    Accepts a JSON array (for values containing commas) or a comma /
    newline separated string. Blank entries are dropped.
    """
    if not raw or not raw.strip():
        return []

    text = raw.strip()
    if text.startswith("["):
        try:
            values = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON list in environment: {e}") from e
        if not isinstance(values, list):
            raise ConfigurationError("JSON list environment value must be an array")
        return [str(v).strip() for v in values if str(v).strip()]

    parts = text.replace("\n", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


# ============================================================================
# TRANSFORM CONFIGURATION
# ============================================================================

class TransformConfig(BaseModel):
    """
    WebMap to MapLibre transform configuration.

    The exclusion and override lists are per-deployment knowledge about
    one portal's datasets, so they default to empty.
    """

    # Layer selection
    excluded_layers: List[str] = Field(
        default_factory=list,
        description="Layer ids, titles or kebab ids skipped during transformation",
        examples=[["business-violations-under-construction"]]
    )

    service_renderer_titles: List[str] = Field(
        default_factory=list,
        description="Layer titles whose renderer is always taken from the live feature service",
        examples=[["Land Use", "Zoning_Base Districts"]]
    )

    # Symbol conversion
    circle_radius_factor: float = Field(
        default=TransformDefaults.CIRCLE_RADIUS_FACTOR,
        gt=0,
        le=10,
        description="Multiplier from Esri marker size (points) to MapLibre circle-radius (pixels)"
    )

    # Feature service access
    fetch_timeout_seconds: float = Field(
        default=ServiceDefaults.FETCH_TIMEOUT_SECONDS,
        gt=0,
        le=300,
        description="Timeout for a single service metadata request"
    )

    max_fetch_workers: int = Field(
        default=ServiceDefaults.MAX_FETCH_WORKERS,
        ge=1,
        le=64,
        description="Maximum concurrent service metadata requests per transformation"
    )

    portal_url: str = Field(
        default=ServiceDefaults.PORTAL_URL,
        description="ArcGIS portal base URL for WebMap item requests",
        examples=["https://www.arcgis.com", "https://phl.maps.arcgis.com"]
    )

    default_webmap_id: str = Field(
        default=ServiceDefaults.DEFAULT_WEBMAP_ID,
        description="WebMap item id loaded when no id is given"
    )

    @field_validator("portal_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def is_excluded(self, *identifiers: Optional[str]) -> bool:
        """True if any of the given layer identifiers is in the exclusion list."""
        excluded = set(self.excluded_layers)
        return any(i in excluded for i in identifiers if i)

    def uses_service_renderer(self, title: Optional[str]) -> bool:
        """True if the layer title is forced to use the service renderer."""
        return bool(title) and title in self.service_renderer_titles

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        try:
            return cls(
                excluded_layers=parse_list_env(os.environ.get("WEBMAP_EXCLUDED_LAYERS")),
                service_renderer_titles=parse_list_env(os.environ.get("WEBMAP_SERVICE_RENDERER_TITLES")),
                circle_radius_factor=_float_env("WEBMAP_CIRCLE_RADIUS_FACTOR", TransformDefaults.CIRCLE_RADIUS_FACTOR),
                fetch_timeout_seconds=_float_env("WEBMAP_FETCH_TIMEOUT", ServiceDefaults.FETCH_TIMEOUT_SECONDS),
                max_fetch_workers=_int_env("WEBMAP_MAX_FETCH_WORKERS", ServiceDefaults.MAX_FETCH_WORKERS),
                portal_url=os.environ.get("WEBMAP_PORTAL_URL", ServiceDefaults.PORTAL_URL),
                default_webmap_id=os.environ.get("WEBMAP_DEFAULT_ID", ServiceDefaults.DEFAULT_WEBMAP_ID)
            )
        except ValueError as e:
            # pydantic.ValidationError subclasses ValueError
            raise ConfigurationError(f"Invalid transform configuration: {e}") from e
