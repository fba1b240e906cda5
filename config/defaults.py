"""
Configuration Defaults - Single source of truth for all default values.

Organization:
    - TransformDefaults: Conversion constants (scale/zoom, symbol sizing, colors)
    - ServiceDefaults: Portal and feature service access settings

Usage:
    from config.defaults import TransformDefaults

    # In Pydantic Field definitions:
    circle_radius_factor: float = Field(default=TransformDefaults.CIRCLE_RADIUS_FACTOR, ...)
"""


# =============================================================================
# TRANSFORM DEFAULTS
# =============================================================================

class TransformDefaults:
    """
    Conversion constants for WebMap to MapLibre translation.
    """

    # Approximate ground scale at zoom 0 (equatorial Web Mercator tiling)
    SCALE_AT_ZOOM_0 = 559082264

    # Esri marker size (diameter, points) to MapLibre circle-radius (pixels).
    # Tuned against one rendering target, override per deployment.
    CIRCLE_RADIUS_FACTOR = 0.71

    # Default Esri marker size when a point symbol has none
    DEFAULT_MARKER_SIZE = 6

    # Neutral gray for null / malformed colors and unmatched categories
    FALLBACK_COLOR = "#888888"

    # Substituted for "no data" values in continuous ramps
    TRANSPARENT_COLOR = "rgba(0, 0, 0, 0)"

    # Legend label for single-symbol layers without a renderer label
    DEFAULT_FEATURE_LABEL = "Feature"

    # Esri outline style meaning "draw no outline"
    NULL_LINE_STYLE = "esriSLSNull"


# =============================================================================
# SERVICE DEFAULTS
# =============================================================================

class ServiceDefaults:
    """
    Portal and feature service access settings.
    """

    PORTAL_URL = "https://www.arcgis.com"

    # Default WebMap item loaded when callers pass no id
    DEFAULT_WEBMAP_ID = "376af635c84643cd816a8c5d017a53aa"

    FETCH_TIMEOUT_SECONDS = 30.0

    # Upper bound on concurrent service metadata requests per transformation
    MAX_FETCH_WORKERS = 8
