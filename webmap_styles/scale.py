"""
Scale / zoom conversion.

Esri minScale = layer disappears when zoomed OUT beyond this scale (large number)
Esri maxScale = layer disappears when zoomed IN beyond this scale (small number)

MapLibre minzoom = layer appears at this zoom and higher
MapLibre maxzoom = layer disappears at this zoom and higher

Formula: zoom = log2(559082264 / scale)

Exports:
    scale_to_zoom: Scale denominator to zoom level
    zoom_to_scale: Zoom level to scale denominator
    convert_scale_to_zoom: Esri minScale/maxScale to minZoom/maxZoom
"""

import math
from typing import Dict, Optional

from config.defaults import TransformDefaults


def round2(value: float) -> float:
    # Half-up, matching the zoom values emitted by existing layer configs
    return math.floor(value * 100 + 0.5) / 100


def scale_to_zoom(scale: Optional[float]) -> Optional[float]:
    """
    Convert a map scale denominator to a zoom level.

    Returns:
        Zoom rounded to 2 decimals, or None when scale is absent or <= 0
    """
    if not scale or scale <= 0:
        return None
    return round2(math.log2(TransformDefaults.SCALE_AT_ZOOM_0 / scale))


def zoom_to_scale(zoom: float) -> float:
    """Convert a zoom level back to a scale denominator."""
    return TransformDefaults.SCALE_AT_ZOOM_0 / (2 ** zoom)


def convert_scale_to_zoom(
    min_scale: Optional[float] = None,
    max_scale: Optional[float] = None
) -> Dict[str, float]:
    """
    Convert Esri minScale/maxScale to MapLibre minZoom/maxZoom.

    The naming sense inverts across the two systems but the mapping does not:
    Esri minScale (zoomed-out limit) -> minZoom,
    Esri maxScale (zoomed-in limit) -> maxZoom.

    Example:
        convert_scale_to_zoom(100000, 5000)  # {"minZoom": 12.45, "maxZoom": 16.77}
    """
    result: Dict[str, float] = {}

    min_zoom = scale_to_zoom(min_scale)
    if min_zoom is not None:
        result["minZoom"] = min_zoom

    max_zoom = scale_to_zoom(max_scale)
    if max_zoom is not None:
        result["maxZoom"] = max_zoom

    return result
