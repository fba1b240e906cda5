"""
Geometry classification and outline visibility for Esri symbols.

Exports:
    detect_geometry_type: Esri symbol type tag to MapLibre geometry kind
    has_visible_outline: Whether a symbol outline should be drawn
    outline_width: Outline width with the Esri default applied
"""

from typing import Optional

from config.defaults import TransformDefaults

from .colors import color_alpha
from .models import EsriOutline, EsriSymbol, GeometryKind


SYMBOL_GEOMETRY = {
    "esriSFS": GeometryKind.FILL,    # Simple Fill Symbol
    "esriSLS": GeometryKind.LINE,    # Simple Line Symbol
    "esriSMS": GeometryKind.CIRCLE,  # Simple Marker Symbol
    "esriPMS": GeometryKind.CIRCLE,  # Picture Marker Symbol
    "esriPFS": GeometryKind.FILL,    # Picture Fill Symbol
}


def detect_geometry_type(symbol: Optional[EsriSymbol]) -> GeometryKind:
    """Geometry kind for a symbol; unknown or absent symbols render as fill."""
    if symbol is None:
        return GeometryKind.FILL
    return SYMBOL_GEOMETRY.get(symbol.type, GeometryKind.FILL)


def outline_width(outline: EsriOutline) -> float:
    """Esri omits width for hairline outlines; treat as 1px."""
    return outline.width if outline.width is not None else 1


def has_visible_outline(outline: Optional[EsriOutline]) -> bool:
    """
    Check if an Esri outline should be rendered.

    Invisible when absent, styled esriSLSNull, color null, width 0,
    or color alpha 0.
    """
    if outline is None:
        return False
    if outline.style == TransformDefaults.NULL_LINE_STYLE:
        return False
    if outline.color is None:
        return False
    if outline.width is not None and outline.width == 0:
        return False
    if color_alpha(outline.color) == 0:
        return False
    return True
