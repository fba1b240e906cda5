"""
Esri color conversion.

Esri symbols carry colors as [r, g, b, a] integer arrays (0-255 per
channel). MapLibre paint properties take CSS color strings.

Exports:
    esri_color_to_css: Esri RGBA array to CSS hex / rgba() string
    color_alpha: Alpha channel (0-255) of an Esri color
    convert_opacity: Layer opacity with the Esri default applied
"""

from numbers import Real
from typing import Any, Optional

from config.defaults import TransformDefaults


def _channels(color: Any) -> Optional[tuple]:
    """Return (r, g, b, a) as ints, or None if the color is unusable."""
    if not isinstance(color, (list, tuple)) or len(color) < 3:
        return None

    values = list(color[:4])
    if len(values) == 3:
        values.append(255)

    channels = []
    for v in values:
        # bool is a Real subclass; [true, false, ...] is not a color
        if isinstance(v, bool) or not isinstance(v, Real):
            return None
        channels.append(int(v))
    return tuple(channels)


def esri_color_to_css(color: Any) -> str:
    """
    Convert Esri RGBA array to CSS color string.

    Esri uses 0-255 for alpha, CSS uses 0-1. Fully opaque colors collapse
    to hex.

    Args:
        color: Esri color [r, g, b, a] (a optional), or None

    Returns:
        "#rrggbb" when alpha is 255, "rgba(r, g, b, 0.xx)" otherwise,
        neutral gray for null or malformed input

    Example:
        esri_color_to_css([255, 0, 0, 255])  # "#ff0000"
        esri_color_to_css([255, 0, 0, 128])  # "rgba(255, 0, 0, 0.50)"
    """
    channels = _channels(color)
    if channels is None:
        return TransformDefaults.FALLBACK_COLOR

    r, g, b, a = channels
    alpha = a / 255

    if alpha == 1:
        return f"#{r:02x}{g:02x}{b:02x}"

    return f"rgba({r}, {g}, {b}, {alpha:.2f})"


def color_alpha(color: Any) -> Optional[int]:
    """Alpha channel of an Esri color (255 when omitted), None if malformed."""
    channels = _channels(color)
    if channels is None:
        return None
    return channels[3]


def convert_opacity(opacity: Optional[float]) -> float:
    """Esri layer opacity (0-1) to MapLibre opacity; absent means opaque."""
    return opacity if opacity is not None else 1
