"""
WebMap Styles Module.

Transforms Esri WebMap JSON into MapLibre layer configs:
- Paint expressions from simple, unique value, class breaks and
  continuous color ramp renderers
- Legends, popups, filters and zoom ranges per layer
- Live feature service fallback for missing or wrong renderers

Usage:
    from webmap_styles import WebMapTransformService

    service = WebMapTransformService()
    configs = service.transform(webmap_json)
    payload = [config.to_dict() for config in configs]
"""

from .cache import LayerConfigCache
from .client import ArcGISServiceClient, build_webmap_url
from .colors import color_alpha, convert_opacity, esri_color_to_css
from .geometry import detect_geometry_type, has_visible_outline
from .labels import parse_service_description
from .models import GeometryKind, LayerConfig, LegendItem, PopupConfig, RendererResult
from .popup import build_where_clause, transform_popup_config
from .scale import convert_scale_to_zoom, scale_to_zoom, zoom_to_scale
from .service import LayerConfigService, WebMapTransformService, get_display_title, title_to_kebab
from .translator import RendererTranslator, transform_esri_renderer, transform_legend_config

__all__ = [
    "ArcGISServiceClient",
    "GeometryKind",
    "LayerConfig",
    "LayerConfigCache",
    "LayerConfigService",
    "LegendItem",
    "PopupConfig",
    "RendererResult",
    "RendererTranslator",
    "WebMapTransformService",
    "build_webmap_url",
    "build_where_clause",
    "color_alpha",
    "convert_opacity",
    "convert_scale_to_zoom",
    "detect_geometry_type",
    "esri_color_to_css",
    "get_display_title",
    "has_visible_outline",
    "parse_service_description",
    "scale_to_zoom",
    "title_to_kebab",
    "transform_esri_renderer",
    "transform_legend_config",
    "transform_popup_config",
    "zoom_to_scale",
]
