"""
Esri Renderer Translator.

Translates Esri drawing-info renderers to MapLibre paint styles:
- Simple: single symbol for all features
- Unique value: "match" expression keyed on one field
- Class breaks: "step" expression over ascending class maxima
- Continuous ramp: "interpolate" expression from a colorInfo visual variable

Each converter returns a RendererResult (paint, legend, geometry kind and an
optional companion outline paint for fill layers). The translator performs
no I/O: drawing info must already be resolved by the caller.

Usage:
    translator = RendererTranslator()
    result = translator.translate(layer.drawing_info, layer_opacity=0.8)
    # result.paint = {"fill-color": "#ff0000", "fill-opacity": 0.8}
    # result.legend = [LegendItem(type="fill", color="#ff0000", label="Feature")]

Exports:
    RendererTranslator
    transform_esri_renderer: Module-level convenience wrapper
    transform_legend_config: Legend-only view of a renderer
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config.defaults import TransformDefaults
from util_logger import ComponentType, LoggerFactory

from .colors import color_alpha, convert_opacity, esri_color_to_css
from .expressions import (
    CaseExpr,
    FieldRef,
    InterpolateExpr,
    IsNull,
    MatchExpr,
    Output,
    StepExpr,
    canonical_value,
    format_number,
)
from .geometry import detect_geometry_type, has_visible_outline, outline_width
from .models import (
    ClassBreaksRenderer,
    ColorVisualVariable,
    EsriDrawingInfo,
    EsriSymbol,
    GeometryKind,
    LegendItem,
    RendererResult,
    SimpleRenderer,
    UniqueValueRenderer,
)
from .scale import round2


# Line width used by data-driven line layers when the symbol omits it
DATA_DRIVEN_LINE_WIDTH = 2


def fill_opacity(alpha: int, layer_opacity: float) -> float:
    """
    fill-opacity for one fill color given its alpha channel.

    A fully transparent color forces 0. Baked-in partial alpha forces 1.0
    so the transparency is not applied twice. An opaque color uses the
    layer opacity.
    """
    if alpha == 0:
        return 0
    if alpha < 255:
        return 1.0
    return layer_opacity


def _is_uniform(values: List[float]) -> bool:
    return len(set(values)) <= 1


def _is_transparent(alphas: List[int]) -> bool:
    return bool(alphas) and all(a == 0 for a in alphas)


def _alphas(colors: Iterable[Any]) -> List[int]:
    # Malformed colors render as the opaque fallback gray
    result = []
    for color in colors:
        alpha = color_alpha(color)
        result.append(255 if alpha is None else alpha)
    return result


class RendererTranslator:
    """
    Converts Esri renderers to MapLibre paint, legend and outline paint.

    The renderer sum type is dispatched in translate(); each convert_*
    method can also be called directly with a parsed renderer model.
    """

    def __init__(
        self,
        circle_radius_factor: Optional[float] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            circle_radius_factor: Esri marker size (points) to circle-radius
                (pixels) multiplier. Defaults to TransformDefaults.CIRCLE_RADIUS_FACTOR.
            logger: Optional logger (created from LoggerFactory if absent)
        """
        self.circle_radius_factor = (
            circle_radius_factor
            if circle_radius_factor is not None
            else TransformDefaults.CIRCLE_RADIUS_FACTOR
        )
        self.logger = logger or LoggerFactory.create_logger(
            ComponentType.TRANSLATOR,
            "RendererTranslator"
        )

    # ========================================================================
    # DISPATCH
    # ========================================================================

    def translate(
        self,
        drawing_info: Any,
        layer_opacity: Optional[float] = None,
        custom_labels: Optional[Dict[str, str]] = None
    ) -> RendererResult:
        """
        Transform Esri drawing info to MapLibre paint styles.

        Args:
            drawing_info: EsriDrawingInfo, raw drawingInfo dict, or None
            layer_opacity: Layer opacity (0-1), defaults to 1
            custom_labels: Optional code -> label lookup for unique values

        Returns:
            RendererResult; empty fill result when there is no usable renderer
        """
        if drawing_info is None:
            return RendererResult.empty()
        if isinstance(drawing_info, dict):
            drawing_info = EsriDrawingInfo.model_validate(drawing_info)

        renderer = drawing_info.parsed_renderer()
        if renderer is None:
            return RendererResult.empty()

        if isinstance(renderer, SimpleRenderer):
            return self.convert_simple(renderer, layer_opacity)
        if isinstance(renderer, UniqueValueRenderer):
            return self.convert_unique_value(renderer, layer_opacity, custom_labels)
        if isinstance(renderer, ClassBreaksRenderer):
            return self.convert_class_breaks(renderer, layer_opacity)

        self.logger.warning(
            f"Unknown renderer type: {renderer.type}",
            extra={'custom_dimensions': {'renderer_type': renderer.type}}
        )
        return RendererResult.empty()

    # ========================================================================
    # SIMPLE
    # ========================================================================

    def convert_simple(
        self,
        renderer: SimpleRenderer,
        layer_opacity: Optional[float] = None
    ) -> RendererResult:
        """Convert a simple renderer: one symbol, one legend entry."""
        symbol = renderer.symbol
        geom_type = detect_geometry_type(symbol)
        if symbol is None:
            return RendererResult(geomType=geom_type)

        color = esri_color_to_css(symbol.color)
        alpha = _alphas([symbol.color])[0]
        paint, outline_paint = self._build_paint(
            geom_type,
            color,
            symbol,
            layer_opacity,
            default_line_width=1,
            fill_opacity_value=fill_opacity(alpha, convert_opacity(layer_opacity)),
            transparent_fill=alpha == 0
        )

        legend = [
            self._legend_item(
                geom_type,
                color,
                renderer.label or TransformDefaults.DEFAULT_FEATURE_LABEL,
                symbol
            )
        ]

        return RendererResult(
            paint=paint,
            legend=legend,
            geomType=geom_type,
            outlinePaint=outline_paint
        )

    # ========================================================================
    # UNIQUE VALUE
    # ========================================================================

    def convert_unique_value(
        self,
        renderer: UniqueValueRenderer,
        layer_opacity: Optional[float] = None,
        custom_labels: Optional[Dict[str, str]] = None
    ) -> RendererResult:
        """
        Convert a unique value renderer to a match expression.

        Both sides of the match compare strings: renderer values are
        canonicalized here and the feature property is wrapped in to-string,
        so "11" and 11 select the same category.

        Legend label precedence: custom label, entry label, canonical value.
        """
        infos = renderer.uniqueValueInfos
        default_symbol = renderer.defaultSymbol
        field = renderer.field_name

        if not infos:
            return self.convert_simple(
                SimpleRenderer(symbol=default_symbol, label=renderer.defaultLabel or renderer.label),
                layer_opacity
            )

        first_symbol = infos[0].symbol or default_symbol
        if not field:
            self.logger.warning("Unique value renderer has no field, using first symbol only")
            return self.convert_simple(SimpleRenderer(symbol=first_symbol), layer_opacity)

        geom_type = detect_geometry_type(first_symbol)
        custom_labels = custom_labels or {}
        opacity = convert_opacity(layer_opacity)
        alphas = _alphas(info.symbol.color if info.symbol else None for info in infos)

        cases: List[Tuple[str, Output]] = []
        opacity_cases: List[Tuple[str, Output]] = []
        seen = set()
        legend: List[LegendItem] = []

        for info, alpha in zip(infos, alphas):
            symbol_color = info.symbol.color if info.symbol else None
            color = esri_color_to_css(symbol_color)
            key = canonical_value(info.value) if info.value is not None else None

            # Duplicate labels are invalid in a match expression; first wins
            if key is not None and key not in seen:
                seen.add(key)
                cases.append((key, color))
                opacity_cases.append((key, fill_opacity(alpha, opacity)))

            label = (
                (key and custom_labels.get(key))
                or info.label
                or key
                or TransformDefaults.DEFAULT_FEATURE_LABEL
            )
            legend.append(self._legend_item(geom_type, color, label, info.symbol))

        default_color = (
            esri_color_to_css(default_symbol.color)
            if default_symbol
            else TransformDefaults.FALLBACK_COLOR
        )
        default_opacity = fill_opacity(
            _alphas([default_symbol.color])[0] if default_symbol else 255,
            opacity
        )

        color_expr: Output = default_color
        opacity_expr: Output = default_opacity
        if cases:
            color_expr = MatchExpr(FieldRef(field, as_string=True), cases, default_color)
            opacity_values = [value for _, value in opacity_cases]
            opacity_expr = opacity_values[0]
            if not _is_uniform(opacity_values):
                opacity_expr = MatchExpr(FieldRef(field, as_string=True), opacity_cases, default_opacity)

        paint, outline_paint = self._build_paint(
            geom_type,
            color_expr,
            first_symbol,
            layer_opacity,
            default_line_width=DATA_DRIVEN_LINE_WIDTH,
            fill_opacity_value=opacity_expr,
            transparent_fill=_is_transparent(alphas)
        )

        self.logger.debug(
            f"Unique value renderer on '{field}' with {len(cases)} categories",
            extra={'custom_dimensions': {'field': field, 'category_count': len(cases)}}
        )

        return RendererResult(
            paint=paint,
            legend=legend,
            geomType=geom_type,
            outlinePaint=outline_paint
        )

    # ========================================================================
    # CLASS BREAKS
    # ========================================================================

    def convert_class_breaks(
        self,
        renderer: ClassBreaksRenderer,
        layer_opacity: Optional[float] = None
    ) -> RendererResult:
        """
        Convert a class breaks renderer to a step expression.

        step format: ["step", ["get", field], color0, max0, color1, max1, color2, ...]
        Class maxima are used in the order given (expected ascending).

        A colorInfo visual variable with at least one stop takes precedence
        and is converted as a continuous ramp.
        """
        ramp = renderer.color_ramp()
        if ramp is not None:
            return self.convert_continuous_ramp(renderer, ramp, layer_opacity)

        infos = renderer.classBreakInfos
        if not infos:
            return RendererResult.empty()

        first_symbol = infos[0].symbol or renderer.defaultSymbol
        field = renderer.field
        if not field:
            self.logger.warning("Class breaks renderer has no field, using first symbol only")
            return self.convert_simple(SimpleRenderer(symbol=first_symbol), layer_opacity)

        geom_type = detect_geometry_type(first_symbol)

        colors = [esri_color_to_css(info.symbol.color if info.symbol else None) for info in infos]
        stops = [(infos[i - 1].classMaxValue, colors[i]) for i in range(1, len(infos))]
        color_expr = StepExpr(FieldRef(field), colors[0], stops)

        legend: List[LegendItem] = []
        prev_max = renderer.minValue if renderer.minValue is not None else 0
        for info, color in zip(infos, colors):
            max_label = format_number(info.classMaxValue)
            if geom_type == GeometryKind.LINE:
                label = info.label or f"{format_number(prev_max)} - {max_label}"
            else:
                label = info.label or max_label
            legend.append(self._legend_item(geom_type, color, label, info.symbol))
            prev_max = info.classMaxValue

        opacity = convert_opacity(layer_opacity)
        alphas = _alphas(info.symbol.color if info.symbol else None for info in infos)
        opacities = [fill_opacity(alpha, opacity) for alpha in alphas]
        opacity_expr: Output = opacities[0]
        if not _is_uniform(opacities):
            opacity_expr = StepExpr(
                FieldRef(field),
                opacities[0],
                [(infos[i - 1].classMaxValue, opacities[i]) for i in range(1, len(infos))]
            )

        paint, outline_paint = self._build_paint(
            geom_type,
            color_expr,
            first_symbol,
            layer_opacity,
            default_line_width=DATA_DRIVEN_LINE_WIDTH,
            fill_opacity_value=opacity_expr,
            transparent_fill=_is_transparent(alphas)
        )

        return RendererResult(
            paint=paint,
            legend=legend,
            geomType=geom_type,
            outlinePaint=outline_paint
        )

    # ========================================================================
    # CONTINUOUS RAMP
    # ========================================================================

    def convert_continuous_ramp(
        self,
        renderer: ClassBreaksRenderer,
        ramp: ColorVisualVariable,
        layer_opacity: Optional[float] = None
    ) -> RendererResult:
        """
        Convert a colorInfo visual variable to an interpolate expression.

        Null field values resolve to a fully transparent color instead of
        being interpolated:
            ["case", ["==", ["get", f], null], "rgba(0, 0, 0, 0)",
             ["interpolate", ["linear"], ["get", f], v1, c1, ...]]

        Geometry and outline come from the first class break symbol, or the
        default symbol.
        """
        field = ramp.field or renderer.field
        symbol = (
            renderer.classBreakInfos[0].symbol
            if renderer.classBreakInfos and renderer.classBreakInfos[0].symbol
            else renderer.defaultSymbol
        )
        if not field:
            self.logger.warning("Color ramp has no field, using base symbol only")
            return self.convert_simple(SimpleRenderer(symbol=symbol), layer_opacity)

        geom_type = detect_geometry_type(symbol)

        colors = [esri_color_to_css(stop.color) for stop in ramp.stops]
        interpolate = InterpolateExpr(
            FieldRef(field),
            [(stop.value, color) for stop, color in zip(ramp.stops, colors)]
        )
        color_expr = CaseExpr(
            [(IsNull(FieldRef(field)), TransformDefaults.TRANSPARENT_COLOR)],
            interpolate
        )

        legend = [
            self._legend_item(geom_type, color, stop.label or format_number(stop.value), symbol)
            for stop, color in zip(ramp.stops, colors)
        ]

        opacity = convert_opacity(layer_opacity)
        alphas = _alphas(stop.color for stop in ramp.stops)
        opacities = [fill_opacity(alpha, opacity) for alpha in alphas]
        opacity_expr: Output = opacities[0]
        if not _is_uniform(opacities):
            opacity_expr = CaseExpr(
                [(IsNull(FieldRef(field)), 0)],
                InterpolateExpr(
                    FieldRef(field),
                    [(stop.value, value) for stop, value in zip(ramp.stops, opacities)]
                )
            )

        paint, outline_paint = self._build_paint(
            geom_type,
            color_expr,
            symbol,
            layer_opacity,
            default_line_width=DATA_DRIVEN_LINE_WIDTH,
            fill_opacity_value=opacity_expr,
            transparent_fill=_is_transparent(alphas)
        )

        self.logger.debug(
            f"Continuous ramp on '{field}' with {len(ramp.stops)} stops",
            extra={'custom_dimensions': {'field': field, 'stop_count': len(ramp.stops)}}
        )

        return RendererResult(
            paint=paint,
            legend=legend,
            geomType=geom_type,
            outlinePaint=outline_paint
        )

    # ========================================================================
    # PAINT HELPERS
    # ========================================================================

    def _build_paint(
        self,
        geom_type: GeometryKind,
        color: Output,
        symbol: Optional[EsriSymbol],
        layer_opacity: Optional[float],
        default_line_width: float,
        fill_opacity_value: Output,
        transparent_fill: bool
    ) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        """
        Paint for one geometry kind, plus the outline paint for fills.

        fill_opacity_value is a scalar, or an expression keyed like the
        fill color when entries carry different alpha channels.
        """
        opacity = convert_opacity(layer_opacity)
        outline = symbol.outline if symbol else None

        if geom_type == GeometryKind.LINE:
            width = symbol.width if symbol and symbol.width else default_line_width
            return {
                'line-color': color,
                'line-width': width,
                'line-opacity': opacity,
            }, None

        if geom_type == GeometryKind.CIRCLE:
            # Esri size is diameter in points, MapLibre radius is in pixels
            size = symbol.size if symbol and symbol.size else TransformDefaults.DEFAULT_MARKER_SIZE
            paint = {
                'circle-color': color,
                'circle-radius': round2(size * self.circle_radius_factor),
                'circle-opacity': opacity,
            }
            if has_visible_outline(outline):
                paint['circle-stroke-color'] = esri_color_to_css(outline.color)
                paint['circle-stroke-width'] = outline_width(outline)
            return paint, None

        paint = {
            'fill-color': color,
            'fill-opacity': fill_opacity_value,
        }
        outline_paint = None

        if has_visible_outline(outline):
            width = outline_width(outline)
            outline_color = esri_color_to_css(outline.color)

            # fill-outline-color is always drawn at 1px
            paint['fill-outline-color'] = outline_color

            # Thicker or fill-less outlines need a companion line layer
            if width > 1 or transparent_fill:
                outline_paint = {
                    'line-color': outline_color,
                    'line-width': width,
                }

        return paint, outline_paint

    @staticmethod
    def _legend_item(
        geom_type: GeometryKind,
        color: str,
        label: str,
        symbol: Optional[EsriSymbol]
    ) -> LegendItem:
        if geom_type == GeometryKind.LINE:
            width = symbol.width if symbol and symbol.width else 1
            return LegendItem(type=geom_type, color=color, label=label, width=width)
        return LegendItem(type=geom_type, color=color, label=label)


# ============================================================================
# MODULE-LEVEL HELPERS
# ============================================================================

def transform_esri_renderer(
    drawing_info: Any,
    layer_opacity: Optional[float] = None,
    custom_labels: Optional[Dict[str, str]] = None,
    circle_radius_factor: Optional[float] = None
) -> RendererResult:
    """
    Transform Esri drawing info to MapLibre paint styles.

    Convenience wrapper around RendererTranslator.translate().
    """
    translator = RendererTranslator(circle_radius_factor=circle_radius_factor)
    return translator.translate(drawing_info, layer_opacity, custom_labels)


def transform_legend_config(
    drawing_info: Any,
    layer_opacity: Optional[float] = None,
    custom_labels: Optional[Dict[str, str]] = None
) -> List[LegendItem]:
    """
    Generate legend entries from an Esri renderer.

    Same as the legend returned by transform_esri_renderer().
    """
    return transform_esri_renderer(drawing_info, layer_opacity, custom_labels).legend


__all__ = [
    'RendererTranslator',
    'fill_opacity',
    'transform_esri_renderer',
    'transform_legend_config',
]
