"""
WebMap Styles Pydantic Models.

Defines schemas for:
- Esri WebMap input (operational layers, renderers, symbols, popups)
- MapLibre layer config output (paint, legend, popup)

Esri field names are kept as they appear on the wire (camelCase). Unknown
keys are ignored; colors stay loosely typed so malformed values reach the
color codec and get defaulted instead of failing validation.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


Number = Union[int, float]


class GeometryKind(str, Enum):
    """MapLibre layer geometry type produced for a layer."""
    FILL = "fill"
    LINE = "line"
    CIRCLE = "circle"


class RendererType(str, Enum):
    """Esri renderer type tags understood by the translator."""
    SIMPLE = "simple"
    UNIQUE_VALUE = "uniqueValue"
    CLASS_BREAKS = "classBreaks"


class EsriModel(BaseModel):
    """Base for Esri input models: tolerate extra keys."""
    model_config = ConfigDict(extra="ignore")


# ============================================================================
# ESRI SYMBOLS
# ============================================================================

class EsriOutline(EsriModel):
    """Outline of a fill or marker symbol."""
    color: Optional[Any] = None
    width: Optional[Number] = None
    style: Optional[str] = None


class EsriSymbol(EsriModel):
    """
    Esri symbol (esriSFS, esriSLS, esriSMS, esriPMS, esriPFS).

    size applies to markers, width to lines.
    """
    type: Optional[str] = None
    color: Optional[Any] = None
    size: Optional[Number] = None
    width: Optional[Number] = None
    outline: Optional[EsriOutline] = None


# ============================================================================
# ESRI RENDERERS (closed sum type, see parse_renderer)
# ============================================================================

class UniqueValueInfo(EsriModel):
    value: Optional[Any] = None
    label: Optional[str] = None
    symbol: Optional[EsriSymbol] = None


class ClassBreakInfo(EsriModel):
    classMaxValue: Number
    label: Optional[str] = None
    symbol: Optional[EsriSymbol] = None


class ColorStop(EsriModel):
    value: Number
    color: Optional[Any] = None
    label: Optional[str] = None


class ColorVisualVariable(EsriModel):
    """
    Continuous color ramp attached to a renderer.

    Example:
        {"type": "colorInfo", "field": "pop", "stops": [{"value": 0, "color": [...]}]}
    """
    type: Literal["colorInfo"] = "colorInfo"
    field: Optional[str] = None
    stops: List[ColorStop] = Field(default_factory=list)


class SimpleRenderer(EsriModel):
    type: Literal["simple"] = "simple"
    symbol: Optional[EsriSymbol] = None
    label: Optional[str] = None


class UniqueValueRenderer(EsriModel):
    type: Literal["uniqueValue"] = "uniqueValue"
    field1: Optional[str] = None
    field: Optional[str] = None
    defaultSymbol: Optional[EsriSymbol] = None
    defaultLabel: Optional[str] = None
    label: Optional[str] = None
    uniqueValueInfos: List[UniqueValueInfo] = Field(default_factory=list)

    @property
    def field_name(self) -> Optional[str]:
        return self.field1 or self.field


class ClassBreaksRenderer(EsriModel):
    type: Literal["classBreaks"] = "classBreaks"
    field: Optional[str] = None
    minValue: Optional[Number] = None
    defaultSymbol: Optional[EsriSymbol] = None
    classBreakInfos: List[ClassBreakInfo] = Field(default_factory=list)
    visualVariables: List[Dict[str, Any]] = Field(default_factory=list)

    def color_ramp(self) -> Optional[ColorVisualVariable]:
        """First colorInfo visual variable with at least one stop, if any."""
        for vv in self.visualVariables:
            if isinstance(vv, dict) and vv.get("type") == "colorInfo":
                ramp = ColorVisualVariable.model_validate(vv)
                if ramp.stops:
                    return ramp
        return None


class UnknownRenderer(EsriModel):
    """Renderer whose type tag is not handled (heatmap, dotDensity, ...)."""
    model_config = ConfigDict(extra="allow")
    type: Optional[str] = None


EsriRenderer = Union[SimpleRenderer, UniqueValueRenderer, ClassBreaksRenderer, UnknownRenderer]

_RENDERER_MODELS = {
    RendererType.SIMPLE.value: SimpleRenderer,
    RendererType.UNIQUE_VALUE.value: UniqueValueRenderer,
    RendererType.CLASS_BREAKS.value: ClassBreaksRenderer,
}


def parse_renderer(data: Any) -> Optional[EsriRenderer]:
    """
    Parse a raw renderer dict into its variant model.

    Returns:
        Variant model, UnknownRenderer for unhandled type tags, None when absent
    """
    if data is None:
        return None
    if isinstance(data, BaseModel):
        return data
    if not isinstance(data, dict):
        return UnknownRenderer(type=type(data).__name__)

    model = _RENDERER_MODELS.get(data.get("type"))
    if model is None:
        return UnknownRenderer.model_validate(data)
    return model.model_validate(data)


class EsriDrawingInfo(EsriModel):
    renderer: Optional[Any] = None

    def parsed_renderer(self) -> Optional[EsriRenderer]:
        return parse_renderer(self.renderer)


# ============================================================================
# ESRI POPUPS AND LAYERS
# ============================================================================

class EsriFieldFormat(EsriModel):
    dateFormat: Optional[str] = None
    digitSeparator: Optional[bool] = None
    places: Optional[int] = None


class EsriFieldInfo(EsriModel):
    """
    Popup field entry.

    fieldName is absent on expression fields. visible stays raw so only a
    JSON true (not 1 or "true") shows the field.
    """
    fieldName: Optional[str] = None
    label: Optional[str] = None
    visible: Any = None
    format: Optional[EsriFieldFormat] = None


class EsriPopupInfo(EsriModel):
    title: Optional[str] = None
    fieldInfos: List[EsriFieldInfo] = Field(default_factory=list)


class EsriLayerDefinition(EsriModel):
    drawingInfo: Optional[EsriDrawingInfo] = None
    definitionExpression: Optional[str] = None
    minScale: Optional[Number] = None
    maxScale: Optional[Number] = None


class EsriOperationalLayer(EsriModel):
    id: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    opacity: Optional[Number] = None
    layerDefinition: Optional[EsriLayerDefinition] = None
    popupInfo: Optional[EsriPopupInfo] = None

    @property
    def drawing_info(self) -> Optional[EsriDrawingInfo]:
        return self.layerDefinition.drawingInfo if self.layerDefinition else None

    @property
    def has_renderer(self) -> bool:
        drawing_info = self.drawing_info
        return drawing_info is not None and drawing_info.renderer is not None


class EsriWebMap(EsriModel):
    """
    Top-level WebMap document.

    Layers stay raw here and are validated one at a time, so a single
    malformed layer cannot reject the whole document.
    """
    operationalLayers: List[Any]


class ServiceMetadata(EsriModel):
    """Subset of a feature service layer's ?f=json response."""
    drawingInfo: Optional[EsriDrawingInfo] = None
    description: Optional[str] = None


# ============================================================================
# MAPLIBRE OUTPUT MODELS
# ============================================================================

class LegendItem(BaseModel):
    """A single legend swatch."""
    type: GeometryKind
    color: str
    label: str
    width: Optional[Number] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class PopupFieldFormat(BaseModel):
    dateFormat: Optional[str] = None
    digitSeparator: Optional[bool] = None
    places: Optional[int] = None


class PopupField(BaseModel):
    field: str
    label: str
    format: Optional[PopupFieldFormat] = None


class PopupConfig(BaseModel):
    """Popup title template plus the visible fields, in display order."""
    title: str = ""
    fields: List[PopupField] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class RendererResult(BaseModel):
    """
    Output of a renderer converter.

    paint values may still be expression objects; they are serialized to
    MapLibre arrays when the layer config is assembled.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    paint: Dict[str, Any] = Field(default_factory=dict)
    legend: List[LegendItem] = Field(default_factory=list)
    geomType: GeometryKind = GeometryKind.FILL
    outlinePaint: Optional[Dict[str, Any]] = None

    @classmethod
    def empty(cls) -> "RendererResult":
        return cls()


class LayerConfig(BaseModel):
    """
    MapLibre layer record produced for one operational layer.

    paint / outlinePaint hold serialized MapLibre values (plain JSON).
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: GeometryKind
    url: str
    where: Optional[str] = None
    minZoom: Optional[float] = None
    maxZoom: Optional[float] = None
    opacity: Number = 1
    paint: Dict[str, Any] = Field(default_factory=dict)
    outlinePaint: Optional[Dict[str, Any]] = None
    legend: List[LegendItem] = Field(default_factory=list)
    popup: Optional[PopupConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: optional keys omitted when absent, popup always present."""
        result: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "url": self.url,
        }
        if self.where:
            result["where"] = self.where
        if self.minZoom is not None:
            result["minZoom"] = self.minZoom
        if self.maxZoom is not None:
            result["maxZoom"] = self.maxZoom
        result["opacity"] = self.opacity
        result["paint"] = self.paint
        if self.outlinePaint:
            result["outlinePaint"] = self.outlinePaint
        result["legend"] = [item.to_dict() for item in self.legend]
        result["popup"] = self.popup.to_dict() if self.popup else None
        return result

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)
