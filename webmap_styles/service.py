"""
WebMap Transform Service Layer.

Business logic for turning an Esri WebMap into MapLibre layer configs:
- Select operational layers (skip group layers and excluded layers)
- Resolve drawing info, fetching live service metadata where needed
- Translate renderer, popup, filter and scale range per layer
- Return layer configs sorted by display title

Fetching is the only I/O and runs first, concurrently; per-layer
conversion is pure and runs after every fetch has completed.

Usage:
    service = WebMapTransformService()
    configs = service.transform(webmap_json)

    loader = LayerConfigService()
    configs = loader.get_layer_configs("376af635c84643cd816a8c5d017a53aa")

Exports:
    WebMapTransformService, LayerConfigService, title_to_kebab, get_display_title
"""

import locale
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from config import TransformConfig, get_config
from exceptions import InvalidWebMapError, ServiceFetchError
from util_logger import ComponentType, LoggerFactory, log_exceptions

from .cache import LayerConfigCache
from .client import ArcGISServiceClient
from .colors import convert_opacity
from .expressions import serialize_paint
from .labels import parse_service_description
from .models import EsriOperationalLayer, EsriWebMap, LayerConfig, ServiceMetadata
from .popup import build_where_clause, transform_popup_config
from .scale import convert_scale_to_zoom
from .translator import RendererTranslator


# ============================================================================
# ID / TITLE DERIVATION
# ============================================================================

def get_display_title(title: str) -> str:
    """
    Display title without the group prefix.

    Example:
        get_display_title("Group_Land Use")  # "Land Use"
    """
    if "_" in title:
        return " ".join(title.split("_")[1:])
    return title


def title_to_kebab(title: str) -> str:
    """
    Layer id from a raw title: group prefix removed, kebab-case.

    Example:
        title_to_kebab("Group_Land Use")  # "land-use"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", get_display_title(title).lower())
    return slug.strip("-")


def _sort_key(config: LayerConfig) -> Tuple[str, str]:
    # Locale collation first, raw title breaks ties deterministically
    return locale.strxfrm(config.title.casefold()), config.title


# ============================================================================
# TRANSFORM SERVICE
# ============================================================================

class WebMapTransformService:
    """
    WebMap to MapLibre layer config orchestration.

    Coordinates the service client (I/O) and the renderer translator (pure
    conversion). A failure in one layer is logged and that layer omitted.
    """

    def __init__(
        self,
        config: Optional[TransformConfig] = None,
        client: Optional[ArcGISServiceClient] = None,
        translator: Optional[RendererTranslator] = None
    ):
        """
        Initialize service with optional collaborators.

        Args:
            config: Transform configuration (global config if not provided)
            client: Service client (creates default if not provided)
            translator: Renderer translator (creates default if not provided)
        """
        self.config = config or get_config()
        self.client = client or ArcGISServiceClient(
            timeout=self.config.fetch_timeout_seconds,
            portal_url=self.config.portal_url
        )
        self.translator = translator or RendererTranslator(
            circle_radius_factor=self.config.circle_radius_factor
        )
        self.logger = LoggerFactory.create_logger(ComponentType.SERVICE, "WebMapTransformService")

    def transform(self, webmap: Union[Dict[str, Any], EsriWebMap]) -> List[LayerConfig]:
        """
        Transform an Esri WebMap document to layer configs.

        Args:
            webmap: WebMap JSON object

        Returns:
            Layer configs sorted by display title; may hold fewer entries
            than the WebMap has layers

        Raises:
            InvalidWebMapError: If the document is not an object or has no
                operationalLayers list
        """
        document = self._validate_document(webmap)
        layers = self._select_layers(document.operationalLayers)
        service_data = self._fetch_service_data(layers)

        configs: List[LayerConfig] = []
        for index, layer in layers:
            title = layer.title or ""
            outcome = service_data.get(index)

            if isinstance(outcome, Exception):
                self.logger.error(
                    f"Error fetching service metadata for layer {title}: {outcome}",
                    exc_info=outcome,
                    extra={'custom_dimensions': {'layer_title': title, 'service_url': layer.url}}
                )
                continue

            try:
                configs.append(self._build_layer_config(layer, outcome))
            except Exception as e:
                self.logger.error(
                    f"Error transforming layer {title}: {e}",
                    exc_info=True,
                    extra={'custom_dimensions': {'layer_title': title, 'service_url': layer.url}}
                )

        configs.sort(key=_sort_key)

        self.logger.info(
            f"Transformed {len(configs)} of {len(document.operationalLayers)} operational layers",
            extra={'custom_dimensions': {
                'layer_count': len(document.operationalLayers),
                'config_count': len(configs),
                'fetch_count': len(service_data)
            }}
        )
        return configs

    # ========================================================================
    # LAYER SELECTION
    # ========================================================================

    @staticmethod
    def _validate_document(webmap: Any) -> EsriWebMap:
        if isinstance(webmap, EsriWebMap):
            return webmap
        if not isinstance(webmap, dict):
            raise InvalidWebMapError(
                f"WebMap document must be a JSON object, got {type(webmap).__name__}"
            )
        if not isinstance(webmap.get("operationalLayers"), list):
            raise InvalidWebMapError("WebMap document has no operationalLayers list")
        return EsriWebMap.model_validate(webmap)

    def _select_layers(self, raw_layers: List[Any]) -> List[Tuple[int, EsriOperationalLayer]]:
        """Parse layers and drop group layers, excluded layers and malformed entries."""
        selected = []
        for index, raw in enumerate(raw_layers):
            try:
                layer = EsriOperationalLayer.model_validate(raw)
            except PydanticValidationError as e:
                self.logger.error(
                    f"Skipping malformed operational layer at index {index}: {e.error_count()} errors",
                    extra={'custom_dimensions': {'layer_index': index}}
                )
                continue

            title = layer.title or ""

            # Group / folder layers carry no service URL
            if not layer.url:
                self.logger.info(
                    f"Skipping layer without URL: {title}",
                    extra={'custom_dimensions': {'layer_title': title}}
                )
                continue

            if self.config.is_excluded(layer.id, title, title_to_kebab(title)):
                self.logger.info(
                    f"Skipping excluded layer: {title}",
                    extra={'custom_dimensions': {'layer_title': title}}
                )
                continue

            selected.append((index, layer))
        return selected

    # ========================================================================
    # SERVICE FETCH (I/O)
    # ========================================================================

    def _needs_service_data(self, layer: EsriOperationalLayer) -> bool:
        return not layer.has_renderer or self.config.uses_service_renderer(layer.title)

    def _fetch_service_data(
        self,
        layers: List[Tuple[int, EsriOperationalLayer]]
    ) -> Dict[int, Union[ServiceMetadata, None, Exception]]:
        """
        Fetch service metadata for layers that need it, concurrently.

        Returns:
            Layer index -> ServiceMetadata, None (expected fetch failure),
            or the unexpected exception raised by the fetch
        """
        pending = [(index, layer) for index, layer in layers if self._needs_service_data(layer)]
        if not pending:
            return {}

        results: Dict[int, Union[ServiceMetadata, None, Exception]] = {}
        workers = min(self.config.max_fetch_workers, len(pending))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="webmap-fetch") as executor:
            futures = {
                executor.submit(self._fetch_one, layer): index
                for index, layer in pending
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    results[index] = e

        return results

    def _fetch_one(self, layer: EsriOperationalLayer) -> Optional[ServiceMetadata]:
        title = layer.title or ""
        self.logger.debug(
            f"Fetching service renderer for layer: {title}",
            extra={'custom_dimensions': {'layer_title': title, 'service_url': layer.url}}
        )
        try:
            return self.client.fetch_service_metadata(layer.url)
        except ServiceFetchError as e:
            self.logger.warning(
                f"Could not fetch service metadata for layer {title}: {e}",
                extra={'custom_dimensions': {
                    'layer_title': title,
                    'service_url': layer.url,
                    'status_code': e.status_code
                }}
            )
            return None

    # ========================================================================
    # PER-LAYER CONVERSION (pure)
    # ========================================================================

    def _build_layer_config(
        self,
        layer: EsriOperationalLayer,
        service_data: Optional[ServiceMetadata]
    ) -> LayerConfig:
        """Assemble one layer config from the layer and its resolved service data."""
        title = layer.title or ""
        drawing_info = layer.drawing_info
        custom_labels: Dict[str, str] = {}

        if service_data is not None:
            if service_data.drawingInfo is not None and service_data.drawingInfo.renderer is not None:
                drawing_info = service_data.drawingInfo
            custom_labels = parse_service_description(service_data.description)
            if custom_labels:
                self.logger.debug(
                    f"Parsed {len(custom_labels)} labels from service description for {title}",
                    extra={'custom_dimensions': {'layer_title': title}}
                )

        rendered = self.translator.translate(drawing_info, layer.opacity, custom_labels or None)

        layer_definition = layer.layerDefinition
        zoom_range = convert_scale_to_zoom(
            layer_definition.minScale if layer_definition else None,
            layer_definition.maxScale if layer_definition else None
        )

        return LayerConfig(
            id=title_to_kebab(title),
            title=get_display_title(title),
            type=rendered.geomType,
            url=layer.url,
            where=build_where_clause(layer_definition),
            minZoom=zoom_range.get("minZoom"),
            maxZoom=zoom_range.get("maxZoom"),
            opacity=convert_opacity(layer.opacity),
            paint=serialize_paint(rendered.paint),
            outlinePaint=rendered.outlinePaint,
            legend=rendered.legend,
            popup=transform_popup_config(layer.popupInfo)
        )


# ============================================================================
# CACHED LOADER
# ============================================================================

class LayerConfigService:
    """
    Fetches a WebMap by id, transforms it, and caches the result.

    Concurrent requests for the same WebMap id share one load.
    """

    def __init__(
        self,
        transformer: Optional[WebMapTransformService] = None,
        client: Optional[ArcGISServiceClient] = None,
        cache: Optional[LayerConfigCache] = None,
        config: Optional[TransformConfig] = None
    ):
        self.config = config or get_config()
        self.client = client or ArcGISServiceClient(
            timeout=self.config.fetch_timeout_seconds,
            portal_url=self.config.portal_url
        )
        self.transformer = transformer or WebMapTransformService(config=self.config, client=self.client)
        self.cache = cache if cache is not None else LayerConfigCache()
        self.logger = LoggerFactory.create_logger(ComponentType.SERVICE, "LayerConfigService")

    def get_layer_configs(
        self,
        webmap_id: Optional[str] = None,
        token: Optional[str] = None
    ) -> Tuple[LayerConfig, ...]:
        """
        Layer configs for a WebMap, loaded once per id.

        Args:
            webmap_id: Portal item id (configured default if not provided)
            token: Optional access token for private WebMaps

        Raises:
            ServiceFetchError: If the WebMap itself cannot be fetched
            InvalidWebMapError: If the fetched document is malformed
        """
        webmap_id = webmap_id or self.config.default_webmap_id
        return self.cache.get_or_load(webmap_id, lambda: self._load(webmap_id, token))

    @log_exceptions(ComponentType.SERVICE, "LayerConfigService")
    def _load(self, webmap_id: str, token: Optional[str]) -> List[LayerConfig]:
        webmap = self.client.fetch_webmap(webmap_id, token=token)
        configs = self.transformer.transform(webmap)
        self.logger.info(
            f"Loaded {len(configs)} layer configs for WebMap {webmap_id}",
            extra={'custom_dimensions': {'webmap_id': webmap_id, 'config_count': len(configs)}}
        )
        return configs

    def clear_cache(self, webmap_id: Optional[str] = None) -> None:
        """Clear cached configs for one WebMap, or all of them."""
        self.cache.clear(webmap_id)
