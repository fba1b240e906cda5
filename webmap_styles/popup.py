"""
Popup and filter conversion.

Exports:
    transform_popup_config: Esri popupInfo to PopupConfig
    build_where_clause: Esri definitionExpression as where clause
"""

from typing import Any, Dict, Optional, Union

from .models import (
    EsriFieldFormat,
    EsriLayerDefinition,
    EsriPopupInfo,
    PopupConfig,
    PopupField,
    PopupFieldFormat,
)


def _convert_format(fmt: Optional[EsriFieldFormat]) -> Optional[PopupFieldFormat]:
    """Keep only defined format hints; None when nothing is left."""
    if fmt is None:
        return None

    values: Dict[str, Any] = {}
    if fmt.dateFormat:
        values["dateFormat"] = fmt.dateFormat
    if fmt.digitSeparator is not None:
        values["digitSeparator"] = fmt.digitSeparator
    if fmt.places is not None:
        values["places"] = fmt.places

    if not values:
        return None
    return PopupFieldFormat(**values)


def transform_popup_config(
    popup_info: Union[EsriPopupInfo, Dict[str, Any], None]
) -> Optional[PopupConfig]:
    """
    Transform Esri popupInfo to a popup configuration.

    Only named fields whose visible flag is explicitly true are kept, in
    their original order. Labels fall back to the field name.

    Returns:
        PopupConfig, or None if the layer has no popup info

    Example:
        transform_popup_config({"title": "{NAME}", "fieldInfos": [
            {"fieldName": "name", "label": "Name", "visible": True}]})
        # PopupConfig(title="{NAME}", fields=[PopupField(field="name", label="Name")])
    """
    if popup_info is None:
        return None
    if isinstance(popup_info, dict):
        popup_info = EsriPopupInfo.model_validate(popup_info)

    fields = [
        PopupField(
            field=f.fieldName,
            label=f.label or f.fieldName,
            format=_convert_format(f.format)
        )
        for f in popup_info.fieldInfos
        if f.visible is True and f.fieldName
    ]

    return PopupConfig(title=popup_info.title or "", fields=fields)


def build_where_clause(layer_definition: Optional[EsriLayerDefinition]) -> Optional[str]:
    """
    Extract the definitionExpression as a where clause.

    Example:
        build_where_clause(layer.layerDefinition)  # "STATUS = 'Active' AND YEAR >= 2020"
    """
    if layer_definition is None:
        return None
    return layer_definition.definitionExpression or None
