"""
Renderer translator tests.

Covers the four renderer kinds, the transparency and outline promotion
rules, unique value type coercion and legend label precedence.
"""

import pytest

from webmap_styles.expressions import MatchExpr, serialize_paint
from webmap_styles.models import GeometryKind, LegendItem
from webmap_styles.translator import (
    RendererTranslator,
    fill_opacity,
    transform_esri_renderer,
    transform_legend_config,
)
from tests.factories.webmap_factories import (
    make_class_breaks_renderer,
    make_fill_symbol,
    make_line_symbol,
    make_marker_symbol,
    make_outline,
    make_simple_renderer,
    make_unique_value_renderer,
)

GREEN = [56, 168, 0, 255]
BLACK = [0, 0, 0, 255]


@pytest.fixture
def translator():
    return RendererTranslator()


def _translate(translator, renderer, opacity=None, custom_labels=None):
    return translator.translate({"renderer": renderer}, opacity, custom_labels)


class TestDispatch:

    def test_no_drawing_info(self, translator):
        result = translator.translate(None)
        assert result.paint == {}
        assert result.legend == []
        assert result.geomType == GeometryKind.FILL
        assert result.outlinePaint is None

    def test_no_renderer(self, translator):
        assert translator.translate({}).paint == {}

    def test_unknown_renderer_is_empty(self, translator):
        result = _translate(translator, {"type": "heatmap", "colorStops": []})
        assert result.paint == {}
        assert result.legend == []
        assert result.geomType == GeometryKind.FILL

    def test_module_level_helpers(self):
        drawing_info = {"renderer": make_simple_renderer(make_fill_symbol(GREEN), label="Parks")}
        assert transform_esri_renderer(drawing_info).paint["fill-color"] == "#38a800"
        assert transform_legend_config(drawing_info) == [
            LegendItem(type=GeometryKind.FILL, color="#38a800", label="Parks")
        ]


class TestSimpleFill:

    def test_opaque_fill_uses_layer_opacity(self, translator):
        result = _translate(translator, make_simple_renderer(make_fill_symbol(GREEN)), 0.7)
        assert result.paint == {"fill-color": "#38a800", "fill-opacity": 0.7}
        assert result.legend[0].label == "Feature"
        assert result.outlinePaint is None

    def test_renderer_label_used_in_legend(self, translator):
        result = _translate(translator, make_simple_renderer(make_fill_symbol(GREEN), label="Parks"))
        assert result.legend[0].label == "Parks"

    def test_translucent_fill_forces_full_opacity(self, translator):
        result = _translate(translator, make_simple_renderer(make_fill_symbol([255, 0, 0, 128])), 0.5)
        assert result.paint["fill-color"] == "rgba(255, 0, 0, 0.50)"
        assert result.paint["fill-opacity"] == 1.0

    def test_transparent_fill_forces_zero_opacity(self, translator):
        result = _translate(translator, make_simple_renderer(make_fill_symbol([0, 0, 0, 0])), 0.8)
        assert result.paint["fill-opacity"] == 0

    def test_missing_symbol_is_empty(self, translator):
        result = _translate(translator, {"type": "simple"})
        assert result.paint == {}
        assert result.legend == []


class TestOutlinePromotion:

    def test_thin_outline_only_sets_fallback_key(self, translator):
        symbol = make_fill_symbol(GREEN, outline=make_outline(width=1, color=BLACK))
        result = _translate(translator, make_simple_renderer(symbol))
        assert result.paint["fill-outline-color"] == "#000000"
        assert result.outlinePaint is None

    def test_thick_outline_promoted(self, translator):
        symbol = make_fill_symbol(GREEN, outline=make_outline(width=2.5, color=BLACK))
        result = _translate(translator, make_simple_renderer(symbol))
        assert result.paint["fill-outline-color"] == "#000000"
        assert result.outlinePaint == {"line-color": "#000000", "line-width": 2.5}

    def test_transparent_fill_promotes_thin_outline(self, translator):
        symbol = make_fill_symbol([0, 0, 0, 0], outline=make_outline(width=1, color=BLACK))
        result = _translate(translator, make_simple_renderer(symbol))
        assert result.outlinePaint == {"line-color": "#000000", "line-width": 1}

    @pytest.mark.parametrize("outline", [
        make_outline(width=3, color=BLACK, style="esriSLSNull"),
        make_outline(width=3, color=[0, 0, 0, 0]),
        make_outline(width=0, color=BLACK),
    ])
    def test_invisible_outline_sets_nothing(self, translator, outline):
        result = _translate(translator, make_simple_renderer(make_fill_symbol(GREEN, outline=outline)))
        assert "fill-outline-color" not in result.paint
        assert result.outlinePaint is None

    def test_null_outline_color_sets_nothing(self, translator):
        outline = make_outline(width=3)
        outline["color"] = None
        result = _translate(translator, make_simple_renderer(make_fill_symbol(GREEN, outline=outline)))
        assert "fill-outline-color" not in result.paint

    @pytest.mark.parametrize("width", [0.5, 1, 1.5, 2, 4])
    def test_promotion_iff_thicker_than_one_pixel(self, translator, width):
        symbol = make_fill_symbol(GREEN, outline=make_outline(width=width, color=BLACK))
        result = _translate(translator, make_simple_renderer(symbol))
        assert (result.outlinePaint is not None) == (width > 1)


class TestSimpleLineAndCircle:

    def test_line_paint(self, translator):
        result = _translate(translator, make_simple_renderer(make_line_symbol(GREEN, width=3)), 0.9)
        assert result.geomType == GeometryKind.LINE
        assert result.paint == {"line-color": "#38a800", "line-width": 3, "line-opacity": 0.9}
        assert result.legend[0].width == 3
        assert result.outlinePaint is None

    def test_line_width_defaults_to_one(self, translator):
        symbol = make_line_symbol(GREEN)
        del symbol["width"]
        result = _translate(translator, make_simple_renderer(symbol))
        assert result.paint["line-width"] == 1

    def test_circle_radius_from_size(self, translator):
        result = _translate(translator, make_simple_renderer(make_marker_symbol(GREEN, size=10)))
        assert result.geomType == GeometryKind.CIRCLE
        assert result.paint["circle-radius"] == 7.1
        assert "circle-stroke-color" not in result.paint

    def test_circle_default_size(self, translator):
        symbol = make_marker_symbol(GREEN)
        del symbol["size"]
        result = _translate(translator, make_simple_renderer(symbol))
        assert result.paint["circle-radius"] == 4.26

    def test_circle_stroke_with_visible_outline(self, translator):
        symbol = make_marker_symbol(GREEN, outline=make_outline(width=1.5, color=BLACK))
        result = _translate(translator, make_simple_renderer(symbol))
        assert result.paint["circle-stroke-color"] == "#000000"
        assert result.paint["circle-stroke-width"] == 1.5

    def test_configurable_radius_factor(self):
        translator = RendererTranslator(circle_radius_factor=0.5)
        result = _translate(translator, make_simple_renderer(make_marker_symbol(GREEN, size=10)))
        assert result.paint["circle-radius"] == 5

    def test_picture_marker_is_circle(self, translator):
        result = _translate(translator, make_simple_renderer({"type": "esriPMS", "url": "x.png"}))
        assert result.geomType == GeometryKind.CIRCLE
        assert result.paint["circle-color"] == "#888888"


class TestUniqueValue:

    def test_match_expression_on_string_form(self, translator):
        renderer = make_unique_value_renderer(values=("11", "22"))
        renderer["uniqueValueInfos"][0]["symbol"]["color"] = [255, 0, 0, 255]
        renderer["uniqueValueInfos"][1]["symbol"]["color"] = [0, 0, 255, 255]
        result = _translate(translator, renderer)

        assert isinstance(result.paint["fill-color"], MatchExpr)
        assert serialize_paint(result.paint)["fill-color"] == [
            "match", ["to-string", ["get", "zone"]], "11", "#ff0000", "22", "#0000ff", "#888888"
        ]

    def test_numeric_values_coerced_to_strings(self, translator):
        renderer = make_unique_value_renderer(values=(11, 22.0))
        expr = serialize_paint(_translate(translator, renderer).paint)["fill-color"]
        assert expr[2] == "11"
        assert expr[4] == "22"

    def test_string_and_numeric_declarations_match_same_data(self, translator):
        as_strings = serialize_paint(_translate(translator, make_unique_value_renderer(values=("11", "22"))).paint)
        as_numbers = serialize_paint(_translate(translator, make_unique_value_renderer(values=(11, 22))).paint)
        assert as_strings["fill-color"][2:6:2] == as_numbers["fill-color"][2:6:2] == ["11", "22"]

    def test_default_symbol_color(self, translator):
        renderer = make_unique_value_renderer(defaultSymbol=make_fill_symbol([1, 2, 3, 255]))
        expr = serialize_paint(_translate(translator, renderer).paint)["fill-color"]
        assert expr[-1] == "#010203"

    def test_field_falls_back_to_field(self, translator):
        renderer = make_unique_value_renderer()
        del renderer["field1"]
        renderer["field"] = "CODE"
        expr = serialize_paint(_translate(translator, renderer).paint)["fill-color"]
        assert expr[1] == ["to-string", ["get", "CODE"]]

    def test_duplicate_canonical_values_emitted_once(self, translator):
        renderer = make_unique_value_renderer(values=("11", 11))
        result = _translate(translator, renderer)
        expr = serialize_paint(result.paint)["fill-color"]
        assert expr.count("11") == 1
        assert len(result.legend) == 2

    def test_empty_infos_uses_default_symbol(self, translator):
        renderer = make_unique_value_renderer(values=(), defaultSymbol=make_fill_symbol(GREEN))
        result = _translate(translator, renderer, 0.6)
        assert result.paint == {"fill-color": "#38a800", "fill-opacity": 0.6}

    def test_line_entries(self, translator):
        renderer = make_unique_value_renderer(symbol_factory=lambda: make_line_symbol(width=4))
        result = _translate(translator, renderer)
        assert result.geomType == GeometryKind.LINE
        assert result.paint["line-width"] == 4
        assert all(item.width == 4 for item in result.legend)

    def test_circle_entries(self, translator):
        renderer = make_unique_value_renderer(symbol_factory=lambda: make_marker_symbol(size=6))
        result = _translate(translator, renderer)
        assert result.geomType == GeometryKind.CIRCLE
        assert result.paint["circle-radius"] == 4.26

    def test_outline_from_first_symbol(self, translator):
        renderer = make_unique_value_renderer(
            symbol_factory=lambda: make_fill_symbol(GREEN, outline=make_outline(width=2, color=BLACK))
        )
        result = _translate(translator, renderer)
        assert result.paint["fill-outline-color"] == "#000000"
        assert result.outlinePaint == {"line-color": "#000000", "line-width": 2}


class TestUniqueValueLabels:

    def test_custom_label_wins(self, translator):
        renderer = make_unique_value_renderer(values=("11",))
        renderer["uniqueValueInfos"][0]["label"] = "11"
        result = _translate(translator, renderer, custom_labels={"11": "Residential Low Density"})
        assert result.legend[0].label == "Residential Low Density"

    def test_custom_label_for_numeric_value(self, translator):
        renderer = make_unique_value_renderer(values=(11,))
        result = _translate(translator, renderer, custom_labels={"11": "Residential Low Density"})
        assert result.legend[0].label == "Residential Low Density"

    def test_empty_custom_label_ignored(self, translator):
        renderer = make_unique_value_renderer(values=("11",))
        result = _translate(translator, renderer, custom_labels={"11": ""})
        assert result.legend[0].label == "label-11"

    def test_entry_label_then_value(self, translator):
        renderer = make_unique_value_renderer(values=("11", 22))
        del renderer["uniqueValueInfos"][1]["label"]
        result = _translate(translator, renderer)
        assert [item.label for item in result.legend] == ["label-11", "22"]

    def test_null_value_without_label_uses_feature_label(self, translator):
        renderer = make_unique_value_renderer(values=("11", None))
        del renderer["uniqueValueInfos"][1]["label"]
        result = _translate(translator, renderer)
        assert [item.label for item in result.legend] == ["label-11", "Feature"]


class TestClassBreaks:

    def test_step_expression(self, translator):
        renderer = make_class_breaks_renderer(maxima=(10, 20, 30))
        colors = [[10, 0, 0, 255], [20, 0, 0, 255], [30, 0, 0, 255]]
        for info, color in zip(renderer["classBreakInfos"], colors):
            info["symbol"]["color"] = color
        result = _translate(translator, renderer)
        assert serialize_paint(result.paint)["fill-color"] == [
            "step", ["get", "pop"], "#0a0000", 10, "#140000", 20, "#1e0000"
        ]

    def test_thresholds_not_sorted(self, translator):
        renderer = make_class_breaks_renderer(maxima=(30, 10, 20))
        expr = serialize_paint(_translate(translator, renderer).paint)["fill-color"]
        assert expr[3::2] == [30, 10]

    def test_fill_legend_labels(self, translator):
        renderer = make_class_breaks_renderer(maxima=(10, 20))
        renderer["classBreakInfos"][0]["label"] = "Low"
        result = _translate(translator, renderer)
        assert [item.label for item in result.legend] == ["Low", "20"]

    def test_line_legend_labels_are_ranges(self, translator):
        renderer = make_class_breaks_renderer(maxima=(10, 20, 35.5), symbol_factory=make_line_symbol, minValue=2)
        result = _translate(translator, renderer)
        assert [item.label for item in result.legend] == ["2 - 10", "10 - 20", "20 - 35.5"]

    def test_line_legend_range_starts_at_zero(self, translator):
        renderer = make_class_breaks_renderer(maxima=(10,), symbol_factory=make_line_symbol)
        del renderer["minValue"]
        assert _translate(translator, renderer).legend[0].label == "0 - 10"

    def test_empty_breaks(self, translator):
        result = _translate(translator, make_class_breaks_renderer(maxima=()))
        assert result.paint == {}
        assert result.legend == []


class TestContinuousRamp:

    def _ramp_renderer(self, stops, **overrides):
        renderer = make_class_breaks_renderer(maxima=(100,), **overrides)
        renderer["visualVariables"] = [
            {"type": "sizeInfo", "field": "other"},
            {"type": "colorInfo", "field": "density", "stops": stops},
        ]
        return renderer

    def test_interpolate_wrapped_in_null_guard(self, translator):
        renderer = self._ramp_renderer([
            {"value": 0, "color": [255, 255, 255, 255], "label": "< 0"},
            {"value": 50, "color": [0, 0, 0, 255]},
        ])
        result = _translate(translator, renderer)
        assert serialize_paint(result.paint)["fill-color"] == [
            "case", ["==", ["get", "density"], None], "rgba(0, 0, 0, 0)",
            ["interpolate", ["linear"], ["get", "density"], 0, "#ffffff", 50, "#000000"],
        ]
        assert [item.label for item in result.legend] == ["< 0", "50"]

    def test_ramp_without_stops_uses_step(self, translator):
        renderer = self._ramp_renderer([])
        expr = serialize_paint(_translate(translator, renderer).paint)["fill-color"]
        assert expr[0] == "step"

    def test_geometry_from_first_break_symbol(self, translator):
        renderer = self._ramp_renderer(
            [{"value": 1, "color": [1, 1, 1, 255]}],
            symbol_factory=lambda: make_marker_symbol(size=10)
        )
        result = _translate(translator, renderer)
        assert result.geomType == GeometryKind.CIRCLE
        assert result.paint["circle-radius"] == 7.1


class TestFillOpacity:

    def test_rules(self):
        assert fill_opacity(0, 0.5) == 0
        assert fill_opacity(100, 0.5) == 1.0
        assert fill_opacity(255, 0.5) == 0.5

    def test_uniform_alphas_keep_scalar(self, translator):
        renderer = make_unique_value_renderer(values=("11", "22"))
        for info in renderer["uniqueValueInfos"]:
            info["symbol"]["color"] = [200, 0, 0, 128]
        assert _translate(translator, renderer, 0.5).paint["fill-opacity"] == 1.0

    def test_mixed_alphas_keyed_by_category(self, translator):
        renderer = make_unique_value_renderer(values=("11", "22", "99"))
        alphas = (255, 255, 0)
        for info, alpha in zip(renderer["uniqueValueInfos"], alphas):
            info["symbol"]["color"] = [200, 0, 0, alpha]
        result = _translate(translator, renderer, 0.5)

        assert isinstance(result.paint["fill-opacity"], MatchExpr)
        assert serialize_paint(result.paint)["fill-opacity"] == [
            "match", ["to-string", ["get", "zone"]], "11", 0.5, "22", 0.5, "99", 0, 0.5
        ]
        assert result.outlinePaint is None

    def test_mixed_alphas_default_symbol_opacity(self, translator):
        renderer = make_unique_value_renderer(
            values=("11", "22"),
            defaultSymbol=make_fill_symbol([0, 0, 0, 0])
        )
        renderer["uniqueValueInfos"][0]["symbol"]["color"] = [200, 0, 0, 100]
        renderer["uniqueValueInfos"][1]["symbol"]["color"] = GREEN
        expr = serialize_paint(_translate(translator, renderer, 0.5).paint)["fill-opacity"]
        assert expr == ["match", ["to-string", ["get", "zone"]], "11", 1.0, "22", 0.5, 0]

    def test_mixed_alphas_class_breaks_step(self, translator):
        renderer = make_class_breaks_renderer(maxima=(10, 20, 30))
        for info, alpha in zip(renderer["classBreakInfos"], (0, 255, 128)):
            info["symbol"]["color"] = [10, 20, 30, alpha]
        expr = serialize_paint(_translate(translator, renderer, 0.4).paint)["fill-opacity"]
        assert expr == ["step", ["get", "pop"], 0, 10, 0.4, 20, 1.0]

    def test_mixed_alphas_ramp_interpolates(self, translator):
        renderer = make_class_breaks_renderer(maxima=(100,))
        renderer["visualVariables"] = [{
            "type": "colorInfo",
            "field": "density",
            "stops": [
                {"value": 0, "color": [255, 255, 255, 0]},
                {"value": 50, "color": [0, 0, 0, 255]},
            ],
        }]
        expr = serialize_paint(_translate(translator, renderer, 0.8).paint)["fill-opacity"]
        assert expr == [
            "case", ["==", ["get", "density"], None], 0,
            ["interpolate", ["linear"], ["get", "density"], 0, 0, 50, 0.8],
        ]
