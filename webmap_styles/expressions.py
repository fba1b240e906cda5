"""
MapLibre style expressions.

Data-driven paint values are built as a small expression tree and only
serialized to MapLibre's nested-array form at the layer boundary:

    MatchExpr(FieldRef("zone", as_string=True), [("11", "#ffffcc")], "#888888")
    -> ["match", ["to-string", ["get", "zone"]], "11", "#ffffcc", "#888888"]

Exports:
    Expr, Literal, FieldRef, IsNull, MatchExpr, StepExpr, InterpolateExpr, CaseExpr
    serialize_value: Expression or plain value to MapLibre JSON
    serialize_paint: Paint dict with expressions to MapLibre JSON
    canonical_value: Canonical string form of a match label
    format_number: Number formatting used for labels
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union


class Expr:
    """Base class for expression nodes."""

    def to_maplibre(self) -> Any:
        raise NotImplementedError


Output = Union[Expr, str, int, float]


def serialize_value(value: Any) -> Any:
    """Serialize an expression node, leaving plain values untouched."""
    if isinstance(value, Expr):
        return value.to_maplibre()
    return value


def serialize_paint(paint: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize every expression-valued paint property."""
    return {key: serialize_value(value) for key, value in paint.items()}


@dataclass(frozen=True)
class Literal(Expr):
    value: Any

    def to_maplibre(self) -> Any:
        # Arrays and objects must be wrapped or MapLibre parses them as expressions
        if isinstance(self.value, (list, dict)):
            return ["literal", self.value]
        return self.value


@dataclass(frozen=True)
class FieldRef(Expr):
    """Feature property accessor, optionally coerced to string."""
    name: str
    as_string: bool = False

    def to_maplibre(self) -> Any:
        getter = ["get", self.name]
        if self.as_string:
            return ["to-string", getter]
        return getter


@dataclass(frozen=True)
class IsNull(Expr):
    input: Expr

    def to_maplibre(self) -> Any:
        return ["==", self.input.to_maplibre(), None]


@dataclass(frozen=True)
class MatchExpr(Expr):
    input: Expr
    cases: List[Tuple[Any, Output]] = field(default_factory=list)
    default: Output = None

    def to_maplibre(self) -> Any:
        expr: List[Any] = ["match", self.input.to_maplibre()]
        for label, output in self.cases:
            expr.append(label)
            expr.append(serialize_value(output))
        expr.append(serialize_value(self.default))
        return expr


@dataclass(frozen=True)
class StepExpr(Expr):
    """Base output below the first threshold, then (threshold, output) pairs."""
    input: Expr
    base: Output
    stops: List[Tuple[Any, Output]] = field(default_factory=list)

    def to_maplibre(self) -> Any:
        expr: List[Any] = ["step", self.input.to_maplibre(), serialize_value(self.base)]
        for threshold, output in self.stops:
            expr.append(threshold)
            expr.append(serialize_value(output))
        return expr


@dataclass(frozen=True)
class InterpolateExpr(Expr):
    input: Expr
    stops: List[Tuple[Any, Output]] = field(default_factory=list)
    interpolation: str = "linear"

    def to_maplibre(self) -> Any:
        expr: List[Any] = ["interpolate", [self.interpolation], self.input.to_maplibre()]
        for value, output in self.stops:
            expr.append(value)
            expr.append(serialize_value(output))
        return expr


@dataclass(frozen=True)
class CaseExpr(Expr):
    branches: List[Tuple[Expr, Output]] = field(default_factory=list)
    default: Output = None

    def to_maplibre(self) -> Any:
        expr: List[Any] = ["case"]
        for condition, output in self.branches:
            expr.append(condition.to_maplibre())
            expr.append(serialize_value(output))
        expr.append(serialize_value(self.default))
        return expr


# ============================================================================
# VALUE FORMATTING
# ============================================================================

def format_number(value: Union[int, float]) -> str:
    """
    Format a number the way feature properties stringify in the browser.

    Integral floats drop the decimal part (11.0 -> "11").
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def canonical_value(value: Any) -> str:
    """
    Canonical string form of a unique value.

    Numbers are formatted like MapLibre's to-string does at runtime, so a
    renderer value of 11 or "11" matches a feature property of 11 or "11".
    Strings are kept verbatim.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)
