"""Write-side validation for data headed into the store.

Readers are lenient (legacy rows with short polygons still load); writers
are not: a polygon needs three points, and every value must be a
non-negative number.
"""
import json
import math
from typing import Any, Optional, Union

from ..core.config import HEX_COLOR
from ..core.errors import InvalidCoordinatePayload
from ..models.payloads import LocationType
from .polygon import MIN_VERTICES


def _number(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return v if math.isfinite(v) else None
    if isinstance(v, str):
        try:
            f = float(v)
        except ValueError:
            return None
        return f if math.isfinite(f) else None
    return None


def sanitize_place_coordinates(x: Any, y: Any) -> dict:
    nx, ny = _number(x), _number(y)
    if nx is None or ny is None:
        raise InvalidCoordinatePayload("place coordinates must be numeric")
    if nx < 0 or ny < 0:
        raise InvalidCoordinatePayload("place coordinates must be non-negative")
    return {"x": nx, "y": ny}


def sanitize_area_coordinates(points: Union[str, list, None]) -> dict:
    if isinstance(points, str):
        try:
            points = json.loads(points)
        except ValueError as e:
            raise InvalidCoordinatePayload(f"malformed JSON: {e}") from e
    if not isinstance(points, list) or not points:
        raise InvalidCoordinatePayload("area points must be a non-empty list")
    if len(points) < MIN_VERTICES:
        raise InvalidCoordinatePayload(f"area needs at least {MIN_VERTICES} points")

    out = []
    for point in points:
        if not isinstance(point, (list, tuple)) or len(point) != 2:
            raise InvalidCoordinatePayload(f"bad point {point!r}")
        x, y = _number(point[0]), _number(point[1])
        if x is None or y is None or x < 0 or y < 0:
            raise InvalidCoordinatePayload(f"bad point {point!r}")
        out.append([x, y])
    return {"points": out}


def sanitize_coordinates(raw: Union[str, dict, None], location_type: Union[str, LocationType]) -> dict:
    """Validate a coordinate payload (JSON text or dict) for its type."""
    location_type = sanitize_location_type(location_type)
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise InvalidCoordinatePayload(f"malformed JSON: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidCoordinatePayload("coordinates must be an object")

    if location_type is LocationType.PLACE:
        if "x" not in raw or "y" not in raw:
            raise InvalidCoordinatePayload("place coordinates need x and y")
        return sanitize_place_coordinates(raw["x"], raw["y"])
    if "points" not in raw:
        raise InvalidCoordinatePayload("area coordinates need points")
    return sanitize_area_coordinates(raw["points"])


def sanitize_coordinates_json(raw: Union[str, dict, None], location_type: Union[str, LocationType]) -> str:
    return json.dumps(sanitize_coordinates(raw, location_type))


def sanitize_color(color: Optional[str]) -> Optional[str]:
    """Return the hex color, or None when empty or invalid."""
    if not color:
        return None
    color = color.strip()
    return color if HEX_COLOR.match(color) else None


def sanitize_location_type(value: Union[str, LocationType]) -> LocationType:
    try:
        return LocationType(str(getattr(value, "value", value)).strip())
    except ValueError as e:
        raise InvalidCoordinatePayload(f"unknown location type {value!r}") from e
