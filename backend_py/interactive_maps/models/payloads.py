"""Pydantic models for the records exchanged with the data store.

These mirror the JSON served by ``GET /maps/{id}``: a map with its native
image size and the list of locations drawn on top of it.
"""
import json
import logging
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, NonNegativeFloat, NonNegativeInt, ValidationError, field_validator

from ..core.errors import InvalidCoordinatePayload

logger = logging.getLogger(__name__)


# whole pixels stay ints so payloads are written back unchanged
Coord = Union[NonNegativeInt, NonNegativeFloat]


class LocationType(str, Enum):
    PLACE = "place"
    AREA = "area"


class PlaceCoordinates(BaseModel):
    """Single native-space point."""
    x: Coord
    y: Coord

    def to_payload(self) -> dict:
        return {"x": self.x, "y": self.y}


class AreaCoordinates(BaseModel):
    """Ordered native-space polygon vertices.

    The minimum of three points is enforced on write by the sanitizer, not
    here, so that legacy rows with fewer points can still be read.
    """
    points: list[tuple[Coord, Coord]]

    def to_payload(self) -> dict:
        return {"points": [[x, y] for x, y in self.points]}


Coordinates = Union[PlaceCoordinates, AreaCoordinates]


class ImageRef(BaseModel):
    url: str
    alt: str = ""


class LocationRecord(BaseModel):
    id: int
    map_id: Optional[int] = None
    title: str = ""
    content: str = ""
    type: LocationType
    # raw as served; read through parsed_coordinates()
    coordinates: Any = None
    color: Optional[str] = None
    images: list[ImageRef] = []

    def parsed_coordinates(self) -> Coordinates:
        return parse_coordinates(self.coordinates, self.type)


class MapMeta(BaseModel):
    """Map metadata as used by the editor."""
    image_url: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class MapBundle(BaseModel):
    """A map together with all of its locations, fetched in one call."""
    id: int
    title: str = ""
    description: str = ""
    image_url: str = ""
    image_width: int = 0
    image_height: int = 0
    locations: list[LocationRecord] = []

    @field_validator("locations", mode="before")
    @classmethod
    def _drop_unreadable(cls, value):
        # one bad record must not hide the rest of the map
        if not isinstance(value, list):
            return value
        kept = []
        for item in value:
            try:
                kept.append(LocationRecord.model_validate(item))
            except ValidationError as e:
                ref = item.get("id") if isinstance(item, dict) else item
                logger.warning("Dropping unreadable location %r: %s", ref, e)
        return kept


def parse_coordinates(raw: Any, location_type: LocationType) -> Coordinates:
    """Decode a stored coordinate payload for ``location_type``.

    Accepts the JSON text as persisted or an already decoded dict.
    Raises InvalidCoordinatePayload for malformed JSON or a wrong shape.
    """
    if raw is None or raw == "":
        raise InvalidCoordinatePayload("no coordinates")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise InvalidCoordinatePayload(f"malformed JSON: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidCoordinatePayload(f"expected an object, got {type(raw).__name__}")

    model = PlaceCoordinates if LocationType(location_type) is LocationType.PLACE else AreaCoordinates
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise InvalidCoordinatePayload(str(e)) from e
