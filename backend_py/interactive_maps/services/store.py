import json
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.schemas import Location, Map
from .sanitize import sanitize_color, sanitize_coordinates_json, sanitize_location_type

logger = logging.getLogger(__name__)


def _load_json(raw: Optional[str], default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        return default


def location_dict(loc: Location) -> dict:
    coords = _load_json(loc.coordinates, None)
    if loc.coordinates and coords is None:
        logger.warning("Location %s has undecodable coordinates", loc.id)
    images = _load_json(loc.images, [])
    return {
        "id": loc.id,
        "map_id": loc.map_id,
        "title": loc.title,
        "content": loc.content,
        "type": loc.type,
        "coordinates": coords if isinstance(coords, dict) else None,
        "color": loc.color or None,
        "images": [i for i in images if isinstance(i, dict) and i.get("url")] if isinstance(images, list) else [],
    }


def map_bundle(s: Session, map_id: int) -> Optional[dict]:
    """Map plus all of its locations, shaped like ``GET /maps/{id}``."""
    m = s.get(Map, map_id)
    if m is None:
        return None
    rows = s.execute(select(Location).where(Location.map_id == map_id).order_by(Location.id)).scalars().all()
    return {
        "id": m.id,
        "title": m.title,
        "description": m.description,
        "image_url": m.image_url,
        "image_width": m.width,
        "image_height": m.height,
        "locations": [location_dict(r) for r in rows if r.type in ("place", "area")],
    }


def map_meta(s: Session, map_id: int) -> Optional[dict]:
    m = s.get(Map, map_id)
    if m is None:
        return None
    return {"image_url": m.image_url, "width": m.width, "height": m.height}


def create_map(s: Session, title: str, image_url: str, width: int, height: int, description: str = "") -> Map:
    m = Map(title=title, image_url=image_url, width=width, height=height, description=description)
    s.add(m); s.commit(); s.refresh(m)
    return m


def create_location(s: Session, map_id: int, title: str, type: str, coordinates,
                    content: str = "", color: Optional[str] = None, images: Optional[list] = None) -> Location:
    """Insert a location; coordinates are validated for ``type`` first.

    Raises InvalidCoordinatePayload for a bad type or payload.
    """
    loc_type = sanitize_location_type(type)
    loc = Location(
        map_id=map_id,
        title=title,
        content=content,
        type=loc_type.value,
        coordinates=sanitize_coordinates_json(coordinates, loc_type),
        color=sanitize_color(color),
        images=json.dumps(images or []),
    )
    s.add(loc); s.commit(); s.refresh(loc)
    return loc


def set_location_coordinates(s: Session, loc: Location, coordinates, type: Optional[str] = None) -> Location:
    """Replace a location's coordinates, optionally switching its type.

    The previous payload is dropped entirely; a type switch never converts.
    """
    loc_type = sanitize_location_type(type or loc.type)
    loc.coordinates = sanitize_coordinates_json(coordinates, loc_type)
    loc.type = loc_type.value
    s.commit(); s.refresh(loc)
    return loc
