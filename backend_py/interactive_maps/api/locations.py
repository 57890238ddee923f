from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ..core.errors import InvalidCoordinatePayload
from ..models.db import get_db
from ..models.payloads import ImageRef
from ..models.schemas import Location, Map
from ..services import store
from ..services.svgpaths import svg_outlines

router = APIRouter(prefix="/locations", tags=["locations"])

class LocationBody(BaseModel):
    map_id: int
    title: str = ""
    content: str = ""
    type: str
    # JSON text as posted by the editor, or the decoded object
    coordinates: Any
    color: Optional[str] = None
    images: list[ImageRef] = []

class CoordinatesBody(BaseModel):
    coordinates: Any
    type: Optional[str] = None

class SvgImportBody(BaseModel):
    map_id: int
    svg: str
    color: Optional[str] = None

def _get(db: Session, location_id: int) -> Location:
    if location_id <= 0:
        raise HTTPException(status_code=400, detail="Invalid location ID provided.")
    loc = db.get(Location, location_id)
    if not loc:
        raise HTTPException(status_code=404, detail="Location not found.")
    return loc

@router.post("")
def create_location(b: LocationBody, db: Session = Depends(get_db)):
    if not db.get(Map, b.map_id):
        raise HTTPException(status_code=400, detail="Unknown map.")
    try:
        loc = store.create_location(db, map_id=b.map_id, title=b.title, type=b.type,
                                    coordinates=b.coordinates, content=b.content, color=b.color,
                                    images=[i.model_dump() for i in b.images])
    except InvalidCoordinatePayload as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "id": loc.id}

@router.post("/import-svg")
def import_svg(b: SvgImportBody, db: Session = Depends(get_db)):
    """Create one area per identified SVG path; unusable outlines are skipped."""
    if not db.get(Map, b.map_id):
        raise HTTPException(status_code=400, detail="Unknown map.")
    try:
        outlines = svg_outlines(b.svg)
    except InvalidCoordinatePayload as e:
        raise HTTPException(status_code=400, detail=str(e))
    created, skipped = [], {}
    for title, points in outlines.items():
        try:
            loc = store.create_location(db, map_id=b.map_id, title=title, type="area",
                                        coordinates={"points": points}, color=b.color)
        except InvalidCoordinatePayload as e:
            skipped[title] = str(e)
            continue
        created.append(loc.id)
    return {"ok": True, "created": created, "skipped": skipped}

@router.get("/{location_id}")
def get_location(location_id: int, db: Session = Depends(get_db)):
    return store.location_dict(_get(db, location_id))

@router.put("/{location_id}/coordinates")
def set_coordinates(location_id: int, b: CoordinatesBody, db: Session = Depends(get_db)):
    loc = _get(db, location_id)
    try:
        store.set_location_coordinates(db, loc, b.coordinates, type=b.type)
    except InvalidCoordinatePayload as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True}
