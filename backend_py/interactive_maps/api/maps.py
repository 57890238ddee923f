from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session
from ..models.db import get_db
from ..models.schemas import Map
from ..services import store

router = APIRouter(prefix="/maps", tags=["maps"])

class MapBody(BaseModel):
    title: str = ""
    description: str = ""
    image_url: str = Field(min_length=1)
    # native size of the decoded image
    width: int = Field(gt=0)
    height: int = Field(gt=0)

def _check_id(map_id: int) -> None:
    if map_id <= 0:
        raise HTTPException(status_code=400, detail="Invalid map ID provided.")

@router.get("")
def list_maps(db: Session = Depends(get_db)):
    rows = db.execute(select(Map).order_by(Map.id)).scalars().all()
    return [{"id": m.id, "title": m.title, "image_url": m.image_url,
             "width": m.width, "height": m.height} for m in rows]

@router.post("")
def create_map(b: MapBody, db: Session = Depends(get_db)):
    m = store.create_map(db, title=b.title, image_url=b.image_url, width=b.width,
                         height=b.height, description=b.description)
    return {"ok": True, "id": m.id}

@router.get("/{map_id}")
def get_map(map_id: int, db: Session = Depends(get_db)):
    _check_id(map_id)
    data = store.map_bundle(db, map_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Map not found.")
    return data

@router.get("/{map_id}/meta")
def get_map_meta(map_id: int, db: Session = Depends(get_db)):
    _check_id(map_id)
    data = store.map_meta(db, map_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Map not found.")
    return data
