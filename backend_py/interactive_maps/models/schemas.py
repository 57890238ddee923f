from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from .db import Base

class Map(Base):
    __tablename__ = "maps"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str] = mapped_column(Text, default="")
    # native size of the decoded image, captured once
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)

class Location(Base):
    __tablename__ = "locations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    map_id: Mapped[int] = mapped_column(ForeignKey("maps.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    content: Mapped[str] = mapped_column(Text, default="")  # pre-rendered, trusted markup
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # place | area
    # coordinate payload JSON, stored verbatim
    coordinates: Mapped[str] = mapped_column(Text, default="")
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    images: Mapped[str] = mapped_column(Text, default="[]")  # JSON [{url, alt}]
