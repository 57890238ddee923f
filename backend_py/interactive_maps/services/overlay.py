"""Vector overlay drawn on top of the rendered map image.

The overlay is always rebuilt from the full location list and the current
viewport; nothing is patched in place, so a resize can never leave a shape
with a stale transform. All primitives live in display space.
"""
import logging
from dataclasses import dataclass, field
from html import escape
from typing import Iterable, List, Optional, Sequence, Union

from shapely import make_valid
from shapely.geometry import Point, Polygon

from ..core.config import DisplayOptions
from ..core.errors import InvalidCoordinatePayload
from ..models.payloads import AreaCoordinates, LocationRecord, LocationType
from .mapper import Pair, Viewport
from .polygon import MIN_VERTICES, PolygonSession

logger = logging.getLogger(__name__)

MARKER_RADIUS = 8
MARKER_HIT_RADIUS = 12
MARKER_STROKE = "#ffffff"
STROKE_WIDTH = 2
HOVER_OPACITY_STEP = 0.2

VERTEX_RADIUS = 5
DRAFT_COLOR = "#ff6600"
DRAFT_FILL = "rgba(255, 102, 0, 0.3)"


def _num(v: float) -> str:
    return f"{round(v, 3):g}"


def _points_attr(points: Sequence[Pair]) -> str:
    return " ".join(f"{_num(x)},{_num(y)}" for x, y in points)


@dataclass
class Marker:
    cx: float
    cy: float
    fill: str
    location: Optional[LocationRecord] = None
    radius: float = MARKER_RADIUS
    hit_radius: float = MARKER_HIT_RADIUS
    active: bool = False

    @property
    def location_id(self) -> Optional[int]:
        return self.location.id if self.location else None

    def contains(self, x: float, y: float) -> bool:
        return Point(self.cx, self.cy).distance(Point(x, y)) <= self.hit_radius

    def to_svg(self) -> str:
        classes = "wim-marker wim-active" if self.active else "wim-marker"
        circle = (f'<circle cx="{_num(self.cx)}" cy="{_num(self.cy)}" r="{_num(self.radius)}" '
                  f'fill="{escape(self.fill)}" stroke="{MARKER_STROKE}" '
                  f'stroke-width="{STROKE_WIDTH}" class="wim-marker-circle"/>')
        if self.location is None:
            return circle
        hover = (f'<circle cx="{_num(self.cx)}" cy="{_num(self.cy)}" r="{_num(self.hit_radius)}" '
                 f'fill="transparent" class="wim-marker-hover"/>')
        return (f'<g class="{classes}" data-location-id="{self.location_id}">'
                f'{hover}{circle}</g>')


@dataclass
class Area:
    points: List[Pair]
    fill: str
    stroke: str
    base_opacity: float
    location: Optional[LocationRecord] = None
    active: bool = False
    hovered: bool = False
    fill_opacity: float = field(init=False)
    _shape: Polygon = field(init=False, repr=False)

    def __post_init__(self):
        self.fill_opacity = self.base_opacity
        shape = Polygon(self.points)
        # self-intersecting outlines are allowed; repair only for hit-testing
        self._shape = shape if shape.is_valid else make_valid(shape)

    @property
    def location_id(self) -> Optional[int]:
        return self.location.id if self.location else None

    def contains(self, x: float, y: float) -> bool:
        return self._shape.covers(Point(x, y))

    def hover_enter(self) -> None:
        self.hovered = True
        self.fill_opacity = min(self.base_opacity + HOVER_OPACITY_STEP, 1.0)

    def hover_exit(self) -> None:
        self.hovered = False
        self.fill_opacity = self.base_opacity

    def to_svg(self) -> str:
        classes = "wim-area wim-active" if self.active else "wim-area"
        polygon = (f'<polygon points="{_points_attr(self.points)}" fill="{escape(self.fill)}" '
                   f'fill-opacity="{_num(self.fill_opacity)}" stroke="{escape(self.stroke)}" '
                   f'stroke-width="{STROKE_WIDTH}" class="wim-area-polygon"/>')
        return f'<g class="{classes}" data-location-id="{self.location_id}">{polygon}</g>'


@dataclass
class DraftPolygon:
    """Polygon under construction in the editor: dots, joining lines, and
    a filled shape underneath once it is closed."""
    points: List[Pair]
    closed: bool

    def to_svg(self) -> str:
        parts = []
        if self.closed and len(self.points) >= MIN_VERTICES:
            parts.append(f'<polygon points="{_points_attr(self.points)}" fill="{DRAFT_FILL}" '
                         f'stroke="{DRAFT_COLOR}" stroke-width="{STROKE_WIDTH}"/>')
        for i, (x, y) in enumerate(self.points):
            parts.append(f'<circle cx="{_num(x)}" cy="{_num(y)}" r="{VERTEX_RADIUS}" '
                         f'fill="{DRAFT_COLOR}" stroke="{MARKER_STROKE}" '
                         f'stroke-width="{STROKE_WIDTH}"/>')
            if i < len(self.points) - 1:
                nx, ny = self.points[i + 1]
                parts.append(f'<line x1="{_num(x)}" y1="{_num(y)}" x2="{_num(nx)}" '
                             f'y2="{_num(ny)}" stroke="{DRAFT_COLOR}" '
                             f'stroke-width="{STROKE_WIDTH}"/>')
        return "".join(parts)


Primitive = Union[Marker, Area, DraftPolygon]


class Overlay:
    """Primitives built for one viewport, in draw order."""

    def __init__(self, viewport: Optional[Viewport], primitives: Optional[List[Primitive]] = None):
        self.viewport = viewport
        self.primitives: List[Primitive] = primitives or []

    def __len__(self) -> int:
        return len(self.primitives)

    def __iter__(self):
        return iter(self.primitives)

    def hit_test(self, x: float, y: float) -> Optional[Union[Marker, Area]]:
        # last drawn is on top
        for prim in reversed(self.primitives):
            if isinstance(prim, (Marker, Area)) and prim.location is not None and prim.contains(x, y):
                return prim
        return None

    def find(self, location_id: int) -> Optional[Union[Marker, Area]]:
        for prim in self.primitives:
            if isinstance(prim, (Marker, Area)) and prim.location_id == location_id:
                return prim
        return None

    def set_active(self, location_id: Optional[int]) -> None:
        for prim in self.primitives:
            if isinstance(prim, (Marker, Area)):
                prim.active = location_id is not None and prim.location_id == location_id

    def hover(self, x: float, y: float) -> Optional[Area]:
        """Apply hover state for a pointer at (x, y); returns the hovered area."""
        hit = self.hit_test(x, y)
        for prim in self.primitives:
            if not isinstance(prim, Area):
                continue
            if prim is hit:
                if not prim.hovered:
                    prim.hover_enter()
            elif prim.hovered:
                prim.hover_exit()
        return hit if isinstance(hit, Area) else None

    def to_svg(self, css_class: str = "wim-overlay") -> str:
        if self.viewport is None:
            width = height = 0
        else:
            width, height = self.viewport.frame.width, self.viewport.frame.height
        body = "".join(p.to_svg() for p in self.primitives)
        return (f'<svg xmlns="http://www.w3.org/2000/svg" class="{css_class}" '
                f'width="{_num(width)}" height="{_num(height)}">{body}</svg>')


class OverlayRenderer:
    """Translates location records into display-space primitives."""

    def __init__(self, options: Optional[DisplayOptions] = None):
        self.options = options or DisplayOptions()

    def build(self, locations: Iterable[LocationRecord], viewport: Viewport) -> Overlay:
        primitives: List[Primitive] = []
        for location in locations:
            try:
                if location.type is LocationType.PLACE:
                    prim = self.place_marker(location, viewport)
                else:
                    prim = self.area_polygon(location, viewport)
            except InvalidCoordinatePayload as e:
                logger.warning("Skipping location %s with invalid coordinates: %s", location.id, e)
                continue
            if prim is not None:
                primitives.append(prim)
        return Overlay(viewport, primitives)

    def place_marker(self, location: LocationRecord, viewport: Viewport) -> Marker:
        coords = location.parsed_coordinates()
        cx, cy = viewport.to_display(coords.x, coords.y)
        return Marker(cx=cx, cy=cy, fill=location.color or self.options.marker_color,
                      location=location)

    def area_polygon(self, location: LocationRecord, viewport: Viewport) -> Optional[Area]:
        coords: AreaCoordinates = location.parsed_coordinates()
        if len(coords.points) < MIN_VERTICES:
            logger.warning("Skipping area %s with %d point(s)", location.id, len(coords.points))
            return None
        points = [viewport.to_display(x, y) for x, y in coords.points]
        return Area(points=points,
                    fill=location.color or self.options.area_fill_color,
                    stroke=self.options.area_stroke_color,
                    base_opacity=self.options.area_fill_opacity,
                    location=location)

    def draft_marker(self, display: Pair) -> Marker:
        return Marker(cx=display[0], cy=display[1], fill=DRAFT_COLOR)

    def draft_polygon(self, session: PolygonSession) -> Optional[DraftPolygon]:
        if not session.vertices:
            return None
        return DraftPolygon(points=[v.display for v in session.vertices], closed=session.finished)
