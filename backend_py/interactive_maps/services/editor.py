"""Authoring-side counterpart of the viewer.

One editor instance owns one map image and the coordinates of the single
location being edited. Place clicks are rounded to whole native pixels;
area vertices keep full precision. Stored data depends on that asymmetry,
so keep it.
"""
import json
import logging
from typing import Optional, Union

from ..core.config import DisplayOptions
from ..core.errors import (
    DataUnavailable,
    DimensionsNotReady,
    InsufficientVertices,
    InvalidCoordinatePayload,
)
from ..models.payloads import LocationType, MapMeta, PlaceCoordinates, parse_coordinates
from .datasource import MapDataSource
from .mapper import Pair, RenderFrame, Viewport
from .overlay import Overlay, OverlayRenderer
from .polygon import PolygonSession

logger = logging.getLogger(__name__)

INSTRUCTIONS = {
    LocationType.PLACE: "Click on the map to set the place location.",
    LocationType.AREA: "Click on the map to add polygon points. Click 'Finish Polygon' when done.",
}
MIN_POINTS_MESSAGE = "A polygon must have at least 3 points."


class MapEditor:
    def __init__(self, source: MapDataSource, location_type: Union[str, LocationType] = LocationType.PLACE,
                 options: Optional[DisplayOptions] = None):
        self.source = source
        self.location_type = LocationType(location_type)
        self.renderer = OverlayRenderer(options)

        self.map_id: Optional[int] = None
        self.meta: Optional[MapMeta] = None
        self.frame: Optional[RenderFrame] = None
        self.session = PolygonSession()
        self.place: Optional[PlaceCoordinates] = None
        self.place_display: Optional[Pair] = None
        self.message: Optional[str] = None

        self._pending: Optional[Union[str, dict]] = None
        self._generation = 0

    @property
    def instructions(self) -> str:
        return INSTRUCTIONS[self.location_type]

    @property
    def visible(self) -> bool:
        return self.meta is not None

    @property
    def viewport(self) -> Optional[Viewport]:
        if self.meta is None or self.frame is None:
            return None
        return Viewport(self.frame, self.meta.width, self.meta.height)

    # -- map selection ---------------------------------------------------

    async def select_map(self, map_id: Optional[int]) -> bool:
        """Load the image metadata for ``map_id``; last selection wins.

        Returns True when the editor surface is shown for this map.
        """
        self._generation += 1
        generation = self._generation
        self.map_id = map_id or None
        if not map_id:
            self._hide()
            return False

        try:
            meta = await self.source.fetch_map_meta(map_id)
        except DataUnavailable as e:
            if generation == self._generation:
                logger.error("Map data error for map %s: %s", map_id, e)
                self._hide()
            return False

        if generation != self._generation:
            logger.info("Discarding stale metadata for map %s", map_id)
            return False

        # native points carry over as entered, open or closed; the display
        # side is recomputed once the new image reports its frame
        self.place_display = None
        self.meta = meta
        self.frame = None
        return True

    def _hide(self) -> None:
        self.meta = None
        self.frame = None
        self.place_display = None

    def load_existing(self, payload: Union[str, dict, None]) -> None:
        """Queue saved coordinates; they are drawn once the frame is ready."""
        self._pending = payload or None
        if self.viewport is not None:
            self._hydrate()

    def set_render_frame(self, width: float, height: float, map_id: Optional[int] = None) -> bool:
        if map_id is not None and map_id != self.map_id:
            logger.debug("Ignoring frame for map %s, editing %s", map_id, self.map_id)
            return False
        if self.meta is None:
            return False
        frame = RenderFrame(width, height)
        if not frame.ready:
            logger.debug("Render frame not ready: %sx%s", width, height)
            return False
        self.frame = frame
        self._refresh_display()
        if self._pending is not None:
            self._hydrate()
        return True

    def _hydrate(self) -> None:
        payload, self._pending = self._pending, None
        viewport = self.viewport
        try:
            coords = parse_coordinates(payload, self.location_type)
            if self.location_type is LocationType.PLACE:
                self.place = coords
                self.place_display = viewport.to_display(coords.x, coords.y)
            else:
                self.session.load_from_storage_payload(coords.points, viewport.frame,
                                                       viewport.native_width, viewport.native_height)
        except InvalidCoordinatePayload as e:
            logger.warning("Ignoring existing coordinates: %s", e)
            self.session.clear()
            self.place = None
            self.place_display = None

    def _refresh_display(self) -> None:
        # display points follow the frame; native points never change
        viewport = self.viewport
        if self.place is not None:
            self.place_display = viewport.to_display(self.place.x, self.place.y)
        self.session.reproject(viewport.frame, viewport.native_width, viewport.native_height)

    # -- editing ---------------------------------------------------------

    def switch_type(self, location_type: Union[str, LocationType]) -> None:
        """Change between place and area; all in-progress coordinates are lost."""
        self.location_type = LocationType(location_type)
        self.session = PolygonSession()
        self.place = None
        self.place_display = None
        self._pending = None
        self.message = None

    def click(self, x: float, y: float) -> bool:
        viewport = self.viewport
        if viewport is None:
            logger.debug("Click before the map image is ready")
            return False
        if x < 0 or y < 0:
            logger.debug("Ignoring click outside the image at (%s, %s)", x, y)
            return False
        try:
            if self.location_type is LocationType.PLACE:
                nx, ny = viewport.to_native(x, y)
                self.place = PlaceCoordinates(x=nx, y=ny)
                self.place_display = (x, y)
            else:
                native = viewport.to_native(x, y, rounded=False)
                self.session.add_vertex(native, (x, y))
        except DimensionsNotReady as e:
            logger.debug("Skipping click: %s", e)
            return False
        self.message = None
        return True

    def clear_polygon(self) -> None:
        self.session.clear()
        self.message = None

    def finish_polygon(self) -> bool:
        try:
            self.session.finish()
        except InsufficientVertices as e:
            logger.info("Cannot finish polygon: %s", e)
            self.message = MIN_POINTS_MESSAGE
            return False
        self.message = None
        return True

    # -- output ----------------------------------------------------------

    def coordinates_payload(self) -> Optional[dict]:
        if self.location_type is LocationType.PLACE:
            return self.place.to_payload() if self.place is not None else None
        if not self.session.vertices:
            return None
        return {"points": self.session.to_storage_payload()}

    def coordinates_json(self) -> str:
        payload = self.coordinates_payload()
        return json.dumps(payload) if payload is not None else ""

    def overlay(self) -> Overlay:
        """Fresh drawing of the in-progress coordinates."""
        overlay = Overlay(self.viewport)
        if self.viewport is None:
            return overlay
        if self.location_type is LocationType.PLACE:
            if self.place_display is not None:
                overlay.primitives.append(self.renderer.draft_marker(self.place_display))
        else:
            draft = self.renderer.draft_polygon(self.session)
            if draft is not None:
                overlay.primitives.append(draft)
        return overlay

    def render(self) -> str:
        if self.meta is None:
            return ""
        return self.overlay().to_svg(css_class="wim-map-editor-svg")
