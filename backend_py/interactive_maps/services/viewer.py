"""Public-facing map viewer.

Lifecycle::

    UNINITIALIZED -> LOADING -> READY <-> CONTENT_SHOWN
                        \\-> ERROR   (retry with init())

The overlay only exists once the host reports the rendered image size via
``set_render_frame``; until then clicks and hovers are ignored.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Optional

from ..core.config import DisplayOptions
from ..core.errors import DataUnavailable
from ..models.payloads import LocationRecord, MapBundle
from .datasource import MapDataSource
from .mapper import RenderFrame, Viewport
from .overlay import Overlay, OverlayRenderer

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Failed to load map. Please try again later."


class ViewerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    CONTENT_SHOWN = "content_shown"
    ERROR = "error"


@dataclass(frozen=True)
class MapImage:
    url: str
    alt: str
    native_width: int
    native_height: int

    def to_html(self) -> str:
        return f'<img src="{escape(self.url)}" alt="{escape(self.alt)}" class="wim-map-image">'


@dataclass
class ContentPanel:
    location: LocationRecord
    layout: str = "side"

    def to_html(self) -> str:
        loc = self.location
        html = ('<div class="wim-content-header">'
                f'<h3 class="wim-content-title">{escape(loc.title)}</h3>'
                '<button class="wim-close-button" aria-label="Close">&times;</button>'
                '</div><div class="wim-content-body">')
        # content is rendered markup from the store and passed through as-is
        if loc.content:
            html += f'<div class="wim-content-description">{loc.content}</div>'
        if loc.images:
            html += '<div class="wim-content-images">'
            for img in loc.images:
                html += (f'<img src="{escape(img.url)}" alt="{escape(img.alt or loc.title)}" '
                         'class="wim-content-image">')
            html += '</div>'
        return html + '</div>'


class MapViewer:
    def __init__(self, map_id: int, source: MapDataSource, options: Optional[DisplayOptions] = None):
        self.map_id = map_id
        self.source = source
        self.options = options or DisplayOptions()
        self.renderer = OverlayRenderer(self.options)

        self.state = ViewerState.UNINITIALIZED
        self.error: Optional[str] = None
        self.bundle: Optional[MapBundle] = None
        self.image: Optional[MapImage] = None
        self.frame: Optional[RenderFrame] = None
        self.overlay: Optional[Overlay] = None
        self.panel: Optional[ContentPanel] = None

        self._generation = 0
        self._frame_ready = asyncio.Event()

    @property
    def active_location(self) -> Optional[LocationRecord]:
        return self.panel.location if self.panel else None

    async def init(self) -> ViewerState:
        """Fetch the map and its locations; ends in READY or ERROR."""
        self._generation += 1
        generation, map_id = self._generation, self.map_id
        self.state = ViewerState.LOADING
        self.error = None
        self._frame_ready.clear()

        try:
            bundle = await self.source.fetch_map(map_id)
            if not bundle.image_url:
                raise DataUnavailable(f"map {map_id} has no image URL")
            if bundle.image_width <= 0 or bundle.image_height <= 0:
                raise DataUnavailable(f"map {map_id} has no native image size")
        except DataUnavailable as e:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded fetch for map %s", map_id)
                return self.state
            logger.error("Error loading map %s: %s", map_id, e)
            self._reset_view()
            self.error = ERROR_MESSAGE
            self.state = ViewerState.ERROR
            return self.state

        if generation != self._generation:
            logger.info("Discarding stale response for map %s", map_id)
            return self.state

        self._reset_view()
        self.bundle = bundle
        self.image = MapImage(url=bundle.image_url, alt=bundle.title or "Interactive Map",
                              native_width=bundle.image_width, native_height=bundle.image_height)
        self.state = ViewerState.READY
        return self.state

    async def switch_map(self, map_id: int) -> ViewerState:
        self.map_id = map_id
        return await self.init()

    def _reset_view(self) -> None:
        self.bundle = self.image = self.frame = self.overlay = self.panel = None

    async def frame_ready(self) -> RenderFrame:
        await self._frame_ready.wait()
        return self.frame

    def set_render_frame(self, width: float, height: float, map_id: Optional[int] = None) -> bool:
        """Report the rendered image size (on load and on every resize).

        Rebuilds the whole overlay. Returns False when the event was ignored:
        wrong map, a fetch still in flight, nothing loaded or an image
        without a size yet.
        """
        if map_id is not None and map_id != self.map_id:
            logger.debug("Ignoring frame for map %s, showing %s", map_id, self.map_id)
            return False
        if self.state is ViewerState.LOADING:
            logger.debug("Ignoring frame while map %s is loading", self.map_id)
            return False
        if self.image is None or self.bundle is None:
            return False
        frame = RenderFrame(width, height)
        if not frame.ready:
            logger.debug("Render frame not ready: %sx%s", width, height)
            return False
        viewport = Viewport(frame, self.image.native_width, self.image.native_height)
        overlay = self.renderer.build(self.bundle.locations, viewport)

        self.frame = frame
        self.overlay = overlay
        if self.panel is not None:
            overlay.set_active(self.panel.location.id)
        self._frame_ready.set()
        return True

    def click(self, x: float, y: float) -> Optional[LocationRecord]:
        """Dispatch a click in display space; returns the activated location."""
        if self.overlay is None or self.state not in (ViewerState.READY, ViewerState.CONTENT_SHOWN):
            return None
        prim = self.overlay.hit_test(x, y)
        if prim is None:
            return None
        self.show_location(prim.location)
        return prim.location

    def hover(self, x: float, y: float) -> Optional[LocationRecord]:
        if self.overlay is None:
            return None
        area = self.overlay.hover(x, y)
        return area.location if area else None

    def show_location(self, location: LocationRecord) -> None:
        if self.state not in (ViewerState.READY, ViewerState.CONTENT_SHOWN):
            return
        self.panel = ContentPanel(location, layout=self.options.layout)
        if self.overlay is not None:
            self.overlay.set_active(location.id)
        self.state = ViewerState.CONTENT_SHOWN

    def close_content(self) -> None:
        if self.state is not ViewerState.CONTENT_SHOWN:
            return
        self.panel = None
        if self.overlay is not None:
            self.overlay.set_active(None)
        self.state = ViewerState.READY

    def render(self) -> str:
        layout = escape(self.options.layout)
        if self.state is ViewerState.ERROR:
            return f'<div class="wim-error"><p>{escape(self.error or ERROR_MESSAGE)}</p></div>'
        if self.image is None:
            return f'<div class="wim-container wim-layout-{layout}"></div>'

        wrapper = self.image.to_html()
        if self.overlay is not None:
            wrapper += self.overlay.to_svg()
        if self.panel is not None:
            panel = (f'<div class="wim-content-panel wim-layout-{layout}">'
                     f'{self.panel.to_html()}</div>')
        else:
            panel = f'<div class="wim-content-panel wim-layout-{layout}" style="display: none"></div>'
        return (f'<div class="wim-container wim-layout-{layout}">'
                f'<div class="wim-map-wrapper">{wrapper}</div>{panel}</div>')
