"""Conversions between native image pixels and the rendered image.

Native space is the pixel grid of the full-resolution map image; display
space is the pixel grid of the image as currently rendered. Every stored
coordinate is native; every pointer event and every drawn shape is display.
"""
import math
from dataclasses import dataclass
from typing import Tuple

from ..core.errors import DimensionsNotReady

Pair = Tuple[float, float]


@dataclass(frozen=True)
class RenderFrame:
    """Rendered size of the map image, recomputed on load and resize."""
    width: float
    height: float

    @property
    def ready(self) -> bool:
        return self.width > 0 and self.height > 0


def _check(render_w: float, render_h: float, native_w: float, native_h: float) -> None:
    if not (render_w > 0 and render_h > 0):
        raise DimensionsNotReady(f"render frame is {render_w}x{render_h}")
    if not (native_w > 0 and native_h > 0):
        raise DimensionsNotReady(f"native size is {native_w}x{native_h}")


def round_half_up(v: float) -> int:
    # stored place coordinates were produced with half-up rounding
    return int(math.floor(v + 0.5))


def to_native(display_x: float, display_y: float,
              render_w: float, render_h: float,
              native_w: float, native_h: float,
              rounded: bool = True):
    """Map a display-space point onto the native image.

    Place capture rounds to whole pixels; area capture passes
    ``rounded=False`` and keeps full precision.
    """
    _check(render_w, render_h, native_w, native_h)
    x = display_x * (native_w / render_w)
    y = display_y * (native_h / render_h)
    if rounded:
        return round_half_up(x), round_half_up(y)
    return x, y


def to_display(native_x: float, native_y: float,
               render_w: float, render_h: float,
               native_w: float, native_h: float) -> Pair:
    _check(render_w, render_h, native_w, native_h)
    return native_x * (render_w / native_w), native_y * (render_h / native_h)


@dataclass(frozen=True)
class Viewport:
    """A render frame bound to the native size of one map image."""
    frame: RenderFrame
    native_width: float
    native_height: float

    def to_native(self, x: float, y: float, rounded: bool = True):
        return to_native(x, y, self.frame.width, self.frame.height,
                         self.native_width, self.native_height, rounded=rounded)

    def to_display(self, x: float, y: float) -> Pair:
        return to_display(x, y, self.frame.width, self.frame.height,
                          self.native_width, self.native_height)
