import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..core.errors import InsufficientVertices, InvalidCoordinatePayload
from .mapper import Pair, RenderFrame, to_display

logger = logging.getLogger(__name__)

MIN_VERTICES = 3


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


@dataclass(frozen=True)
class Vertex:
    native: Pair
    display: Pair


class PolygonSession:
    """Vertices of the polygon being drawn in the editor.

    ``finished`` is False while points are still being added (drawn as an
    open path) and True once the polygon is closed. Display coordinates are
    kept only for drawing and are never written to storage.
    """

    def __init__(self):
        self.vertices: List[Vertex] = []
        self.finished = False

    def __len__(self) -> int:
        return len(self.vertices)

    def add_vertex(self, native: Sequence[float], display: Sequence[float]) -> None:
        self.vertices.append(Vertex(native=(native[0], native[1]),
                                    display=(display[0], display[1])))
        self.finished = False

    def clear(self) -> None:
        self.vertices = []
        self.finished = False

    def finish(self) -> None:
        if len(self.vertices) < MIN_VERTICES:
            raise InsufficientVertices(len(self.vertices), MIN_VERTICES)
        self.finished = True

    def to_storage_payload(self) -> List[List[float]]:
        return [[v.native[0], v.native[1]] for v in self.vertices]

    def load_from_storage_payload(self, points: Iterable, frame: RenderFrame,
                                  native_width: float, native_height: float) -> None:
        """Hydrate a previously saved polygon, shown closed.

        Raises InvalidCoordinatePayload when a point is not a numeric pair,
        and DimensionsNotReady when the frame has no size yet. A payload
        with fewer than three points leaves the session empty.
        """
        natives = []
        for point in points:
            try:
                x, y = point
            except (TypeError, ValueError) as e:
                raise InvalidCoordinatePayload(f"bad polygon point {point!r}") from e
            if not all(_is_number(v) and v >= 0 for v in (x, y)):
                raise InvalidCoordinatePayload(f"bad polygon point {point!r}")
            natives.append((x, y))

        if len(natives) < MIN_VERTICES:
            logger.warning("Ignoring stored polygon with %d point(s)", len(natives))
            self.clear()
            return

        vertices = [
            Vertex(native=p, display=to_display(p[0], p[1], frame.width, frame.height,
                                                native_width, native_height))
            for p in natives
        ]
        self.vertices = vertices
        self.finished = True

    def reproject(self, frame: RenderFrame, native_width: float, native_height: float) -> None:
        """Recompute display points after the image was resized."""
        self.vertices = [
            Vertex(native=v.native, display=to_display(v.native[0], v.native[1], frame.width,
                                                       frame.height, native_width, native_height))
            for v in self.vertices
        ]
