class MapError(Exception):
    """Base class for failures raised by the map core."""


class DataUnavailable(MapError):
    """Map data could not be fetched, or arrived without an image URL."""


class DimensionsNotReady(MapError):
    """The image has no rendered size yet; coordinate math must wait."""


class InsufficientVertices(MapError):
    """A polygon was finished with fewer than three vertices."""

    def __init__(self, count: int, required: int = 3):
        super().__init__(f"A polygon must have at least {required} points (got {count}).")
        self.count = count
        self.required = required


class InvalidCoordinatePayload(MapError):
    """Stored coordinates are malformed JSON or have the wrong shape."""
