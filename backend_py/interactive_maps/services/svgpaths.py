"""Turn outlines drawn in a vector editor into Area point lists.

The SVG's user space is expected to match the map image's native pixels.
Each ``<path>`` with an ``id`` becomes one outline; ``transform`` attributes
on the path and its enclosing groups are applied. Curves are flattened to
their control and end points, which is close enough for click targets.
"""
import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

from ..core.errors import InvalidCoordinatePayload

logger = logging.getLogger(__name__)

# SVG order: x' = a*x + c*y + e, y' = b*x + d*y + f
Matrix = Tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

_COMMAND = re.compile(r"([MmLlHhVvCcSsQqTtAaZz])([^MmLlHhVvCcSsQqTtAaZz]*)")
_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_TRANSFORM = re.compile(r"([A-Za-z]+)\s*\(([^)]*)\)")

# numbers consumed per segment and which (x, y) offsets in it are kept
_SEGMENTS = {
    "L": (2, [0]),
    "C": (6, [0, 2, 4]),
    "S": (4, [0, 2]),
    "Q": (4, [0, 2]),
    "T": (2, [0]),
    "A": (7, [5]),
}


def _numbers(text: str) -> List[float]:
    return [float(v) for v in _NUMBER.findall(text)]


def multiply(m: Matrix, n: Matrix) -> Matrix:
    a, b, c, d, e, f = m
    a2, b2, c2, d2, e2, f2 = n
    return (a * a2 + c * b2, b * a2 + d * b2,
            a * c2 + c * d2, b * c2 + d * d2,
            a * e2 + c * f2 + e, b * e2 + d * f2 + f)


def apply(m: Matrix, x: float, y: float) -> Tuple[float, float]:
    a, b, c, d, e, f = m
    return a * x + c * y + e, b * x + d * y + f


def parse_transform(text: Optional[str]) -> Matrix:
    """Combine a ``transform`` attribute into one matrix.

    Supports ``matrix``, ``translate`` and ``scale``; anything else raises
    InvalidCoordinatePayload rather than silently misplacing the outline.
    """
    m = IDENTITY
    if not text:
        return m
    for name, args in _TRANSFORM.findall(text):
        nums = _numbers(args)
        if name == "matrix" and len(nums) == 6:
            op = tuple(nums)
        elif name == "translate" and 1 <= len(nums) <= 2:
            op = (1.0, 0.0, 0.0, 1.0, nums[0], nums[1] if len(nums) > 1 else 0.0)
        elif name == "scale" and 1 <= len(nums) <= 2:
            sy = nums[1] if len(nums) > 1 else nums[0]
            op = (nums[0], 0.0, 0.0, sy, 0.0, 0.0)
        else:
            raise InvalidCoordinatePayload(f"unsupported transform {name}({args.strip()})")
        m = multiply(m, op)
    return m


def path_points(d: str, matrix: Matrix = IDENTITY) -> List[List[float]]:
    """Vertices of an SVG path's ``d`` data, in transformed user space.

    Sub-paths are concatenated. Closing a path does not repeat its start
    point; the outline is closed when drawn.
    """
    points: List[List[float]] = []
    cx = cy = 0.0
    sx = sy = 0.0

    def emit(x, y):
        points.append(list(apply(matrix, x, y)))

    for cmd, args in _COMMAND.findall(d):
        nums = _numbers(args)
        op, relative = cmd.upper(), cmd.islower()
        if op == "Z":
            cx, cy = sx, sy
            continue
        if op == "M":
            if len(nums) < 2:
                raise InvalidCoordinatePayload(f"moveto without a point in {d!r}")
            cx, cy = (cx + nums[0], cy + nums[1]) if relative else (nums[0], nums[1])
            sx, sy = cx, cy
            emit(cx, cy)
            # extra pairs after a moveto are implicit linetos
            op, nums = "L", nums[2:]
        if op in ("H", "V"):
            for v in nums:
                if op == "H":
                    cx = cx + v if relative else v
                else:
                    cy = cy + v if relative else v
                emit(cx, cy)
            continue

        size, keep = _SEGMENTS[op]
        for i in range(0, len(nums) - size + 1, size):
            seg = nums[i:i + size]
            for k in keep:
                x, y = seg[k], seg[k + 1]
                if relative:
                    x, y = cx + x, cy + y
                emit(x, y)
            # the last kept pair is the segment's end point
            cx, cy = (cx + seg[keep[-1]], cy + seg[keep[-1] + 1]) if relative \
                else (seg[keep[-1]], seg[keep[-1] + 1])
    return points


def svg_outlines(svg_text: str) -> Dict[str, List[List[float]]]:
    """Map each identified ``<path>`` in ``svg_text`` to its point list."""
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise InvalidCoordinatePayload(f"unreadable SVG: {e}") from e

    outlines: Dict[str, List[List[float]]] = {}

    def walk(el: ET.Element, matrix: Matrix) -> None:
        matrix = multiply(matrix, parse_transform(el.get("transform")))
        if el.tag.rsplit("}", 1)[-1] == "path":
            path_id, d = el.get("id"), el.get("d")
            if path_id and d:
                outlines[path_id] = path_points(d, matrix)
            else:
                logger.debug("Skipping path without id or data")
        for child in el:
            walk(child, matrix)

    walk(root, IDENTITY)
    return outlines
