import pytest

from interactive_maps.core.errors import InvalidCoordinatePayload
from interactive_maps.services.svgpaths import apply, parse_transform, path_points, svg_outlines


def test_transform_list_applies_right_to_left():
    m = parse_transform("translate(10,20) scale(2)")
    assert apply(m, 1, 1) == (12, 22)

    m = parse_transform("matrix(1,0,0,1,5,-5)")
    assert apply(m, 0, 10) == (5, 5)


def test_unsupported_transform_is_rejected():
    with pytest.raises(InvalidCoordinatePayload):
        parse_transform("rotate(45)")


def test_absolute_path_without_repeated_start():
    assert path_points("M10 10 L 20 10 L20,20 Z") == [[10, 10], [20, 10], [20, 20]]


def test_relative_and_axis_commands():
    assert path_points("m10,10 h10 v10 h-10 z") == [[10, 10], [20, 10], [20, 20], [10, 20]]


def test_implicit_lineto_after_moveto():
    assert path_points("M0 0 10 0 10 10") == [[0, 0], [10, 0], [10, 10]]


def test_curves_keep_control_and_end_points():
    assert path_points("M0 0 C 1 2 3 4 5 6") == [[0, 0], [1, 2], [3, 4], [5, 6]]
    assert path_points("M10 10 c 1 1 2 2 3 3 l1 0") == [[10, 10], [11, 11], [12, 12], [13, 13], [14, 13]]


def test_outlines_pick_up_group_transforms():
    svg = ('<svg xmlns="http://www.w3.org/2000/svg">'
           '<g transform="translate(100,0)">'
           '<path id="north" d="M0 0 L10 0 L10 10z" transform="scale(2)"/>'
           '</g>'
           '<path d="M0 0 L1 1"/>'
           '</svg>')

    assert svg_outlines(svg) == {"north": [[100, 0], [120, 0], [120, 20]]}


def test_unreadable_svg():
    with pytest.raises(InvalidCoordinatePayload):
        svg_outlines("<svg><path id='a'")
