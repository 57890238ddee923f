import pytest

from conftest import HARBOUR
from interactive_maps.core.config import DisplayOptions
from interactive_maps.models.payloads import LocationRecord, MapBundle
from interactive_maps.services.mapper import RenderFrame, Viewport
from interactive_maps.services.overlay import (
    MARKER_RADIUS,
    Area,
    Marker,
    OverlayRenderer,
)
from interactive_maps.services.polygon import PolygonSession


def _locations(extra=()):
    bundle = MapBundle.model_validate(HARBOUR)
    return bundle.locations + [LocationRecord.model_validate(e) for e in extra]


def _viewport(w=1000, h=500):
    return Viewport(RenderFrame(w, h), 2000, 1000)


def test_place_becomes_marker_in_display_space():
    overlay = OverlayRenderer().build(_locations(), _viewport())
    marker = overlay.find(11)
    assert isinstance(marker, Marker)
    assert (marker.cx, marker.cy) == (100, 50)
    assert marker.fill == "#ff6600"


def test_marker_radius_does_not_scale_with_image():
    small = OverlayRenderer().build(_locations(), _viewport(500, 250)).find(11)
    large = OverlayRenderer().build(_locations(), _viewport(2000, 1000)).find(11)
    assert small.radius == large.radius == MARKER_RADIUS
    assert (large.cx, large.cy) == (200, 100)


def test_area_uses_location_color_and_configured_style():
    options = DisplayOptions(areaStrokeColor="#112233", areaFillOpacity=0.4)
    area = OverlayRenderer(options).build(_locations(), _viewport()).find(12)
    assert isinstance(area, Area)
    assert area.points == [(500, 50), (700, 50), (700, 250), (500, 250)]
    assert area.fill == "#00aa00"
    assert area.stroke == "#112233"
    assert area.fill_opacity == pytest.approx(0.4)


def test_area_without_color_uses_default_fill():
    loc = {"id": 30, "title": "Dock", "type": "area",
           "coordinates": {"points": [[0, 0], [10, 0], [10, 10]]}}
    area = OverlayRenderer().build(_locations([loc]), _viewport()).find(30)
    assert area.fill == "#3388ff"


def test_hover_raises_opacity_and_reverts():
    overlay = OverlayRenderer().build(_locations(), _viewport())
    area = overlay.find(12)

    assert overlay.hover(600, 150) is area
    assert area.fill_opacity == pytest.approx(0.5)

    assert overlay.hover(5, 5) is None
    assert area.fill_opacity == pytest.approx(0.3)


def test_hover_opacity_is_capped():
    overlay = OverlayRenderer(DisplayOptions(areaFillOpacity=0.9)).build(_locations(), _viewport())
    overlay.hover(600, 150)
    assert overlay.find(12).fill_opacity == 1.0


def test_hit_test_returns_source_location():
    overlay = OverlayRenderer().build(_locations(), _viewport())

    assert overlay.hit_test(104, 53).location.title == "Lighthouse & Pier"
    assert overlay.hit_test(600, 150).location.id == 12
    assert overlay.hit_test(900, 450) is None


def test_hit_test_prefers_top_most_primitive():
    # a marker drawn after the area, inside it
    inner = {"id": 40, "title": "Stall", "type": "place", "coordinates": {"x": 1200, "y": 300}}
    overlay = OverlayRenderer().build(_locations([inner]), _viewport())
    assert overlay.hit_test(600, 150).location.id == 40


def test_short_and_malformed_locations_are_skipped():
    extra = [
        {"id": 50, "title": "Line", "type": "area", "coordinates": {"points": [[0, 0], [5, 5]]}},
        {"id": 51, "title": "Broken", "type": "place", "coordinates": {"lat": 1}},
        {"id": 52, "title": "Empty", "type": "area", "coordinates": None},
    ]
    overlay = OverlayRenderer().build(_locations(extra), _viewport())
    assert len(overlay) == 2
    assert overlay.find(50) is None


def test_self_intersecting_area_still_hit_tests():
    bowtie = {"id": 60, "title": "Bowtie", "type": "area",
              "coordinates": {"points": [[0, 0], [400, 400], [400, 0], [0, 400]]}}
    overlay = OverlayRenderer().build(_locations([bowtie]), _viewport())
    assert overlay.hit_test(50, 100).location.id == 60
    assert overlay.find(60).points[1] == (200, 200)


def test_set_active_highlights_one_location():
    overlay = OverlayRenderer().build(_locations(), _viewport())
    overlay.set_active(11)
    overlay.set_active(12)
    assert [p.location_id for p in overlay if p.active] == [12]

    svg = overlay.to_svg()
    assert 'class="wim-area wim-active" data-location-id="12"' in svg
    assert 'class="wim-marker" data-location-id="11"' in svg


def test_svg_is_sized_to_the_render_frame():
    svg = OverlayRenderer().build(_locations(), _viewport()).to_svg()
    assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" class="wim-overlay" width="1000" height="500">')
    assert 'points="500,50 700,50 700,250 500,250"' in svg


def test_draft_polygon_open_then_closed():
    renderer = OverlayRenderer()
    session = PolygonSession()
    assert renderer.draft_polygon(session) is None

    for p in ((0, 0), (10, 0), (10, 10)):
        session.add_vertex(p, p)
    open_svg = renderer.draft_polygon(session).to_svg()
    assert "<polygon" not in open_svg
    assert open_svg.count("<circle") == 3
    assert open_svg.count("<line") == 2

    session.finish()
    closed_svg = renderer.draft_polygon(session).to_svg()
    assert closed_svg.startswith("<polygon")
