import pytest

from interactive_maps.core.config import DisplayOptions, Settings


def test_display_option_defaults():
    opts = DisplayOptions()
    assert opts.layout == "side"
    assert opts.marker_color == "#ff6600"
    assert opts.area_fill_color == "#3388ff"
    assert opts.area_stroke_color == "#0055cc"
    assert opts.area_fill_opacity == pytest.approx(0.3)


def test_display_options_clamp_and_aliases():
    opts = DisplayOptions.model_validate({"layout": "grid", "areaFillOpacity": 4, "markerColor": "#000"})
    assert opts.layout == "side"
    assert opts.area_fill_opacity == 1.0
    assert opts.marker_color == "#000"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("WIM_MARKER_COLOR", "orange")
    monkeypatch.setenv("WIM_AREA_FILL_COLOR", "#abcdef")
    monkeypatch.setenv("WIM_DEFAULT_LAYOUT", "popup")
    monkeypatch.setenv("WIM_AREA_FILL_OPACITY", "0.5")

    opts = Settings().display_options()

    assert opts.marker_color == "#ff6600"
    assert opts.area_fill_color == "#abcdef"
    assert opts.layout == "popup"
    assert opts.area_fill_opacity == 0.5
