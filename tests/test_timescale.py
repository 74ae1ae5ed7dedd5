import pytest

from lazyvid.config import EditorSettings
from lazyvid.utils.timescale import TimeScale, ruler_interval


def test_pixel_time_conversion():
    scale = TimeScale(10.0)
    assert scale.time_to_px(2.5) == 25.0
    assert scale.px_to_time(25.0) == 2.5
    assert scale.px_to_time(-10.0) == 0.0
    assert scale.px_to_time(500.0, max_duration=12.0) == 12.0
    assert scale.px_delta_to_seconds(-15.0) == -1.5
    assert scale.threshold_seconds(10.0) == 1.0


def test_zoom_is_clamped():
    scale = TimeScale(10.0)
    assert scale.zoom_in() == 12.5
    assert scale.zoom_out() == 10.0
    for _ in range(20):
        scale.zoom_in()
    assert scale.pixels_per_second == 50.0
    for _ in range(20):
        scale.zoom_out()
    assert scale.pixels_per_second == 5.0
    assert TimeScale(500.0).pixels_per_second == 50.0


def test_threshold_shrinks_as_zoom_grows():
    scale = TimeScale(10.0)
    wide = scale.threshold_seconds(10.0)
    scale.set_zoom(40.0)
    assert scale.threshold_seconds(10.0) < wide


def test_from_settings():
    scale = TimeScale.from_settings(EditorSettings(pixels_per_second=20.0, max_pixels_per_second=30.0))
    assert scale.pixels_per_second == 20.0
    assert scale.set_zoom(100.0) == 30.0


def test_invalid_bounds():
    with pytest.raises(ValueError):
        TimeScale(10.0, minimum=0.0)
    with pytest.raises(ValueError):
        TimeScale(10.0, minimum=20.0, maximum=10.0)


def test_ruler_interval():
    assert ruler_interval(10) == 1
    assert ruler_interval(30) == 1
    assert ruler_interval(45) == 5
    assert ruler_interval(60) == 5
    assert ruler_interval(61) == 10
