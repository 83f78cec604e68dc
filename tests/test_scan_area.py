"""Tests for the scan area geometry calculation."""
import pytest

from qr_reader.core.geometry.scan_area import ScanAreaGeometry, computeScanArea


def test_default_container_scan_area():
    geometry = computeScanArea(500, 500, 70)

    assert geometry == ScanAreaGeometry(top=75, left=75, width=350, height=350)


@pytest.mark.parametrize("width,height,ratio", [
    (500, 500, 70),
    (640, 480, 50),
    (1280, 720, 33),
    (333, 777, 100),
    (321, 123, 0),
    (10, 10, 99.5),
])
def test_scan_area_is_centered(width, height, ratio):
    geometry = computeScanArea(width, height, ratio)

    assert geometry.left * 2 + geometry.width == pytest.approx(width)
    assert geometry.top * 2 + geometry.height == pytest.approx(height)


def test_non_square_container_scales_each_axis():
    geometry = computeScanArea(640, 480, 50)

    assert geometry.left == 160
    assert geometry.top == 120
    assert geometry.width == 320
    assert geometry.height == 240


def test_same_inputs_give_same_geometry():
    assert computeScanArea(800, 600, 42) == computeScanArea(800, 600, 42)


def test_zero_ratio_gives_empty_rectangle():
    geometry = computeScanArea(500, 500, 0)

    assert geometry.width == 0
    assert geometry.height == 0
    assert geometry.top == 250


def test_ratio_above_hundred_is_not_clamped():
    geometry = computeScanArea(100, 100, 120)

    assert geometry.width == 120
    assert geometry.left == -10


def test_pixel_rect_rounds():
    geometry = computeScanArea(333, 333, 70)

    left, top, width, height = geometry.toPixelRect()

    assert (left, top) == (50, 50)
    assert (width, height) == (233, 233)
    assert all(isinstance(v, int) for v in (left, top, width, height))


def test_geometry_is_immutable(defaultGeometry):
    with pytest.raises(AttributeError):
        defaultGeometry.top = 0
