import pytest

from superImageCropper.core.geometry import (
    build_context,
    merge_geometry,
    normalize_rotate,
    plan_crop,
    rotated_size,
    round_half_up,
)
from superImageCropper.domain.models import CropGeometry
from superImageCropper.errors import ConfigError


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, 0),
        (-90, 270),
        (-370, 350),
        (-360, 0),
        (360, 0),
        (450, 90),
        (45.5, 45.5),
    ],
)
def test_normalize_rotate(value, expected):
    assert normalize_rotate(value) == pytest.approx(expected)
    assert 0 <= normalize_rotate(value) < 360


def test_round_half_up_matches_math_round():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.6) == -2


def test_rotated_size():
    assert rotated_size(100, 50, 0) == (100, 50)
    assert rotated_size(100, 50, 90) == (50, 100)
    assert rotated_size(100, 50, -90) == (50, 100)
    assert rotated_size(100, 50, 180) == (100, 50)
    assert rotated_size(100, 50, 45) == (106, 106)


def test_merge_geometry_defaults_and_window_origin():
    merged = merge_geometry({"x": 10, "y": 20, "width": 50, "height": 40}, None, (200, 100))

    assert merged["left"] == 10
    assert merged["top"] == 20
    assert (merged["width"], merged["height"]) == (50, 40)
    assert merged["scaleX"] == 1 and merged["scaleY"] == 1


def test_merge_geometry_zero_size_uses_natural_dimensions():
    merged = merge_geometry({"width": 0, "height": 0}, None, (200, 100))
    assert (merged["width"], merged["height"]) == (200, 100)


def test_ui_data_overrides_caller_options():
    merged = merge_geometry(
        {"x": 10, "rotate": 45},
        {"x": 30, "y": 5, "width": 20, "height": 20, "rotate": -90, "scaleX": None},
        (200, 100),
    )

    assert merged["left"] == 30
    assert merged["top"] == 5
    assert merged["rotate"] == 270
    assert merged["scaleX"] == 1


@pytest.mark.parametrize(
    "options",
    [{"scaleX": 0}, {"width": "wide"}, {"height": -1}, {"rotate": "left"}],
)
def test_merge_geometry_rejects_invalid_values(options):
    with pytest.raises(ConfigError):
        merge_geometry(options, None, (10, 10))


def test_build_context_defaults_crop_box_to_geometry():
    context = build_context(
        merge_geometry({"x": 4, "y": 6, "width": 8, "height": 10}, None, (40, 40)),
        {"naturalWidth": 40, "naturalHeight": 40},
    )

    assert context.image_data.natural_width == 40
    assert (context.crop_box.left, context.crop_box.top) == (4, 6)
    assert (context.crop_box.width, context.crop_box.height) == (8, 10)


def test_plan_crop_scales_and_flips():
    geometry = CropGeometry(width=30, height=20, scale_x=-2, scale_y=0.5, rotate=90)

    plan = plan_crop(geometry, (40, 40))

    assert plan.scaled_size == (80, 20)
    assert plan.flip_x and not plan.flip_y
    assert plan.surface_size == (20, 80)
    assert plan.window == (0, 0, 30, 20)
    assert plan.background is None
    assert not plan.is_identity


def test_plan_crop_rounds_window_and_parses_background():
    geometry = CropGeometry(width=10.5, height=9.4, left=1.5, top=2.2, background="#00ff00")

    plan = plan_crop(geometry, (40, 40))

    assert plan.window == (2, 2, 11, 9)
    assert plan.background == (0, 255, 0, 255)
    assert plan.is_identity


def test_plan_crop_rejects_unknown_background():
    with pytest.raises(ConfigError):
        plan_crop(CropGeometry(width=1, height=1, background="not-a-colour"), (4, 4))
