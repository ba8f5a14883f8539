import pytest

from superImageCropper.config import DEFAULT_CROP_OPTIONS, DEFAULT_GIF_OPTIONS
from superImageCropper.errors import ConfigError
from superImageCropper.options.schema import merge_crop_options, merge_gif_options


def test_crop_defaults_are_returned_unchanged():
    assert merge_crop_options() == DEFAULT_CROP_OPTIONS


def test_later_layers_win_and_none_is_skipped():
    merged = merge_crop_options({"x": 5, "width": 10}, {"x": 7, "width": None})
    assert merged["x"] == 7
    assert merged["width"] == 10


def test_crop_defaults_are_not_mutated():
    merge_crop_options({"x": 99})
    assert DEFAULT_CROP_OPTIONS["x"] == 0


def test_extra_crop_keys_are_allowed():
    merged = merge_crop_options({"aspectRatio": 1.5})
    assert merged["aspectRatio"] == 1.5


def test_crop_error_names_the_field():
    with pytest.raises(ConfigError, match="scaleY"):
        merge_crop_options({"scaleY": 0})


def test_gif_defaults():
    merged = merge_gif_options(None)
    assert merged == DEFAULT_GIF_OPTIONS
    assert merged["repeat"] == 0
    assert merged["workers"] == 2


def test_gif_options_accept_gif_js_names():
    merged = merge_gif_options(
        {"quality": 20, "workerScript": "gif.worker.js", "dither": "FloydSteinberg", "width": None}
    )
    assert merged["quality"] == 20
    assert merged["dither"] == "FloydSteinberg"


@pytest.mark.parametrize(
    "options",
    [
        {"quality": 0},
        {"quality": 31},
        {"repeat": -2},
        {"workers": -1},
        {"width": 0},
        {"globalPalette": "yes"},
        {"colours": 12},
    ],
)
def test_invalid_gif_options(options):
    with pytest.raises(ConfigError):
        merge_gif_options(options)
