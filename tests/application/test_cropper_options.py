import pytest

from superImageCropper.application.dtos import CropperOptions, OutputType
from superImageCropper.errors import (
    ConfigError,
    DecodeError,
    EncodeError,
    LoadError,
    SuperImageCropperError,
)


def test_from_mapping_accepts_camel_and_snake_case():
    options = CropperOptions.from_mapping(
        {
            "src": "image.gif",
            "cropperJsOpts": {"width": 10},
            "gif_js_options": {"repeat": 1},
            "outputType": "base64",
            "crossOrigin": "anonymous",
            "quality": 80,
        }
    )

    assert options.cropper_js_opts == {"width": 10}
    assert options.gif_js_options == {"repeat": 1}
    assert options.resolved_output_type is OutputType.BASE64
    assert options.cross_origin == "anonymous"
    assert options.resolved_quality == pytest.approx(0.8)


def test_unknown_option_raises():
    with pytest.raises(ConfigError, match="cropperOpts"):
        CropperOptions.from_mapping({"cropperOpts": {}})


def test_defaults():
    options = CropperOptions()
    assert options.resolved_output_type is OutputType.BLOB_URL
    assert options.resolved_quality == 1.0


@pytest.mark.parametrize("quality", [-1, 101, "high"])
def test_invalid_quality(quality):
    with pytest.raises(ConfigError):
        CropperOptions(quality=quality).resolved_quality


@pytest.mark.parametrize("error", [ConfigError, LoadError, DecodeError, EncodeError])
def test_errors_share_a_base_class(error):
    assert issubclass(error, SuperImageCropperError)
    assert isinstance(error("boom"), Exception)
