"""Default configuration values for superImageCropper."""

from __future__ import annotations

from typing import Any, Final

# Crop options applied before caller options and live UI geometry are merged
# on top.  The keys follow cropper.js naming so that ``getData()`` payloads
# can be merged without translation.
DEFAULT_CROP_OPTIONS: Final[dict[str, float]] = {
    "width": 100,
    "height": 100,
    "scaleX": 1,
    "scaleY": 1,
    "x": 0,
    "y": 0,
    "rotate": 0,
    "left": 0,
    "top": 0,
}

# gif.js compatible encoder options.  ``quality`` is the gif.js sampling
# interval: lower values produce larger palettes.
DEFAULT_GIF_OPTIONS: Final[dict[str, Any]] = {
    "repeat": 0,
    "quality": 10,
    "workers": 2,
    "background": "#fff",
    "transparent": None,
    "dither": False,
    "globalPalette": False,
    "debug": False,
}

# Frames without delay metadata are shown for this long.
DEFAULT_FRAME_DELAY_MS: Final[int] = 100

DEFAULT_OUTPUT_TYPE: Final[str] = "blobURL"
DEFAULT_QUALITY: Final[int] = 100

GIF_MIME_TYPE: Final[str] = "image/gif"

# Canvas ``toDataURL``/``toBlob`` fall back to PNG for types they cannot
# write; the static path mirrors that behaviour.
FALLBACK_MIME_TYPE: Final[str] = "image/png"

BLOB_URL_PREFIX: Final[str] = "blob:super-image-cropper/"

HTTP_FETCH_TIMEOUT_SEC: Final[float] = 15.0

# Pixels whose alpha falls below this threshold are written with the
# transparent palette index.
ALPHA_THRESHOLD: Final[int] = 128
