"""Option schemas and default merging."""

from .schema import (
    CROP_OPTIONS_SCHEMA,
    GIF_OPTIONS_SCHEMA,
    merge_crop_options,
    merge_gif_options,
)

__all__ = [
    "CROP_OPTIONS_SCHEMA",
    "GIF_OPTIONS_SCHEMA",
    "merge_crop_options",
    "merge_gif_options",
]
