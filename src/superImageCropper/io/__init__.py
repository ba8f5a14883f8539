"""Output serialisation helpers."""

from .output import BlobStore, CropOutput, serialize, to_data_uri

__all__ = ["BlobStore", "CropOutput", "serialize", "to_data_uri"]
