"""GIF decoding, quantisation and encoding."""

from .decoder import Decoder
from .encoder import SyntheticGIF, write_gif

__all__ = ["Decoder", "SyntheticGIF", "write_gif"]
