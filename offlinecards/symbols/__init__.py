"""Symbol encoder base class, symbology enum, and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from PIL import Image

if TYPE_CHECKING:
    from ..config import RenderConfig


class Symbology(Enum):
    BARCODE = "barcode"  # Code 128
    QR = "qr"


class SymbolEncoder(ABC):
    """Abstract base for turning text into a native symbol image.

    Native images are one pixel per module, black on white, in ``L`` mode.
    """

    @abstractmethod
    def generate(self, text: str) -> Image.Image:
        """Generate the native symbol image for ``text``.

        Raises:
            InvalidInputError: If the text can't be encoded by this symbology.
            GenerationFailedError: If the encoder produced no modules.
        """
        ...

    def upscale(self, image: Image.Image, size: tuple[int, int]) -> Image.Image:
        """Resize without interpolation so bars and modules stay sharp."""
        return image.resize(size, Image.Resampling.NEAREST)


def modules_to_image(rows: list[list[bool]]) -> Image.Image:
    """Rasterise a module matrix (True = dark) into an ``L`` image."""
    height = len(rows)
    width = len(rows[0]) if rows else 0
    data = bytes(0 if dark else 255 for row in rows for dark in row)
    return Image.frombytes("L", (width, height), data)


def create_encoder(
    symbology: Symbology, config: RenderConfig | None = None
) -> SymbolEncoder:
    """Create a symbol encoder for the given symbology."""
    match symbology:
        case Symbology.BARCODE:
            from .code128 import Code128Encoder

            if config is None:
                return Code128Encoder()
            return Code128Encoder(bar_height=config.barcode_height)
        case Symbology.QR:
            from .qr import QREncoder

            if config is None:
                return QREncoder()
            return QREncoder(
                error_correction=config.qr_error_correction,
                border=config.qr_border,
            )
        case _:
            raise ValueError(f"Unknown symbology: {symbology!r}")
