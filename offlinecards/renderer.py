"""Render card numbers as barcode or QR code images."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image

from .errors import GenerationFailedError, InvalidInputError
from .symbols import SymbolEncoder, Symbology, create_encoder

if TYPE_CHECKING:
    from .config import RenderConfig
    from .models import Card


class Resolution(Enum):
    STANDARD = "standard"  # card detail preview
    HIGH = "high"  # fullscreen display


# QR codes: target size of the larger side, in pixels
_QR_TARGET = {Resolution.STANDARD: 300, Resolution.HIGH: 1000}

# Barcodes: uniform integer scale factor
_BARCODE_SCALE = {Resolution.STANDARD: 5, Resolution.HIGH: 10}


def target_size(
    native: tuple[int, int], mode: Symbology, resolution: Resolution
) -> tuple[int, int]:
    """Compute the output size for a native symbol of the given size."""
    width, height = native
    if mode is Symbology.QR:
        scale = _QR_TARGET[resolution] / max(width, height)
    else:
        scale = _BARCODE_SCALE[resolution]
    return max(1, round(width * scale)), max(1, round(height * scale))


class CodeRenderer:
    """Produce crisp, scannable code images at a requested resolution.

    Encoders are created per call; nothing is cached between renders.
    """

    def __init__(self, config: RenderConfig | None = None) -> None:
        self._config = config

    def _encoder(self, mode: Symbology) -> SymbolEncoder:
        return create_encoder(mode, self._config)

    def render(
        self,
        text: str,
        mode: Symbology = Symbology.BARCODE,
        resolution: Resolution = Resolution.STANDARD,
    ) -> Image.Image:
        """Render ``text`` as a barcode or QR code image.

        Raises:
            InvalidInputError: If ``text`` is empty or not encodable.
            GenerationFailedError: If no usable image could be produced.
        """
        if not text:
            raise InvalidInputError("Cannot render an empty card number")

        encoder = self._encoder(mode)
        native = encoder.generate(text)
        if native.width == 0 or native.height == 0:
            raise GenerationFailedError(f"{mode.value} encoder returned an empty image")

        size = target_size(native.size, mode, resolution)
        try:
            return encoder.upscale(native, size)
        except (ValueError, OSError, MemoryError) as e:
            raise GenerationFailedError(
                f"Failed to scale {mode.value} image to {size[0]}x{size[1]}"
            ) from e

    def render_card(
        self, card: Card, resolution: Resolution = Resolution.STANDARD
    ) -> Image.Image:
        """Render a card using the symbology it was saved with."""
        mode = Symbology.QR if card.use_qr_code else Symbology.BARCODE
        return self.render(card.card_number, mode, resolution)


def render(
    text: str,
    mode: Symbology = Symbology.BARCODE,
    resolution: Resolution = Resolution.STANDARD,
) -> Image.Image:
    """Render with default settings. See :meth:`CodeRenderer.render`."""
    return CodeRenderer().render(text, mode, resolution)


def save_png(image: Image.Image, path: str | Path) -> Path:
    """Write a rendered code to a PNG file and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    return path
