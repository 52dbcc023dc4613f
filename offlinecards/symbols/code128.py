"""Code 128 barcode encoder backed by python-barcode."""

from __future__ import annotations

from PIL import Image

from ..errors import GenerationFailedError, InvalidInputError
from . import SymbolEncoder, modules_to_image


class Code128Encoder(SymbolEncoder):
    """Encode any ASCII text (including all-digit card numbers) as Code 128.

    The native image has no quiet zone: the first and last columns are bars.
    """

    def __init__(self, bar_height: int = 32) -> None:
        if bar_height < 1:
            raise ValueError(f"bar_height must be positive: {bar_height}")
        self._bar_height = bar_height

    def generate(self, text: str) -> Image.Image:
        if not text:
            raise InvalidInputError("Cannot encode empty text")
        if not text.isascii():
            raise InvalidInputError(f"Text cannot be encoded as Code 128: {text!r}")

        try:
            from barcode import Code128
            from barcode.errors import BarcodeError
        except ImportError:
            raise ImportError(
                "python-barcode is required: pip install python-barcode"
            ) from None

        try:
            pattern = "".join(Code128(text).build())
        except (BarcodeError, KeyError) as e:
            raise InvalidInputError(
                f"Text cannot be encoded as Code 128: {text!r}"
            ) from e

        if "1" not in pattern:
            raise GenerationFailedError("Code 128 encoder produced no bars")

        row = [m == "1" for m in pattern]
        return modules_to_image([row] * self._bar_height)
