"""QR code encoder backed by the qrcode package."""

from __future__ import annotations

from PIL import Image

from ..errors import GenerationFailedError, InvalidInputError
from . import SymbolEncoder, modules_to_image

_LEVELS = ("L", "M", "Q", "H")


class QREncoder(SymbolEncoder):
    """Encode UTF-8 text as the smallest QR version that fits."""

    def __init__(self, error_correction: str = "M", border: int = 1) -> None:
        if error_correction not in _LEVELS:
            raise ValueError(
                f"Unknown QR error correction level: {error_correction!r}"
            )
        if border < 0:
            raise ValueError(f"border must not be negative: {border}")
        self._error_correction = error_correction
        self._border = border

    def generate(self, text: str) -> Image.Image:
        if not text:
            raise InvalidInputError("Cannot encode empty text")

        try:
            import qrcode
            from qrcode.exceptions import DataOverflowError
        except ImportError:
            raise ImportError("qrcode is required: pip install qrcode") from None

        levels = {
            "L": qrcode.constants.ERROR_CORRECT_L,
            "M": qrcode.constants.ERROR_CORRECT_M,
            "Q": qrcode.constants.ERROR_CORRECT_Q,
            "H": qrcode.constants.ERROR_CORRECT_H,
        }
        qr = qrcode.QRCode(
            version=None,
            error_correction=levels[self._error_correction],
            box_size=1,
            border=self._border,
        )
        qr.add_data(text)
        try:
            qr.make(fit=True)
        except (DataOverflowError, ValueError) as e:
            raise InvalidInputError(
                f"Text is too long for a QR code ({len(text)} characters)"
            ) from e

        matrix = qr.get_matrix()
        if not matrix or not any(any(row) for row in matrix):
            raise GenerationFailedError("QR encoder produced no modules")
        return modules_to_image(matrix)
