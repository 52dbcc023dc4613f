"""TOML configuration loader for the card wallet."""

from __future__ import annotations

import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

_DEFAULT_DB_PATH = "~/.config/offlinecards/cards.db"
_DEFAULT_EXPORT_DIR = str(Path(tempfile.gettempdir()) / "offlinecards")


@dataclass
class DatabaseConfig:
    path: str = _DEFAULT_DB_PATH


@dataclass
class RenderConfig:
    barcode_height: int = 32
    qr_error_correction: str = "M"
    qr_border: int = 1


@dataclass
class ExportConfig:
    directory: str = _DEFAULT_EXPORT_DIR


@dataclass
class WalletConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    export: ExportConfig = field(default_factory=ExportConfig)


def load_config(path: str | Path | None = None) -> WalletConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path and export directory can be set via environment
    variables when the file leaves them unset.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    rnd = raw.get("render", {})
    exp = raw.get("export", {})

    # Resolve paths: config file → environment variable → default
    db_path = (
        dbs.get("path", "")
        or os.environ.get("OFFLINECARDS_DB", "")
        or _DEFAULT_DB_PATH
    )
    export_dir = (
        exp.get("directory", "")
        or os.environ.get("OFFLINECARDS_EXPORT_DIR", "")
        or _DEFAULT_EXPORT_DIR
    )

    level = str(rnd.get("qr_error_correction", "M")).upper()
    if level not in ("L", "M", "Q", "H"):
        raise ValueError(
            f"Unknown QR error correction level: {level!r} (choose L / M / Q / H)"
        )

    return WalletConfig(
        database=DatabaseConfig(path=db_path),
        render=RenderConfig(
            barcode_height=rnd.get("barcode_height", 32),
            qr_error_correction=level,
            qr_border=rnd.get("qr_border", 1),
        ),
        export=ExportConfig(directory=export_dir),
    )
