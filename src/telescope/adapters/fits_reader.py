"""FITS decoding and header extraction backed by astropy."""

import io
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from astropy.io import fits

from telescope.errors import FileReadError, FormatError

FITS_SUFFIXES = {".fits", ".fit", ".fts"}


@dataclass(frozen=True)
class FitsImage:
    """Decoded pixel grid and its header cards."""

    data: np.ndarray
    header: dict[str, object]


@dataclass(frozen=True)
class HeaderData:
    """Observation fields read from a primary FITS header."""

    obs_id: str | None
    ra: object | None
    dec: object | None
    mjd: float | None
    radius: float | None
    exposure_time: float | None


def decode_image(raw: bytes) -> FitsImage:
    """Decode FITS bytes into the first image HDU's pixels and header."""
    return _decode(io.BytesIO(raw), source="<bytes>")


def open_fits(path: str | Path) -> FitsImage:
    """Open a FITS file from disk."""
    fits_path = _fits_path(path)
    try:
        raw = fits_path.read_bytes()
    except OSError as exc:
        raise FileReadError(f"Cannot read {fits_path}: {exc}") from exc
    return _decode(io.BytesIO(raw), source=str(fits_path))


def header_value(header: dict[str, object], key: str) -> object | None:
    return header.get(key)


def read_header_data(path: str | Path) -> HeaderData:
    """Read observation keywords from the primary header of a FITS file."""
    fits_path = _fits_path(path)
    try:
        header = _plain_header(fits.getheader(fits_path, ext=0))
    except FileNotFoundError as exc:
        raise FileReadError(f"Cannot read {fits_path}: {exc}") from exc
    except (OSError, ValueError) as exc:
        raise FormatError(f"{fits_path} is not a valid FITS file: {exc}") from exc

    obs_id = header_value(header, "OBSID")
    return HeaderData(
        obs_id=str(obs_id) if obs_id is not None else None,
        ra=header_value(header, "RA"),
        dec=header_value(header, "DEC"),
        mjd=_as_float(header_value(header, "MJD-OBS")),
        radius=_as_float(header_value(header, "RADIUS")),
        exposure_time=_as_float(header_value(header, "EXPTIME")),
    )


def _fits_path(path: str | Path) -> Path:
    fits_path = Path(path)
    if fits_path.suffix.lower() not in FITS_SUFFIXES:
        raise FormatError(f"{fits_path} is not a FITS file")
    return fits_path


def _decode(buffer: io.BytesIO, source: str) -> FitsImage:
    try:
        with fits.open(buffer) as hdulist:
            for hdu in hdulist:
                if hdu.is_image and hdu.data is not None:
                    return FitsImage(
                        data=np.array(hdu.data),
                        header=_plain_header(hdu.header),
                    )
    except (OSError, TypeError, ValueError) as exc:
        raise FormatError(f"{source} is not a valid FITS file: {exc}") from exc
    raise FormatError(f"{source} contains no image data")


def _as_float(value: object | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _plain_header(header: fits.Header) -> dict[str, object]:
    return {key: value for key, value in header.items() if key}
