# -*- coding: utf-8 -*-
"""
QR Code Generator Module

This module wraps the segno library to produce the base raster the
compositor draws on: a square PNG of the requested pixel size in the chosen
foreground and background colors.

Functions:
    make_qr: Build a QR code symbol with segno
    rasterize_qr: Render a symbol to a square PNG of an exact pixel size
    encode_qr_png: Text in, PNG bytes out
"""

import logging
from io import BytesIO
from typing import Optional, Tuple, Union

import segno
from PIL import Image

from .exceptions import EncodingFailed
from .models import ECC_LEVELS

logger = logging.getLogger(__name__)

Color = Union[str, Tuple[int, int, int]]

# Quiet zone in modules around the symbol
DEFAULT_BORDER = 2


def make_qr(
    text: str,
    ecc: str = 'M',
    version: Optional[Union[int, str]] = None,
    mode: Optional[str] = None,
    encoding: Optional[str] = None,
    eci: bool = False,
    mask: Union[str, int] = 'auto',
    boost_error: bool = False,
    micro: bool = False
) -> segno.QRCode:
    """
    Generate a QR code symbol.

    Args:
        text (str): The data to encode
        ecc (str): Error correction level
            - L: ~7% recovery capability
            - M: ~15% recovery capability
            - Q: ~25% recovery capability
            - H: ~30% recovery capability
        version (Optional[Union[int, str]]): 1-40, or None/'auto' for the smallest fit
        mode (Optional[str]): segno encoding mode, None to let segno pick
        encoding (Optional[str]): Character encoding for byte mode
        eci (bool): Add an ECI header naming the encoding
        mask (Union[str, int]): 'auto' or a fixed mask pattern 0-7
        boost_error (bool): Let segno raise the ECC level when space allows
        micro (bool): Allow Micro QR symbols

    Returns:
        segno.QRCode: Generated symbol

    Raises:
        EncodingFailed: If the text is empty, the level is unknown or the
            data does not fit
    """
    if not text:
        raise EncodingFailed("Nothing to encode: text is empty")
    level = (ecc or 'M').strip().upper()
    if level not in ECC_LEVELS:
        raise EncodingFailed(f"Unknown error correction level {ecc!r}, expected one of {ECC_LEVELS}")

    mask_arg = None if mask == 'auto' else int(mask)
    ver_arg = None if (version in (None, 'auto')) else int(version)

    try:
        return segno.make(
            text,
            error=level,
            version=ver_arg,
            mode=mode,
            encoding=encoding,
            eci=bool(eci),
            mask=mask_arg,
            boost_error=bool(boost_error),
            micro=bool(micro)
        )
    except (segno.DataOverflowError, ValueError) as ex:
        raise EncodingFailed(
            f"Cannot encode {len(text)} characters at level {level}: {ex}"
        ) from ex


def rasterize_qr(
    qr: segno.QRCode,
    size: int,
    dark: Color = '#000000',
    light: Color = '#ffffff',
    border: int = DEFAULT_BORDER
) -> bytes:
    """
    Render a symbol to a size x size PNG.

    The symbol is drawn at the largest integer module scale that fits and
    then resampled with nearest-neighbour to the exact size.

    Args:
        qr (segno.QRCode): Symbol to render
        size (int): Output edge length in pixels
        dark (Color): Module color
        light (Color): Background color
        border (int): Quiet zone in modules

    Returns:
        bytes: PNG-encoded RGB image
    """
    modules, _ = qr.symbol_size(scale=1, border=border)
    scale = max(1, size // modules)

    buf = BytesIO()
    qr.save(buf, kind='png', scale=scale, border=border, dark=dark, light=light)
    img = Image.open(BytesIO(buf.getvalue())).convert('RGB')
    if img.size != (size, size):
        img = img.resize((size, size), Image.NEAREST)

    out = BytesIO()
    img.save(out, format='PNG')
    return out.getvalue()


def encode_qr_png(
    text: str,
    size: int,
    dark: Color = '#000000',
    light: Color = '#ffffff',
    ecc: str = 'M',
    border: int = DEFAULT_BORDER
) -> bytes:
    """
    Encode text straight to a square base raster.

    Example:
        >>> png = encode_qr_png("https://example.com", 300, ecc='H')
    """
    qr = make_qr(text, ecc=ecc)
    logger.debug(f"Encoded {len(text)} chars as version {qr.version}-{qr.error}")
    return rasterize_qr(qr, size, dark=dark, light=light, border=border)
