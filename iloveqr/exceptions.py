# -*- coding: utf-8 -*-
"""
Exception Types

Failures surfaced by the compositor and its collaborators. A render either
returns a complete raster or raises one of these; no partial output is ever
produced.
"""


class QRCompositorError(Exception):
    """Base class for recoverable compositor failures."""


class EncodingFailed(QRCompositorError):
    """The code encoder rejected the input (empty text, data overflow, bad ECC level)."""


class ImageDecodeFailed(QRCompositorError):
    """Raster bytes could not be decoded into a drawable image."""


class EncodingUnavailable(ImageDecodeFailed):
    """The base raster handed over by the encoder could not be decoded."""


class GeometryDegenerate(AssertionError):
    """Clip box with zero or negative dimensions; a caller bug, not a user error."""
