# -*- coding: utf-8 -*-
"""
I Love QR - Compositor Package

This package overlays a user image on a generated QR code inside a clipped
shape, applies a decorative full-canvas effect and returns one flattened
PNG.

Modules:
    models: RenderRequest and the shape/effect selectors
    clip_path: Closed clip contours for each overlay shape
    canvas: RGBA drawing surface with scoped clipping
    effects: Gradient, dots and frame post-processing
    compositor: The async render pipeline
    qr_generator: segno based base raster encoder
    functional_areas: Overlay placement advisories
    config: Defaults, bounds and presets for render settings
"""

__version__ = "1.0.0"
__author__ = "I Love QR Team"

from .models import RenderRequest, Shape, Effect
from .clip_path import ClipPath, build_clip_path
from .compositor import Compositor, RenderStage, render, render_image
from .exceptions import (
    QRCompositorError, EncodingFailed, ImageDecodeFailed, EncodingUnavailable, GeometryDegenerate
)
from .qr_generator import make_qr, encode_qr_png
from .functional_areas import assess_overlay

__all__ = [
    'RenderRequest',
    'Shape',
    'Effect',
    'ClipPath',
    'build_clip_path',
    'Compositor',
    'RenderStage',
    'render',
    'render_image',
    'QRCompositorError',
    'EncodingFailed',
    'ImageDecodeFailed',
    'EncodingUnavailable',
    'GeometryDegenerate',
    'make_qr',
    'encode_qr_png',
    'assess_overlay',
]
