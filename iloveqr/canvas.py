# -*- coding: utf-8 -*-
"""
Canvas Module

An RGBA raster buffer with a small drawing-context API: scaled image draws,
scoped clip regions and layer compositing in 'source-over' or 'source-atop'
mode. A canvas is owned by a single render and discarded afterwards.

Classes:
    Canvas: Square RGBA drawing surface with a clip stack
"""

import logging
from contextlib import contextmanager
from io import BytesIO
from typing import Iterator, List, Optional, Tuple

import numpy as np
from PIL import Image, ImageChops

from .clip_path import ClipPath

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)

COMPOSITE_MODES = ('source-over', 'source-atop')


class Canvas:
    """
    Square RGBA drawing surface.

    Args:
        size (int): Edge length in pixels
        background (Tuple[int, int, int, int]): Initial fill, transparent by default
    """

    def __init__(self, size: int, background: Tuple[int, int, int, int] = TRANSPARENT):
        self.size = size
        self.image = Image.new('RGBA', (size, size), background)
        self._clips: List[Image.Image] = []

    @property
    def is_clipped(self) -> bool:
        return bool(self._clips)

    @property
    def clip_mask(self) -> Optional[Image.Image]:
        """Coverage mask of the active clip region, or None when unclipped."""
        if not self._clips:
            return None
        mask = self._clips[0]
        for other in self._clips[1:]:
            mask = ImageChops.multiply(mask, other)
        return mask

    @contextmanager
    def clip(self, path: ClipPath) -> Iterator['Canvas']:
        """
        Confine drawing to the inside of a closed path for the block's duration.

        The clip is popped on every exit path, including exceptions raised
        while drawing, so the canvas never stays clipped.

        Example:
            >>> with canvas.clip(path):
            ...     canvas.draw_image(logo, 105, 105, 90, 90)
        """
        if not path.closed:
            raise ValueError("Clip path must be a closed contour")
        self._clips.append(path.to_mask((self.size, self.size)))
        try:
            yield self
        finally:
            self._clips.pop()

    def draw_image(self, image: Image.Image, x: float, y: float, width: float, height: float,
                   resample=Image.LANCZOS):
        """
        Draw an image stretched to the box (x, y, width, height).

        Args:
            image (Image.Image): Source image, any mode and size
            x (float): Left edge of the destination box
            y (float): Top edge of the destination box
            width (float): Destination width
            height (float): Destination height
            resample: Pillow resampling filter used for scaling
        """
        box_w, box_h = max(1, int(round(width))), max(1, int(round(height)))
        src = image.convert('RGBA')
        if src.size != (box_w, box_h):
            src = src.resize((box_w, box_h), resample)
        layer = Image.new('RGBA', (self.size, self.size), TRANSPARENT)
        layer.paste(src, (int(round(x)), int(round(y))))
        self.composite(layer)

    def composite(self, layer: Image.Image, mode: str = 'source-over'):
        """
        Blend a full-size RGBA layer onto the canvas, honouring the active clip.

        'source-over' is plain alpha blending. 'source-atop' keeps the canvas
        alpha and only tints pixels that are already painted.
        """
        if mode not in COMPOSITE_MODES:
            raise ValueError(f"Unsupported composite mode: {mode}")
        if layer.size != self.image.size:
            raise ValueError(f"Layer size {layer.size} does not match canvas {self.image.size}")

        layer = layer.convert('RGBA')
        mask = self.clip_mask
        if mask is not None:
            layer.putalpha(ImageChops.multiply(layer.getchannel('A'), mask))

        if mode == 'source-over':
            self.image = Image.alpha_composite(self.image, layer)
            return

        dst = np.asarray(self.image, dtype=np.float64) / 255.0
        src = np.asarray(layer, dtype=np.float64) / 255.0
        src_a = src[..., 3:4]
        out = dst.copy()
        out[..., :3] = src[..., :3] * src_a + dst[..., :3] * (1.0 - src_a)
        # Pixels with no destination coverage stay untouched
        empty = dst[..., 3] == 0
        out[empty] = dst[empty]
        self.image = Image.fromarray(np.round(out * 255.0).astype(np.uint8))

    def to_png(self) -> bytes:
        buf = BytesIO()
        self.image.save(buf, format='PNG')
        return buf.getvalue()
