# -*- coding: utf-8 -*-
"""
Effect Post-Processor Module

Full-canvas visual treatments applied as the last compositing step, over
both the code pattern and the overlay image.

Functions:
    apply_effect: Dispatch an Effect onto a canvas
    apply_gradient: Radial white veil, opaque-ish center fading outwards
    apply_dots: Grid of faint white dots over already painted pixels
    apply_frame: Stroked rectangle inset from the canvas edges
"""

import logging
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from .canvas import Canvas
from .models import Effect

logger = logging.getLogger(__name__)

GRADIENT_INNER_ALPHA = 0.8
GRADIENT_OUTER_ALPHA = 0.1

DOT_SPACING = 8
DOT_RADIUS = 2
DOT_MAX_ALPHA = 0.3

FRAME_INSET = 10
FRAME_LINE_WIDTH = 4


def apply_gradient(canvas: Canvas):
    """
    Paint a radial gradient from rgba(255,255,255,0.8) at the center to
    rgba(255,255,255,0.1) at half the canvas width, source-over.

    Pixels further out than half the width keep the outer stop's alpha.
    """
    size = canvas.size
    center = size / 2
    y, x = np.mgrid[0:size, 0:size].astype(np.float64) + 0.5
    t = np.clip(np.hypot(x - center, y - center) / center, 0.0, 1.0)
    alpha = GRADIENT_INNER_ALPHA + (GRADIENT_OUTER_ALPHA - GRADIENT_INNER_ALPHA) * t

    layer = np.full((size, size, 4), 255, dtype=np.uint8)
    layer[..., 3] = np.round(alpha * 255.0).astype(np.uint8)
    canvas.composite(Image.fromarray(layer))


def dot_alpha_map(size: int, rng: np.random.Generator) -> np.ndarray:
    """
    Build the per-pixel alpha of the dot grid.

    One dot of radius DOT_RADIUS sits on every grid point (i, j) with i and j
    multiples of DOT_SPACING below size. Each dot draws its own alpha from
    U[0, DOT_MAX_ALPHA). Since the radius is under half the spacing, every
    pixel belongs to at most one dot.

    Args:
        size (int): Canvas edge length
        rng (np.random.Generator): Source of the per-dot alpha values

    Returns:
        np.ndarray: Float array (size, size) of alpha values, 0 off-dot
    """
    cells = (size + DOT_SPACING - 1) // DOT_SPACING
    dot_alpha = rng.random((cells, cells)) * DOT_MAX_ALPHA

    centers = np.arange(size, dtype=np.float64) + 0.5
    nearest = np.round(centers / DOT_SPACING).astype(int)
    offset = centers - nearest * DOT_SPACING
    valid = nearest * DOT_SPACING < size
    nearest = np.minimum(nearest, cells - 1)

    inside = (offset[:, None] ** 2 + offset[None, :] ** 2) <= DOT_RADIUS ** 2
    inside &= valid[:, None] & valid[None, :]
    alpha = dot_alpha[nearest[:, None], nearest[None, :]]
    return np.where(inside, alpha, 0.0)


def apply_dots(canvas: Canvas, rng: np.random.Generator):
    """Paint the white dot grid source-atop, so only painted pixels are touched."""
    size = canvas.size
    alpha = dot_alpha_map(size, rng)

    layer = np.full((size, size, 4), 255, dtype=np.uint8)
    layer[..., 3] = np.round(alpha * 255.0).astype(np.uint8)
    canvas.composite(Image.fromarray(layer), mode='source-atop')


def apply_frame(canvas: Canvas, color: Tuple[int, int, int]):
    """
    Stroke the rectangle (10, 10, W-20, H-20) with a 4 unit wide line.

    The stroke is centered on the rectangle edge, covering pixels 8 to 11
    from each side of the canvas.
    """
    size = canvas.size
    outer = FRAME_INSET - FRAME_LINE_WIDTH // 2
    layer = Image.new('RGBA', (size, size), (0, 0, 0, 0))
    ImageDraw.Draw(layer).rectangle(
        [outer, outer, size - 1 - outer, size - 1 - outer],
        outline=tuple(color[:3]) + (255,),
        width=FRAME_LINE_WIDTH,
    )
    canvas.composite(layer)


def apply_effect(canvas: Canvas, effect, color: Tuple[int, int, int] = (0, 0, 0),
                 rng: Optional[np.random.Generator] = None):
    """
    Apply a named effect to the whole canvas.

    Args:
        canvas (Canvas): Canvas to modify in place
        effect (Union[Effect, str]): Effect selector; unknown names are a no-op
        color (Tuple[int, int, int]): Foreground color, used by the frame
        rng (Optional[np.random.Generator]): Random source for the dots effect

    Example:
        >>> apply_effect(canvas, Effect.FRAME, color=(220, 38, 38))
    """
    effect = Effect.parse(effect)
    if effect is Effect.NONE:
        return
    if canvas.is_clipped:
        raise RuntimeError("Effects apply to the whole canvas; release the clip first")

    logger.debug(f"Applying effect {effect.value} on {canvas.size}px canvas")
    if effect is Effect.GRADIENT:
        apply_gradient(canvas)
    elif effect is Effect.DOTS:
        apply_dots(canvas, rng if rng is not None else np.random.default_rng())
    elif effect is Effect.FRAME:
        apply_frame(canvas, color)
