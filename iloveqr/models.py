# -*- coding: utf-8 -*-
"""
Render Request Model

This module defines the immutable inputs of a single render: the shape and
effect selectors and the RenderRequest record consumed by the compositor.

Classes:
    Shape: Clip shape selector for the overlay image
    Effect: Full-canvas post-process selector
    RenderRequest: One render's worth of parameters
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from PIL import Image

logger = logging.getLogger(__name__)

CANVAS_SIZE_MIN = 200
CANVAS_SIZE_MAX = 800
OVERLAY_FRACTION_MIN = 0.10
OVERLAY_FRACTION_MAX = 0.50
ECC_LEVELS = ('L', 'M', 'Q', 'H')

# Encoded raster bytes or an already decoded Pillow image
RasterSource = Union[bytes, Image.Image]


class Shape(str, Enum):
    CIRCLE = 'circle'
    SQUARE = 'square'
    ROUNDED = 'rounded'
    DIAMOND = 'diamond'
    HEART = 'heart'

    @classmethod
    def parse(cls, value) -> 'Shape':
        """Coerce a selector value, falling back to CIRCLE for unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown clip shape {value!r}, using circle")
            return cls.CIRCLE


class Effect(str, Enum):
    NONE = 'none'
    GRADIENT = 'gradient'
    DOTS = 'dots'
    FRAME = 'frame'

    @classmethod
    def parse(cls, value) -> 'Effect':
        """Coerce a selector value, falling back to NONE for unknown names."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NONE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown effect {value!r}, no effect applied")
            return cls.NONE


@dataclass(frozen=True)
class RenderRequest:
    """
    Parameters for one render.

    A request is built per render trigger and consumed once. Shape and effect
    accept either enum members or their string names; unknown names degrade
    to the defaults instead of failing.

    Attributes:
        base_image: Square code raster (encoded bytes or a Pillow image)
        overlay_image: Optional logo raster of any size or aspect ratio
        overlay_area_fraction: Overlay box edge as a fraction of canvas_size
        shape: Clip shape for the overlay
        effect: Post-process applied to the whole canvas
        stroke_color: Foreground RGB, used by the frame effect
        canvas_size: Output edge length in pixels
        ecc: Error-correction level the base raster was encoded with
    """

    base_image: RasterSource
    overlay_image: Optional[RasterSource] = None
    overlay_area_fraction: float = 0.30
    shape: Shape = Shape.CIRCLE
    effect: Effect = Effect.NONE
    stroke_color: Tuple[int, int, int] = (0, 0, 0)
    canvas_size: int = 300
    ecc: str = 'M'

    def __post_init__(self):
        object.__setattr__(self, 'shape', Shape.parse(self.shape))
        object.__setattr__(self, 'effect', Effect.parse(self.effect))
        object.__setattr__(self, 'stroke_color', tuple(int(c) for c in self.stroke_color[:3]))
        object.__setattr__(self, 'ecc', (self.ecc or 'M').upper())

        if self.base_image is None:
            raise ValueError("base_image is required")
        if isinstance(self.canvas_size, bool) or not isinstance(self.canvas_size, int):
            raise ValueError(f"canvas_size must be an int, got {self.canvas_size!r}")
        if not CANVAS_SIZE_MIN <= self.canvas_size <= CANVAS_SIZE_MAX:
            raise ValueError(
                f"canvas_size must be within [{CANVAS_SIZE_MIN}, {CANVAS_SIZE_MAX}], "
                f"got {self.canvas_size}"
            )
        if not OVERLAY_FRACTION_MIN <= self.overlay_area_fraction <= OVERLAY_FRACTION_MAX:
            raise ValueError(
                f"overlay_area_fraction must be within "
                f"[{OVERLAY_FRACTION_MIN}, {OVERLAY_FRACTION_MAX}], got {self.overlay_area_fraction}"
            )
        if self.ecc not in ECC_LEVELS:
            raise ValueError(f"ecc must be one of {ECC_LEVELS}, got {self.ecc!r}")

    @property
    def overlay_box_size(self) -> float:
        """Edge length of the square overlay box in canvas pixels."""
        return self.canvas_size * self.overlay_area_fraction
