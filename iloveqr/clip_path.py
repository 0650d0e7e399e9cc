# -*- coding: utf-8 -*-
"""
Clip Path Module

This module builds the closed vector contours that confine the overlay image
to a shape in the middle of the code, and rasterizes them into coverage masks.

The path model mirrors a 2D drawing context: a contour starts with a move,
continues with lines, quadratic and cubic Bézier curves or arcs, and ends
with an explicit close. Geometry is kept in canvas units; rasterization is
the only step that touches pixels.

Functions:
    build_clip_path: Build the clip contour for a shape selector and box
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Tuple, Union

from PIL import Image, ImageDraw

from .exceptions import GeometryDegenerate
from .models import Shape

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# Corner radius of the rounded shape, relative to the box width
ROUNDED_CORNER_RATIO = 0.10

_CURVE_STEPS = 24
_SUPERSAMPLE = 4


class MoveTo(NamedTuple):
    x: float
    y: float


class LineTo(NamedTuple):
    x: float
    y: float


class QuadTo(NamedTuple):
    cx: float
    cy: float
    x: float
    y: float


class CubicTo(NamedTuple):
    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float


class Arc(NamedTuple):
    cx: float
    cy: float
    radius: float
    start: float = 0.0
    end: float = 2 * math.pi


class Close(NamedTuple):
    pass


Segment = Union[MoveTo, LineTo, QuadTo, CubicTo, Arc, Close]


@dataclass(frozen=True)
class ClipPath:
    """
    A single closed contour made of path segments.

    Attributes:
        segments: Ordered segments, the last one being Close for a valid contour
    """

    segments: Tuple[Segment, ...]

    @property
    def closed(self) -> bool:
        return bool(self.segments) and isinstance(self.segments[-1], Close)

    def control_points(self) -> Iterator[Point]:
        """
        Yield every point that bounds the contour.

        Bézier curves stay inside the convex hull of their control points and
        an arc stays inside its circle's bounding square, so the bounding box
        of these points encloses the drawn contour.
        """
        for seg in self.segments:
            if isinstance(seg, (MoveTo, LineTo)):
                yield seg.x, seg.y
            elif isinstance(seg, QuadTo):
                yield seg.cx, seg.cy
                yield seg.x, seg.y
            elif isinstance(seg, CubicTo):
                yield seg.c1x, seg.c1y
                yield seg.c2x, seg.c2y
                yield seg.x, seg.y
            elif isinstance(seg, Arc):
                yield seg.cx - seg.radius, seg.cy - seg.radius
                yield seg.cx + seg.radius, seg.cy + seg.radius

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (min_x, min_y, max_x, max_y) enclosing the contour."""
        points = list(self.control_points())
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return min(xs), min(ys), max(xs), max(ys)

    def fits_within(self, width: float, height: float) -> bool:
        min_x, min_y, max_x, max_y = self.bounds()
        return min_x >= 0 and min_y >= 0 and max_x <= width and max_y <= height

    def flatten(self, steps: int = _CURVE_STEPS) -> List[Point]:
        """
        Approximate the contour by a polygon.

        Args:
            steps (int): Line segments used per Bézier curve

        Returns:
            List[Point]: Polygon vertices in drawing order
        """
        points: List[Point] = []
        for seg in self.segments:
            if isinstance(seg, (MoveTo, LineTo)):
                points.append((seg.x, seg.y))
            elif isinstance(seg, QuadTo):
                x0, y0 = points[-1]
                for i in range(1, steps + 1):
                    t = i / steps
                    u = 1 - t
                    points.append((
                        u * u * x0 + 2 * u * t * seg.cx + t * t * seg.x,
                        u * u * y0 + 2 * u * t * seg.cy + t * t * seg.y,
                    ))
            elif isinstance(seg, CubicTo):
                x0, y0 = points[-1]
                for i in range(1, steps + 1):
                    t = i / steps
                    u = 1 - t
                    points.append((
                        u ** 3 * x0 + 3 * u * u * t * seg.c1x + 3 * u * t * t * seg.c2x + t ** 3 * seg.x,
                        u ** 3 * y0 + 3 * u * u * t * seg.c1y + 3 * u * t * t * seg.c2y + t ** 3 * seg.y,
                    ))
            elif isinstance(seg, Arc):
                # Roughly one vertex per two units of circumference
                arc_steps = max(32, int(abs(seg.end - seg.start) * seg.radius / 2))
                for i in range(arc_steps + 1):
                    angle = seg.start + (seg.end - seg.start) * i / arc_steps
                    points.append((
                        seg.cx + seg.radius * math.cos(angle),
                        seg.cy + seg.radius * math.sin(angle),
                    ))
        return points

    def to_mask(self, size: Tuple[int, int], supersample: int = _SUPERSAMPLE) -> Image.Image:
        """
        Rasterize the contour into an anti-aliased coverage mask.

        Args:
            size (Tuple[int, int]): Mask size in pixels (width, height)
            supersample (int): Subpixel grid resolution per axis

        Returns:
            Image.Image: Mode 'L' mask, 255 inside the contour, 0 outside
        """
        width, height = size
        big = Image.new('L', (width * supersample, height * supersample), 0)
        # Pillow samples at integer coordinates, canvas pixels at their centers
        polygon = [(x * supersample - 0.5, y * supersample - 0.5) for x, y in self.flatten()]
        if len(polygon) >= 3:
            ImageDraw.Draw(big).polygon(polygon, fill=255)
        return big.resize((width, height), Image.BOX)


def build_clip_path(shape, box_width: float, box_height: float,
                    center_x: float, center_y: float) -> ClipPath:
    """
    Build the clip contour for a shape centered on (center_x, center_y).

    Args:
        shape (Union[Shape, str]): Shape selector; unknown values fall back to circle
        box_width (float): Width of the bounding box
        box_height (float): Height of the bounding box
        center_x (float): Box center, x coordinate
        center_y (float): Box center, y coordinate

    Returns:
        ClipPath: Closed contour inside the box

    Raises:
        GeometryDegenerate: If the box has zero or negative dimensions

    Example:
        >>> path = build_clip_path('heart', 90, 90, 150, 150)
        >>> path.closed
        True
    """
    if not (box_width > 0 and box_height > 0):
        raise GeometryDegenerate(f"Clip box must be positive, got {box_width}x{box_height}")

    shape = Shape.parse(shape)
    x = center_x - box_width / 2
    y = center_y - box_height / 2

    if shape is Shape.SQUARE:
        segments = [
            MoveTo(x, y),
            LineTo(x + box_width, y),
            LineTo(x + box_width, y + box_height),
            LineTo(x, y + box_height),
        ]
    elif shape is Shape.ROUNDED:
        r = box_width * ROUNDED_CORNER_RATIO
        right = x + box_width
        bottom = y + box_height
        segments = [
            MoveTo(x + r, y),
            LineTo(right - r, y),
            QuadTo(right, y, right, y + r),
            LineTo(right, bottom - r),
            QuadTo(right, bottom, right - r, bottom),
            LineTo(x + r, bottom),
            QuadTo(x, bottom, x, bottom - r),
            LineTo(x, y + r),
            QuadTo(x, y, x + r, y),
        ]
    elif shape is Shape.DIAMOND:
        segments = [
            MoveTo(center_x, y),
            LineTo(x + box_width, center_y),
            LineTo(center_x, y + box_height),
            LineTo(x, center_y),
        ]
    elif shape is Shape.HEART:
        h = box_width / 2
        cx, cy = center_x, center_y
        segments = [
            MoveTo(cx, cy + h * 0.3),
            CubicTo(cx + h * 0.5, cy - h * 0.3, cx + h, cy + h * 0.1, cx, cy + h * 0.7),
            CubicTo(cx - h, cy + h * 0.1, cx - h * 0.5, cy - h * 0.3, cx, cy + h * 0.3),
        ]
    else:
        segments = [Arc(center_x, center_y, box_width / 2)]

    segments.append(Close())
    return ClipPath(tuple(segments))
