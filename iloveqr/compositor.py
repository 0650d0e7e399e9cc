# -*- coding: utf-8 -*-
"""
Compositor Module

This module runs the render pipeline that turns a RenderRequest into a single
flattened raster: base code image, optional clipped overlay, then a
full-canvas effect.

Image decoding is the only I/O-bound work, so the pipeline is an async
coroutine that suspends while the base and overlay rasters decode in a worker
thread. Stages never overlap:

    DECODING_BASE -> DRAWING_BASE -> DECODING_OVERLAY -> COMPOSITING_OVERLAY
        -> APPLYING_EFFECT -> ENCODING -> DONE

Every render allocates its own Canvas, so concurrent renders never share
pixels. There is no cancellation: a render superseded by a newer request
still completes, and callers keep only the latest result. Decoding has no
timeout either; a decode that never returns stalls its render.

Classes:
    RenderStage: Pipeline states
    RenderJob: One in-flight render and its private canvas
    Compositor: Entry point holding the injected random source

Functions:
    decode_raster: Decode bytes into an RGBA Pillow image
    render: Render a request to PNG bytes
    render_image: Render a request to a Pillow image
"""

import asyncio
import logging
from enum import Enum
from io import BytesIO
from typing import Optional, Type

import numpy as np
from PIL import Image, UnidentifiedImageError

from .canvas import Canvas
from .clip_path import build_clip_path
from .effects import apply_effect
from .exceptions import EncodingUnavailable, ImageDecodeFailed
from .models import Effect, RasterSource, RenderRequest

logger = logging.getLogger(__name__)


class RenderStage(Enum):
    PENDING = 'pending'
    DECODING_BASE = 'decoding_base'
    DRAWING_BASE = 'drawing_base'
    DECODING_OVERLAY = 'decoding_overlay'
    COMPOSITING_OVERLAY = 'compositing_overlay'
    APPLYING_EFFECT = 'applying_effect'
    ENCODING = 'encoding'
    DONE = 'done'


def decode_raster(source: RasterSource, error: Type[ImageDecodeFailed] = ImageDecodeFailed) -> Image.Image:
    """
    Decode encoded raster bytes into an RGBA image.

    Args:
        source (RasterSource): Encoded bytes (PNG, JPEG, ...) or a Pillow image
        error (Type[ImageDecodeFailed]): Exception class raised on failure

    Returns:
        Image.Image: Fully loaded RGBA image

    Raises:
        ImageDecodeFailed: If the bytes are empty, corrupt, of an unknown format
            or exceed the decompression bomb pixel limit
    """
    if isinstance(source, Image.Image):
        return source.convert('RGBA')
    if not source:
        raise error("Empty image data")
    try:
        with Image.open(BytesIO(source)) as img:
            img.load()
            return img.convert('RGBA')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as ex:
        raise error(f"Cannot decode image ({len(source)} bytes): {ex}") from ex


class RenderJob:
    """
    A single render with its own canvas.

    Args:
        request (RenderRequest): Parameters of this render
        rng (np.random.Generator): Random source for the dots effect
    """

    def __init__(self, request: RenderRequest, rng: np.random.Generator):
        self.request = request
        self.rng = rng
        self.stage = RenderStage.PENDING
        self.canvas: Optional[Canvas] = None

    def _enter(self, stage: RenderStage):
        logger.debug(f"Render stage {self.stage.value} -> {stage.value}")
        self.stage = stage

    async def compose(self) -> Image.Image:
        """Run every stage up to the effect and return the flattened image."""
        req = self.request
        size = req.canvas_size

        self._enter(RenderStage.DECODING_BASE)
        base = await asyncio.to_thread(decode_raster, req.base_image, EncodingUnavailable)

        self._enter(RenderStage.DRAWING_BASE)
        canvas = Canvas(size)
        self.canvas = canvas
        # Nearest keeps module edges crisp when the base needs rescaling
        canvas.draw_image(base, 0, 0, size, size, resample=Image.NEAREST)

        if req.overlay_image is not None:
            self._enter(RenderStage.DECODING_OVERLAY)
            overlay = await asyncio.to_thread(decode_raster, req.overlay_image)

            self._enter(RenderStage.COMPOSITING_OVERLAY)
            box = req.overlay_box_size
            x = (size - box) / 2
            y = (size - box) / 2
            path = build_clip_path(req.shape, box, box, size / 2, size / 2)
            with canvas.clip(path):
                canvas.draw_image(overlay, x, y, box, box)

        if req.effect is not Effect.NONE:
            self._enter(RenderStage.APPLYING_EFFECT)
            apply_effect(canvas, req.effect, color=req.stroke_color, rng=self.rng)

        return canvas.image

    async def run(self) -> bytes:
        """Run the full pipeline and return PNG bytes."""
        image = await self.compose()

        self._enter(RenderStage.ENCODING)
        buf = BytesIO()
        image.save(buf, format='PNG')

        self.finish()
        return buf.getvalue()

    def finish(self):
        """Mark the render as done and log its completion."""
        self._enter(RenderStage.DONE)
        req = self.request
        logger.info(
            f"Rendered {req.canvas_size}x{req.canvas_size} "
            f"(shape={req.shape.value}, effect={req.effect.value}, "
            f"overlay={req.overlay_image is not None})"
        )


class Compositor:
    """
    Render entry point.

    Args:
        rng (Optional[np.random.Generator]): Random source for the dots
            effect. Pass a seeded generator for reproducible output; by
            default a fresh, OS-seeded generator is used.

    Example:
        >>> compositor = Compositor(rng=np.random.default_rng(7))
        >>> png = compositor.render(request)
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    async def render_async(self, request: RenderRequest) -> bytes:
        return await RenderJob(request, self.rng).run()

    async def render_image_async(self, request: RenderRequest) -> Image.Image:
        job = RenderJob(request, self.rng)
        image = await job.compose()
        job.finish()
        return image

    def render(self, request: RenderRequest) -> bytes:
        """Render synchronously. Must not be called from a running event loop."""
        return asyncio.run(self.render_async(request))

    def render_image(self, request: RenderRequest) -> Image.Image:
        return asyncio.run(self.render_image_async(request))


def render(request: RenderRequest, rng: Optional[np.random.Generator] = None) -> bytes:
    """
    Render a request to PNG bytes.

    Args:
        request (RenderRequest): Render parameters
        rng (Optional[np.random.Generator]): Random source for the dots effect

    Returns:
        bytes: PNG-encoded canvas_size x canvas_size RGBA image

    Raises:
        EncodingUnavailable: If the base raster cannot be decoded
        ImageDecodeFailed: If the overlay image cannot be decoded
    """
    return Compositor(rng).render(request)


def render_image(request: RenderRequest, rng: Optional[np.random.Generator] = None) -> Image.Image:
    """Render a request to an RGBA Pillow image."""
    return Compositor(rng).render_image(request)
