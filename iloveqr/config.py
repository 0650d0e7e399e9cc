# -*- coding: utf-8 -*-
"""
Render Settings

Defaults, bounds and presets for render parameters, plus the reader that
turns loosely typed form values into validated settings. Out-of-range or
malformed values fall back to defaults instead of failing, so a bad slider
value never blocks a render.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from PIL import ImageColor

from .models import (
    CANVAS_SIZE_MAX, CANVAS_SIZE_MIN, ECC_LEVELS, Effect, RasterSource,
    RenderRequest, Shape,
)

logger = logging.getLogger(__name__)

DEFAULT_TEXT = 'https://example.com'
DEFAULT_SIZE = 300
DEFAULT_DARK = '#000000'
DEFAULT_LIGHT = '#FFFFFF'
DEFAULT_ECC = 'M'
DEFAULT_LOGO_PERCENT = 30

SIZE_STEP = 50
LOGO_PERCENT_MIN = 10
LOGO_PERCENT_MAX = 50
LOGO_PERCENT_STEP = 5

# Upload limit for overlay images
MAX_OVERLAY_BYTES = 5 * 1024 * 1024

TEMPLATES: Dict[str, Dict[str, str]] = {
    'classic': {'dark': '#000000', 'light': '#FFFFFF', 'effect': 'none'},
    'purple-dream': {'dark': '#7C3AED', 'light': '#F3E8FF', 'effect': 'gradient'},
    'red-alert': {'dark': '#DC2626', 'light': '#FEE2E2', 'effect': 'frame'},
    'nature': {'dark': '#059669', 'light': '#D1FAE5', 'effect': 'dots'},
}


def parse_color(value: Optional[str], default: str) -> Tuple[int, int, int]:
    """Parse a CSS color ('#DC2626', 'red', 'rgb(...)') to RGB, or the default."""
    try:
        return ImageColor.getrgb((value or default).strip())[:3]
    except ValueError:
        logger.warning(f"Invalid color {value!r}, using {default}")
        return ImageColor.getrgb(default)[:3]


def _clamp_step(raw: Any, lo: int, hi: int, step: int, default: int) -> int:
    try:
        value = int(float(raw))
    except (TypeError, ValueError):
        return default
    value = min(max(value, lo), hi)
    return lo + round((value - lo) / step) * step


@dataclass(frozen=True)
class RenderSettings:
    text: str = DEFAULT_TEXT
    size: int = DEFAULT_SIZE
    dark: Tuple[int, int, int] = (0, 0, 0)
    light: Tuple[int, int, int] = (255, 255, 255)
    ecc: str = DEFAULT_ECC
    logo_percent: int = DEFAULT_LOGO_PERCENT
    shape: Shape = Shape.CIRCLE
    effect: Effect = Effect.NONE
    seed: Optional[int] = None

    @property
    def overlay_area_fraction(self) -> float:
        return self.logo_percent / 100

    def with_template(self, name: str) -> 'RenderSettings':
        """Return settings with a preset's colors and effect applied."""
        preset = TEMPLATES.get(name)
        if preset is None:
            logger.warning(f"Unknown template {name!r}, settings unchanged")
            return self
        return replace(
            self,
            dark=parse_color(preset['dark'], DEFAULT_DARK),
            light=parse_color(preset['light'], DEFAULT_LIGHT),
            effect=Effect.parse(preset['effect']),
        )

    def to_request(self, base_image: RasterSource,
                   overlay_image: Optional[RasterSource] = None) -> RenderRequest:
        return RenderRequest(
            base_image=base_image,
            overlay_image=overlay_image,
            overlay_area_fraction=self.overlay_area_fraction,
            shape=self.shape,
            effect=self.effect,
            stroke_color=self.dark,
            canvas_size=self.size,
            ecc=self.ecc,
        )


def read_settings(values: Mapping[str, Any]) -> RenderSettings:
    """
    Build RenderSettings from a mapping of raw values (e.g. request.values).

    Recognised keys: text, size, dark, light, ecc, logo_size, shape, effect,
    template, seed. A template sets colors and effect, but an explicit
    effect value still wins over it.
    """
    text = (values.get('text') or '').strip()
    ecc = (values.get('ecc') or DEFAULT_ECC).strip().upper()
    if ecc not in ECC_LEVELS:
        logger.warning(f"Invalid error correction level {ecc!r}, using {DEFAULT_ECC}")
        ecc = DEFAULT_ECC

    seed = values.get('seed')
    try:
        seed = int(seed) if seed not in (None, '') else None
    except (TypeError, ValueError):
        seed = None

    settings = RenderSettings(
        text=text,
        size=_clamp_step(values.get('size'), CANVAS_SIZE_MIN, CANVAS_SIZE_MAX, SIZE_STEP, DEFAULT_SIZE),
        dark=parse_color(values.get('dark'), DEFAULT_DARK),
        light=parse_color(values.get('light'), DEFAULT_LIGHT),
        ecc=ecc,
        logo_percent=_clamp_step(values.get('logo_size'), LOGO_PERCENT_MIN, LOGO_PERCENT_MAX,
                                 LOGO_PERCENT_STEP, DEFAULT_LOGO_PERCENT),
        shape=Shape.parse(values.get('shape') or Shape.CIRCLE),
        seed=seed,
    )

    template = values.get('template')
    if template:
        settings = settings.with_template(template.strip().lower())
    if values.get('effect'):
        settings = replace(settings, effect=Effect.parse(values.get('effect')))
    return settings
