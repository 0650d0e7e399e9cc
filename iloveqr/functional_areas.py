# -*- coding: utf-8 -*-
"""
QR Code Functional Areas Module

This module locates the functional patterns of a QR symbol (ISO/IEC 18004)
and estimates how much of the symbol a centered overlay hides. The
compositor never consults it: placement advice is for the caller to show.

Functions:
    compute_alignment_centers: Alignment pattern center coordinates
    build_function_mask: Zone label per module
    assess_overlay: Coverage report for a centered overlay box
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import segno

from .qr_generator import DEFAULT_BORDER

logger = logging.getLogger(__name__)

# Zone labels used by build_function_mask
DATA = 0
FINDER = 1
SEPARATOR = 2
TIMING = 3
ALIGNMENT = 4
FORMAT = 5
VERSION = 6

ZONE_NAMES = {
    DATA: 'data',
    FINDER: 'finder',
    SEPARATOR: 'separator',
    TIMING: 'timing',
    ALIGNMENT: 'alignment',
    FORMAT: 'format',
    VERSION: 'version',
}

# Nominal share of codewords each level can restore
ECC_RECOVERY = {'L': 0.07, 'M': 0.15, 'Q': 0.25, 'H': 0.30}


def compute_alignment_centers(version: int) -> List[int]:
    """
    Row/column coordinates of alignment pattern centers.

    Version 1 has none. Larger versions space the patterns evenly back from
    size - 7 with an even step, which reproduces the standard's table
    (version 32 being its one irregular row).

    Example:
        >>> compute_alignment_centers(7)
        [6, 22, 38]
    """
    if version == 1:
        return []

    size = 17 + version * 4
    count = version // 7 + 2
    last = size - 7
    if count == 2:
        return [6, last]

    step = 26 if version == 32 else -(-(size - 13) // (count * 2 - 2)) * 2
    return [6] + [last - i * step for i in range(count - 2, -1, -1)]


def build_function_mask(size: int, version: int) -> np.ndarray:
    """
    Label every module of a symbol with its zone.

    Args:
        size (int): Symbol edge in modules (21 for version 1)
        version (int): Symbol version, 1-40

    Returns:
        np.ndarray: (size, size) int8 array of zone labels (DATA, FINDER, ...)
    """
    zones = np.full((size, size), DATA, dtype=np.int8)

    for r0, c0 in ((0, 0), (0, size - 7), (size - 7, 0)):
        rs, re = max(r0 - 1, 0), min(r0 + 8, size)
        cs, ce = max(c0 - 1, 0), min(c0 + 8, size)
        zones[rs:re, cs:ce] = SEPARATOR
        zones[r0:r0 + 7, c0:c0 + 7] = FINDER

    timing = zones[6, :] == DATA
    zones[6, timing] = TIMING
    timing = zones[:, 6] == DATA
    zones[timing, 6] = TIMING

    centers = compute_alignment_centers(version)
    for cy in centers:
        for cx in centers:
            # Skip the three positions that collide with finder patterns
            if (cy <= 6 and cx <= 6) or (cy <= 6 and cx >= size - 7) or (cy >= size - 7 and cx <= 6):
                continue
            zones[cy - 2:cy + 3, cx - 2:cx + 3] = ALIGNMENT

    # Format information around the top-left finder and beside the other two
    for i in range(9):
        if zones[8, i] in (DATA, SEPARATOR):
            zones[8, i] = FORMAT
        if zones[i, 8] in (DATA, SEPARATOR):
            zones[i, 8] = FORMAT
    zones[8, size - 8:][zones[8, size - 8:] == DATA] = FORMAT
    zones[size - 8:, 8][zones[size - 8:, 8] == DATA] = FORMAT

    if version >= 7:
        zones[0:6, size - 11:size - 8] = VERSION
        zones[size - 11:size - 8, 0:6] = VERSION

    return zones


@dataclass
class OverlayAssessment:
    """
    How a centered overlay box sits on a QR symbol.

    Attributes:
        version: Symbol version
        ecc: Error correction level
        covered: Modules hidden by the box, per zone name
        data_modules: Total data/ECC modules in the symbol
        covered_ratio: Share of data/ECC modules hidden
        recovery: Nominal recovery capacity of the ECC level
        warnings: Human readable advisories, empty when placement looks safe
    """

    version: int
    ecc: str
    covered: Dict[str, int]
    data_modules: int
    covered_ratio: float
    recovery: float
    warnings: List[str] = field(default_factory=list)

    @property
    def covers_finder(self) -> bool:
        return self.covered.get('finder', 0) > 0

    @property
    def safe(self) -> bool:
        return not self.warnings


def assess_overlay(qr: segno.QRCode, canvas_size: int, overlay_area_fraction: float,
                   border: int = DEFAULT_BORDER) -> OverlayAssessment:
    """
    Estimate which modules a centered square overlay hides.

    A module counts as hidden when its center falls inside the overlay box.
    The box is measured in canvas pixels and mapped onto the symbol including
    its quiet zone, as drawn by rasterize_qr.

    Args:
        qr (segno.QRCode): Symbol the base raster was rendered from
        canvas_size (int): Canvas edge length in pixels
        overlay_area_fraction (float): Overlay edge as a fraction of the canvas
        border (int): Quiet zone in modules used when rasterizing

    Returns:
        OverlayAssessment: Coverage numbers and advisories

    Example:
        >>> report = assess_overlay(segno.make('hello', error='h'), 300, 0.3)
        >>> report.warnings
        []
    """
    if not isinstance(qr.version, int):
        raise ValueError(f"Micro QR symbols are not supported: {qr.version}")

    size = len(qr.matrix)
    zones = build_function_mask(size, qr.version)
    level = (qr.error or 'M').upper()

    pitch = canvas_size / (size + 2 * border)
    box = canvas_size * overlay_area_fraction
    lo = (canvas_size - box) / 2
    hi = lo + box
    centers = (np.arange(size) + border + 0.5) * pitch
    hidden_axis = (centers >= lo) & (centers <= hi)
    hidden = hidden_axis[:, None] & hidden_axis[None, :]

    covered = {
        ZONE_NAMES[label]: int(np.count_nonzero(hidden & (zones == label)))
        for label in ZONE_NAMES
    }
    data_modules = int(np.count_nonzero(zones == DATA))
    ratio = covered['data'] / data_modules if data_modules else 0.0
    recovery = ECC_RECOVERY.get(level, 0.0)

    warnings = []
    if covered['finder']:
        warnings.append("Overlay covers a finder pattern; scanners may not locate the code")
    if covered['format'] or covered['version'] or covered['timing']:
        warnings.append("Overlay covers format, version or timing modules")
    if ratio > recovery:
        warnings.append(
            f"Overlay hides {ratio:.0%} of the data modules but level {level} "
            f"recovers about {recovery:.0%}; raise the error correction level or shrink the overlay"
        )

    for message in warnings:
        logger.warning(message)

    return OverlayAssessment(
        version=qr.version,
        ecc=level,
        covered=covered,
        data_modules=data_modules,
        covered_ratio=ratio,
        recovery=recovery,
        warnings=warnings,
    )
