from io import BytesIO

import numpy as np
from PIL import Image


def png_bytes(image: Image.Image) -> bytes:
    buf = BytesIO()
    image.save(buf, format='PNG')
    return buf.getvalue()


def solid_png(size, color) -> bytes:
    return png_bytes(Image.new('RGBA', size, color))


def to_array(data) -> np.ndarray:
    """Decode PNG bytes (or take an image) into an (H, W, 4) uint8 array."""
    if isinstance(data, Image.Image):
        return np.asarray(data.convert('RGBA'))
    return np.asarray(Image.open(BytesIO(data)).convert('RGBA'))


def distance_from_center(size: int) -> np.ndarray:
    """Distance of each pixel center from the canvas center."""
    y, x = np.mgrid[0:size, 0:size].astype(np.float64) + 0.5
    return np.hypot(x - size / 2, y - size / 2)
