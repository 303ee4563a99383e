"""
Grayscale rendering of flat pixel-intensity rows.

Two encodings are available. ``PixelMode.LINEAR`` maps an intensity in [0,1]
to ``round(255*px)``. ``PixelMode.LEGACY`` reproduces the images written by
earlier versions of the trainer: the intensity is clamped to [0.01, 0.99],
mapped to ``255*px - 255`` (always <= 0), truncated toward zero and wrapped
into an unsigned byte. The legacy mapping lands roughly one step above
``255*px`` and so does not decode back within one quantization step.
"""
import math
import os

import numpy as np
import torch
from PIL import Image

from aenet.config import PixelMode

PIXEL_RANGE = 255


def _to_numpy(x) -> np.ndarray:
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().numpy()
    return np.asarray(x, dtype=np.float64)


def encode(px, mode: PixelMode = PixelMode.LINEAR):
    """Map intensities to bytes. Scalars give an int, arrays a uint8 array."""
    arr = _to_numpy(px)
    if mode is PixelMode.LEGACY:
        wrapped = np.trunc(PIXEL_RANGE*np.clip(arr, 0.01, 0.99) - PIXEL_RANGE).astype(np.int64)
        out = (wrapped & 0xFF).astype(np.uint8)
    else:
        out = np.rint(PIXEL_RANGE*np.clip(arr, 0.0, 1.0)).astype(np.uint8)
    if out.ndim == 0:
        return int(out)
    return out


def decode(byte):
    arr = np.asarray(byte, dtype=np.float64) / PIXEL_RANGE
    if arr.ndim == 0:
        return float(arr)
    return arr


def render_square(x, mode: PixelMode = PixelMode.LINEAR) -> Image.Image:
    """Build a side x side grayscale image from a flat row, filled row-major."""
    row = _to_numpy(x).reshape(-1)
    l = row.shape[0]
    side = math.isqrt(l)
    if side*side != l:
        raise ValueError("Row of length {} is not a square image".format(l))
    pix = encode(row, mode).reshape(side, side)
    return Image.fromarray(pix)


def save_row(x, path: str, mode: PixelMode = PixelMode.LINEAR) -> str:
    img = render_square(x, mode)
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)
    img.save(path, format="JPEG")
    return path
