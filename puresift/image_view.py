"""
Image view helpers: a clamped-access pixel buffer and the resampling
primitives used to build the scale space.
"""

import math

import numpy as np


def clamp_index(i, n):
    """Clamp index ``i`` into ``[0, n - 1]`` (replicate-border policy)."""
    if i < 0:
        return 0
    if i >= n:
        return n - 1
    return i


class PixelBuffer:
    """
    Contiguous row-major float image of shape [rows, cols] or
    [rows, cols, channels]. Non-float input is converted to float32.

    Reads outside the image are clamped to the nearest edge pixel instead
    of failing.
    """

    def __init__(self, data):
        data = np.ascontiguousarray(data)
        if not np.issubdtype(data.dtype, np.floating):
            data = data.astype(np.float32)
        if data.ndim not in (2, 3):
            raise ValueError(f"Expected a 2D or 3D array, got shape {data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"Image must have at least one row and column, got {data.shape}")
        self.data = data

    @property
    def shape(self):
        return self.data.shape

    @property
    def rows(self):
        return self.data.shape[0]

    @property
    def cols(self):
        return self.data.shape[1]

    @property
    def channels(self):
        return 1 if self.data.ndim == 2 else self.data.shape[2]

    def get_pixel(self, row, col, channel=0):
        row = clamp_index(row, self.rows)
        col = clamp_index(col, self.cols)
        if self.data.ndim == 2:
            return float(self.data[row, col])
        return float(self.data[row, col, channel])

    def __repr__(self):
        return f"PixelBuffer(shape={self.shape})"


def _source_coords(out_size, in_size):
    # destination pixel d samples source coordinate d * in / out
    return np.arange(out_size, dtype=np.float64) * (in_size / out_size)


def resize_bilinear(image, rows, cols):
    """
    Resize a 2D image with bilinear interpolation.

    Args:
        image: 2D array
        rows: Output height
        cols: Output width

    Returns:
        Resized float32 image
    """
    image = np.asarray(image, dtype=np.float32)
    h, w = image.shape

    ys = np.minimum(_source_coords(rows, h), h - 1)
    xs = np.minimum(_source_coords(cols, w), w - 1)

    y0 = np.floor(ys).astype(np.intp)
    x0 = np.floor(xs).astype(np.intp)
    y1 = np.minimum(y0 + 1, h - 1)
    x1 = np.minimum(x0 + 1, w - 1)
    wy = (ys - y0)[:, None]
    wx = (xs - x0)[None, :]

    top = image[y0][:, x0] * (1 - wx) + image[y0][:, x1] * wx
    bottom = image[y1][:, x0] * (1 - wx) + image[y1][:, x1] * wx
    return (top * (1 - wy) + bottom * wy).astype(np.float32)


def resize_nearest(image, rows, cols):
    """Resize a 2D image with nearest-neighbour sampling."""
    image = np.asarray(image, dtype=np.float32)
    h, w = image.shape
    ys = np.minimum(np.floor(_source_coords(rows, h)).astype(np.intp), h - 1)
    xs = np.minimum(np.floor(_source_coords(cols, w)).astype(np.intp), w - 1)
    return np.ascontiguousarray(image[ys][:, xs])


def to_grayscale(image):
    """
    Convert an image to a single float32 channel.

    RGB input uses 0.299 R + 0.587 G + 0.114 B; 2D input is returned as
    float32 unchanged.
    """
    image = np.asarray(image)
    if image.ndim == 2:
        return image.astype(np.float32)
    if image.ndim == 3 and image.shape[2] == 3:
        weights = np.array([0.299, 0.587, 0.114], dtype=np.float32)
        return (image.astype(np.float32) * weights).sum(axis=2)
    raise ValueError(
        f"Expected a grayscale (H x W) or RGB (H x W x 3) image, got shape {image.shape}"
    )


def round_half_away(v):
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(v) + 0.5), v))
