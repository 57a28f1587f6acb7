"""Shared synthetic images for the puresift tests."""

import numpy as np
import pytest


def gaussian_blob(shape, cx, cy, sx, sy=None, angle=0.0, amplitude=255.0):
    """Elliptical Gaussian blob centered at (cx, cy) in pixel coordinates."""
    sy = sx if sy is None else sy
    yy, xx = np.mgrid[0:shape[0], 0:shape[1]].astype(np.float64)
    dx, dy = xx - cx, yy - cy
    u = dx * np.cos(angle) + dy * np.sin(angle)
    v = -dx * np.sin(angle) + dy * np.cos(angle)
    return amplitude * np.exp(-(u * u / (2 * sx * sx) + v * v / (2 * sy * sy)))


def make_scene(size=161):
    """A few anisotropic blobs away from the border, values in [0, 255]."""
    shape = (size, size)
    img = np.full(shape, 20.0)
    img += gaussian_blob(shape, 62, 70, 5.0, 2.5, 0.5, 200.0)
    img += gaussian_blob(shape, 100, 88, 3.0, 6.0, -0.3, 180.0)
    img += gaussian_blob(shape, 78, 108, 2.5, 2.5, 0.0, 160.0)
    img -= gaussian_blob(shape, 104, 55, 4.0, 2.0, 1.1, 15.0)
    img += gaussian_blob(shape, 55, 100, 2.0, 3.5, 0.9, 120.0)
    return np.clip(img, 0, 255).astype(np.float32)


@pytest.fixture(scope="session")
def scene_image():
    return make_scene()


# off-grid center avoids exact ties in the orientation histogram
BLOB_CENTER = (128.25, 127.75)


@pytest.fixture(scope="session")
def blob_image():
    """Factory for a 256x256 image holding one bright blob of sigma s0."""
    def make(s0):
        return gaussian_blob((256, 256), BLOB_CENTER[0], BLOB_CENTER[1], s0).astype(np.float32)
    return make
