"""
Scale-space pyramids: Gaussian, Difference-of-Gaussians and gradients.

A pyramid is a list of octaves, each a list of images. Octave i + 1 has
half the resolution of octave i. Scalar pyramids (Gaussian, DoG) hold 2D
images; gradient pyramids hold [rows, cols, 2] images with (gx, gy).
"""

import logging
import math

import numpy as np
from scipy.ndimage import correlate1d

from .errors import InputTooSmallError
from .image_view import resize_bilinear, resize_nearest
from .params import MIN_PIX_DIST, N_OCT, N_SPO, SIGMA_MIN

logger = logging.getLogger(__name__)


class Pyramid:
    """Common octave/scale indexing for scale-space pyramids."""

    kind = None

    def __init__(self, octaves):
        if len(octaves) == 0:
            raise ValueError("A pyramid needs at least one octave")
        imgs_per_octave = len(octaves[0])
        for octave in octaves:
            if len(octave) != imgs_per_octave:
                raise ValueError("Every octave must hold the same number of images")
            for img in octave:
                self._check_image(img)
                img.flags.writeable = False
        self.octaves = [list(octave) for octave in octaves]
        self.num_octaves = len(octaves)
        self.imgs_per_octave = imgs_per_octave

    def _check_image(self, img):
        raise NotImplementedError

    def octave(self, i):
        return self.octaves[i]

    def shape(self, octave):
        """(rows, cols) of the images in ``octave``."""
        return self.octaves[octave][0].shape[:2]

    def __getitem__(self, key):
        if isinstance(key, tuple):
            octave, scale = key
            return self.octaves[octave][scale]
        return self.octaves[key]

    def __len__(self):
        return self.num_octaves

    def __repr__(self):
        shapes = [self.shape(o) for o in range(self.num_octaves)]
        return (f"{type(self).__name__}(num_octaves={self.num_octaves}, "
                f"imgs_per_octave={self.imgs_per_octave}, shapes={shapes})")


class ScalarPyramid(Pyramid):
    """Pyramid of single-channel images (Gaussian or DoG)."""

    kind = 'scalar'

    def _check_image(self, img):
        if img.ndim != 2:
            raise ValueError(f"Scalar pyramid images must be 2D, got shape {img.shape}")


class GradientPyramid(Pyramid):
    """Pyramid of 2-channel (gx, gy) gradient images."""

    kind = 'gradient'

    def _check_image(self, img):
        if img.ndim != 3 or img.shape[2] != 2:
            raise ValueError(
                f"Gradient pyramid images must be [rows, cols, 2], got shape {img.shape}"
            )


def _parallel_for(executor, n, fn):
    if executor is None:
        for i in range(n):
            fn(i)
    else:
        executor.parallel_for(n, fn)


def gaussian_kernel(sigma):
    """
    1D Gaussian kernel of odd length ceil(6 * sigma), normalized to sum 1.
    """
    size = int(math.ceil(6 * sigma))
    if size % 2 == 0:
        size += 1
    center = size // 2
    k = np.arange(-center, center + 1, dtype=np.float64)
    kernel = np.exp(-(k * k) / (2 * sigma * sigma))
    kernel /= kernel.sum()
    return kernel.astype(np.float32)


def gaussian_blur(image, sigma):
    """
    Separable Gaussian blur, columns first then rows, with replicated borders.
    """
    kernel = gaussian_kernel(sigma)
    tmp = correlate1d(np.asarray(image, dtype=np.float32), kernel, axis=0, mode='nearest')
    return correlate1d(tmp, kernel, axis=1, mode='nearest')


def sigma_increments(sigma_min=SIGMA_MIN, scales_per_octave=N_SPO):
    """
    Blur applied to produce each image of an octave from the previous one.

    Index 0 holds the base sigma itself; index idx > 0 holds
    sqrt((k * sigma_prev)^2 - sigma_prev^2) with
    sigma_prev = base_sigma * k^(idx - 1).
    """
    base_sigma = sigma_min / MIN_PIX_DIST
    imgs_per_octave = scales_per_octave + 3
    k = 2.0 ** (1.0 / scales_per_octave)

    sigmas = [base_sigma]
    for idx in range(1, imgs_per_octave):
        sigma_prev = base_sigma * k ** (idx - 1)
        sigma_total = k * sigma_prev
        sigmas.append(math.sqrt(sigma_total * sigma_total - sigma_prev * sigma_prev))
    return sigmas


def generate_gaussian_pyramid(image, sigma_min=SIGMA_MIN, num_octaves=N_OCT,
                              scales_per_octave=N_SPO):
    """
    Build the Gaussian scale space of a grayscale image in [0, 1].

    Args:
        image: 2D float image
        sigma_min: Blur level of the first image in the pyramid
        num_octaves: Number of octaves to build
        scales_per_octave: Number of scales sampled per octave

    Returns:
        ScalarPyramid with scales_per_octave + 3 images per octave

    Raises:
        InputTooSmallError: If an octave would be smaller than one pixel
    """
    image = np.asarray(image, dtype=np.float32)
    if image.ndim != 2:
        raise ValueError(f"Expected a 2D grayscale image, got shape {image.shape}")
    rows, cols = image.shape
    if rows < 1 or cols < 1:
        raise InputTooSmallError(image.shape, num_octaves)

    # the upsampled input is assumed to carry a blur of 1.0 already
    base_sigma = sigma_min / MIN_PIX_DIST
    base_img = resize_bilinear(image, rows * 2, cols * 2)
    sigma_diff = math.sqrt(base_sigma * base_sigma - 1.0)
    base_img = gaussian_blur(base_img, sigma_diff)

    imgs_per_octave = scales_per_octave + 3
    sigma_vals = sigma_increments(sigma_min, scales_per_octave)

    octaves = []
    for i in range(num_octaves):
        octave = [base_img]
        for j in range(1, imgs_per_octave):
            octave.append(gaussian_blur(octave[j - 1], sigma_vals[j]))
        octaves.append(octave)

        if i + 1 == num_octaves:
            break
        # next octave starts from the image with twice the base sigma
        next_base = octave[imgs_per_octave - 3]
        next_rows, next_cols = next_base.shape[0] // 2, next_base.shape[1] // 2
        if next_rows < 1 or next_cols < 1:
            raise InputTooSmallError(image.shape, num_octaves, 2 ** (num_octaves - 2))
        base_img = resize_nearest(next_base, next_rows, next_cols)

    logger.debug(f"Gaussian pyramid: {num_octaves} octaves x {imgs_per_octave} images, "
                 f"base {octaves[0][0].shape}")
    return ScalarPyramid(octaves)


def generate_dog_pyramid(img_pyramid, executor=None):
    """
    Difference of consecutive Gaussian images, octaves processed in parallel.

    Returns:
        ScalarPyramid with one image fewer per octave than the input
    """
    octaves = [None] * img_pyramid.num_octaves

    def worker(i):
        gauss = img_pyramid.octave(i)
        octaves[i] = [gauss[j] - gauss[j - 1] for j in range(1, img_pyramid.imgs_per_octave)]

    _parallel_for(executor, img_pyramid.num_octaves, worker)
    return ScalarPyramid(octaves)


def _image_gradient(img):
    grad = np.zeros(img.shape + (2,), dtype=np.float32)
    # 1-pixel border stays zero
    grad[1:-1, 1:-1, 0] = (img[1:-1, 2:] - img[1:-1, :-2]) * 0.5
    grad[1:-1, 1:-1, 1] = (img[2:, 1:-1] - img[:-2, 1:-1]) * 0.5
    return grad


def generate_gradient_pyramid(pyramid, executor=None):
    """
    Central-difference (gx, gy) gradients of every image in ``pyramid``.

    Returns:
        GradientPyramid with the same layout as the input
    """
    octaves = []
    for i in range(pyramid.num_octaves):
        grads = [None] * pyramid.imgs_per_octave
        images = pyramid.octave(i)

        def worker(j, images=images, grads=grads):
            grads[j] = _image_gradient(images[j])

        _parallel_for(executor, pyramid.imgs_per_octave, worker)
        octaves.append(grads)
    return GradientPyramid(octaves)
