"""
Reference orientation assignment for refined keypoints.
"""

import math

import numpy as np

from .image_view import round_half_away
from .params import (LAMBDA_DESC, LAMBDA_ORI, MIN_PIX_DIST, N_BINS,
                     ORI_SMOOTHING_PASSES, ORI_THRESHOLD)


def smooth_histogram(hist, passes=ORI_SMOOTHING_PASSES):
    """Convolve a circular histogram ``passes`` times with a 3-tap box filter."""
    hist = np.asarray(hist, dtype=np.float64)
    for _ in range(passes):
        hist = (np.roll(hist, 1) + hist + np.roll(hist, -1)) / 3.0
    return hist


def patch_grid(kp, radius, shape):
    """
    Pixel grid of the square patch of half-size ``radius`` around ``kp``.

    Returns:
        (xs, ys, xs_clamped, ys_clamped) 2D integer arrays in the keypoint
        octave's pixel grid; the clamped variants are safe for indexing
    """
    pix_dist = MIN_PIX_DIST * 2 ** kp.octave
    x_start = round_half_away((kp.x - radius) / pix_dist)
    x_end = round_half_away((kp.x + radius) / pix_dist)
    y_start = round_half_away((kp.y - radius) / pix_dist)
    y_end = round_half_away((kp.y + radius) / pix_dist)

    xs, ys = np.meshgrid(np.arange(x_start, x_end + 1), np.arange(y_start, y_end + 1))
    rows, cols = shape
    return xs, ys, np.clip(xs, 0, cols - 1), np.clip(ys, 0, rows - 1)


def orientation_histogram(kp, grad_pyramid, lambda_ori=LAMBDA_ORI):
    """
    Raw 36-bin histogram of gradient orientations around ``kp``.

    Each sample contributes its gradient magnitude weighted by a Gaussian of
    standard deviation lambda_ori * sigma centered on the keypoint.
    """
    pix_dist = MIN_PIX_DIST * 2 ** kp.octave
    img_grad = grad_pyramid[kp.octave, kp.scale]

    patch_sigma = lambda_ori * kp.sigma
    patch_radius = 3 * patch_sigma
    xs, ys, xc, yc = patch_grid(kp, patch_radius, img_grad.shape[:2])

    gx = img_grad[yc, xc, 0].astype(np.float64)
    gy = img_grad[yc, xc, 1].astype(np.float64)
    grad_norm = np.sqrt(gx * gx + gy * gy)
    weight = np.exp(-((xs * pix_dist - kp.x) ** 2 + (ys * pix_dist - kp.y) ** 2)
                    / (2 * patch_sigma * patch_sigma))
    theta = np.mod(np.arctan2(gy, gx) + 2 * math.pi, 2 * math.pi)
    bins = np.floor(N_BINS / (2 * math.pi) * theta + 0.5).astype(np.intp) % N_BINS

    return np.bincount(bins.ravel(), weights=(weight * grad_norm).ravel(), minlength=N_BINS)


def find_keypoint_orientations(kp, grad_pyramid, lambda_ori=LAMBDA_ORI,
                               lambda_desc=LAMBDA_DESC):
    """
    Dominant gradient orientations of a keypoint.

    Keypoints whose descriptor patch would leave the image are discarded by
    returning an empty list.

    Returns:
        List of angles in radians, in [0, 2*pi)
    """
    pix_dist = MIN_PIX_DIST * 2 ** kp.octave
    rows, cols = grad_pyramid.shape(kp.octave)

    min_dist_from_border = min(kp.x, kp.y, pix_dist * cols - kp.x, pix_dist * rows - kp.y)
    if min_dist_from_border <= math.sqrt(2) * lambda_desc * kp.sigma:
        return []

    hist = smooth_histogram(orientation_histogram(kp, grad_pyramid, lambda_ori))

    ori_max = hist.max()
    if ori_max <= 0:
        return []

    orientations = []
    for j in range(N_BINS):
        if hist[j] < ORI_THRESHOLD * ori_max:
            continue
        prev = hist[(j - 1) % N_BINS]
        nxt = hist[(j + 1) % N_BINS]
        if prev >= hist[j] or nxt >= hist[j]:
            continue
        # parabolic interpolation of the peak
        theta = 2 * math.pi * j / N_BINS \
            + math.pi / N_BINS * (prev - nxt) / (prev - 2 * hist[j] + nxt)
        theta %= 2 * math.pi
        # a tiny negative angle wraps to exactly 2*pi in floating point
        orientations.append(0.0 if theta >= 2 * math.pi else float(theta))
    return orientations
