"""
SIFT descriptor: a 4x4 grid of 8-bin gradient orientation histograms,
sampled in the keypoint's rotated frame and quantized to 128 bytes.
"""

import math

import numpy as np

from .orientation import patch_grid
from .params import DESC_CLIP, DESC_LEN, LAMBDA_DESC, MIN_PIX_DIST, N_HIST, N_ORI


def update_histograms(hist, x, y, contrib, theta_mn, lambda_desc=LAMBDA_DESC):
    """
    Accumulate samples into the N_HIST x N_HIST x N_ORI histogram array.

    Each sample is spread over its nearest spatial and angular bins with a
    triangular kernel in rotated x, rotated y and relative angle.

    Args:
        hist: (N_HIST, N_HIST, N_ORI) float array, updated in place
        x, y: Sample positions in the normalized, rotated patch frame
        contrib: Weighted gradient magnitude of each sample
        theta_mn: Gradient angle of each sample relative to the keypoint
        lambda_desc: Descriptor patch scale factor
    """
    x = np.atleast_1d(np.asarray(x, dtype=np.float64))
    y = np.atleast_1d(np.asarray(y, dtype=np.float64))
    contrib = np.atleast_1d(np.asarray(contrib, dtype=np.float64))
    theta_mn = np.atleast_1d(np.asarray(theta_mn, dtype=np.float64))

    bin_width = 2.0 * lambda_desc / N_HIST
    centers = (np.arange(1, N_HIST + 1) - (1 + N_HIST) / 2.0) * bin_width
    wx = np.clip(1 - np.abs(centers[None, :] - x[:, None]) / bin_width, 0, None)
    wy = np.clip(1 - np.abs(centers[None, :] - y[:, None]) / bin_width, 0, None)

    theta_k = 2 * math.pi * np.arange(N_ORI) / N_ORI
    theta_diff = np.mod(theta_mn[:, None] - theta_k[None, :] + math.pi, 2 * math.pi) - math.pi
    wt = np.clip(1 - N_ORI / (2 * math.pi) * np.abs(theta_diff), 0, None)

    hist += np.einsum('p,pi,pj,pk->ijk', contrib, wx, wy, wt)
    return hist


def clip_histogram(vec, clip=DESC_CLIP):
    """
    Clip every component of ``vec`` at ``clip`` times its L2 norm.

    Returns:
        (clipped vector, norm of the clipped vector)
    """
    vec = np.asarray(vec, dtype=np.float64).ravel()
    norm = np.sqrt(np.sum(vec * vec))
    clipped = np.minimum(vec, clip * norm)
    return clipped, np.sqrt(np.sum(clipped * clipped))


def hists_to_vec(histograms):
    """
    Flatten, normalize and quantize the histograms into a uint8 vector.

    Values are floor(512 * v / norm) clamped to [0, 255]. An empty
    histogram produces an all-zero vector.
    """
    clipped, norm2 = clip_histogram(histograms)
    if norm2 == 0:
        return np.zeros(DESC_LEN, dtype=np.uint8)
    vec = np.floor(512 * clipped / norm2)
    return np.clip(vec, 0, 255).astype(np.uint8)


def compute_keypoint_descriptor(kp, theta, grad_pyramid, lambda_desc=LAMBDA_DESC):
    """
    Compute the descriptor of ``kp`` for the reference orientation ``theta``.

    Sets ``kp.descriptor`` (128 uint8 values) and ``kp.theta``.
    """
    pix_dist = MIN_PIX_DIST * 2 ** kp.octave
    img_grad = grad_pyramid[kp.octave, kp.scale]

    half_size = math.sqrt(2) * lambda_desc * kp.sigma * (N_HIST + 1.0) / N_HIST
    xs, ys, xc, yc = patch_grid(kp, half_size, img_grad.shape[:2])

    cos_t, sin_t = math.cos(theta), math.sin(theta)
    dx = xs * pix_dist - kp.x
    dy = ys * pix_dist - kp.y
    x = (dx * cos_t + dy * sin_t) / kp.sigma
    y = (-dx * sin_t + dy * cos_t) / kp.sigma

    # keep samples inside the rotated description patch
    inside = np.maximum(np.abs(x), np.abs(y)) <= lambda_desc * (N_HIST + 1.0) / N_HIST

    gx = img_grad[yc[inside], xc[inside], 0].astype(np.float64)
    gy = img_grad[yc[inside], xc[inside], 1].astype(np.float64)
    theta_mn = np.mod(np.arctan2(gy, gx) - theta + 4 * math.pi, 2 * math.pi)
    grad_norm = np.sqrt(gx * gx + gy * gy)

    patch_sigma = lambda_desc * kp.sigma
    weight = np.exp(-(dx[inside] ** 2 + dy[inside] ** 2) / (2 * patch_sigma * patch_sigma))

    histograms = np.zeros((N_HIST, N_HIST, N_ORI), dtype=np.float64)
    update_histograms(histograms, x[inside], y[inside], weight * grad_norm, theta_mn,
                      lambda_desc)

    kp.descriptor = hists_to_vec(histograms)
    kp.theta = float(theta)
    return kp.descriptor
