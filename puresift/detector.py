"""
Scale-space extremum detection and sub-pixel keypoint refinement.
"""

import enum
import logging
import math

import numpy as np
from scipy.ndimage import maximum_filter, minimum_filter

from .image_view import PixelBuffer, round_half_away
from .keypoint import SIFTKeypoint
from .parallel import KeypointCollector
from .params import (C_DOG, C_EDGE, MAX_REFINEMENT_ITERS, MIN_PIX_DIST, N_SPO,
                     SIGMA_MIN)

logger = logging.getLogger(__name__)

# offsets below this keep the extremum at the current sample
MAX_OFFSET = 0.6


class RefinementState(enum.Enum):
    ITERATING = 'iterating'
    ACCEPTED = 'accepted'
    DISCARDED_BOUNDARY = 'discarded_boundary'
    DISCARDED_QUALITY = 'discarded_quality'
    DISCARDED_MAX_ITERATIONS = 'discarded_max_iterations'


def find_extrema_candidates(octave, scale, contrast_thresh=C_DOG):
    """
    Locate discrete extrema of one DoG image.

    A pixel is kept when |value| >= 0.8 * contrast_thresh and it is greater
    or equal (or less or equal) than every sample of its 3x3x3 neighbourhood
    across the previous, current and next scales. Neighbours outside the
    image are read with replicated borders; the outer ring of pixels is
    never reported.

    Args:
        octave: Sequence of DoG images of one octave
        scale: Index of the image to scan, in [1, len(octave) - 2]

    Returns:
        (N x 2) array of (row, col) positions
    """
    img = octave[scale]
    rows, cols = img.shape
    if rows < 3 or cols < 3:
        return np.empty((0, 2), dtype=np.intp)

    stack = np.stack([octave[scale - 1], img, octave[scale + 1]])
    local_max = maximum_filter(stack, size=3, mode='nearest')[1]
    local_min = minimum_filter(stack, size=3, mode='nearest')[1]

    mask = np.abs(img) >= 0.8 * contrast_thresh
    mask &= (img >= local_max) | (img <= local_min)
    mask[0, :] = False
    mask[-1, :] = False
    mask[:, 0] = False
    mask[:, -1] = False
    return np.argwhere(mask)


def fit_quadratic(kp, octave, scale):
    """
    Fit a 3D quadratic to the DoG around the keypoint's discrete location.

    Sets ``kp.extremum_val`` to the interpolated DoG value.

    Returns:
        (offset_s, offset_x, offset_y) of the interpolated extremum; values
        are NaN when the Hessian is singular
    """
    img = PixelBuffer(octave[scale])
    prev = PixelBuffer(octave[scale - 1])
    nxt = PixelBuffer(octave[scale + 1])
    x = kp.i
    y = kp.j

    val = img.get_pixel(y, x)

    # gradient
    g1 = (nxt.get_pixel(y, x) - prev.get_pixel(y, x)) * 0.5
    g2 = (img.get_pixel(y, x + 1) - img.get_pixel(y, x - 1)) * 0.5
    g3 = (img.get_pixel(y + 1, x) - img.get_pixel(y - 1, x)) * 0.5

    # hessian
    h11 = nxt.get_pixel(y, x) + prev.get_pixel(y, x) - 2.0 * val
    h22 = img.get_pixel(y, x + 1) + img.get_pixel(y, x - 1) - 2.0 * val
    h33 = img.get_pixel(y + 1, x) + img.get_pixel(y - 1, x) - 2.0 * val
    h12 = (nxt.get_pixel(y, x + 1) - nxt.get_pixel(y, x - 1)
           - prev.get_pixel(y, x + 1) + prev.get_pixel(y, x - 1)) * 0.25
    h13 = (nxt.get_pixel(y + 1, x) - nxt.get_pixel(y - 1, x)
           - prev.get_pixel(y + 1, x) + prev.get_pixel(y - 1, x)) * 0.25
    h23 = (img.get_pixel(y + 1, x + 1) - img.get_pixel(y - 1, x + 1)
           - img.get_pixel(y + 1, x - 1) + img.get_pixel(y - 1, x - 1)) * 0.25

    det = (h11 * h22 * h33 - h11 * h23 * h23 - h12 * h12 * h33
           + 2 * h12 * h13 * h23 - h13 * h13 * h22)
    if det == 0.0:
        kp.extremum_val = float('nan')
        return float('nan'), float('nan'), float('nan')

    # cofactor inverse of the symmetric hessian
    hinv11 = (h22 * h33 - h23 * h23) / det
    hinv12 = (h13 * h23 - h12 * h33) / det
    hinv13 = (h12 * h23 - h13 * h22) / det
    hinv22 = (h11 * h33 - h13 * h13) / det
    hinv23 = (h12 * h13 - h11 * h23) / det
    hinv33 = (h11 * h22 - h12 * h12) / det

    offset_s = -hinv11 * g1 - hinv12 * g2 - hinv13 * g3
    offset_x = -hinv12 * g1 - hinv22 * g2 - hinv23 * g3
    offset_y = -hinv13 * g1 - hinv23 * g2 - hinv33 * g3

    kp.extremum_val = val + 0.5 * (g1 * offset_s + g2 * offset_x + g3 * offset_y)
    return offset_s, offset_x, offset_y


def point_is_on_edge(kp, octave, edge_thresh=C_EDGE):
    """
    Edge test on the 2D spatial Hessian at the keypoint's current sample.

    Returns True when tr(H)^2 / det(H) > (r + 1)^2 / r. A negative
    determinant gives a negative ratio and passes; a zero determinant
    counts as an edge.
    """
    img = PixelBuffer(octave[kp.scale])
    x = kp.i
    y = kp.j
    val = img.get_pixel(y, x)

    h11 = img.get_pixel(y, x + 1) + img.get_pixel(y, x - 1) - 2 * val
    h22 = img.get_pixel(y + 1, x) + img.get_pixel(y - 1, x) - 2 * val
    h12 = (img.get_pixel(y + 1, x + 1) - img.get_pixel(y - 1, x + 1)
           - img.get_pixel(y + 1, x - 1) + img.get_pixel(y - 1, x - 1)) * 0.25

    det_hessian = h11 * h22 - h12 * h12
    if det_hessian == 0:
        return True
    tr_hessian = h11 + h22
    edgeness = tr_hessian * tr_hessian / det_hessian
    return edgeness > (edge_thresh + 1) ** 2 / edge_thresh


def find_input_img_coords(kp, offset_s, offset_x, offset_y, sigma_min=SIGMA_MIN,
                          min_pix_dist=MIN_PIX_DIST, scales_per_octave=N_SPO):
    """Convert the refined sample position to input image coordinates."""
    kp.sigma = 2 ** kp.octave * sigma_min * 2 ** ((offset_s + kp.scale) / scales_per_octave)
    kp.x = min_pix_dist * 2 ** kp.octave * (offset_x + kp.i)
    kp.y = min_pix_dist * 2 ** kp.octave * (offset_y + kp.j)


def refine_or_discard_keypoint(kp, octave, contrast_thresh=C_DOG, edge_thresh=C_EDGE,
                               sigma_min=SIGMA_MIN, scales_per_octave=N_SPO):
    """
    Iteratively localize a candidate extremum with Newton steps.

    The keypoint is updated in place. It is accepted once the offset from
    the current sample is below 0.6 in every dimension, its interpolated
    contrast exceeds ``contrast_thresh`` and it is not on an edge. Otherwise
    the sample is moved by the rounded offset and the fit is repeated, at
    most MAX_REFINEMENT_ITERS times.

    Returns:
        Final RefinementState; only ACCEPTED keypoints are valid
    """
    state = RefinementState.ITERATING
    iteration = 0
    while state is RefinementState.ITERATING:
        if iteration == MAX_REFINEMENT_ITERS:
            state = RefinementState.DISCARDED_MAX_ITERATIONS
            break
        iteration += 1

        offset_s, offset_x, offset_y = fit_quadratic(kp, octave, kp.scale)
        if not (math.isfinite(offset_s) and math.isfinite(offset_x)
                and math.isfinite(offset_y)):
            state = RefinementState.DISCARDED_QUALITY
            break

        max_offset = max(abs(offset_s), abs(offset_x), abs(offset_y))
        if max_offset < MAX_OFFSET:
            if abs(kp.extremum_val) > contrast_thresh and \
                    not point_is_on_edge(kp, octave, edge_thresh):
                find_input_img_coords(kp, offset_s, offset_x, offset_y, sigma_min,
                                      MIN_PIX_DIST, scales_per_octave)
                state = RefinementState.ACCEPTED
                break

        step_s = round_half_away(offset_s)
        step_x = round_half_away(offset_x)
        step_y = round_half_away(offset_y)
        if step_s == 0 and step_x == 0 and step_y == 0:
            # the fit would repeat at the same sample
            state = RefinementState.DISCARDED_QUALITY
            break
        kp.scale += step_s
        kp.i += step_x
        kp.j += step_y

        if kp.scale >= len(octave) - 1 or kp.scale < 1:
            state = RefinementState.DISCARDED_BOUNDARY
    return state


def find_keypoints(dog_pyramid, contrast_thresh=C_DOG, edge_thresh=C_EDGE,
                   sigma_min=SIGMA_MIN, scales_per_octave=N_SPO, executor=None):
    """
    Detect and refine keypoints in every octave of a DoG pyramid.

    Interior DoG images of each octave are scanned in parallel; accepted
    keypoints are gathered in a collector owned by this call.

    Returns:
        List of refined SIFTKeypoint (unordered, no orientation yet)
    """
    collector = KeypointCollector()

    for i in range(dog_pyramid.num_octaves):
        octave = dog_pyramid.octave(i)
        scales = range(1, dog_pyramid.imgs_per_octave - 1)

        def worker(idx, i=i, octave=octave, scales=scales):
            j = scales[idx]
            candidates = find_extrema_candidates(octave, j, contrast_thresh)
            accepted = 0
            for y, x in candidates:
                kp = SIFTKeypoint(x, y, i, j)
                state = refine_or_discard_keypoint(kp, octave, contrast_thresh, edge_thresh,
                                                   sigma_min, scales_per_octave)
                if state is RefinementState.ACCEPTED:
                    collector.append(kp)
                    accepted += 1
            logger.debug(f"octave {i} scale {j}: {len(candidates)} extrema, "
                         f"{accepted} keypoints")

        if executor is None:
            for idx in range(len(scales)):
                worker(idx)
        else:
            executor.parallel_for(len(scales), worker)

    return collector.snapshot()
