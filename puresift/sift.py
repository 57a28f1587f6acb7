"""
Pure SIFT (Scale-Invariant Feature Transform) implementation
using NumPy and SciPy - no OpenCV dependencies.
"""

import logging

import numpy as np

from .descriptor import compute_keypoint_descriptor
from .detector import find_keypoints
from .errors import InputTooSmallError
from .image_view import to_grayscale
from .keypoint import keypoints_to_arrays
from .log_utils import log_phase
from .orientation import find_keypoint_orientations
from .parallel import KeypointCollector, ParallelExecutor
from .params import (C_DOG, C_EDGE, DESC_LEN, LAMBDA_DESC, LAMBDA_ORI, N_OCT,
                     N_SPO, SIGMA_MIN, SiftParams)
from .pyramid import (generate_dog_pyramid, generate_gaussian_pyramid,
                      generate_gradient_pyramid)

logger = logging.getLogger(__name__)


def describe_keypoints(template_keypoints, grad_pyramid, lambda_ori=LAMBDA_ORI,
                       lambda_desc=LAMBDA_DESC, executor=None):
    """
    Assign orientations and compute descriptors for refined keypoints.

    Every dominant orientation of a template keypoint yields its own
    keypoint with its own descriptor; templates too close to the image
    border yield none.

    Returns:
        List of described SIFTKeypoint (unordered)
    """
    collector = KeypointCollector()

    def worker(i):
        kp_tmp = template_keypoints[i]
        described = []
        for theta in find_keypoint_orientations(kp_tmp, grad_pyramid, lambda_ori, lambda_desc):
            kp = kp_tmp.copy()
            compute_keypoint_descriptor(kp, theta, grad_pyramid, lambda_desc)
            described.append(kp)
        if described:
            collector.extend(described)

    if executor is None:
        for i in range(len(template_keypoints)):
            worker(i)
    else:
        executor.parallel_for(len(template_keypoints), worker)
    return collector.snapshot()


class SIFT:
    """
    Scale-Invariant Feature Transform (SIFT) implementation.

    This class implements the full SIFT pipeline:
    1. Gaussian, DoG and gradient scale spaces
    2. Scale-space extrema detection and sub-pixel refinement
    3. Orientation assignment
    4. Keypoint descriptor
    """

    def __init__(self, sigma_min=SIGMA_MIN, num_octaves=N_OCT,
                 scales_per_octave=N_SPO, contrast_thresh=C_DOG,
                 edge_thresh=C_EDGE, lambda_ori=LAMBDA_ORI,
                 lambda_desc=LAMBDA_DESC, max_workers=None):
        """
        Initialize SIFT detector.

        Args:
            sigma_min: Blur level of the first scale-space image
            num_octaves: Number of octaves in the scale space
            scales_per_octave: Number of scales sampled per octave
            contrast_thresh: Minimum |DoG| of an accepted keypoint
            edge_thresh: Maximum principal curvature ratio
            lambda_ori: Orientation patch scale factor
            lambda_desc: Descriptor patch scale factor
            max_workers: Worker threads (None for the executor default, 1 for serial)
        """
        self.params = SiftParams(
            sigma_min=sigma_min,
            num_octaves=num_octaves,
            scales_per_octave=scales_per_octave,
            contrast_thresh=contrast_thresh,
            edge_thresh=edge_thresh,
            lambda_ori=lambda_ori,
            lambda_desc=lambda_desc,
            max_workers=max_workers,
        )

    def _prepare_input(self, image):
        image = np.asarray(image)
        if image.ndim not in (2, 3):
            raise ValueError(f"Expected a 2D or 3D image, got shape {image.shape}")
        rows, cols = image.shape[:2]
        min_size = self.params.min_input_size
        if min(rows, cols) < min_size:
            raise InputTooSmallError(image.shape, self.params.num_octaves, min_size)
        return to_grayscale(image) / 255.0

    def detect(self, image):
        """
        Detect keypoints and compute their descriptors.

        Args:
            image: Grayscale (H x W) or RGB (H x W x 3) image with values in [0, 255]

        Returns:
            List of SIFTKeypoint, each with a 128-byte descriptor. The order
            is not defined.

        Raises:
            InputTooSmallError: If the image cannot hold num_octaves octaves
        """
        p = self.params
        gray = self._prepare_input(image)

        with ParallelExecutor(p.max_workers) as executor:
            with log_phase(logger, "Gaussian pyramid", octaves=p.num_octaves):
                gaussian_pyramid = generate_gaussian_pyramid(
                    gray, p.sigma_min, p.num_octaves, p.scales_per_octave)

            with log_phase(logger, "DoG pyramid"):
                dog_pyramid = generate_dog_pyramid(gaussian_pyramid, executor)

            with log_phase(logger, "Keypoint detection"):
                template_kps = find_keypoints(dog_pyramid, p.contrast_thresh, p.edge_thresh,
                                              p.sigma_min, p.scales_per_octave, executor)

            with log_phase(logger, "Gradient pyramid"):
                grad_pyramid = generate_gradient_pyramid(gaussian_pyramid, executor)

            with log_phase(logger, "Orientations and descriptors", keypoints=len(template_kps)):
                keypoints = describe_keypoints(template_kps, grad_pyramid, p.lambda_ori,
                                               p.lambda_desc, executor)

        logger.info(f"SIFT: {len(template_kps)} refined extrema, {len(keypoints)} keypoints "
                    f"(image {gray.shape[1]}x{gray.shape[0]})")
        return keypoints

    def detect_and_compute(self, image):
        """
        Detect keypoints and compute descriptors.

        Args:
            image: Grayscale or RGB image with values in [0, 255]

        Returns:
            keypoints: List of SIFTKeypoint
            descriptors: Array of descriptors (N x 128, uint8)
        """
        keypoints = self.detect(image)
        if keypoints:
            descriptors = keypoints_to_arrays(keypoints)['descriptors']
        else:
            descriptors = np.zeros((0, DESC_LEN), dtype=np.uint8)
        return keypoints, descriptors


def find_sift_keypoints_and_descriptors(image, sigma_min=SIGMA_MIN, num_octaves=N_OCT,
                                        scales_per_octave=N_SPO, contrast_thresh=C_DOG,
                                        edge_thresh=C_EDGE, lambda_ori=LAMBDA_ORI,
                                        lambda_desc=LAMBDA_DESC, max_workers=None):
    """Run SIFT on ``image`` and return the list of described keypoints."""
    sift = SIFT(sigma_min, num_octaves, scales_per_octave, contrast_thresh,
                edge_thresh, lambda_ori, lambda_desc, max_workers)
    return sift.detect(image)
