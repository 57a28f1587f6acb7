"""
Pure implementation of SIFT feature extraction without OpenCV.

This package detects scale- and rotation-invariant keypoints in an image
and computes a 128-byte descriptor for each, using only NumPy, SciPy and
Pillow (no OpenCV).

Main components:
- Scale space: Gaussian, Difference-of-Gaussians and gradient pyramids
- Detector: 3x3x3 extrema with sub-pixel refinement and edge rejection
- Orientation: dominant gradient orientations per keypoint
- Descriptor: 4x4x8 gradient histograms quantized to bytes

Example usage:
    from puresift.image_io import read_image
    from puresift.sift import SIFT

    image = read_image('img1.png')
    sift = SIFT()
    keypoints, descriptors = sift.detect_and_compute(image)
"""

__version__ = '1.0.0'

from .errors import InputTooSmallError, SiftError
from .image_io import read_image, read_images
from .keypoint import SIFTKeypoint, keypoints_to_arrays
from .params import SiftParams
from .sift import SIFT, find_sift_keypoints_and_descriptors

__all__ = [
    'SIFT',
    'SIFTKeypoint',
    'SiftParams',
    'SiftError',
    'InputTooSmallError',
    'find_sift_keypoints_and_descriptors',
    'keypoints_to_arrays',
    'read_image',
    'read_images',
]
