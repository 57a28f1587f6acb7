"""
Exceptions raised by the SIFT pipeline.
"""


class SiftError(Exception):
    """Base class for errors that abort a SIFT pipeline run."""


class InputTooSmallError(SiftError, ValueError):
    """
    The requested number of octaves cannot be built from the input image.

    Raised before any keypoint is produced when an octave would end up
    with a spatial dimension below one pixel.
    """

    def __init__(self, shape, num_octaves, min_size=None):
        self.shape = tuple(shape)
        self.num_octaves = num_octaves
        self.min_size = min_size
        msg = f"Image of shape {self.shape} is too small for {num_octaves} octaves"
        if min_size is not None:
            msg += f" (need at least {min_size} pixels in each dimension)"
        super().__init__(msg)
