"""
Keypoint record produced by the SIFT pipeline.
"""

import numpy as np

from .params import DESC_LEN


class SIFTKeypoint:
    """
    A scale-space keypoint.

    Discrete fields (i, j, octave, scale) locate the sample in its octave's
    DoG image: i is the column and j the row. Continuous fields (x, y, sigma)
    are expressed in the input image's frame and stay at -1 until the
    keypoint has been refined.
    """

    __slots__ = ('i', 'j', 'octave', 'scale', 'x', 'y', 'sigma',
                 'extremum_val', 'theta', 'descriptor')

    def __init__(self, i, j, octave, scale, x=-1.0, y=-1.0, sigma=-1.0,
                 extremum_val=-1.0, theta=None, descriptor=None):
        self.i = int(i)
        self.j = int(j)
        self.octave = int(octave)
        self.scale = int(scale)
        self.x = float(x)
        self.y = float(y)
        self.sigma = float(sigma)
        self.extremum_val = float(extremum_val)
        self.theta = theta
        if descriptor is None:
            descriptor = np.zeros(DESC_LEN, dtype=np.uint8)
        self.descriptor = descriptor

    def copy(self):
        return SIFTKeypoint(self.i, self.j, self.octave, self.scale,
                            self.x, self.y, self.sigma, self.extremum_val,
                            self.theta, self.descriptor.copy())

    def as_tuple(self):
        return (self.octave, self.scale, self.i, self.j,
                self.x, self.y, self.sigma, self.theta)

    def __repr__(self):
        theta = 'None' if self.theta is None else f"{self.theta:.3f}"
        return (f"SIFTKeypoint(pt=({self.x:.2f}, {self.y:.2f}), sigma={self.sigma:.2f}, "
                f"theta={theta}, octave={self.octave}, scale={self.scale})")


def keypoints_to_arrays(keypoints):
    """
    Pack keypoints into column arrays.

    Returns:
        dict with 'xy' (N x 2), 'sigma', 'theta', 'octave', 'scale',
        'response' and 'descriptors' (N x 128, uint8)
    """
    n = len(keypoints)
    out = {
        'xy': np.zeros((n, 2), dtype=np.float32),
        'sigma': np.zeros(n, dtype=np.float32),
        'theta': np.zeros(n, dtype=np.float32),
        'octave': np.zeros(n, dtype=np.int32),
        'scale': np.zeros(n, dtype=np.int32),
        'response': np.zeros(n, dtype=np.float32),
        'descriptors': np.zeros((n, DESC_LEN), dtype=np.uint8),
    }
    for idx, kp in enumerate(keypoints):
        out['xy'][idx] = (kp.x, kp.y)
        out['sigma'][idx] = kp.sigma
        out['theta'][idx] = kp.theta if kp.theta is not None else np.nan
        out['octave'][idx] = kp.octave
        out['scale'][idx] = kp.scale
        out['response'][idx] = kp.extremum_val
        out['descriptors'][idx] = kp.descriptor
    return out
