"""
SIFT algorithm parameters.

Defaults follow Table 3 of "Anatomy of the SIFT Method" (IPOL 2014,
https://www.ipol.im/pub/art/2014/82/article.pdf).
"""

from dataclasses import dataclass

# digital scale space configuration and keypoint detection
MAX_REFINEMENT_ITERS = 5
SIGMA_MIN = 0.8
MIN_PIX_DIST = 0.5
N_OCT = 8
N_SPO = 3
C_DOG = 0.015
C_EDGE = 10.0

# orientation assignment and descriptor
N_BINS = 36
LAMBDA_ORI = 1.5
N_HIST = 4
N_ORI = 8
LAMBDA_DESC = 6.0
DESC_LEN = N_HIST * N_HIST * N_ORI

ORI_THRESHOLD = 0.8
ORI_SMOOTHING_PASSES = 6
DESC_CLIP = 0.2


@dataclass
class SiftParams:
    """Tunable parameters of one SIFT run."""

    sigma_min: float = SIGMA_MIN
    num_octaves: int = N_OCT
    scales_per_octave: int = N_SPO
    contrast_thresh: float = C_DOG
    edge_thresh: float = C_EDGE
    lambda_ori: float = LAMBDA_ORI
    lambda_desc: float = LAMBDA_DESC
    max_workers: int = None

    def __post_init__(self):
        if self.num_octaves < 1:
            raise ValueError(f"num_octaves must be >= 1, got {self.num_octaves}")
        if self.scales_per_octave < 1:
            raise ValueError(
                f"scales_per_octave must be >= 1, got {self.scales_per_octave}"
            )
        # the base image is blurred by sqrt(base_sigma^2 - 1)
        if self.sigma_min / MIN_PIX_DIST <= 1.0:
            raise ValueError(f"sigma_min must be > {MIN_PIX_DIST}, got {self.sigma_min}")
        for name in ("contrast_thresh", "edge_thresh", "lambda_ori", "lambda_desc"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @property
    def imgs_per_octave(self):
        return self.scales_per_octave + 3

    @property
    def min_input_size(self):
        """Smallest input dimension that still yields every requested octave."""
        return 2 ** (self.num_octaves - 1)
