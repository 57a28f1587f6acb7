"""Tests for orientation assignment and descriptor construction."""

import math

import numpy as np
import pytest

from puresift.descriptor import (clip_histogram, compute_keypoint_descriptor,
                                 hists_to_vec, update_histograms)
from puresift.keypoint import SIFTKeypoint
from puresift.orientation import (find_keypoint_orientations,
                                  orientation_histogram, smooth_histogram)
from puresift.params import DESC_LEN, N_BINS
from puresift.pyramid import GradientPyramid


def uniform_gradient_pyramid(angle, size=200, magnitude=0.05):
    grad = np.zeros((size, size, 2), dtype=np.float32)
    grad[..., 0] = magnitude * math.cos(angle)
    grad[..., 1] = magnitude * math.sin(angle)
    return GradientPyramid([[grad, grad, grad]])


def centered_keypoint(x=50.0, y=50.0, sigma=2.0):
    return SIFTKeypoint(int(x * 2), int(y * 2), 0, 1, x=x, y=y, sigma=sigma, extremum_val=0.1)


def angle_diff(a, b):
    d = (a - b) % (2 * math.pi)
    return min(d, 2 * math.pi - d)


class TestSmoothHistogram:
    def test_preserves_mass(self):
        hist = np.random.default_rng(0).random(N_BINS)
        assert smooth_histogram(hist).sum() == pytest.approx(hist.sum())

    def test_spike_spreads_symmetrically(self):
        hist = np.zeros(N_BINS)
        hist[10] = 1.0
        smoothed = smooth_histogram(hist)
        assert smoothed.argmax() == 10
        for d in range(1, 7):
            assert smoothed[10 - d] == pytest.approx(smoothed[10 + d])

    def test_wraps_around(self):
        hist = np.zeros(N_BINS)
        hist[0] = 1.0
        smoothed = smooth_histogram(hist, passes=1)
        assert smoothed[N_BINS - 1] == pytest.approx(1 / 3)
        assert smoothed[1] == pytest.approx(1 / 3)

    def test_one_more_pass_changes_little(self):
        hist = np.random.default_rng(1).random(N_BINS) * 10
        smoothed = smooth_histogram(hist)
        again = smooth_histogram(smoothed, passes=1)
        assert np.abs(again - smoothed).max() <= 0.1 * smoothed.max()


class TestOrientation:
    def test_uniform_gradient_gives_its_direction(self):
        pyramid = uniform_gradient_pyramid(1.0)
        orientations = find_keypoint_orientations(centered_keypoint(), pyramid)
        assert len(orientations) == 1
        assert angle_diff(orientations[0], 1.0) <= math.pi / N_BINS

    def test_histogram_collects_weighted_magnitudes(self):
        pyramid = uniform_gradient_pyramid(0.0)
        hist = orientation_histogram(centered_keypoint(), pyramid)
        assert hist.argmax() == 0
        assert hist[1:].sum() == 0

    def test_two_dominant_directions(self):
        grad = np.zeros((200, 200, 2), dtype=np.float32)
        grad[:100, :, 0] = 0.05
        grad[100:, :, 1] = 0.05
        pyramid = GradientPyramid([[grad, grad, grad]])
        orientations = find_keypoint_orientations(centered_keypoint(), pyramid)
        assert len(orientations) == 2
        found = sorted(orientations)
        assert angle_diff(found[0], 0.0) < 0.05
        assert angle_diff(found[1], math.pi / 2) < 0.05

    def test_rejects_keypoints_near_the_border(self):
        pyramid = uniform_gradient_pyramid(1.0)
        # sqrt(2) * 6 * 2 ~ 16.97 from the border is too close
        assert find_keypoint_orientations(centered_keypoint(x=16.5), pyramid) == []
        assert find_keypoint_orientations(centered_keypoint(y=100 - 16.5), pyramid) == []
        assert len(find_keypoint_orientations(centered_keypoint(x=17.5), pyramid)) == 1

    def test_no_gradient_no_orientation(self):
        pyramid = uniform_gradient_pyramid(0.0, magnitude=0.0)
        assert find_keypoint_orientations(centered_keypoint(), pyramid) == []


class TestHistogramUpdate:
    def test_sample_at_bin_center(self):
        hist = np.zeros((4, 4, 8))
        update_histograms(hist, -4.5, 1.5, 2.0, 0.0, 6.0)
        assert hist[0, 2, 0] == pytest.approx(2.0)
        assert hist.sum() == pytest.approx(2.0)

    def test_sample_between_bins_is_split(self):
        hist = np.zeros((4, 4, 8))
        update_histograms(hist, -3.0, -4.5, 1.0, math.pi / 8, 6.0)
        for idx in [(0, 0, 0), (1, 0, 0), (0, 0, 1), (1, 0, 1)]:
            assert hist[idx] == pytest.approx(0.25)
        assert hist.sum() == pytest.approx(1.0)

    def test_angle_wraps_to_first_bin(self):
        hist = np.zeros((4, 4, 8))
        update_histograms(hist, 1.5, 1.5, 1.0, 2 * math.pi - math.pi / 8, 6.0)
        assert hist[2, 2, 7] == pytest.approx(0.5)
        assert hist[2, 2, 0] == pytest.approx(0.5)

    def test_sample_outside_grid_is_dropped(self):
        hist = np.zeros((4, 4, 8))
        update_histograms(hist, 7.5, 0.0, 1.0, 0.0, 6.0)
        assert hist.sum() == 0.0


class TestQuantization:
    def test_bytes_in_range(self):
        hist = np.random.default_rng(3).random((4, 4, 8)) ** 4
        vec = hists_to_vec(hist)
        assert vec.dtype == np.uint8
        assert vec.shape == (DESC_LEN,)
        assert vec.max() <= 255

    def test_clipping_bounds_components(self):
        hist = np.random.default_rng(4).random((4, 4, 8)) ** 6
        norm = np.linalg.norm(hist)
        clipped, norm2 = clip_histogram(hist)
        assert clipped.max() <= 0.2 * norm + 1e-12
        assert norm2 == pytest.approx(np.linalg.norm(clipped))

    def test_single_peak_saturates(self):
        hist = np.zeros((4, 4, 8))
        hist[1, 2, 3] = 5.0
        vec = hists_to_vec(hist)
        assert vec[1 * 32 + 2 * 8 + 3] == 255
        assert vec.sum() == 255

    def test_empty_histogram(self):
        vec = hists_to_vec(np.zeros((4, 4, 8)))
        assert not vec.any()


class TestDescriptor:
    def test_uniform_field_fills_relative_angle_zero(self):
        pyramid = uniform_gradient_pyramid(0.7)
        kp = centered_keypoint()
        desc = compute_keypoint_descriptor(kp, 0.7, pyramid)
        assert kp.theta == pytest.approx(0.7)
        assert desc is kp.descriptor
        assert desc.reshape(16, 8)[:, 0].min() > 0
        assert not desc.reshape(16, 8)[:, 1:].any()

    def test_invariant_to_rotating_the_field_and_orientation(self):
        kp1, kp2 = centered_keypoint(), centered_keypoint()
        d1 = compute_keypoint_descriptor(kp1, 0.3, uniform_gradient_pyramid(0.3))
        d2 = compute_keypoint_descriptor(kp2, 1.8, uniform_gradient_pyramid(1.8))
        assert np.corrcoef(d1.astype(float), d2.astype(float))[0, 1] > 0.99

    def test_copies_do_not_share_descriptors(self):
        pyramid = uniform_gradient_pyramid(0.0)
        template = centered_keypoint()
        a, b = template.copy(), template.copy()
        compute_keypoint_descriptor(a, 0.0, pyramid)
        compute_keypoint_descriptor(b, math.pi / 2, pyramid)
        assert not template.descriptor.any()
        assert not np.array_equal(a.descriptor, b.descriptor)
