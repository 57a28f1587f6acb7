#!/usr/bin/env python3
"""
Pure SIFT CLI
Command-line interface for SIFT keypoint extraction without OpenCV.

Usage:
    python -m puresift.sift_cli image1.png [image2.png ...] [options]
"""

import argparse
import logging
import os
import sys
import time

import numpy as np

from .errors import SiftError
from .image_io import read_image
from .keypoint import keypoints_to_arrays
from .params import C_DOG, C_EDGE, N_OCT, N_SPO, SIGMA_MIN
from .sift import SIFT


def build_parser():
    parser = argparse.ArgumentParser(
        description='Extract SIFT keypoints and descriptors using a pure NumPy/SciPy implementation'
    )

    parser.add_argument(
        'images',
        nargs='+',
        help='Input images'
    )

    parser.add_argument(
        '-o', '--output-dir',
        default=None,
        help='Directory for <image>.npz keypoint files (default: no output files)'
    )

    parser.add_argument(
        '--octaves',
        type=int,
        default=N_OCT,
        help=f'Number of octaves (default: {N_OCT})'
    )

    parser.add_argument(
        '--scales',
        type=int,
        default=N_SPO,
        help=f'Number of scales per octave (default: {N_SPO})'
    )

    parser.add_argument(
        '--sigma-min',
        type=float,
        default=SIGMA_MIN,
        help=f'Blur of the first scale-space image (default: {SIGMA_MIN})'
    )

    parser.add_argument(
        '--contrast-threshold',
        type=float,
        default=C_DOG,
        help=f'DoG contrast threshold (default: {C_DOG})'
    )

    parser.add_argument(
        '--edge-threshold',
        type=float,
        default=C_EDGE,
        help=f'Edge response threshold (default: {C_EDGE})'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Worker threads (default: thread pool default, 1 runs serially)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log every pipeline stage'
    )
    return parser


def save_keypoints(path, keypoints):
    """Write keypoints and descriptors to a compressed .npz file."""
    np.savez_compressed(path, **keypoints_to_arrays(keypoints))


def main(argv=None):
    """Main function for CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    for img_path in args.images:
        if not os.path.exists(img_path):
            print(f"Error: Image not found: {img_path}")
            return 1

    if args.output_dir and not os.path.exists(args.output_dir):
        os.makedirs(args.output_dir)

    try:
        sift = SIFT(
            sigma_min=args.sigma_min,
            num_octaves=args.octaves,
            scales_per_octave=args.scales,
            contrast_thresh=args.contrast_threshold,
            edge_thresh=args.edge_threshold,
            max_workers=args.workers,
        )
    except ValueError as e:
        print(f"Error: {str(e)}")
        return 1

    for img_path in args.images:
        try:
            image = read_image(img_path)
        except IOError as e:
            print(f"Error reading image: {str(e)}")
            return 1

        start_time = time.time()
        try:
            keypoints = sift.detect(image)
        except SiftError as e:
            print(f"Error: {img_path}: {str(e)}")
            return 1
        elapsed_time = time.time() - start_time

        print(f"{img_path}: {len(keypoints)} keypoints "
              f"({image.shape[1]}x{image.shape[0]}, {elapsed_time:.2f} seconds)")

        if args.output_dir:
            stem = os.path.splitext(os.path.basename(img_path))[0]
            out_path = os.path.join(args.output_dir, f"{stem}.npz")
            save_keypoints(out_path, keypoints)
            print(f"  Keypoints saved to: {out_path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
