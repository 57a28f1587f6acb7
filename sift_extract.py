#!/usr/bin/env python3
"""
Wrapper script for pure SIFT keypoint extraction.
Makes it easier to run without the -m flag.

Usage:
    python sift_extract.py image1.png image2.png -o keypoints/
"""

import sys
from puresift.sift_cli import main

if __name__ == '__main__':
    sys.exit(main())
