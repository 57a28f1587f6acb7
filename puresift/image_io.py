"""
Image reading utilities using PIL (Pillow)
No OpenCV dependencies.
"""

import numpy as np
from PIL import Image


def read_image(filepath):
    """
    Read image from file.

    Palette, alpha and 16-bit modes are converted to RGB or L so the
    result always holds values in [0, 255].

    Args:
        filepath: Path to image file

    Returns:
        Image as numpy array (H x W x 3) for color or (H x W) for grayscale
    """
    try:
        img = Image.open(filepath)

        # Convert to RGB if needed
        if img.mode in ('I;16', 'I;16B', 'I;16L', 'I', 'F'):
            img = img.convert('L')
        elif img.mode != 'RGB' and img.mode != 'L':
            img = img.convert('RGB')

        return np.array(img)

    except Exception as e:
        raise IOError(f"Failed to read image from {filepath}: {str(e)}")


def read_images(filepaths):
    """
    Read multiple images.

    Args:
        filepaths: List of image file paths

    Returns:
        List of images as numpy arrays
    """
    return [read_image(filepath) for filepath in filepaths]
