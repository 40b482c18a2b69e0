import cv2
import numpy as np
from pathlib import Path


def _read(path, flags):
    path = Path(path)
    img = cv2.imread(str(path), flags)
    if img is None:
        raise FileNotFoundError(f"Could not load image: {path}")
    return img


def load_depth_image(path):
    """Read a depth image (e.g. 16-bit PNG) without converting its bit depth."""
    depth = _read(path, cv2.IMREAD_ANYDEPTH)
    if depth.ndim != 2:
        raise ValueError(f"{path}: depth image must have a single channel")
    return depth


def load_color_image(path):
    """Read a colour image as an (H, W, 3) uint8 array in BGR order."""
    return _read(path, cv2.IMREAD_COLOR)


def save_depth_image(path, depth):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), np.asarray(depth, dtype=np.uint16)):
        raise OSError(f"Could not write image: {path}")


def save_color_image(path, img):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), np.asarray(img, dtype=np.uint8)):
        raise OSError(f"Could not write image: {path}")
