"""Forward projection into the colour image and colour sampling.

A point in the colour camera frame is projected with the pinhole model
``u = x * fx / z + cx``, ``v = y * fy / z + cy``.  Points with
``z <= 0`` lie behind the camera and are rejected.  Pixel indices are
obtained by rounding half away from zero.

Indices that fall outside the colour image are either clamped to the
nearest edge (the sensor's traditional behaviour, which favours
density) or dropped, depending on the configured policy.  Sampled
pixels are converted from the stored BGR order to RGB and scaled to
[0, 1].
"""

from typing import Tuple

import numpy as np

from src.camera import CameraIntrinsics
from .conversion_config import CLAMP, DROP


def round_half_away(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer, ties away from zero.

    numpy's own `round` rounds ties to even, which would shift pixels
    whose projection lands exactly between two columns.
    """
    values = np.asarray(values, dtype=float)
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def project_points(points: np.ndarray, intrinsics: CameraIntrinsics) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Project colour-frame points onto the colour image plane.

    Parameters
    ----------
    points : numpy.ndarray
        Array of shape (N, 3) in the colour camera frame.
    intrinsics : CameraIntrinsics
        Colour camera intrinsics.

    Returns
    -------
    tuple of numpy.ndarray
        ``(u, v, valid)``.  ``u`` and ``v`` are continuous image
        coordinates for all points; entries where ``valid`` is False
        (point not in front of the camera) are meaningless.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    z = points[:, 2]
    valid = z > 0
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        u = points[:, 0] * intrinsics.fx / z + intrinsics.cx
        v = points[:, 1] * intrinsics.fy / z + intrinsics.cy
    return u, v, valid


def _to_index(coord: np.ndarray, size: int, policy: str) -> Tuple[np.ndarray, np.ndarray]:
    rounded = round_half_away(coord)
    inside = (rounded >= 0) & (rounded <= size - 1)
    if policy == DROP:
        index = np.where(inside, rounded, 0)
    else:
        # NaN from degenerate intrinsics lands on index 0
        index = np.clip(np.nan_to_num(rounded, nan=0.0), 0, size - 1)
    return index.astype(int), inside


def sample_colors(
    color_image: np.ndarray,
    u: np.ndarray,
    v: np.ndarray,
    policy: str = CLAMP,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sample normalised RGB colours at projected image coordinates.

    Parameters
    ----------
    color_image : numpy.ndarray
        Array of shape (H, W, 3), channels stored as blue, green, red.
    u, v : numpy.ndarray
        Continuous column and row coordinates.
    policy : str, optional
        ``"clamp"`` or ``"drop"`` for coordinates outside the image.

    Returns
    -------
    tuple of numpy.ndarray
        ``(rgb, keep)``: colours of shape (N, 3) in [0, 1] and a boolean
        mask of the samples that were kept.  Under ``"clamp"`` every
        sample is kept; ``rgb`` only holds the kept samples.
    """
    if policy not in (CLAMP, DROP):
        raise ValueError(f"unknown out-of-bounds policy {policy!r}")
    height, width = color_image.shape[:2]
    cols, u_inside = _to_index(np.asarray(u, dtype=float), width, policy)
    rows, v_inside = _to_index(np.asarray(v, dtype=float), height, policy)
    if policy == DROP:
        keep = u_inside & v_inside
    else:
        keep = np.ones(len(cols), dtype=bool)
    bgr = color_image[rows[keep], cols[keep]]
    rgb = bgr[:, ::-1].astype(float) / 255.0
    return rgb, keep
