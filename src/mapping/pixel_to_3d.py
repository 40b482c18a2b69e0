"""Back-projection of depth pixels to 3D points.

A depth sample ``d`` at pixel ``(i, j)`` (row, column) is converted to
metres and lifted into the depth camera frame with the inverse pinhole
model::

    x = (j - cx) * z / fx
    y = (i - cy) * z / fy
    z = d / depth_scale

Samples outside the configured sensor range are not errors; they are
simply left out.
"""

from typing import Optional, Tuple

import numpy as np

from src.camera import CameraIntrinsics
from .conversion_config import ConversionConfig


def back_project(
    depth_image: np.ndarray,
    intrinsics: CameraIntrinsics,
    config: ConversionConfig,
    row_offset: int = 0,
    col_offset: int = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """Lift all valid depth pixels to 3D.

    Parameters
    ----------
    depth_image : numpy.ndarray
        Array of shape (H, W) with raw depth samples.
    intrinsics : CameraIntrinsics
        Depth camera intrinsics.
    config : ConversionConfig
        Depth scale and valid range.
    row_offset : int, optional
        Row index of ``depth_image[0]`` in the full image.  Used when
        the image is processed in row blocks.
    col_offset : int, optional
        Column index of ``depth_image[:, 0]`` in the full image.

    Returns
    -------
    tuple of numpy.ndarray
        ``(points, pixels)`` where ``points`` has shape (N, 3) in the
        depth camera frame and ``pixels`` holds the (row, col) of each
        point in the full image, both in row-major order.
    """
    if depth_image.ndim != 2:
        raise ValueError("depth image must be a 2D array")
    depth = depth_image.astype(float) / config.depth_scale
    valid = config.is_valid_depth(depth)
    rows, cols = np.nonzero(valid)
    z = depth[rows, cols]
    rows = rows + row_offset
    cols = cols + col_offset
    with np.errstate(divide="ignore", invalid="ignore"):
        x = (cols - intrinsics.cx) * z / intrinsics.fx
        y = (rows - intrinsics.cy) * z / intrinsics.fy
    points = np.column_stack([x, y, z])
    pixels = np.column_stack([rows, cols]).astype(int)
    return points, pixels


def back_project_pixel(
    i: int,
    j: int,
    raw_depth: float,
    intrinsics: CameraIntrinsics,
    config: ConversionConfig,
) -> Optional[np.ndarray]:
    """Lift one depth pixel to 3D; ``None`` if its depth is out of range."""
    points, _ = back_project(
        np.array([[raw_depth]]), intrinsics, config, row_offset=i, col_offset=j
    )
    if len(points) == 0:
        return None
    return points[0]
