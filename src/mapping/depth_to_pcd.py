"""Registered depth + colour images to a coloured point cloud.

Every depth pixel runs through the same short pipeline:

1. back-project the depth sample into the depth camera frame,
2. move the point into the colour camera frame,
3. project it onto the colour image and sample a colour,
4. emit a `Point3DRGB`.

A pixel that fails a check in step 1 (depth out of range) or step 3
(point behind the colour camera, or outside the image under the
``"drop"`` policy) produces no point.  The output preserves the
row-major scan order of the depth image.

Pixels are independent, so the image is processed in blocks of rows.
With ``workers > 1`` the blocks run on a thread pool; each block yields
its own `PointCloud` and the blocks are joined in row order, so the
result does not depend on the number of workers.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np

from src.camera import CameraIntrinsics, Extrinsic
from src.utils.logging import get_logger
from .conversion_config import ConversionConfig
from .extrinsic import apply_extrinsic
from .pixel_to_3d import back_project
from .pointcloud import Point3DRGB, PointCloud
from .projection import project_points, sample_colors

logger = get_logger(__name__)


class ConversionCancelled(RuntimeError):
    """Raised when a conversion is cancelled through its cancel event."""


def _check_color_image(color_image: np.ndarray) -> None:
    if color_image.ndim != 3 or color_image.shape[2] != 3:
        raise ValueError("color image must have shape (H, W, 3)")
    if color_image.shape[0] == 0 or color_image.shape[1] == 0:
        raise ValueError("color image is empty")


def _check_images(depth_image: np.ndarray, color_image: np.ndarray) -> None:
    if depth_image.ndim != 2:
        raise ValueError("depth image must be a 2D array")
    _check_color_image(color_image)


def _convert_block(
    depth_block: np.ndarray,
    row_offset: int,
    color_image: np.ndarray,
    depth_intrinsics: CameraIntrinsics,
    color_intrinsics: CameraIntrinsics,
    extrinsic: Extrinsic,
    config: ConversionConfig,
    col_offset: int = 0,
) -> PointCloud:
    points_depth, pixels = back_project(
        depth_block, depth_intrinsics, config, row_offset=row_offset, col_offset=col_offset
    )
    points_color = apply_extrinsic(points_depth, extrinsic)
    u, v, in_front = project_points(points_color, color_intrinsics)
    rgb, keep = sample_colors(color_image, u[in_front], v[in_front], config.out_of_bounds)
    return PointCloud(
        xyz=points_color[in_front][keep],
        rgb=rgb,
        pixels=pixels[in_front][keep],
    )


def pixel_to_point(
    i: int,
    j: int,
    raw_depth: float,
    color_image: np.ndarray,
    depth_intrinsics: CameraIntrinsics,
    color_intrinsics: CameraIntrinsics,
    extrinsic: Optional[Extrinsic] = None,
    config: Optional[ConversionConfig] = None,
) -> Optional[Point3DRGB]:
    """Run the full pipeline for a single depth pixel.

    Returns the coloured point, or `None` when the pixel is skipped.
    """
    _check_color_image(color_image)
    config = config or ConversionConfig()
    extrinsic = extrinsic or Extrinsic.identity()
    cloud = _convert_block(
        np.array([[raw_depth]]),
        i,
        color_image,
        depth_intrinsics,
        color_intrinsics,
        extrinsic,
        config,
        col_offset=j,
    )
    if len(cloud) == 0:
        return None
    return next(iter(cloud))


def depth_to_pointcloud(
    depth_image: np.ndarray,
    color_image: np.ndarray,
    depth_intrinsics: CameraIntrinsics,
    color_intrinsics: CameraIntrinsics,
    extrinsic: Optional[Extrinsic] = None,
    config: Optional[ConversionConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> PointCloud:
    """Convert a registered depth/colour image pair to a coloured point cloud.

    Parameters
    ----------
    depth_image : numpy.ndarray
        Array of shape (H, W) with raw depth samples (millimetres by
        default, see `ConversionConfig.depth_scale`).
    color_image : numpy.ndarray
        Array of shape (H', W', 3) in BGR order.  It may have a
        different resolution from the depth image.
    depth_intrinsics, color_intrinsics : CameraIntrinsics
        Pinhole parameters of the two cameras.
    extrinsic : Extrinsic, optional
        Depth-to-colour transform.  Defaults to identity rotation and
        zero translation (co-located, aligned cameras).
    config : ConversionConfig, optional
        Sensor range, depth scale, out-of-bounds policy and threading.
    cancel_event : threading.Event, optional
        Checked before each row block; when set the conversion stops
        with `ConversionCancelled`.

    Returns
    -------
    PointCloud
        Points in the colour camera frame, in row-major order of their
        source depth pixels.
    """
    _check_images(depth_image, color_image)
    config = config or ConversionConfig()
    extrinsic = extrinsic or Extrinsic.identity()

    starts = range(0, depth_image.shape[0], config.rows_per_chunk)

    def run_block(start: int) -> PointCloud:
        if cancel_event is not None and cancel_event.is_set():
            raise ConversionCancelled(f"conversion cancelled at row {start}")
        block = depth_image[start:start + config.rows_per_chunk]
        return _convert_block(
            block, start, color_image, depth_intrinsics, color_intrinsics, extrinsic, config
        )

    if config.workers == 1:
        blocks = [run_block(start) for start in starts]
    else:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            # map() yields results in submission order
            blocks = list(executor.map(run_block, starts))

    cloud = PointCloud.concatenate(blocks)
    logger.debug(
        "Converted %dx%d depth image to %d points",
        depth_image.shape[1], depth_image.shape[0], len(cloud),
    )
    return cloud


def convert(
    depth_image: np.ndarray,
    color_image: np.ndarray,
    depth_intrinsics: CameraIntrinsics,
    color_intrinsics: CameraIntrinsics,
    extrinsic: Optional[Extrinsic] = None,
    config: Optional[ConversionConfig] = None,
) -> List[Point3DRGB]:
    """Same as `depth_to_pointcloud` but returns a list of `Point3DRGB`."""
    return depth_to_pointcloud(
        depth_image, color_image, depth_intrinsics, color_intrinsics, extrinsic, config
    ).to_points()
