"""Mapping from registered RGB-D pixels to coloured 3D points.

This package back-projects depth pixels into 3D, transforms them into
the colour camera frame, samples their colour from the colour image and
assembles the resulting point cloud.
"""

from .conversion_config import ConversionConfig
from .pointcloud import Point3DRGB, PointCloud
from .pixel_to_3d import back_project, back_project_pixel
from .extrinsic import apply_extrinsic
from .projection import project_points, round_half_away, sample_colors
from .depth_to_pcd import (
    ConversionCancelled,
    convert,
    depth_to_pointcloud,
    pixel_to_point,
)

__all__ = [
    "ConversionConfig",
    "Point3DRGB",
    "PointCloud",
    "back_project",
    "back_project_pixel",
    "apply_extrinsic",
    "project_points",
    "round_half_away",
    "sample_colors",
    "ConversionCancelled",
    "convert",
    "depth_to_pointcloud",
    "pixel_to_point",
]
