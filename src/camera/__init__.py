"""Camera models.

This package holds the small value types describing the RGB-D sensor
pair: pinhole intrinsics for each camera and the rigid extrinsic
transform from the depth camera frame to the colour camera frame.
"""

from .intrinsics import CameraIntrinsics, Extrinsic

__all__ = ["CameraIntrinsics", "Extrinsic"]
