"""Depth-to-colour frame transformation.

Points computed in the depth camera frame are moved into the colour
camera frame with the fixed rigid transform of the sensor pair,
``p_color = R @ p_depth + T``.  The rotation is used as given; it is
not re-orthonormalised.
"""

from typing import Optional

import numpy as np

from src.camera import Extrinsic


def apply_extrinsic(points: np.ndarray, extrinsic: Optional[Extrinsic] = None) -> np.ndarray:
    """Apply an extrinsic transform to a set of points.

    Parameters
    ----------
    points : numpy.ndarray
        Array of shape (N, 3), or a single point of shape (3,).
    extrinsic : Extrinsic, optional
        Transform to apply.  If `None`, the identity is used.

    Returns
    -------
    numpy.ndarray
        Transformed points with the same shape as the input.
    """
    return (extrinsic or Extrinsic.identity()).apply(points)
