"""Pinhole intrinsics and depth-to-colour extrinsics.

`CameraIntrinsics` stores the four pinhole parameters (fx, fy, cx, cy)
of a camera.  `Extrinsic` stores the 3×3 rotation and 3-vector
translation that map a point from the depth camera frame to the colour
camera frame (``p_color = R @ p_depth + T``).  Both are immutable
value types.

No physical sanity checks are performed: a zero focal length or a
non-orthonormal rotation is accepted and simply produces meaningless
geometry.  Only array shapes are validated.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence

import numpy as np


@dataclass(frozen=True)
class CameraIntrinsics:
    """Pinhole camera intrinsics in pixels."""

    fx: float
    """Focal length along the image x axis (columns)."""

    fy: float
    """Focal length along the image y axis (rows)."""

    cx: float
    """Principal point x coordinate."""

    cy: float
    """Principal point y coordinate."""

    @classmethod
    def from_matrix(cls, K: np.ndarray) -> "CameraIntrinsics":
        """Build intrinsics from a 3×3 camera matrix."""
        K = np.asarray(K, dtype=float)
        if K.shape != (3, 3):
            raise ValueError("camera matrix must be 3x3")
        return cls(fx=float(K[0, 0]), fy=float(K[1, 1]), cx=float(K[0, 2]), cy=float(K[1, 2]))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CameraIntrinsics":
        missing = {"fx", "fy", "cx", "cy"} - set(data)
        if missing:
            raise ValueError(f"intrinsics missing keys: {sorted(missing)}")
        try:
            values = {key: float(data[key]) for key in ("fx", "fy", "cx", "cy")}
        except TypeError as exc:
            raise ValueError(f"intrinsics must be numbers: {exc}") from exc
        return cls(**values)

    def to_matrix(self) -> np.ndarray:
        """Return the 3×3 camera matrix."""
        return np.array([
            [self.fx, 0.0, self.cx],
            [0.0, self.fy, self.cy],
            [0.0, 0.0, 1.0],
        ])


def _identity() -> np.ndarray:
    return np.eye(3)


def _zeros() -> np.ndarray:
    return np.zeros(3)


@dataclass(frozen=True, eq=False)
class Extrinsic:
    """Rigid transform from the depth camera frame to the colour camera frame.

    The default instance is the identity rotation with zero translation,
    i.e. co-located and aligned cameras.
    """

    rotation: np.ndarray = field(default_factory=_identity)
    """3×3 rotation matrix R."""

    translation: np.ndarray = field(default_factory=_zeros)
    """Translation vector T in metres, shape (3,)."""

    def __post_init__(self):
        rotation = np.array(self.rotation, dtype=float)
        translation = np.array(self.translation, dtype=float).reshape(-1)
        if rotation.shape != (3, 3):
            raise ValueError("rotation must be a 3x3 matrix")
        if translation.shape != (3,):
            raise ValueError("translation must have three components")
        rotation.setflags(write=False)
        translation.setflags(write=False)
        # frozen dataclass: bypass __setattr__ to store normalised copies
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "translation", translation)

    @classmethod
    def identity(cls) -> "Extrinsic":
        return cls()

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> "Extrinsic":
        """Build from a 4×4 homogeneous transform."""
        T = np.asarray(T, dtype=float)
        if T.shape != (4, 4):
            raise ValueError("homogeneous transform must be 4x4")
        return cls(rotation=T[:3, :3], translation=T[:3, 3])

    @classmethod
    def from_dict(cls, data: Dict[str, Sequence]) -> "Extrinsic":
        """Build from a mapping with optional ``rotation`` and ``translation``."""
        rotation = data.get("rotation")
        translation = data.get("translation")
        return cls(
            rotation=_identity() if rotation is None else rotation,
            translation=_zeros() if translation is None else translation,
        )

    def to_matrix(self) -> np.ndarray:
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform points of shape (N, 3) or (3,) into the colour frame."""
        coords = np.asarray(points, dtype=float)
        if coords.ndim not in (1, 2) or coords.shape[-1] != 3:
            raise ValueError("points must have shape (N, 3) or (3,)")
        with np.errstate(invalid="ignore", over="ignore"):
            return coords.dot(self.rotation.T) + self.translation

    def is_orthonormal(self, tol: float = 1e-6) -> bool:
        """Check whether the rotation is a proper rotation matrix.

        Parameters
        ----------
        tol : float, optional
            Absolute tolerance on ``R @ R.T == I`` and ``det(R) == 1``.
        """
        r = self.rotation
        return bool(
            np.allclose(r.dot(r.T), np.eye(3), atol=tol)
            and abs(np.linalg.det(r) - 1.0) <= tol
        )
