"""ASCII PLY export of coloured point clouds.

Writes the plain-text PLY variant: a header declaring the vertex count
and six float properties (x, y, z, red, green, blue), followed by one
line per point.  Colours are written as floats in [0, 1].
"""

from pathlib import Path

import numpy as np

from src.mapping.pointcloud import PointCloud

PLY_PROPERTIES = ("x", "y", "z", "red", "green", "blue")


def ply_header(n_points: int) -> str:
    lines = [
        "ply",
        "format ascii 1.0",
        f"element vertex {n_points}",
    ]
    lines += [f"property float {name}" for name in PLY_PROPERTIES]
    lines.append("end_header")
    return "\n".join(lines) + "\n"


def write_ply(path, cloud: PointCloud) -> Path:
    """Write a point cloud to an ASCII PLY file.

    Parameters
    ----------
    path : str or Path
        Output file.  Parent directories are created.
    cloud : PointCloud
        Points to write, in their stored order.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="ascii") as f:
        f.write(ply_header(len(cloud)))
        if len(cloud):
            np.savetxt(f, cloud.as_array(), fmt="%.6g", delimiter=" ")
    return path


def read_ply(path) -> PointCloud:
    """Read an ASCII PLY file written by `write_ply`.

    Source pixel indices are not stored in the file and are set to -1.
    """
    path = Path(path)
    with open(path, "r", encoding="ascii") as f:
        if f.readline().strip() != "ply":
            raise ValueError(f"{path}: not a PLY file")
        n_points = None
        properties = []
        for line in f:
            tokens = line.split()
            if not tokens:
                continue
            if tokens[0] == "format" and tokens[1] != "ascii":
                raise ValueError(f"{path}: only ASCII PLY is supported")
            if tokens[:2] == ["element", "vertex"]:
                n_points = int(tokens[2])
            elif tokens[0] == "property":
                properties.append(tokens[-1])
            elif tokens[0] == "end_header":
                break
        if n_points is None or tuple(properties) != PLY_PROPERTIES:
            raise ValueError(f"{path}: unexpected PLY header")
        data = np.loadtxt(f, ndmin=2, max_rows=n_points) if n_points else np.empty((0, 6))
    if data.shape != (n_points, 6):
        raise ValueError(f"{path}: expected {n_points} vertices, found {len(data)}")
    return PointCloud(
        xyz=data[:, :3],
        rgb=data[:, 3:],
        pixels=np.full((n_points, 2), -1, dtype=int),
    )
