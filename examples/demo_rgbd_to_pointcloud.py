"""Demo script for the RGB-D pipeline with synthetic data.

This script renders a synthetic depth/colour pair of a tilted plane
with a box in front of it, writes both images to disk as PNG, runs the
pipeline on them and writes the coloured point cloud as PLY.

Usage:
    python examples/demo_rgbd_to_pointcloud.py
"""

import sys
from pathlib import Path
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.camera import CameraIntrinsics, Extrinsic
from src.common.rgbd_io import save_color_image, save_depth_image
from src.mapping import ConversionConfig
from src.pipeline import RGBDPipeline


def create_synthetic_rgbd(
    width: int = 640,
    height: int = 480,
    plane_distance: float = 3.0,
) -> tuple:
    """Create a synthetic registered depth/colour pair.

    Creates:
    - A plane tilted around the vertical axis (depth 2.5-3.5 m)
    - A box 1.2 m from the camera in the image centre
    - A band of missing depth (zeros) along the top rows
    - A patch beyond the 10 m sensor range

    Parameters
    ----------
    width, height : int
        Image size in pixels.
    plane_distance : float
        Distance of the plane centre in metres.

    Returns
    -------
    tuple
        (depth in uint16 millimetres, BGR uint8 colour image)
    """
    print("Creating synthetic RGB-D pair...")
    cols = np.arange(width)[None, :].repeat(height, axis=0)
    rows = np.arange(height)[:, None].repeat(width, axis=1)

    depth_m = plane_distance + (cols - width / 2) / width
    box = (np.abs(cols - width / 2) < width / 8) & (np.abs(rows - height / 2) < height / 8)
    depth_m[box] = 1.2
    depth_m[: height // 20] = 0.0
    depth_m[-height // 10:, -width // 10:] = 12.0

    depth = np.round(depth_m * 1000.0).astype(np.uint16)

    color = np.zeros((height, width, 3), dtype=np.uint8)
    color[..., 0] = (255 * rows / height).astype(np.uint8)   # blue gradient
    color[..., 1] = (255 * cols / width).astype(np.uint8)    # green gradient
    color[box] = (0, 0, 220)                                  # red box (BGR)

    print(f"  - Missing depth pixels: {np.count_nonzero(depth == 0):,}")
    print(f"  - Out of range pixels: {np.count_nonzero(depth > 10000):,}")
    return depth, color


def main():
    """Run demo pipeline."""
    print("="*70)
    print("RGB-D to Point Cloud - Demo")
    print("="*70)
    print()

    output_dir = Path("output/demo_rgbd")
    output_dir.mkdir(parents=True, exist_ok=True)

    depth, color = create_synthetic_rgbd()
    depth_path = output_dir / "depth_0.png"
    color_path = output_dir / "color_0.png"
    save_depth_image(depth_path, depth)
    save_color_image(color_path, color)

    intrinsics = CameraIntrinsics(fx=525.0, fy=525.0, cx=319.5, cy=239.5)
    # colour camera 2.5 cm to the side of the depth camera
    extrinsic = Extrinsic(translation=[-0.025, 0.0, 0.0])

    pipeline = RGBDPipeline(
        output_dir=output_dir,
        depth_intrinsics=intrinsics,
        color_intrinsics=intrinsics,
        extrinsic=extrinsic,
        config=ConversionConfig(workers=4),
    )
    summary = pipeline.run(depth_path, color_path, name="demo")

    print()
    print("="*70)
    print("Demo Complete!")
    print("="*70)
    print(f"Depth pixels:   {summary['depth_pixels']:,}")
    print(f"Valid depth:    {summary['valid_depth_pixels']:,}")
    print(f"Output points:  {summary['output_points']:,}")
    print(f"Point cloud:    {summary['output']}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
