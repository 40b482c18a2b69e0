"""RGB-D to point cloud pipeline.

This module wires the image loaders, the depth-to-point-cloud
conversion and the PLY writer into a single workflow, and exposes it
on the command line.  It also reports how many depth pixels were
filtered, which the conversion itself does not track.

Usage:
    python -m src.pipeline --depth depth_0.png --color color_0.png --output out/
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import yaml
from tqdm import tqdm

from src.camera import CameraIntrinsics, Extrinsic
from src.common.ply_io import write_ply
from src.common.rgbd_io import load_color_image, load_depth_image
from src.mapping import ConversionConfig, PointCloud, depth_to_pointcloud
from src.utils.config import (
    DEFAULT_CONFIG,
    cameras_from_config,
    conversion_from_config,
    load_config,
)
from src.utils.logging import get_logger, set_verbosity

logger = get_logger(__name__)


class RGBDPipeline:
    """Convert registered depth/colour image pairs to PLY point clouds."""

    def __init__(
        self,
        output_dir: Path,
        depth_intrinsics: CameraIntrinsics,
        color_intrinsics: CameraIntrinsics,
        extrinsic: Optional[Extrinsic] = None,
        config: Optional[ConversionConfig] = None,
    ):
        """Initialize the pipeline.

        Parameters
        ----------
        output_dir : Path
            Directory for the PLY files.
        depth_intrinsics, color_intrinsics : CameraIntrinsics
            Pinhole parameters of the two cameras.
        extrinsic : Extrinsic, optional
            Depth-to-colour transform (identity if omitted).
        config : ConversionConfig, optional
            Conversion settings.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.depth_intrinsics = depth_intrinsics
        self.color_intrinsics = color_intrinsics
        self.extrinsic = extrinsic or Extrinsic.identity()
        self.config = config or ConversionConfig()

        if not self.extrinsic.is_orthonormal():
            logger.warning("Extrinsic rotation is not orthonormal; geometry will be distorted")

    @classmethod
    def from_config(cls, output_dir: Path, cfg: Dict, **overrides) -> "RGBDPipeline":
        """Create a pipeline from a parsed YAML configuration."""
        depth, color, extrinsic = cameras_from_config(cfg)
        return cls(
            output_dir,
            depth,
            color,
            extrinsic=extrinsic,
            config=conversion_from_config(cfg, overrides),
        )

    def step_1_load_images(self, depth_path: Path, color_path: Path) -> Tuple[np.ndarray, np.ndarray]:
        depth = load_depth_image(depth_path)
        color = load_color_image(color_path)
        logger.info(
            "Loaded depth %dx%d (%s) and color %dx%d",
            depth.shape[1], depth.shape[0], depth.dtype, color.shape[1], color.shape[0],
        )
        if depth.shape[:2] != color.shape[:2]:
            logger.info("Depth and color resolutions differ; colors are sampled by projection")
        return depth, color

    def step_2_convert(self, depth: np.ndarray, color: np.ndarray) -> PointCloud:
        return depth_to_pointcloud(
            depth,
            color,
            self.depth_intrinsics,
            self.color_intrinsics,
            extrinsic=self.extrinsic,
            config=self.config,
        )

    def step_3_export(self, cloud: PointCloud, name: str) -> Path:
        path = write_ply(self.output_dir / f"{name}.ply", cloud)
        logger.info("Point cloud saved to %s", path)
        return path

    def count_valid_depth(self, depth: np.ndarray) -> int:
        """Number of depth pixels inside the configured sensor range."""
        meters = depth.astype(float) / self.config.depth_scale
        return int(np.count_nonzero(self.config.is_valid_depth(meters)))

    def run(self, depth_path: Path, color_path: Path, name: Optional[str] = None) -> Dict:
        """Convert one image pair and write ``<name>.ply``.

        Returns
        -------
        dict
            Summary with pixel and point counts and the output path.
        """
        name = name or Path(depth_path).stem
        depth, color = self.step_1_load_images(depth_path, color_path)
        cloud = self.step_2_convert(depth, color)
        path = self.step_3_export(cloud, name)

        valid_depth = self.count_valid_depth(depth)
        summary = {
            "depth_pixels": int(depth.size),
            "valid_depth_pixels": valid_depth,
            "output_points": len(cloud),
            "skipped_pixels": int(depth.size) - len(cloud),
            "output": str(path),
        }
        logger.info(
            "Generated point cloud with %d points (%d of %d depth pixels in range)",
            summary["output_points"], valid_depth, summary["depth_pixels"],
        )
        return summary

    def run_batch(self, pairs: Iterable[Tuple[Path, Path]]) -> List[Dict]:
        """Convert several (depth, color) pairs; output names follow the depth files."""
        pairs = list(pairs)
        return [self.run(d, c) for d, c in tqdm(pairs, desc="RGB-D pairs")]


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        description="Convert registered depth and color images to a colored PLY point cloud"
    )
    parser.add_argument(
        "--depth",
        type=str,
        nargs="+",
        required=True,
        help="Depth image(s), 16-bit, millimetres"
    )
    parser.add_argument(
        "--color",
        type=str,
        nargs="+",
        required=True,
        help="Color image(s), one per depth image"
    )
    parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Output directory"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG),
        help="YAML file with intrinsics, extrinsic and conversion settings"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of conversion threads"
    )
    parser.add_argument(
        "--max-depth",
        type=float,
        default=None,
        help="Maximum valid depth in metres (default: 10)"
    )
    parser.add_argument(
        "--out-of-bounds",
        choices=["clamp", "drop"],
        default=None,
        help="Handling of points projecting outside the color image"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug messages"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log warnings and errors"
    )

    args = parser.parse_args(argv)
    set_verbosity(verbose=args.verbose, quiet=args.quiet)

    if len(args.depth) != len(args.color):
        logger.error("Got %d depth images but %d color images", len(args.depth), len(args.color))
        return 1

    try:
        cfg = load_config(args.config)
        pipeline = RGBDPipeline.from_config(
            args.output,
            cfg,
            workers=args.workers,
            max_depth=args.max_depth,
            out_of_bounds=args.out_of_bounds,
        )
        pipeline.run_batch(zip(args.depth, args.color))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
