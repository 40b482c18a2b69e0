"""Unit tests for depth to point cloud conversion."""

import threading

import numpy as np
import pytest

from src.camera import CameraIntrinsics, Extrinsic
from src.mapping import (
    ConversionCancelled,
    ConversionConfig,
    Point3DRGB,
    convert,
    depth_to_pointcloud,
    pixel_to_point,
)


def make_color(height, width, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class TestDepthToPointCloud:
    """Test suite for depth_to_pointcloud and convert."""

    def test_two_by_two_scenario(self):
        """Test the 2x2 image with missing and out-of-range depth."""
        depth = np.array([[1000, 0], [11000, 500]], dtype=np.uint16)
        color = make_color(2, 2)
        intr = CameraIntrinsics(fx=500.0, fy=500.0, cx=0.5, cy=0.5)

        points = convert(depth, color, intr, intr)

        # Only the 1 m and 0.5 m pixels survive
        assert len(points) == 2
        assert all(isinstance(p, Point3DRGB) for p in points)

        first, second = points
        assert first.x == pytest.approx((0 - 0.5) * 1.0 / 500.0, abs=1e-4)
        assert first.y == pytest.approx((0 - 0.5) * 1.0 / 500.0, abs=1e-4)
        assert first.z == pytest.approx(1.0, abs=1e-4)
        assert second.x == pytest.approx((1 - 0.5) * 0.5 / 500.0, abs=1e-4)
        assert second.y == pytest.approx((1 - 0.5) * 0.5 / 500.0, abs=1e-4)
        assert second.z == pytest.approx(0.5, abs=1e-4)

        # Colours come from the pixel each point was derived from
        assert (first.r, first.g, first.b) == pytest.approx(tuple(color[0, 0, ::-1] / 255.0))
        assert (second.r, second.g, second.b) == pytest.approx(tuple(color[1, 1, ::-1] / 255.0))

    def test_invalid_depth_is_filtered(self):
        """Test that zero and beyond-range depth never produce points."""
        depth = np.array([[0, 10000, 10001, 65535]], dtype=np.uint16)
        color = make_color(1, 4)
        intr = CameraIntrinsics(500.0, 500.0, 2.0, 0.0)

        cloud = depth_to_pointcloud(depth, color, intr, intr)

        # 10.0 m is inclusive, 10.001 m is not
        assert len(cloud) == 1
        assert cloud.pixels.tolist() == [[0, 1]]
        assert cloud.xyz[0, 2] == pytest.approx(10.0)

    def test_points_behind_color_camera_are_skipped(self):
        """Test that points with z <= 0 in the colour frame are dropped."""
        depth = np.array([[1000, 2000, 3000]], dtype=np.uint16)
        color = make_color(1, 3)
        intr = CameraIntrinsics(500.0, 500.0, 1.0, 0.0)
        extrinsic = Extrinsic(translation=[0.0, 0.0, -2.0])

        cloud = depth_to_pointcloud(depth, color, intr, intr, extrinsic=extrinsic)

        # z_c = -1, 0 and 1: only the last is in front of the camera
        assert len(cloud) == 1
        assert cloud.pixels.tolist() == [[0, 2]]
        assert cloud.xyz[0, 2] == pytest.approx(1.0)

    def test_output_length_and_order(self):
        """Test that output follows row-major order of valid pixels."""
        rng = np.random.default_rng(1)
        depth = rng.integers(0, 12000, size=(20, 30)).astype(np.uint16)
        depth[rng.random((20, 30)) < 0.2] = 0
        color = make_color(20, 30)
        intr = CameraIntrinsics(300.0, 300.0, 14.7, 9.3)

        cloud = depth_to_pointcloud(depth, color, intr, intr)

        meters = depth / 1000.0
        expected = np.argwhere((meters > 0) & (meters <= 10.0))
        assert len(cloud) == len(expected)
        assert np.array_equal(cloud.pixels, expected)

    def test_identity_round_trip_recovers_pixel(self):
        """Test that back- then forward-projection returns the source pixel."""
        rng = np.random.default_rng(2)
        depth = rng.integers(300, 9000, size=(15, 25)).astype(np.uint16)
        rows, cols = np.indices(depth.shape)
        # Encode the pixel position in the colour image
        color = np.zeros((15, 25, 3), dtype=np.uint8)
        color[..., 2] = rows * 10
        color[..., 1] = cols * 10
        intr = CameraIntrinsics(412.3, 398.1, 12.2, 7.1)

        cloud = depth_to_pointcloud(depth, color, intr, intr)

        assert len(cloud) == depth.size
        assert np.allclose(cloud.rgb[:, 0] * 255.0, cloud.pixels[:, 0] * 10)
        assert np.allclose(cloud.rgb[:, 1] * 255.0, cloud.pixels[:, 1] * 10)

    def test_channel_reordering(self):
        """Test BGR to RGB conversion and normalisation."""
        depth = np.array([[1000]], dtype=np.uint16)
        color = np.array([[[10, 20, 30]]], dtype=np.uint8)
        intr = CameraIntrinsics(500.0, 500.0, 0.0, 0.0)

        (point,) = convert(depth, color, intr, intr)

        assert point.r == pytest.approx(30 / 255)
        assert point.g == pytest.approx(20 / 255)
        assert point.b == pytest.approx(10 / 255)

    def test_out_of_bounds_clamped_to_edge(self):
        """Test that a projection at u = -5 takes the colour of column 0."""
        depth = np.array([[1000]], dtype=np.uint16)
        color = np.zeros((2, 4, 3), dtype=np.uint8)
        color[0, 0] = (1, 2, 3)
        depth_intr = CameraIntrinsics(500.0, 500.0, 0.0, 0.0)
        color_intr = CameraIntrinsics(500.0, 500.0, -5.0, 0.0)

        points = convert(depth, color, depth_intr, color_intr)

        assert len(points) == 1
        assert (points[0].r, points[0].g, points[0].b) == pytest.approx((3 / 255, 2 / 255, 1 / 255))

    def test_out_of_bounds_drop_policy(self):
        """Test that the drop policy excludes points outside the colour image."""
        depth = np.array([[1000, 1000]], dtype=np.uint16)
        color = make_color(1, 4)
        depth_intr = CameraIntrinsics(500.0, 500.0, 0.0, 0.0)
        color_intr = CameraIntrinsics(500.0, 500.0, -5.0, 0.0)
        config = ConversionConfig(out_of_bounds="drop")

        cloud = depth_to_pointcloud(depth, color, depth_intr, color_intr, config=config)

        # Both pixels project to u = j - 5 < 0
        assert len(cloud) == 0

        shifted = CameraIntrinsics(500.0, 500.0, 2.0, 0.0)
        cloud = depth_to_pointcloud(depth, color, depth_intr, shifted, config=config)
        assert cloud.pixels.tolist() == [[0, 0], [0, 1]]

    def test_different_resolutions(self):
        """Test depth and colour images with different sizes."""
        depth = np.full((4, 6), 2000, dtype=np.uint16)
        color = make_color(8, 12)
        depth_intr = CameraIntrinsics(100.0, 100.0, 2.5, 1.5)
        color_intr = CameraIntrinsics(200.0, 200.0, 5.5, 3.5)

        cloud = depth_to_pointcloud(depth, color, depth_intr, color_intr)

        assert len(cloud) == depth.size
        assert np.all((cloud.rgb >= 0.0) & (cloud.rgb <= 1.0))

    def test_extrinsic_translation_moves_points(self):
        """Test that output coordinates are in the colour camera frame."""
        depth = np.array([[2000]], dtype=np.uint16)
        color = make_color(1, 1)
        intr = CameraIntrinsics(500.0, 500.0, 0.0, 0.0)
        extrinsic = Extrinsic(translation=[0.1, -0.2, 0.5])

        (point,) = convert(depth, color, intr, intr, extrinsic=extrinsic)

        assert (point.x, point.y, point.z) == pytest.approx((0.1, -0.2, 2.5))

    def test_custom_depth_scale_and_range(self):
        """Test overriding the sensor encoding and range."""
        depth = np.array([[100, 600]], dtype=np.uint16)
        color = make_color(1, 2)
        intr = CameraIntrinsics(500.0, 500.0, 0.0, 0.0)
        config = ConversionConfig(depth_scale=100.0, max_depth=5.0)

        cloud = depth_to_pointcloud(depth, color, intr, intr, config=config)

        # 1 m kept, 6 m beyond max_depth
        assert len(cloud) == 1
        assert cloud.xyz[0, 2] == pytest.approx(1.0)

    def test_workers_do_not_change_result(self):
        """Test that threaded conversion matches sequential conversion."""
        rng = np.random.default_rng(3)
        depth = rng.integers(0, 11000, size=(53, 41)).astype(np.uint16)
        color = make_color(60, 50)
        intr = CameraIntrinsics(250.0, 260.0, 20.0, 26.0)

        sequential = depth_to_pointcloud(depth, color, intr, intr)
        threaded = depth_to_pointcloud(
            depth, color, intr, intr, config=ConversionConfig(workers=4, rows_per_chunk=5)
        )

        assert np.array_equal(sequential.pixels, threaded.pixels)
        assert np.array_equal(sequential.xyz, threaded.xyz)
        assert np.array_equal(sequential.rgb, threaded.rgb)

    def test_cancellation(self):
        """Test that a set cancel event stops the conversion."""
        depth = np.full((10, 10), 1000, dtype=np.uint16)
        color = make_color(10, 10)
        intr = CameraIntrinsics(100.0, 100.0, 5.0, 5.0)
        event = threading.Event()
        event.set()

        with pytest.raises(ConversionCancelled):
            depth_to_pointcloud(depth, color, intr, intr, cancel_event=event)

    def test_invalid_image_shapes(self):
        """Test shape validation of the input images."""
        intr = CameraIntrinsics(100.0, 100.0, 0.0, 0.0)
        with pytest.raises(ValueError):
            depth_to_pointcloud(np.zeros((2, 2, 1)), make_color(2, 2), intr, intr)
        with pytest.raises(ValueError):
            depth_to_pointcloud(np.zeros((2, 2)), np.zeros((2, 2), dtype=np.uint8), intr, intr)
        with pytest.raises(ValueError):
            depth_to_pointcloud(np.zeros((2, 2)), np.zeros((0, 0, 3), dtype=np.uint8), intr, intr)

    def test_zero_focal_length_does_not_crash(self):
        """Test that degenerate intrinsics yield output instead of errors."""
        depth = np.full((3, 3), 1000, dtype=np.uint16)
        color = make_color(3, 3)
        bad = CameraIntrinsics(0.0, 0.0, 1.0, 1.0)
        good = CameraIntrinsics(100.0, 100.0, 1.0, 1.0)

        cloud = depth_to_pointcloud(depth, color, bad, good)

        assert len(cloud) <= depth.size


class TestPixelToPoint:
    """Test suite for the single-pixel pipeline."""

    def test_matches_vectorised_conversion(self):
        """Test that the per-pixel path agrees with the image path."""
        rng = np.random.default_rng(4)
        depth = rng.integers(0, 12000, size=(6, 7)).astype(np.uint16)
        color = make_color(5, 9)
        depth_intr = CameraIntrinsics(80.0, 82.0, 3.1, 2.4)
        color_intr = CameraIntrinsics(90.0, 91.0, 4.2, 2.2)
        angle = 0.05
        rotation = np.array([
            [np.cos(angle), 0.0, np.sin(angle)],
            [0.0, 1.0, 0.0],
            [-np.sin(angle), 0.0, np.cos(angle)],
        ])
        extrinsic = Extrinsic(rotation=rotation, translation=[0.02, 0.0, 0.01])

        expected = convert(depth, color, depth_intr, color_intr, extrinsic=extrinsic)
        actual = []
        for i in range(depth.shape[0]):
            for j in range(depth.shape[1]):
                point = pixel_to_point(
                    i, j, depth[i, j], color, depth_intr, color_intr, extrinsic=extrinsic
                )
                if point is not None:
                    actual.append(point)

        assert len(actual) == len(expected)
        for a, e in zip(actual, expected):
            assert a == pytest.approx(e)

    def test_skipped_pixel_returns_none(self):
        """Test that an invalid pixel yields None rather than an exception."""
        color = make_color(2, 2)
        intr = CameraIntrinsics(100.0, 100.0, 0.0, 0.0)

        assert pixel_to_point(0, 0, 0, color, intr, intr) is None
        assert pixel_to_point(0, 0, 20000, color, intr, intr) is None
        behind = Extrinsic(translation=[0.0, 0.0, -5.0])
        assert pixel_to_point(1, 1, 1000, color, intr, intr, extrinsic=behind) is None

    def test_invalid_color_image(self):
        """Test that a colour image without three channels raises ValueError."""
        intr = CameraIntrinsics(100.0, 100.0, 0.0, 0.0)

        with pytest.raises(ValueError):
            pixel_to_point(0, 0, 1000, np.zeros((2, 2), dtype=np.uint8), intr, intr)
        with pytest.raises(ValueError):
            pixel_to_point(0, 0, 1000, np.zeros((0, 2, 3), dtype=np.uint8), intr, intr)
