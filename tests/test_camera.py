"""Unit tests for the thin-lens camera.

Tests cover:
- Derived image height and parameter validation
- Orthonormal basis and viewport geometry
- Jittered primary rays through the pixel footprint
- Defocus disk sampling
"""

import math

import numpy as np
import pytest
import taichi as ti


def _make_camera(**overrides):
    from src.pathtracer.camera.thin_lens import Camera

    params = dict(
        aspect_ratio=1.0,
        image_width=2,
        samples_per_pixel=1,
        max_depth=1,
        vfov=90.0,
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        defocus_angle=0.0,
        focus_dist=1.0,
    )
    params.update(overrides)
    return Camera(**params)


def _sample_rays(camera, i, j, n):
    from src.pathtracer.camera.thin_lens import get_ray, setup_camera

    setup_camera(camera)
    origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

    @ti.kernel
    def test_kernel(pi: ti.i32, pj: ti.i32):
        for _ in range(1):
            for k in range(n):
                ray = get_ray(pi, pj, 0)
                origins[k] = ray.origin
                directions[k] = ray.direction

    test_kernel(i, j)
    return origins.to_numpy(), directions.to_numpy()


class TestCameraConstruction:
    """Tests for Camera derived state."""

    @pytest.mark.parametrize(
        "width, aspect, expected",
        [(640, 16.0 / 9.0, 360), (400, 16.0 / 9.0, 225), (1, 10.0, 1), (100, 1.0, 100)],
    )
    def test_image_height(self, width, aspect, expected):
        """Test height is width / aspect truncated, at least 1."""
        camera = _make_camera(image_width=width, aspect_ratio=aspect)
        assert camera.image_height == expected

    @pytest.mark.parametrize(
        "overrides",
        [
            {"image_width": 0},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
            {"aspect_ratio": 0.0},
            {"focus_dist": 0.0},
        ],
    )
    def test_invalid_parameters(self, overrides):
        """Test invalid parameters raise ValueError."""
        with pytest.raises(ValueError):
            _make_camera(**overrides)

    def test_zero_depth_allowed(self):
        """Test max_depth == 0 is a valid (all black) configuration."""
        assert _make_camera(max_depth=0).max_depth == 0

    def test_basis_is_orthonormal(self):
        """Test u, v, w form a right-handed orthonormal basis."""
        camera = _make_camera(lookfrom=(13.0, 2.0, 3.0), lookat=(0.0, 0.0, 0.0))
        basis = np.stack([camera.u, camera.v, camera.w])
        np.testing.assert_allclose(basis @ basis.T, np.eye(3), atol=1e-12)
        np.testing.assert_allclose(np.cross(camera.u, camera.v), camera.w, atol=1e-12)
        # w points from the target back toward the eye
        assert np.dot(camera.w, np.array([13.0, 2.0, 3.0])) > 0.0

    def test_viewport_geometry(self):
        """Test pixel grid for a 2x2, 90 degree camera looking down -z."""
        camera = _make_camera()
        np.testing.assert_allclose(camera.pixel_delta_u, [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(camera.pixel_delta_v, [0.0, -1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(camera.pixel00_loc, [-0.5, 0.5, -1.0], atol=1e-12)
        np.testing.assert_allclose(camera.defocus_disk_u, 0.0, atol=1e-12)

    def test_defocus_radius(self):
        """Test the defocus disk radius is focus_dist * tan(angle / 2)."""
        camera = _make_camera(defocus_angle=10.0, focus_dist=4.0)
        expected = 4.0 * math.tan(math.radians(5.0))
        assert abs(np.linalg.norm(camera.defocus_disk_u) - expected) < 1e-12
        assert abs(np.linalg.norm(camera.defocus_disk_v) - expected) < 1e-12

    def test_setup_camera_uploads_state(self):
        """Test setup_camera writes the derived vectors to fields."""
        from src.pathtracer.camera.thin_lens import get_camera_info, setup_camera

        camera = _make_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(1.0, 2.0, 0.0))
        setup_camera(camera)
        info = get_camera_info()
        np.testing.assert_allclose(info["center"], [1.0, 2.0, 3.0], atol=1e-6)
        np.testing.assert_allclose(info["pixel00_loc"], camera.pixel00_loc, atol=1e-5)


class TestGetRay:
    """Tests for get_ray and defocus sampling."""

    def test_pinhole_rays_start_at_center(self):
        """Test defocus_angle <= 0 uses the camera center as origin."""
        origins, _ = _sample_rays(_make_camera(), 0, 0, 64)
        np.testing.assert_allclose(origins, 0.0, atol=1e-7)

    def test_jitter_stays_in_pixel(self):
        """Test jittered targets stay within the pixel footprint."""
        origins, directions = _sample_rays(_make_camera(), 0, 0, 500)
        targets = origins + directions
        assert (targets[:, 0] >= -1.0 - 1e-6).all()
        assert (targets[:, 0] <= 0.0 + 1e-6).all()
        assert (targets[:, 1] >= 0.0 - 1e-6).all()
        assert (targets[:, 1] <= 1.0 + 1e-6).all()
        np.testing.assert_allclose(targets[:, 2], -1.0, atol=1e-6)
        # Jitter actually varies the sample
        assert targets[:, 0].std() > 0.1

    def test_pixel_rows_grow_downward(self):
        """Test row j = 1 lies below row j = 0."""
        _, top = _sample_rays(_make_camera(), 1, 0, 200)
        _, bottom = _sample_rays(_make_camera(), 1, 1, 200)
        assert top[:, 1].mean() > 0.0 > bottom[:, 1].mean()

    def test_defocus_origins_on_lens(self):
        """Test defocused origins lie on the lens disk around the center."""
        camera = _make_camera(defocus_angle=20.0, focus_dist=2.0)
        origins, directions = _sample_rays(camera, 0, 0, 500)
        radius = 2.0 * math.tan(math.radians(10.0))

        np.testing.assert_allclose(origins[:, 2], 0.0, atol=1e-6)
        assert (np.linalg.norm(origins[:, :2], axis=1) < radius + 1e-6).all()
        assert origins[:, 0].std() > 0.01
        # Rays still pass through the focus plane
        targets = origins + directions
        np.testing.assert_allclose(targets[:, 2], -2.0, atol=1e-5)

    def test_defocus_disk_sample(self):
        """Test defocus_disk_sample stays within the disk radius."""
        from src.pathtracer.camera.thin_lens import defocus_disk_sample, setup_camera

        camera = _make_camera(defocus_angle=90.0, focus_dist=1.0)
        setup_camera(camera)
        n = 500
        samples = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                for k in range(n):
                    samples[k] = defocus_disk_sample(0)

        test_kernel()
        points = samples.to_numpy()
        assert (np.linalg.norm(points, axis=1) < 1.0 + 1e-6).all()
