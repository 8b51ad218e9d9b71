"""Integration tests for end-to-end rendering.

Tests cover:
- A camera enclosed by a light renders its colour in every pixel
- Argument validation in render()
- Progress reporting and logging across kernel launches
- Camera, scene and integrator device functions in one kernel
- Reproducibility by seed
- Demo scene construction and a tiny demo render
"""

import dataclasses

import numpy as np
import pytest


def _enclosure_camera(width=16, samples=3, depth=1):
    from src.pathtracer.camera.thin_lens import Camera

    return Camera(
        aspect_ratio=16.0 / 9.0,
        image_width=width,
        samples_per_pixel=samples,
        max_depth=depth,
        vfov=90.0,
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        defocus_angle=0.0,
        focus_dist=1.0,
    )


def _small_world():
    from src.pathtracer.camera.thin_lens import Camera
    from src.pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 999.5, (0.5, 0.5, 0.5))
    scene.add_metal_sphere((-1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), 0.3)
    scene.add_dielectric_sphere((0.0, 0.0, -1.0), 0.5, 1.5)
    scene.add_lambertian_sphere((1.0, 0.0, -1.0), 0.5, (0.1, 0.2, 0.5))

    camera = Camera(
        aspect_ratio=2.0,
        image_width=24,
        samples_per_pixel=4,
        max_depth=6,
        vfov=60.0,
        lookfrom=(0.0, 0.5, 2.0),
        lookat=(0.0, 0.0, -1.0),
        defocus_angle=0.6,
        focus_dist=3.0,
    )
    return scene, camera


class TestDeviceFunctions:
    """Device functions of the camera, scene and integrator modules compile together."""

    def test_kernel_uses_camera_scene_and_integrator_funcs(self):
        """Test get_ray, get_material_type and ray_colour run in one kernel."""
        import taichi as ti

        from src.pathtracer.camera.thin_lens import get_ray, setup_camera
        from src.pathtracer.core.integrator import ray_colour
        from src.pathtracer.scene.manager import MaterialType, SceneManager, get_material_type

        scene = SceneManager()
        _, light = scene.add_emissive_sphere((0.0, 0.0, 0.0), 50.0, (0.25, 0.5, 0.75))
        setup_camera(_enclosure_camera())

        colour = ti.Vector.field(3, dtype=ti.f32, shape=())
        mat_type = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def trace(handle: ti.i32):
            ray = get_ray(0, 0, 0)
            colour[None] = ray_colour(ray, 4, 0)
            mat_type[None] = get_material_type(handle)

        trace(light)
        np.testing.assert_allclose(colour[None].to_numpy(), [0.25, 0.5, 0.75], atol=1e-6)
        assert mat_type[None] == int(MaterialType.EMISSIVE)


class TestEmissiveEnclosure:
    """A large light surrounding the camera fills the frame."""

    @pytest.mark.parametrize("workers", [1, 4, 32])
    def test_every_pixel_is_light_colour(self, workers):
        """Test every pixel equals the gamma-encoded light colour."""
        from src.pathtracer.core.integrator import render
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_emissive_sphere((0.0, 0.0, 0.0), 10.0, (0.25, 0.64, 1.0))
        camera = _enclosure_camera()

        pixels = render(camera, scene, workers, seed=1)

        assert pixels.shape == (9, 16, 3)
        assert pixels.dtype == np.uint8
        expected = np.broadcast_to(np.array([127, 204, 255], dtype=np.uint8), pixels.shape)
        np.testing.assert_array_equal(pixels, expected)

    def test_independent_of_sample_count(self):
        """Test the light colour does not depend on samples per pixel."""
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_emissive_sphere((0.0, 0.0, 0.0), 10.0, (0.25, 0.64, 1.0))

        one = _enclosure_camera(samples=1).render(scene, 2, seed=0)
        many = _enclosure_camera(samples=7).render(scene, 2, seed=0)
        np.testing.assert_array_equal(one, many)

    def test_zero_depth_renders_black(self):
        """Test max_depth == 0 produces an all-black image."""
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_emissive_sphere((0.0, 0.0, 0.0), 10.0, (1.0, 1.0, 1.0))

        pixels = _enclosure_camera(depth=0).render(scene, 3, seed=0)
        assert (pixels == 0).all()


class TestRenderArguments:
    """Tests for render() validation and reporting."""

    @pytest.mark.parametrize("workers", [0, -1, 1025])
    def test_invalid_worker_count(self, workers):
        """Test worker_count outside [1, MAX_WORKERS] raises ValueError."""
        from src.pathtracer.core.integrator import render
        from src.pathtracer.scene.manager import SceneManager

        with pytest.raises(ValueError):
            render(_enclosure_camera(), SceneManager(), workers)

    def test_image_too_large(self):
        """Test images beyond the preallocated buffer raise ValueError."""
        from src.pathtracer.core.integrator import MAX_IMAGE_WIDTH, render
        from src.pathtracer.scene.manager import SceneManager

        camera = _enclosure_camera(width=MAX_IMAGE_WIDTH + 1)
        with pytest.raises(ValueError):
            render(camera, SceneManager(), 4)

    def test_progress_reports_every_launch(self):
        """Test progress is called once per launch and ends at the row count."""
        from src.pathtracer.core.integrator import render
        from src.pathtracer.scene.manager import SceneManager

        calls = []
        render(
            _enclosure_camera(),
            SceneManager(),
            4,
            seed=0,
            progress=lambda done, total: calls.append((done, total)),
        )

        # 9 rows over 4 workers: chunks of 3 rows, so 3 launches
        assert len(calls) == 3
        assert all(total == 9 for _, total in calls)
        done = [d for d, _ in calls]
        assert done == sorted(done)
        assert done[-1] == 9

    def test_progress_log_names_launch_step(self, caplog):
        """Test each launch logs its 1-based step and the rows finished so far."""
        import logging

        from src.pathtracer.core.integrator import render
        from src.pathtracer.scene.manager import SceneManager

        with caplog.at_level(logging.DEBUG, logger="src.pathtracer.core.integrator"):
            render(_enclosure_camera(), SceneManager(), 4, seed=0)

        steps = [
            r.getMessage()
            for r in caplog.records
            if r.name == "src.pathtracer.core.integrator" and r.levelno == logging.DEBUG
        ]
        assert steps == [
            "Step 1/3 complete, 3/9 rows",
            "Step 2/3 complete, 6/9 rows",
            "Step 3/3 complete, 9/9 rows",
        ]

    def test_empty_scene_renders_sky(self):
        """Test an empty scene shows the sky gradient, brighter blue on top."""
        from src.pathtracer.core.integrator import render
        from src.pathtracer.scene.manager import SceneManager

        pixels = render(_enclosure_camera(samples=2, depth=3), SceneManager(), 2, seed=0)
        top = pixels[0].astype(int)
        bottom = pixels[-1].astype(int)
        # Blue channel saturates everywhere; red drops toward the zenith
        assert (pixels[:, :, 2] == 255).all()
        assert top[:, 0].mean() < bottom[:, 0].mean()


class TestReproducibility:
    """Tests for seeded determinism."""

    def test_same_seed_same_image(self):
        """Test identical seed and worker count give identical bytes."""
        scene, camera = _small_world()

        first = camera.render(scene, 4, seed=123)
        second = camera.render(scene, 4, seed=123)
        np.testing.assert_array_equal(first, second)

    def test_different_seed_different_image(self):
        """Test a different seed changes the noise."""
        scene, camera = _small_world()

        first = camera.render(scene, 4, seed=1)
        second = camera.render(scene, 4, seed=2)
        assert not np.array_equal(first, second)


class TestDemoScene:
    """Tests for the demo scene factory."""

    def test_structure(self):
        """Test camera settings and the fixed large spheres."""
        from src.pathtracer.scene.demo import create_demo_scene
        from src.pathtracer.scene.manager import HittableList, MaterialType

        scene, camera = create_demo_scene(seed=3)

        assert camera.image_width == 640
        assert camera.image_height == 360
        assert camera.samples_per_pixel == 5
        assert camera.max_depth == 50

        # Every small sphere owns a material; six more for the large spheres
        grid = scene.world.objects[0]
        assert isinstance(grid, HittableList)
        assert 0 < len(grid) <= 21 * 21
        assert scene.get_sphere_count() == len(grid) + 6
        assert scene.get_material_count() == len(grid) + 6

        lantern = scene.world.objects[-1]
        assert [s.radius for s in lantern.spheres()] == [1.0, 0.9, 0.8]
        types = [scene.get_material_type_python(s.material_id) for s in lantern.spheres()]
        assert types == [MaterialType.DIELECTRIC, MaterialType.DIELECTRIC, MaterialType.EMISSIVE]

    def test_small_spheres_keep_clear_of_large_ones(self):
        """Test no grid sphere is within 0.9 of a large sphere's footprint."""
        from src.pathtracer.scene.demo import create_demo_scene

        scene, _ = create_demo_scene(seed=11)
        keep_out = np.array([(4.0, 0.2, 0.0), (0.0, 0.2, 0.0), (-4.0, 0.2, 0.0)])
        for sphere in scene.world.objects[0].spheres():
            distances = np.linalg.norm(keep_out - np.array(sphere.center), axis=1)
            assert (distances > 0.9).all()
            assert sphere.radius == 0.2

    def test_same_seed_same_layout(self):
        """Test the layout is reproducible by seed."""
        from src.pathtracer.scene.demo import create_demo_scene

        first, _ = create_demo_scene(seed=5)
        first_spheres = list(first.world.objects[0].spheres())
        second, _ = create_demo_scene(seed=5)
        second_spheres = list(second.world.objects[0].spheres())
        assert first_spheres == second_spheres

    def test_tiny_render(self):
        """Test the demo scene renders at a reduced size."""
        from src.pathtracer.scene.demo import create_demo_scene

        scene, camera = create_demo_scene(seed=0)
        camera = dataclasses.replace(camera, image_width=32, samples_per_pixel=1, max_depth=5)

        pixels = camera.render(scene, 16, seed=0)
        assert pixels.shape == (18, 32, 3)
        assert pixels.dtype == np.uint8
        assert pixels.any()
