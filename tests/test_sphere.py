"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Sphere entirely behind the ray origin
- Interval bounds on accepted roots
"""

import pytest
import taichi as ti


def _run_hit(origin, direction, center, radius, t_min=0.001, t_max=1e30):
    """Intersect one ray with one sphere and read the record back."""
    from src.pathtracer.core.interval import Interval
    from src.pathtracer.core.ray import make_ray, vec3
    from src.pathtracer.geometry.sphere import hit_sphere, make_sphere

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32,
        dx: ti.f32, dy: ti.f32, dz: ti.f32,
        cx: ti.f32, cy: ti.f32, cz: ti.f32,
        r: ti.f32, lo: ti.f32, hi: ti.f32,
    ):
        ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz))
        sphere = make_sphere(vec3(cx, cy, cz), r, 7)
        record = hit_sphere(ray, sphere, Interval(min=lo, max=hi))
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face
        material_id[None] = record.material_id

    test_kernel(*origin, *direction, *center, radius, t_min, t_max)
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": point[None],
        "normal": normal[None],
        "front_face": front_face[None],
        "material_id": material_id[None],
    }


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from src.pathtracer.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())
        material_result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5, 4)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius
            material_result[None] = sphere.material_id

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6
        assert material_result[None] == 4


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    @pytest.mark.parametrize("radius", [0.5, 1.0, 3.0])
    def test_axis_hit_from_outside(self, radius):
        """Test a ray from (0,0,-2r) toward the origin hits at t = r."""
        rec = _run_hit((0.0, 0.0, -2.0 * radius), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), radius)

        assert rec["hit"] == 1
        assert abs(rec["t"] - radius) < 1e-5 * max(radius, 1.0)
        n = rec["normal"]
        assert abs(n[0]) < 1e-5
        assert abs(n[1]) < 1e-5
        assert abs(n[2] + 1.0) < 1e-5
        assert rec["front_face"] == 1
        assert rec["material_id"] == 7

    def test_unnormalized_direction(self):
        """Test t scales with the direction length."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -2.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 2.0) < 1e-5
        p = rec["point"]
        assert abs(p[2] - 1.0) < 1e-5

    def test_miss(self):
        """Test ray missing sphere entirely."""
        rec = _run_hit((5.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_sphere_behind_origin(self):
        """Test a ray pointing away from a sphere it has already passed."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, -3.0), 1.0)
        assert rec["hit"] == 0

    def test_inside_hits_back_face(self):
        """Test ray starting inside the sphere hits the far side."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)

        assert rec["hit"] == 1
        assert abs(rec["t"] - 1.0) < 1e-5
        # Normal faces back toward the ray origin
        n = rec["normal"]
        assert abs(n[2] + 1.0) < 1e-5
        assert rec["front_face"] == 0

    def test_roots_outside_interval(self):
        """Test both roots beyond t_max produce a miss."""
        rec = _run_hit(
            (0.0, 0.0, -10.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0, t_min=0.001, t_max=5.0
        )
        assert rec["hit"] == 0

    def test_near_root_excluded_uses_far_root(self):
        """Test the far root is used when the near one is below t_min."""
        rec = _run_hit(
            (0.0, 0.0, -2.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0, t_min=1.5, t_max=10.0
        )
        assert rec["hit"] == 1
        assert abs(rec["t"] - 3.0) < 1e-5
        assert rec["front_face"] == 0
