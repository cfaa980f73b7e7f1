"""Tests for the bounce integrator.

This module tests the light accumulation rules through ``trace_ray``,
which runs the same device function the frame kernels use:
- Emission weighted by the cosine term
- Skybox and sun contributions for escaping rays
- Bounce limits
- Self-intersection strategies

Note: Imports are done inside test methods to avoid Taichi initialization issues.
"""

import math

import pytest

SQRT_HALF = math.sqrt(0.5)


def _emissive_sphere_scene(color):
    from tracelight.core.vector import Vector
    from tracelight.scene.objects import Material, SceneObject, Sphere
    from tracelight.scene.snapshot import SceneSnapshot

    lamp = Material(color=color, emits_light=True)
    return SceneSnapshot([SceneObject(Sphere(Vector(0.0, 0.0, 0.0), 1.0), material=lamp)])


def _floor_scene(color=None):
    """A large triangle in the y = 0 plane containing the origin (white by default)."""
    from tracelight.core.color import Color
    from tracelight.core.vector import Vector
    from tracelight.scene.objects import Material, SceneObject, Triangle
    from tracelight.scene.snapshot import SceneSnapshot

    floor = Triangle(
        (Vector(-10.0, 0.0, -10.0), Vector(10.0, 0.0, -10.0), Vector(0.0, 0.0, 10.0))
    )
    material = Material(color=color or Color.WHITE)
    return SceneSnapshot([SceneObject(floor, material=material)])


class TestDirectEmission:
    """Tests for hits on emissive surfaces."""

    def test_head_on_hit_returns_emission(self):
        from tracelight.config import RenderSettings
        from tracelight.core.color import Color
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        scene = _emissive_sphere_scene(Color(0.8, 0.4, 0.2))
        color = trace_ray(
            scene,
            Vector(-3.0, 0.0, 0.0),
            Vector.UNIT_X,
            Vector(0.0, -1.0, 0.0),
            RenderSettings(bounces=0),
        )
        assert color.r == pytest.approx(0.8, abs=1e-5)
        assert color.g == pytest.approx(0.4, abs=1e-5)
        assert color.b == pytest.approx(0.2, abs=1e-5)

    def test_oblique_hit_is_cosine_weighted(self):
        from tracelight.config import RenderSettings
        from tracelight.core.color import Color
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        scene = _emissive_sphere_scene(Color(0.8, 0.4, 0.2))
        # Ray along +x at height 0.5 hits where the normal is (-cos 30, sin 30, 0)
        color = trace_ray(
            scene,
            Vector(-3.0, 0.5, 0.0),
            Vector.UNIT_X,
            Vector(0.0, -1.0, 0.0),
            RenderSettings(bounces=0),
        )
        w = math.sqrt(0.75)
        assert color.r == pytest.approx(0.8 * w, abs=1e-5)
        assert color.g == pytest.approx(0.4 * w, abs=1e-5)
        assert color.b == pytest.approx(0.2 * w, abs=1e-5)

    def test_ambient_overrides_emitted_color(self):
        from tracelight.config import RenderSettings
        from tracelight.core.color import Color
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector
        from tracelight.scene.objects import Material, SceneObject, Sphere
        from tracelight.scene.snapshot import SceneSnapshot

        lamp = Material(color=Color.WHITE, ambient=Color(2.0, 3.0, 4.0), emits_light=True)
        scene = SceneSnapshot([SceneObject(Sphere(Vector.ZERO, 1.0), material=lamp)])
        color = trace_ray(
            scene, Vector(-3.0, 0.0, 0.0), Vector.UNIT_X, Vector(0.0, -1.0, 0.0),
            RenderSettings(bounces=0),
        )
        assert color.to_tuple() == pytest.approx((2.0, 3.0, 4.0), abs=1e-5)


class TestEscapingRays:
    """Tests for the skybox and sun terms."""

    def test_miss_returns_skybox_only(self):
        from tracelight.config import RenderSettings
        from tracelight.core.color import Color
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        scene = _emissive_sphere_scene(Color(0.8, 0.4, 0.2))
        # Sun shines straight along the ray, but no surface was hit first
        color = trace_ray(
            scene,
            Vector(-3.0, 5.0, 0.0),
            Vector.UNIT_X,
            Vector(-1.0, 0.0, 0.0),
            RenderSettings(bounces=0, skybox=0.4),
        )
        assert color.to_tuple() == pytest.approx((0.4, 0.4, 0.4), abs=1e-6)

    def test_sun_lights_a_bounced_ray(self):
        from tracelight.config import RenderSettings
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        # Hit the floor at 45 degrees; the mirrored ray leaves at 45 degrees up
        color = trace_ray(
            _floor_scene(),
            Vector(-1.0, 1.0, 0.0),
            Vector(1.0, -1.0, 0.0),
            Vector(0.0, -1.0, 0.0),
            RenderSettings(bounces=1, skybox=0.0),
        )
        # mask = w = sqrt(1/2); sun term = mask * dot(-sun, dir) = 1/2
        assert color.r == pytest.approx(0.5, abs=1e-5)
        assert color.g == pytest.approx(0.5, abs=1e-5)

    def test_sun_below_horizon_adds_nothing(self):
        from tracelight.config import RenderSettings
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        color = trace_ray(
            _floor_scene(),
            Vector(-1.0, 1.0, 0.0),
            Vector(1.0, -1.0, 0.0),
            Vector(0.0, 1.0, 0.0),
            RenderSettings(bounces=1, skybox=0.0),
        )
        assert color.to_tuple() == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)

    def test_skybox_is_masked_by_surface_color(self):
        from tracelight.config import RenderSettings
        from tracelight.core.color import Color
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        color = trace_ray(
            _floor_scene(Color(1.0, 0.5, 0.0)),
            Vector(-1.0, 1.0, 0.0),
            Vector(1.0, -1.0, 0.0),
            Vector(0.0, 1.0, 0.0),
            RenderSettings(bounces=1, skybox=0.4),
        )
        assert color.r == pytest.approx(0.4 * SQRT_HALF, abs=1e-5)
        assert color.g == pytest.approx(0.2 * SQRT_HALF, abs=1e-5)
        assert color.b == pytest.approx(0.0, abs=1e-6)

    def test_non_unit_sun_raises(self):
        from tracelight.config import RenderSettings
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector
        from tracelight.errors import PreconditionViolation

        with pytest.raises(PreconditionViolation):
            trace_ray(
                _floor_scene(),
                Vector(-1.0, 1.0, 0.0),
                Vector(1.0, -1.0, 0.0),
                Vector(0.0, -10.0, 0.0),
                RenderSettings(bounces=1, skybox=0.0),
            )


class TestBounceLimit:
    """Tests for the bounces + 1 iteration limit."""

    def test_exhausted_path_contributes_nothing(self):
        from tracelight.config import RenderSettings
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        color = trace_ray(
            _floor_scene(),
            Vector(-1.0, 1.0, 0.0),
            Vector(1.0, -1.0, 0.0),
            Vector(0.0, -1.0, 0.0),
            RenderSettings(bounces=0, skybox=0.4),
        )
        assert color.to_tuple() == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)

    def test_result_is_unclamped(self):
        from tracelight.config import RenderSettings
        from tracelight.core.color import Color
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        scene = _emissive_sphere_scene(Color(5.0, 5.0, 5.0))
        color = trace_ray(
            scene, Vector(-3.0, 0.0, 0.0), Vector.UNIT_X, Vector(0.0, -1.0, 0.0),
            RenderSettings(bounces=0),
        )
        assert color.r == pytest.approx(5.0, abs=1e-4)


class TestSelfIntersection:
    """Tests for the two strategies of leaving a surface."""

    def test_direction_nudge_tilts_toward_normal(self):
        from tracelight.config import RenderSettings, SelfIntersection
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        settings = RenderSettings(
            bounces=1, skybox=0.0, self_intersection=SelfIntersection.DIRECTION_NUDGE
        )
        color = trace_ray(
            _floor_scene(),
            Vector(-1.0, 1.0, 0.0),
            Vector(1.0, -1.0, 0.0),
            Vector(0.0, -1.0, 0.0),
            settings,
        )
        nudged = Vector(SQRT_HALF, SQRT_HALF + 1.0001, 0.0).normalized()
        assert color.r == pytest.approx(SQRT_HALF * nudged.y, abs=1e-5)

    def test_grazing_bounce_escapes_to_skybox(self):
        from tracelight.config import RenderSettings, SelfIntersection
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector

        settings = RenderSettings(
            bounces=5, skybox=0.4, self_intersection=SelfIntersection.ORIGIN_OFFSET
        )
        direction = Vector(1.0, -0.05, 0.0)
        color = trace_ray(
            _floor_scene(), Vector(-2.0, 0.1, 0.0), direction, Vector(0.0, 1.0, 0.0), settings
        )
        w = Vector.UNIT_Y.dot(-direction.normalized())
        assert color.r == pytest.approx(0.4 * w, abs=1e-4)

    def test_zero_direction_raises(self):
        from tracelight.core.integrator import trace_ray
        from tracelight.core.vector import Vector
        from tracelight.errors import DegenerateVector

        with pytest.raises(DegenerateVector):
            trace_ray(_floor_scene(), Vector.UNIT_Y, Vector.ZERO, Vector(0.0, -1.0, 0.0))


class TestImageReadback:
    """Tests for copying the active region of the color buffer."""

    def test_readback_covers_only_active_region(self):
        import numpy as np

        from tracelight.camera.frame import FrameCamera, setup_camera
        from tracelight.config import RenderSettings
        from tracelight.core.integrator import get_image_numpy, render_image
        from tracelight.core.matrix import Matrix
        from tracelight.core.vector import Vector
        from tracelight.scene.intersection import load_scene
        from tracelight.scene.snapshot import SceneSnapshot

        load_scene(SceneSnapshot([]))
        setup_camera(FrameCamera(pose=Matrix.identity(), sun=Vector(0.0, -1.0, 0.0)))
        render_image(RenderSettings(width=5, height=3, skybox=0.25))

        image = get_image_numpy(5, 3)
        assert image.shape == (3, 5, 3)
        assert image.dtype == np.float32
        assert np.allclose(image, 0.25)

        # Pixels outside the rendered region stay cleared
        wider = get_image_numpy(6, 4)
        assert np.allclose(wider[:3, :5], 0.25)
        assert np.all(wider[3, :] == 0.0)
        assert np.all(wider[:, 5] == 0.0)
