"""Pytest configuration for tracelight tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42, fast_math=False)
    yield


@pytest.fixture(autouse=True)
def clear_device_scene():
    """Clear the device-resident scene before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so field allocation happens after ti.init()
    from tracelight.core.integrator import clear_render_target
    from tracelight.scene.intersection import clear_scene

    clear_scene()
    clear_render_target()
    yield
    clear_scene()


@pytest.fixture
def unit_sphere_scene():
    """A white, non-emissive unit sphere at the origin."""
    from tracelight.core.vector import Vector
    from tracelight.scene.objects import SceneObject, Sphere
    from tracelight.scene.snapshot import SceneSnapshot

    return SceneSnapshot([SceneObject(Sphere(Vector(0.0, 0.0, 0.0), 1.0))])


@pytest.fixture
def xy_triangle_scene():
    """The triangle (0,0,0), (1,0,0), (0,1,0) in the z = 0 plane."""
    from tracelight.core.vector import Vector
    from tracelight.scene.objects import SceneObject, Triangle
    from tracelight.scene.snapshot import SceneSnapshot

    corners = (Vector(0.0, 0.0, 0.0), Vector(1.0, 0.0, 0.0), Vector(0.0, 1.0, 0.0))
    return SceneSnapshot([SceneObject(Triangle(corners))])
