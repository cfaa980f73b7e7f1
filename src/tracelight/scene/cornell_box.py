"""Cornell box demo scene.

The classic Cornell box built from triangles: five walls (two triangles
each) forming a box that is open toward the camera, an emissive panel just
below the ceiling and two spheres standing on the floor.

Walls share a material table and reference it by ``material_id``, the way a
mesh loader would produce them. The light panel and the spheres carry inline
materials.

Coordinates follow the camera convention of ``tracelight.core.matrix``:

- X: depth, from the open front (0) to the back wall (box_size)
- Y: floor (0) to ceiling (box_size)
- Z: right (-box_size/2) to left (+box_size/2)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracelight.scene.cornell_box import create_cornell_box_scene
    >>> scene, camera = create_cornell_box_scene()
    >>> len(scene)
    14
"""

from dataclasses import dataclass

from tracelight.camera.frame import FrameCamera
from tracelight.core.color import Color
from tracelight.core.matrix import Matrix
from tracelight.core.vector import Vector
from tracelight.scene.objects import Material, SceneObject, Sphere, Triangle
from tracelight.scene.snapshot import SceneSnapshot

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass(frozen=True)
class CornellBoxParams:
    """Parameters for customizing the Cornell box.

    Attributes:
        light_color: Emitted color of the ceiling panel. Values above 1 make
            the panel brighter than the clamped output range.
        left_wall_color: Diffuse color of the left wall (red by default).
        right_wall_color: Diffuse color of the right wall (green by default).
        white_wall_color: Diffuse color of the back wall, floor and ceiling.
        sun: Direction of the sunlight. Normalized on use.

    Example:
        >>> warm = CornellBoxParams(light_color=Color(4.0, 3.4, 2.6))
    """

    light_color: Color = Color(4.0, 4.0, 4.0)
    left_wall_color: Color = Color(0.65, 0.05, 0.05)
    right_wall_color: Color = Color(0.12, 0.45, 0.15)
    white_wall_color: Color = Color(0.73, 0.73, 0.73)
    sun: Vector = Vector(0.3, -1.0, 0.2)


# =============================================================================
# Cornell Box Constants
# =============================================================================

BOX_SIZE = 1.0

# Material table indices for the walls
LEFT_WALL_MATERIAL = 0
RIGHT_WALL_MATERIAL = 1
WHITE_WALL_MATERIAL = 2

# Light panel: a square of this fraction of the box size, just below the ceiling
LIGHT_PANEL_FRACTION = 0.3
LIGHT_PANEL_DROP = 0.001

# Spheres as (center fraction of box_size, radius fraction, color)
SPHERES = (
    ((0.65, 0.18, -0.2), 0.18, Color(0.73, 0.73, 0.73)),
    ((0.4, 0.12, 0.22), 0.12, Color(0.9, 0.85, 0.3)),
)

# Camera distance in front of the opening, as a fraction of box_size. With the
# unit image plane, the opening fills the frame vertically at distance 1.
CAMERA_DISTANCE = 1.05


def _quad(corner: Vector, edge_u: Vector, edge_v: Vector) -> tuple[Triangle, Triangle]:
    """Split the parallelogram corner + s*u + t*v into two triangles."""
    far = corner + edge_u + edge_v
    return (
        Triangle((corner, corner + edge_u, far)),
        Triangle((corner, far, corner + edge_v)),
    )


# =============================================================================
# Cornell Box Factory
# =============================================================================


def create_cornell_box_scene(
    box_size: float = BOX_SIZE,
    params: CornellBoxParams | None = None,
) -> tuple[SceneSnapshot, FrameCamera]:
    """Create the Cornell box scene and a camera looking into it.

    Args:
        box_size: Edge length of the box in world units.
        params: Optional CornellBoxParams for the light and wall colors.

    Returns:
        A tuple of (SceneSnapshot, FrameCamera). The camera sits in front of
        the open side at mid height and looks along +X.

    Example:
        >>> scene, camera = create_cornell_box_scene(box_size=2.0)
        >>> camera.pose.pos()
        Vector(x=-2.1, y=1.0, z=0.0)
    """
    if params is None:
        params = CornellBoxParams()

    s = box_size
    half = s / 2.0

    materials = [
        Material(color=params.left_wall_color),
        Material(color=params.right_wall_color),
        Material(color=params.white_wall_color),
    ]

    # (corner, edge_u, edge_v, material index)
    walls = [
        # Left wall at z = +half
        (Vector(0.0, 0.0, half), Vector(s, 0.0, 0.0), Vector(0.0, s, 0.0), LEFT_WALL_MATERIAL),
        # Right wall at z = -half
        (Vector(0.0, 0.0, -half), Vector(s, 0.0, 0.0), Vector(0.0, s, 0.0), RIGHT_WALL_MATERIAL),
        # Back wall at x = s
        (Vector(s, 0.0, -half), Vector(0.0, s, 0.0), Vector(0.0, 0.0, s), WHITE_WALL_MATERIAL),
        # Floor at y = 0
        (Vector(0.0, 0.0, -half), Vector(s, 0.0, 0.0), Vector(0.0, 0.0, s), WHITE_WALL_MATERIAL),
        # Ceiling at y = s
        (Vector(0.0, s, -half), Vector(s, 0.0, 0.0), Vector(0.0, 0.0, s), WHITE_WALL_MATERIAL),
    ]

    objects = []
    for corner, edge_u, edge_v, material_id in walls:
        for triangle in _quad(corner, edge_u, edge_v):
            objects.append(SceneObject(triangle, material_id=material_id))

    # Emissive panel centered under the ceiling
    panel = LIGHT_PANEL_FRACTION * s
    light = Material(color=Color.WHITE, ambient=params.light_color, emits_light=True)
    panel_corner = Vector(half - panel / 2.0, s - LIGHT_PANEL_DROP * s, -panel / 2.0)
    for triangle in _quad(panel_corner, Vector(panel, 0.0, 0.0), Vector(0.0, 0.0, panel)):
        objects.append(SceneObject(triangle, material=light))

    for (cx, cy, cz), radius, color in SPHERES:
        sphere = Sphere(center=Vector(cx * s, cy * s, cz * s), radius=radius * s)
        objects.append(SceneObject(sphere, material=Material(color=color)))

    pose = Matrix.translation(Vector(-CAMERA_DISTANCE * s, half, 0.0))
    camera = FrameCamera(pose=pose, sun=params.sun.normalized())

    return SceneSnapshot(objects, materials), camera
