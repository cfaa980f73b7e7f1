"""Render settings, device capacities and backend initialisation.

RenderSettings collects every per-render constant the integrator and the
pixel driver read. It is a frozen dataclass: change a setting by building a
new value with ``settings.replace(...)``.

Example:
    >>> from tracelight.config import RenderSettings, init_backend
    >>> init_backend(arch="cpu", num_threads=4)
    >>> settings = RenderSettings(width=128, height=96, bounces=3)
    >>> settings.replace(skybox=0.2).skybox
    0.2
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti

logger = logging.getLogger(__name__)

# =============================================================================
# Device Capacities
# =============================================================================

# Maximum number of scene objects (preallocated to avoid kernel recompilation)
MAX_OBJECTS = 4096

# Maximum supported image dimensions
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# =============================================================================
# Integrator Defaults
# =============================================================================

# Number of bounces after the primary hit (loop runs BOUNCES + 1 times)
DEFAULT_BOUNCES = 3

# Constant white skybox contribution for escaping rays
DEFAULT_SKYBOX = 0.4

# Offset of a bounced ray's origin along the surface normal
DEFAULT_ORIGIN_EPSILON = 1e-4

# Weight of the normal added to the reflected direction in DIRECTION_NUDGE mode
DEFAULT_DIRECTION_NUDGE = 1.0001

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


class SelfIntersection(IntEnum):
    """How a bounced ray avoids re-hitting the surface it just left.

    ORIGIN_OFFSET moves the new origin off the surface along the normal by
    ``origin_epsilon`` world units and leaves the mirror direction untouched.

    DIRECTION_NUDGE keeps the origin on the surface and tilts the mirror
    direction toward the normal by ``direction_nudge``. This reproduces the
    classic look of this renderer exactly, but the protection it gives
    depends on scene scale.
    """

    ORIGIN_OFFSET = 0
    DIRECTION_NUDGE = 1


@dataclass(frozen=True)
class RenderSettings:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        bounces: Bounces after the primary hit. The integrator intersects at
            most bounces + 1 times per primary ray.
        skybox: Brightness of the constant white sky seen by escaping rays.
        supersample: Primary rays per pixel along each axis (s x s grid).
        self_intersection: Strategy for leaving a surface after a bounce.
        origin_epsilon: Origin offset for SelfIntersection.ORIGIN_OFFSET.
        direction_nudge: Normal weight for SelfIntersection.DIRECTION_NUDGE.
        parallel: Render pixels in parallel (True) or in one serial loop.

    Raises:
        ValueError: If any setting is out of range.
    """

    width: int = 128
    height: int = 96
    bounces: int = DEFAULT_BOUNCES
    skybox: float = DEFAULT_SKYBOX
    supersample: int = 1
    self_intersection: SelfIntersection = SelfIntersection.ORIGIN_OFFSET
    origin_epsilon: float = DEFAULT_ORIGIN_EPSILON
    direction_nudge: float = DEFAULT_DIRECTION_NUDGE
    parallel: bool = True

    def __post_init__(self) -> None:
        if not (0 < self.width <= MAX_IMAGE_WIDTH and 0 < self.height <= MAX_IMAGE_HEIGHT):
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) must be within "
                f"1x1 and {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
            )
        if self.bounces < 0:
            raise ValueError(f"bounces must be non-negative, got {self.bounces}")
        if self.skybox < 0.0:
            raise ValueError(f"skybox must be non-negative, got {self.skybox}")
        if self.supersample < 1:
            raise ValueError(f"supersample must be at least 1, got {self.supersample}")
        if self.origin_epsilon < 0.0:
            raise ValueError(f"origin_epsilon must be non-negative, got {self.origin_epsilon}")
        # Plain ints from from_dict() become enum members
        object.__setattr__(self, "self_intersection", SelfIntersection(self.self_intersection))

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def replace(self, **changes: Any) -> "RenderSettings":
        """Return a copy with some fields changed (validated again)."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["self_intersection"] = self.self_intersection.name.lower()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a dictionary, ignoring unknown keys.

        ``self_intersection`` may be given by name ("origin_offset",
        "direction_nudge") or by value.

        Raises:
            ValueError: If a value is invalid or the strategy is unknown.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        mode = kwargs.get("self_intersection")
        if isinstance(mode, str):
            try:
                kwargs["self_intersection"] = SelfIntersection[mode.upper()]
            except KeyError:
                raise ValueError(f"Unknown self_intersection mode: {mode}") from None
        return cls(**kwargs)


def init_backend(
    arch: str = "cpu",
    num_threads: int | None = None,
    seed: int = 0,
    fast_math: bool = False,
) -> None:
    """Initialise the Taichi runtime.

    Must be called before importing the modules that allocate device fields
    (``tracelight.scene.intersection``, ``tracelight.camera.frame``,
    ``tracelight.core.integrator``, ``tracelight.core.renderer``).

    Args:
        arch: Backend name: "cpu", "gpu", "cuda", "vulkan" or "metal".
        num_threads: Size of the CPU worker pool. None lets Taichi decide.
        seed: Seed for Taichi's random number generator.
        fast_math: Allow the compiler to reorder float operations. Off by
            default so parallel and serial kernels round identically.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if arch not in _ARCHES:
        raise ValueError(f"Unknown backend {arch!r}; expected one of {sorted(_ARCHES)}")

    options: dict[str, Any] = {"arch": _ARCHES[arch], "random_seed": seed, "fast_math": fast_math}
    if num_threads is not None:
        options["cpu_max_num_threads"] = num_threads
    ti.init(**options)
    logger.info("Initialised Taichi backend %s (threads=%s)", arch, num_threads or "auto")
