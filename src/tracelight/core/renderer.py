"""Per-frame pixel driver.

The Renderer turns one scene snapshot and one camera into one frame. Each
call runs in two phases:

1. Upload: the snapshot (unless already resident) and the camera pose and
   sun are written into device fields from Python.
2. Launch: a single kernel evaluates every pixel. Kernels only read the
   uploaded state and each pixel writes its own slot of the color buffer.

``RenderSettings.parallel`` selects between a parallel kernel (Taichi's top
level loop over the pixel range) and a serialized one. Both call the same
device function per pixel and produce identical frames.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracelight.config import RenderSettings
    >>> from tracelight.core.renderer import Renderer
    >>> from tracelight.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, camera = create_cornell_box_scene()
    >>> renderer = Renderer(RenderSettings(width=160, height=120))
    >>> frame = renderer.render_frame(scene, camera)
    >>> frame.shape
    (120, 160, 4)
"""

import logging
import time
from collections.abc import Generator, Iterable

import numpy as np
import numpy.typing as npt

from tracelight.camera.frame import FrameCamera, setup_camera
from tracelight.config import RenderSettings
from tracelight.core.integrator import clear_render_target, get_image_numpy, render_image
from tracelight.preview.export import save_png, to_rgba8
from tracelight.scene.intersection import load_scene
from tracelight.scene.snapshot import SceneSnapshot

logger = logging.getLogger(__name__)


class Renderer:
    """Renders frames of a fixed size with fixed integrator settings.

    The renderer owns no device memory of its own; it drives the
    module-level buffers of the integrator. Only one frame renders at a
    time.

    Attributes:
        settings: The settings every frame is rendered with.
        frame_count: Number of frames rendered so far.
        last_frame_seconds: Wall time of the most recent frame.
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        self._settings = settings or RenderSettings()
        self._frame_count = 0
        self._last_frame_seconds = 0.0
        clear_render_target()

    @property
    def settings(self) -> RenderSettings:
        return self._settings

    @property
    def width(self) -> int:
        return self._settings.width

    @property
    def height(self) -> int:
        return self._settings.height

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def last_frame_seconds(self) -> float:
        return self._last_frame_seconds

    def reconfigure(self, settings: RenderSettings) -> None:
        """Use new settings from the next frame on."""
        self._settings = settings
        clear_render_target()

    def render_float_frame(
        self, snapshot: SceneSnapshot, camera: FrameCamera
    ) -> npt.NDArray[np.float32]:
        """Render one frame as linear float RGB.

        Args:
            snapshot: The scene to render.
            camera: Camera pose and sun direction for this frame.

        Returns:
            Unclamped float32 array of shape (height, width, 3).
        """
        settings = self._settings
        start = time.perf_counter()

        load_scene(snapshot)
        setup_camera(camera)
        render_image(settings)
        image = get_image_numpy(settings.width, settings.height)

        self._last_frame_seconds = time.perf_counter() - start
        self._frame_count += 1
        logger.debug(
            "Frame %d: %dx%d, %d bounces, %dx supersample, %s kernel, %.3fs",
            self._frame_count,
            settings.width,
            settings.height,
            settings.bounces,
            settings.supersample,
            "parallel" if settings.parallel else "serial",
            self._last_frame_seconds,
        )
        return image

    def render_frame(self, snapshot: SceneSnapshot, camera: FrameCamera) -> npt.NDArray[np.uint8]:
        """Render one frame as 8-bit RGBA.

        Returns:
            Array of shape (height, width, 4) with dtype uint8; alpha is 255.
        """
        return to_rgba8(self.render_float_frame(snapshot, camera))

    def render_sequence(
        self,
        snapshot: SceneSnapshot,
        cameras: Iterable[FrameCamera],
    ) -> Generator[npt.NDArray[np.uint8], None, None]:
        """Render one frame per camera, yielding each as soon as it is done.

        Example:
            >>> for frame in renderer.render_sequence(scene, orbit):
            ...     sink.present(frame)
        """
        for camera in cameras:
            yield self.render_frame(snapshot, camera)

    def save_frame(self, snapshot: SceneSnapshot, camera: FrameCamera, filepath: str) -> None:
        """Render one frame and save it as a PNG file."""
        save_png(self.render_frame(snapshot, camera), filepath)

    def __repr__(self) -> str:
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"bounces={self._settings.bounces}, frames={self._frame_count})"
        )
