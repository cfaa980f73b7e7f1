#!/usr/bin/env python3
"""Render a scene to a PNG file.

Renders the built-in Cornell box, or a scene loaded from a JSON file in the
``SceneSnapshot.to_dict()`` format, viewed from the Cornell box camera.

Usage:
    python -m examples.render_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 320)
    --height HEIGHT         Image height in pixels (default: 240)
    --bounces N             Bounces after the primary hit (default: 3)
    --supersample S         S x S primary rays per pixel (default: 1)
    --skybox K              Skybox brightness (default: 0.4)
    --self-intersection M   origin_offset or direction_nudge
    --scene FILE            JSON scene file (default: Cornell box)
    --output OUTPUT         Output file path (default: scene.png)
    --arch ARCH             Taichi backend (default: cpu)
    --threads N             CPU worker threads (default: auto)
    --serial                Render pixels in one serial loop
    --verbose               Log scene upload and frame timing
    --quiet                 Suppress progress output

Example:
    python -m examples.render_scene --width 640 --height 480 --supersample 2
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene to a PNG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=320,
        help="Image width in pixels (default: 320)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=240,
        help="Image height in pixels (default: 240)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=3,
        help="Bounces after the primary hit (default: 3)",
    )
    parser.add_argument(
        "--supersample",
        type=int,
        default=1,
        help="S x S primary rays per pixel (default: 1)",
    )
    parser.add_argument(
        "--skybox",
        type=float,
        default=0.4,
        help="Skybox brightness (default: 0.4)",
    )
    parser.add_argument(
        "--self-intersection",
        choices=["origin_offset", "direction_nudge"],
        default="origin_offset",
        help="How bounced rays leave a surface (default: origin_offset)",
    )
    parser.add_argument(
        "--scene",
        type=Path,
        default=None,
        help="JSON scene file (default: built-in Cornell box)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="scene.png",
        help="Output file path (default: scene.png)",
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu", "cuda", "vulkan", "metal"],
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="CPU worker threads (default: auto)",
    )
    parser.add_argument(
        "--serial",
        action="store_true",
        help="Render pixels in one serial loop",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log scene upload and frame timing",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_scene(args: argparse.Namespace) -> Path:
    """Render the requested scene and save it.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from tracelight.config import RenderSettings
    from tracelight.core.renderer import Renderer
    from tracelight.preview.export import save_png
    from tracelight.scene.cornell_box import create_cornell_box_scene
    from tracelight.scene.snapshot import SceneSnapshot

    settings = RenderSettings.from_dict(
        {
            "width": args.width,
            "height": args.height,
            "bounces": args.bounces,
            "supersample": args.supersample,
            "skybox": args.skybox,
            "self_intersection": args.self_intersection,
            "parallel": not args.serial,
        }
    )

    scene, camera = create_cornell_box_scene()
    if args.scene is not None:
        if not args.quiet:
            print(f"Loading scene from {args.scene}...")
        scene = SceneSnapshot.from_dict(json.loads(args.scene.read_text()))

    if not args.quiet:
        print(
            f"Rendering {len(scene)} objects at {settings.width}x{settings.height} "
            f"({settings.bounces} bounces, {settings.supersample}x supersample)..."
        )

    start_time = time.time()
    renderer = Renderer(settings)
    pixels = renderer.render_frame(scene, camera)

    output_file = Path(args.output)
    save_png(pixels, output_file)

    total_time = time.time() - start_time
    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s (kernel + copy: {renderer.last_frame_seconds:.2f}s)")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

    from tracelight.config import init_backend

    try:
        init_backend(arch=args.arch, num_threads=args.threads)
        render_scene(args)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
