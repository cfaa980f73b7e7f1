"""Camera module for primary ray generation.

Components:
    frame: FrameCamera (pose matrix + sun direction) and the per-pixel
        primary ray mapping

FrameCamera and primary_direction are plain Python and can be used without
a Taichi runtime, but the module also allocates device fields, so import it
after ti.init() (or tracelight.config.init_backend()).
"""
