"""Error types raised by tracelight.

All errors are raised at construction time (vectors, transforms, scene
snapshots). The per-ray kernels never raise: near-parallel rays and
non-positive discriminants are reported as ordinary misses.

Hierarchy:
    TracelightError (ValueError)
        DegenerateVector: a near-zero vector was normalized or reflected about
        PreconditionViolation: an argument broke a documented precondition
        DegenerateGeometry: a shape cannot be intersected reliably
"""


class TracelightError(ValueError):
    """Base class for all tracelight errors."""


class DegenerateVector(TracelightError):
    """Raised when a vector is too short to be normalized."""


class PreconditionViolation(TracelightError):
    """Raised when an argument violates a documented precondition.

    Examples are a non-unit rotation axis, a material index outside the
    material table, or a darken ratio outside [0, 1].
    """


class DegenerateGeometry(TracelightError):
    """Raised when a shape is degenerate (collinear triangle, empty sphere)."""
