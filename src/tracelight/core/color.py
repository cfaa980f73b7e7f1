"""RGB color value type with 8-bit pixel conversion.

Colors are unclamped while a path is being traced: channel values may exceed
1.0 (bright emitters) and are only clamped when converted to an 8-bit pixel.

Pixel conversion clamps each channel to [0, 1], multiplies by 255 and
truncates toward zero. Alpha is always 255.

Example:
    >>> from tracelight.core.color import Color
    >>> (Color.WHITE * Color(0.5, 0.25, 2.0)).to_pixel()
    (127, 63, 255, 255)
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from tracelight.errors import PreconditionViolation

# Ratios passed to darken() and mix() may overshoot 1.0 by this much
# (accumulated floating point error on cosine weights)
RATIO_TOLERANCE = 1.001


def _check_ratio(ratio: float) -> float:
    if not 0.0 <= ratio <= RATIO_TOLERANCE:
        raise PreconditionViolation(f"Ratio out of range: {ratio}")
    return min(max(ratio, 0.0), 1.0)


@dataclass(frozen=True)
class Color:
    """An immutable linear RGB color.

    Attributes:
        r: Red channel.
        g: Green channel.
        b: Blue channel.
    """

    r: float
    g: float
    b: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Color":
        """Build a color from any 3-element sequence.

        Raises:
            ValueError: If the sequence does not have exactly three elements.
        """
        if len(values) != 3:
            raise ValueError(f"Expected 3 channels, got {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def __iter__(self) -> Iterator[float]:
        yield self.r
        yield self.g
        yield self.b

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def __add__(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __mul__(self, other: "Color | float") -> "Color":
        """Multiply channel-wise by another color, or uniformly by a scalar."""
        if isinstance(other, Color):
            return Color(self.r * other.r, self.g * other.g, self.b * other.b)
        return Color(self.r * other, self.g * other, self.b * other)

    def __rmul__(self, scalar: float) -> "Color":
        return Color(self.r * scalar, self.g * scalar, self.b * scalar)

    def __truediv__(self, scalar: float) -> "Color":
        return Color(self.r / scalar, self.g / scalar, self.b / scalar)

    def darken(self, ratio: float) -> "Color":
        """Scale all channels by a ratio in [0, 1].

        Raises:
            PreconditionViolation: If ratio is outside [0, 1.001].
        """
        ratio = _check_ratio(ratio)
        return Color(self.r * ratio, self.g * ratio, self.b * ratio)

    def mix(self, other: "Color", ratio: float) -> "Color":
        """Blend toward another color; ratio 0 keeps self, 1 gives other.

        Raises:
            PreconditionViolation: If ratio is outside [0, 1.001].
        """
        ratio = _check_ratio(ratio)
        keep = 1.0 - ratio
        return Color(
            self.r * keep + other.r * ratio,
            self.g * keep + other.g * ratio,
            self.b * keep + other.b * ratio,
        )

    def to_pixel(self) -> tuple[int, int, int, int]:
        """Convert to an opaque RGBA8 pixel (clamp, scale, truncate)."""
        return (
            int(min(max(self.r, 0.0), 1.0) * 255.0),
            int(min(max(self.g, 0.0), 1.0) * 255.0),
            int(min(max(self.b, 0.0), 1.0) * 255.0),
            255,
        )


Color.BLACK = Color(0.0, 0.0, 0.0)
Color.WHITE = Color(1.0, 1.0, 1.0)
Color.RED = Color(1.0, 0.0, 0.0)
Color.GREEN = Color(0.0, 1.0, 0.0)
Color.BLUE = Color(0.0, 0.0, 1.0)
