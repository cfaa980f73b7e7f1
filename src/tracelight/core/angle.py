"""Angle value type used by rotation construction."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Angle:
    """An angle stored in radians.

    Attributes:
        radians: The angle in radians.
    """

    radians: float

    @classmethod
    def from_degrees(cls, degrees: float) -> "Angle":
        return cls(math.radians(degrees))

    @property
    def degrees(self) -> float:
        return math.degrees(self.radians)

    def __add__(self, other: "Angle") -> "Angle":
        return Angle(self.radians + other.radians)

    def __sub__(self, other: "Angle") -> "Angle":
        return Angle(self.radians - other.radians)

    def __neg__(self) -> "Angle":
        return Angle(-self.radians)

    def __mul__(self, scalar: float) -> "Angle":
        return Angle(self.radians * scalar)

    __rmul__ = __mul__
