"""Detected ellipse with its center, axis lengths and rotation."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Ellipse:
    """An ellipse given by center, full major and minor axis lengths and rotation."""

    center: tuple[float, float] = (0.0, 0.0)
    major: float = 0.0
    minor: float = 0.0
    rot: float = 0.0

    def __post_init__(self) -> None:
        x, y = self.center
        object.__setattr__(self, "center", (float(x), float(y)))

    @classmethod
    def from_size(cls, center: tuple[float, float], size: float) -> Ellipse:
        """Make a circle-shaped ellipse whose axes both equal size."""
        return cls(center, float(size), float(size), 0.0)

    @classmethod
    def from_circle(cls, center: tuple[float, float], radius: float) -> Ellipse:
        """Make an ellipse from a circle's center and radius."""
        return cls(center, 2.0 * radius, 2.0 * radius, 0.0)

    @classmethod
    def from_ed_ellipse(
        cls, center: tuple[float, float], axes: tuple[float, float], theta: float
    ) -> Ellipse:
        """Make an ellipse from half-axes (width, height) and angle theta.

        The longer half-axis becomes the major axis; the rotation is adjusted
        by a quarter turn when the height is the longer one.
        """
        width, height = axes
        if width >= height:
            return cls(center, 2.0 * width, 2.0 * height, theta)
        if theta > 0.0:
            rot = theta - math.pi / 2.0
        else:
            rot = theta + math.pi / 2.0
        return cls(center, 2.0 * height, 2.0 * width, rot)

    def keypoint_size(self) -> float:
        """Return the mean of the two axis lengths."""
        return (self.major + self.minor) / 2.0

    def __str__(self) -> str:
        x, y = self.center
        return f"[{x:g}, {y:g}] {self.major:g} {self.minor:g} {self.rot:g}"