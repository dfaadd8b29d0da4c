"""Filtering of detected ellipses down to plausible marker candidates."""

from __future__ import annotations

from collections.abc import Iterable

from hpmfind.ellipse import Ellipse

SIZE_THRESHOLD_DENOMINATOR = 200.0
MAX_MAJOR_MINOR_RATIO = 1.4


def big_ellipses(ellipses: Iterable[Ellipse], threshold: float) -> list[Ellipse]:
    """Return the ellipses whose minor axis exceeds the threshold."""
    return [ellipse for ellipse in ellipses if ellipse.minor > threshold]


def almost_round(ellipses: Iterable[Ellipse]) -> list[Ellipse]:
    """Return the ellipses whose major axis is less than 1.4 times the minor axis."""
    return [e for e in ellipses if e.minor * MAX_MAJOR_MINOR_RATIO > e.major]


def filter_marker_candidates(ellipses: Iterable[Ellipse], image_width: int) -> list[Ellipse]:
    """Keep ellipses at least 1/200 of the image width across and almost round."""
    threshold = image_width / SIZE_THRESHOLD_DENOMINATOR
    return almost_round(big_ellipses(ellipses, threshold))