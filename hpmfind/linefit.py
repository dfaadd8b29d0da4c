"""Least-squares line fitting and splitting of pixel chains into line segments."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

Point = tuple[float, float]


class EndpointPair(IntEnum):
    """Which endpoints of two line segments are being compared."""

    START_START = 0
    START_END = 1
    END_START = 2
    END_END = 3


@dataclass
class LineSegment:
    """A line y = a + b*x (invert 0) or x = a + b*y (invert 1) with its endpoints.

    segment_no is the edge segment the line belongs to, first_pixel_index the
    index of its first pixel in that segment and length its number of pixels.
    """

    a: float
    b: float
    invert: int
    sx: float
    sy: float
    ex: float
    ey: float
    segment_no: int
    first_pixel_index: int
    length: int


def closest_point(x: float, y: float, a: float, b: float, invert: int) -> Point:
    """Return the point on the line closest to (x, y)."""
    if invert == 0:
        if b == 0:
            return x, a
        d = -1.0 / b
        c = y - d * x
        x2 = (a - c) / (d - b)
        return x2, a + b * x2
    if b == 0:
        return a, y
    d = -1.0 / b
    c = x - d * y
    y2 = (a - c) / (d - b)
    return a + b * y2, y2


def min_distance(x: float, y: float, a: float, b: float, invert: int) -> float:
    """Return the distance from (x, y) to the line."""
    x2, y2 = closest_point(x, y, a, b, invert)
    return math.sqrt((x - x2) * (x - x2) + (y - y2) * (y - y2))


def _regress(
    xs: Sequence[float], ys: Sequence[float]
) -> tuple[float, float]:
    count = len(xs)
    sx = sum(xs)
    sy = sum(ys)
    sxx = sum(x * x for x in xs)
    sxy = sum(x * y for x, y in zip(xs, ys))
    denominator = count * sxx - sx * sx
    if denominator == 0:
        return math.nan, math.nan
    a = (sxx * sy - sx * sxy) / denominator
    b = (count * sxy - sx * sy) / denominator
    return a, b


def _check_count(xs: Sequence[float], ys: Sequence[float]) -> None:
    if len(xs) != len(ys):
        raise ValueError("coordinate sequences differ in length")
    if len(xs) < 2:
        raise ValueError("at least two points are needed to fit a line")


def fit_line(
    xs: Sequence[float], ys: Sequence[float], invert: int
) -> tuple[float, float]:
    """Fit (a, b) of a line whose orientation (invert) is already known."""
    _check_count(xs, ys)
    if invert:
        xs, ys = ys, xs
    return _regress(xs, ys)


def fit_line_with_error(
    xs: Sequence[float], ys: Sequence[float]
) -> tuple[float, float, float, int]:
    """Fit a line, choosing its orientation; return (a, b, error, invert)."""
    _check_count(xs, ys)
    count = len(xs)
    mx = sum(xs) / count
    my = sum(ys) / count
    dx = sum((x - mx) * (x - mx) for x in xs)
    dy = sum((y - my) * (y - my) for y in ys)

    invert = 1 if dx < dy else 0
    if invert:
        xs, ys = ys, xs
    a, b = _regress(xs, ys)

    if b == 0.0:
        error = sum(abs(a - y) for y in ys) / count
    else:
        total = 0.0
        d = -1.0 / b
        for x, y in zip(xs, ys):
            c = y - d * x
            x2 = (a - c) / (d - b)
            y2 = a + b * x2
            total += (x - x2) * (x - x2) + (y - y2) * (y - y2)
        error = math.sqrt(total / count)
    return a, b, error, invert


def split_segment_to_lines(
    points: Sequence[tuple[float, float]],
    segment_no: int,
    min_line_len: int = 6,
    line_error: float = 1.0,
) -> list[LineSegment]:
    """Split a chain of pixels into straight line segments."""
    if min_line_len < 2:
        raise ValueError("min_line_len must be at least 2")
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    lines: list[LineSegment] = []

    start = 0
    remaining = len(xs)

    def dist(i: int, a: float, b: float, invert: int) -> float:
        return min_distance(xs[start + i], ys[start + i], a, b, invert)

    while remaining >= min_line_len:
        valid = False
        a = b = math.nan
        invert = 0
        while remaining >= min_line_len:
            window = slice(start, start + min_line_len)
            a, b, error, invert = fit_line_with_error(xs[window], ys[window])
            if error <= 0.5:
                valid = True
                break
            remaining -= 1
            start += 1

        if not valid:
            return lines

        index = min_line_len
        length = min_line_len

        while index < remaining:
            start_index = index
            last_good = index - 1
            good = 0
            bad = 0
            while index < remaining:
                if dist(index, a, b, invert) <= line_error:
                    last_good = index
                    good += 1
                    bad = 0
                else:
                    bad += 1
                    if bad >= 5:
                        break
                index += 1

            if good >= 2:
                length += last_good - start_index + 1
                window = slice(start, start + length)
                a, b = fit_line(xs[window], ys[window], invert)
                index = last_good + 1

            if good < 2 or index >= remaining:
                first = 0
                while first < last_good and dist(first, a, b, invert) > line_error:
                    first += 1
                sx, sy = closest_point(xs[start + first], ys[start + first], a, b, invert)

                last = last_good
                while last > 0 and dist(last, a, b, invert) > line_error:
                    last -= 1
                ex, ey = closest_point(xs[start + last], ys[start + last], a, b, invert)

                lines.append(
                    LineSegment(
                        a, b, invert, sx, sy, ex, ey,
                        segment_no, start + first, last - first + 1,
                    )
                )
                length = last + 1
                break

        remaining -= length
        start += length

    return lines


def update_line_parameters(segment: LineSegment) -> None:
    """Recompute a, b and invert of a segment from its endpoints, in place."""
    dx = segment.ex - segment.sx
    dy = segment.ey - segment.sy
    if abs(dx) >= abs(dy):
        segment.invert = 0
        if abs(dy) < 1e-3:
            segment.b = 0.0
            segment.a = (segment.sy + segment.ey) / 2
        else:
            segment.b = dy / dx
            segment.a = segment.sy - segment.b * segment.sx
    else:
        segment.invert = 1
        if abs(dx) < 1e-3:
            segment.b = 0.0
            segment.a = (segment.sx + segment.ex) / 2
        else:
            segment.b = dx / dy
            segment.a = segment.sx - segment.b * segment.sy


def min_endpoint_distance(
    ls1: LineSegment, ls2: LineSegment
) -> tuple[float, EndpointPair]:
    """Return the smallest distance between endpoints of two segments and which pair."""
    candidates = (
        (math.hypot(ls1.sx - ls2.sx, ls1.sy - ls2.sy), EndpointPair.START_START),
        (math.hypot(ls1.sx - ls2.ex, ls1.sy - ls2.ey), EndpointPair.START_END),
        (math.hypot(ls1.ex - ls2.sx, ls1.ey - ls2.sy), EndpointPair.END_START),
        (math.hypot(ls1.ex - ls2.ex, ls1.ey - ls2.ey), EndpointPair.END_END),
    )
    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate[0] < best[0]:
            best = candidate
    return best