"""Line segment detection on edge segments, with collinear joining and NFA validation."""

from __future__ import annotations

import dataclasses
import itertools
import math
from collections.abc import Iterable, Sequence

import numpy as np

from hpmfind.linefit import (
    LineSegment,
    min_distance,
    min_endpoint_distance,
    split_segment_to_lines,
    update_line_parameters,
)
from hpmfind.nfa import NfaTable, fast_atan2

_SHORTEST_LINE = 9
_PRECISION_ANGLE = 22.5
_ALIGNMENT_PROBABILITY = 0.125
_ALWAYS_VALID_LENGTH = 80
_RECT_ONLY_LENGTH = 25
_RECT_WIDTH = 2.0

Endpoints = tuple[tuple[float, float], tuple[float, float]]


def _log_nt(width: int, height: int) -> float:
    return 2.0 * (math.log10(width) + math.log10(height))


def min_line_length(width: int, height: int) -> int:
    """Return the shortest line length that can be meaningful in an image of this size."""
    value = (-_log_nt(width, height) / math.log10(_ALIGNMENT_PROBABILITY)) * 0.5
    return int(math.floor(value + 0.5))


def enumerate_rect_points(
    sx: float, sy: float, ex: float, ey: float
) -> list[tuple[int, int]]:
    """Return the integer (x, y) points inside the width-2 rectangle around a line."""
    x1, y1, x2, y2 = sx, sy, ex, ey
    dx = x2 - x1
    dy = y2 - y1
    length = math.sqrt(dx * dx + dy * dy)
    if length == 0:
        raise ValueError("the line has no extent")
    dx /= length
    dy /= length
    half = _RECT_WIDTH / 2.0

    corners_x = (x1 - dy * half, x2 - dy * half, x2 + dy * half, x1 + dy * half)
    corners_y = (y1 + dx * half, y2 + dx * half, y2 - dx * half, y1 - dx * half)

    if x1 < x2 and y1 <= y2:
        offset = 0
    elif x1 >= x2 and y1 < y2:
        offset = 1
    elif x1 > x2 and y1 >= y2:
        offset = 2
    else:
        offset = 3
    vx = [corners_x[(offset + n) % 4] for n in range(4)]
    vy = [corners_y[(offset + n) % 4] for n in range(4)]

    x = math.ceil(vx[0]) - 1
    y = math.ceil(vy[0])
    ys = -math.inf
    ye = -math.inf

    points: list[tuple[int, int]] = []
    while True:
        y += 1
        while y > ye and x <= vx[2]:
            x += 1
            if x > vx[2]:
                break

            if x < vx[3]:
                if abs(vx[0] - vx[3]) <= 0.01 and vy[0] != vy[3]:
                    ys = min(vy[0], vy[3])
                else:
                    ys = vy[0] + (x - vx[0]) * (vy[3] - vy[0]) / (vx[3] - vx[0])
            elif abs(vx[3] - vx[2]) <= 0.01:
                if vy[3] != vy[2]:
                    ys = min(vy[3], vy[2])
                else:
                    ys = vy[3] + (x - vx[3]) * (y2 - vy[3]) / (vx[2] - vx[3])
            else:
                ys = vy[3] + (x - vx[3]) * (vy[2] - vy[3]) / (vx[2] - vx[3])

            if x < vx[1]:
                if abs(vx[0] - vx[1]) <= 0.01 and vy[0] != vy[1]:
                    ye = max(vy[0], vy[1])
                else:
                    ye = vy[0] + (x - vx[0]) * (vy[1] - vy[0]) / (vx[1] - vx[0])
            elif abs(vx[1] - vx[2]) <= 0.01 and vy[1] != vy[2]:
                ye = max(vy[1], vy[2])
            else:
                ye = vy[1] + (x - vx[1]) * (vy[2] - vy[1]) / (vx[2] - vx[1])

            y = math.ceil(ys)

        if x > vx[2]:
            break
        points.append((x, y))

    return points


def try_join(
    ls1: LineSegment, ls2: LineSegment, max_distance: float, max_error: float
) -> bool:
    """Join ls2 into ls1 if they are close and collinear; ls2 is left unchanged."""
    distance, _ = min_endpoint_distance(ls1, ls2)
    if distance > max_distance:
        return False

    previous_length = math.hypot(ls1.sx - ls1.ex, ls1.sy - ls1.ey)
    next_length = math.hypot(ls2.sx - ls2.ex, ls2.sy - ls2.ey)
    shorter, longer = (ls2, ls1) if previous_length > next_length else (ls1, ls2)

    probes = (
        (shorter.sx, shorter.sy),
        ((shorter.sx + shorter.ex) / 2.0, (shorter.sy + shorter.ey) / 2.0),
        (shorter.ex, shorter.ey),
    )
    error = (
        sum(min_distance(x, y, longer.a, longer.b, longer.invert) for x, y in probes)
        / 3.0
    )
    if error > max_error:
        return False

    spans = (
        abs(ls1.sx - ls2.sx) + abs(ls1.sy - ls2.sy),
        abs(ls1.sx - ls2.ex) + abs(ls1.sy - ls2.ey),
        abs(ls1.ex - ls2.sx) + abs(ls1.ey - ls2.sy),
        abs(ls1.ex - ls2.ex) + abs(ls1.ey - ls2.ey),
    )
    which = 0
    for case, span in enumerate(spans):
        if span > spans[which]:
            which = case

    if which == 0:
        ls1.ex, ls1.ey = ls2.sx, ls2.sy
    elif which == 1:
        ls1.ex, ls1.ey = ls2.ex, ls2.ey
    elif which == 2:
        ls1.sx, ls1.sy = ls2.sx, ls2.sy
    else:
        ls1.sx, ls1.sy = ls1.ex, ls1.ey
        ls1.ex, ls1.ey = ls2.ex, ls2.ey

    if ls1.first_pixel_index + ls1.length + 5 >= ls2.first_pixel_index:
        ls1.length += ls2.length
    elif ls2.length > ls1.length:
        ls1.first_pixel_index = ls2.first_pixel_index
        ls1.length = ls2.length

    update_line_parameters(ls1)
    return True


def join_collinear_lines(
    lines: Iterable[LineSegment], max_distance: float, max_error: float
) -> list[LineSegment]:
    """Join consecutive collinear lines of the same edge segment; inputs are not changed."""
    joined_lines: list[LineSegment] = []
    for _, group in itertools.groupby(lines, key=lambda line: line.segment_no):
        members = list(group)
        joined = [dataclasses.replace(members[0])]
        for line in members[1:]:
            if not try_join(joined[-1], line, max_distance, max_error):
                joined.append(dataclasses.replace(line))
        if len(joined) > 1 and try_join(joined[0], joined[-1], max_distance, max_error):
            joined.pop()
        joined_lines.extend(joined)
    return joined_lines


def _line_angle(line: LineSegment) -> float:
    if line.invert == 0:
        angle = math.atan(line.b)
    else:
        angle = math.atan(1.0 / line.b) if line.b != 0 else math.pi / 2
    if angle < 0:
        angle += math.pi
    return angle


class LineDetector:
    """Line segments found along edge segments of a single-channel image.

    The accepted lines are in `lines`, the ones rejected by validation in
    `invalid_lines`.
    """

    def __init__(
        self,
        image: np.ndarray,
        segments: Iterable[Sequence[tuple[int, int]]],
        line_error: float = 1.0,
        min_line_len: int | None = None,
        max_distance_between_two_lines: float = 6.0,
        max_error: float = 1.3,
        validate: bool = True,
    ) -> None:
        pixels = np.asarray(image)
        if pixels.ndim != 2:
            raise ValueError("a single-channel image is required")
        self.height, self.width = pixels.shape
        if self.height < 1 or self.width < 1:
            raise ValueError("the image is empty")
        self._image = pixels.astype(np.int64)
        self.segments = [list(segment) for segment in segments]

        self.line_error = line_error
        self.max_distance_between_two_lines = max_distance_between_two_lines
        self.max_error = max_error
        if min_line_len is None or min_line_len == -1:
            min_line_len = min_line_length(self.width, self.height)
        self.min_line_len = max(min_line_len, _SHORTEST_LINE)
        self.precision = (_PRECISION_ANGLE / 180.0) * math.pi

        lines: list[LineSegment] = []
        for number, segment in enumerate(self.segments):
            lines.extend(
                split_segment_to_lines(segment, number, self.min_line_len, line_error)
            )
        lines = join_collinear_lines(lines, max_distance_between_two_lines, max_error)

        self.invalid_lines: list[LineSegment] = []
        if validate:
            self._nfa = NfaTable(
                max(1, (self.width + self.height) // 8),
                _ALIGNMENT_PROBABILITY,
                _log_nt(self.width, self.height),
            )
            valid: list[LineSegment] = []
            for line in lines:
                (valid if self._is_valid(line) else self.invalid_lines).append(line)
            lines = valid
        self.lines = lines

    def line_points(self) -> list[Endpoints]:
        """Return the start and end points of every accepted line."""
        return [((line.sx, line.sy), (line.ex, line.ey)) for line in self.lines]

    def _count_aligned(
        self, cells: Iterable[tuple[int, int]], line_angle: float
    ) -> tuple[int, int]:
        img = self._image
        count = 0
        aligned = 0
        for r, c in cells:
            r, c = int(r), int(c)
            if r <= 0 or r >= self.height - 1 or c <= 0 or c >= self.width - 1:
                continue
            count += 1
            com1 = img[r + 1, c + 1] - img[r - 1, c - 1]
            com2 = img[r - 1, c + 1] - img[r + 1, c - 1]
            gx = com1 + com2 + img[r, c + 1] - img[r, c - 1]
            gy = com1 - com2 + img[r + 1, c] - img[r - 1, c]
            pixel_angle = fast_atan2(float(gx), float(-gy))
            diff = abs(line_angle - pixel_angle)
            if diff <= self.precision or diff >= math.pi - self.precision:
                aligned += 1
        return count, aligned

    def _rect_valid(self, line: LineSegment, line_angle: float) -> bool:
        points = enumerate_rect_points(line.sx, line.sy, line.ex, line.ey)
        count, aligned = self._count_aligned(((y, x) for x, y in points), line_angle)
        return self._nfa.check(count, aligned)

    def _is_valid(self, line: LineSegment) -> bool:
        if line.length >= _ALWAYS_VALID_LENGTH:
            return True
        angle = _line_angle(line)
        if line.length <= _RECT_ONLY_LENGTH:
            return self._rect_valid(line, angle)
        # The chain's coordinates are read as (row, column) here, as the detector always has.
        pixels = self.segments[line.segment_no][: line.length]
        count, aligned = self._count_aligned(((p[0], p[1]) for p in pixels), angle)
        return self._nfa.check(count, aligned) or self._rect_valid(line, angle)