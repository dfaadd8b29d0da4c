import dataclasses
import math

import numpy as np
import pytest

from hpmfind.linefit import LineSegment
from hpmfind.lines import (
    LineDetector,
    enumerate_rect_points,
    join_collinear_lines,
    min_line_length,
    try_join,
)


def _horizontal(sx, ex, y=0.0, segment_no=0, first=0, length=None):
    if length is None:
        length = int(ex - sx) + 1
    return LineSegment(y, 0.0, 0, float(sx), y, float(ex), y, segment_no, first, length)


def _step_image(size=60, edge_row=30):
    image = np.zeros((size, size), dtype=np.uint8)
    image[edge_row:, :] = 255
    return image


def test_min_line_length_grows_with_image_size():
    small = min_line_length(10, 10)
    large = min_line_length(4000, 4000)
    assert small > 0
    assert small <= large


def test_rect_points_of_horizontal_line():
    points = enumerate_rect_points(0.0, 5.0, 10.0, 5.0)
    assert set(points) == {(x, y) for x in range(11) for y in range(4, 7)}
    assert len(points) == len(set(points))


def test_rect_points_of_vertical_line_stay_near_line():
    points = enumerate_rect_points(3.0, 0.0, 3.0, 8.0)
    assert all(abs(x - 3) <= 1 for x, _ in points)
    assert all(-1 <= y <= 9 for _, y in points)
    assert {(3, y) for y in range(9)} <= set(points)


def test_rect_points_of_degenerate_line_raise():
    with pytest.raises(ValueError):
        enumerate_rect_points(2.0, 2.0, 2.0, 2.0)


def test_try_join_extends_collinear_line():
    first = _horizontal(0, 10, length=11)
    second = _horizontal(12, 20, first=12, length=9)
    second_before = dataclasses.replace(second)
    assert try_join(first, second, 6.0, 1.3)
    assert (first.sx, first.sy, first.ex, first.ey) == (0.0, 0.0, 20.0, 0.0)
    assert first.length == 11 + 9
    assert first.b == 0.0 and first.a == 0.0 and first.invert == 0
    assert second == second_before


def test_try_join_rejects_distant_lines():
    first = _horizontal(0, 10)
    before = dataclasses.replace(first)
    assert not try_join(first, _horizontal(30, 40, first=30), 6.0, 1.3)
    assert first == before


def test_try_join_rejects_perpendicular_lines():
    first = _horizontal(0, 10)
    vertical = LineSegment(11.0, 0.0, 1, 11.0, 0.0, 11.0, 10.0, 0, 11, 11)
    before = dataclasses.replace(first)
    assert not try_join(first, vertical, 6.0, 1.3)
    assert first == before


def test_join_collinear_lines_merges_pieces_of_one_segment():
    pieces = [
        _horizontal(0, 10, first=0, length=11),
        _horizontal(12, 20, first=12, length=9),
        _horizontal(22, 30, first=22, length=9),
    ]
    originals = [dataclasses.replace(p) for p in pieces]
    joined = join_collinear_lines(pieces, 6.0, 1.3)
    assert len(joined) == 1
    assert (joined[0].sx, joined[0].ex) == (0.0, 30.0)
    assert pieces == originals


def test_join_collinear_lines_keeps_segments_apart():
    pieces = [
        _horizontal(0, 10, segment_no=0),
        _horizontal(12, 20, segment_no=1, first=0),
    ]
    joined = join_collinear_lines(pieces, 6.0, 1.3)
    assert [line.segment_no for line in joined] == [0, 1]


def test_detector_finds_line_along_step_edge():
    chain = [(x, 30) for x in range(5, 55)]
    detector = LineDetector(_step_image(), [chain])
    assert detector.line_points() == [((5.0, 30.0), (54.0, 30.0))]
    assert detector.lines[0].length == len(chain)
    assert detector.invalid_lines == []


def test_detector_clamps_min_line_length():
    detector = LineDetector(_step_image(), [], min_line_len=3)
    assert detector.min_line_len == 9
    assert detector.lines == []


def test_detector_ignores_short_chains():
    chain = [(x, 30) for x in range(5, 10)]
    detector = LineDetector(_step_image(), [chain], validate=False)
    assert detector.lines == []


def test_detector_splits_corner_into_two_lines():
    chain = [(x, 10) for x in range(5, 31)] + [(30, y) for y in range(11, 36)]
    detector = LineDetector(_step_image(), [chain], validate=False)
    assert [line.invert for line in detector.lines] == [0, 1]


def test_validation_partitions_lines():
    rng = np.random.default_rng(0)
    image = rng.integers(0, 256, size=(64, 64), dtype=np.uint8)
    chains = [
        [(x, 20) for x in range(5, 25)],
        [(x, 40) for x in range(5, 50)],
        [(10, y) for y in range(5, 60)],
    ]
    unvalidated = LineDetector(image, chains, validate=False)
    validated = LineDetector(image, chains)
    assert len(validated.lines) + len(validated.invalid_lines) == len(
        unvalidated.lines
    )


def test_detector_requires_single_channel_image():
    with pytest.raises(ValueError):
        LineDetector(np.zeros((10, 10, 3), dtype=np.uint8), [])


def test_line_points_match_lines():
    chains = [[(x, 15) for x in range(2, 40)], [(x, 45) for x in range(2, 40)]]
    detector = LineDetector(_step_image(), chains, validate=False)
    assert len(detector.line_points()) == len(detector.lines) == 2
    for (start, end), line in zip(detector.line_points(), detector.lines):
        assert math.isclose(start[1], line.sy) and math.isclose(end[0], line.ex)