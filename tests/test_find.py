import math

import pytest

from hpmfind.ellipse import Ellipse
from hpmfind.find import (
    NUMBER_OF_MARKERS,
    best_sixtuple,
    distance_group_indices,
    expected_distances,
    extract_sixtuples,
)

PROVIDED = [
    (-72.4478, -125.483, 0.0),
    (72.4478, -125.483, 0.0),
    (146.895, -3.4642, 0.0),
    (64.446, 139.34, 0.0),
    (-68.4476, 132.411, 0.0),
    (-160.895, -27.7129, 0.0),
]


def _hexagon(radius, count=6):
    return [
        (radius * math.cos(2 * math.pi * k / count), radius * math.sin(2 * math.pi * k / count))
        for k in range(count)
    ]


def test_extract_sixtuples_too_few():
    assert extract_sixtuples([1, 2, 3, 4, 5]) == []


def test_extract_sixtuples_exactly_six():
    assert extract_sixtuples([4, 8, 15, 16, 23, 42]) == [(4, 8, 15, 16, 23, 42)]


def test_extract_sixtuples_count_and_order():
    tuples = extract_sixtuples(list(range(8)))
    assert len(tuples) == math.comb(8, 6)
    assert tuples == sorted(tuples)
    assert all(len(set(t)) == NUMBER_OF_MARKERS for t in tuples)


def test_distance_group_finds_hexagon_and_drops_outlier():
    positions = [(x, y, 750.0) for x, y in _hexagon(10.0)] + [(1000.0, 1000.0, 750.0)]
    ellipses = [Ellipse.from_size((x * 10, y * 10), 5.0) for x, y, _ in positions]
    assert distance_group_indices(positions, ellipses, 100.0) == [0, 1, 2, 3, 4, 5]


def test_distance_group_ignores_overlapping_ellipses():
    positions = [(x, y, 0.0) for x, y in _hexagon(10.0)]
    ellipses = [Ellipse.from_size((0.0, 0.0), 5.0) for _ in positions]
    assert distance_group_indices(positions, ellipses, 100.0) == []


def test_distance_group_needs_enough_markers():
    positions = [(x, y, 0.0) for x, y in _hexagon(10.0, 5)]
    ellipses = [Ellipse.from_size((x * 10, y * 10), 5.0) for x, y, _ in positions]
    assert distance_group_indices(positions, ellipses, 100.0) == []


def test_distance_group_length_mismatch():
    with pytest.raises(ValueError):
        distance_group_indices([(0, 0, 0)], [], 1.0)


def test_expected_distances_sorted():
    distances = expected_distances(PROVIDED)
    assert len(distances) == 15
    assert distances == sorted(distances)
    assert math.isclose(distances[-1], math.dist(PROVIDED[2], PROVIDED[5]))


def test_expected_distances_on_a_line():
    markers = [(float(i), 0.0, 0.0) for i in range(6)]
    assert expected_distances(markers) == [1, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 4, 4, 5]


def test_expected_distances_too_few():
    with pytest.raises(ValueError):
        expected_distances(PROVIDED[:5])


def test_best_sixtuple_picks_true_markers():
    positions = [(300.0, 300.0, 0.0)] + PROVIDED
    ellipses = [Ellipse.from_size((x * 5, y * 5), 10.0) for x, y, _ in positions]
    expected = expected_distances(PROVIDED)
    assert best_sixtuple(range(7), positions, ellipses, expected) == (1, 2, 3, 4, 5, 6)


def test_best_sixtuple_penalises_overlap():
    # A copy of marker 0 at the same 3D spot but overlapping marker 1 in the image.
    positions = PROVIDED + [PROVIDED[0]]
    ellipses = [Ellipse.from_size((x * 5, y * 5), 10.0) for x, y, _ in PROVIDED]
    ellipses.append(Ellipse.from_size(ellipses[1].center, 10.0))
    expected = expected_distances(PROVIDED)
    assert best_sixtuple(range(7), positions, ellipses, expected) == (0, 1, 2, 3, 4, 5)


def test_best_sixtuple_needs_six():
    with pytest.raises(ValueError):
        best_sixtuple(range(5), PROVIDED, [Ellipse()] * 6, [0.0] * 15)