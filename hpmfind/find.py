"""Selecting the six marker ellipses that best match a known marker layout."""

from __future__ import annotations

import itertools
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from hpmfind.ellipse import Ellipse

NUMBER_OF_MARKERS = 6
BUBBLE_SIZE_MARGIN_FACTOR = 2.0
MIN_NORMAL_CLOSENESS = 0.93
OVERLAP_TAX = 10000.0


@dataclass(frozen=True)
class FinderConfig:
    """Options for marker finding."""

    show_intermediate_images: bool = False
    verbose: bool = False
    fit_by_distance: bool = False


def extract_sixtuples(indices: Sequence[int]) -> list[tuple[int, ...]]:
    """Return every ordered choice of six of the indices, in lexicographic order."""
    if len(indices) < NUMBER_OF_MARKERS:
        return []
    return list(itertools.combinations(indices, NUMBER_OF_MARKERS))


def distance_group_indices(
    positions: Sequence[Sequence[float]],
    ellipses: Sequence[Ellipse],
    bubble_size_limit: float,
) -> list[int]:
    """Return indices of ellipses that sit in a tight group of at least six markers.

    Two ellipses are neighbours when they overlap less than half in the image
    and their 3D positions are closer than bubble_size_limit.
    """
    if len(positions) != len(ellipses):
        raise ValueError("positions and ellipses differ in length")
    points = [np.asarray(p, dtype=np.float64) for p in positions]
    limit_sq = bubble_size_limit * bubble_size_limit

    neighbours: list[list[int]] = []
    for i, (point_i, ellipse_i) in enumerate(zip(points, ellipses)):
        row: list[int] = []
        for j, (point_j, ellipse_j) in enumerate(zip(points, ellipses)):
            if i == j:
                continue
            pixel_distance = math.dist(ellipse_i.center, ellipse_j.center)
            if pixel_distance > ellipse_i.minor and pixel_distance > ellipse_j.minor:
                diff = point_i - point_j
                if float(diff @ diff) < limit_sq:
                    row.append(j)
        neighbours.append(row)

    neighbour_sets = [set(row) for row in neighbours]
    group: list[int] = []
    for i, row in enumerate(neighbours):
        if len(row) < NUMBER_OF_MARKERS - 1:
            continue
        well_connected = sum(
            1
            for neighbour in row
            if sum(
                1
                for other in row
                if other != neighbour and other in neighbour_sets[neighbour]
            )
            >= NUMBER_OF_MARKERS - 2
        )
        if well_connected >= NUMBER_OF_MARKERS - 1:
            group.append(i)
    return group


def expected_distances(marker_positions: Sequence[Sequence[float]]) -> list[float]:
    """Return the sorted pairwise distances between the six provided markers."""
    markers = np.asarray(marker_positions, dtype=np.float64)
    if markers.ndim != 2 or markers.shape[0] < NUMBER_OF_MARKERS:
        raise ValueError("at least six marker positions are required")
    rows = markers[:NUMBER_OF_MARKERS]
    return sorted(
        float(np.linalg.norm(a - b)) for a, b in itertools.combinations(rows, 2)
    )


def best_sixtuple(
    indices: Sequence[int],
    positions: Sequence[Sequence[float]],
    ellipses: Sequence[Ellipse],
    expected: Sequence[float],
) -> tuple[int, ...]:
    """Return the six indices whose distance pattern best matches the expected one.

    Candidates whose ellipses overlap in the image are penalised heavily.
    """
    candidates = extract_sixtuples(indices)
    if not candidates:
        raise ValueError("at least six candidate indices are required")
    points = [np.asarray(p, dtype=np.float64) for p in positions]

    def error(candidate: tuple[int, ...]) -> float:
        distances = sorted(
            float(np.linalg.norm(points[a] - points[b]))
            for a, b in itertools.combinations(candidate, 2)
        )
        total = sum((d - e) ** 2 for d, e in zip(distances, expected))
        for a, b in itertools.combinations(candidate, 2):
            pixel_distance = math.dist(ellipses[a].center, ellipses[b].center)
            if pixel_distance < ellipses[a].minor / 2.0 + ellipses[b].minor / 2.0:
                total += OVERLAP_TAX
        return total

    return min(candidates, key=error)