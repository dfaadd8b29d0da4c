"""Edge-segment validation by the Helmholtz principle."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

Point = tuple[int, int]


def nfa_count(prob: float, length: int, segment_pieces: int, epsilon: float) -> float:
    """Return the expected number of false alarms for a chain of the given length."""
    nfa = float(segment_pieces)
    for _ in range(length):
        if nfa <= epsilon:
            break
        nfa *= prob
    return nfa


def count_segment_pieces(segments: Iterable[Sequence[Point]]) -> int:
    """Return the number of sub-chains over all segments."""
    return sum(len(segment) * (len(segment) - 1) // 2 for segment in segments)


def valid_segments(
    edge_image: np.ndarray, segments: Iterable[Sequence[Point]], min_length: int
) -> list[list[Point]]:
    """Split segments into the runs of pixels that are set in the edge image."""
    valids: list[list[Point]] = []
    for segment in segments:
        points = list(segment)
        end = len(points)
        front = 0
        back = 0
        while back != end:
            while front < end and not edge_image[points[front][1], points[front][0]]:
                front += 1
            back = front
            while back < end and edge_image[points[back][1], points[back][0]]:
                back += 1
            if back - front >= min_length:
                valids.append(points[front : back - 1])
            front = back + 1
    return valids


def draw_filtered_segment(
    points: Sequence[Point],
    edge_image: np.ndarray,
    grad_image: np.ndarray,
    probability: Sequence[float],
    segment_pieces: int,
    min_length: int,
    epsilon: float,
) -> None:
    """Mark the meaningful parts of a chain in the edge image, in place.

    A chain is split at its weakest pixel until each part is either
    meaningful (drawn with 255) or shorter than min_length.
    """
    pending = [list(points)]
    while pending:
        chain = pending.pop()
        if len(chain) < min_length:
            continue
        grads = [int(grad_image[y, x]) for x, y in chain]
        min_grad = min(grads)
        weakest = grads.index(min_grad)
        nfa = nfa_count(
            probability[min_grad], int(len(chain) / 2.25), segment_pieces, epsilon
        )
        if nfa <= epsilon:
            for x, y in chain:
                edge_image[y, x] = 255
            continue
        pending.append(chain[:weakest])
        pending.append(chain[weakest + 1 :])