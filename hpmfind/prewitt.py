"""Prewitt gradient and parameter-free edge filtering of a gray image."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

from hpmfind.segments import count_segment_pieces, draw_filtered_segment


def _check_gray(image: np.ndarray) -> np.ndarray:
    pixels = np.asarray(image)
    if pixels.ndim != 2:
        raise ValueError("a single-channel image is required")
    if pixels.shape[0] < 3 or pixels.shape[1] < 3:
        raise ValueError("the image must be at least 3x3")
    return pixels.astype(np.int64)


def prewitt_gradient(
    image: np.ndarray, max_grad_value: int
) -> tuple[np.ndarray, list[float]]:
    """Return the Prewitt gradient |gx| + |gy| and its tail distribution.

    probability[g] is the fraction of interior pixels whose gradient is at
    least g. The border of the gradient image is zero.
    """
    pixels = _check_gray(image)
    com1 = pixels[2:, 2:] - pixels[:-2, :-2]
    com2 = pixels[:-2, 2:] - pixels[2:, :-2]
    gx = np.abs(com1 + com2 + pixels[1:-1, 2:] - pixels[1:-1, :-2])
    gy = np.abs(com1 - com2 + pixels[2:, 1:-1] - pixels[:-2, 1:-1])
    interior = gx + gy

    counts = np.bincount(interior.ravel(), minlength=max_grad_value)
    if len(counts) > max_grad_value:
        raise ValueError("a gradient value exceeds max_grad_value")
    tail = counts[::-1].cumsum()[::-1]
    probability = (tail / interior.size).tolist()

    grad = np.zeros(pixels.shape, dtype=np.int64)
    grad[1:-1, 1:-1] = interior
    return grad, probability


def filtered_edge_image(
    image: np.ndarray,
    segments: Iterable[Sequence[tuple[int, int]]],
    min_length: int,
    epsilon: float,
    max_grad_value: int,
) -> np.ndarray:
    """Draw only the meaningful parts of the segments, judged on the Prewitt gradient."""
    grad, probability = prewitt_gradient(image, max_grad_value)
    chains = [list(segment) for segment in segments]
    pieces = count_segment_pieces(chains)
    edge_image = np.zeros(grad.shape, dtype=np.uint8)
    for chain in chains:
        draw_filtered_segment(
            chain, edge_image, grad, probability, pieces, min_length, epsilon
        )
    return edge_image