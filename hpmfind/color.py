"""Color edge support: Lab conversion, Gaussian blur, Di Zenzo gradient and edge filtering."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np

from hpmfind.segments import count_segment_pieces, draw_filtered_segment

EDGE_NONE = 0
EDGE_HORIZONTAL = 1
EDGE_VERTICAL = 2

_LUT_SIZE = 1024 * 4096


def _quantize(values: np.ndarray) -> np.ndarray:
    return np.floor(values * _LUT_SIZE + 0.5) / _LUT_SIZE


def _srgb_to_linear(values: np.ndarray) -> np.ndarray:
    d = _quantize(values)
    return np.where(d >= 0.04045, ((d + 0.055) / 1.055) ** 2.4, d / 12.92)


def _xyz_to_lab_f(values: np.ndarray) -> np.ndarray:
    d = _quantize(values)
    return np.where(d > 0.008856, np.cbrt(d), 7.787 * d + 16.0 / 116.0)


def _normalize(channel: np.ndarray) -> np.ndarray:
    low = channel.min()
    span = channel.max() - low
    if span == 0:
        return np.zeros(channel.shape, dtype=np.uint8)
    scaled = (channel - low) * (255.0 / span)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def rgb_to_lab(image: np.ndarray) -> np.ndarray:
    """Convert a BGR uint8 image to Lab, each channel stretched to 0..255.

    Uses observer 2 degrees and illuminant D65. A channel without any spread
    comes out as zeros.
    """
    pixels = np.asarray(image)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError("a three-channel BGR image is required")
    if pixels.shape[0] < 1 or pixels.shape[1] < 1:
        raise ValueError("the image is empty")

    channels = pixels.astype(np.float64) / 255.0
    blue = 100.0 * _srgb_to_linear(channels[..., 0])
    green = 100.0 * _srgb_to_linear(channels[..., 1])
    red = 100.0 * _srgb_to_linear(channels[..., 2])

    x = (red * 0.4124564 + green * 0.3575761 + blue * 0.1804375) / 95.047
    y = (red * 0.2126729 + green * 0.7151522 + blue * 0.0721750) / 100.000
    z = (red * 0.0193339 + green * 0.1191920 + blue * 0.9503041) / 108.883
    x, y, z = _xyz_to_lab_f(x), _xyz_to_lab_f(y), _xyz_to_lab_f(z)

    lightness = 116.0 * y - 16.0
    a = 500.0 * (x / y)
    b = 200.0 * (y - z)
    return np.stack([_normalize(lightness), _normalize(a), _normalize(b)], axis=-1)


def _gaussian_kernel(size: int, sigma: float) -> np.ndarray:
    offsets = np.arange(size) - (size - 1) / 2.0
    kernel = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def gaussian_blur(image: np.ndarray, blur_size: float) -> np.ndarray:
    """Blur an image with a Gaussian of sigma blur_size, mirroring at the borders.

    A 5x5 kernel is used for sigma in [1, 1.5), 7x7 for larger sigma and a
    size derived from sigma otherwise. The result has the input's dtype.
    """
    if blur_size <= 0:
        raise ValueError("blur size must be positive")
    pixels = np.asarray(image)
    if pixels.ndim < 2 or pixels.shape[0] < 1 or pixels.shape[1] < 1:
        raise ValueError("the image is empty")

    is_integer = np.issubdtype(pixels.dtype, np.integer)
    if 1.0 <= blur_size < 1.5:
        size = 5
    elif blur_size >= 1.5:
        size = 7
    else:
        factor = 3 if is_integer else 4
        size = int(math.floor(blur_size * factor * 2 + 1 + 0.5)) | 1
    kernel = _gaussian_kernel(size, blur_size)
    radius = size // 2

    result = pixels.astype(np.float64)
    for axis in (0, 1):
        pad = [(0, 0)] * result.ndim
        pad[axis] = (radius, radius)
        padded = np.pad(result, pad, mode="reflect") if result.shape[axis] > 1 else np.pad(
            result, pad, mode="edge"
        )
        length = result.shape[axis]
        accumulated = np.zeros_like(result)
        for offset, weight in enumerate(kernel):
            accumulated += weight * np.take(padded, range(offset, offset + length), axis=axis)
        result = accumulated

    if is_integer:
        info = np.iinfo(pixels.dtype)
        return np.clip(np.rint(result), info.min, info.max).astype(pixels.dtype)
    return result.astype(pixels.dtype)


def _neighbours(image: np.ndarray) -> dict[str, np.ndarray]:
    return {
        "ul": image[:-2, :-2],
        "u": image[:-2, 1:-1],
        "ur": image[:-2, 2:],
        "l": image[1:-1, :-2],
        "r": image[1:-1, 2:],
        "dl": image[2:, :-2],
        "d": image[2:, 1:-1],
        "dr": image[2:, 2:],
    }


def _check_lab(lab: np.ndarray) -> np.ndarray:
    pixels = np.asarray(lab)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError("a three-channel Lab image is required")
    if pixels.shape[0] < 3 or pixels.shape[1] < 3:
        raise ValueError("the image must be at least 3x3")
    return pixels.astype(np.int64)


def gradient_di_zenzo(lab: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return the color gradient magnitude (scaled to 0..255) and edge directions.

    Directions are EDGE_VERTICAL, EDGE_HORIZONTAL, or EDGE_NONE on the border.
    """
    pixels = _check_lab(lab)
    n = _neighbours(pixels)
    com1 = n["dr"] - n["ul"]
    com2 = n["ur"] - n["dl"]
    gx = com1 + com2 + n["r"] - n["l"]
    gy = com1 + n["d"] - com2 - n["u"]

    gxx = (gx * gx).sum(axis=-1)
    gyy = (gy * gy).sum(axis=-1)
    gxy = (gx * gy).sum(axis=-1)

    two_theta = np.arctan2(2.0 * gxy, (gxx - gyy).astype(np.float64))
    squared = (gxx + gyy + (gxx - gyy) * np.cos(two_theta) + 2 * gxy * np.sin(two_theta)) / 2.0
    magnitude = (np.sqrt(np.maximum(squared, 0.0)) + 0.5).astype(np.int64)

    height, width = pixels.shape[:2]
    grad = np.zeros((height, width), dtype=np.int64)
    grad[1:-1, 1:-1] = magnitude
    directions = np.full((height, width), EDGE_NONE, dtype=np.int8)
    directions[1:-1, 1:-1] = np.where(
        (two_theta >= -math.pi / 2.0) & (two_theta <= math.pi / 2.0),
        EDGE_VERTICAL,
        EDGE_HORIZONTAL,
    )

    peak = int(grad.max())
    if peak > 0:
        grad = (grad * (255.0 / peak)).astype(np.int64)
    return grad, directions


def _tail_probability(interior: np.ndarray, max_grad_value: int) -> list[float]:
    counts = np.bincount(interior.ravel(), minlength=max_grad_value)
    if len(counts) > max_grad_value:
        raise ValueError("a gradient value exceeds max_grad_value")
    tail = counts[::-1].cumsum()[::-1]
    return (tail / interior.size).tolist()


def color_edge_image(
    lab: np.ndarray,
    segments: Iterable[Sequence[tuple[int, int]]],
    min_length: int,
    epsilon: float,
    max_grad_value: int,
) -> np.ndarray:
    """Redraw the meaningful parts of the segments on a fresh edge image.

    The gradient is the mean absolute Lab difference; meaningfulness follows
    the Helmholtz principle against the gradient's tail distribution.
    """
    pixels = _check_lab(lab)
    n = _neighbours(pixels)
    com1 = n["dr"] - n["ul"]
    com2 = n["ur"] - n["dl"]
    gx = np.abs(com1 + com2 + n["r"] - n["l"])
    gy = np.abs(com1 + n["d"] - com2 - n["u"])
    interior = (gx.sum(axis=-1) + gy.sum(axis=-1) + 2) // 3

    height, width = pixels.shape[:2]
    grad = np.zeros((height, width), dtype=np.int64)
    grad[1:-1, 1:-1] = interior
    probability = _tail_probability(interior, max_grad_value)

    chains = [list(segment) for segment in segments]
    pieces = count_segment_pieces(chains)
    edge_image = np.zeros((height, width), dtype=np.uint8)
    for chain in chains:
        draw_filtered_segment(
            chain, edge_image, grad, probability, pieces, min_length, epsilon
        )
    return edge_image