"""Number-of-false-alarms (NFA) computations with a lookup table, plus a fast atan2."""

from __future__ import annotations

import math
import sys

MAX_LUT_SIZE = 1024
RELATIVE_ERROR_FACTOR = 100.0

_ATAN_LUT = tuple(math.atan(i / MAX_LUT_SIZE) for i in range(MAX_LUT_SIZE + 1))

_LANCZOS_Q = (
    75122.6331530,
    80916.6278952,
    36308.2951477,
    8687.24529705,
    1168.92649479,
    83.8676043424,
    2.50662827511,
)


def fast_atan2(y: float, x: float) -> float:
    """Return the direction of (x, y) modulo pi, in [0, pi], from a lookup table."""
    ay, ax = abs(y), abs(x)
    invert = ay > ax
    if invert:
        ax, ay = ay, ax
    if ax == 0:
        ax = 0.000001
    angle = _ATAN_LUT[int((ay / ax) * MAX_LUT_SIZE)]

    if (x >= 0) == (y >= 0):
        # First or third quadrant.
        if invert:
            angle = math.pi / 2 - angle
    elif invert:
        angle = math.pi / 2 + angle
    else:
        angle = math.pi - angle
    return angle


def _log_gamma_lanczos(x: float) -> float:
    a = (x + 0.5) * math.log(x + 5.5) - (x + 5.5)
    b = 0.0
    for n, q in enumerate(_LANCZOS_Q):
        a -= math.log(x + n)
        b += q * x**n
    return a + math.log(b)


def _log_gamma_windschitl(x: float) -> float:
    return (
        0.918938533204673
        + (x - 0.5) * math.log(x)
        - x
        + 0.5 * x * math.log(x * math.sinh(1 / x) + 1 / (810.0 * x**6))
    )


def log_gamma(x: float) -> float:
    """Approximate the natural logarithm of the gamma function for x > 0."""
    return _log_gamma_windschitl(x) if x > 15 else _log_gamma_lanczos(x)


def double_equal(a: float, b: float) -> bool:
    """Compare two floats with a relative tolerance of a few machine epsilons."""
    if a == b:
        return True
    abs_diff = abs(a - b)
    abs_max = max(abs(a), abs(b), sys.float_info.min)
    return abs_diff / abs_max <= RELATIVE_ERROR_FACTOR * sys.float_info.epsilon


class NfaTable:
    """Minimum number of aligned points needed for significance, per point count."""

    def __init__(self, size: int, prob: float, log_nt: float) -> None:
        if size < 1:
            raise ValueError("table size must be at least 1")
        self.size = size
        self.prob = prob
        self.log_nt = log_nt

        lut = [1]
        j = 1
        for i in range(1, size):
            entry = size + 1
            ret = self.nfa(i, j)
            if ret < 0:
                while j < i:
                    j += 1
                    ret = self.nfa(i, j)
                    if ret >= 0:
                        break
            if ret >= 0:
                entry = j
            lut.append(entry)
        self.lut = tuple(lut)

    def nfa(self, n: int, k: int) -> float:
        """Return -log10(NFA) for k successes out of n trials; negative means not meaningful."""
        prob = self.prob
        log_nt = self.log_nt
        tolerance = 0.1

        if n < 0 or k < 0 or k > n or prob <= 0.0 or prob >= 1.0:
            return -1.0
        if n == 0 or k == 0:
            return -log_nt
        if n == k:
            return -log_nt - n * math.log10(prob)

        p_term = prob / (1.0 - prob)

        log1term = (
            log_gamma(n + 1.0)
            - log_gamma(k + 1.0)
            - log_gamma(n - k + 1.0)
            + k * math.log(prob)
            + (n - k) * math.log(1.0 - prob)
        )
        term = math.exp(log1term)

        if double_equal(term, 0.0):
            if k > n * prob:
                return -log1term / math.log(10) - log_nt
            return -log_nt

        bin_tail = term
        for i in range(k + 1, n + 1):
            bin_term = (n - i + 1) / i
            mult_term = bin_term * p_term
            term *= mult_term
            bin_tail += term
            if bin_term < 1.0 and mult_term != 1.0:
                err = term * (
                    (1.0 - mult_term ** (n - i + 1)) / (1.0 - mult_term) - 1.0
                )
                if err < tolerance * abs(-math.log10(bin_tail) - log_nt) * bin_tail:
                    break

        return -math.log10(bin_tail) - log_nt

    def check(self, n: int, k: int) -> bool:
        """Return whether k aligned points out of n are significant."""
        if n >= self.size:
            return self.nfa(n, k) >= 0.0
        return k >= self.lut[n]