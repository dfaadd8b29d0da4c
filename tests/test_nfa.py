import math

import pytest

from hpmfind.nfa import NfaTable, double_equal, fast_atan2, log_gamma


def test_double_equal_identical():
    assert double_equal(1.0, 1.0)


def test_double_equal_tiny_relative_difference():
    assert double_equal(1.0, 1.0 + 1e-15)


def test_double_equal_large_difference():
    assert not double_equal(1.0, 1.001)


def test_double_equal_zero_and_nonzero():
    assert not double_equal(0.0, 1e-3)


@pytest.mark.parametrize("x", [0.5, 1.0, 2.5, 7.0, 14.9, 15.1, 30.0, 200.0])
def test_log_gamma_matches_stdlib(x):
    assert log_gamma(x) == pytest.approx(math.lgamma(x), rel=1e-6, abs=1e-6)


@pytest.mark.parametrize(
    "y,x",
    [(1.0, 2.0), (2.0, 1.0), (1.0, -2.0), (2.0, -1.0), (-1.0, -2.0), (-2.0, -1.0), (-1.0, 2.0), (-2.0, 1.0)],
)
def test_fast_atan2_is_direction_modulo_pi(y, x):
    expected = math.atan2(y, x) % math.pi
    assert fast_atan2(y, x) == pytest.approx(expected, abs=2e-3)


def test_fast_atan2_origin():
    assert fast_atan2(0.0, 0.0) == 0.0


def test_fast_atan2_range():
    for y in (-3.0, -0.5, 0.0, 0.5, 3.0):
        for x in (-3.0, -0.5, 0.0, 0.5, 3.0):
            assert 0.0 <= fast_atan2(y, x) <= math.pi


def test_nfa_invalid_arguments():
    table = NfaTable(10, 0.125, 4.0)
    assert table.nfa(3, 5) == -1.0
    assert table.nfa(-1, 0) == -1.0
    assert NfaTable(10, 1.5, 4.0).nfa(3, 2) == -1.0


def test_nfa_trivial_cases():
    table = NfaTable(10, 0.125, 4.0)
    assert table.nfa(0, 0) == -4.0
    assert table.nfa(5, 0) == -4.0
    assert table.nfa(6, 6) == pytest.approx(-4.0 - 6 * math.log10(0.125))


def test_nfa_increases_with_successes():
    table = NfaTable(10, 0.125, 4.0)
    values = [table.nfa(40, k) for k in range(1, 41)]
    assert all(b >= a - 1e-9 for a, b in zip(values, values[1:]))


def test_table_rejects_empty_size():
    with pytest.raises(ValueError):
        NfaTable(0, 0.125, 4.0)


def test_table_first_entry_and_length():
    table = NfaTable(50, 0.125, 8.0)
    assert table.lut[0] == 1
    assert len(table.lut) == 50


def test_check_monotone_in_k():
    table = NfaTable(50, 0.125, 8.0)
    for n in range(1, 50):
        results = [table.check(n, k) for k in range(n + 1)]
        for a, b in zip(results, results[1:]):
            assert b or not a


def test_check_all_aligned_significant_when_nfa_says_so():
    table = NfaTable(50, 0.125, 8.0)
    for n in range(1, 50):
        if table.nfa(n, n) >= 0:
            assert table.check(n, n)
        else:
            assert not table.check(n, n)


def test_check_beyond_table_uses_nfa():
    table = NfaTable(20, 0.125, 8.0)
    assert table.check(100, 100)
    assert not table.check(100, 0)
    assert table.check(100, 60) == (table.nfa(100, 60) >= 0.0)