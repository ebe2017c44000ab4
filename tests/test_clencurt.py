import math

import pytest

from cubaturekit.clencurt import (
    build_table,
    clencurt_weights,
    main,
    permutation,
    render_table,
)


def test_permutation_of_rule_zero_is_identity():
    assert [permutation(0, j) for j in range(5)] == [0, 1, 2, 3, 4]


@pytest.mark.parametrize("m", range(0, 7))
def test_permutation_is_bijection(m):
    values = [permutation(m, j) for j in range(1 << m)]
    assert sorted(values) == list(range(1 << m))


@pytest.mark.parametrize("m", range(1, 7))
def test_permutation_first_half_doubles_previous(m):
    half = 1 << (m - 1)
    assert [permutation(m, j) for j in range(half)] == [
        2 * permutation(m - 1, j) for j in range(half)
    ]
    assert all(permutation(m, j) % 2 == 1 for j in range(half, 2 * half))


def test_three_point_rule_is_simpson():
    assert clencurt_weights(1) == pytest.approx([1 / 3, 4 / 3])


@pytest.mark.parametrize("n", [1, 2, 4, 8, 16])
def test_weights_integrate_constant(n):
    w = clencurt_weights(n)
    assert len(w) == n + 1
    assert w[n] + 2 * sum(w[:n]) == pytest.approx(2.0)


def test_weights_integrate_polynomial_exactly():
    n = 4
    w = clencurt_weights(n)
    xs = [math.cos(math.pi * j / (2 * n)) for j in range(n + 1)]

    def f(t):
        return t * t

    total = w[n] * f(0.0) + sum(w[j] * (f(xs[j]) + f(-xs[j])) for j in range(n))
    assert total == pytest.approx(2 / 3)


def test_weights_reject_nonpositive():
    with pytest.raises(ValueError):
        clencurt_weights(0)


def test_table_sizes():
    table = build_table(3)
    assert table.max_m == 3
    assert len(table.x) == 1 << 3
    assert len(table.w) == 3 + (1 << 4)


def test_table_points_lie_in_unit_interval():
    table = build_table(4)
    assert table.x[0] == pytest.approx(1.0)
    assert all(0.0 < x <= 1.0 for x in table.x)
    assert len(set(table.x)) == len(table.x)


@pytest.mark.parametrize("max_m", [0, 1, 2, 3, 4])
def test_each_table_rule_integrates_constant(max_m):
    table = build_table(max_m)
    for m in range(max_m + 1):
        start = m + (1 << m) - 1
        weights = table.w[start:start + (1 << m) + 1]
        assert weights[0] + 2 * sum(weights[1:]) == pytest.approx(2.0)


def test_tables_are_nested():
    fine = build_table(4)
    for m in range(4):
        coarse = build_table(m)
        assert fine.x[: 1 << m] == pytest.approx(coarse.x)
        assert fine.w[: len(coarse.w)] == pytest.approx(coarse.w)


def test_build_table_rejects_negative():
    with pytest.raises(ValueError):
        build_table(-1)


def test_render_table_layout():
    text = render_table(1)
    assert "CLENCURT_M = 1" in text
    assert text.rstrip().endswith("# P_M = 0 1")
    assert text.count("# m = ") == 2


def test_main_prints_table(capsys):
    assert main(["1"]) == 0
    assert capsys.readouterr().out == render_table(1)


def test_main_rejects_extra_arguments(capsys):
    assert main(["1", "2"]) == 1
    assert "usage" in capsys.readouterr().err


def test_main_rejects_negative(capsys):
    assert main(["-1"]) == 1
    assert "usage" in capsys.readouterr().err