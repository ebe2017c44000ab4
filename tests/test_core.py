import pytest

from cubaturekit.core import (
    CubatureError,
    ErrorNorm,
    converged,
    vectorize,
)


def test_individual_relative_tolerance():
    assert converged([1.0], [0.125], 0.0, 0.25, ErrorNorm.INDIVIDUAL) is True
    assert converged([1.0], [0.5], 0.0, 0.25, ErrorNorm.INDIVIDUAL) is False


def test_individual_absolute_tolerance():
    assert converged([0.0], [0.5], 0.5, 0.0, ErrorNorm.INDIVIDUAL) is True
    assert converged([0.0], [0.5], 0.25, 0.0, ErrorNorm.INDIVIDUAL) is False


def test_individual_every_component_must_pass():
    assert converged([1.0, 1.0], [0.0, 0.5], 0.0, 0.25) is False
    assert converged([1.0, 1.0], [0.0, 0.125], 0.0, 0.25) is True


def test_zero_errors_always_converged():
    for norm in ErrorNorm:
        assert converged([1.0, 2.0, 3.0], [0.0, 0.0, 0.0], 0.0, 0.0, norm) is True


def test_l1_versus_linf():
    vals = [1.0, 0.0]
    errs = [0.25, 0.25]
    assert converged(vals, errs, 0.0, 0.3, ErrorNorm.L1) is False
    assert converged(vals, errs, 0.0, 0.3, ErrorNorm.LINF) is True


def test_l1_sum_of_errors():
    assert converged([1.0, 1.0], [0.25, 0.25], 0.0, 0.25, ErrorNorm.L1) is True
    assert converged([1.0, 1.0], [0.25, 0.25], 0.0, 0.2, ErrorNorm.L1) is False


def test_l2_norm_of_errors():
    assert converged([0.0, 0.0], [3.0, 4.0], 5.0, 0.0, ErrorNorm.L2) is True
    assert converged([0.0, 0.0], [3.0, 4.0], 4.9, 0.0, ErrorNorm.L2) is False


def test_paired_uses_pair_norm():
    assert converged([0.0, 0.0], [3.0, 4.0], 5.0, 0.0, ErrorNorm.PAIRED) is True
    assert converged([0.0, 0.0], [3.0, 4.0], 4.9, 0.0, ErrorNorm.PAIRED) is False


def test_paired_odd_length_checks_last_component():
    vals = [0.0, 0.0, 1.0]
    assert converged(vals, [0.0, 0.0, 0.5], 0.0, 0.25, ErrorNorm.PAIRED) is False
    assert converged(vals, [0.0, 0.0, 0.125], 0.0, 0.25, ErrorNorm.PAIRED) is True


def test_norm_accepts_plain_int():
    assert converged([0.0, 0.0], [3.0, 4.0], 5.0, 0.0, 2) is True
    assert converged([0.0, 0.0], [3.0, 4.0], 4.9, 0.0, 2) is False


def test_invalid_norm_raises():
    with pytest.raises(CubatureError):
        converged([1.0], [0.1], 0.0, 0.1, 7)


def test_mismatched_lengths_raise():
    with pytest.raises(ValueError):
        converged([1.0, 2.0], [0.1], 0.0, 0.1)


def test_vectorize_maps_each_point():
    def f(x):
        return (sum(x), x[0] * x[-1])

    points = [[1.0, 2.0], [3.0, 4.0], [-1.5, 0.5]]
    batched = vectorize(f)
    assert batched(points) == [list(f(p)) for p in points]


def test_vectorize_empty_batch():
    assert vectorize(lambda x: [1.0])([]) == []


def test_vectorize_propagates_errors():
    def f(x):
        return [1.0 / x[0]]

    with pytest.raises(ZeroDivisionError):
        vectorize(f)([[1.0], [0.0]])