"""Shared types and the convergence test used by the cubature routines."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum

Integrand = Callable[[Sequence[float]], Sequence[float]]
VectorIntegrand = Callable[[Sequence[Sequence[float]]], Sequence[Sequence[float]]]


class ErrorNorm(IntEnum):
    """How errors of a vector integrand are combined into one criterion."""

    INDIVIDUAL = 0  # each component must meet the tolerance on its own
    PAIRED = 1  # L2 norm of consecutive pairs, e.g. real/imaginary parts
    L2 = 2
    L1 = 3
    LINF = 4


class CubatureError(Exception):
    """Raised when an integration cannot be carried out."""


@dataclass
class CubatureResult:
    """Integral estimates and their absolute error estimates, per component."""

    val: list[float] = field(default_factory=list)
    err: list[float] = field(default_factory=list)


def _as_norm(norm: ErrorNorm | int) -> ErrorNorm:
    try:
        return ErrorNorm(norm)
    except ValueError:
        raise CubatureError(f"invalid error norm: {norm!r}") from None


def _individual_done(val: float, err: float, req_abs: float, req_rel: float) -> bool:
    return not (err > req_abs and err > abs(val) * req_rel)


def _scaled_l2(values: Sequence[float], scale_max: float) -> float:
    scale = 1.0 / scale_max if scale_max > 0 else 1.0
    return math.sqrt(sum((v * scale) ** 2 for v in values)) * scale_max


def converged(
    vals: Sequence[float],
    errs: Sequence[float],
    req_abs_error: float,
    req_rel_error: float,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
) -> bool:
    """Return True when the error estimates meet the requested tolerances."""
    norm = _as_norm(norm)
    if len(vals) != len(errs):
        raise ValueError("vals and errs must have the same length")

    if norm is ErrorNorm.INDIVIDUAL:
        return all(
            _individual_done(v, e, req_abs_error, req_rel_error)
            for v, e in zip(vals, errs)
        )

    if norm is ErrorNorm.PAIRED:
        fdim = len(vals)
        for j in range(0, fdim - 1, 2):
            e0, e1 = errs[j], errs[j + 1]
            v0, v1 = vals[j], vals[j + 1]
            err = _scaled_l2((e0, e1), max(e0, e1))
            val = _scaled_l2((v0, v1), max(v0, v1))
            if err > req_abs_error and err > val * req_rel_error:
                return False
        if fdim % 2 == 1:
            return _individual_done(vals[-1], errs[-1], req_abs_error, req_rel_error)
        return True

    if norm is ErrorNorm.L1:
        err = sum(errs)
        val = sum(abs(v) for v in vals)
    elif norm is ErrorNorm.LINF:
        err = max(errs, default=0.0)
        err = max(err, 0.0)
        val = max((abs(v) for v in vals), default=0.0)
    else:  # ErrorNorm.L2
        maxerr = max([0.0, *errs])
        maxval = max([0.0, *(abs(v) for v in vals)])
        err = _scaled_l2(errs, maxerr)
        val = _scaled_l2([abs(v) for v in vals], maxval)
    return err <= req_abs_error or err <= val * req_rel_error


def vectorize(f: Integrand) -> VectorIntegrand:
    """Turn a one-point integrand into one that evaluates a batch of points."""

    def batch(points: Sequence[Sequence[float]]) -> list[list[float]]:
        return [list(f(point)) for point in points]

    return batch