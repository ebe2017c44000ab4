"""High-level entry points that wrap the cubature routines for user callables.

Each call reports the integral, the error estimate, the number of integrand
evaluations and a return code.  The return code is 0 on success and 1 when
the integration failed.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from cubaturekit.core import CubatureError, CubatureResult, ErrorNorm
from cubaturekit.hcubature import hcubature, hcubature_v
from cubaturekit.pcubature import pcubature, pcubature_v

DEFAULT_TOL = 1e-5


@dataclass(frozen=True)
class IntegrationResult:
    """Outcome of one integration."""

    integral: list[float]
    error: list[float]
    function_evaluations: int
    return_code: int

    @property
    def ok(self) -> bool:
        return self.return_code == 0


def _values(result: Any, fdim: int) -> list[float]:
    if isinstance(result, numbers.Real):
        values = [float(result)]
    else:
        values = [float(v) for v in result]
    if len(values) != fdim:
        raise ValueError(f"integrand returned {len(values)} values, expected {fdim}")
    return values


def _run(
    routine: Callable[..., CubatureResult],
    routine_v: Callable[..., CubatureResult],
    f: Callable[..., Any],
    lower: Sequence[float],
    upper: Sequence[float],
    fdim: int,
    max_eval: int,
    abs_err: float,
    tol: float,
    vector_interface: bool,
    norm: ErrorNorm | int,
) -> IntegrationResult:
    lower = [float(v) for v in lower]
    upper = [float(v) for v in upper]
    if len(lower) != len(upper):
        raise ValueError("lower and upper must have the same length")

    count = 0

    if vector_interface:

        def wrapped_v(points: Sequence[Sequence[float]]) -> list[list[float]]:
            nonlocal count
            rows = list(f([list(p) for p in points]))
            if len(rows) != len(points):
                raise ValueError(
                    f"integrand returned {len(rows)} results for {len(points)} points"
                )
            count += len(points)
            return [_values(row, fdim) for row in rows]

        integrate, wrapped = routine_v, wrapped_v
    else:

        def wrapped_p(point: Sequence[float]) -> list[float]:
            nonlocal count
            values = _values(f(list(point)), fdim)
            count += 1
            return values

        integrate, wrapped = routine, wrapped_p

    try:
        result = integrate(wrapped, fdim, lower, upper, max_eval, abs_err, tol, norm)
        code = 0
    except CubatureError as exc:
        partial = getattr(exc, "result", None)
        if partial is None:
            partial = CubatureResult(val=[0.0] * fdim, err=[math.inf] * fdim)
        result = partial
        code = 1
    return IntegrationResult(
        integral=list(result.val),
        error=list(result.err),
        function_evaluations=count,
        return_code=code,
    )


def integrate_h(
    f: Callable[..., Any],
    lower: Sequence[float],
    upper: Sequence[float],
    fdim: int = 1,
    max_eval: int = 0,
    abs_err: float = 0.0,
    tol: float = DEFAULT_TOL,
    vector_interface: bool = False,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
) -> IntegrationResult:
    """h-adaptive integration of ``f`` over the box ``lower``..``upper``.

    Without ``vector_interface`` ``f`` takes one point and returns ``fdim``
    values (a plain number is accepted when ``fdim`` is 1).  With it, ``f``
    takes a list of points and returns one such result per point.
    """
    return _run(hcubature, hcubature_v, f, lower, upper, fdim, max_eval,
                abs_err, tol, vector_interface, norm)


def integrate_p(
    f: Callable[..., Any],
    lower: Sequence[float],
    upper: Sequence[float],
    fdim: int = 1,
    max_eval: int = 0,
    abs_err: float = 0.0,
    tol: float = DEFAULT_TOL,
    vector_interface: bool = False,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
) -> IntegrationResult:
    """p-adaptive integration of ``f``; arguments as for :func:`integrate_h`."""
    return _run(pcubature, pcubature_v, f, lower, upper, fdim, max_eval,
                abs_err, tol, vector_interface, norm)