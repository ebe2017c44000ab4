"""h-adaptive cubature: repeatedly split the region with the largest error.

The domain is covered by boxes kept in a priority queue ordered by their
largest error estimate.  The worst box is halved along the dimension the
rule suggests, both halves are re-evaluated, and this goes on until the
summed error estimates meet the tolerance or the evaluation budget is used.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Sequence

from cubaturekit.core import (
    CubatureError,
    CubatureResult,
    ErrorNorm,
    Integrand,
    VectorIntegrand,
    converged,
    vectorize,
)
from cubaturekit.rules import GaussKronrodRule, GenzMalikRule, Hypercube, Region, make_rule

DEFAULT_REL_ERROR = 1e-5


class RegionHeap:
    """Max-priority queue of regions keyed on ``errmax``.

    It also keeps the running sums ``val`` and ``err`` of the estimates of
    all regions it holds.
    """

    def __init__(self, fdim: int) -> None:
        self.fdim = fdim
        self.val = [0.0] * fdim
        self.err = [0.0] * fdim
        self._items: list[tuple[float, int, Region]] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self):
        return (item[2] for item in self._items)

    def push(self, region: Region) -> None:
        """Add a region and its estimates to the queue."""
        for j in range(self.fdim):
            self.val[j] += region.val[j]
            self.err[j] += region.err[j]
        heapq.heappush(self._items, (-region.errmax, next(self._counter), region))

    def pop(self) -> Region:
        """Remove and return the region with the largest error."""
        if not self._items:
            raise CubatureError("attempted to pop an empty heap")
        region = heapq.heappop(self._items)[2]
        for j in range(self.fdim):
            self.val[j] -= region.val[j]
            self.err[j] -= region.err[j]
        return region


def _within_budget(num_eval: int, max_eval: int) -> bool:
    return not max_eval or num_eval < max_eval


def _rule_cubature(
    rule: GaussKronrodRule | GenzMalikRule,
    fdim: int,
    f: VectorIntegrand,
    h: Hypercube,
    max_eval: int,
    req_abs_error: float,
    req_rel_error: float,
    norm: ErrorNorm | int,
    parallel: bool,
) -> CubatureResult:
    if fdim <= 1:
        norm = ErrorNorm.INDIVIDUAL  # the norm is irrelevant for one component
    try:
        norm = ErrorNorm(norm)
    except ValueError:
        raise CubatureError(f"invalid error norm: {norm!r}") from None

    heap = RegionHeap(fdim)
    first = Region(h._clone(), fdim)
    rule.evaluate(f, [first])
    heap.push(first)
    num_eval = rule.num_points

    while _within_budget(num_eval, max_eval):
        if converged(heap.val, heap.err, req_abs_error, req_rel_error, norm):
            break

        if parallel:
            # Pop, in one go, every region that must be refined to bring the
            # total error under the bound, and evaluate them all together.
            vals = list(heap.val)
            errs = list(heap.err)
            batch: list[Region] = []
            while True:
                region = heap.pop()
                for j in range(fdim):
                    errs[j] -= region.err[j]
                batch.append(region)
                batch.append(region.cut())
                num_eval += rule.num_points * 2
                if converged(vals, errs, req_abs_error, req_rel_error, norm):
                    break
                if not (heap and _within_budget(num_eval, max_eval)):
                    break
            rule.evaluate(f, batch)
            for region in batch:
                heap.push(region)
        else:
            region = heap.pop()
            halves = [region, region.cut()]
            rule.evaluate(f, halves)
            for half in halves:
                heap.push(half)
            num_eval += rule.num_points * 2

    val = [0.0] * fdim
    err = [0.0] * fdim
    for region in heap:
        for j in range(fdim):
            val[j] += region.val[j]
            err[j] += region.err[j]
    return CubatureResult(val=val, err=err)


def _cubature(
    f: VectorIntegrand,
    fdim: int,
    xmin: Sequence[float],
    xmax: Sequence[float],
    max_eval: int,
    req_abs_error: float,
    req_rel_error: float,
    norm: ErrorNorm | int,
    parallel: bool,
) -> CubatureResult:
    xmin = [float(x) for x in xmin]
    xmax = [float(x) for x in xmax]
    if len(xmin) != len(xmax):
        raise ValueError("xmin and xmax must have the same length")
    if fdim < 0:
        raise ValueError("fdim must not be negative")
    if max_eval < 0:
        raise ValueError("max_eval must not be negative")
    if fdim == 0:
        return CubatureResult()

    dim = len(xmin)
    if dim == 0:
        rows = [[float(v) for v in row] for row in f([xmin])]
        if len(rows) != 1 or len(rows[0]) != fdim:
            raise CubatureError(f"integrand must return {fdim} values per point")
        return CubatureResult(val=rows[0], err=[0.0] * fdim)

    rule = make_rule(dim, fdim)
    h = Hypercube.from_range(xmin, xmax)
    return _rule_cubature(
        rule, fdim, f, h, max_eval, req_abs_error, req_rel_error, norm, parallel
    )


def hcubature(
    f: Integrand,
    fdim: int,
    xmin: Sequence[float],
    xmax: Sequence[float],
    max_eval: int = 0,
    req_abs_error: float = 0.0,
    req_rel_error: float = DEFAULT_REL_ERROR,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
) -> CubatureResult:
    """Integrate ``f`` (one point in, ``fdim`` values out) over a box.

    ``max_eval`` bounds the number of evaluations (0 for no limit); the
    loop stops when the absolute or relative tolerance is met.
    """
    return _cubature(
        vectorize(f), fdim, xmin, xmax, max_eval,
        req_abs_error, req_rel_error, norm, parallel=False,
    )


def hcubature_v(
    f: VectorIntegrand,
    fdim: int,
    xmin: Sequence[float],
    xmax: Sequence[float],
    max_eval: int = 0,
    req_abs_error: float = 0.0,
    req_rel_error: float = DEFAULT_REL_ERROR,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
) -> CubatureResult:
    """Like :func:`hcubature`, but ``f`` evaluates a list of points at once.

    Many regions are refined per step so that each call gets a large batch.
    """
    return _cubature(
        f, fdim, xmin, xmax, max_eval,
        req_abs_error, req_rel_error, norm, parallel=True,
    )