"""p-adaptive cubature using tensor products of nested Clenshaw-Curtis rules.

The domain is never subdivided.  Instead, the degree of the rule is raised
in one dimension at a time, and always in the dimension where lowering the
degree changes the estimate most.  The rules are nested, so every integrand
value computed for a coarser grid is reused by the finer ones.  The coarser
grids also supply the error estimate.  This suits smooth integrands without
sharply localised features in a moderate number of dimensions.

A grid is described by degrees ``m[dim]``.  Degree ``m[i]`` means
``2**(m[i]+1) + 1`` points in dimension ``i``.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from cubaturekit.clencurt import DEFAULT_MAX_M, ClenshawCurtisTable, build_table
from cubaturekit.core import (
    CubatureError,
    CubatureResult,
    ErrorNorm,
    Integrand,
    VectorIntegrand,
    converged,
    vectorize,
)

MAXDIM = 20
DEFAULT_MAX_NBUF = 1 << 20
DEFAULT_REL_ERROR = 1e-5
# Batch size of the one-point interface, which amortises the call overhead.
_POINTWISE_MAX_NBUF = 16


def _table() -> ClenshawCurtisTable:
    return build_table(DEFAULT_MAX_M)


def _num_cacheval(m: Sequence[int], mi: int, dim: int) -> int:
    """Number of points held by the cache entry ``(m, mi)``."""
    count = 1
    for i in range(dim):
        if i == mi:
            count *= 2 if m[i] == 0 else 1 << m[i]
        else:
            count *= (1 << (m[i] + 1)) + 1
    return count


def _evaluate(f: VectorIntegrand, points: list[list[float]], fdim: int) -> list[list[float]]:
    rows = [[float(v) for v in row] for row in f(points)]
    if len(rows) != len(points):
        raise CubatureError(
            f"integrand returned {len(rows)} results for {len(points)} points"
        )
    if any(len(row) != fdim for row in rows):
        raise CubatureError(f"integrand must return {fdim} values per point")
    return rows


@dataclass
class _CacheEntry:
    """Integrand values on grid ``m``.

    If ``mi < dim``, the entry holds only the points that the ``m`` grid has
    and the grid with ``m[mi]`` lowered by one does not.
    """

    m: tuple[int, ...]
    mi: int
    values: list[list[float]]
    tail_sizes: list[int] = field(init=False)

    def __post_init__(self) -> None:
        dim = len(self.m)
        self.tail_sizes = [
            _num_cacheval(self.m[d + 1:], self.mi - (d + 1), dim - (d + 1))
            for d in range(dim)
        ]


def _accumulate(
    entry: _CacheEntry,
    start: int,
    m: Sequence[int],
    md: int,
    d: int,
    weight: float,
    val: list[float],
    w: Sequence[float],
) -> int:
    """Add the contribution of ``entry`` from dimension ``d`` onwards.

    The rule used is ``m``, with ``m[md]`` lowered by one.  ``start`` is the
    index of the first point of the current sub-block.  Returns the number
    of points of the entry that the sub-block spans.
    """
    cm, cmi = entry.m, entry.mi
    if d == len(cm):
        for j, value in enumerate(entry.values[start]):
            val[j] += value * weight
        return 1

    rest = entry.tail_sizes[d]
    if m[d] == 0 and d == md:
        # lower-order rule in this dimension is the one-point centre rule
        used = _accumulate(entry, start, m, md, d + 1, weight * 2, val, w)
        return used + (1 << cm[d]) * 2 * rest

    mid = m[d] - (d == md)  # degree of the rule in this dimension
    base = mid + (1 << mid) - 1
    if d == cmi:
        base += 1 + (1 << (cm[d] - 1)) if cm[d] else 1
        cnx = 1 << (cm[d] - 1) if cm[d] else 1
    else:
        cnx = 1 << cm[d]
    nx = cnx if cm[d] <= mid else 1 << mid

    used = 0
    if d != cmi:
        used = _accumulate(entry, start, m, md, d + 1, weight * w[base], val, w)
        base += 1
    for i in range(nx):
        wi = weight * w[base + i]
        used += _accumulate(entry, start + used, m, md, d + 1, wi, val, w)
        used += _accumulate(entry, start + used, m, md, d + 1, wi, val, w)
    return used + (cnx - nx) * 2 * rest


class ValueCache:
    """Integrand values on all the grids evaluated so far."""

    def __init__(self) -> None:
        self.entries: list[_CacheEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def add(
        self,
        m: Sequence[int],
        mi: int,
        f: VectorIntegrand,
        fdim: int,
        xmin: Sequence[float],
        xmax: Sequence[float],
        nbuf: int = 1,
    ) -> _CacheEntry:
        """Evaluate ``f`` on the points of grid ``(m, mi)`` and store them.

        The integrand is called with batches of at most ``nbuf`` points.
        """
        dim = len(xmin)
        if len(xmax) != dim or len(m) != dim:
            raise ValueError("m, xmin and xmax must have the same length")
        m = tuple(int(v) for v in m)
        x = _table().x

        axes: list[list[float]] = []
        for d in range(dim):
            c = (xmin[d] + xmax[d]) * 0.5
            r = (xmax[d] - xmin[d]) * 0.5
            if d == mi:
                first = 1 << (m[d] - 1) if m[d] else 0
                nx = 1 << (m[d] - 1) if m[d] else 1
                coords: list[float] = []
            else:
                first = 0
                nx = 1 << m[d]
                coords = [c]
            for xi in x[first:first + nx]:
                coords.append(c + r * xi)
                coords.append(c - r * xi)
            axes.append(coords)

        nbuf = max(1, nbuf)
        points = itertools.product(*axes)
        values: list[list[float]] = []
        while True:
            chunk = [list(p) for p in itertools.islice(points, nbuf)]
            if not chunk:
                break
            values.extend(_evaluate(f, chunk, fdim))

        entry = _CacheEntry(m, mi, values)
        self.entries.append(entry)
        return entry

    def _integrate(self, m: Sequence[int], md: int, fdim: int, volume: float) -> list[float]:
        """Integral estimate for grid ``m`` with ``m[md]`` lowered by one."""
        dim = len(m)
        w = _table().w
        val = [0.0] * fdim
        for entry in self.entries:
            if entry.mi >= dim or entry.m[entry.mi] + (entry.mi == md) <= m[entry.mi]:
                _accumulate(entry, 0, m, md, 0, volume, val, w)
        return val


def _estimate(
    cache: ValueCache, m: Sequence[int], fdim: int, volume: float
) -> tuple[list[float], list[float], int]:
    """Integral, error estimate and the dimension whose degree to raise next.

    The error in each dimension is the change from the rule of one lower
    degree in that dimension.  The overall estimate is the largest of these.
    """
    dim = len(m)
    val = cache._integrate(m, dim, fdim, volume)
    err = [0.0] * fdim
    split = 0
    maxerr = 0.0
    for i in range(dim):
        lower = cache._integrate(m, i, fdim, volume)
        diffs = [abs(a - b) for a, b in zip(val, lower)]
        emax = max([0.0, *diffs])
        err = [max(e, d) for e, d in zip(err, diffs)]
        if emax > maxerr:
            maxerr = emax
            split = i
    return val, err, split


def pcubature_v_buf(
    f: VectorIntegrand,
    fdim: int,
    xmin: Sequence[float],
    xmax: Sequence[float],
    max_eval: int = 0,
    req_abs_error: float = 0.0,
    req_rel_error: float = DEFAULT_REL_ERROR,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
    m: Sequence[int] | None = None,
    max_nbuf: int = DEFAULT_MAX_NBUF,
) -> tuple[CubatureResult, list[int]]:
    """p-adaptive integration of a vectorised integrand.

    ``m`` gives the starting degrees (all zero by default).  ``f`` is called
    with at most ``max(max_nbuf, 1)`` points at a time.  Returns the result
    and the final degrees.  If the highest tabulated degree is passed before
    the tolerance is met, a :class:`CubatureError` is raised.  Its ``result``
    attribute holds the last estimate.
    """
    if fdim <= 1:
        norm = ErrorNorm.INDIVIDUAL  # the norm is irrelevant for one component
    try:
        norm = ErrorNorm(norm)
    except ValueError:
        raise CubatureError(f"invalid error norm: {norm!r}") from None

    xmin = [float(v) for v in xmin]
    xmax = [float(v) for v in xmax]
    if len(xmin) != len(xmax):
        raise ValueError("xmin and xmax must have the same length")
    if fdim < 0:
        raise ValueError("fdim must not be negative")
    if max_eval < 0:
        raise ValueError("max_eval must not be negative")
    dim = len(xmin)
    degrees = [0] * dim if m is None else [int(v) for v in m]

    if fdim == 0:
        return CubatureResult(), degrees
    if dim > MAXDIM:
        raise CubatureError(f"at most {MAXDIM} dimensions are supported")
    if len(degrees) != dim:
        raise ValueError("m must have one degree per dimension")
    if any(d < 0 or d > DEFAULT_MAX_M for d in degrees):
        raise ValueError(f"degrees must lie between 0 and {DEFAULT_MAX_M}")
    if dim == 0:
        rows = _evaluate(f, [xmin], fdim)
        return CubatureResult(val=rows[0], err=[0.0] * fdim), degrees

    volume = math.prod((hi - lo) * 0.5 for lo, hi in zip(xmin, xmax))
    max_nbuf = max(max_nbuf, 1)
    nbuf = min(_num_cacheval(degrees, dim, dim), max_nbuf)

    cache = ValueCache()
    cache.add(degrees, dim, f, fdim, xmin, xmax, nbuf)
    num_eval = 0

    while True:
        val, err, mi = _estimate(cache, degrees, fdim, volume)
        if converged(val, err, req_abs_error, req_rel_error, norm) or (
            max_eval and num_eval > max_eval
        ):
            return CubatureResult(val=val, err=err), degrees
        degrees[mi] += 1
        if degrees[mi] > DEFAULT_MAX_M:
            exc = CubatureError(
                f"no convergence up to Clenshaw-Curtis degree {DEFAULT_MAX_M}"
            )
            exc.result = CubatureResult(val=val, err=err)
            raise exc
        new_nbuf = _num_cacheval(degrees, mi, dim)
        if new_nbuf > nbuf and nbuf < max_nbuf:
            nbuf = min(new_nbuf, max_nbuf)
        cache.add(degrees, mi, f, fdim, xmin, xmax, nbuf)
        num_eval += new_nbuf


def pcubature_v(
    f: VectorIntegrand,
    fdim: int,
    xmin: Sequence[float],
    xmax: Sequence[float],
    max_eval: int = 0,
    req_abs_error: float = 0.0,
    req_rel_error: float = DEFAULT_REL_ERROR,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
) -> CubatureResult:
    """Integrate a vectorised integrand ``f`` over a box, p-adaptively."""
    result, _ = pcubature_v_buf(
        f, fdim, xmin, xmax, max_eval, req_abs_error, req_rel_error, norm,
        None, DEFAULT_MAX_NBUF,
    )
    return result


def pcubature(
    f: Integrand,
    fdim: int,
    xmin: Sequence[float],
    xmax: Sequence[float],
    max_eval: int = 0,
    req_abs_error: float = 0.0,
    req_rel_error: float = DEFAULT_REL_ERROR,
    norm: ErrorNorm | int = ErrorNorm.INDIVIDUAL,
) -> CubatureResult:
    """Integrate ``f`` (one point in, ``fdim`` values out) over a box, p-adaptively."""
    result, _ = pcubature_v_buf(
        vectorize(f), fdim, xmin, xmax, max_eval, req_abs_error, req_rel_error,
        norm, None, _POINTWISE_MAX_NBUF,
    )
    return result