"""Hypercubes, regions and the embedded cubature rules for h-adaptive cubature.

Two rules are provided.  In one dimension a 15-point Gauss-Kronrod rule
(embedding a 7-point Gauss rule) is used.  In two or more dimensions the
degree-7 Genz-Malik rule, with an embedded degree-5 rule for the error
estimate, is used.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

from cubaturekit.core import CubatureError, VectorIntegrand

_DBL_MIN = sys.float_info.min
_DBL_EPSILON = sys.float_info.epsilon

# Gray-code enumeration of the 2^dim corner points is limited to the bit width
# of a machine word; long before that the rule is far too expensive anyway.
_MAX_GENZ_MALIK_DIM = 32


def ls0(n: int) -> int:
    """Index of the least significant zero bit of ``n``."""
    if n < 0:
        raise ValueError("n must not be negative")
    return ((n + 1) & ~n).bit_length() - 1


@dataclass
class Hypercube:
    """An axis-aligned box given by its centre and half-widths."""

    center: list[float]
    halfwidth: list[float]
    vol: float = field(init=False)

    def __post_init__(self) -> None:
        self.center = [float(c) for c in self.center]
        self.halfwidth = [float(w) for w in self.halfwidth]
        if len(self.center) != len(self.halfwidth):
            raise ValueError("center and halfwidth must have the same length")
        self.vol = self.volume()

    @classmethod
    def from_range(cls, xmin: Sequence[float], xmax: Sequence[float]) -> Hypercube:
        """Build the box spanning ``xmin`` to ``xmax`` in every dimension."""
        if len(xmin) != len(xmax):
            raise ValueError("xmin and xmax must have the same length")
        center = [0.5 * (lo + hi) for lo, hi in zip(xmin, xmax)]
        halfwidth = [0.5 * (hi - lo) for lo, hi in zip(xmin, xmax)]
        return cls(center, halfwidth)

    @property
    def dim(self) -> int:
        return len(self.center)

    def volume(self) -> float:
        """Product of the full widths."""
        return math.prod(2 * w for w in self.halfwidth)

    def _clone(self) -> Hypercube:
        other = Hypercube(list(self.center), list(self.halfwidth))
        other.vol = self.vol
        return other


@dataclass
class Region:
    """A box together with its integral and error estimates.

    ``val`` and ``err`` hold one estimate per integrand component,
    ``errmax`` the largest of the errors, and ``split_dim`` the dimension
    along which the box should be halved next.
    """

    h: Hypercube
    fdim: int
    split_dim: int = 0
    val: list[float] = field(default_factory=list)
    err: list[float] = field(default_factory=list)
    errmax: float = math.inf

    def __post_init__(self) -> None:
        if not self.val:
            self.val = [0.0] * self.fdim
        if not self.err:
            self.err = [0.0] * self.fdim

    def cut(self) -> Region:
        """Halve the box along ``split_dim``; keep one half, return the other."""
        d = self.split_dim
        self.h.halfwidth[d] *= 0.5
        self.h.vol *= 0.5
        other_h = self.h._clone()
        self.h.center[d] -= self.h.halfwidth[d]
        other_h.center[d] += self.h.halfwidth[d]
        return Region(other_h, self.fdim, split_dim=d, errmax=self.errmax)


def _evaluate(f: VectorIntegrand, points: list[list[float]], fdim: int) -> list[list[float]]:
    rows = [[float(v) for v in row] for row in f(points)]
    if len(rows) != len(points):
        raise CubatureError(
            f"integrand returned {len(rows)} results for {len(points)} points"
        )
    if any(len(row) != fdim for row in rows):
        raise CubatureError(f"integrand must return {fdim} values per point")
    return rows


class _Rule:
    """Common state of a cubature rule."""

    num_points: int

    def __init__(self, dim: int, fdim: int) -> None:
        self.dim = dim
        self.fdim = fdim


# lambda2 = sqrt(9/70), lambda4 = sqrt(9/10), lambda5 = sqrt(9/19)
_LAMBDA2 = 0.3585685828003180919906451539079374954541
_LAMBDA4 = 0.9486832980505137995996680633298155601160
_LAMBDA5 = 0.6882472016116852977216287342936235251269
_WEIGHT2 = 980.0 / 6561.0
_WEIGHT4 = 200.0 / 19683.0
_WEIGHT_E2 = 245.0 / 486.0
_WEIGHT_E4 = 25.0 / 729.0
_RATIO = (_LAMBDA2 * _LAMBDA2) / (_LAMBDA4 * _LAMBDA4)


class GenzMalikRule(_Rule):
    """Degree-7 Genz-Malik rule with an embedded degree-5 error estimate."""

    def __init__(self, dim: int, fdim: int) -> None:
        if dim < 2:
            raise CubatureError("the Genz-Malik rule needs at least 2 dimensions")
        if dim >= _MAX_GENZ_MALIK_DIM:
            raise CubatureError(
                f"the Genz-Malik rule supports fewer than {_MAX_GENZ_MALIK_DIM} dimensions"
            )
        super().__init__(dim, fdim)
        self._num_rr = 2 * dim * (dim - 1)
        self._num_corners = 1 << dim
        self.num_points = 1 + 2 * (2 * dim) + self._num_rr + self._num_corners
        self.weight1 = (12824 - 9120 * dim + 400 * dim * dim) / 19683.0
        self.weight3 = (1820 - 400 * dim) / 19683.0
        self.weight5 = 6859.0 / 19683.0 / float(1 << dim)
        self.weight_e1 = (729 - 950 * dim + 50 * dim * dim) / 729.0
        self.weight_e3 = (265 - 100 * dim) / 1458.0

    def _points(self, h: Hypercube) -> list[list[float]]:
        c = h.center
        dim = self.dim
        r2 = [w * _LAMBDA2 for w in h.halfwidth]
        r4 = [w * _LAMBDA4 for w in h.halfwidth]
        r5 = [w * _LAMBDA5 for w in h.halfwidth]

        pts = [list(c)]
        for i in range(dim):
            for r in (r2, r4):
                for coord in (c[i] - r[i], c[i] + r[i]):
                    p = list(c)
                    p[i] = coord
                    pts.append(p)

        for i in range(dim - 1):
            lo_i, hi_i = c[i] - r4[i], c[i] + r4[i]
            for j in range(i + 1, dim):
                lo_j, hi_j = c[j] - r4[j], c[j] + r4[j]
                for xi, xj in ((lo_i, lo_j), (hi_i, lo_j), (hi_i, hi_j), (lo_i, hi_j)):
                    p = list(c)
                    p[i] = xi
                    p[j] = xj
                    pts.append(p)

        # corners (+/-lambda5, ..., +/-lambda5) in Gray-code order
        p = [ci + ri for ci, ri in zip(c, r5)]
        signs = 0
        i = 0
        while True:
            pts.append(list(p))
            d = ls0(i)
            if d >= dim:
                break
            mask = 1 << d
            signs ^= mask
            p[d] = c[d] - r5[d] if signs & mask else c[d] + r5[d]
            i += 1
        return pts

    def evaluate(self, f: VectorIntegrand, regions: Sequence[Region]) -> None:
        """Estimate integral and error of ``f`` on each region, in place.

        Also sets ``errmax`` and the dimension each region should be split in.
        """
        regions = list(regions)
        if not regions:
            return
        points = [p for region in regions for p in self._points(region.h)]
        values = _evaluate(f, points, self.fdim)
        dim = self.dim
        npts = self.num_points
        start_rr = 1 + 4 * dim
        start_corners = start_rr + self._num_rr

        for index, region in enumerate(regions):
            block = values[index * npts:(index + 1) * npts]
            diff = [0.0] * dim
            for j in range(self.fdim):
                v = [row[j] for row in block]
                val0 = v[0]
                sum2 = 0.0
                sum3 = 0.0
                for k in range(dim):
                    v0, v1, v2, v3 = v[1 + 4 * k:5 + 4 * k]
                    sum2 += v0 + v1
                    sum3 += v2 + v3
                    diff[k] += abs(v0 + v1 - 2 * val0 - _RATIO * (v2 + v3 - 2 * val0))
                sum4 = 0.0
                for value in v[start_rr:start_corners]:
                    sum4 += value
                sum5 = 0.0
                for value in v[start_corners:npts]:
                    sum5 += value
                vol = region.h.vol
                result = vol * (
                    self.weight1 * val0 + _WEIGHT2 * sum2 + self.weight3 * sum3
                    + _WEIGHT4 * sum4 + self.weight5 * sum5
                )
                res5th = vol * (
                    self.weight_e1 * val0 + _WEIGHT_E2 * sum2
                    + self.weight_e3 * sum3 + _WEIGHT_E4 * sum4
                )
                region.val[j] = result
                region.err[j] = abs(res5th - result)

            maxdiff = 0.0
            split = 0
            for k, d in enumerate(diff):
                if d > maxdiff:
                    maxdiff = d
                    split = k
            region.split_dim = split
            region.errmax = max([0.0, *region.err])


# Kronrod abscissae; the odd entries are the 7-point Gauss abscissae.
_XGK = (
    0.991455371120812639206854697526329,
    0.949107912342758524526189684047851,
    0.864864423359769072789712788640926,
    0.741531185599394439863864773280788,
    0.586087235467691130294144838258730,
    0.405845151377397166906606412076961,
    0.207784955007898467600689403773245,
    0.000000000000000000000000000000000,
)
_WG = (
    0.129484966168869693270611432679082,
    0.279705391489276667901467771423780,
    0.381830050505118944950369775488975,
    0.417959183673469387755102040816327,
)
_WGK = (
    0.022935322010529224963732008058970,
    0.063092092629978553290700663189204,
    0.104790010322250183839876322541518,
    0.140653259715525918745189590510238,
    0.169004726639267902826583426598550,
    0.190350578064785409913256402421014,
    0.204432940075298892414161999234649,
    0.209482141084727828012999174891714,
)
# Order in which the symmetric pairs of abscissae are laid out after the centre.
_GAUSS_PAIRS = (1, 3, 5)
_KRONROD_PAIRS = (0, 2, 4, 6)
_PAIR_ORDER = _GAUSS_PAIRS + _KRONROD_PAIRS


def _pow15(x: float) -> float:
    return x ** 1.5 if x >= 0 else math.nan


class GaussKronrodRule(_Rule):
    """One-dimensional 15-point Gauss-Kronrod rule."""

    num_points = 15

    def __init__(self, dim: int, fdim: int) -> None:
        if dim != 1:
            raise CubatureError("the Gauss-Kronrod rule is only for 1d integrals")
        super().__init__(dim, fdim)

    def evaluate(self, f: VectorIntegrand, regions: Sequence[Region]) -> None:
        """Estimate integral and error of ``f`` on each interval, in place."""
        regions = list(regions)
        if not regions:
            return
        points: list[list[float]] = []
        for region in regions:
            center = region.h.center[0]
            halfwidth = region.h.halfwidth[0]
            points.append([center])
            for j2 in _PAIR_ORDER:
                w = halfwidth * _XGK[j2]
                points.append([center - w])
                points.append([center + w])
            region.split_dim = 0

        values = _evaluate(f, points, self.fdim)
        for index, region in enumerate(regions):
            block = values[index * 15:(index + 1) * 15]
            halfwidth = region.h.halfwidth[0]
            for k in range(self.fdim):
                v = [row[k] for row in block]
                pairs = [(v[1 + 2 * n], v[2 + 2 * n]) for n in range(7)]

                result_gauss = v[0] * _WG[3]
                result_kronrod = v[0] * _WGK[7]
                result_abs = abs(result_kronrod)
                for j, (a, b) in enumerate(pairs[:3]):
                    j2 = _GAUSS_PAIRS[j]
                    s = a + b
                    result_gauss += _WG[j] * s
                    result_kronrod += _WGK[j2] * s
                    result_abs += _WGK[j2] * (abs(a) + abs(b))
                for j2, (a, b) in zip(_KRONROD_PAIRS, pairs[3:]):
                    result_kronrod += _WGK[j2] * (a + b)
                    result_abs += _WGK[j2] * (abs(a) + abs(b))

                region.val[k] = result_kronrod * halfwidth

                mean = result_kronrod * 0.5
                result_asc = _WGK[7] * abs(v[0] - mean)
                for j2, (a, b) in zip(_PAIR_ORDER, pairs):
                    result_asc += _WGK[j2] * (abs(a - mean) + abs(b - mean))

                err = abs(result_kronrod - result_gauss) * halfwidth
                result_abs *= halfwidth
                result_asc *= halfwidth
                if result_asc != 0 and err != 0:
                    scale = _pow15(200 * err / result_asc)
                    err = result_asc * scale if scale < 1 else result_asc
                if result_abs > _DBL_MIN / (50 * _DBL_EPSILON):
                    min_err = 50 * _DBL_EPSILON * result_abs
                    if min_err > err:
                        err = min_err
                region.err[k] = err
            region.errmax = max([0.0, *region.err])


def make_rule(dim: int, fdim: int) -> GaussKronrodRule | GenzMalikRule:
    """Pick the rule suited to a ``dim``-dimensional integral."""
    if dim == 1:
        return GaussKronrodRule(dim, fdim)
    return GenzMalikRule(dim, fdim)