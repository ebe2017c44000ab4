"""Test integrands with known integrals on the unit hypercube, and a driver.

Integrands are selected by number:

0. product of cos(x_i)
1. exp(-x^2) mapped onto (0, infinity), integral 1 per dimension
2. indicator of a ball (a discontinuous integrand)
3. product of 2 x_i
4. Gaussian centred at 1/2
5. sum of two Gaussians
6. Tsuda's example
7. the Morokoff-Caflisch integrand
"""

from __future__ import annotations

import math
import sys
from collections.abc import Sequence

from cubaturekit.core import CubatureError, ErrorNorm
from cubaturekit.hcubature import hcubature
from cubaturekit.pcubature import pcubature

RADIUS = 0.50124145262344534123412
K_2_SQRTPI = 1.12837916709551257390
KNOWN_INTEGRANDS = range(8)

_USAGE = "Usage: cubature-test [--pcubature] [dim] [reltol] [integrand] [maxeval]\n"


def _product(x: Sequence[float]) -> float:
    return math.prod(2.0 * v for v in x)


def _gaussian(x: Sequence[float], a: float) -> float:
    total = sum((v - 0.5) ** 2 for v in x)
    return (K_2_SQRTPI / (2.0 * a)) ** len(x) * math.exp(-total / (a * a))


def _double_gaussian(x: Sequence[float], a: float) -> float:
    sum1 = sum((v - 1.0 / 3.0) ** 2 for v in x)
    sum2 = sum((v - 2.0 / 3.0) ** 2 for v in x)
    return 0.5 * (K_2_SQRTPI / (2.0 * a)) ** len(x) * (
        math.exp(-sum1 / (a * a)) + math.exp(-sum2 / (a * a))
    )


def _tsuda(x: Sequence[float], c: float) -> float:
    return math.prod(c / (c + 1) * math.pow((c + 1) / (c + v), 2.0) for v in x)


def _morokoff(x: Sequence[float]) -> float:
    dim = len(x)
    p = 1.0 / dim
    prod = math.pow(1 + p, dim)
    for v in x:
        prod *= math.pow(v, p)
    return prod


def integrand(which: int, x: Sequence[float]) -> float:
    """Value of test integrand ``which`` at point ``x``."""
    x = [float(v) for v in x]
    param = (1.0 + math.sqrt(10.0)) / 9.0 if which == 6 else 0.1
    if which == 0:
        return math.prod(math.cos(v) for v in x)
    if which == 1:
        val = 0.0
        scale = 1.0
        for v in x:
            if v > 0:
                z = (1 - v) / v
                val += z * z
                scale *= K_2_SQRTPI / (v * v)
            else:
                scale = 0.0
                break
        return math.exp(-val) * scale
    if which == 2:
        return 1.0 if sum(v * v for v in x) < RADIUS * RADIUS else 0.0
    if which == 3:
        return _product(x)
    if which == 4:
        return _gaussian(x, param)
    if which == 5:
        return _double_gaussian(x, param)
    if which == 6:
        return _tsuda(x, param)
    if which == 7:
        return _morokoff(x)
    raise ValueError(f"unknown integrand {which}")


def sphere_surface(n: int) -> float:
    """Surface area of the unit sphere in ``n`` dimensions."""
    if n < 0:
        raise ValueError("n must not be negative")
    if n % 2 == 0:
        half = n // 2
        return 2 * math.pi ** (n * 0.5) / math.factorial(max(half - 1, 0))
    val = (1 << (n // 2 + 1)) * math.pi ** (n // 2)
    return val / math.prod(range(n - 2, 0, -2))


def exact_integral(which: int, dim: int, xmax: Sequence[float]) -> float:
    """Exact integral of integrand ``which`` from 0 to ``xmax``.

    Integrands other than 0 and 2 are only known on the unit cube, where
    their integral is 1.
    """
    if which == 0:
        return math.prod(math.sin(xmax[i]) for i in range(dim))
    if which == 2:
        if dim == 0:
            return 1.0
        return sphere_surface(dim) * (RADIUS * 0.5) ** dim / dim
    return 1.0


def parse_integrands(spec: str) -> list[int]:
    """Parse a ``/``-separated list of integrand numbers such as ``0/2/6``.

    An empty field stands for integrand 0.
    """
    result = []
    for segment in spec.split("/"):
        if any(c not in "0123456789" for c in segment):
            raise ValueError(f'invalid which_integrand "{spec}"')
        result.append(int(segment) if segment else 0)
    return result


def main(argv: list[str] | None = None) -> int:
    """Integrate the chosen test integrands over the unit cube and report."""
    args = sys.argv[1:] if argv is None else list(argv)
    use_p = False
    if args and args[0] == "--pcubature":
        use_p = True
        args = args[1:]
    if not args:
        sys.stderr.write(_USAGE)
        return 1
    try:
        dim = int(args[0])
        tol = float(args[1]) if len(args) > 1 else 1e-2
        which = parse_integrands(args[2]) if len(args) > 2 else [0]
        max_eval = int(args[3]) if len(args) > 3 else 0
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    if dim < 0 or max_eval < 0:
        sys.stderr.write(_USAGE)
        return 1
    unknown = [w for w in which if w not in KNOWN_INTEGRANDS]
    if unknown:
        sys.stderr.write(f"unknown integrand {unknown[0]}\n")
        return 1

    count = 0

    def f(x: Sequence[float]) -> list[float]:
        nonlocal count
        count += 1
        return [integrand(w, x) for w in which]

    xmin = [0.0] * dim
    xmax = [1.0] * dim
    print(f"{dim}-dim integral, tolerance = {tol:g}")
    routine = pcubature if use_p else hcubature
    try:
        result = routine(f, len(which), xmin, xmax, max_eval, 0.0, tol,
                         ErrorNorm.INDIVIDUAL)
    except CubatureError as exc:
        result = getattr(exc, "result", None)
        if result is None:
            sys.stderr.write(f"{exc}\n")
            return 1
    for w, val, err in zip(which, result.val, result.err):
        true_err = abs(val - exact_integral(w, dim, xmax))
        print(f"integrand {w}: integral = {val:.11g}, est err = {err:g}, "
              f"true err = {true_err:g}")
    print(f"#evals = {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())