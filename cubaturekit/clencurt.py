"""Nested Clenshaw-Curtis quadrature tables for p-adaptive cubature.

Rule ``m`` uses ``2**(m+1) + 1`` points ``+/-cos(pi*j / 2**(m+1))`` on
[-1, 1].  Since the rules are symmetric only ``2**m + 1`` weights are kept
per rule, and since they are nested only the points of the finest rule are
stored, in an order such that every coarser rule uses a prefix of them.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from functools import lru_cache
from operator import mul

DEFAULT_MAX_M = 11


@dataclass(frozen=True)
class ClenshawCurtisTable:
    """Points and weights of all nested rules up to ``max_m``.

    ``x`` has length ``2**max_m``.  ``w`` has length ``max_m + 2**(max_m+1)``;
    the weights of rule ``m`` start at index ``m + 2**m - 1`` with the weight
    of the centre point, followed by the weights in the order of ``x``.
    """

    max_m: int
    x: tuple[float, ...]
    w: tuple[float, ...]


def permutation(m: int, j: int) -> int:
    """Position in rule ``m`` of the ``j``-th stored point."""
    factor = 1
    while m > 0 and j < (1 << (m - 1)):
        factor *= 2
        m -= 1
    if m == 0:
        return factor * j
    return factor * (2 * (j - (1 << (m - 1))) + 1)


def clencurt_weights(n: int) -> list[float]:
    """Weights of the symmetric half of the ``2n+1``-point rule on (-1, 1).

    Entry ``j`` belongs to the points ``+/-cos(pi*j / (2n))``; entry ``n``
    is the weight of the centre point.
    """
    if n < 1:
        raise ValueError("n must be at least 1")
    scale = 1.0 / n
    coeffs = [scale / (1 - 4 * j * j) for j in range(n + 1)]
    period = 2 * n
    cos_table = [math.cos(math.pi * i / n) for i in range(period)]
    inner = coeffs[1:n]
    first, last = coeffs[0], coeffs[n]

    weights = []
    for k in range(n + 1):
        row = (cos_table[(j * k) % period] for j in range(1, n))
        edge = last if k % 2 == 0 else -last
        weights.append(first + edge + 2 * sum(map(mul, inner, row)))
    weights[0] *= 0.5
    return weights


@lru_cache(maxsize=None)
def build_table(max_m: int = DEFAULT_MAX_M) -> ClenshawCurtisTable:
    """Compute the points and weights of all rules ``0..max_m``."""
    if max_m < 0:
        raise ValueError("max_m must not be negative")
    k = math.pi / (1 << (max_m + 1))
    x = tuple(math.cos(k * permutation(max_m, j)) for j in range(1 << max_m))

    w: list[float] = []
    for m in range(max_m + 1):
        half = 1 << m
        weights = clencurt_weights(half)
        w.append(weights[half])
        w.extend(weights[permutation(m, j)] for j in range(half))
    return ClenshawCurtisTable(max_m=max_m, x=x, w=tuple(w))


def render_table(max_m: int = DEFAULT_MAX_M) -> str:
    """Render the table as the text of a data module."""
    table = build_table(max_m)
    lines = [
        "# Automatically generated -- do not edit",
        "",
        f"CLENCURT_M = {max_m}",
        "",
        "CLENCURT_X = (  # length 2^M",
    ]
    lines.extend(f"    {value!r}," for value in table.x)
    lines += [")", "", "CLENCURT_W = (  # length M+2^(M+1)"]
    start = 0
    for m in range(max_m + 1):
        count = (1 << m) + 1
        lines.append(f"    # m = {m}:")
        lines.extend(f"    {value!r}," for value in table.w[start:start + count])
        start += count
    lines += [")", ""]
    lines.append(
        "# P_M = " + " ".join(str(permutation(max_m, j)) for j in range(1 << max_m))
    )
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    """Print the table for the ``M`` given on the command line (default 11)."""
    args = sys.argv[1:] if argv is None else list(argv)
    usage = "clencurt usage: clencurt [M]\n"
    if len(args) > 1:
        sys.stderr.write(usage)
        return 1
    try:
        max_m = int(args[0]) if args else DEFAULT_MAX_M
    except ValueError:
        sys.stderr.write(usage)
        return 1
    if max_m < 0:
        sys.stderr.write(usage)
        return 1
    sys.stdout.write(render_table(max_m))
    return 0


if __name__ == "__main__":
    sys.exit(main())