# cubaturekit

Adaptive multidimensional integration of vector-valued functions over
boxes (hyper-rectangles), in pure Python with no dependencies beyond the
standard library.

## Integrators

- **h-adaptive** — `cubaturekit.hcubature.hcubature` and `hcubature_v`.
  The domain is split again and again, always halving the region with the
  largest error estimate. One-dimensional integrals use a 15-point
  Gauss–Kronrod rule (`cubaturekit.rules.GaussKronrodRule`); two or more
  dimensions use the degree-7 Genz–Malik rule with an embedded degree-5
  error estimate (`cubaturekit.rules.GenzMalikRule`, fewer than 32
  dimensions).
- **p-adaptive** — `cubaturekit.pcubature.pcubature`, `pcubature_v` and
  `pcubature_v_buf`. The degree of a tensor-product Clenshaw–Curtis rule is
  raised one dimension at a time, reusing every value already computed. Often
  the better choice for smooth integrands in a few dimensions (at most 20).

All of them take the same arguments:

```
routine(f, fdim, xmin, xmax, max_eval=0, req_abs_error=0.0,
        req_rel_error=1e-5, norm=ErrorNorm.INDIVIDUAL)
```

`f` returns `fdim` values. The non-`_v` routines call `f` with one point (a
list of coordinates); the `_v` routines call it with a list of points and
expect one list of values per point. `cubaturekit.core.vectorize` turns a
one-point integrand into a batch one. Integration stops when the absolute or
relative tolerance is met or the evaluation budget `max_eval` is spent (`0`
means no limit). The result is a `cubaturekit.core.CubatureResult` with lists
`val` (integrals) and `err` (absolute error estimates).

`ErrorNorm` chooses how the errors of several components are combined:
`INDIVIDUAL`, `PAIRED`, `L2`, `L1` or `LINF`. With a single component the norm
is ignored. `cubaturekit.core.converged` applies the test on its own.

`pcubature_v_buf` also accepts starting degrees `m` and a batch limit
`max_nbuf`, and returns a pair `(result, degrees)` with the final degrees.

## Errors

`cubaturekit.core.CubatureError` is raised for an invalid norm, an
unsupported number of dimensions, or an integrand that returns the wrong
number of values. The p-adaptive routines also raise it when the tolerance is
not met up to the highest tabulated degree (11); the exception then carries
the last estimate in its `result` attribute. Exceptions raised by the
integrand itself propagate unchanged.

## Usage

```python
import math

from cubaturekit.core import ErrorNorm
from cubaturekit.hcubature import hcubature
from cubaturekit.pcubature import pcubature

def f(x):
    return [math.prod(math.cos(xi) for xi in x)]

result = hcubature(f, 1, [0.0, 0.0], [1.0, 1.0], 0, 0.0, 1e-8, ErrorNorm.INDIVIDUAL)
print(result.val, result.err)

result = pcubature(f, 1, [0.0, 0.0], [1.0, 1.0], 0, 0.0, 1e-8, ErrorNorm.INDIVIDUAL)
print(result.val, result.err)
```

### Higher-level interface

`cubaturekit.api.integrate_h` and `cubaturekit.api.integrate_p` take
`(f, lower, upper, fdim=1, max_eval=0, abs_err=0.0, tol=1e-5,
vector_interface=False, norm=ErrorNorm.INDIVIDUAL)`. With `fdim` 1 the
integrand may return a plain number. They never raise `CubatureError`;
instead they return an `IntegrationResult` with `integral`, `error`,
`function_evaluations`, `return_code` (0 on success, 1 on failure) and `ok`.

```python
from cubaturekit.api import integrate_h

res = integrate_h(lambda x: x[0] * x[1], [0, 0], [1, 1], tol=1e-9)
print(res.integral, res.function_evaluations, res.ok)
```

## Command-line tools

Print the Clenshaw–Curtis point and weight tables, as a Python data module,
for rules up to `2^(M+1)+1` points per dimension (default `M = 11`):

```
cubaturekit-clencurt 11
```

Integrate built-in test integrands over the unit cube and compare with the
exact result (`--pcubature` selects the p-adaptive routine):

```
cubaturekit-test [--pcubature] <dim> [reltol] [integrand] [maxeval]
```

`<integrand>` is a number from 0 to 7, or several separated by `/` to
integrate them together, e.g. `0/2/4`. The integrands and their exact
integrals are also available as `cubaturekit.testfuncs.integrand` and
`cubaturekit.testfuncs.exact_integral`.

Build a tarball whose tree unpacks into `packagedir`, keeping symbolic links
that point inside the package and hard-linking everything else:

```
cubaturekit-mkdist cvfz packagename.tar.gz packagedir file ...
```

This tool runs the system `tar` program.

## What this package does not do

It provides only the deterministic adaptive integrators described above.
There are no Monte Carlo or quasi-Monte Carlo integrators, no parallel
evaluation of the integrand, and no viewer for the subdivision of the domain.