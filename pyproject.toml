[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cubaturekit"
version = "1.0.3"
description = "Adaptive multidimensional integration of vector-valued integrands (h-adaptive and p-adaptive cubature)"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "cubature",
    "numerical integration",
    "quadrature",
    "Genz-Malik",
    "Gauss-Kronrod",
    "Clenshaw-Curtis",
    "adaptive integration",
]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cubaturekit-clencurt = "cubaturekit.clencurt:main"
cubaturekit-test = "cubaturekit.testfuncs:main"
cubaturekit-mkdist = "cubaturekit.mkdist:main"

[tool.hatch.build.targets.wheel]
packages = ["cubaturekit"]

[tool.hatch.build.targets.sdist]
include = ["cubaturekit", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
