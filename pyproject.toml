[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hypsel"
version = "0.1.0"
description = "Event selection bookkeeping, histogramming, systematics and plotting for hyperon production analyses"
requires-python = ">=3.10"
keywords = ["physics", "neutrino", "hyperon", "selection", "histogram", "systematics", "covariance"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]
dependencies = [
    "numpy",
    "matplotlib",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["hypsel"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
