[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lagrhydro"
version = "0.1.0"
description = "Building blocks for a multi-material Lagrangian hydrodynamics scheme on structured meshes"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "hydrodynamics",
    "lagrangian",
    "remap",
    "ale",
    "cfd",
    "multi-material",
    "finite-volume",
]
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

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lagrhydro"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
