[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gpushareconf"
version = "0.17.0"
description = "Load, validate and merge configuration for GPU device sharing on Kubernetes nodes"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "gpu",
    "kubernetes",
    "device-plugin",
    "time-slicing",
    "mps",
    "configuration",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gpushareconf"]

[tool.hatch.build.targets.sdist]
include = [
    "gpushareconf",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
