[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "recogpilot"
version = "0.1.0"
description = "Perception logic for a small autonomous vehicle: LiDAR obstacle following, lane tracking, delivery-sign and traffic-light decisions"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "lidar",
    "dbscan",
    "locality-sensitive-hashing",
    "lane-detection",
    "bird-eye-view",
    "obstacle-avoidance",
    "autonomous-driving",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["recogpilot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
