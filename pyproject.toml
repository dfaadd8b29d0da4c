[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hpmfind"
version = "0.1.0"
description = "Edge-segment filtering, line fitting and ellipse marker selection for camera-based position measurement"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["computer-vision", "edge-detection", "line-segments", "ellipse", "markers", "nfa"]
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
    "Topic :: Scientific/Engineering :: Image Recognition",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hpmfind"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
