[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tileclahe"
version = "0.1.0"
description = "Contrast limited adaptive histogram equalisation (CLAHE) for greyscale images, tile by tile"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["clahe", "histogram", "equalisation", "contrast", "image processing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Processing",
]

[project.optional-dependencies]
test = [
    "pytest",
    "numpy",
]

[tool.hatch.build.targets.wheel]
packages = ["tileclahe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
