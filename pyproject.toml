[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swkit"
version = "0.1.0"
description = "Smith-Waterman alignment, run-length BWT ropes, sequence I/O and sorting utilities"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bioinformatics",
    "alignment",
    "smith-waterman",
    "fasta",
    "fastq",
    "burrows-wheeler",
    "run-length-encoding",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["swkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
