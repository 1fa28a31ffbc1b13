[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fuselang"
version = "0.1.0"
description = "Front end for the Fuse language: tokenizer, parser, name resolution, type table, generic instantiation and test discovery"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "parser", "name-resolution", "type-system", "generics", "fuse"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fuselang"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
