[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "eqsat"
version = "0.1.0"
description = "Core data structures for an equality-saturation rule language: syntax trees, normal forms, type constraints and function tables"
requires-python = ">=3.10"
dependencies = []
keywords = ["e-graph", "equality saturation", "datalog", "rewriting", "s-expression"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["eqsat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
