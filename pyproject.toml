[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minisql"
version = "0.1.0"
description = "A small in-memory relational query engine: SQL expression trees, type checking, selections, aggregation and joins"
requires-python = ">=3.10"
dependencies = []
keywords = ["sql", "database", "query", "relational-algebra", "join", "aggregation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["minisql"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
