[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "velacompiler"
version = "0.1.0"
description = "Parse, validate, script and substitute CI pipeline configurations, and prepare variables for pipeline templates."
requires-python = ">=3.10"
keywords = ["ci", "pipeline", "yaml", "templates", "build"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["velacompiler"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
