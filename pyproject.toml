[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tagwatch"
version = "0.1.0"
description = "Collect container images from Dockerfiles and YAML lists, validate their watch labels and sort and filter registry tags"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "docker",
    "container",
    "image",
    "registry",
    "tags",
    "semver",
    "dockerfile",
    "labels",
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
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tagwatch"]

[tool.hatch.build.targets.sdist]
include = ["tagwatch", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
target-version = "py310"
line-length = 100

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
