[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flightcore"
version = "0.1.0"
description = "Sequential state machine with per-state callbacks and a registry of one-shot and periodic timers"
requires-python = ">=3.10"
dependencies = []
keywords = ["state machine", "timers", "sequencing", "callbacks", "rocketry"]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["flightcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
