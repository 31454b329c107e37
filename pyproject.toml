[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nbsock"
version = "0.1.0"
description = "Non-blocking TCP and UDP socket wrappers with a small, explicit API"
requires-python = ">=3.10"
dependencies = []
keywords = ["socket", "tcp", "udp", "non-blocking", "networking", "multicast"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nbsock"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
