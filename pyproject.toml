[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "strobe"
version = "0.1.0"
description = "Core building blocks: simulated allocators, reference-counted handles and POSIX-style filesystem helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["allocator", "memory", "pool", "buddy", "filesystem", "smart-pointers"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
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
packages = ["strobe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
