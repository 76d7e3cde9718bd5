[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "miadisk"
version = "0.1.0"
description = "MBR/EBR disk image records, free-space placement, users.txt editing and disk, MBR, bitmap and tree reports"
requires-python = ">=3.10"
dependencies = []
keywords = ["mbr", "ebr", "partition", "ext2", "virtual disk", "filesystem", "reports"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["miadisk"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
