[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "geeklib"
version = "0.1.0"
description = "Pieces of a small teaching operating system's user space: a buffer-pool allocator and heap, PFAT disk images, pool dumps and wc-style counting"
requires-python = ">=3.10"
dependencies = []
keywords = ["operating-system", "allocator", "heap", "pfat", "disk-image", "wc", "teaching"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
buildfat = "geeklib.buildfat:main"

[tool.hatch.build.targets.wheel]
packages = ["geeklib"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
