[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "buddykern"
version = "0.1.0"
description = "Simulated teaching-kernel physical memory management: buddy and first-fit page allocators, a device-tree memory probe and a kernel-style console."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "buddy allocator",
    "first fit",
    "physical memory",
    "page allocator",
    "device tree",
    "kernel",
    "simulation",
]
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
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
buddykern = "buddykern.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["buddykern"]

[tool.pytest.ini_options]
addopts = "-ra"
