[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sevenhundred"
version = "0.1.0"
description = "Core components of a 7800-class home console emulator: memory map, cartridges, BIOS, POKEY sound, MARIA graphics and save states"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "7800", "console", "pokey", "maria", "retro"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sevenhundred"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
