[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "x16host"
version = "0.1.0"
description = "Host-side building blocks for a Commander X16 emulator: Latin-9 text, image files, I2C bus and mouse, host-FS path resolution and debugger display text"
requires-python = ">=3.10"
dependencies = []
keywords = ["commander-x16", "emulator", "6502", "65c816", "cbdos", "i2c", "iso-8859-15"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["x16host"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
