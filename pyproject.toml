[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "etherrecorder"
version = "0.1.0"
description = "Framed TCP command client, levelled threaded logger and networking helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "tcp", "logging", "packets", "command client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
etherrecorder = "etherrecorder.client:main"

[tool.hatch.build.targets.wheel]
packages = ["etherrecorder"]

[tool.pytest.ini_options]
addopts = "-ra"
