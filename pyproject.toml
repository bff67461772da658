[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "avansync"
version = "1.0.0"
description = "A small line-based file synchronisation server and interactive client"
requires-python = ">=3.10"
dependencies = []
keywords = ["sync", "file-transfer", "mirroring", "tcp", "client-server"]
classifiers = [
    "Development Status :: 4 - Beta",
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
    "Topic :: System :: Archiving :: Mirroring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
avansync-server = "avansync.server:main"
avansync-client = "avansync.client:main"

[tool.hatch.build.targets.wheel]
packages = ["avansync"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
