[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bitfetch"
version = "0.1.0"
description = "A small BitTorrent client that downloads a single-file torrent from its peers"
requires-python = ">=3.10"
keywords = ["bittorrent", "torrent", "bencode", "peer-to-peer", "download"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: File Sharing",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
bitfetch = "bitfetch.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["bitfetch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
