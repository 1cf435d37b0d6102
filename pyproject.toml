[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "predmarket"
version = "0.1.0"
description = "A small play-money prediction market: create yes/no markets, buy shares, resolve them and rank players."
requires-python = ">=3.10"
dependencies = []
keywords = ["prediction market", "betting", "game", "play money", "leaderboard", "sqlite"]
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
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["predmarket"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
