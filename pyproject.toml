[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "interchaindb"
version = "0.1.0"
description = "Record blockchain test runs, blocks and transactions in SQLite, query them, and hold the state of a browser over them."
requires-python = ">=3.11"
keywords = ["sqlite", "blockchain", "ibc", "cosmos", "testing", "debugging", "toml"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Software Development :: Testing",
]
dependencies = [
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["interchaindb"]

[tool.pytest.ini_options]
addopts = "-ra"
