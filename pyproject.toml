[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swkit"
version = "0.4.0"
description = "Building blocks for a malware analysis pipeline: file hashing, tool output parsing, archive extraction, ML client, queue publishing and sandbox agent helpers."
requires-python = ">=3.11"
keywords = [
    "malware",
    "analysis",
    "hashing",
    "ssdeep",
    "sandbox",
    "exiftool",
    "nsq",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Information Technology",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Typing :: Typed",
]
dependencies = [
    "jinja2",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
swkit-hash = "swkit.crypto:main"
swkit-msgpublisher = "swkit.msgpublisher:main"

[tool.hatch.build.targets.wheel]
packages = ["swkit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
