[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dovimeta"
version = "0.1.0"
description = "Parse, validate and write Dolby Vision RPU extension metadata blocks (CM v2.9 and v4.0)"
requires-python = ">=3.10"
dependencies = []
keywords = ["dolby-vision", "hdr", "rpu", "metadata", "hevc", "video"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dovimeta"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
