[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mjpegavi"
version = "0.1.0"
description = "Write Motion-JPEG AVI files from a stream of JPEG frames, with RIFF chunk helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["avi", "mjpeg", "riff", "jpeg", "video"]
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
    "Topic :: Multimedia :: Video :: Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mjpegavi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
