[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "edgeproto"
version = "0.1.0"
description = "Pure-Python IPv4/UDP packet codecs, UDP over raw sockets and WebSocket framing"
requires-python = ">=3.10"
dependencies = []
keywords = ["ipv4", "udp", "raw-socket", "websocket", "checksum", "networking", "asyncio"]
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
    "Framework :: AsyncIO",
    "Topic :: System :: Networking",
    "Topic :: Internet",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["edgeproto"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
