[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netstack"
version = "0.1.0"
description = "User-space networking building blocks: wire formats for Ethernet, ARP, IPv4 and TCP, sockets, a poll-based event loop and TUN adapters."
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "tcp", "ipv4", "ethernet", "arp", "tun", "eventloop", "checksum"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["netstack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
