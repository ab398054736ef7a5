[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kssrsi"
version = "0.1.0"
description = "Client library for external control of KSS robot controllers over RSI and EKI"
requires-python = ">=3.10"
dependencies = []
keywords = ["robotics", "rsi", "eki", "kss", "external control", "udp", "tcp", "xml"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Manufacturing",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kssrsi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
