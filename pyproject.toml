[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webconfig"
version = "0.1.0"
description = "Multipart web configuration documents: parsing, msgpack decoding and packing, document state rules and status notifications"
requires-python = ">=3.10"
dependencies = [
    "msgpack",
]
keywords = ["webconfig", "multipart", "msgpack", "configuration", "device management"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["webconfig"]

[tool.pytest.ini_options]
addopts = "-ra"
