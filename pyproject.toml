[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gategate"
version = "0.1.0"
description = "A small HTTP gateway server with GET/POST routing, INI configuration and a pooled Redis store"
requires-python = ">=3.10"
dependencies = [
    "redis",
]
keywords = ["http", "gateway", "server", "asyncio", "redis", "connection-pool"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
gategate = "gategate.server:main"

[tool.hatch.build.targets.wheel]
packages = ["gategate"]

[tool.pytest.ini_options]
addopts = "-ra"
