[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sharecare"
version = "0.1.0"
description = "Small threaded HTTP server for a charity marketplace: static files and a JSON API over SQLite"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "server", "sqlite", "charity", "donations", "json"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sharecare = "sharecare.server:main"

[tool.hatch.build.targets.wheel]
packages = ["sharecare"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
