[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "orcha"
version = "0.1.0"
description = "Command orchestration core: commands and a command registry, a plugin denylist, cron expressions, YAML configuration with validation, circuit breakers and SQLite job storage"
requires-python = ">=3.10"
keywords = ["orchestration", "commands", "registry", "cron", "circuit-breaker", "jobs", "configuration", "yaml", "sqlite"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["orcha"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
