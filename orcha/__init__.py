"""Command orchestration core: commands and their registry, a plugin denylist, cron
expressions, YAML configuration and validation, circuit breakers and SQLite job storage."""

__version__ = "0.1.0"