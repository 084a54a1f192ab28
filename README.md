# orcha

Building blocks for a command-orchestration service.

- **Commands** (`orcha.command`): subclass `Command`, give it a `name` and an
  `execute(params)` method, and describe its parameters with `CommandMetadata` and
  `CommandParameter`. `Command.validate(params)` checks required parameters and the
  types `string`, `int`, `bool`, `double`, `object` and `array`, raising
  `ParameterValidationError` on the first problem. `rollback(params)` does nothing
  unless overridden.
- **Command registry** (`orcha.registry`): a thread-safe `CommandRegistry`.
  `register_command`, `unregister_command` (raises `KeyError` for an unknown name),
  `get_command`, `list_commands`, `has_command` and `command_count`. Problems with
  registration raise `RegistrationError`.
- **Plugin denylist** (`orcha.denylist`): `PluginDenylist(path)` is a set of plugin
  names kept in a text file, one name per line, with `add`, `remove`, `names()` and
  `name in denylist`.
- **Cron expressions** (`orcha.cron`): `CronExpr.parse(expr)` reads a five-field
  `minute hour day-of-month month day-of-week` expression (`*`, `a`, `a-b`, `a-b/n`,
  `*/n` and comma lists; `7` is also Sunday) and raises `CronParseError` when it is
  malformed. `CronExpr.matches(when)` tests a UTC `datetime`. When both day fields are
  restricted, either one matching is enough.
- **Configuration** (`orcha.configuration`): `YamlConfiguration` gives dot-separated
  access (`get_string`, `get_int`, `get_bool`, `get_double`, `get_string_list`,
  `get_section`, `has_key`, `keys`). It also has setters (`set_string`, `set_int`,
  `set_bool`, `set_double`) and `merge`. Environment variables such as
  `ORCHA_SERVER_PORT` override `server.port` after `merge_environment()`.
  `YamlConfiguration.create(path)` and `YamlConfiguration.create_default()` build
  ready-made instances, and `ServerConfig`, `LoggingConfig` and `PluginConfig` give
  typed views of them. Loading failures raise `ConfigError`.
- **Validation** (`orcha.validator`): `ConfigValidator` checks server, plugin, logging
  and workflow settings and returns a `ValidationResult` of `ValidationIssue`s, each an
  error or a warning. `validate_or_raise` raises `ConfigValidationError` when there is
  any error. `add_validator` adds rules of your own.
- **Resilience** (`orcha.circuit_breaker`): `CircuitBreaker` goes from closed to open
  after repeated failures, and to half-open once `reset_timeout` has passed.
  `CircuitBreakerConfig.strict()` and `.lenient()` are preset configurations, and
  `CircuitBreakerRegistry` keeps breakers by name.
- **Jobs** (`orcha.jobs`, `orcha.sqlite_store`): `JobDefinition` and `RunRecord`, the
  abstract `JobStore`, and `SqliteJobStore`, which keeps jobs and run history in an
  SQLite database. Database failures raise `JobStoreError`. `update_job` and
  `delete_job` raise `KeyError` for an unknown id.

## Installation

```
pip install .
```

## Examples

A command and the registry:

```python
from orcha.command import Command, CommandMetadata, CommandParameter
from orcha.registry import CommandRegistry


class Greet(Command):
    name = "greet"

    def metadata(self):
        return CommandMetadata(
            name="greet",
            description="Say hello",
            parameters=[CommandParameter(name="who", type="string", required=True)],
        )

    def execute(self, params):
        return {"message": f"Hello, {params['who']}!"}


registry = CommandRegistry()
registry.register_command(Greet())
command = registry.get_command("greet")
command.validate({"who": "world"})
print(command.execute({"who": "world"}))
```

`CommandRegistry.load_command_library(path)` takes a plugin file that exists on disk.
It creates the command with the factory given for the file's stem in the `factories`
mapping and then registers it:

```python
registry = CommandRegistry(factories={"libgreet": Greet})
registry.load_command_library("commands/libgreet.so")
```

Cron matching:

```python
from datetime import datetime, timezone
from orcha.cron import CronExpr

weekday_office_hours = CronExpr.parse("*/15 9-17 * * 1-5")
weekday_office_hours.matches(datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc))  # True (Monday)
weekday_office_hours.matches(datetime(2024, 1, 6, 9, 30, tzinfo=timezone.utc))  # False (Saturday)
```

Configuration with validation:

```python
from orcha.configuration import YamlConfiguration, ServerConfig
from orcha.validator import ConfigValidator

config = YamlConfiguration.create_default()
ConfigValidator().validate_or_raise(config)
print(ServerConfig.from_config(config).port)  # 8070 unless ORCHA_SERVER_PORT is set
```

A circuit breaker:

```python
from orcha.circuit_breaker import CircuitBreaker, CircuitBreakerConfig

breaker = CircuitBreaker("inventory", CircuitBreakerConfig.strict())
value = breaker.execute(lambda: 42, fallback=lambda: None)
```

Jobs persisted in SQLite:

```python
from orcha.jobs import JobDefinition, RunRecord
from orcha.sqlite_store import SqliteJobStore

with SqliteJobStore("orcha-jobs.db") as store:
    job = store.create_job(JobDefinition(name="nightly", schedule_cron="0 2 * * *"))
    store.insert_run(RunRecord(job_id=job.id, trigger="manual", status="success"))
    print([j.name for j in store.list_jobs()])
    print([r.status for r in store.list_runs(job.id, 10)])
```

## What this package does not do

- It does not discover plugins. It does not read `manifest.json` files, order plugins
  by their dependencies or manage their lifecycle. `PluginDenylist` only records names,
  and `CommandRegistry` loads plugin files only through the factories you give it.
- It does not run workflows or schedules. `CronExpr` says whether a time matches, and
  `SqliteJobStore` stores jobs and runs, but nothing here executes a job's definition
  or fires jobs on a timer.
- It has no server and no command-line program.

## Running the tests

```
pip install .[test]
pytest
```