import math

import pytest

from orcha.configuration import (
    ConfigError,
    LoggingConfig,
    PluginConfig,
    ServerConfig,
    YamlConfiguration,
)

SAMPLE = """
server:
  host: "127.0.0.1"
  port: 9000
  ratio: 2.5
  debug: yes
  empty: ""
  nothing: ~
list:
  - alpha
  - beta
  - nested: 1
name: top
"""


@pytest.fixture
def config():
    cfg = YamlConfiguration()
    cfg.load_from_string(SAMPLE)
    return cfg


def test_nested_string_and_int(config):
    assert config.get_string("server.host") == "127.0.0.1"
    assert config.get_int("server.port") == 9000
    assert config.get_string("server.port") == "9000"


def test_double_and_bool(config):
    assert config.get_double("server.ratio") == 2.5
    assert config.get_bool("server.debug") is True


def test_missing_keys_use_defaults(config):
    assert config.get_string("server.missing") is None
    assert config.get_string("server.missing", "fallback") == "fallback"
    assert config.get_int("server.missing", 7) == 7
    assert config.get_bool("server.missing", False) is False
    assert config.get_double("server.missing", 1.5) == 1.5


def test_non_numeric_int_is_none(config):
    assert config.get_int("server.host") is None
    assert config.get_int("server.host", 3) == 3
    assert config.get_double("server.host") is None


def test_mapping_is_not_a_scalar(config):
    assert config.get_string("server") is None


def test_has_key(config):
    assert config.has_key("server.host")
    assert config.has_key("server.empty")
    assert not config.has_key("server.nothing")
    assert not config.has_key("server.absent")


def test_string_list_skips_non_scalars(config):
    assert config.get_string_list("list") == ["alpha", "beta"]
    assert config.get_string_list("server") == []


def test_keys_in_order(config):
    assert config.keys() == ["server", "list", "name"]


def test_section(config):
    section = config.get_section("server")
    assert section.get_int("port") == 9000
    assert "host" in section.keys()
    assert config.get_section("name").keys() == []


@pytest.mark.parametrize(
    "text,expected",
    [("true", True), ("False", False), ("ON", True), ("off", False),
     ("y", True), ("1", True), ("0", False), ("tRUE", True), ("maybe", None)],
)
def test_bool_parsing(text, expected):
    cfg = YamlConfiguration()
    cfg.set_string("flag", text)
    assert cfg.get_bool("flag") is expected


def test_int_parsing_prefixes_and_rejects():
    cfg = YamlConfiguration()
    cfg.load_from_string("hex: 0x1F\nbad: 12abc\nneg: -42\n")
    assert cfg.get_int("hex") == 31
    assert cfg.get_int("bad") is None
    assert cfg.get_int("neg") == -42


def test_int_out_of_range_is_none():
    cfg = YamlConfiguration()
    cfg.set_string("big", str(2**63))
    assert cfg.get_int("big") is None


def test_double_specials():
    cfg = YamlConfiguration()
    cfg.load_from_string("a: .inf\nb: -.inf\nc: .nan\n")
    assert cfg.get_double("a") == math.inf
    assert cfg.get_double("b") == -math.inf
    assert math.isnan(cfg.get_double("c"))


def test_set_and_get_round_trip():
    cfg = YamlConfiguration()
    cfg.set_int("a.b.count", 12)
    cfg.set_bool("a.b.on", True)
    cfg.set_double("a.ratio", 0.25)
    cfg.set_string("a.label", "hello")
    assert cfg.get_int("a.b.count") == 12
    assert cfg.get_bool("a.b.on") is True
    assert cfg.get_double("a.ratio") == 0.25
    assert cfg.get_string("a.label") == "hello"
    assert cfg.keys() == ["a"]


def test_set_through_scalar_raises(config):
    with pytest.raises(ConfigError):
        config.set_string("name.child", "x")


def test_section_shares_data(config):
    section = config.get_section("server")
    section.set_int("port", 1234)
    assert config.get_int("server.port") == 1234


def test_environment_overrides():
    cfg = YamlConfiguration()
    cfg.load_from_string(SAMPLE)
    cfg.merge_environment("ORCHA_", {"ORCHA_SERVER_PORT": "7000", "OTHER_X": "1"})
    assert cfg.get_int("server.port") == 7000
    assert cfg.has_key("server.port")
    assert not cfg.has_key("x")


def test_environment_override_wins_over_set():
    cfg = YamlConfiguration()
    cfg.merge_environment("APP_", {"APP_LOGGING_LEVEL": "debug"})
    cfg.set_string("logging.level", "error")
    assert cfg.get_string("logging.level") == "debug"


def test_merge_copies_top_level_scalars(config):
    target = YamlConfiguration()
    target.merge(config)
    assert target.get_string("name") == "top"
    assert not target.has_key("server")


def test_invalid_yaml_raises():
    cfg = YamlConfiguration()
    with pytest.raises(ConfigError):
        cfg.load_from_string("a: [1, 2")


def test_missing_file_raises(tmp_path):
    cfg = YamlConfiguration()
    with pytest.raises(ConfigError):
        cfg.load_from_file(tmp_path / "nope.yaml")


def test_load_from_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("server:\n  port: 8123\n", encoding="utf-8")
    cfg = YamlConfiguration()
    cfg.load_from_file(path)
    assert cfg.get_int("server.port") == 8123


def test_create_with_missing_file_uses_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TESTPFX_SERVER_HOST", "localhost")
    cfg = YamlConfiguration.create(tmp_path / "absent.yaml", "TESTPFX_")
    assert cfg.keys() == []
    assert cfg.get_string("server.host") == "localhost"


def test_create_default_values(monkeypatch):
    monkeypatch.delenv("ORCHA_SERVER_PORT", raising=False)
    cfg = YamlConfiguration.create_default()
    assert cfg.get_int("server.port") == 8070
    assert cfg.get_string("server.host") == "0.0.0.0"
    assert cfg.get_bool("plugins.auto_reload") is False
    assert cfg.get_string("admin.username") == "admin"


def test_typed_configs_from_default(monkeypatch):
    for name in ("ORCHA_SERVER_PORT", "ORCHA_LOGGING_LEVEL", "ORCHA_PLUGINS_DIRECTORY"):
        monkeypatch.delenv(name, raising=False)
    cfg = YamlConfiguration.create_default()
    assert ServerConfig.from_config(cfg) == ServerConfig()
    assert LoggingConfig.from_config(cfg) == LoggingConfig()
    assert PluginConfig.from_config(cfg) == PluginConfig()


def test_typed_config_reads_values():
    cfg = YamlConfiguration()
    cfg.load_from_string("server:\n  host: h\n  port: 9100\n  worker_threads: 8\n")
    server = ServerConfig.from_config(cfg)
    assert server.host == "h"
    assert server.port == 9100
    assert server.worker_threads == 8


def test_empty_document_has_no_keys():
    cfg = YamlConfiguration()
    cfg.load_from_string("")
    assert cfg.keys() == []
    assert not cfg.has_key("")