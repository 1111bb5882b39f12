"""
Config loading, durations and key table merging.
"""

import pytest

from reqterm.config import Config, default_config_path, load_config, parse_duration
from reqterm.errors import ConfigError


@pytest.mark.parametrize(
    "value, seconds",
    [("1m30s", 90.0), ("500ms", 0.5), ("2h", 7200.0), ("1.5s", 1.5), (2, 2.0), (0.25, 0.25)],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == pytest.approx(seconds)


@pytest.mark.parametrize("value", ["abc", "10", "0s", "", "5 s", True, -1])
def test_parse_duration_rejects(value):
    with pytest.raises(ConfigError):
        parse_duration(value)


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "none.toml")
    assert config.general.timeout == 60.0
    assert config.keys["global"]["CtrlR"] == "submit"
    with pytest.raises(ConfigError):
        load_config(tmp_path / "none.toml", required=True)


def test_default_path_uses_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_config_path() == tmp_path / "reqterm" / "config.toml"


def test_general_options_and_key_merge(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                "[general]",
                'timeout = "2s"',
                "insecure = true",
                'tls_version_min = "TLS1.3"',
                'default_url_scheme = "http"',
                "",
                "[keys.global]",
                'CtrlR = ""',
                'F10 = "submit"',
                "",
                "[keys.search]",
                'CtrlL = "deleteLine"',
            ]
        )
    )
    config = load_config(path)
    assert config.general.timeout == 2.0
    assert config.general.insecure is True
    assert config.general.tls_version_min == "TLS1.3"
    assert config.general.default_url_scheme == "http"
    assert config.keys["global"]["CtrlR"] == ""
    assert config.keys["global"]["F10"] == "submit"
    assert config.keys["global"]["CtrlC"] == "quit"
    assert config.keys["search"] == {"CtrlL": "deleteLine"}


@pytest.mark.parametrize(
    "body",
    [
        "[general]\nunknown = 1",
        "[general]\ninsecure = \"yes\"",
        "[general]\ntls_version_max = \"TLS9\"",
        "[general]\ntimeout = \"soon\"",
        "[keys.url]\nEnter = 5",
        "not toml at all [",
    ],
)
def test_invalid_config_files(tmp_path, body):
    path = tmp_path / "config.toml"
    path.write_text(body)
    with pytest.raises(ConfigError):
        load_config(path)


def test_config_defaults_are_independent():
    first = Config()
    first.keys["global"]["CtrlR"] = ""
    assert Config().keys["global"]["CtrlR"] == "submit"
