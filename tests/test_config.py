import json

import pytest
from pydantic import ValidationError

from ircbot.config import BotConfig, ConfigLoader, ConnectionConfig, get_config_path, load_config
from ircbot.errors.internal import ConfigError


def _write(tmp_path, data):
    path = tmp_path / "ircbot.conf"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


def test_channels_normalized_and_deduplicated():
    cfg = ConnectionConfig(name="n", host="h", channels=[" one ", "#two", "one", "", "&local"])
    assert cfg.channels == ["#one", "#two", "&local"]


@pytest.mark.parametrize("nick", ["", "bad nick", "#chan", "a,b"])
def test_invalid_nick_rejected(nick):
    with pytest.raises(ValidationError):
        BotConfig(nick=nick)


def test_port_range_validated():
    with pytest.raises(ValidationError):
        ConnectionConfig(name="n", host="h", port=70000)


def test_duplicate_connection_names_rejected():
    with pytest.raises(ValidationError):
        BotConfig.from_dict(
            {"nick": "bot", "connections": [{"name": "a", "host": "h"}, {"name": "a", "host": "i"}]}
        )


def test_load_valid_file(tmp_path):
    path = _write(
        tmp_path,
        {
            "nick": "bot",
            "connections": [
                {"name": "libera", "host": "irc.libera.chat", "port": 6697, "tls": True, "channels": ["bots"]}
            ],
        },
    )
    cfg = load_config(path)
    assert cfg.nick == "bot"
    conn = cfg.connections[0]
    assert (conn.port, conn.tls, conn.channels) == (6697, True, ["#bots"])
    assert cfg.to_dict()["connections"][0]["name"] == "libera"


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError):
        ConfigLoader(tmp_path / "absent.conf").load()


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", json.dumps({"connections": []})])
def test_bad_content_raises_config_error(tmp_path, content):
    path = _write(tmp_path, content)
    with pytest.raises(ConfigError):
        load_config(path)


def test_config_path_from_environment(monkeypatch):
    monkeypatch.setenv("IRCBOT_CONF_FILE", "/tmp/custom.conf")
    assert get_config_path() == "/tmp/custom.conf"
    monkeypatch.delenv("IRCBOT_CONF_FILE")
    assert get_config_path() == "ircbot.conf"
