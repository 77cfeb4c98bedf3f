import pytest

from ircbot.irc.commands import build_record, ctcp, parse_ctcp, trailing


def test_build_record_joins_and_terminates():
    assert build_record("PRIVMSG", "#c", trailing("hello world")) == "PRIVMSG #c :hello world\r\n"


def test_build_record_skips_none():
    assert build_record("PART", "#c", None) == "PART #c\r\n"


@pytest.mark.parametrize("payload", ["a\r\nQUIT", "a\nb", "a\rb", "a\0b"])
def test_line_break_injection_rejected(payload):
    with pytest.raises(ValueError):
        build_record("PRIVMSG", "#c", trailing(payload))


@pytest.mark.parametrize("verb", ["", "PRIV MSG"])
def test_invalid_verb_rejected(verb):
    with pytest.raises(ValueError):
        build_record(verb, "x")


def test_ctcp_framing():
    assert ctcp("ACTION", "waves") == "\x01ACTION waves\x01"
    assert ctcp("VERSION") == "\x01VERSION\x01"
    assert parse_ctcp("\x01ping 123\x01") == ("PING", "123")
    assert parse_ctcp("\x01VERSION\x01") == ("VERSION", "")
    assert parse_ctcp("plain text") is None
    assert parse_ctcp(None) is None
