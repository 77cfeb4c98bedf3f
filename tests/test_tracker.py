"""Tests for channel and member tracking."""

import logging

import pytest

from ircbot.errors.internal import ModeParseError
from ircbot.irc.models import Action
from ircbot.irc.tracker import pair_mode_targets, parse_mode_runs, split_role_prefix


async def _setup_channel(conn, names=":@op1 +voice1 plain1"):
    await conn.receive(":bot!b@h JOIN #chan", f":srv 353 bot = #chan {names}")
    return conn.channels["#chan"]


@pytest.mark.asyncio
async def test_names_then_flags(conn):
    chan = await _setup_channel(conn)
    assert chan.members["op1"].op and not chan.members["op1"].voice
    assert chan.members["voice1"].voice and not chan.members["voice1"].op
    assert not chan.members["plain1"].op and not chan.members["plain1"].voice


@pytest.mark.asyncio
async def test_names_creates_channel_and_strips_all_prefixes(conn):
    await conn.receive(":srv 353 bot @ #fresh :~owner &admin %half @+both")
    chan = conn.channels["#fresh"]
    assert set(chan.members) == {"owner", "admin", "half", "both"}
    assert not chan.members["owner"].op
    assert chan.members["both"].op and chan.members["both"].voice


@pytest.mark.asyncio
async def test_names_replaces_existing_entry(conn):
    chan = await _setup_channel(conn)
    await conn.receive(":srv 353 bot = #chan :op1")
    assert chan.members["op1"].op is False


@pytest.mark.asyncio
async def test_bot_join_creates_channel_without_member(conn):
    await conn.receive(":bot!b@h JOIN #chan")
    assert "#chan" in conn.channels
    assert "bot" not in conn.channels["#chan"]


@pytest.mark.asyncio
async def test_join_of_other_user_adds_member_and_sets_event_member(conn):
    await _setup_channel(conn)
    seen = []
    conn.dispatcher.registry.add(Action.JOIN, "app", seen.append)
    await conn.receive(":dave!d@h JOIN #chan")
    member = conn.channels["#chan"].members["dave"]
    assert (member.op, member.voice) == (False, False)
    assert seen[0].member is member
    assert seen[0].user == "dave"
    assert seen[0].channel is conn.channels["#chan"]


@pytest.mark.asyncio
async def test_self_departure_removes_channel(conn):
    await _setup_channel(conn)
    await conn.receive(":bot!b@h PART #chan :bye")
    assert "#chan" not in conn.channels


@pytest.mark.asyncio
async def test_self_kick_removes_channel(conn):
    await _setup_channel(conn)
    await conn.receive(":op1!o@h KICK #chan bot :out")
    assert "#chan" not in conn.channels


@pytest.mark.asyncio
async def test_other_departure_keeps_channel(conn):
    chan = await _setup_channel(conn)
    await conn.receive(":plain1!p@h PART #chan")
    await conn.receive(":op1!o@h KICK #chan voice1 :out")
    assert "#chan" in conn.channels
    assert set(chan.members) == {"op1"}


@pytest.mark.asyncio
async def test_quit_removes_member_everywhere_and_reports_channels(conn):
    await _setup_channel(conn)
    await conn.receive(":bot!b@h JOIN #two", ":srv 353 bot = #two :plain1 other")
    seen = []
    conn.dispatcher.registry.add(Action.QUIT, "app", seen.append)
    await conn.receive(":plain1!p@h QUIT :bye")
    assert all("plain1" not in c for c in conn.channels.values())
    assert sorted(c.name for c in seen[0].channels) == ["#chan", "#two"]


@pytest.mark.asyncio
async def test_nick_rename_preserves_flags(conn):
    chan = await _setup_channel(conn)
    await conn.receive(":op1!o@h NICK :boss")
    assert "op1" not in chan
    assert chan.members["boss"].op is True
    assert chan.members["boss"].name == "boss"


@pytest.mark.asyncio
async def test_bot_nick_change_updates_connection(conn):
    await conn.receive(":bot!b@h NICK newbot")
    assert conn.nick == "newbot"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("record", "expected"),
    [
        (":op1!o@h MODE #chan +o plain1", {"plain1": (True, False)}),
        (":op1!o@h MODE #chan -o op1", {"op1": (False, False)}),
        (":op1!o@h MODE #chan +v-o plain1 op1", {"plain1": (False, True), "op1": (False, False)}),
        (":op1!o@h MODE #chan +ov plain1 voice1", {"plain1": (True, False), "voice1": (False, True)}),
        (":op1!o@h MODE #chan +oo plain1 voice1", {"plain1": (True, False), "voice1": (True, True)}),
        (":op1!o@h MODE #chan +lo 10 plain1", {"plain1": (True, False)}),
        (":op1!o@h MODE #chan -l+o plain1", {"plain1": (True, False)}),
        (":op1!o@h MODE #chan +b-v *!*@spam voice1", {"voice1": (False, False)}),
        (":op1!o@h MODE #chan +o :plain1", {"plain1": (True, False)}),
    ],
)
async def test_mode_applies_flags(conn, record, expected):
    chan = await _setup_channel(conn)
    await conn.receive(record)
    for nick, (op, voice) in expected.items():
        assert (chan.members[nick].op, chan.members[nick].voice) == (op, voice)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "record",
    [
        ":op1!o@h MODE #chan +o plain1 voice1",  # more targets than flags
        ":op1!o@h MODE #chan +o-v plain1",  # more flags than targets
        ":op1!o@h MODE #chan +ov plain1",  # second flag has no target
        ":op1!o@h MODE #chan o plain1",  # no sign
        ":op1!o@h MODE #chan +-o plain1",  # empty run
    ],
)
async def test_mode_rejected_leaves_state_untouched(conn, caplog, record):
    caplog.set_level(logging.WARNING, logger="ircbot")
    chan = await _setup_channel(conn)
    before = {n: (m.op, m.voice) for n, m in chan.members.items()}
    await conn.receive(record)
    assert {n: (m.op, m.voice) for n, m in chan.members.items()} == before
    assert any("Rejected mode change" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_mode_without_member_flags_ignored(conn):
    chan = await _setup_channel(conn)
    await conn.receive(":op1!o@h MODE #chan +nt")
    assert chan.members["plain1"].op is False


@pytest.mark.asyncio
async def test_mode_for_unknown_member_is_skipped(conn):
    chan = await _setup_channel(conn)
    await conn.receive(":op1!o@h MODE #chan +o ghost")
    assert "ghost" not in chan


@pytest.mark.asyncio
async def test_ping_is_answered_with_token(conn):
    await conn.receive("PING :irc.example.org")
    assert conn.sent == ["PONG :irc.example.org"]


@pytest.mark.asyncio
async def test_ctcp_ping_in_direct_message_gets_notice(conn):
    await conn.receive(":alice!a@h PRIVMSG bot :\x01PING 12345\x01")
    assert conn.sent == ["NOTICE alice :\x01PING 12345\x01"]


@pytest.mark.asyncio
async def test_ctcp_ping_in_channel_is_not_answered(conn):
    await _setup_channel(conn)
    await conn.receive(":alice!a@h PRIVMSG #chan :\x01PING 1\x01")
    assert conn.sent == []


def test_parse_mode_runs():
    assert parse_mode_runs("+o-v+ov") == [(True, "o"), (False, "v"), (True, "ov")]
    with pytest.raises(ModeParseError):
        parse_mode_runs("")
    with pytest.raises(ModeParseError):
        parse_mode_runs("+")


def test_split_role_prefix():
    assert split_role_prefix("@+alice") == ("@+", "alice")
    assert split_role_prefix("bob") == ("", "bob")


def test_pair_mode_targets_consumes_targets_in_order():
    assert pair_mode_targets("+ov-n", ["alice", "bob"]) == [
        (True, "o", "alice"),
        (True, "v", "bob"),
        (False, "n", None),
    ]
    assert pair_mode_targets("+l-l", ["5"]) == [(True, "l", "5"), (False, "l", None)]
    with pytest.raises(ModeParseError):
        pair_mode_targets("+oo", ["alice"])
    with pytest.raises(ModeParseError):
        pair_mode_targets("+n", ["alice"])
