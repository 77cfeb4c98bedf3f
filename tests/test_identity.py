import pytest

from conftest import attach


def test_registration_sequence(bot):
    conn = attach(bot, password="srvpw", realname="Test Bot")
    bot.identity.register(conn)
    assert conn.sent == ["PASS srvpw", "NICK bot", "USER bot 0 * :Test Bot"]


def test_registration_without_password(bot):
    conn = attach(bot)
    bot.identity.register(conn)
    assert conn.sent == ["NICK bot", "USER bot 0 * :bot"]


@pytest.mark.asyncio
async def test_welcome_identifies_joins_and_fires_ready_once(bot):
    conn = attach(bot, channels=["#one", "two"], service_password="sekrit")
    ready = []
    conn.on_ready = ready.append
    await conn.receive(":srv 001 bot :Welcome to the network")
    assert conn.sent == [
        "PRIVMSG NickServ :identify sekrit",
        "JOIN #one",
        "JOIN #two",
    ]
    assert len(ready) == 1
    assert conn.welcomed
    await conn.receive(":srv 001 bot :Welcome again")
    assert len(ready) == 1
    assert len(conn.sent) == 3


@pytest.mark.asyncio
async def test_async_ready_callback_and_custom_service(bot):
    conn = attach(bot, service="AuthServ", service_password="pw")
    seen = []

    async def on_ready(ev):
        seen.append(ev.action)

    conn.on_ready = on_ready
    await conn.receive(":srv 001 bot :hi")
    assert conn.sent == ["PRIVMSG AuthServ :identify pw"]
    assert seen == ["001"]


@pytest.mark.asyncio
async def test_welcome_adopts_server_assigned_nick(bot):
    conn = attach(bot)
    await conn.receive(":srv 001 bot_ :Welcome")
    assert conn.nick == "bot_"


@pytest.mark.asyncio
async def test_nick_in_use_before_welcome_retries_with_suffix(bot):
    conn = attach(bot)
    await conn.receive(":srv 433 * bot :Nickname is already in use")
    assert conn.nick == "bot_"
    assert conn.sent == ["NICK bot_"]
    await conn.receive(":srv 433 * bot_ :Nickname is already in use")
    assert conn.sent[-1] == "NICK bot__"


@pytest.mark.asyncio
async def test_nick_in_use_after_welcome_is_ignored(bot):
    conn = attach(bot)
    await conn.receive(":srv 001 bot :Welcome", ":srv 433 bot taken :in use")
    assert conn.nick == "bot"
    assert conn.sent == []
