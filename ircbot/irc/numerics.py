"""Target classification for numeric replies.

Every numeric carries the recipient's nick as argument 0; the table below
records, per code, which later argument holds the nick and/or channel the
reply is about. Codes not listed keep only what prefix parsing found.
"""

from __future__ import annotations

from dataclasses import dataclass

RPL_WELCOME = "001"
RPL_NAMREPLY = "353"
RPL_ENDOFNAMES = "366"
RPL_TOPICWHOTIME = "333"
ERR_NICKNAMEINUSE = "433"


@dataclass(frozen=True, slots=True)
class NumericTargets:
    """Argument positions of a numeric's targets.

    ``ambiguous`` names a position that is a channel when it starts with a
    channel-prefix character and a nick otherwise.
    """

    user: int | None = None
    channel: int | None = None
    ambiguous: int | None = None


def _user(pos: int) -> NumericTargets:
    return NumericTargets(user=pos)


def _channel(pos: int) -> NumericTargets:
    return NumericTargets(channel=pos)


def _channel_user(pos: int) -> NumericTargets:
    return NumericTargets(channel=pos, user=pos + 1)


def _ambiguous(pos: int) -> NumericTargets:
    return NumericTargets(ambiguous=pos)


NUMERIC_TARGETS: dict[str, NumericTargets] = {
    # Registration
    RPL_WELCOME: _user(0),
    "002": _user(0),
    "003": _user(0),
    "004": _user(0),
    # WHOIS / WHOWAS / away
    "301": _user(1),
    "307": _user(1),
    "311": _user(1),
    "312": _user(1),
    "313": _user(1),
    "314": _user(1),
    "317": _user(1),
    "318": _user(1),
    "319": _user(1),
    "330": _user(1),
    "369": _user(1),
    "671": _user(1),
    # Channel state
    "324": _channel(1),
    "329": _channel(1),
    "331": _channel(1),
    "332": _channel(1),
    RPL_TOPICWHOTIME: _channel_user(1),
    "346": _channel(1),
    "347": _channel(1),
    "348": _channel(1),
    "349": _channel(1),
    "352": NumericTargets(channel=1, user=5),  # <me> <chan> <ident> <host> <server> <nick>
    RPL_NAMREPLY: NumericTargets(user=0, channel=2),
    RPL_ENDOFNAMES: _channel(1),
    "367": _channel(1),
    "368": _channel(1),
    # Invitations and membership errors: nick first, then channel
    "341": NumericTargets(user=1, channel=2),
    "441": NumericTargets(user=1, channel=2),
    "443": NumericTargets(user=1, channel=2),
    # Errors
    "401": _ambiguous(1),
    "403": _channel(1),
    "404": _channel(1),
    "405": _channel(1),
    "406": _user(1),
    "432": _user(1),
    ERR_NICKNAMEINUSE: _user(1),
    "436": _user(1),
    "437": _ambiguous(1),
    "442": _channel(1),
    "467": _channel(1),
    "471": _channel(1),
    "473": _channel(1),
    "474": _channel(1),
    "475": _channel(1),
    "476": _channel(1),
    "477": _channel(1),
    "482": _channel(1),
}
