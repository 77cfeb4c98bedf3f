from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import (
    CHANNEL_PREFIXES,
    CONNECT_MAX_ATTEMPTS,
    DEFAULT_ENCODING,
    DEFAULT_PORT,
    DEFAULT_SERVICE,
    HOOK_TIMEOUT_SECONDS,
    IDLE_TIMEOUT,
    THROTTLE_BURST,
    THROTTLE_RATE,
)


def _validate_nick(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value or any(ch in value for ch in " ,\r\n\0") or value[0] in CHANNEL_PREFIXES:
        raise ValueError(f"invalid nick: {value!r}")
    return value


class ThrottleConfig(BaseModel):
    """Token-bucket settings for outbound lines."""

    rate: float = Field(default=THROTTLE_RATE, gt=0)
    burst: int = Field(default=THROTTLE_BURST, ge=1)


class ConnectionConfig(BaseModel):
    """One server the bot connects to.

    Attributes:
        name: Unique connection name; outbound helpers address servers by it.
        host: Server hostname.
        port: Server port.
        nick: Per-connection nick, defaults to the bot's nick.
        username: Ident sent in USER, defaults to the nick.
        realname: Real name sent in USER, defaults to the nick.
        password: Server password (PASS), if any.
        tls: Wrap the socket in TLS.
        tls_verify: Verify the server certificate when ``tls`` is set.
        service: Nick of the identification service.
        service_password: Password sent as ``identify <password>`` after welcome.
        channels: Channels joined once registration completes.
        idle_timeout: Seconds without server data before the link is dropped.
        connect_attempts: Connection attempts before giving up.
        keepalive: Enable TCP keepalive probes.
        encoding: Text encoding of the wire.
        throttle: Optional outbound token bucket.
    """

    name: str = Field(min_length=1)
    host: str = Field(min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    nick: str | None = None
    username: str | None = None
    realname: str | None = None
    password: str | None = None
    tls: bool = False
    tls_verify: bool = True
    service: str = DEFAULT_SERVICE
    service_password: str | None = None
    channels: list[str] = Field(default_factory=list)
    idle_timeout: float = Field(default=IDLE_TIMEOUT, gt=0)
    connect_attempts: int = Field(default=CONNECT_MAX_ATTEMPTS, ge=1)
    keepalive: bool = True
    encoding: str = DEFAULT_ENCODING
    throttle: ThrottleConfig | None = None

    @field_validator("nick")
    @classmethod
    def validate_nick(cls, v: str | None) -> str | None:
        return _validate_nick(v)

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> list[str]:
        """Strip whitespace, add a missing '#' and drop duplicates (order kept)."""
        if not isinstance(v, list):
            raise ValueError("channels must be a list")
        validated = []
        for c in v:
            if not isinstance(c, str):
                continue
            stripped = c.strip()
            if not stripped:
                continue
            if stripped[0] not in CHANNEL_PREFIXES:
                stripped = f"#{stripped}"
            validated.append(stripped)
        return list(dict.fromkeys(validated))


class BotConfig(BaseModel):
    """Top-level configuration: the bot's nick and its connections."""

    nick: str
    connections: list[ConnectionConfig] = Field(default_factory=list)
    hook_timeout: float = Field(default=HOOK_TIMEOUT_SECONDS, ge=0)

    @field_validator("nick")
    @classmethod
    def validate_nick(cls, v: str) -> str:
        return _validate_nick(v)  # type: ignore[return-value]

    @model_validator(mode="after")
    def validate_unique_names(self) -> BotConfig:
        names = [c.name for c in self.connections]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate connection names: {', '.join(duplicates)}")
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BotConfig:
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
