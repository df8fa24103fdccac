"""Pydantic models for the generated ``openclaw.json``.

Field names follow Python style; the aliases are the keys OpenClaw reads.
Dump with ``by_alias=True, exclude_none=True``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ALLOW_ALL = ["*"]


class _Doc(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


# --- Agent / gateway ---


class AgentSection(_Doc):
    model: str


class GatewayAuth(_Doc):
    mode: Literal["token"] = "token"
    token: str = Field(..., min_length=1)


class GatewaySection(_Doc):
    bind: str
    port: int
    auth: GatewayAuth


# --- Channels ---


class TelegramChannel(_Doc):
    bot_token: str = Field(alias="botToken")
    allow_from: list[str] = Field(default_factory=lambda: list(ALLOW_ALL), alias="allowFrom")


class DiscordDM(_Doc):
    allow_from: list[str] = Field(default_factory=lambda: list(ALLOW_ALL), alias="allowFrom")


class DiscordChannel(_Doc):
    token: str
    dm: DiscordDM = Field(default_factory=DiscordDM)


class SlackChannel(_Doc):
    bot_token: str = Field(alias="botToken")
    app_token: str = Field(alias="appToken")


class ChannelsSection(_Doc):
    telegram: TelegramChannel | None = None
    discord: DiscordChannel | None = None
    slack: SlackChannel | None = None

    def enabled(self) -> list[str]:
        return [name for name, entry in self if entry is not None]


# --- Document ---


class OpenClawConfig(_Doc):
    agent: AgentSection
    gateway: GatewaySection
    channels: ChannelsSection = Field(default_factory=ChannelsSection)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2) + "\n"
