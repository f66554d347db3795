"""Presentation of Cosmos message summaries."""

from __future__ import annotations

from dataclasses import dataclass

from interchaindb.query import CosmosMessageResult


def _join(channel: str | None, port: str | None) -> str:
    channel, port = channel or "", port or ""
    if not channel + port:
        return ""
    return f"{channel}:{port}"


def _pair(source: str | None, counterparty: str | None) -> str:
    source, counterparty = source or "", counterparty or ""
    if source:
        source += " (source)"
    if counterparty:
        counterparty += " (counterparty)"
    return f"{source} {counterparty}".strip()


@dataclass(frozen=True)
class CosmosMessage:
    """Presents a :class:`CosmosMessageResult` as display strings."""

    result: CosmosMessageResult

    def height(self) -> str:
        return str(self.result.height)

    def index(self) -> str:
        """The message's position within its transaction."""
        return str(self.result.index)

    def type(self) -> str:
        """The proto URI, e.g. /ibc.core.client.v1.MsgCreateClient."""
        return self.result.type or ""

    def client_chain(self) -> str:
        return self.result.client_chain_id or ""

    def clients(self) -> str:
        return _pair(self.result.client_id, self.result.counterparty_client_id)

    def connections(self) -> str:
        return _pair(self.result.conn_id, self.result.counterparty_conn_id)

    def channels(self) -> str:
        return _pair(
            _join(self.result.channel_id, self.result.port_id),
            _join(self.result.counterparty_channel_id, self.result.counterparty_port_id),
        )