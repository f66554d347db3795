"""Read-only queries against the block database."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _time_to_local(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        exc.add_note("parse createdAt")
        raise
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone()


@dataclass(frozen=True)
class SchemaVersionResult:
    """The git sha and local time that produced the schema."""

    git_sha: str
    created_at: datetime


@dataclass(frozen=True)
class TestCaseResult:
    """One test case combined with one of its chains."""

    __test__ = False  # not a pytest test class

    id: int = 0
    name: str = ""
    git_sha: str = ""
    created_at: datetime = _ZERO_TIME
    chain_pkey: int = 0
    chain_id: str = ""
    chain_type: str = ""
    chain_height: int | None = None
    tx_total: int | None = None


@dataclass(frozen=True)
class CosmosMessageResult:
    """Summary of one Cosmos message; ``type`` is the proto URI."""

    height: int = 0
    index: int = 0
    type: str = ""
    client_chain_id: str | None = None
    client_id: str | None = None
    counterparty_client_id: str | None = None
    conn_id: str | None = None
    counterparty_conn_id: str | None = None
    port_id: str | None = None
    counterparty_port_id: str | None = None
    channel_id: str | None = None
    counterparty_channel_id: str | None = None


@dataclass(frozen=True)
class TxResult:
    """A transaction's raw data and the height of its block."""

    height: int = 0
    tx: bytes = field(default=b"")


def _as_bytes(value: str | bytes | None) -> bytes:
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


class Query:
    """Queries over a migrated block database."""

    def __init__(self, db: sqlite3.Connection) -> None:
        self.db = db

    def current_schema_version(self) -> SchemaVersionResult:
        """Return the latest git sha and time that produced the schema.

        Raises LookupError if no version was recorded.
        """
        row = self.db.execute(
            "SELECT git_sha, created_at FROM schema_version ORDER BY id DESC limit 1"
        ).fetchone()
        if row is None:
            raise LookupError("no schema version recorded")
        git_sha, created_at = row
        return SchemaVersionResult(git_sha=git_sha, created_at=_time_to_local(created_at))

    def recent_test_cases(self, limit: int) -> list[TestCaseResult]:
        """Return aggregated data for each test case and chain, newest first."""
        rows = self.db.execute(
            """SELECT
        test_case_id, test_case_created_at, test_case_name, test_case_git_sha,
        chain_kid, chain_id, chain_type, chain_height, tx_total
    FROM v_tx_agg
    WHERE chain_kid IS NOT NULL
    ORDER BY test_case_id DESC, chain_id ASC LIMIT ?""",
            (limit,),
        ).fetchall()
        return [
            TestCaseResult(
                id=tc_id,
                created_at=_time_to_local(created_at),
                name=name,
                git_sha=git_sha,
                chain_pkey=chain_pkey,
                chain_id=chain_id,
                chain_type=chain_type,
                chain_height=height,
                tx_total=tx_total,
            )
            for (
                tc_id,
                created_at,
                name,
                git_sha,
                chain_pkey,
                chain_id,
                chain_type,
                height,
                tx_total,
            ) in rows
        ]

    def cosmos_messages(self, chain_pkey: int) -> list[CosmosMessageResult]:
        """Return the Cosmos messages for the chain with primary key ``chain_pkey``."""
        rows = self.db.execute(
            """SELECT
        block_height
        , msg_n
        , type
        , client_chain_id
        , client_id
        , counterparty_client_id
        , conn_id
        , counterparty_conn_id
        , port_id
        , counterparty_port_id
        , channel_id
        , counterparty_channel_id
    FROM v_cosmos_messages
    WHERE chain_kid = ?
    ORDER BY block_height ASC, msg_n ASC""",
            (chain_pkey,),
        ).fetchall()
        return [CosmosMessageResult(*row) for row in rows]

    def transactions(self, chain_pkey: int) -> list[TxResult]:
        """Return the transactions of the chain with primary key ``chain_pkey``."""
        rows = self.db.execute(
            """SELECT block.height, tx.data FROM tx
    INNER JOIN block on tx.fk_block_id = block.id
    INNER JOIN chain on block.fk_chain_id = chain.id
    WHERE chain.id = ?
    ORDER BY block.height ASC, tx.id ASC""",
            (chain_pkey,),
        ).fetchall()
        return [TxResult(height=height, tx=_as_bytes(data)) for height, data in rows]