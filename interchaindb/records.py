"""Writing test cases, chains, blocks and transactions to the block database."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from interchaindb.database import now_rfc3339

# All transactional writes share one lock so that transactions on a shared
# connection never interleave.
_WRITE_LOCK = threading.RLock()

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


@dataclass(frozen=True)
class EventAttribute:
    """A key and value attached to an event."""

    key: str
    value: str


@dataclass(frozen=True)
class Event:
    """A transaction event, without the non-deterministic index flag."""

    type: str
    attributes: tuple[EventAttribute, ...] | list[EventAttribute] = ()


@dataclass(frozen=True)
class Tx:
    """A transaction's data, ideally human-readable (JSON for Tendermint), and its events."""

    data: bytes
    events: tuple[Event, ...] | list[Event] = ()


def _transactions_hash(txs: Iterable[Tx]) -> int:
    """32-bit FNV-1 hash over the data of every transaction."""
    value = _FNV32_OFFSET
    for tx in txs:
        for byte in tx.data:
            value = (value * _FNV32_PRIME) & 0xFFFFFFFF
            value ^= byte
    return value


class _Call:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Any = None
        self.error: BaseException | None = None


class _SingleFlight:
    """Runs concurrent calls sharing a key only once; all callers get that result."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[str, _Call] = {}

    def do(self, key: str, fn: Callable[[], Any]) -> Any:
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = self._calls[key] = _Call()
        if not leader:
            call.done.wait()
        else:
            try:
                call.result = fn()
            except BaseException as exc:  # handed to every waiting caller
                call.error = exc
            finally:
                with self._lock:
                    del self._calls[key]
                call.done.set()
        if call.error is not None:
            raise call.error
        return call.result


def _insert(db: sqlite3.Connection, description: str, sql: str, params: tuple) -> int:
    try:
        return db.execute(sql, params).lastrowid
    except sqlite3.Error as exc:
        exc.add_note(description)
        raise


@dataclass(eq=False)
class Chain:
    """A tracked chain; records its blocks and their transactions."""

    db: sqlite3.Connection
    id: int
    _flight: _SingleFlight = field(default_factory=_SingleFlight, init=False, repr=False)

    def save_block(self, height: int, txs: Iterable[Tx] | None) -> None:
        """Record the block at ``height`` with its transactions.

        Idempotent: saving the same block again replaces the earlier record.
        """
        txs = list(txs or ())
        key = f"{height}-{_transactions_hash(txs):08x}"
        self._flight.do(key, lambda: self._save_block(height, txs))

    def _save_block(self, height: int, txs: list[Tx]) -> None:
        with _WRITE_LOCK:
            self.db.execute("BEGIN")
            try:
                self._write_block(height, txs)
            except BaseException:
                if self.db.in_transaction:
                    self.db.execute("ROLLBACK")
                raise
            self.db.execute("COMMIT")

    def _write_block(self, height: int, txs: list[Tx]) -> None:
        block_id = _insert(
            self.db,
            "insert into block",
            "INSERT OR REPLACE INTO block(height, fk_chain_id, created_at) VALUES (?, ?, ?)",
            (height, self.id, now_rfc3339()),
        )
        for tx in txs:
            tx_id = _insert(
                self.db,
                "insert into tx",
                "INSERT INTO tx(data, fk_block_id) VALUES (?, ?)",
                (bytes(tx.data).decode("utf-8", errors="replace"), block_id),
            )
            for event in tx.events:
                event_id = _insert(
                    self.db,
                    "insert into tendermint_event",
                    "INSERT INTO tendermint_event(type, fk_tx_id) VALUES (?, ?)",
                    (event.type, tx_id),
                )
                for attr in event.attributes:
                    _insert(
                        self.db,
                        "insert into tendermint_event_attr",
                        "INSERT INTO tendermint_event_attr(key, value, fk_event_id) "
                        "VALUES (?, ?, ?)",
                        (attr.key, attr.value, event_id),
                    )


@dataclass(eq=False)
class TestCase:
    """A single test invocation."""

    __test__ = False  # not a pytest test class

    db: sqlite3.Connection
    id: int

    def add_chain(self, chain_id: str, chain_type: str) -> Chain:
        """Track a chain for this test case.

        ``chain_id`` must be unique per test case (e.g. osmosis-1001);
        ``chain_type`` names the ecosystem (e.g. cosmos, penumbra).
        """
        row_id = self.db.execute(
            "INSERT INTO chain(chain_id, chain_type, fk_test_id) VALUES(?, ?, ?)",
            (chain_id, chain_type, self.id),
        ).lastrowid
        return Chain(db=self.db, id=row_id)


def create_test_case(db: sqlite3.Connection, test_name: str, git_sha: str) -> TestCase:
    """Start tracking a new test case named ``test_name``."""
    row_id = db.execute(
        "INSERT INTO test_case(name, created_at, git_sha) VALUES(?, ?, ?)",
        (test_name, now_rfc3339(), git_sha),
    ).lastrowid
    return TestCase(db=db, id=row_id)