"""Idempotent schema migrations for the block database."""

from __future__ import annotations

import sqlite3

from interchaindb.database import now_rfc3339

_PRAGMAS = {
    # Lets several test processes share one database file.
    "busy_timeout": "4000",
    # Readers do not block writers and a writer does not block readers.
    "journal_mode": "WAL",
    "foreign_keys": "ON",
}

_PK = "id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT"


def _required_text(column: str) -> str:
    return f"{column} TEXT NOT NULL CHECK (length({column}) > 0)"


def _cascade(column: str, parent: str) -> str:
    return f"FOREIGN KEY({column}) REFERENCES {parent}(id) ON DELETE CASCADE"


def _create_table(name: str, *definitions: str) -> str:
    return f"CREATE TABLE IF NOT EXISTS {name} ({', '.join(definitions)})"


_SCHEMA_VERSION_TABLE = _create_table(
    "schema_version",
    _PK,
    _required_text("created_at"),
    _required_text("git_sha"),
    "UNIQUE(git_sha)",
)

_UPSERT_SCHEMA_VERSION = (
    "INSERT INTO schema_version(created_at, git_sha) VALUES (?, ?) "
    "ON CONFLICT(git_sha) DO UPDATE SET git_sha=git_sha"
)

# Tables created before the chain_type column is added, in dependency order.
_EARLY_TABLES = {
    "test_case": (
        _PK,
        _required_text("name"),
        _required_text("git_sha"),
        _required_text("created_at"),
        "UNIQUE(name,created_at)",
    ),
    "chain": (
        _PK,
        _required_text("chain_id"),
        "fk_test_id INTEGER",
        _cascade("fk_test_id", "test_case"),
        "UNIQUE(chain_id,fk_test_id)",
    ),
    "block": (
        _PK,
        "height INTEGER NOT NULL CHECK (length(height > 0))",
        "fk_chain_id INTEGER",
        _required_text("created_at"),
        _cascade("fk_chain_id", "chain"),
        "UNIQUE(height,fk_chain_id)",
    ),
    "tx": (
        _PK,
        "data TEXT NOT NULL CHECK (length(data > 0))",
        "fk_block_id INTEGER",
        _cascade("fk_block_id", "block"),
    ),
}

_LATE_TABLES = {
    "tendermint_event": (
        _PK,
        _required_text("type"),
        "fk_tx_id INTEGER",
        _cascade("fk_tx_id", "tx"),
    ),
    "tendermint_event_attr": (
        _PK,
        _required_text("key"),
        "value TEXT NOT NULL",
        "fk_event_id INTEGER",
        _cascade("fk_event_id", "tendermint_event"),
    ),
}

_ADD_CHAIN_TYPE = (
    "ALTER TABLE chain ADD COLUMN chain_type TEXT NOT NULL "
    "CHECK (length(chain_type) > 0) DEFAULT 'unknown'"
)


def _select(columns: list[tuple[str, str]], rest: str) -> str:
    listed = ", ".join(f"{expr} AS {alias}" for expr, alias in columns)
    return f"SELECT {listed} {rest}"


_FLATTENED_COLUMNS = [
    ("test_case.id", "test_case_id"),
    ("test_case.created_at", "test_case_created_at"),
    ("test_case.name", "test_case_name"),
    ("chain.id", "chain_kid"),
    ("chain.chain_id", "chain_id"),
    ("chain.chain_type", "chain_type"),
    ("block.id", "block_id"),
    ("block.created_at", "block_created_at"),
    ("block.height", "block_height"),
    ("tx.id", "tx_id"),
    ("tx.data", "tx"),
]

_FLATTENED_VIEW = _select(
    _FLATTENED_COLUMNS,
    "FROM tx "
    "LEFT JOIN block ON tx.fk_block_id = block.id "
    "LEFT JOIN chain ON block.fk_chain_id = chain.id "
    "LEFT JOIN test_case ON chain.fk_test_id = test_case.id",
)

# Each output column takes the first JSON path present in the message.
_MESSAGE_FIELDS = [
    ("type", ["@type"]),
    ("client_chain_id", ["client_state.chain_id"]),
    ("client_id", ["client_id"]),
    ("counterparty_client_id", ["counterparty.client_id"]),
    ("conn_id", ["connection_id"]),
    ("counterparty_conn_id", ["counterparty_connection_id", "counterparty.connection_id"]),
    ("port_id", ["port_id", "source_port", "packet.source_port"]),
    ("counterparty_port_id", ["channel.counterparty.port_id", "packet.destination_port"]),
    ("channel_id", ["channel_id", "source_channel", "packet.source_channel"]),
    (
        "counterparty_channel_id",
        ["counterparty_channel_id", "channel.counterparty.channel_id", "packet.destination_channel"],
    ),
]


def _first_present(paths: list[str]) -> str:
    extracts = [f"json_extract(value, '$.{path}')" for path in paths]
    if len(extracts) == 1:
        return extracts[0]
    return f"COALESCE({', '.join(extracts)})"


_MESSAGES_VIEW = _select(
    [
        (name, name)
        for name in (
            "test_case_id",
            "test_case_name",
            "chain_kid",
            "chain_id",
            "block_id",
            "block_height",
            "tx_id",
        )
    ]
    + [("key", "msg_n")]
    + [(_first_present(paths), alias) for alias, paths in _MESSAGE_FIELDS]
    + [("value", "raw")],
    "FROM v_tx_flattened, json_each(v_tx_flattened.tx, '$.body.messages')",
)

_AGG_VIEW = _select(
    [
        ("test_case.id", "test_case_id"),
        ("test_case.created_at", "test_case_created_at"),
        ("test_case.name", "test_case_name"),
        ("test_case.git_sha", "test_case_git_sha"),
        ("chain.id", "chain_kid"),
        ("chain.chain_id", "chain_id"),
        ("chain.chain_type", "chain_type"),
        ("MAX(COALESCE(block.height, 0))", "chain_height"),
        ("COUNT(tx.data)", "tx_total"),
    ],
    "FROM test_case "
    "LEFT JOIN chain ON chain.fk_test_id = test_case.id "
    "LEFT JOIN block ON block.fk_chain_id = chain.id "
    "LEFT JOIN tx ON tx.fk_block_id = block.id "
    "GROUP BY test_case.id, chain.id",
)

# Order matters: later views select from earlier ones.
_VIEWS = {
    "v_tx_flattened": _FLATTENED_VIEW,
    "v_cosmos_messages": _MESSAGES_VIEW,
    "v_tx_agg": _AGG_VIEW,
}


def _execute(db: sqlite3.Connection, description: str, sql: str, params=()) -> None:
    try:
        db.execute(sql, params)
    except sqlite3.Error as exc:
        exc.add_note(description)
        raise


def _add_chain_type_column(db: sqlite3.Connection) -> None:
    try:
        db.execute(_ADD_CHAIN_TYPE)
    except sqlite3.OperationalError as exc:
        if "duplicate column name: chain_type" in str(exc):
            return
        exc.add_note("alter table chain add chain_type")
        raise


def _create_tables(db: sqlite3.Connection, tables: dict[str, tuple[str, ...]]) -> None:
    for name, definitions in tables.items():
        _execute(db, f"create table {name}", _create_table(name, *definitions))


def _upsert_views(db: sqlite3.Connection) -> None:
    # Views are dropped and recreated so that earlier steps may change columns freely.
    for name, select in _VIEWS.items():
        _execute(db, f"drop old {name} view", f"DROP VIEW IF EXISTS {name}")
        _execute(db, f"create {name} view", f"CREATE VIEW {name} AS {select}")


def migrate(db: sqlite3.Connection, git_sha: str) -> None:
    """Bring the schema of ``db`` up to date, recording ``git_sha``.

    Safe to run any number of times. If it fails, the database may be
    deleted and created again.
    """
    for name, value in _PRAGMAS.items():
        _execute(db, f"pragma {name}", f"PRAGMA {name} = {value}")

    _execute(db, "begin tx", "BEGIN")
    try:
        _execute(db, "create table schema_version", _SCHEMA_VERSION_TABLE)
        _execute(
            db,
            f"upsert schema_version with git sha {git_sha}",
            _UPSERT_SCHEMA_VERSION,
            (now_rfc3339(), git_sha),
        )
        _create_tables(db, _EARLY_TABLES)
        _add_chain_type_column(db)
        _create_tables(db, _LATE_TABLES)
        _upsert_views(db)
    except BaseException:
        if db.in_transaction:
            db.execute("ROLLBACK")
        raise
    _execute(db, "committing migrations", "COMMIT")