import json
import sqlite3
import threading
from datetime import datetime, timedelta, timezone

import pytest

from interchaindb.database import connect_db
from interchaindb.migrate import migrate
from interchaindb.records import (
    Chain,
    Event,
    EventAttribute,
    TestCase,
    Tx,
    create_test_case,
)

TX1 = Tx(data=b'{"test":0}')
TX2 = Tx(
    data=b'{"test":1}',
    events=[
        Event(type="e1", attributes=[EventAttribute(key="k1", value="v1")]),
        Event(
            type="e2",
            attributes=[
                EventAttribute(key="k2", value="v2"),
                EventAttribute(key="k3", value="v3"),
            ],
        ),
    ],
)


def _utc(stamp):
    return datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)


def _now_stamp():
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.fixture
def empty_db():
    db = connect_db(":memory:")
    yield db
    db.close()


@pytest.fixture
def db(empty_db):
    migrate(empty_db, "test")
    return empty_db


@pytest.fixture
def chain(db):
    tc = create_test_case(db, "TestCase", "112233")
    return tc.add_chain("chain1", "cosmos")


def _count(db, table):
    return db.execute(f"SELECT count(*) FROM {table}").fetchone()[0]


def test_save_block_happy_path(db, chain):
    chain.save_block(5, [TX1, TX2])

    height, chain_fk, created_at = db.execute(
        "SELECT height, fk_chain_id, created_at FROM block LIMIT 1"
    ).fetchone()
    assert height == 5
    assert chain_fk == 1
    assert abs(datetime.now(timezone.utc) - _utc(created_at)) < timedelta(seconds=10)

    rows = db.execute("SELECT data, fk_block_id FROM tx ORDER BY id").fetchall()
    assert len(rows) == 2
    for i, (data, block_id) in enumerate(rows):
        assert block_id == 1
        assert json.loads(data) == {"test": i}

    attrs = db.execute(
        """SELECT tx.data, tendermint_event.type, key, value
FROM tendermint_event_attr
LEFT JOIN tendermint_event ON tendermint_event.id = fk_event_id
LEFT JOIN tx ON tx.id = tendermint_event.fk_tx_id
ORDER BY tendermint_event_attr.id"""
    ).fetchall()
    assert attrs == [
        ('{"test":1}', "e1", "k1", "v1"),
        ('{"test":1}', "e2", "k2", "v2"),
        ('{"test":1}', "e2", "k3", "v3"),
    ]


def test_save_block_is_idempotent(db, chain):
    chain.save_block(1, [TX2])
    chain.save_block(1, [TX2])

    assert _count(db, "block") == 1
    assert _count(db, "tx") == 1
    assert _count(db, "tendermint_event") == 2
    assert _count(db, "tendermint_event_attr") == 3


def test_save_block_concurrent_duplicates(db, chain):
    threads = [threading.Thread(target=chain.save_block, args=(3, [TX2])) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert _count(db, "block") == 1
    assert _count(db, "tx") == 1


def test_save_block_zero_state(db, chain):
    chain.save_block(5, [])

    assert db.execute("SELECT height FROM block LIMIT 1").fetchone() == (5,)
    assert _count(db, "tx") == 0
    assert _count(db, "tendermint_event") == 0
    assert _count(db, "tendermint_event_attr") == 0


def test_save_block_error_rolls_back(db):
    orphan = Chain(db=db, id=999)
    with pytest.raises(sqlite3.IntegrityError):
        orphan.save_block(1, [TX1])
    assert not db.in_transaction
    assert _count(db, "block") == 0
    assert _count(db, "tx") == 0


def test_create_test_case_happy_path(db):
    tc = create_test_case(db, "SomeTest", "abc123")
    assert tc.id == 1

    name, created_at, sha = db.execute(
        "SELECT name, created_at, git_sha FROM test_case LIMIT 1"
    ).fetchone()
    assert name == "SomeTest"
    assert sha == "abc123"
    assert abs(datetime.now(timezone.utc) - _utc(created_at)) < timedelta(seconds=10)


def test_create_test_case_without_schema_fails(empty_db):
    with pytest.raises(sqlite3.OperationalError):
        create_test_case(empty_db, "fail", "")


def test_create_test_case_empty_sha_fails(db):
    with pytest.raises(sqlite3.IntegrityError):
        create_test_case(db, "fail", "")


def test_add_chain_happy_path(db):
    tc = create_test_case(db, "SomeTest", "abc")
    chain = tc.add_chain("my-chain1", "penumbra")
    assert chain.id == 1

    row = db.execute("SELECT chain_id, chain_type, fk_test_id, id FROM chain").fetchone()
    assert row == ("my-chain1", "penumbra", 1, 1)

    second = tc.add_chain("my-chain2", "test")
    assert second.id == 2


def test_add_chain_duplicate_fails(db):
    tc = create_test_case(db, "SomeTest", "abc")
    tc.add_chain("my-chain", "cosmos")
    with pytest.raises(sqlite3.IntegrityError):
        tc.add_chain("my-chain", "cosmos")


def test_tx_flattened_view(db):
    before_test_case = _now_stamp()
    tc = create_test_case(db, "mytest", "abc123")
    assert isinstance(tc, TestCase)
    chain = tc.add_chain("chain1", "cosmos")

    before_blocks = _now_stamp()
    chain.save_block(1, [Tx(data=b"tx1.0")])
    chain.save_block(2, [Tx(data=b"tx2.0"), Tx(data=b"tx2.1")])
    after_blocks = _now_stamp()

    rows = db.execute(
        """SELECT
  test_case_id, test_case_created_at, test_case_name,
  chain_kid, chain_id, chain_type,
  block_id, block_created_at, block_height,
  tx_id, tx
FROM v_tx_flattened
ORDER BY test_case_id, chain_kid, block_id, tx_id"""
    ).fetchall()
    assert len(rows) == 3

    first, second, third = rows
    assert first[0] == tc.id
    assert before_test_case <= first[1] <= before_blocks
    assert first[2] == "mytest"
    assert first[3] == chain.id
    assert first[4] == "chain1"
    assert first[5] == "cosmos"
    assert before_blocks <= first[7] <= after_blocks
    assert first[8] == 1
    assert first[10] == "tx1.0"

    assert second[0] == tc.id
    assert second[3] == chain.id
    assert first[7] <= second[7] <= after_blocks
    assert second[8] == 2
    assert second[9] > first[9]
    assert second[10] == "tx2.0"

    assert third[0] == tc.id
    assert third[3] == chain.id
    assert third[8] == 2
    assert third[9] > second[9]
    assert third[10] == "tx2.1"