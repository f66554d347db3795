import json
from datetime import datetime, timedelta, timezone

import pytest

from interchaindb.database import connect_db
from interchaindb.migrate import migrate
from interchaindb.query import Query
from interchaindb.records import Tx, create_test_case

SAMPLE_TXS = [
    {
        "body": {
            "messages": [
                {
                    "@type": "/ibc.core.client.v1.MsgCreateClient",
                    "client_state": {"chain_id": "chain2"},
                }
            ]
        }
    },
    {
        "body": {
            "messages": [
                {"@type": "/ibc.core.client.v1.MsgUpdateClient", "client_id": "07-tendermint-0"},
                {
                    "@type": "/ibc.core.connection.v1.MsgConnectionOpenInit",
                    "client_id": "07-tendermint-0",
                    "counterparty": {"client_id": "07-tendermint-1"},
                },
            ]
        }
    },
    {"body": {"messages": [{"@type": "/cosmos.bank.v1beta1.MsgSend", "amount": "1"}]}},
]


@pytest.fixture
def empty_db():
    db = connect_db(":memory:")
    yield db
    db.close()


@pytest.fixture
def db(empty_db):
    migrate(empty_db, "test")
    return empty_db


def _recent(moment):
    return abs(datetime.now(timezone.utc) - moment) < timedelta(seconds=10)


def test_current_schema_version(empty_db):
    migrate(empty_db, "first-sha")
    migrate(empty_db, "second-sha")
    res = Query(empty_db).current_schema_version()
    assert res.git_sha == "second-sha"
    assert _recent(res.created_at)


def test_current_schema_version_missing(empty_db):
    empty_db.execute("CREATE TABLE schema_version(id INTEGER, git_sha TEXT, created_at TEXT)")
    with pytest.raises(LookupError):
        Query(empty_db).current_schema_version()


def test_recent_test_cases_happy_path(db):
    tc = create_test_case(db, "test1", "sha1")
    c = tc.add_chain("chain-b", "cosmos")
    c.save_block(10, [Tx(data=b"tx1"), Tx(data=b"tx2")])
    c.save_block(11, [Tx(data=b"tx3")])
    tc.add_chain("chain-a", "cosmos")
    create_test_case(db, "empty", "empty-test")

    results = Query(db).recent_test_cases(10)
    assert len(results) == 2

    got = results[0]
    assert got.id == 1
    assert got.name == "test1"
    assert got.git_sha == "sha1"
    assert _recent(got.created_at)
    assert got.chain_id == "chain-a"
    assert got.chain_type == "cosmos"
    assert got.chain_pkey == 2
    assert not got.chain_height
    assert not got.tx_total

    got = results[1]
    assert got.id == 1
    assert got.name == "test1"
    assert _recent(got.created_at)
    assert got.chain_id == "chain-b"
    assert got.chain_type == "cosmos"
    assert got.chain_pkey == 1
    assert got.chain_height == 11
    assert got.tx_total == 3


def test_recent_test_cases_limit(db):
    tc = create_test_case(db, "1", "1")
    tc.add_chain("chain1", "cosmos")
    tc.add_chain("chain2", "cosmos")
    assert len(Query(db).recent_test_cases(1)) == 1


def test_recent_test_cases_none(db):
    assert Query(db).recent_test_cases(1) == []


def test_cosmos_messages(db):
    tc = create_test_case(db, "test", "sha")
    chain = tc.add_chain("chain1", "cosmos")
    for i, tx in enumerate(SAMPLE_TXS):
        chain.save_block(i + 1, [Tx(data=json.dumps(tx).encode())])

    results = Query(db).cosmos_messages(chain.id)
    assert len(results) == 4

    first = results[0]
    assert first.height == 1
    assert first.index == 0
    assert first.type == "/ibc.core.client.v1.MsgCreateClient"
    assert first.client_chain_id == "chain2"

    second = results[1]
    assert second.height == 2
    assert second.index == 0
    assert second.type == "/ibc.core.client.v1.MsgUpdateClient"

    third = results[2]
    assert third.height == 2
    assert third.index == 1
    assert third.type == "/ibc.core.connection.v1.MsgConnectionOpenInit"
    assert third.client_id == "07-tendermint-0"
    assert third.counterparty_client_id == "07-tendermint-1"

    for res in results:
        if not res.type.startswith("/ibc"):
            continue
        present = [
            res.client_chain_id,
            res.client_id,
            res.counterparty_client_id,
            res.conn_id,
            res.counterparty_conn_id,
            res.port_id,
            res.counterparty_port_id,
            res.channel_id,
            res.counterparty_channel_id,
        ]
        assert any(v is not None for v in present), res


def test_transactions_happy_path(db):
    tc = create_test_case(db, "test", "abc123")
    chain = tc.add_chain("chain-a", "cosmos")
    chain.save_block(12, [Tx(data=b"1")])
    chain.save_block(14, [Tx(data=b"2"), Tx(data=b"3")])

    results = Query(db).transactions(chain.id)
    assert [(r.height, r.tx) for r in results] == [(12, b"1"), (14, b"2"), (14, b"3")]


def test_transactions_none(db):
    tc = create_test_case(db, "test", "abc123")
    chain = tc.add_chain("chain-a", "cosmos")
    assert Query(db).transactions(chain.id) == []