# interchaindb

`interchaindb` keeps a history of test runs against blockchains in an SQLite
database, so that a failing run can be inspected afterwards. Each test case
has its chains, each chain its blocks, each block its transactions, and each
transaction its events and their attributes.

## Installation

```
pip install interchaindb
```

## Recording

```python
from interchaindb.database import connect_db
from interchaindb.migrate import migrate
from interchaindb.records import Event, EventAttribute, Tx, create_test_case

db = connect_db("blocks/history.db")   # or ":memory:"
migrate(db, "abc123")                  # idempotent; records the schema's git sha

test_case = create_test_case(db, "TestTransfer", "abc123")
chain = test_case.add_chain("chain-a", "cosmos")
chain.save_block(5, [
    Tx(data=b'{"test":1}', events=[Event("e1", [EventAttribute("k1", "v1")])]),
])
```

`connect_db` creates missing parent directories, checks that the database
answers and returns an `sqlite3.Connection` in autocommit mode.
`migrate` sets a busy timeout, WAL journal mode and foreign keys, so that
several processes can share one database file, then creates the tables and
the `v_tx_flattened`, `v_cosmos_messages` and `v_tx_agg` views. Running it
again with a new git sha records that sha as the latest schema version.

`Chain.save_block` writes a block and its transactions in one database
transaction. Saving the same height again replaces the earlier block record,
and concurrent calls with the same height and transaction data run only once.
`TestCase.add_chain` raises `sqlite3.IntegrityError` when the chain id is
already used in that test case.

### Polling for blocks

`interchaindb.collect.Collector` asks a `TxFinder` (anything with
`find_txs(height)`) for the transactions of heights 1, 2, 3, … and hands them
to a `BlockSaver` (anything with `save_block(height, txs)`; a `Chain` is one).

```python
import threading
from interchaindb.collect import Collector

collector = Collector(finder, chain, rate=0.2)   # rate in seconds
threading.Thread(target=collector.collect).start()
...
collector.stop()
```

The height advances only when finding and saving both succeed; other
failures are logged at info level and the same height is tried again.
`stop()` may be called any number of times and from any thread, but raises
`RuntimeError` if `collect()` was never called.

## Querying

```python
from interchaindb.query import Query

query = Query(db)
version = query.current_schema_version()   # LookupError if none recorded
for case in query.recent_test_cases(10):
    print(case.name, case.chain_id, case.chain_height, case.tx_total)
```

`Query.cosmos_messages(chain_pkey)` summarises the messages of one chain
(type, clients, connections, ports and channels), ordered by height and
position, and `Query.transactions(chain_pkey)` lists its transactions in
height order. `chain_pkey` is the chain's primary key (`Chain.id`), not its
chain id. Times are returned as aware datetimes in the local time zone.

## Presenting

The `interchaindb.presenter` package turns query results into display text:

- `formatting.format_time` gives a short timestamp such as `06-22 03:04PM UTC`;
- `formatting.TestCasePresenter`, `cosmos_message.CosmosMessage` and
  `tx.TxPresenter` render result rows as strings;
  `TxPresenter.data()` pretty-prints JSON and returns other data as-is;
- `highlight.Highlight` wraps every case-insensitive occurrence of a search
  term in numbered `["0"]…[""]` regions;
- `tx.txs_to_json` renders transactions as a JSON array of
  `{"Height", "Tx"}` objects, base64-encoding data that is not JSON itself.

## Browser state

The `interchaindb.tui` package holds the state of a browser over the
database, without drawing anything:

- `help` has the key bindings per `MainContent` (`KEY_MAP`,
  `bindings_with_base`) and `HelpView`, which lays them out in columns of six;
- `views` builds `Table`s for test cases and Cosmos messages, `ErrorModal`s,
  and `TxDetailView`, one page per transaction with search highlighting;
- `model.Model` keeps the views as a stack and reacts to keys passed to
  `Model.handle_key` (`"esc"`, `"enter"`, `"up"`, `"down"`, `"backspace"` or a
  typed character). It returns `None` when it handled the key and the key
  otherwise. `Model.current()` and `Model.front_view()` give the top of the
  stack.

```python
from interchaindb.tui.model import Model

model = Model(query, "blocks/history.db", version.git_sha, version.created_at,
              query.recent_test_cases(100), clipboard=copy_function)
model.handle_key("enter")        # open the transactions of the selected row
model.handle_key("]")            # next transaction
```

## TOML configuration

```python
from interchaindb.configutil.toml_config import modify_toml

updated = modify_toml(original_text, {"rpc": {"laddr": "tcp://0.0.0.0:26657"}})
```

Nested tables are merged key by key and created when missing; every other
value is replaced. `recursive_modify_toml` does the same on a dict in place
and raises `TypeError` when a table would be merged into a non-table value.

## What it does not do

- There is no command to run; everything is used from Python.
- Nothing is drawn on a terminal: the `tui` package holds view state and
  key handling only.
- There is no system clipboard access. Without a `clipboard` function,
  copying in the transaction view shows an error modal.
- It does not start or talk to chains or nodes; finding transactions is left
  to the `TxFinder` you supply. `modify_toml` works on text you read and
  write yourself.

## Running the tests

```
pip install "interchaindb[test]"
pytest
```