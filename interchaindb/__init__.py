"""Record test runs, chains, blocks and transactions in SQLite and inspect them."""

__version__ = "0.1.0"