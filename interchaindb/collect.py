"""Polling collector that saves each block's transactions as the chain grows."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Protocol

from interchaindb.records import Tx

# Raised by nodes asked for a height they have not produced yet; expected and frequent.
_HEIGHT_NOT_REACHED = "must be less than or equal to the current blockchain height"


class TxFinder(Protocol):
    """Finds the transactions of the block at a height."""

    def find_txs(self, height: int) -> Sequence[Tx]:
        """Return the transactions of the block at ``height``."""


class BlockSaver(Protocol):
    """Saves the transactions of the block at a height."""

    def save_block(self, height: int, txs: Sequence[Tx]) -> None:
        """Record the block at ``height`` with ``txs``."""


class Collector:
    """Saves block transactions at regular intervals.

    ``rate`` is the polling interval in seconds; it should be shorter than
    the time the chain takes to produce a block (0.1 to 0.2 is typical).
    """

    def __init__(
        self,
        finder: TxFinder,
        saver: BlockSaver,
        rate: float,
        log: logging.Logger | None = None,
    ) -> None:
        self.finder = finder
        self.saver = saver
        self.rate = rate
        self.log = log or logging.getLogger(__name__)
        self._stopped: threading.Event | None = None

    def collect(self) -> None:
        """Save transactions from height 1 upwards until :meth:`stop` is called.

        The height advances only after its transactions were found and saved.
        """
        stopped = threading.Event()
        self._stopped = stopped
        height = 1
        while not stopped.wait(self.rate):
            try:
                self._save_txs_for_height(height)
            except Exception as exc:
                if _HEIGHT_NOT_REACHED in str(exc):
                    continue
                self.log.info("Failed to save transactions at height %d: %s", height, exc)
                continue
            height += 1

    def stop(self) -> None:
        """End the collect loop. Safe to call repeatedly and from other threads.

        Raises RuntimeError if :meth:`collect` was never called.
        """
        if self._stopped is None:
            raise RuntimeError("collector was never started")
        self._stopped.set()

    def _save_txs_for_height(self, height: int) -> None:
        try:
            txs = self.finder.find_txs(height)
        except Exception as exc:
            exc.add_note("find txs")
            raise
        try:
            self.saver.save_block(height, txs)
        except Exception as exc:
            exc.add_note("save block")
            raise