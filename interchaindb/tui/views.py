"""View state for the block database browser."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from interchaindb.presenter.cosmos_message import CosmosMessage
from interchaindb.presenter.formatting import TestCasePresenter, format_time
from interchaindb.presenter.highlight import Highlight
from interchaindb.presenter.tx import TxPresenter
from interchaindb.query import CosmosMessageResult, TestCaseResult, TxResult
from interchaindb.tui.help import ERROR_TEXT_COLOR

SEARCH_ACTIVE_COLOR = "palegreen"
SEARCH_INACTIVE_COLOR = "blue"


@dataclass
class Table:
    """A titled table; ``selected`` indexes ``rows`` when the table is selectable."""

    title: str = ""
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    selectable: bool = False
    selected: int = 0


@dataclass(frozen=True)
class ErrorModal:
    """A modal dialog that shows an error."""

    text: str
    text_color: str = ERROR_TEXT_COLOR


@dataclass(frozen=True)
class _TxPage:
    title: str
    text: str
    regions: list[str]


def schema_version_view(
    database_path: str, schema_version: str, schema_date: datetime
) -> Table:
    """Return the header table describing the database and its schema."""
    return Table(
        rows=[
            ["Database:", database_path],
            ["Schema Version:", schema_version],
            ["Schema Date:", format_time(schema_date)],
        ]
    )


def detail_table_view(
    title: str, headers: Sequence[str], rows: Iterable[Sequence[str]]
) -> Table:
    """Return a selectable table with upper-cased headers.

    Raises ValueError without headers or when a row's width differs from theirs.
    """
    if not headers:
        raise ValueError("detailTableView headers are required")
    checked = []
    for row in rows:
        row = list(row)
        if len(row) != len(headers):
            raise ValueError(
                f"row {row} column count {len(row)} must equal header count {len(headers)}"
            )
        checked.append(row)
    return Table(
        title=title,
        headers=[header.upper() for header in headers],
        rows=checked,
        selectable=True,
    )


def test_cases_view(test_cases: Iterable[TestCaseResult]) -> Table:
    """Return the initial table of test cases."""
    headers = ["ID", "Date", "Name", "Git Sha", "Chain", "Height", "Tx Total"]
    rows = []
    for result in test_cases:
        pres = TestCasePresenter(result)
        rows.append(
            [
                pres.id(),
                pres.date(),
                pres.name(),
                pres.git_sha(),
                pres.chain_id(),
                pres.height(),
                pres.tx_total(),
            ]
        )
    return detail_table_view("Test Cases", headers, rows)


test_cases_view.__test__ = False  # not a pytest test function


def cosmos_messages_view(
    test_case: TestCaseResult, messages: Iterable[CosmosMessageResult]
) -> Table:
    """Return a table summarising the Cosmos messages of one chain."""
    headers = ["Height", "Index", "Type", "Client Chain", "Client", "Connection", "Channel:Port"]
    rows = []
    for msg in messages:
        pres = CosmosMessage(msg)
        rows.append(
            [
                pres.height(),
                pres.index(),
                pres.type(),
                pres.client_chain(),
                pres.clients(),
                pres.connections(),
                pres.channels(),
            ]
        )
    title = f"{test_case.chain_id} [{format_time(test_case.created_at)}]"
    return detail_table_view(title, headers, rows)


def error_modal_view(error: object) -> ErrorModal:
    """Return a modal showing ``error``."""
    return ErrorModal(text=f"Error: {error}")


class TxDetailView:
    """One page per transaction, with a search field that highlights matches."""

    def __init__(self, chain_id: str, txs: Iterable[TxResult]) -> None:
        self.chain_id = chain_id
        self.txs = list(txs)
        self.search_text = ""
        self.search_active = False
        self.pages: list[_TxPage] = []
        self.page_index = 0
        self._replace_pages("", 0)

    @property
    def search_color(self) -> str:
        return SEARCH_ACTIVE_COLOR if self.search_active else SEARCH_INACTIVE_COLOR

    def toggle_search(self) -> None:
        """Focus the search field, or leave it if it has focus."""
        self.search_active = not self.search_active

    def do_search(self) -> None:
        """Leave the search field and highlight its text on every page."""
        self.search_active = False
        self._replace_pages(self.search_text, self.page_index)

    def next_page(self) -> None:
        """Show the next transaction; stays on the last one."""
        if self.page_index < len(self.pages) - 1:
            self.page_index += 1

    def prev_page(self) -> None:
        """Show the previous transaction; stays on the first one."""
        if self.page_index > 0:
            self.page_index -= 1

    def _replace_pages(self, search_term: str, page_index: int) -> None:
        highlight = Highlight(search_term)
        total = len(self.txs)
        pages = []
        for number, tx in enumerate(self.txs, start=1):
            text, regions = highlight.text(TxPresenter(tx).data())
            title = f"{self.chain_id} @ Height {tx.height} [Tx {number} of {total}]"
            pages.append(_TxPage(title=title, text=text, regions=regions))
        self.pages = pages
        self.page_index = page_index if 0 <= page_index < len(pages) else 0