"""State and key handling of the block database browser."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Protocol

from interchaindb.presenter.tx import txs_to_json
from interchaindb.query import CosmosMessageResult, TestCaseResult, TxResult
from interchaindb.tui.help import KEY_MAP, HelpView, MainContent
from interchaindb.tui.views import (
    ErrorModal,
    Table,
    TxDetailView,
    cosmos_messages_view,
    error_modal_view,
    schema_version_view,
    test_cases_view,
)

_View = Table | TxDetailView | ErrorModal

_UP_KEYS = frozenset({"up", "k"})
_DOWN_KEYS = frozenset({"down", "j"})


class _QueryService(Protocol):
    def cosmos_messages(self, chain_pkey: int) -> Sequence[CosmosMessageResult]: ...

    def transactions(self, chain_pkey: int) -> Sequence[TxResult]: ...


def _no_clipboard(text: str) -> None:
    raise RuntimeError("no system clipboard configured")


class Model:
    """Holds the browser's views as a stack and updates them on key presses.

    Keys are named ``"esc"``, ``"enter"``, ``"up"``, ``"down"``,
    ``"backspace"`` or given as the typed character.
    """

    def __init__(
        self,
        query_service: _QueryService,
        database_path: str,
        schema_version: str,
        schema_date: datetime,
        test_cases: Iterable[TestCaseResult] | None,
        clipboard: Callable[[str], object] | None = None,
    ) -> None:
        self.query_service = query_service
        self.database_path = database_path
        self.schema_version = schema_version
        self.schema_date = schema_date
        self.test_cases = list(test_cases or ())
        self.clipboard = clipboard or _no_clipboard
        self.help = HelpView().replace(KEY_MAP[MainContent.TEST_CASES])
        self.schema = schema_version_view(database_path, schema_version, schema_date)
        self.pages: list[tuple[MainContent, _View]] = [
            (MainContent.TEST_CASES, test_cases_view(self.test_cases))
        ]

    def current(self) -> MainContent:
        """The kind of main content on top of the stack."""
        return self.pages[-1][0]

    def front_view(self) -> _View:
        """The view on top of the stack."""
        return self.pages[-1][1]

    def handle_key(self, key: str) -> str | None:
        """Update the views for ``key``; return None if handled, else ``key``."""
        old = self.current()
        try:
            return self._dispatch(key)
        finally:
            if self.current() is not old:
                self.help.replace(KEY_MAP[self.current()])

    def _dispatch(self, key: str) -> str | None:
        current = self.current()

        if key == "esc":
            # At least one main view always remains.
            if len(self.pages) > 1:
                self.pages.pop()
                return None
            return key

        if current is MainContent.TEST_CASES and key in ("enter", "m") and self.test_cases:
            test_case = self.test_cases[self._selected_row()]
            if key == "enter":
                try:
                    txs = self.query_service.transactions(test_case.chain_pkey)
                except Exception as exc:
                    self._push_error(f"query transactions: {exc}")
                    return None
                self._push(MainContent.TX_DETAIL, TxDetailView(test_case.chain_id, txs))
            else:
                try:
                    messages = self.query_service.cosmos_messages(test_case.chain_pkey)
                except Exception as exc:
                    self._push_error(f"query cosmos messages: {exc}")
                    return None
                self._push(
                    MainContent.COSMOS_MESSAGES, cosmos_messages_view(test_case, messages)
                )
            return None

        if current is MainContent.TX_DETAIL:
            view = self.front_view()
            if key == "[":
                view.prev_page()
                return None
            if key == "]":
                view.next_page()
                return None
            if key == "/":
                view.toggle_search()
                return None
            if key == "c":
                try:
                    self.clipboard(txs_to_json(view.txs).decode("utf-8"))
                except Exception as exc:
                    self._push_error(f"copy to clipboard: {exc}")
                return None
            if key == "enter":
                view.do_search()
                return None
            if view.search_active:
                if key == "backspace":
                    view.search_text = view.search_text[:-1]
                    return None
                if len(key) == 1:
                    view.search_text += key
                    return None

        return self._navigate(key)

    def _navigate(self, key: str) -> str | None:
        view = self.front_view()
        if not isinstance(view, Table) or not view.selectable or not view.rows:
            return key
        if key in _UP_KEYS:
            view.selected = max(0, view.selected - 1)
            return None
        if key in _DOWN_KEYS:
            view.selected = min(len(view.rows) - 1, view.selected + 1)
            return None
        return key

    def _selected_row(self) -> int:
        return self.front_view().selected

    def _push(self, content: MainContent, view: _View) -> None:
        self.pages.append((content, view))

    def _push_error(self, message: str) -> None:
        self._push(MainContent.ERROR_MODAL, error_modal_view(message))