"""Key bindings, help layout and colours of the block database browser."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

BACKGROUND_COLOR = "black"
TEXT_COLOR = "white"
ERROR_TEXT_COLOR = "red"

_UP_ARROW = "\u2191"
_DOWN_ARROW = "\u2193"

# More items per column would not fit in the header.
_ITEMS_PER_COLUMN = 6


class MainContent(enum.Enum):
    """The primary content the user interacts with."""

    TEST_CASES = "testCasesMain"
    COSMOS_MESSAGES = "cosmosMessagesMain"
    TX_DETAIL = "txDetailMain"
    ERROR_MODAL = "errorModalMain"


@dataclass(frozen=True)
class KeyBinding:
    """A key or key combination and a very short description of its action."""

    key: str
    help: str


BASE_HELP_KEYS: tuple[KeyBinding, ...] = (
    KeyBinding("esc", "go back"),
    KeyBinding("ctl+c", "exit"),
)


def bindings_with_base(*args: Iterable[KeyBinding] | None) -> list[KeyBinding]:
    """Concatenate the given groups of bindings and append the base bindings."""
    combined = [binding for group in args if group for binding in group]
    return combined + list(BASE_HELP_KEYS)


TABLE_NAV_KEYS: tuple[KeyBinding, ...] = (
    KeyBinding(f"{_UP_ARROW}/k", "move up"),
    KeyBinding(f"{_DOWN_ARROW}/j", "move down"),
)

TEXT_NAV_KEYS: tuple[KeyBinding, ...] = (
    KeyBinding(f"{_UP_ARROW}/k", "scroll up"),
    KeyBinding(f"{_DOWN_ARROW}/j", "scroll down"),
    KeyBinding("g", "go to top"),
    KeyBinding("shift+g", "go to bottom"),
    KeyBinding("ctrl+b", "page up"),
    KeyBinding("ctrl+f", "page down"),
)

KEY_MAP: dict[MainContent, list[KeyBinding]] = {
    MainContent.TEST_CASES: bindings_with_base(
        [KeyBinding("m", "cosmos messages"), KeyBinding("enter", "view txs")],
        TABLE_NAV_KEYS,
    ),
    MainContent.COSMOS_MESSAGES: bindings_with_base(TABLE_NAV_KEYS),
    MainContent.TX_DETAIL: bindings_with_base(
        [
            KeyBinding("[", "previous tx"),
            KeyBinding("]", "next tx"),
            KeyBinding("/", "toggle search"),
            KeyBinding("c", "copy all txs"),
        ],
        TEXT_NAV_KEYS,
    ),
    MainContent.ERROR_MODAL: bindings_with_base(None),
}


class HelpView:
    """A grid of help cells keyed by ``(row, column)``."""

    def __init__(self) -> None:
        self.cells: dict[tuple[int, int], str] = {}

    def replace(self, keys: Iterable[KeyBinding]) -> HelpView:
        """Clear the grid and lay out ``keys`` as key and help column pairs."""
        self.cells.clear()
        row = col = 0
        for binding in keys:
            if row > 0 and row % _ITEMS_PER_COLUMN == 0:
                row = 0
                col += 2
            self.cells[(row, col)] = f"<{binding.key}>"
            self.cells[(row, col + 1)] = binding.help
            row += 1
        return self