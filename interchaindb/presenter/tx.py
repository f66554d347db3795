"""Presentation of raw transactions."""

from __future__ import annotations

import base64
import json
from collections.abc import Iterable
from dataclasses import dataclass

from interchaindb.query import TxResult

_WHITESPACE = " \t\r\n"


def _reject_constant(name: str) -> None:
    raise ValueError("invalid JSON constant " + name)


def _is_valid_json(data: bytes) -> bool:
    try:
        json.loads(data.decode("utf-8"), parse_constant=_reject_constant)
    except ValueError:
        return False
    return True


def _reformat(src: str, indent: str | None) -> str:
    """Re-space valid JSON text, keeping its tokens exactly as written.

    With ``indent`` None the result is compact; otherwise nested values go on
    their own lines, and empty objects and arrays stay on one line.
    """
    out: list[str] = []
    depth = 0
    need_indent = False
    in_string = False
    escaped = False

    for ch in src:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch in _WHITESPACE:
            continue
        if indent is None:
            if ch == '"':
                in_string = True
            out.append(ch)
            continue
        if need_indent and ch not in "]}":
            need_indent = False
            depth += 1
            out.append("\n" + indent * depth)
        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in "{[":
            need_indent = True
            out.append(ch)
        elif ch == ",":
            out.append(ch)
            out.append("\n" + indent * depth)
        elif ch == ":":
            out.append(": ")
        elif ch in "}]":
            if need_indent:
                need_indent = False
            else:
                depth -= 1
                out.append("\n" + indent * depth)
            out.append(ch)
        else:
            out.append(ch)
    return "".join(out)


@dataclass(frozen=True)
class TxPresenter:
    """Presents a :class:`TxResult` as display strings."""

    result: TxResult

    def height(self) -> str:
        return str(self.result.height)

    def data(self) -> str:
        """Pretty-printed JSON, or the raw data as-is when it is not JSON."""
        raw = bytes(self.result.tx)
        if not _is_valid_json(raw):
            return raw.decode("utf-8", errors="replace")
        return _reformat(raw.decode("utf-8"), "  ")


def txs_to_json(txs: Iterable[TxResult]) -> bytes:
    """Render transactions as a JSON array of ``{"Height", "Tx"}`` objects.

    Transaction data that is not valid JSON is written as a base64 string,
    so the output is always valid JSON.
    """
    parts = []
    for tx in txs:
        raw = bytes(tx.tx)
        if _is_valid_json(raw):
            body = _reformat(raw.decode("utf-8"), None)
        else:
            body = json.dumps(base64.b64encode(raw).decode("ascii"))
        parts.append('{"Height":' + str(int(tx.height)) + ',"Tx":' + body + "}")
    return ("[" + ",".join(parts) + "]").encode("utf-8")