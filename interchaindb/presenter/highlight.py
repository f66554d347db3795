"""Marking search matches with text-view regions."""

from __future__ import annotations

import re


class Highlight:
    """Wraps case-insensitive matches of a search term in numbered regions."""

    def __init__(self, search_term: str) -> None:
        term = search_term.strip()
        self._pattern = re.compile(f"({re.escape(term)})", re.IGNORECASE) if term else None

    def text(self, text: str) -> tuple[str, list[str]]:
        """Return ``text`` with matches wrapped as ``["id"]match[""]`` and the region ids."""
        if self._pattern is None:
            return text, []
        region_ids: list[str] = []

        def mark(match: re.Match[str]) -> str:
            region_id = str(len(region_ids))
            region_ids.append(region_id)
            return f'["{region_id}"]{match.group(0)}[""]'

        return self._pattern.sub(mark, text), region_ids