"""Short time formatting and presentation of test case results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from interchaindb.query import TestCaseResult


def format_time(t: datetime) -> str:
    """Return a shortened time such as ``06-22 03:04PM UTC``.

    A naive datetime is taken to be local time.
    """
    if t.tzinfo is None:
        t = t.astimezone()
    hour = t.hour % 12 or 12
    meridiem = "PM" if t.hour >= 12 else "AM"
    zone = t.tzname() or t.strftime("%z")
    return f"{t:%m-%d} {hour:02d}:{t.minute:02d}{meridiem} {zone}"


@dataclass(frozen=True)
class TestCasePresenter:
    """Presents a :class:`TestCaseResult` as display strings."""

    __test__ = False  # not a pytest test class

    result: TestCaseResult

    def id(self) -> str:
        return str(self.result.id)

    def date(self) -> str:
        return format_time(self.result.created_at)

    def name(self) -> str:
        return self.result.name

    def git_sha(self) -> str:
        return self.result.git_sha

    def chain_id(self) -> str:
        return self.result.chain_id

    def height(self) -> str:
        return "" if self.result.chain_height is None else str(self.result.chain_height)

    def tx_total(self) -> str:
        return "" if self.result.tx_total is None else str(self.result.tx_total)