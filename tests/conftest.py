"""Shared fixtures: in-memory row source and batch sink."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pytest

from tabledump.dump_errors import WriteBatchError


@dataclass
class FakeSource:
    """Row source over a list of dicts, recording which tables were read."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    tables: List[str] = field(default_factory=list)

    def iter_rows(self, table_name: str, limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        self.tables.append(table_name)
        if limit is not None and limit <= 0:
            return
        for n, row in enumerate(self.rows, start=1):
            yield dict(row)
            if limit is not None and n >= limit:
                return


@dataclass
class FakeSink:
    """Batch sink that keeps every flushed batch; can fail on the Nth flush."""

    batches: List[List[Tuple[str, List[Any]]]] = field(default_factory=list)
    fail_on: Optional[int] = None

    def execute_batch(self, statements: List[Tuple[str, List[Any]]]) -> None:
        if self.fail_on is not None and len(self.batches) + 1 == self.fail_on:
            raise WriteBatchError("rejected", code="TransactionCanceledException", batch_size=len(statements))
        self.batches.append(list(statements))

    @property
    def sizes(self) -> List[int]:
        return [len(b) for b in self.batches]


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()
