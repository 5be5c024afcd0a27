# import_pipeline.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Protocol, Sequence, Tuple

from tabledump.dump_errors import DumpError
from tabledump.row_codec import decode_row
from tabledump.schema_model import parse_header

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
PROGRESS_EVERY = 1000

Statement = Tuple[str, List[Any]]


class BatchSink(Protocol):
    def execute_batch(self, statements: List[Statement]) -> None:
        ...


@dataclass
class ImportResult:
    rows: int = 0
    batches: int = 0
    dry_run: bool = False


class WriteBatch:
    """Insert statements waiting to be flushed together as one atomic unit."""

    def __init__(self):
        self.statements: List[Statement] = []

    def add(self, query: str, values: List[Any]) -> None:
        self.statements.append((query, values))

    def clear(self) -> None:
        self.statements = []

    def __len__(self) -> int:
        return len(self.statements)


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _quote_literal(name: str) -> str:
    return "'" + name.replace("'", "''") + "'"


def build_insert_template(table_name: str, keys: Sequence[str]) -> str:
    """
    PartiQL insert over exactly keys, one positional '?' per key in key order:
    INSERT INTO "tbl" VALUE {'a': ?, 'b': ?}
    """
    pairs = ", ".join(f"{_quote_literal(k)}: ?" for k in keys)
    return f"INSERT INTO {_quote_ident(table_name)} VALUE {{{pairs}}}"


def import_lines(
    sink: BatchSink,
    table_name: str,
    lines: Iterable[str],
    batch_size: int = BATCH_SIZE,
    dry_run: bool = False,
) -> ImportResult:
    """
    Replay dump lines into table_name.

    The first non-blank line is the header; every following non-blank line is
    one row. Rows go out in batches of batch_size, plus one final short batch.
    dry_run decodes everything and counts batches without writing.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    result = ImportResult(dry_run=dry_run)
    schema = None
    query = None
    batch = WriteBatch()

    def flush():
        if not batch:
            return
        if not dry_run:
            sink.execute_batch(batch.statements)
        result.batches += 1
        logger.debug(f"[import] Flushed batch {result.batches} ({len(batch)} rows)")
        batch.clear()

    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            if schema is None:
                schema, keys = parse_header(line)
                query = build_insert_template(table_name, keys)
                logger.debug(f"[import] Insert template: {query}")
                continue
            vals = decode_row(schema, line)
        except DumpError as e:
            e.line_no = line_no
            raise
        batch.add(query, vals)
        result.rows += 1

        if len(batch) >= batch_size:
            flush()
        if result.rows % PROGRESS_EVERY == 0:
            logger.info(f"[import] Processed {result.rows} rows...")

    flush()
    return result


def import_file(
    sink: BatchSink,
    table_name: str,
    in_path: str,
    dry_run: bool = False,
) -> ImportResult:
    with open(in_path, "r", encoding="utf-8") as f:
        result = import_lines(sink, table_name, f, dry_run=dry_run)
    logger.info(
        f"[import] Done. Total rows {'(dry-run) ' if dry_run else ''}processed into '{table_name}': "
        f"{result.rows} in {result.batches} batches"
    )
    return result
