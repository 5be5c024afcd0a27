# export_pipeline.py
from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, Optional, Protocol, TextIO

from tabledump.dump_errors import DumpError
from tabledump.row_codec import check_row, encode_row
from tabledump.schema_model import infer_from_sample, serialize_header

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 1000


class RowSource(Protocol):
    def iter_rows(self, table_name: str, limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        ...


def export_rows(rows: Iterator[Dict[str, Any]], out: TextIO) -> int:
    """
    Write a header line for the first row, then one encoded line per row.
    Zero rows write nothing at all. Every row must fit the types taken from the
    first one; a row that does not stops the export with the line it would have
    been written to. Returns the number of rows written.
    """
    keys = None
    count = 0
    for row in rows:
        if keys is None:
            schema, keys = infer_from_sample(row)
            header = serialize_header(schema)
            out.write(header + "\n")
            logger.debug(f"[export] Header: {header}")
        try:
            check_row(schema, row)
            line = encode_row(row, keys)
        except DumpError as e:
            # header is line 1, so row n lands on line n + 1
            e.line_no = count + 2
            raise
        out.write(line + "\n")
        count += 1
        if count % PROGRESS_EVERY == 0:
            logger.info(f"[export] Wrote {count} rows...")
    return count


def export_table(source: RowSource, table_name: str, out: TextIO, limit: Optional[int] = None) -> int:
    return export_rows(source.iter_rows(table_name, limit=limit), out)


def export_table_to_file(source: RowSource, table_name: str, out_path: str, limit: Optional[int] = None) -> int:
    """
    Dump table_name to out_path. The file is created (or truncated) even when the
    table is empty.
    """
    with open(out_path, "w", encoding="utf-8", newline="\n") as f:
        count = export_table(source, table_name, f, limit=limit)
    logger.info(f"[export] Done. Total rows written from '{table_name}': {count}")
    return count
