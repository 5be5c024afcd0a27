# dump_errors.py
from typing import Optional


class DumpError(Exception):
    """
    Base error for export/import runs.

    Every error is fatal for the run. line_no (1-based) and column are filled in
    where the failure can be pinned to a place in the dump file.
    """

    kind = "dump error"

    def __init__(self, message: str, *, line_no: Optional[int] = None, column: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.column = column

    def __str__(self) -> str:
        where = []
        if self.line_no is not None:
            where.append(f"line {self.line_no}")
        if self.column is not None:
            where.append(f"column '{self.column}'")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class StoreConnectionError(DumpError):
    """Cluster unreachable, bad credentials or access denied."""

    kind = "connection error"


class UnsupportedTypeError(DumpError):
    """A value or header type is outside bool/int/string/float/time/uuid."""

    kind = "unsupported type"


class FileFormatError(DumpError):
    """Structural corruption of a dump file."""

    kind = "malformed file"


class MalformedHeaderError(FileFormatError):
    kind = "malformed header"


class MalformedRowError(FileFormatError):
    kind = "malformed row"


class ArityError(FileFormatError):
    kind = "arity mismatch"


class TypeMismatchError(FileFormatError):
    kind = "type mismatch"


class WriteBatchError(DumpError):
    """The destination rejected a batch flush. Earlier batches stay committed."""

    kind = "write batch failed"

    def __init__(self, message: str, *, code: Optional[str] = None, batch_size: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code
        self.batch_size = batch_size
