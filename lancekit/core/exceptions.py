"""
Exception classes raised by the lancekit pipelines and registry.
"""

from typing import Optional


class TableWriteError(RuntimeError):
    """
    Raised when rows cannot be written to a LanceDB table.

    Wraps the storage layer's error (schema mismatch, I/O failure, ...)
    and names the table the write was aimed at.

    Attributes:
        table_name: The table that was being written.
        mode: The write strategy that failed ("create", "append" or "overwrite").
    """

    def __init__(self, table_name: str, mode: Optional[str] = None, detail: str = ""):
        self.table_name = table_name
        self.mode = mode
        message = f"Failed writing to LanceDB table '{table_name}'"
        if mode:
            message += f" (mode: {mode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ComponentNotFoundError(KeyError):
    """Raised when a registry lookup names a component that was never defined."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"No {kind} registered under '{name}'")

    def __str__(self):
        return self.args[0]
