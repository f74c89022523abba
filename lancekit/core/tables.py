"""
Table resolution and administration for LanceDB.

`resolve_table` connects to a LanceDB URI and probes whether a table
exists. It returns a `TableHandle` that offers the same write and search
operations whether or not the table is there yet, so the pipelines can
decide how to write based on `handle.exists`.
"""

import logging
from typing import Any, Dict, List, Optional

import lancedb

from .exceptions import TableWriteError
from .rows import ColumnNames
from ..utils.config_models import WriteMode
from ..utils.row_schema import infer_row_schema

logger = logging.getLogger(__name__)


def connect(db_uri: str):
    """Connects to LanceDB, raising ConnectionError on failure."""
    try:
        return lancedb.connect(db_uri)
    except Exception as e:
        logger.error(f"Failed to connect to LanceDB at URI: '{db_uri}'", exc_info=True)
        raise ConnectionError(f"Could not connect to LanceDB at '{db_uri}': {e}") from e


class TableHandle:
    """
    A resolved reference to a named table within a LanceDB connection.

    Attributes:
        db: The LanceDB connection the table lives in.
        name (str): The table name.
        table: The opened LanceDB table, or None when it does not exist.
    """

    def __init__(self, db, name: str, table=None):
        self.db = db
        self.name = name
        self.table = table

    @property
    def exists(self) -> bool:
        return self.table is not None

    def __repr__(self):
        return f"TableHandle(name={self.name!r}, exists={self.exists})"

    def create(self, rows: List[Dict[str, Any]], columns: ColumnNames) -> None:
        """Creates the table from `rows`. Fails if the table already exists."""
        self._create(rows, columns, WriteMode.CREATE)

    def overwrite(self, rows: List[Dict[str, Any]], columns: ColumnNames) -> None:
        """Replaces all rows of the table with `rows`, keeping its name."""
        logger.warning(f"Overwriting existing table '{self.name}'!")
        self._create(rows, columns, WriteMode.OVERWRITE)

    def add(self, rows: List[Dict[str, Any]]) -> None:
        """Appends `rows` to the existing table. The schema must match."""
        if self.table is None:
            raise TableWriteError(
                self.name, WriteMode.APPEND.value, "table does not exist"
            )
        try:
            self.table.add(rows)
        except Exception as e:
            logger.error(
                f"Failed to append {len(rows)} records to table '{self.name}'",
                exc_info=True,
            )
            raise TableWriteError(self.name, WriteMode.APPEND.value, str(e)) from e

    def _create(
        self, rows: List[Dict[str, Any]], columns: ColumnNames, mode: WriteMode
    ) -> None:
        try:
            schema = infer_row_schema(rows, columns)
            self.table = self.db.create_table(
                self.name, data=rows, schema=schema, mode=mode.value
            )
        except Exception as e:
            logger.error(
                f"Failed to write {len(rows)} records to table '{self.name}' (mode: {mode.value})",
                exc_info=True,
            )
            raise TableWriteError(self.name, mode.value, str(e)) from e

    def search(
        self,
        query_vector: List[float],
        vector_column_name: str,
        k: int,
        where_filter: Optional[str] = None,
        select_columns: Optional[List[str]] = None,
    ):
        """Builds a nearest-neighbour search over the vector column."""
        if self.table is None:
            raise ValueError(f"Table '{self.name}' does not exist.")
        query = self.table.search(
            query_vector, vector_column_name=vector_column_name
        ).limit(k)
        if where_filter:
            query = query.where(where_filter)
        if select_columns:
            query = query.select(select_columns)
        return query

    def count_rows(self) -> int:
        return self.table.count_rows() if self.table is not None else 0


def resolve_table(db_uri: str, table_name: str) -> TableHandle:
    """
    Connects to `db_uri` and probes for `table_name`.

    Existence is checked by opening the table directly, so the probe does
    not depend on how many tables the database holds. A table that cannot
    be found is treated as absent. Any other failure to open it is raised.

    Raises:
        ConnectionError: If the connection fails.
    """
    db = connect(db_uri)
    try:
        table = db.open_table(table_name)
    except (ValueError, FileNotFoundError) as e:
        logger.info(f"Table '{table_name}' not found at '{db_uri}': {e}")
        return TableHandle(db, table_name)

    logger.debug(f"Opened existing table '{table_name}' at '{db_uri}'.")
    return TableHandle(db, table_name, table)


def create_lancedb_table(
    db_uri: str,
    table_name: str,
    example_data: List[Dict[str, Any]],
):
    """
    Creates a LanceDB table explicitly, inferring its schema from example data.

    Raises:
        ValueError: If no example data is given.
    """
    if not example_data:
        raise ValueError(
            "Example data must be provided to infer the schema for table creation."
        )
    db = connect(db_uri)
    logger.info(f"Creating table '{table_name}' at '{db_uri}'...")
    table = db.create_table(table_name, data=example_data, mode=WriteMode.CREATE.value)
    logger.info(f"Table '{table_name}' created successfully.")
    return table


def delete_lancedb_table(db_uri: str, table_name: str) -> None:
    """Drops a LanceDB table."""
    db = connect(db_uri)
    logger.info(f"Deleting table '{table_name}' from '{db_uri}'...")
    db.drop_table(table_name)
    logger.info(f"Table '{table_name}' deleted successfully.")
