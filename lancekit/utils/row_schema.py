"""
Utility for dynamically creating the LanceDB row schema.

The vector column name, text column name and metadata column name are
configurable per table, and the vector dimension is only known once the
embedder has run. This module builds a Pydantic model for those columns
on-the-fly and converts it into a PyArrow schema that LanceDB can use to
create the table.
"""

import logging
from typing import Any, Dict, List, Type

import pyarrow as pa
from lancedb.pydantic import Vector, pydantic_to_schema
from pydantic import BaseModel, create_model

from ..core.rows import ColumnNames, ID_COLUMN

logger = logging.getLogger(__name__)


def create_row_model(vector_dim: int, columns: ColumnNames) -> Type[BaseModel]:
    """
    Dynamically generates a Pydantic model describing one LanceDB row.

    Args:
        vector_dim (int): The number of dimensions of the embedding vectors.
            All vectors in a LanceDB table must share this dimension.
        columns (ColumnNames): The configured vector, text and metadata columns.

    Returns:
        Type[BaseModel]: A dynamically created Pydantic BaseModel class.

    Raises:
        ValueError: If the vector dimension is not positive or two columns
            share the same name.
    """
    if vector_dim <= 0:
        raise ValueError(f"Vector dimension must be positive, got {vector_dim}.")

    names = [ID_COLUMN, columns.vector, columns.text, columns.metadata]
    if len(set(names)) != len(names):
        raise ValueError(f"Row columns must have distinct names, got {names}.")

    pydantic_fields = {
        ID_COLUMN: (str, ...),
        columns.vector: (Vector(vector_dim), ...),
        columns.text: (str, ...),
        columns.metadata: (str, ...),
    }
    RowModel = create_model("LanceRowModel", **pydantic_fields)
    logger.debug(
        f"Created LanceRowModel with fields: {list(pydantic_fields.keys())} (dim={vector_dim})"
    )
    return RowModel


def infer_row_schema(rows: List[Dict[str, Any]], columns: ColumnNames) -> pa.Schema:
    """
    Builds the PyArrow schema for a batch of rows.

    The vector dimension is inferred from the first row, which is what
    establishes the schema of a newly created table.
    """
    if not rows:
        raise ValueError("At least one row is required to infer a schema.")

    vector_dim = len(rows[0][columns.vector])
    return pydantic_to_schema(create_row_model(vector_dim, columns))
