"""
Mapping between documents and LanceDB rows.

A row is a flat dict holding an id, the embedding vector, the document
text and the document metadata serialized as a JSON string. Column names
come from the table configuration.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .hashing import content_hash
from ..utils.data_models import Document, Embedding

logger = logging.getLogger(__name__)

ID_COLUMN = "id"
METADATA_ERROR = {"error": "Failed to parse metadata"}


@dataclass(frozen=True)
class ColumnNames:
    vector: str = "vector"
    text: str = "text"
    metadata: str = "metadata"

    @classmethod
    def from_settings(cls, settings) -> "ColumnNames":
        return cls(
            vector=settings.vector_column_name,
            text=settings.text_column_name,
            metadata=settings.metadata_column_name,
        )


def dump_metadata(metadata: Optional[Dict[str, Any]]) -> str:
    """Serializes metadata to canonical JSON. Raises TypeError/ValueError if it can't."""
    return json.dumps(
        metadata or {}, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def _metadata_repr(metadata: Optional[Dict[str, Any]]) -> str:
    # Best available serialization for hashing, even when strict JSON fails.
    try:
        return dump_metadata(metadata)
    except (TypeError, ValueError):
        pass
    try:
        return json.dumps(
            metadata or {},
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
    except (TypeError, ValueError):
        return repr(metadata)


def map_row(
    document: Document,
    embedding: Embedding,
    columns: ColumnNames = ColumnNames(),
    chunk_index: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Converts a document and one of its embeddings into a storage row.

    Args:
        document (Document): The source document. It is never modified.
        embedding (Embedding): One embedding produced for the document.
        columns (ColumnNames): The table's vector, text and metadata columns.
        chunk_index (Optional[int]): Position of the embedding when the
            document produced more than one. It is appended to the id so
            every chunk gets its own row id.

    Returns:
        Dict[str, Any]: A row ready to be written to LanceDB.
    """
    text = document.text
    row_id = content_hash(text, _metadata_repr(document.metadata))
    if chunk_index is not None:
        row_id = f"{row_id}-{chunk_index}"

    try:
        metadata_json = dump_metadata(document.metadata)
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not serialize metadata for row {row_id}: {e}")
        metadata_json = dump_metadata(METADATA_ERROR)

    return {
        ID_COLUMN: row_id,
        columns.vector: [float(x) for x in embedding.embedding],
        columns.text: text,
        columns.metadata: metadata_json,
    }


def parse_metadata(raw: Optional[str], table_name: str = "") -> Dict[str, Any]:
    """
    Parses a metadata column value back into a dict.

    Missing values give an empty dict. Invalid JSON, or JSON that is not an
    object, gives the error sentinel instead of raising.
    """
    if raw is None:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(
            f"Failed to parse metadata for a result from table '{table_name}'. Content: \"{raw}\" ({e})"
        )
        return dict(METADATA_ERROR)
    if not isinstance(parsed, dict):
        logger.warning(
            f"Metadata for a result from table '{table_name}' is not a JSON object: \"{raw}\""
        )
        return dict(METADATA_ERROR)
    return parsed
