from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

DEFAULT_DB_URI = ".db"
DEFAULT_TABLE_NAME = "table"


class WriteMode(str, Enum):
    """How a batch of rows is merged into an existing table."""

    CREATE = "create"
    APPEND = "append"
    OVERWRITE = "overwrite"


class ComponentConfig(BaseModel):
    """A model for a single component's configuration (embedder, etc.)"""

    type: str
    config: Dict[str, Any] = {}


class TableConfig(BaseModel):
    """Registration-level settings shared by a table's retriever and indexer."""

    db_uri: str = DEFAULT_DB_URI
    table_name: str = DEFAULT_TABLE_NAME
    vector_column_name: str = "vector"
    text_column_name: str = "text"
    metadata_column_name: str = "metadata"


class TableRegistration(TableConfig):
    """A table entry in the lancekit YAML configuration."""

    display_name: Optional[str] = None
    embedder: ComponentConfig
    embedder_options: Dict[str, Any] = {}


class LanceKitConfig(BaseModel):
    """The top-level model for the entire lancekit.yaml configuration."""

    tables: List[TableRegistration] = Field(min_length=1)


class IndexerOptions(BaseModel):
    """Call-level indexer overrides. Unset fields fall back to the table config."""

    db_uri: Optional[str] = None
    table_name: Optional[str] = None
    vector_column_name: Optional[str] = None
    text_column_name: Optional[str] = None
    metadata_column_name: Optional[str] = None
    write_mode: Optional[WriteMode] = None


class RetrieverOptions(BaseModel):
    """Call-level retriever overrides. Unset fields fall back to the table config."""

    k: PositiveInt = 5
    where_filter: Optional[str] = None
    db_uri: Optional[str] = None
    table_name: Optional[str] = None
    vector_column_name: Optional[str] = None
    text_column_name: Optional[str] = None
    metadata_column_name: Optional[str] = None


class IndexerSettings(TableConfig):
    """Fully resolved settings for a single indexing call."""

    model_config = ConfigDict(frozen=True)

    write_mode: WriteMode = WriteMode.APPEND


class RetrieverSettings(TableConfig):
    """Fully resolved settings for a single retrieval call."""

    model_config = ConfigDict(frozen=True)

    k: PositiveInt = 5
    where_filter: Optional[str] = None


def _layer(table_config: TableConfig, options: Optional[BaseModel]) -> dict:
    merged = table_config.model_dump(include=set(TableConfig.model_fields))
    if options is not None:
        merged.update(options.model_dump(exclude_none=True))
    return merged


def resolve_indexer_settings(
    table_config: TableConfig, options: Optional[IndexerOptions] = None
) -> IndexerSettings:
    """Layers call-level indexer options over the table's registration config."""
    return IndexerSettings(**_layer(table_config, options))


def resolve_retriever_settings(
    table_config: TableConfig, options: Optional[RetrieverOptions] = None
) -> RetrieverSettings:
    """Layers call-level retriever options over the table's registration config."""
    return RetrieverSettings(**_layer(table_config, options))
