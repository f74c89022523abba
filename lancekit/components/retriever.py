"""
LanceDB retriever.

The retriever embeds a query document, runs a nearest-neighbour search
against a LanceDB table and rebuilds documents from the matching rows.
Missing tables and failed searches give an empty result instead of an
error, so a generation flow keeps running without its context.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .embedders import BaseEmbedder
from ..core.rows import parse_metadata
from ..core.tables import resolve_table
from ..utils.config_models import (
    RetrieverOptions,
    TableConfig,
    resolve_retriever_settings,
)
from ..utils.data_models import Document

logger = logging.getLogger(__name__)


class LanceDBRetriever:
    """Finds the documents closest to a query in a LanceDB table."""

    def __init__(
        self,
        embedder: BaseEmbedder,
        table_config: Optional[TableConfig] = None,
        embedder_options: Optional[Dict[str, Any]] = None,
    ):
        self.embedder = embedder
        self.table_config = table_config or TableConfig()
        self.embedder_options = embedder_options

    def __call__(self, query, options=None) -> List[Document]:
        return self.retrieve(query, options)

    def retrieve(
        self,
        query: Union[Document, str],
        options: Optional[Union[RetrieverOptions, Dict[str, Any]]] = None,
    ) -> List[Document]:
        """
        Retrieves up to `k` documents nearest to the query, nearest first.

        Args:
            query: The query document, or plain query text.
            options: Call-level options (k, where_filter, URI, table, columns).

        Returns:
            List[Document]: The matching documents. Empty when the table can't
                be opened, the query yields no vector or the search fails.
        """
        if isinstance(query, str):
            query = Document.from_data(query)
        if isinstance(options, dict):
            options = RetrieverOptions(**options)
        settings = resolve_retriever_settings(self.table_config, options)

        try:
            handle = resolve_table(settings.db_uri, settings.table_name)
        except Exception:
            logger.error(
                f"Failed to connect or open table '{settings.table_name}' at '{settings.db_uri}'. Does it exist?",
                exc_info=True,
            )
            return []
        if not handle.exists:
            logger.error(
                f"Table '{settings.table_name}' does not exist at '{settings.db_uri}'."
            )
            return []

        query_embeddings = self.embedder.embed(query, self.embedder_options)
        if not query_embeddings:
            logger.warning("Query embedding resulted in no vectors.")
            return []
        query_vector = list(query_embeddings[0].embedding)

        text_col = settings.text_column_name
        metadata_col = settings.metadata_column_name
        select_columns = list(dict.fromkeys([text_col, metadata_col]))

        try:
            search = handle.search(
                query_vector,
                vector_column_name=settings.vector_column_name,
                k=settings.k,
                where_filter=settings.where_filter,
                select_columns=select_columns,
            )
            results = search.to_list()
        except Exception:
            logger.error(
                f"Search failed for table '{settings.table_name}'", exc_info=True
            )
            return []

        documents = []
        for row in results:
            content = row.get(text_col)
            raw_metadata = row.get(metadata_col)
            documents.append(
                Document.from_data(
                    "" if content is None else content,
                    parse_metadata(
                        "{}" if raw_metadata is None else raw_metadata,
                        settings.table_name,
                    ),
                )
            )
        logger.debug(
            f"Retrieved {len(documents)} documents from table '{settings.table_name}'."
        )
        return documents
