"""
LanceDB indexer.

The indexer embeds a batch of documents, maps every (document, embedding)
pair to a row and writes the rows to a LanceDB table, creating, appending
to or overwriting the table depending on whether it exists and on the
requested write mode.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional, Union

from .embedders import BaseEmbedder
from ..core.rows import ColumnNames, map_row
from ..core.tables import TableHandle, resolve_table
from ..utils.config_models import (
    IndexerOptions,
    IndexerSettings,
    TableConfig,
    WriteMode,
    resolve_indexer_settings,
)
from ..utils.data_models import Document, Embedding

logger = logging.getLogger(__name__)


def embed_documents(
    embedder: BaseEmbedder,
    documents: List[Document],
    options: Optional[Dict[str, Any]] = None,
    max_workers: int = 8,
) -> List[List[Embedding]]:
    """
    Embeds every document concurrently.

    The result is aligned with `documents` by index. If any request fails,
    requests that have not started yet are cancelled and the first error
    is raised.
    """
    workers = max(1, min(max_workers, len(documents)))
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        futures = [executor.submit(embedder.embed, doc, options) for doc in documents]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done and future.exception() is not None:
                for pending in not_done:
                    pending.cancel()
                raise future.exception()
        return [list(future.result() or []) for future in futures]
    finally:
        executor.shutdown(wait=True, cancel_futures=True)


def build_rows(
    documents: List[Document],
    embeddings_per_doc: List[List[Embedding]],
    columns: ColumnNames,
) -> List[Dict[str, Any]]:
    """Flattens every embedding of every document into one row each."""
    rows = []
    for doc, doc_embeddings in zip(documents, embeddings_per_doc):
        multiple = len(doc_embeddings) > 1
        for i, embedding in enumerate(doc_embeddings):
            rows.append(map_row(doc, embedding, columns, i if multiple else None))
    return rows


class LanceDBIndexer:
    """
    Writes documents and their embeddings to a LanceDB table.

    The instance holds only registration-level configuration; every call to
    `index` resolves its own settings and keeps no state between calls.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        table_config: Optional[TableConfig] = None,
        embedder_options: Optional[Dict[str, Any]] = None,
        max_workers: int = 8,
    ):
        """
        Args:
            embedder (BaseEmbedder): Produces the embeddings for each document.
            table_config (Optional[TableConfig]): Default URI, table and column
                names. Call-level options override these.
            embedder_options (Optional[Dict[str, Any]]): Passed to every embed call.
            max_workers (int): Upper bound on concurrent embedding requests.
        """
        self.embedder = embedder
        self.table_config = table_config or TableConfig()
        self.embedder_options = embedder_options
        self.max_workers = max_workers
        logger.debug(
            f"Initialized LanceDBIndexer with uri='{self.table_config.db_uri}', table='{self.table_config.table_name}'"
        )

    def __call__(self, documents, options=None) -> int:
        return self.index(documents, options)

    def index(
        self,
        documents: List[Document],
        options: Optional[Union[IndexerOptions, Dict[str, Any]]] = None,
    ) -> int:
        """
        Indexes a batch of documents.

        Args:
            documents (List[Document]): The documents to index.
            options: Call-level overrides (URI, table, columns, write mode).

        Returns:
            int: The number of rows written.

        Raises:
            ConnectionError: If LanceDB cannot be reached.
            TableWriteError: If writing the rows fails.
        """
        if not documents:
            logger.info("No documents provided to index.")
            return 0

        if isinstance(options, dict):
            options = IndexerOptions(**options)
        settings = resolve_indexer_settings(self.table_config, options)

        handle = resolve_table(settings.db_uri, settings.table_name)
        if handle.exists:
            logger.info(
                f"Using existing table '{settings.table_name}'. Mode: {settings.write_mode.value}"
            )
        else:
            logger.info(
                f"Table '{settings.table_name}' not found. Will attempt to create."
            )

        logger.info(f"Embedding {len(documents)} documents...")
        embeddings_per_doc = embed_documents(
            self.embedder, documents, self.embedder_options, self.max_workers
        )

        columns = ColumnNames.from_settings(settings)
        rows = build_rows(documents, embeddings_per_doc, columns)
        if not rows:
            logger.info("No data rows generated after embedding.")
            return 0

        self._write(handle, rows, columns, settings)
        return len(rows)

    def _write(
        self,
        handle: TableHandle,
        rows: List[Dict[str, Any]],
        columns: ColumnNames,
        settings: IndexerSettings,
    ) -> None:
        if not handle.exists:
            logger.info(f"Creating table '{handle.name}' with {len(rows)} records.")
            handle.create(rows, columns)
            logger.info(f"Successfully created table '{handle.name}'.")
            return

        if settings.write_mode == WriteMode.OVERWRITE:
            logger.info(f"Overwriting table '{handle.name}' with {len(rows)} records.")
            handle.overwrite(rows, columns)
        elif settings.write_mode == WriteMode.CREATE:
            # Raises TableWriteError: the table is already there.
            handle.create(rows, columns)
        else:
            logger.info(f"Appending {len(rows)} records to table '{handle.name}'.")
            handle.add(rows)
        logger.info(f"Successfully added data to table '{handle.name}'.")
