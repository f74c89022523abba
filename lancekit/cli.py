"""
Command-Line Interface for lancekit.
"""

import typer
import logging
from pathlib import Path
import json
from typing import Optional
from typing_extensions import Annotated

from .core.factory import EMBEDDER_REGISTRY
from .core.registry import (
    Registry,
    lancedb,
    lancedb_indexer_ref,
    lancedb_retriever_ref,
)
from .core.tables import connect, delete_lancedb_table, resolve_table
from .utils.config import find_table, load_config
from .utils.config_models import IndexerOptions, RetrieverOptions, WriteMode
from .utils.data_models import Document


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Index documents into LanceDB and retrieve them by similarity.")

DEFAULT_CONFIG = "lancekit.yaml"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")
):
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _build_registry(config_path: str, table: str):
    config = load_config(config_path)
    registration = find_table(config, table)
    if registration is None:
        logger.error(f"Table '{table}' is not configured in '{config_path}'.")
        raise typer.Exit(code=1)
    return lancedb([registration])(Registry())


def _read_documents(path: Path):
    """Reads documents from a JSON Lines file of {"content", "metadata"} objects."""
    documents = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            item = json.loads(line)
            if isinstance(item, str):
                item = {"content": item}
            if "content" not in item:
                raise ValueError(f"Line {line_number} of '{path}' has no 'content'.")
            documents.append(Document.from_data(item["content"], item.get("metadata")))
    return documents


@app.command()
def init():
    """Creates a default lancekit.yaml in the current directory."""
    config_file = Path(DEFAULT_CONFIG)
    if config_file.exists():
        logger.warning(f"'{DEFAULT_CONFIG}' already exists.")
        return

    DEFAULT_YAML_CONTENT = """# Default lancekit configuration
tables:
  - db_uri: ".db"
    table_name: "documents"
    vector_column_name: "vector"
    text_column_name: "text"
    metadata_column_name: "metadata"
    embedder:
      type: sentence_transformer
      config:
        model_name: "sentence-transformers/all-MiniLM-L6-v2"
"""
    config_file.write_text(DEFAULT_YAML_CONTENT.strip() + "\n")
    logger.info(f"Created default '{DEFAULT_CONFIG}'.")


@app.command()
def index(
    documents_path: Annotated[
        Path, typer.Argument(help="JSON Lines file with one document per line.")
    ],
    table: str = typer.Option("table", "--table", "-t", help="Configured table name."),
    mode: WriteMode = typer.Option(WriteMode.APPEND, "--mode", "-m", help="Write mode."),
    config_path: str = typer.Option(DEFAULT_CONFIG, "-c", help="Config path."),
):
    """Indexes documents into a configured LanceDB table."""
    registry = _build_registry(config_path, table)
    try:
        documents = _read_documents(documents_path)
        count = registry.index(
            lancedb_indexer_ref(table), documents, IndexerOptions(write_mode=mode)
        )
    except Exception as e:
        logger.error(f"Indexing failed: {e}", exc_info=True)
        raise typer.Exit(code=1)
    logger.info(f"Indexed {len(documents)} documents as {count} rows into '{table}'.")


@app.command()
def retrieve(
    query: Annotated[str, typer.Argument(help="Query text.")],
    table: str = typer.Option("table", "--table", "-t", help="Configured table name."),
    k: int = typer.Option(5, "--top-k", "-k", help="Number of results."),
    where: Optional[str] = typer.Option(None, "--where", "-w", help="Filter expression."),
    config_path: str = typer.Option(DEFAULT_CONFIG, "-c", help="Config path."),
):
    """Prints the documents nearest to a query, one JSON object per line."""
    registry = _build_registry(config_path, table)
    documents = registry.retrieve(
        lancedb_retriever_ref(table), query, RetrieverOptions(k=k, where_filter=where)
    )
    if not documents:
        logger.info("No matching documents.")
    for doc in documents:
        print(json.dumps({"content": doc.content, "metadata": doc.metadata}))


@app.command(name="list-components")
def list_components(
    config_path: Optional[str] = typer.Option(None, "-c", help="Config path."),
):
    """Lists the available embedders and, with -c, the configured components."""
    print("\n--- Embedders ---")
    for name in sorted(EMBEDDER_REGISTRY.keys()):
        print(f"  - {name}")

    if config_path:
        config = load_config(config_path)
        print("\n--- Tables ---")
        for registration in config.tables:
            ref = lancedb_retriever_ref(
                registration.table_name, registration.display_name
            )
            print(f"  - {ref.name} ({ref.label}) at '{registration.db_uri}'")


@app.command(name="test-connection")
def test_connection(
    config_path: str = typer.Option(DEFAULT_CONFIG, "-c", help="Config path."),
):
    """Tests the connection to the LanceDB URI of every configured table."""
    config = load_config(config_path)
    failed = False
    for registration in config.tables:
        try:
            db = connect(registration.db_uri)
            db.list_tables()
            logger.info(f"Connection to '{registration.db_uri}' successful.")
        except Exception as e:
            logger.error(f"Connection test failed for '{registration.db_uri}': {e}")
            failed = True
    if failed:
        raise typer.Exit(code=1)


@app.command()
def show(
    table: str = typer.Option("table", "--table", "-t", help="Configured table name."),
    limit: int = typer.Option(5, "--limit", "-n", help="Rows to preview."),
    config_path: str = typer.Option(DEFAULT_CONFIG, "-c", help="Config path."),
):
    """Shows the row count and the first rows of a table."""
    config = load_config(config_path)
    registration = find_table(config, table)
    if registration is None:
        logger.error(f"Table '{table}' is not configured in '{config_path}'.")
        raise typer.Exit(code=1)

    handle = resolve_table(registration.db_uri, table)
    if not handle.exists:
        logger.warning(f"Table '{table}' does not exist yet.")
        return

    print(f"Rows: {handle.count_rows()}")
    df = handle.table.to_pandas()
    columns = ["id", registration.text_column_name, registration.metadata_column_name]
    print(df[list(dict.fromkeys(columns))].head(limit).to_string(index=False))


@app.command(name="drop-table")
def drop_table(
    table: str = typer.Option("table", "--table", "-t", help="Configured table name."),
    config_path: str = typer.Option(DEFAULT_CONFIG, "-c", help="Config path."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    """Deletes a configured LanceDB table."""
    config = load_config(config_path)
    registration = find_table(config, table)
    if registration is None:
        logger.error(f"Table '{table}' is not configured in '{config_path}'.")
        raise typer.Exit(code=1)

    if not yes and not typer.confirm(f"Drop table '{table}'?"):
        logger.info("Aborting.")
        return
    try:
        delete_lancedb_table(registration.db_uri, table)
    except Exception as e:
        logger.error(f"Could not drop table '{table}': {e}", exc_info=True)
        raise typer.Exit(code=1)
