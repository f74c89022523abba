"""
End-to-end tests against a real on-disk LanceDB database.
"""

import json

import lancedb
import pytest

from lancekit.components.indexer import LanceDBIndexer
from lancekit.components.retriever import LanceDBRetriever
from lancekit.core.exceptions import TableWriteError
from lancekit.core.hashing import content_hash
from lancekit.core.registry import (
    Registry,
    lancedb as lancedb_plugin,
    lancedb_indexer_ref,
    lancedb_retriever_ref,
)
from lancekit.core.rows import ColumnNames, METADATA_ERROR
from lancekit.core.tables import create_lancedb_table, delete_lancedb_table, resolve_table
from lancekit.utils.config_models import TableConfig
from lancekit.utils.data_models import Document


@pytest.fixture
def table_config(tmp_path):
    return TableConfig(db_uri=str(tmp_path / "db"), table_name="docs")


def _count(table_config):
    return resolve_table(table_config.db_uri, table_config.table_name).count_rows()


def test_index_then_retrieve_nearest(keyed_embedder, table_config):
    indexer = LanceDBIndexer(keyed_embedder, table_config)
    retriever = LanceDBRetriever(keyed_embedder, table_config)

    written = indexer.index([Document.from_data("A"), Document.from_data("B")])

    assert written == 2
    handle = resolve_table(table_config.db_uri, "docs")
    assert handle.exists
    ids = sorted(row["id"] for row in handle.table.to_arrow().to_pylist())
    assert ids == sorted([content_hash("A", "{}"), content_hash("B", "{}")])

    docs = retriever.retrieve(Document.from_data("near A"), {"k": 1})
    assert len(docs) == 1
    assert docs[0].content == "A"
    assert docs[0].metadata == {}


def test_append_adds_rows(keyed_embedder, table_config):
    indexer = LanceDBIndexer(keyed_embedder, table_config)
    indexer.index([Document.from_data("A"), Document.from_data("B")])

    indexer.index([Document.from_data("C")])

    assert _count(table_config) == 3


def test_overwrite_replaces_rows(keyed_embedder, table_config):
    indexer = LanceDBIndexer(keyed_embedder, table_config)
    indexer.index([Document.from_data("A"), Document.from_data("B")])

    indexer.index([Document.from_data("C")], {"write_mode": "overwrite"})

    assert _count(table_config) == 1
    docs = LanceDBRetriever(keyed_embedder, table_config).retrieve("A", {"k": 5})
    assert [d.content for d in docs] == ["C"]


def test_create_mode_on_existing_table_fails(keyed_embedder, table_config):
    indexer = LanceDBIndexer(keyed_embedder, table_config)
    indexer.index([Document.from_data("A")])

    with pytest.raises(TableWriteError):
        indexer.index([Document.from_data("B")], {"write_mode": "create"})
    assert _count(table_config) == 1


def test_append_with_mismatched_dimension_fails(make_embedder, keyed_embedder, table_config):
    LanceDBIndexer(keyed_embedder, table_config).index([Document.from_data("A")])
    wide = make_embedder({}, default=[0.1, 0.2, 0.3, 0.4, 0.5])

    with pytest.raises(TableWriteError, match="docs"):
        LanceDBIndexer(wide, table_config).index([Document.from_data("X")])


def test_metadata_round_trips(keyed_embedder, table_config):
    metadata = {"source": "a.txt", "page": 2, "tags": ["x"]}
    LanceDBIndexer(keyed_embedder, table_config).index(
        [Document.from_data("A", metadata), Document.from_data("B", {"source": "b.txt"})]
    )

    docs = LanceDBRetriever(keyed_embedder, table_config).retrieve("A", {"k": 1})

    assert docs[0].metadata == metadata


def test_custom_column_names(keyed_embedder, tmp_path):
    config = TableConfig(
        db_uri=str(tmp_path / "db"),
        table_name="custom",
        vector_column_name="emb",
        text_column_name="body",
        metadata_column_name="meta",
    )
    LanceDBIndexer(keyed_embedder, config).index(
        [Document.from_data("A"), Document.from_data("B", {"n": 1})]
    )

    table = lancedb.connect(config.db_uri).open_table("custom")
    assert set(table.schema.names) == {"id", "emb", "body", "meta"}

    docs = LanceDBRetriever(keyed_embedder, config).retrieve("B", {"k": 1})
    assert docs == [Document.from_data("B", {"n": 1})]


def test_where_filter_narrows_results(keyed_embedder, table_config):
    LanceDBIndexer(keyed_embedder, table_config).index(
        [Document.from_data("A"), Document.from_data("B"), Document.from_data("C")]
    )

    docs = LanceDBRetriever(keyed_embedder, table_config).retrieve(
        "A", {"k": 5, "where_filter": f"id = '{content_hash('B', '{}')}'"}
    )

    assert [d.content for d in docs] == ["B"]


def test_invalid_metadata_in_table_gives_sentinel(tmp_path, keyed_embedder):
    db_uri = str(tmp_path / "db")
    resolve_table(db_uri, "raw").create(
        [{"id": "1", "vector": [1.0, 0.0, 0.0], "text": "A", "metadata": "{not json"}],
        ColumnNames(),
    )
    config = TableConfig(db_uri=db_uri, table_name="raw")

    docs = LanceDBRetriever(keyed_embedder, config).retrieve("A", {"k": 1})

    assert docs == [Document.from_data("A", METADATA_ERROR)]


def test_retrieve_from_missing_table_is_empty(keyed_embedder, table_config):
    assert LanceDBRetriever(keyed_embedder, table_config).retrieve("A") == []


def test_retrieve_with_invalid_filter_is_empty(keyed_embedder, table_config):
    LanceDBIndexer(keyed_embedder, table_config).index([Document.from_data("A")])

    docs = LanceDBRetriever(keyed_embedder, table_config).retrieve(
        "A", {"where_filter": "no_such_column = 1"}
    )

    assert docs == []


def test_plugin_round_trip_through_registry(keyed_embedder, tmp_path):
    db_uri = str(tmp_path / "db")
    registry = lancedb_plugin(
        [{"db_uri": db_uri, "table_name": "notes", "embedder": keyed_embedder}]
    )(Registry())

    registry.index(
        lancedb_indexer_ref("notes"),
        [Document.from_data("A", {"kind": "letter"}), Document.from_data("B")],
    )
    docs = registry.retrieve(lancedb_retriever_ref("notes"), "near A", {"k": 1})

    assert docs == [Document.from_data("A", {"kind": "letter"})]


def test_delete_table(keyed_embedder, table_config):
    LanceDBIndexer(keyed_embedder, table_config).index([Document.from_data("A")])

    delete_lancedb_table(table_config.db_uri, table_config.table_name)

    assert not resolve_table(table_config.db_uri, table_config.table_name).exists


def test_stored_metadata_is_plain_json(keyed_embedder, table_config):
    LanceDBIndexer(keyed_embedder, table_config).index(
        [Document.from_data("A", {"b": 1, "a": "x"})]
    )

    handle = resolve_table(table_config.db_uri, table_config.table_name)
    raw = handle.table.to_arrow().to_pylist()[0]["metadata"]
    assert json.loads(raw) == {"a": "x", "b": 1}


def test_create_lancedb_table_from_example_data(tmp_path):
    db_uri = str(tmp_path / "db")

    create_lancedb_table(db_uri, "plain", [{"id": "1", "text": "hello"}])

    handle = resolve_table(db_uri, "plain")
    assert handle.exists
    assert handle.count_rows() == 1


def test_tables_beyond_the_first_page_are_found(keyed_embedder, tmp_path):
    db_uri = str(tmp_path / "db")
    configs = [TableConfig(db_uri=db_uri, table_name=f"t{i:02d}") for i in range(12)]
    for config in configs:
        LanceDBIndexer(keyed_embedder, config).index([Document.from_data("A")])
    last = configs[-1]

    assert resolve_table(db_uri, last.table_name).exists

    written = LanceDBIndexer(keyed_embedder, last).index([Document.from_data("B")])
    assert written == 1
    assert _count(last) == 2

    docs = LanceDBRetriever(keyed_embedder, last).retrieve("B", {"k": 1})
    assert [d.content for d in docs] == ["B"]
