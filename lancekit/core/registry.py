"""
Named component registry and the LanceDB plugin.

A `Registry` stands in for the host framework's component registry: it
holds retrievers and indexers under names such as `lancedb/<table>`. The
`lancedb` plugin wires a LanceDBRetriever and a LanceDBIndexer into a
registry for each configured table.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .exceptions import ComponentNotFoundError
from .factory import EMBEDDER_REGISTRY, build_component
from ..components.embedders import BaseEmbedder
from ..components.indexer import LanceDBIndexer
from ..components.retriever import LanceDBRetriever
from ..utils.config_models import (
    DEFAULT_TABLE_NAME,
    TableConfig,
    TableRegistration,
)

logger = logging.getLogger(__name__)

PLUGIN_NAME = "lancedb"
RETRIEVER = "retriever"
INDEXER = "indexer"


@dataclass(frozen=True)
class ComponentRef:
    """A reference to a registered component, usable without importing it."""

    kind: str
    name: str
    label: str


class Registry:
    """Holds retrievers and indexers by name."""

    def __init__(self):
        self._components: Dict[str, Dict[str, Callable]] = {RETRIEVER: {}, INDEXER: {}}

    def _define(self, kind: str, name: str, fn: Callable, label: Optional[str]):
        if name in self._components[kind]:
            raise ValueError(f"A {kind} named '{name}' is already registered.")
        self._components[kind][name] = fn
        logger.debug(f"Registered {kind} '{name}'.")
        return ComponentRef(kind=kind, name=name, label=label or name)

    def define_retriever(self, name: str, fn: Callable, label: Optional[str] = None):
        return self._define(RETRIEVER, name, fn, label)

    def define_indexer(self, name: str, fn: Callable, label: Optional[str] = None):
        return self._define(INDEXER, name, fn, label)

    def lookup(self, kind: str, name: str) -> Callable:
        try:
            return self._components[kind][name]
        except KeyError:
            raise ComponentNotFoundError(kind, name) from None

    def names(self, kind: str) -> List[str]:
        return sorted(self._components[kind])

    def _name_of(self, ref: Union[ComponentRef, str]) -> str:
        return ref.name if isinstance(ref, ComponentRef) else ref

    def retrieve(self, retriever: Union[ComponentRef, str], query, options=None):
        return self.lookup(RETRIEVER, self._name_of(retriever))(query, options)

    def index(self, indexer: Union[ComponentRef, str], documents, options=None):
        return self.lookup(INDEXER, self._name_of(indexer))(documents, options)


def _component_name(table_name: Optional[str]) -> str:
    return f"{PLUGIN_NAME}/{table_name or DEFAULT_TABLE_NAME}"


def _label(table_name: Optional[str], display_name: Optional[str]) -> str:
    return display_name or f"LanceDB - {table_name or DEFAULT_TABLE_NAME}"


def lancedb_retriever_ref(
    table_name: Optional[str] = None, display_name: Optional[str] = None
) -> ComponentRef:
    """Returns a reference to the retriever registered for `table_name`."""
    return ComponentRef(
        kind=RETRIEVER,
        name=_component_name(table_name),
        label=_label(table_name, display_name),
    )


def lancedb_indexer_ref(
    table_name: Optional[str] = None, display_name: Optional[str] = None
) -> ComponentRef:
    """Returns a reference to the indexer registered for `table_name`."""
    return ComponentRef(
        kind=INDEXER,
        name=_component_name(table_name),
        label=_label(table_name, display_name),
    )


def define_lancedb_components(
    table_name: Optional[str] = None, display_name: Optional[str] = None
) -> Dict[str, ComponentRef]:
    """Returns the indexer and retriever references for one table."""
    return {
        "indexer": lancedb_indexer_ref(table_name, display_name),
        "retriever": lancedb_retriever_ref(table_name, display_name),
    }


def _split_config(config: Union[TableRegistration, Dict[str, Any]]):
    """Returns (table_config, embedder, embedder_options, display_name)."""
    if isinstance(config, TableRegistration):
        embedder = build_component(config.embedder, EMBEDDER_REGISTRY)
        table_config = TableConfig(**config.model_dump(include=set(TableConfig.model_fields)))
        return table_config, embedder, config.embedder_options, config.display_name

    config = dict(config)
    embedder = config.pop("embedder")
    if not isinstance(embedder, BaseEmbedder):
        embedder = build_component(embedder, EMBEDDER_REGISTRY)
    embedder_options = config.pop("embedder_options", None)
    display_name = config.pop("display_name", None)
    table_config = TableConfig(**{k: v for k, v in config.items() if v is not None})
    return table_config, embedder, embedder_options, display_name


def _define_retriever(registry, table_config, embedder, embedder_options, display_name):
    retriever = LanceDBRetriever(embedder, table_config, embedder_options)
    return registry.define_retriever(
        _component_name(table_config.table_name),
        retriever,
        _label(table_config.table_name, display_name),
    )


def _define_indexer(registry, table_config, embedder, embedder_options, display_name):
    indexer = LanceDBIndexer(embedder, table_config, embedder_options)
    return registry.define_indexer(
        _component_name(table_config.table_name),
        indexer,
        _label(table_config.table_name, display_name),
    )


def configure_lancedb_retriever(
    registry: Registry, config: Union[TableRegistration, Dict[str, Any]]
) -> ComponentRef:
    """Registers a LanceDBRetriever for one table."""
    return _define_retriever(registry, *_split_config(config))


def configure_lancedb_indexer(
    registry: Registry, config: Union[TableRegistration, Dict[str, Any]]
) -> ComponentRef:
    """Registers a LanceDBIndexer for one table."""
    return _define_indexer(registry, *_split_config(config))


def lancedb(configs: List[Union[TableRegistration, Dict[str, Any]]]):
    """
    The LanceDB plugin.

    Each config names a table (db_uri, table_name, column names) and the
    embedder to use for it. The embedder is either a BaseEmbedder instance
    or a component config such as {"type": "hash", "config": {...}}.

    Returns:
        A callable that registers one retriever and one indexer per config
        into the given registry, both under `lancedb/<table_name>`.
    """

    def install(registry: Registry) -> Registry:
        for config in configs:
            # One embedder per table, shared by its retriever and indexer.
            parts = _split_config(config)
            _define_retriever(registry, *parts)
            _define_indexer(registry, *parts)
        logger.info(f"LanceDB plugin registered {len(configs)} table(s).")
        return registry

    return install
